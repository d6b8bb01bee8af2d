"""Spline representation of a molecular pathway such as an ion channel pore.

This module provides the MolecularPath class, which turns the ordered centre
line points and radii found by a path finder into a pair of smooth splines and
answers geometric queries against them.
"""

from __future__ import annotations

import json
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from warnings import warn

import numpy as np
from numpy.typing import ArrayLike
from scipy.integrate import quad
from scipy.optimize import minimize_scalar

from ..constants import (
    CENTRE_LINE_KEY,
    DEFAULT_EXTRAP_DIST,
    DEFAULT_MAP_TOL,
    DEFAULT_MAX_ITER,
    DEFAULT_SAMPLE_STEP,
    PATH_POINTS_KEY,
    PATH_RADII_KEY,
    RADIUS_KEY,
)
from ..geometry.cubic_spline_interp import CubicSplineInterp1D, CubicSplineInterp3D
from ..geometry.spline_curve import CurvilinearCoordinate, SplineCurve1D, SplineCurve3D
from .neighbour_search import CentreLineSearch


@dataclass
class PathMappingParameters:
    """Options for mapping positions onto a pathway.

    Attributes:
        map_tol: Convergence tolerance of the foot point search, in arc length.
        extrap_dist: Distance beyond the openings covered by the centre line
            samples that `map_positions` searches against.
        sample_step: Arc length spacing of those samples.
        search_cutoff: Positions further than this from every path point are
            not mapped. None maps every position.
        max_iter: Iteration limit of the foot point search.
    """

    map_tol: float = DEFAULT_MAP_TOL
    extrap_dist: float = DEFAULT_EXTRAP_DIST
    sample_step: float = DEFAULT_SAMPLE_STEP
    search_cutoff: float | None = None
    max_iter: int = DEFAULT_MAX_ITER


class MolecularPath:
    """A molecular pathway described by a centre line and a radius profile.

    The centre line is a cubic spline curve through the path points,
    parameterized by arc length s. The pore radius is a cubic spline over the
    same arc length domain. The openings of the pathway lie at `s_lo` and
    `s_hi`, the arc length of the first and last path point.

    Positions are related to the pathway through curvilinear coordinates
    (s, rho, phi): the arc length of the closest centre line point, the
    distance from it and the angle around the centre line.

    Can be constructed either from path finder output or from a document:
        - MolecularPath(path_points, path_radii)
        - MolecularPath.from_dict(doc) / MolecularPath.from_json(path)

    Args:
        path_points: Array with shape (n, 3) of centre line points, n >= 3, in
            order along the pathway and without coincident neighbours.
        path_radii: Array with shape (n,) of pore radii at the path points.
    """

    def __init__(self, path_points: ArrayLike, path_radii: ArrayLike):
        path_points = np.array(path_points, dtype=float)
        path_radii = np.array(path_radii, dtype=float)
        if path_points.ndim != 2 or path_points.shape[1] != 3:
            raise ValueError(
                f"Path points must have shape (n, 3), got {path_points.shape}"
            )
        if path_radii.shape != (path_points.shape[0],):
            raise ValueError(
                f"Number of path radii ({path_radii.size}) must match number of "
                f"path points ({path_points.shape[0]})"
            )

        centre_line = CubicSplineInterp3D().interpolate(path_points)
        arc_len = centre_line.ctrl_point_arc_length()
        pore_radius = CubicSplineInterp1D().interpolate(arc_len, path_radii)
        centre_line = centre_line.arc_length_param()

        self._init_from_curves(
            path_points, path_radii, centre_line, pore_radius, arc_len[0], arc_len[-1]
        )

    def _init_from_curves(
        self,
        path_points: np.ndarray,
        path_radii: np.ndarray,
        centre_line: SplineCurve3D,
        pore_radius: SplineCurve1D,
        s_lo: float,
        s_hi: float,
    ) -> None:
        """Initialize from already computed splines."""
        path_points.setflags(write=False)
        path_radii.setflags(write=False)
        self._path_points = path_points
        self._path_radii = path_radii
        self._centre_line = centre_line
        self._pore_radius = pore_radius
        self._s_lo = float(s_lo)
        self._s_hi = float(s_hi)
        self._length = abs(self._s_hi - self._s_lo)
        self._properties: dict[str, tuple[SplineCurve1D, bool]] = {}

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> MolecularPath:
        """Create a MolecularPath from a document written by `to_dict`.

        The splines are taken as stored, without interpolating again, so all
        queries give the same results as on the pathway that was saved.
        """
        instance = cls.__new__(cls)
        instance._init_from_curves(
            np.array(doc[PATH_POINTS_KEY], dtype=float).reshape(-1, 3),
            np.array(doc[PATH_RADII_KEY], dtype=float),
            SplineCurve3D.from_dict(doc[CENTRE_LINE_KEY]),
            SplineCurve1D.from_dict(doc[RADIUS_KEY]),
            doc["sLo"],
            doc["sHi"],
        )
        return instance

    @classmethod
    def from_json(cls, source: str | Path) -> MolecularPath:
        """Create a MolecularPath from a JSON file, or a JSON string."""
        if isinstance(source, Path) or not source.lstrip().startswith("{"):
            with open(source) as f:
                return cls.from_dict(json.load(f))
        return cls.from_dict(json.loads(source))

    def to_dict(self) -> dict[str, Any]:
        """Document with everything needed to rebuild the pathway."""
        return {
            CENTRE_LINE_KEY: self._centre_line.to_dict(),
            RADIUS_KEY: self._pore_radius.to_dict(),
            PATH_POINTS_KEY: self._path_points.tolist(),
            PATH_RADII_KEY: self._path_radii.tolist(),
            "sLo": self._s_lo,
            "sHi": self._s_hi,
        }

    def to_json(self, path: str | Path | None = None) -> str:
        """Serialize the pathway as JSON, optionally writing it to a file."""
        text = json.dumps(self.to_dict())
        if path is not None:
            Path(path).write_text(text)
        return text

    @property
    def path_points(self) -> np.ndarray:
        """The original centre line points (read-only)."""
        return self._path_points

    @property
    def path_radii(self) -> np.ndarray:
        """The original radii (read-only)."""
        return self._path_radii

    @property
    def centre_line(self) -> SplineCurve3D:
        return self._centre_line

    @property
    def pore_radius(self) -> SplineCurve1D:
        return self._pore_radius

    @property
    def length(self) -> float:
        """Arc length between the two openings."""
        return self._length

    @property
    def s_lo(self) -> float:
        """Arc length of the lower opening."""
        return self._s_lo

    @property
    def s_hi(self) -> float:
        """Arc length of the upper opening."""
        return self._s_hi

    @property
    def centre_line_knots(self) -> np.ndarray:
        return self._centre_line.knots

    @property
    def centre_line_unique_knots(self) -> np.ndarray:
        return self._centre_line.unique_knots

    @property
    def centre_line_ctrl_points(self) -> np.ndarray:
        return self._centre_line.ctrl_points

    @property
    def pore_radius_knots(self) -> np.ndarray:
        return self._pore_radius.knots

    @property
    def pore_radius_unique_knots(self) -> np.ndarray:
        return self._pore_radius.unique_knots

    @property
    def pore_radius_ctrl_points(self) -> np.ndarray:
        return self._pore_radius.ctrl_points

    def radius(self, s: float) -> float:
        """Pore radius at arc length s."""
        return self._pore_radius(s)

    def min_radius(self, sample_step: float = DEFAULT_SAMPLE_STEP) -> tuple[float, float]:
        """Find the narrowest point of the pathway between the openings.

        The radius profile is scanned with the given arc length spacing and the
        smallest sample is refined by a bounded minimisation between its
        neighbours.

        Returns:
            Tuple of (arc length, radius) at the minimum.
        """
        n_samples = max(int(np.ceil(self._length / sample_step)) + 1, 2)
        s = np.linspace(self._s_lo, self._s_hi, n_samples)
        r = self._pore_radius(s)
        i = int(np.argmin(r))
        best = (float(s[i]), float(r[i]))

        lo = s[max(i - 1, 0)]
        hi = s[min(i + 1, n_samples - 1)]
        result = minimize_scalar(self.radius, bounds=(lo, hi), method="bounded")
        if result.success and result.fun < best[1]:
            best = (float(result.x), float(result.fun))
        return best

    def volume(self, s_lo: float | None = None, s_hi: float | None = None) -> float:
        """Volume enclosed by the pathway, the integral of pi r(s)^2 over s.

        Args:
            s_lo: Lower integration limit, defaults to the lower opening.
            s_hi: Upper integration limit, defaults to the upper opening.
        """
        lo = self._s_lo if s_lo is None else s_lo
        hi = self._s_hi if s_hi is None else s_hi
        knots = self._pore_radius.unique_knots
        inner = knots[(knots > min(lo, hi)) & (knots < max(lo, hi))]
        value, _err = quad(
            lambda s: np.pi * self._pore_radius(s) ** 2,
            lo,
            hi,
            points=inner if inner.size > 0 else None,
            limit=max(50, 2 * inner.size),
        )
        return value

    def sample_arc_length(
        self, n_points: int, extrap_dist: float = DEFAULT_EXTRAP_DIST
    ) -> np.ndarray:
        """Equally spaced arc length values reaching extrap_dist beyond the openings.

        Args:
            n_points: Number of values, at least 2.
            extrap_dist: Distance to extend sampling beyond each opening.

        Returns:
            Array running from s_lo - extrap_dist to s_hi + extrap_dist.
        """
        if n_points < 2:
            raise ValueError(f"At least 2 sample points are required, got {n_points}")
        step = self._sample_arc_len_step(n_points, extrap_dist)
        return self._s_lo - extrap_dist + np.arange(n_points) * step

    def _sample_arc_len_step(self, n_points: int, extrap_dist: float) -> float:
        return (self._length + 2.0 * extrap_dist) / (n_points - 1)

    def _arc_length_sample(
        self, sample: Sequence[float] | np.ndarray | int, extrap_dist: float
    ) -> np.ndarray:
        if np.ndim(sample) == 0:
            return self.sample_arc_length(int(sample), extrap_dist)
        return np.asarray(sample, dtype=float)

    def sample_points(
        self,
        sample: Sequence[float] | np.ndarray | int,
        extrap_dist: float = DEFAULT_EXTRAP_DIST,
    ) -> np.ndarray:
        """Centre line points at given arc lengths.

        Args:
            sample: Arc length values, or a number of equally spaced values to
                generate with `sample_arc_length`.
            extrap_dist: Used only when sample is a number.

        Returns:
            Array with shape (m, 3).
        """
        return self._centre_line(self._arc_length_sample(sample, extrap_dist))

    def sample_tangents(
        self,
        sample: Sequence[float] | np.ndarray | int,
        extrap_dist: float = DEFAULT_EXTRAP_DIST,
    ) -> np.ndarray:
        """Centre line tangent vectors (first derivative) at given arc lengths."""
        return self._centre_line(self._arc_length_sample(sample, extrap_dist), 1)

    def sample_norm_tangents(
        self,
        sample: Sequence[float] | np.ndarray | int,
        extrap_dist: float = DEFAULT_EXTRAP_DIST,
    ) -> np.ndarray:
        """Unit tangent vectors at given arc lengths."""
        tangents = self.sample_tangents(sample, extrap_dist)
        return tangents / np.linalg.norm(tangents, axis=1, keepdims=True)

    def sample_normals(
        self,
        sample: Sequence[float] | np.ndarray | int,
        extrap_dist: float = DEFAULT_EXTRAP_DIST,
    ) -> np.ndarray:
        """Unit normal vectors at given arc lengths."""
        s = self._arc_length_sample(sample, extrap_dist)
        return np.array([self._centre_line.normal_vector(x) for x in s]).reshape(-1, 3)

    def sample_radii(
        self,
        sample: Sequence[float] | np.ndarray | int,
        extrap_dist: float = DEFAULT_EXTRAP_DIST,
    ) -> np.ndarray:
        """Pore radius at given arc lengths."""
        return self._pore_radius(self._arc_length_sample(sample, extrap_dist))

    def map_selection(
        self,
        positions: ArrayLike,
        params: PathMappingParameters | None = None,
        ids: Iterable[Hashable] | None = None,
    ) -> dict[Hashable, CurvilinearCoordinate]:
        """Map positions onto the pathway.

        For each position the closest path point is looked up first. Positions
        with no path point within `params.search_cutoff` are left out of the
        result. The others are mapped by refining the foot point on the centre
        line, starting from that path point.

        Args:
            positions: Array with shape (m, 3).
            params: Mapping options, defaults to PathMappingParameters().
            ids: Keys for the result, one per position. Defaults to row indices.

        Returns:
            Dictionary from id to curvilinear coordinate.
        """
        params = params or PathMappingParameters()
        positions = np.asarray(positions, dtype=float).reshape(-1, 3)
        ids = range(positions.shape[0]) if ids is None else list(ids)

        search = CentreLineSearch(self._path_points, cutoff=params.search_cutoff)
        pairs = search.query(positions)

        mapped: dict[Hashable, CurvilinearCoordinate] = {}
        for pid, position, pair in zip(ids, positions, pairs, strict=True):
            if pair is None:
                continue
            mapped[pid] = self._centre_line.cartesian_to_curvilinear(
                position, pair.ref_index, params.map_tol, params.max_iter
            )

        _warn_not_converged(mapped.values(), params.max_iter)
        return mapped

    def map_positions(
        self, positions: ArrayLike, params: PathMappingParameters | None = None
    ) -> np.ndarray:
        """Map every position onto the pathway, ignoring any search cutoff.

        The centre line is sampled every `params.sample_step`, reaching
        `params.extrap_dist` beyond each opening. Each position starts its foot
        point search from the arc length of the closest sample, so positions
        beyond the openings map onto the extrapolated centre line.

        Returns:
            Array with shape (m, 3) holding (s, rho, phi) for each position.
        """
        params = params or PathMappingParameters()
        positions = np.asarray(positions, dtype=float).reshape(-1, 3)

        n_samples = self._num_sample_points(params)
        arc_len_sample = self.sample_arc_length(n_samples, params.extrap_dist)
        step = arc_len_sample[1] - arc_len_sample[0]
        search = CentreLineSearch(self.sample_points(arc_len_sample))

        coords = []
        for position, pair in zip(positions, search.query(positions), strict=True):
            i = pair.ref_index
            bracket = (arc_len_sample[i] - step, arc_len_sample[i] + step)
            coords.append(
                self._centre_line.map_from(
                    position, arc_len_sample[i], bracket, params.map_tol, params.max_iter
                )
            )

        _warn_not_converged(coords, params.max_iter)
        return np.array([coord[:3] for coord in coords]).reshape(-1, 3)

    def _num_sample_points(self, params: PathMappingParameters) -> int:
        """Number of samples spaced at most sample_step apart, at least 2."""
        span = self._length + 2.0 * params.extrap_dist
        return max(int(np.ceil(span / params.sample_step)) + 1, 2)

    def check_if_inside(
        self,
        mapped_coords: Mapping[Hashable, Sequence[float]],
        margin: float = 0.0,
        s_lo: float | None = None,
        s_hi: float | None = None,
    ) -> dict[Hashable, bool]:
        """Check which mapped positions lie inside the pathway.

        A position is inside if its distance from the centre line is smaller
        than the pore radius at its arc length plus margin. If s_lo and s_hi
        are given, its arc length must also lie within [s_lo, s_hi].

        Args:
            mapped_coords: Dictionary from id to (s, rho, ...) as returned by
                `map_selection`.
            margin: Added to the pore radius before comparing.
            s_lo: Lower arc length limit.
            s_hi: Upper arc length limit.

        Returns:
            Dictionary from id to inside flag.
        """
        if (s_lo is None) != (s_hi is None):
            raise ValueError("s_lo and s_hi must be given together")

        is_inside: dict[Hashable, bool] = {}
        for pid, coord in mapped_coords.items():
            s, rho = coord[0], coord[1]
            inside = rho < self._pore_radius(s) + margin
            if s_lo is not None:
                inside = inside and s_lo <= s <= s_hi
            is_inside[pid] = bool(inside)
        return is_inside

    def add_scalar_property(
        self, name: str, curve: SplineCurve1D, divergent: bool
    ) -> None:
        """Attach a named property along the centre line, replacing any old one.

        Args:
            name: Name of the property, e.g. "density".
            curve: The property as a function of arc length.
            divergent: Whether the property diverges at the pathway ends.
        """
        self._properties[name] = (curve, divergent)

    @property
    def scalar_properties(self) -> dict[str, tuple[SplineCurve1D, bool]]:
        """Copy of the attached properties."""
        return dict(self._properties)

    def shift(self, offset: ArrayLike) -> None:
        """Translate the pathway in space."""
        offset = np.asarray(offset, dtype=float)
        self._centre_line = self._centre_line.shift(offset)
        path_points = self._path_points + offset
        path_points.setflags(write=False)
        self._path_points = path_points


def _warn_not_converged(coords: Iterable[CurvilinearCoordinate], max_iter: int) -> None:
    coords = list(coords)
    n_failed = sum(1 for coord in coords if not coord.converged)
    if n_failed > 0:
        warn(
            f"Mapping did not converge for {n_failed} of {len(coords)} "
            f"positions within {max_iter} iterations.",
            stacklevel=3,
        )
