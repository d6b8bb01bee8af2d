"""Scalar and 3D spline curves.

SplineCurve1D describes a scalar function along a parameter, such as the pore
radius along the centre line. SplineCurve3D describes a spatial curve and
supports reparameterization by arc length and the mapping of Cartesian points
onto curvilinear coordinates.
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple

import numpy as np
from numpy.typing import ArrayLike
from scipy.integrate import quad
from scipy.optimize import minimize_scalar

from ..constants import DEFAULT_MAP_TOL, DEFAULT_MAX_ITER
from ..errors import ArcLengthParameterizationError, SplineConfigurationError
from .base import SplineCurveBase

# Curves with curvature below this are treated as locally straight.
_STRAIGHT_TOL = 1e-10

# Relative distance from the bracket ends below which a fallback foot point
# counts as lying on the edge.
_BRACKET_EDGE_TOL = 1e-6


class CurvilinearCoordinate(NamedTuple):
    """Position of a point relative to a curve.

    Attributes:
        s: Curve parameter of the foot point (arc length for arc length curves).
        rho: Distance between the point and its foot point.
        phi: Angle around the curve, measured from the normal vector.
        converged: False if the foot point search hit its iteration limit.
    """

    s: float
    rho: float
    phi: float
    converged: bool


class SplineCurve1D(SplineCurveBase):
    """Scalar B-spline curve.

    Args:
        degree: Polynomial degree.
        knots: Clamped knot vector.
        ctrl_points: 1D array of scalar control points.
    """

    def __init__(self, degree: int, knots: ArrayLike, ctrl_points: ArrayLike):
        ctrl_points = np.asarray(ctrl_points, dtype=float)
        if ctrl_points.ndim != 1:
            raise SplineConfigurationError(
                f"Control points of a 1D curve must be scalars, got shape "
                f"{ctrl_points.shape}"
            )
        super().__init__(degree, knots, ctrl_points)

    def _pack(self, value: np.ndarray) -> float:
        return float(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "degree": self._degree,
            "knots": self._knots.tolist(),
            "ctrl": self._ctrl_points.tolist(),
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> SplineCurve1D:
        """Rebuild a curve written by `to_dict`."""
        return cls(int(doc["degree"]), doc["knots"], doc["ctrl"])


class SplineCurve3D(SplineCurveBase):
    """Spatial B-spline curve.

    A curve starts out with whatever parameter it was interpolated over.
    `arc_length_param` converts it into a curve whose parameter is arc length;
    `is_arc_length` tells the two states apart.

    Args:
        degree: Polynomial degree.
        knots: Clamped knot vector.
        ctrl_points: Array with shape (n, 3).
        is_arc_length: Whether the parameter of this curve is arc length.
    """

    def __init__(
        self,
        degree: int,
        knots: ArrayLike,
        ctrl_points: ArrayLike,
        is_arc_length: bool = False,
    ):
        ctrl_points = np.asarray(ctrl_points, dtype=float)
        if ctrl_points.ndim != 2 or ctrl_points.shape[1] != 3:
            raise SplineConfigurationError(
                f"Control points of a 3D curve must have shape (n, 3), got "
                f"{ctrl_points.shape}"
            )
        super().__init__(degree, knots, ctrl_points)
        self._is_arc_length = is_arc_length

    @property
    def is_arc_length(self) -> bool:
        return self._is_arc_length

    def _pack(self, value: np.ndarray) -> np.ndarray:
        return value

    def tangent_vector(self, s: float) -> np.ndarray:
        """First derivative of the curve at s (not normalized)."""
        return self.evaluate(s, 1)

    def normal_vector(self, s: float) -> np.ndarray:
        """Unit normal vector at s.

        This is the principal normal, the second derivative with its tangential
        part removed. Where the curve is straight, the normal is built from the
        coordinate axis least aligned with the tangent instead.
        """
        d1 = self.evaluate(s, 1)
        tangent = d1 / np.linalg.norm(d1)
        d2 = self.evaluate(s, 2)
        normal = d2 - np.dot(d2, tangent) * tangent
        if np.linalg.norm(normal) <= _STRAIGHT_TOL * np.dot(d1, d1):
            axis = np.zeros(3)
            axis[np.argmin(np.abs(tangent))] = 1.0
            normal = axis - np.dot(axis, tangent) * tangent
        return normal / np.linalg.norm(normal)

    def arc_length(self, lo: float, hi: float) -> float:
        """Arc length between two parameter values.

        The speed |c'(s)| is integrated by adaptive Gauss-Kronrod quadrature,
        separately on each knot interval so the integrand is smooth.
        """
        if hi < lo:
            return -self.arc_length(hi, lo)
        inner = self._unique_knots[(self._unique_knots > lo) & (self._unique_knots < hi)]
        bounds = np.concatenate([[lo], inner, [hi]])
        total = 0.0
        for a, b in zip(bounds[:-1], bounds[1:], strict=False):
            length, _err = quad(self._speed, a, b)
            total += length
        return total

    def _speed(self, s: float) -> float:
        return float(np.linalg.norm(self.evaluate(s, 1)))

    def ctrl_point_arc_length(self) -> np.ndarray:
        """Cumulative arc length at each unique knot, starting from zero.

        For a curve parameterized by arc length these are the unique knots.
        """
        if self._is_arc_length:
            return self._unique_knots.copy()
        u = self._unique_knots
        segments = [self.arc_length(a, b) for a, b in zip(u[:-1], u[1:], strict=False)]
        return np.concatenate([[0.0], np.cumsum(segments)])

    def arc_length_param(self) -> SplineCurve3D:
        """Return a copy of this curve parameterized by arc length.

        The curve points at the unique knots are interpolated again, using
        their cumulative arc length as parameter. The new curve therefore runs
        through the same points, and the same end points, as this one.

        Raises:
            ArcLengthParameterizationError: If the curve already is
                parameterized by arc length.
        """
        if self._is_arc_length:
            raise ArcLengthParameterizationError(
                "Curve is already parameterized by arc length"
            )
        from .cubic_spline_interp import CubicSplineInterp3D

        arc_len = self.ctrl_point_arc_length()
        points = self.evaluate(self._unique_knots)
        curve = CubicSplineInterp3D().interpolate(points, x=arc_len)
        return SplineCurve3D(
            curve.degree, curve.knots, curve.ctrl_points, is_arc_length=True
        )

    def cartesian_to_curvilinear(
        self,
        point: ArrayLike,
        near_index: int,
        tol: float = DEFAULT_MAP_TOL,
        max_iter: int = DEFAULT_MAX_ITER,
    ) -> CurvilinearCoordinate:
        """Map a Cartesian point onto the curve.

        Starting from the unique knot at `near_index`, Newton's method finds
        the parameter s where (c(s) - p) is perpendicular to the tangent. If the
        squared distance is not locally convex, the foot point is searched by a
        bounded minimisation over the knot intervals around `near_index`.

        Args:
            point: Cartesian coordinates of the point.
            near_index: Index of a unique knot close to the foot point, usually
                from a nearest neighbour search over the interpolated points.
            tol: Convergence tolerance on the parameter update.
            max_iter: Maximum number of Newton iterations.

        Returns:
            The curvilinear coordinate. If the iteration limit is reached, the
            last estimate is returned with `converged` set to False.
        """
        u = self._unique_knots
        near_index = int(np.clip(near_index, 0, u.size - 1))
        if near_index > 0:
            lo = u[near_index - 1]
        else:
            lo = u[0] - (u[1] - u[0])
        if near_index < u.size - 1:
            hi = u[near_index + 1]
        else:
            hi = u[-1] + (u[-1] - u[-2])
        return self.map_from(point, float(u[near_index]), (lo, hi), tol, max_iter)

    def map_from(
        self,
        point: ArrayLike,
        s_start: float,
        bracket: tuple[float, float],
        tol: float = DEFAULT_MAP_TOL,
        max_iter: int = DEFAULT_MAX_ITER,
    ) -> CurvilinearCoordinate:
        """Map a Cartesian point onto the curve, starting from a parameter value.

        Same as `cartesian_to_curvilinear`, but the Newton iteration starts at
        s_start and the fallback minimisation searches within bracket.

        Args:
            point: Cartesian coordinates of the point.
            s_start: Initial guess for the parameter of the foot point.
            bracket: Parameter interval (lo, hi) around s_start.
            tol: Convergence tolerance on the parameter update.
            max_iter: Maximum number of Newton iterations.
        """
        p = np.asarray(point, dtype=float)
        s = float(s_start)

        converged = False
        for _ in range(max_iter):
            diff = self.evaluate(s) - p
            d1 = self.evaluate(s, 1)
            d2 = self.evaluate(s, 2)
            curvature = np.dot(d1, d1) + np.dot(diff, d2)
            if curvature <= 0.0:
                s, converged = self._bounded_foot_point(p, bracket, tol)
                break
            step = np.dot(diff, d1) / curvature
            s -= step
            if abs(step) < tol:
                converged = True
                break

        foot = self.evaluate(s)
        offset = p - foot
        d1 = self.evaluate(s, 1)
        tangent = d1 / np.linalg.norm(d1)
        normal = self.normal_vector(s)
        binormal = np.cross(tangent, normal)
        phi = math.atan2(np.dot(offset, binormal), np.dot(offset, normal))
        return CurvilinearCoordinate(
            float(s), float(np.linalg.norm(offset)), phi, converged
        )

    def _bounded_foot_point(
        self, p: np.ndarray, bracket: tuple[float, float], tol: float
    ) -> tuple[float, bool]:
        lo, hi = bracket
        result = minimize_scalar(
            lambda s: np.sum((self.evaluate(s) - p) ** 2),
            bounds=(lo, hi),
            method="bounded",
            options={"xatol": tol},
        )
        s = float(result.x)
        # a minimum on the bracket edge means the foot point lies outside it
        edge = max(tol, _BRACKET_EDGE_TOL * (hi - lo))
        on_edge = s - lo <= edge or hi - s <= edge
        return s, bool(result.success) and not on_edge

    def shift(self, offset: ArrayLike) -> SplineCurve3D:
        """Return a copy of the curve translated by offset."""
        offset = np.asarray(offset, dtype=float)
        return SplineCurve3D(
            self._degree,
            self._knots,
            self._ctrl_points + offset,
            is_arc_length=self._is_arc_length,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "degree": self._degree,
            "knots": self._knots.tolist(),
            "ctrlX": self._ctrl_points[:, 0].tolist(),
            "ctrlY": self._ctrl_points[:, 1].tolist(),
            "ctrlZ": self._ctrl_points[:, 2].tolist(),
            "arcLength": self._is_arc_length,
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> SplineCurve3D:
        """Rebuild a curve written by `to_dict`."""
        ctrl_points = np.column_stack([doc["ctrlX"], doc["ctrlY"], doc["ctrlZ"]])
        return cls(
            int(doc["degree"]),
            doc["knots"],
            ctrl_points,
            is_arc_length=bool(doc.get("arcLength", False)),
        )
