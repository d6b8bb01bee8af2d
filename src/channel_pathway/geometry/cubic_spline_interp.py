"""Cubic spline interpolation in a B-spline basis.

The interpolating spline of N data points (x[i], f[i]) is written in terms of
N + 2 cubic basis functions over the knot vector formed by x with its first and
last element repeated. The N interpolation conditions plus two boundary
conditions give a tridiagonal linear system for the control points.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike
from scipy.linalg import solve_banded

from ..constants import SPLINE_DEGREE
from ..errors import (
    SplineConfigurationError,
    SplineInterpolationError,
    UnsupportedBoundaryConditionError,
)
from .basis_spline import basis_spline, basis_spline_derivative
from .spline_curve import SplineCurve1D, SplineCurve3D


class BoundaryCondition(Enum):
    """Boundary conditions for spline interpolation."""

    HERMITE = "hermite"
    NATURAL = "natural"


class Endpoint(Enum):
    LO = "lo"
    HI = "hi"


class EndpointDerivative(Enum):
    """Estimators for the derivative of the data at an endpoint."""

    PARABOLIC = "parabolic"
    FINITE_DIFFERENCE = "finite_difference"


def estimate_endpoint_deriv(
    x: np.ndarray,
    f: np.ndarray,
    endpoint: Endpoint,
    method: EndpointDerivative = EndpointDerivative.PARABOLIC,
) -> float | np.ndarray:
    """Estimate the derivative of the data at one end of the data range.

    The parabolic estimate fits a parabola through the three points nearest to
    the endpoint, which also works for non-uniform spacing. The finite
    difference estimate uses the two nearest points only.

    Args:
        x: Parameter values, strictly increasing.
        f: Data values, with the first axis matching x.
        endpoint: Which end of the range to estimate the derivative at.
        method: The estimator to use.

    Returns:
        The estimated derivative, with the shape of one data value.
    """
    if method == EndpointDerivative.PARABOLIC:
        if endpoint == Endpoint.LO:
            x_delta_lo = x[0] - x[2]
            x_delta_hi = x[1] - x[0]
            f_delta_lo = (f[0] - f[2]) / x_delta_lo
            f_delta_hi = (f[1] - f[0]) / x_delta_hi
        else:
            x_delta_lo = x[-1] - x[-2]
            x_delta_hi = x[-3] - x[-1]
            f_delta_lo = (f[-1] - f[-2]) / x_delta_lo
            f_delta_hi = (f[-3] - f[-1]) / x_delta_hi
        return (x_delta_lo * f_delta_hi + x_delta_hi * f_delta_lo) / (
            x_delta_lo + x_delta_hi
        )

    if endpoint == Endpoint.LO:
        return (f[1] - f[0]) / (x[1] - x[0])
    return (f[-1] - f[-2]) / (x[-1] - x[-2])


class AbstractCubicSplineInterp(ABC):
    """Common machinery of the 1D and 3D cubic spline interpolators.

    Args:
        endpoint_deriv: Estimator for the boundary derivatives used by the
            Hermite boundary condition.
    """

    degree: int = SPLINE_DEGREE

    def __init__(
        self, endpoint_deriv: EndpointDerivative = EndpointDerivative.PARABOLIC
    ):
        self.endpoint_deriv = endpoint_deriv

    @abstractmethod
    def interpolate(self, *args, **kwargs):
        """Interpolate the data and return a spline curve."""
        ...

    def __call__(self, *args, **kwargs):
        return self.interpolate(*args, **kwargs)

    def prepare_knot_vector(self, x: np.ndarray) -> np.ndarray:
        """Copy of x with its first and last element repeated `degree` times."""
        return np.concatenate(
            [np.full(self.degree, x[0]), x, np.full(self.degree, x[-1])]
        )

    def assemble_banded_matrix(
        self, knots: np.ndarray, x: np.ndarray, bc: BoundaryCondition
    ) -> np.ndarray:
        """Assemble the tridiagonal system matrix in `solve_banded` layout.

        Row 0 and row N + 1 hold the first derivatives of the two basis
        functions that do not vanish at the lower and upper boundary. Row i + 1
        holds the basis functions i, i + 1 and i + 2 at x[i].

        Returns:
            Array of shape (3, N + 2) with the super-, main and subdiagonal.
        """
        self._check_boundary_condition(bc)
        n_dat = x.size
        n_sys = n_dat + 2
        ab = np.zeros((3, n_sys))

        def put(row: int, col: int, value: float) -> None:
            ab[1 + row - col, col] = value

        x_lo = x[0]
        x_hi = x[-1]
        for col in (0, 1):
            put(0, col, basis_spline_derivative(knots, self.degree, col, x_lo, 1))
        for col in (n_sys - 2, n_sys - 1):
            put(
                n_sys - 1,
                col,
                basis_spline_derivative(knots, self.degree, col, x_hi, 1),
            )

        for i in range(n_dat):
            for col in (i, i + 1, i + 2):
                put(i + 1, col, basis_spline(knots, self.degree, col, x[i]))
        return ab

    def assemble_rhs(
        self, x: np.ndarray, f: np.ndarray, bc: BoundaryCondition
    ) -> np.ndarray:
        """Right hand side: endpoint derivative estimates around the data."""
        self._check_boundary_condition(bc)
        lo = estimate_endpoint_deriv(x, f, Endpoint.LO, self.endpoint_deriv)
        hi = estimate_endpoint_deriv(x, f, Endpoint.HI, self.endpoint_deriv)
        return np.concatenate([[lo], f, [hi]])

    def _solve(
        self, x: ArrayLike, f: ArrayLike, bc: BoundaryCondition
    ) -> tuple[np.ndarray, np.ndarray]:
        """Compute knot vector and control points of the interpolating spline."""
        self._check_boundary_condition(bc)
        x = np.asarray(x, dtype=float)
        f = np.asarray(f, dtype=float)
        if x.ndim != 1:
            raise SplineConfigurationError("Parameter values must be a 1D sequence")
        if f.shape[0] != x.size:
            raise SplineConfigurationError(
                f"Number of data values ({f.shape[0]}) must match number of "
                f"parameter values ({x.size})"
            )
        if x.size < 3:
            raise SplineConfigurationError(
                f"At least 3 data points are required, got {x.size}"
            )
        if np.any(np.diff(x) <= 0):
            raise SplineConfigurationError("Parameter values must be strictly increasing")

        knots = self.prepare_knot_vector(x)
        ab = self.assemble_banded_matrix(knots, x, bc)
        rhs = self.assemble_rhs(x, f, bc)
        try:
            ctrl_points = solve_banded((1, 1), ab, rhs)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise SplineInterpolationError(
                f"Could not solve spline interpolation system: {e}"
            ) from e
        if not np.all(np.isfinite(ctrl_points)):
            raise SplineInterpolationError(
                "Spline interpolation system produced non-finite control points"
            )
        return knots, ctrl_points

    def _check_boundary_condition(self, bc: BoundaryCondition) -> None:
        if bc != BoundaryCondition.HERMITE:
            raise UnsupportedBoundaryConditionError(bc)


class CubicSplineInterp1D(AbstractCubicSplineInterp):
    """Interpolates scalar data with a cubic spline."""

    def interpolate(
        self,
        x: ArrayLike,
        f: ArrayLike,
        bc: BoundaryCondition = BoundaryCondition.HERMITE,
    ) -> SplineCurve1D:
        """Interpolate scalar data.

        Args:
            x: Strictly increasing parameter values (at least three).
            f: Data values at x.
            bc: Boundary condition, only HERMITE is implemented.

        Returns:
            A spline curve with curve(x[i]) == f[i].

        Raises:
            UnsupportedBoundaryConditionError: For any other boundary condition.
            SplineConfigurationError: For malformed input.
            SplineInterpolationError: If the linear system cannot be solved.
        """
        knots, ctrl_points = self._solve(x, f, bc)
        return SplineCurve1D(self.degree, knots, ctrl_points)


class CubicSplineInterp3D(AbstractCubicSplineInterp):
    """Interpolates a sequence of 3D points with a cubic spline curve.

    The parameter assigned to each point is either given explicitly or derived
    from the points:
        - "chord_length": cumulative distance between consecutive points
        - "index": the point index 0, 1, ..., n - 1
    """

    def interpolate(
        self,
        points: ArrayLike,
        bc: BoundaryCondition = BoundaryCondition.HERMITE,
        parameterization: str = "chord_length",
        x: ArrayLike | None = None,
    ) -> SplineCurve3D:
        """Interpolate 3D points.

        Args:
            points: Array with shape (n, 3), n >= 3.
            bc: Boundary condition, only HERMITE is implemented.
            parameterization: How to derive the parameter if x is not given.
            x: Optional explicit parameter values, strictly increasing.

        Returns:
            A spline curve passing through all points. All three coordinates
            share one knot vector.
        """
        points = np.asarray(points, dtype=float)
        if points.ndim != 2 or points.shape[1] != 3:
            raise SplineConfigurationError(
                f"Points must have shape (n, 3), got {points.shape}"
            )
        if x is None:
            x = self.parameterize(points, parameterization)
        knots, ctrl_points = self._solve(x, points, bc)
        return SplineCurve3D(self.degree, knots, ctrl_points)

    @staticmethod
    def parameterize(points: np.ndarray, parameterization: str) -> np.ndarray:
        """Compute parameter values for a sequence of points."""
        if parameterization == "chord_length":
            chords = np.linalg.norm(np.diff(points, axis=0), axis=1)
            return np.concatenate([[0.0], np.cumsum(chords)])
        elif parameterization == "index":
            return np.arange(points.shape[0], dtype=float)
        else:
            raise ValueError(
                f"Unknown parameterization: {parameterization}. "
                f"Must be 'chord_length' or 'index'"
            )
