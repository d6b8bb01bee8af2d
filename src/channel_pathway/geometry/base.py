"""Abstract base class for B-spline curves.

This module defines the evaluation machinery shared by the scalar radius
profile and the 3D centre line of a pathway.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from ..errors import SplineConfigurationError
from .basis_spline import basis_spline_derivative


class SplineCurveBase(ABC):
    """A curve defined as a linear combination of B-spline basis functions.

    The curve value at parameter s is

        c(s) = sum_i ctrl[i] * B[i,k](s)

    over a clamped knot vector, so the curve passes through its first and last
    control point. Outside the knot range the curve is continued linearly with
    the value and slope at the nearest boundary.

    Curves are immutable. Operations that change a curve return a new one.

    Args:
        degree: Polynomial degree of the basis functions.
        knots: Clamped knot vector with len(ctrl_points) + degree + 1 entries.
        ctrl_points: Control points, one row per basis function.
    """

    def __init__(self, degree: int, knots: ArrayLike, ctrl_points: ArrayLike):
        if degree < 0:
            raise SplineConfigurationError(
                f"Polynomial degree must not be negative, got {degree}"
            )
        knots = np.array(knots, dtype=float)
        ctrl_points = np.array(ctrl_points, dtype=float)
        if knots.ndim != 1 or np.any(np.diff(knots) < 0):
            raise SplineConfigurationError("Knot vector must be a non-decreasing 1D array")
        if knots.size != ctrl_points.shape[0] + degree + 1:
            raise SplineConfigurationError(
                f"Number of knots ({knots.size}) must equal number of control "
                f"points ({ctrl_points.shape[0]}) plus degree plus one ({degree + 1})"
            )
        knots.setflags(write=False)
        ctrl_points.setflags(write=False)

        self._degree = degree
        self._knots = knots
        self._ctrl_points = ctrl_points
        self._unique_knots = np.unique(knots)
        self._unique_knots.setflags(write=False)

    @property
    def degree(self) -> int:
        """Polynomial degree of the curve."""
        return self._degree

    @property
    def knots(self) -> np.ndarray:
        """Full clamped knot vector (read-only)."""
        return self._knots

    @property
    def unique_knots(self) -> np.ndarray:
        """Knot vector with repeated knots removed (read-only)."""
        return self._unique_knots

    @property
    def ctrl_points(self) -> np.ndarray:
        """Control points (read-only)."""
        return self._ctrl_points

    @property
    def n_ctrl_points(self) -> int:
        return self._ctrl_points.shape[0]

    @property
    def domain(self) -> tuple[float, float]:
        """Parameter range covered by the knot vector."""
        return float(self._knots[0]), float(self._knots[-1])

    def evaluate(self, s: ArrayLike, deriv: int = 0) -> Any:
        """Evaluate the curve or one of its derivatives.

        Args:
            s: Parameter value, or an array of parameter values.
            deriv: Derivative order, 0 for the curve itself.

        Returns:
            The value at s. For array input the values are stacked along the
            leading axes, following the shape of s.
        """
        if deriv < 0:
            raise SplineConfigurationError(
                f"Derivative order must not be negative, got {deriv}"
            )
        if np.ndim(s) == 0:
            return self._pack(self._evaluate_scalar(float(s), deriv))
        s = np.asarray(s, dtype=float)
        values = np.array([self._evaluate_scalar(x, deriv) for x in s.ravel()])
        return values.reshape(s.shape + self._ctrl_points.shape[1:])

    def __call__(self, s: ArrayLike, deriv: int = 0) -> Any:
        return self.evaluate(s, deriv)

    def _evaluate_scalar(self, s: float, deriv: int) -> np.ndarray:
        lo, hi = self.domain
        if s < lo:
            return self._extrapolate(lo, s - lo, deriv)
        if s > hi:
            return self._extrapolate(hi, s - hi, deriv)
        return self._evaluate_internal(s, deriv)

    def _extrapolate(self, boundary: float, delta: float, deriv: int) -> np.ndarray:
        """Continue the curve linearly beyond a boundary of the knot range."""
        slope = self._evaluate_internal(boundary, 1)
        if deriv == 0:
            return self._evaluate_internal(boundary, 0) + slope * delta
        if deriv == 1:
            return slope
        return np.zeros_like(slope)

    def _evaluate_internal(self, s: float, deriv: int) -> np.ndarray:
        # only degree + 1 basis functions are non-zero on any knot interval
        span = self._find_span(s)
        first = max(span - self._degree, 0)
        last = min(span, self.n_ctrl_points - 1)
        value = np.zeros(self._ctrl_points.shape[1:])
        for i in range(first, last + 1):
            value = value + self._ctrl_points[i] * basis_spline_derivative(
                self._knots, self._degree, i, s, deriv
            )
        return value

    def _find_span(self, s: float) -> int:
        """Index of the knot interval containing s."""
        if s >= self._knots[-1]:
            return int(np.nonzero(np.diff(self._knots) > 0.0)[0][-1])
        return int(np.searchsorted(self._knots, s, side="right")) - 1

    @abstractmethod
    def _pack(self, value: np.ndarray) -> Any:
        """Convert a single evaluated value into the public return type."""
        ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize the curve into a JSON compatible dictionary."""
        ...
