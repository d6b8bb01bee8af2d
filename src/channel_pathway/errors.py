"""Exceptions raised by the spline kernel and pathway construction."""

from __future__ import annotations

from typing import Any


class SplineError(Exception):
    """Base class for all errors raised by this package."""


class SplineConfigurationError(SplineError, ValueError):
    """Invalid arguments passed to an evaluator or interpolator.

    Raised for negative degrees or derivative orders, mismatched input lengths
    and too few data points. These indicate a mistake by the caller.
    """


class UnsupportedBoundaryConditionError(SplineConfigurationError):
    """An interpolator was asked for a boundary condition it does not implement.

    Args:
        boundary_condition: The requested boundary condition.
    """

    def __init__(self, boundary_condition: Any):
        self.boundary_condition = boundary_condition
        super().__init__(
            f"Boundary condition {boundary_condition!r} is not implemented, "
            f"only Hermite boundary conditions are supported"
        )


class SplineInterpolationError(SplineError):
    """The interpolation system could not be solved."""


class ArcLengthParameterizationError(SplineError):
    """A curve that is already parameterized by arc length was reparameterized."""
