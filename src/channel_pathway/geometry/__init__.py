"""B-spline geometry kernel.

This subpackage provides the spline machinery behind pathway descriptions:

- basis_spline / basis_spline_derivative: Cox-de Boor evaluation of basis functions
- CubicSplineInterp1D / CubicSplineInterp3D: Hermite cubic spline interpolation
- SplineCurve1D / SplineCurve3D: scalar and spatial spline curves
"""

from .basis_spline import basis_spline, basis_spline_derivative, clamp_knot_vector
from .cubic_spline_interp import (
    AbstractCubicSplineInterp,
    BoundaryCondition,
    CubicSplineInterp1D,
    CubicSplineInterp3D,
    Endpoint,
    EndpointDerivative,
    estimate_endpoint_deriv,
)
from .spline_curve import CurvilinearCoordinate, SplineCurve1D, SplineCurve3D

__all__ = [
    "AbstractCubicSplineInterp",
    "BoundaryCondition",
    "CubicSplineInterp1D",
    "CubicSplineInterp3D",
    "CurvilinearCoordinate",
    "Endpoint",
    "EndpointDerivative",
    "SplineCurve1D",
    "SplineCurve3D",
    "basis_spline",
    "basis_spline_derivative",
    "clamp_knot_vector",
    "estimate_endpoint_deriv",
]
