"""Spline descriptions of molecular pathways such as ion channel pores.

This package turns the ordered centre line points and radii produced by a
path finder into smooth cubic spline curves, parameterized by arc length, and
answers geometric queries against them: sampling points, tangents, normals and
radii, mapping positions onto curvilinear coordinates (s, rho, phi), and
deciding whether positions lie inside the pathway.

Example usage:

    from channel_pathway import MolecularPath
    import numpy as np

    points = np.column_stack([np.zeros(5), np.zeros(5), np.arange(5.0)])
    radii = np.array([1.0, 0.8, 0.5, 0.8, 1.0])
    path = MolecularPath(points, radii)

    mapped = path.map_selection(np.array([[0.2, 0.0, 2.0]]))
    inside = path.check_if_inside(mapped)
    s, r_min = path.min_radius()
"""

from .constants import SPLINE_DEGREE
from .errors import (
    ArcLengthParameterizationError,
    SplineConfigurationError,
    SplineError,
    SplineInterpolationError,
    UnsupportedBoundaryConditionError,
)
from .geometry import (
    BoundaryCondition,
    CubicSplineInterp1D,
    CubicSplineInterp3D,
    CurvilinearCoordinate,
    SplineCurve1D,
    SplineCurve3D,
    basis_spline,
    basis_spline_derivative,
)
from .path_finding import (
    CentreLineSearch,
    MolecularPath,
    PathMappingParameters,
    read_path_csv,
    read_path_frames,
    sample_profile,
)

__all__ = [
    # Constants
    "SPLINE_DEGREE",
    # Errors
    "ArcLengthParameterizationError",
    "SplineConfigurationError",
    "SplineError",
    "SplineInterpolationError",
    "UnsupportedBoundaryConditionError",
    # Geometry kernel
    "BoundaryCondition",
    "CubicSplineInterp1D",
    "CubicSplineInterp3D",
    "CurvilinearCoordinate",
    "SplineCurve1D",
    "SplineCurve3D",
    "basis_spline",
    "basis_spline_derivative",
    # Pathway
    "CentreLineSearch",
    "MolecularPath",
    "PathMappingParameters",
    "read_path_csv",
    "read_path_frames",
    "sample_profile",
]
