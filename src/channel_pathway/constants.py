"""Constants for pathway spline construction and mapping."""

# All curves built by the interpolators are cubic.
SPLINE_DEGREE: int = 3

# Defaults for mapping particles onto a pathway.
DEFAULT_MAP_TOL: float = 1e-9
DEFAULT_EXTRAP_DIST: float = 1.0
DEFAULT_SAMPLE_STEP: float = 0.1
DEFAULT_MAX_ITER: int = 100

# Keys of the persisted pathway document.
CENTRE_LINE_KEY: str = "molPathCentreLineSpline"
RADIUS_KEY: str = "molPathRadiusSpline"
PATH_POINTS_KEY: str = "pathPoints"
PATH_RADII_KEY: str = "pathRadii"
