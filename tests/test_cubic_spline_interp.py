"""Tests for cubic spline interpolation with Hermite boundary conditions."""

import numpy as np
import pytest

from channel_pathway import (
    BoundaryCondition,
    CubicSplineInterp1D,
    CubicSplineInterp3D,
    SplineConfigurationError,
    SplineCurve1D,
    SplineCurve3D,
    SplineInterpolationError,
    UnsupportedBoundaryConditionError,
)
from channel_pathway.geometry import Endpoint, EndpointDerivative, estimate_endpoint_deriv


def create_test_helix(n_points: int) -> np.ndarray:
    """Create points along a helix around the z axis, shape (n_points, 3)."""
    t = np.linspace(0, 2 * np.pi, n_points)
    return np.column_stack([np.cos(t), np.sin(t), 0.5 * t])


class TestEstimateEndpointDeriv:
    """Test endpoint derivative estimators."""

    def test_parabolic_exact_for_parabola(self):
        """Test that the parabolic estimate is exact for quadratic data."""
        x = np.array([0.0, 0.4, 1.5, 2.0, 3.2])
        f = 2.0 * x**2 - x + 1.0
        lo = estimate_endpoint_deriv(x, f, Endpoint.LO)
        hi = estimate_endpoint_deriv(x, f, Endpoint.HI)
        assert lo == pytest.approx(4.0 * x[0] - 1.0)
        assert hi == pytest.approx(4.0 * x[-1] - 1.0)

    def test_finite_difference(self):
        """Test that the finite difference estimate uses the two nearest points."""
        x = np.array([0.0, 1.0, 3.0])
        f = np.array([1.0, 3.0, 4.0])
        lo = estimate_endpoint_deriv(x, f, Endpoint.LO, EndpointDerivative.FINITE_DIFFERENCE)
        hi = estimate_endpoint_deriv(x, f, Endpoint.HI, EndpointDerivative.FINITE_DIFFERENCE)
        assert lo == pytest.approx(2.0)
        assert hi == pytest.approx(0.5)

    def test_vector_data(self):
        """Test that the estimate works column-wise on 3D data."""
        x = np.array([0.0, 1.0, 2.0])
        f = np.column_stack([x, 2 * x, -x])
        np.testing.assert_allclose(
            estimate_endpoint_deriv(x, f, Endpoint.LO), [1.0, 2.0, -1.0]
        )


class TestCubicSplineInterp1D:
    """Test scalar interpolation."""

    def test_returns_curve(self):
        """Test that interpolation returns a cubic SplineCurve1D."""
        curve = CubicSplineInterp1D().interpolate([0.0, 1.0, 2.0, 3.0], [1.0, 2.0, 0.0, 1.0])
        assert isinstance(curve, SplineCurve1D)
        assert curve.degree == 3

    def test_knot_vector_layout(self):
        """Test that knots are the data abscissae padded by degree copies."""
        x = np.array([0.0, 0.5, 2.0, 3.0])
        curve = CubicSplineInterp1D().interpolate(x, np.sin(x))
        np.testing.assert_array_equal(
            curve.knots, [0, 0, 0, 0, 0.5, 2, 3, 3, 3, 3]
        )
        assert curve.ctrl_points.shape == (x.size + 2,)

    def test_reproduces_data(self):
        """Test that the spline passes through every data point."""
        rng = np.random.default_rng(42)
        x = np.cumsum(rng.uniform(0.2, 1.5, size=12))
        f = rng.normal(size=12)
        curve = CubicSplineInterp1D().interpolate(x, f)
        for xi, fi in zip(x, f, strict=True):
            assert curve(xi) == pytest.approx(fi, rel=1e-9, abs=1e-12)

    def test_reproduces_cubic(self):
        """Test that a cubic polynomial is reproduced between the data points."""
        x = np.linspace(-1.0, 2.0, 9)
        f = x**3 - 2 * x
        curve = CubicSplineInterp1D().interpolate(x, f)
        # boundary slopes are only estimated, so compare away from the ends
        for xi in np.linspace(0.0, 1.0, 7):
            assert curve(xi) == pytest.approx(xi**3 - 2 * xi, abs=0.02)

    def test_reproduces_line_exactly(self):
        """Test that linear data gives a straight line and constant slope."""
        x = np.array([0.0, 1.0, 2.5, 4.0])
        curve = CubicSplineInterp1D().interpolate(x, 3.0 * x + 1.0)
        for xi in np.linspace(0.0, 4.0, 13):
            assert curve(xi) == pytest.approx(3.0 * xi + 1.0, abs=1e-10)
            assert curve(xi, 1) == pytest.approx(3.0, abs=1e-10)

    def test_boundary_slope_matches_estimate(self):
        """Test that the Hermite rows fix the boundary derivative."""
        x = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
        f = np.array([0.0, 1.0, 4.0, 9.0, 16.0])
        curve = CubicSplineInterp1D().interpolate(x, f)
        assert curve(0.0, 1) == pytest.approx(0.0, abs=1e-10)
        assert curve(4.0, 1) == pytest.approx(8.0, abs=1e-10)

    def test_call_operator(self):
        """Test that calling the interpolator is the same as interpolate."""
        x = [0.0, 1.0, 2.0]
        curve = CubicSplineInterp1D()(x, [1.0, 1.0, 1.0])
        assert curve(0.5) == pytest.approx(1.0)

    def test_natural_bc_unsupported(self):
        """Test that only Hermite boundary conditions are accepted."""
        with pytest.raises(UnsupportedBoundaryConditionError) as excinfo:
            CubicSplineInterp1D().interpolate(
                [0.0, 1.0, 2.0], [0.0, 1.0, 0.0], BoundaryCondition.NATURAL
            )
        assert excinfo.value.boundary_condition == BoundaryCondition.NATURAL

    def test_too_few_points(self):
        """Test that fewer than three data points are rejected."""
        with pytest.raises(SplineConfigurationError, match="At least 3"):
            CubicSplineInterp1D().interpolate([0.0, 1.0], [0.0, 1.0])

    def test_mismatched_lengths(self):
        """Test that data and parameter values must have the same length."""
        with pytest.raises(SplineConfigurationError, match="must match"):
            CubicSplineInterp1D().interpolate([0.0, 1.0, 2.0], [0.0, 1.0])

    def test_non_increasing_parameter(self):
        """Test that repeated parameter values are rejected."""
        with pytest.raises(SplineConfigurationError, match="strictly increasing"):
            CubicSplineInterp1D().interpolate([0.0, 2.0, 2.0, 3.0], [0.0, 1.0, 2.0, 3.0])

    def test_non_finite_data_fails_to_solve(self):
        """Test that NaN data raises an interpolation error instead of a curve."""
        with pytest.raises(SplineInterpolationError):
            CubicSplineInterp1D().interpolate([0.0, 1.0, 2.0, 3.0], [0.0, np.nan, 1.0, 2.0])

    def test_interpolation_error_is_not_configuration_error(self):
        """Test that a failed solve is reported separately from bad arguments."""
        points = create_test_helix(6)
        points[3, 1] = np.inf
        with pytest.raises(SplineInterpolationError) as excinfo:
            CubicSplineInterp3D().interpolate(points, parameterization="index")
        assert not isinstance(excinfo.value, SplineConfigurationError)


class TestCubicSplineInterp3D:
    """Test 3D point interpolation."""

    def test_returns_curve(self):
        """Test that interpolation returns a SplineCurve3D with n + 2 controls."""
        curve = CubicSplineInterp3D().interpolate(create_test_helix(10))
        assert isinstance(curve, SplineCurve3D)
        assert curve.ctrl_points.shape == (12, 3)
        assert not curve.is_arc_length

    def test_reproduces_points_chord_length(self):
        """Test that the curve passes through the points at their chord lengths."""
        points = create_test_helix(15)
        curve = CubicSplineInterp3D().interpolate(points)
        x = CubicSplineInterp3D.parameterize(points, "chord_length")
        for xi, point in zip(x, points, strict=True):
            np.testing.assert_allclose(curve(xi), point, rtol=1e-9, atol=1e-12)

    def test_reproduces_points_index(self):
        """Test that index parameterization puts point i at parameter i."""
        points = create_test_helix(8)
        curve = CubicSplineInterp3D().interpolate(points, parameterization="index")
        np.testing.assert_array_equal(curve.unique_knots, np.arange(8.0))
        for i, point in enumerate(points):
            np.testing.assert_allclose(curve(float(i)), point, atol=1e-10)

    def test_explicit_parameter(self):
        """Test that explicit parameter values become the unique knots."""
        points = create_test_helix(6)
        x = np.array([0.0, 0.1, 0.5, 0.7, 1.5, 2.0])
        curve = CubicSplineInterp3D().interpolate(points, x=x)
        np.testing.assert_array_equal(curve.unique_knots, x)

    def test_unknown_parameterization(self):
        """Test that an unknown parameterization raises ValueError."""
        with pytest.raises(ValueError, match="Unknown parameterization"):
            CubicSplineInterp3D().interpolate(create_test_helix(5), parameterization="foo")

    def test_bad_shape(self):
        """Test that points must have three coordinates."""
        with pytest.raises(SplineConfigurationError, match="shape"):
            CubicSplineInterp3D().interpolate(np.zeros((5, 2)))

    def test_coincident_points_rejected(self):
        """Test that repeated points give a non-increasing chord length."""
        points = np.array([[0, 0, 0], [1, 0, 0], [1, 0, 0], [2, 0, 0]], dtype=float)
        with pytest.raises(SplineConfigurationError):
            CubicSplineInterp3D().interpolate(points)
