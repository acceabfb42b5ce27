"""
Tests for cubic spline interpolation with Hermite end conditions.
"""

import pytest
import numpy as np

from pore_path.errors import ConfigurationError
from pore_path.geometry.spline_interp import (
    BoundaryCondition,
    CubicSplineInterp1D,
    CubicSplineInterp3D,
    estimate_endpoint_deriv,
)

SITES = np.array([0.0, 0.5, 1.3, 2.0, 3.1, 3.5])


class TestEndpointDerivative:
    """Endpoint slope estimates."""

    def test_parabolic_exact_for_quadratics(self):
        """The three-point estimate is exact for a parabola."""
        f = SITES ** 2
        assert estimate_endpoint_deriv(SITES, f, "lo") == pytest.approx(0.0)
        assert estimate_endpoint_deriv(SITES, f, "hi") == pytest.approx(7.0)

    def test_simple_difference(self):
        f = 2.0 * SITES + 1.0
        assert estimate_endpoint_deriv(SITES, f, "lo", "simple") == pytest.approx(2.0)
        assert estimate_endpoint_deriv(SITES, f, "hi", "simple") == pytest.approx(2.0)

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            estimate_endpoint_deriv(SITES, SITES, "lo", "cubic")


class TestInterpolation1D:
    """Scalar interpolation."""

    def test_reproduces_data(self):
        """The curve passes through every data point."""
        f = np.sin(SITES)
        curve = CubicSplineInterp1D()(SITES, f)
        np.testing.assert_allclose(curve.evaluate_many(SITES), f, atol=1e-10)

    def test_control_point_count(self):
        """n data points give n + 2 control points."""
        curve = CubicSplineInterp1D()(SITES, np.cos(SITES))
        assert len(curve.ctrl_points) == len(SITES) + 2
        assert curve.degree == 3

    def test_quadratic_reproduced_everywhere(self):
        """A parabola lies in the spline space and is reproduced exactly."""
        curve = CubicSplineInterp1D()(SITES, SITES ** 2)
        for x in [0.2, 0.9, 1.7, 2.6, 3.3]:
            assert curve(x) == pytest.approx(x ** 2, abs=1e-10)

    def test_hermite_end_slopes(self):
        """End slopes equal the parabolic estimates."""
        f = np.exp(SITES / 3.0)
        curve = CubicSplineInterp1D()(SITES, f)
        assert curve(SITES[0], deriv=1) == pytest.approx(
            estimate_endpoint_deriv(SITES, f, "lo"), rel=1e-9
        )
        assert curve(SITES[-1], deriv=1) == pytest.approx(
            estimate_endpoint_deriv(SITES, f, "hi"), rel=1e-9
        )

    def test_unsupported_boundary_condition(self):
        with pytest.raises(ConfigurationError, match="Hermite"):
            CubicSplineInterp1D()(SITES, SITES, bc=BoundaryCondition.NATURAL)

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            CubicSplineInterp1D()([0.0, 1.0], [0.0, 1.0])

    def test_sites_must_increase(self):
        with pytest.raises(ValueError):
            CubicSplineInterp1D()([0.0, 2.0, 1.0, 3.0], [0.0, 1.0, 2.0, 3.0])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            CubicSplineInterp1D()(SITES, SITES[:-1])


class TestInterpolation3D:
    """Space curve interpolation."""

    def test_reproduces_points(self):
        """The curve passes through every point at its parameter value."""
        points = np.column_stack([np.cos(SITES), np.sin(SITES), 0.3 * SITES])
        curve = CubicSplineInterp3D()(SITES, points)
        np.testing.assert_allclose(curve.evaluate_many(SITES), points, atol=1e-10)

    def test_index_parametrization(self):
        """Without sites the curve is parametrized by point index."""
        points = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [1, 1, 1]], dtype=float)
        curve = CubicSplineInterp3D()(points)
        assert curve.domain == (0.0, 3.0)
        for i, p in enumerate(points):
            np.testing.assert_allclose(curve(float(i)), p, atol=1e-10)

    def test_bad_shape_raises(self):
        with pytest.raises(ValueError):
            CubicSplineInterp3D()(SITES, np.zeros((len(SITES), 2)))
