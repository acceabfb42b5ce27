"""
Tests for spline curve evaluation, arc length and curvilinear mapping.
"""

import json
import math

import pytest
import numpy as np

from pore_path.errors import ConvergenceError
from pore_path.geometry.spline_curve import SplineCurve1D, SplineCurve3D
from pore_path.geometry.spline_interp import CubicSplineInterp1D, CubicSplineInterp3D


def straight_line(n=6, spacing=0.5):
    points = np.column_stack([np.zeros(n), np.zeros(n), spacing * np.arange(n)])
    return CubicSplineInterp3D()(points)


def helix(n=40, turns=1.0, radius=1.0, pitch=0.5):
    t = np.linspace(0.0, 2.0 * np.pi * turns, n)
    points = np.column_stack([radius * np.cos(t), radius * np.sin(t), pitch * t])
    length = 2.0 * np.pi * turns * math.sqrt(radius ** 2 + pitch ** 2)
    return CubicSplineInterp3D()(points), length


class TestConstruction:
    """Consistency checks on knots and control points."""

    def test_inconsistent_sizes_raise(self):
        with pytest.raises(ValueError):
            SplineCurve1D(3, [0, 0, 0, 0, 1, 1, 1, 1], [0.0, 1.0, 2.0])

    def test_negative_degree_raises(self):
        with pytest.raises(ValueError):
            SplineCurve1D(-1, [0.0, 1.0], [0.0, 1.0, 2.0])

    def test_3d_needs_vector_ctrl_points(self):
        with pytest.raises(ValueError):
            SplineCurve3D(1, [0.0, 0.0, 1.0, 1.0], [0.0, 1.0])

    def test_linear_spline(self):
        """A degree-1 spline interpolates its control points linearly."""
        curve = SplineCurve1D(1, [0.0, 0.0, 1.0, 2.0, 2.0], [0.0, 2.0, 1.0])
        assert curve(0.5) == pytest.approx(1.0)
        assert curve(1.5) == pytest.approx(1.5)
        assert curve(2.0) == pytest.approx(1.0)


class TestEvaluation:
    """Values, derivatives and extrapolation."""

    def test_linear_extrapolation(self):
        """Outside its domain the curve continues along the end tangent."""
        curve = straight_line()
        np.testing.assert_allclose(curve(-1.0), [0.0, 0.0, -0.5], atol=1e-12)
        np.testing.assert_allclose(curve(7.0), [0.0, 0.0, 3.5], atol=1e-12)
        np.testing.assert_allclose(curve(7.0, deriv=1), [0.0, 0.0, 0.5], atol=1e-12)
        np.testing.assert_allclose(curve(7.0, deriv=2), np.zeros(3))

    def test_derivative_above_degree_is_zero(self):
        curve = straight_line()
        np.testing.assert_allclose(curve(1.3, deriv=4), np.zeros(3))

    def test_negative_derivative_raises(self):
        with pytest.raises(ValueError):
            straight_line()(1.0, deriv=-1)

    def test_tangent_is_unit(self):
        curve, _ = helix()
        for s in np.linspace(0.0, 39.0, 7):
            assert np.linalg.norm(curve.tangent(s)) == pytest.approx(1.0)

    def test_second_derivative_matches_finite_difference(self):
        curve, _ = helix()
        s, eps = 12.3, 1e-5
        fd = (curve(s + eps, deriv=1) - curve(s - eps, deriv=1)) / (2 * eps)
        np.testing.assert_allclose(curve(s, deriv=2), fd, atol=1e-5)


class TestArcLength:
    """Arc length and reparametrisation."""

    def test_straight_line_length(self):
        curve = straight_line(n=6, spacing=0.5)
        assert curve.arc_length() == pytest.approx(2.5, rel=1e-10)
        assert curve.arc_length(1.0, 3.0) == pytest.approx(1.0, rel=1e-10)
        assert curve.arc_length(3.0, 1.0) == pytest.approx(-1.0, rel=1e-10)

    def test_ctrl_point_arc_length_is_cumulative(self):
        curve = straight_line(n=6, spacing=0.5)
        np.testing.assert_allclose(
            curve.ctrl_point_arc_length(), 0.5 * np.arange(6), atol=1e-10
        )

    def test_reparametrization_preserves_length(self):
        """Helix length survives reparametrisation within one percent."""
        curve, expected = helix()
        curve.reparametrize_by_arc_length()
        lo, hi = curve.domain
        assert curve.is_arc_length_parametrized
        assert hi - lo == pytest.approx(expected, rel=0.01)
        assert curve.arc_length() == pytest.approx(expected, rel=0.01)

    def test_reparametrized_speed_is_unit(self):
        curve, _ = helix()
        curve.reparametrize_by_arc_length()
        lo, hi = curve.domain
        for s in np.linspace(lo, hi, 11):
            assert np.linalg.norm(curve(s, deriv=1)) == pytest.approx(1.0, abs=0.02)

    def test_reparametrize_twice_raises(self):
        curve = straight_line()
        curve.reparametrize_by_arc_length()
        with pytest.raises(RuntimeError):
            curve.reparametrize_by_arc_length()


class TestCurvilinearMapping:
    """Cartesian to (s, rho, phi)."""

    def test_points_on_curve_round_trip(self):
        """Points sampled on the curve map back to their arc length."""
        curve, _ = helix()
        curve.reparametrize_by_arc_length()
        knots = curve.unique_knots
        for s in np.linspace(knots[2], knots[-3], 9):
            near = int(np.argmin(np.abs(knots - s)))
            mapped = curve.cartesian_to_curvilinear(curve(s), near, 1e-10)
            assert mapped[0] == pytest.approx(s, abs=1e-6)
            assert mapped[1] == pytest.approx(0.0, abs=1e-6)

    def test_offset_point(self):
        """A point beside a straight line maps to its axial position and distance."""
        curve = straight_line()
        curve.reparametrize_by_arc_length()
        s, rho, phi = curve.cartesian_to_curvilinear([0.3, 0.0, 1.2], 2, 1e-10)
        assert s == pytest.approx(1.2, abs=1e-8)
        assert rho == pytest.approx(0.3, abs=1e-8)
        assert phi == pytest.approx(0.0, abs=1e-8)

        _, _, phi_y = curve.cartesian_to_curvilinear([0.0, 0.3, 1.2], 2, 1e-10)
        assert abs(phi_y) == pytest.approx(math.pi / 2, abs=1e-8)

    def test_non_convergence_raises(self):
        curve, _ = helix()
        with pytest.raises(ConvergenceError):
            curve.cartesian_to_curvilinear([0.3, 0.2, 5.0], 0, 1e-14, max_iter=1)


class TestSerialisation:
    """Dict round trips."""

    def test_round_trip_through_json(self):
        curve, _ = helix(n=10)
        curve.reparametrize_by_arc_length()
        data = json.loads(json.dumps(curve.to_dict()))
        restored = SplineCurve3D.from_dict(data)
        assert restored.is_arc_length_parametrized
        for s in [0.0, 1.7, 4.2]:
            np.testing.assert_allclose(restored(s), curve(s))

    def test_1d_round_trip(self):
        curve = CubicSplineInterp1D()([0.0, 1.0, 2.0, 3.0], [1.0, 0.5, 0.7, 1.2])
        restored = SplineCurve1D.from_dict(curve.to_dict())
        assert restored(1.5) == pytest.approx(curve(1.5))

    def test_shift(self):
        curve = straight_line()
        curve.shift([1.0, 2.0, 3.0])
        np.testing.assert_allclose(curve(0.0), [1.0, 2.0, 3.0], atol=1e-12)
