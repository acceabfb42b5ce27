"""Clamped cubic B-spline interpolation under Hermite boundary conditions.

For ``n`` data sites ``x_0 < ... < x_{n-1}`` the interpolating cubic has
``n + 2`` control points.  Rows ``1..n`` of the linear system require the
spline to pass through the data; rows ``0`` and ``n + 1`` fix the first
derivative at the two ends to a value estimated from the data.  With a clamped
knot vector every row has at most three non-zeros, so the system is
tridiagonal and is handed to :func:`scipy.linalg.solve_banded`.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

import numpy as np
from scipy.linalg import solve_banded

from pore_path.errors import ConfigurationError
from pore_path.geometry.basis_spline import (
    evaluate_basis,
    evaluate_basis_derivative,
    pad_knots,
)
from pore_path.geometry.spline_curve import SplineCurve1D, SplineCurve3D

DEGREE = 3


class BoundaryCondition(Enum):
    HERMITE = "hermite"
    NATURAL = "natural"


DerivEstimate = Literal["parabolic", "simple"]


def estimate_endpoint_deriv(
    x: np.ndarray,
    f: np.ndarray,
    endpoint: Literal["lo", "hi"],
    method: DerivEstimate = "parabolic",
):
    """Estimate df/dx at the lower or upper end of the data.

    ``"parabolic"`` uses the derivative of the parabola through the three
    outermost points; ``"simple"`` is the one-sided two-point difference.
    Works for scalar and vector-valued *f*.
    """
    if method == "parabolic":
        if endpoint == "lo":
            dx_lo = x[0] - x[2]
            dx_hi = x[1] - x[0]
            df_lo = (f[0] - f[2]) / dx_lo
            df_hi = (f[1] - f[0]) / dx_hi
        else:
            dx_lo = x[-1] - x[-2]
            dx_hi = x[-3] - x[-1]
            df_lo = (f[-1] - f[-2]) / dx_lo
            df_hi = (f[-3] - f[-1]) / dx_hi
        return (dx_lo * df_hi + dx_hi * df_lo) / (dx_lo + dx_hi)

    if method == "simple":
        if endpoint == "lo":
            return (f[1] - f[0]) / (x[1] - x[0])
        return (f[-1] - f[-2]) / (x[-1] - x[-2])

    raise ValueError(f"Unknown derivative estimate: {method!r}")


class CubicSplineInterp:
    """Shared system assembly for the 1D and 3D interpolators."""

    degree = DEGREE

    def __init__(self, deriv_estimate: DerivEstimate = "parabolic") -> None:
        self.deriv_estimate = deriv_estimate

    @staticmethod
    def _check_sites(x: np.ndarray) -> None:
        if x.ndim != 1:
            raise ValueError("Interpolation sites must be one-dimensional")
        if len(x) < 3:
            raise ValueError(
                f"Cubic interpolation needs at least 3 data points, got {len(x)}"
            )
        if np.any(np.diff(x) <= 0):
            raise ValueError("Interpolation sites must be strictly increasing")

    @staticmethod
    def _check_bc(bc: BoundaryCondition) -> None:
        if bc is not BoundaryCondition.HERMITE:
            raise ConfigurationError(
                f"Only Hermite boundary conditions are implemented, got {bc!r}"
            )

    def assemble_banded_matrix(self, x: np.ndarray) -> np.ndarray:
        """Return the ``(3, n + 2)`` banded storage of the system matrix.

        Row 0 of the result holds the superdiagonal, row 1 the main diagonal
        and row 2 the subdiagonal, as expected by ``solve_banded((1, 1), ...)``.
        """
        k = self.degree
        n = len(x)
        n_sys = n + 2
        ab = np.zeros((3, n_sys))

        # Hermite rows
        ab[1, 0] = evaluate_basis_derivative(x, k, 0, x[0], 1)
        ab[0, 1] = evaluate_basis_derivative(x, k, 1, x[0], 1)
        ab[1, n_sys - 1] = evaluate_basis_derivative(x, k, n_sys - 1, x[-1], 1)
        ab[2, n_sys - 2] = evaluate_basis_derivative(x, k, n_sys - 2, x[-1], 1)

        # interpolation rows: row i + 1 couples B_i, B_{i+1}, B_{i+2} at x_i
        for i in range(n):
            row = i + 1
            ab[2, row - 1] = evaluate_basis(x, k, i, x[i])
            ab[1, row] = evaluate_basis(x, k, i + 1, x[i])
            ab[0, row + 1] = evaluate_basis(x, k, i + 2, x[i])

        return ab

    def assemble_rhs(self, x: np.ndarray, f: np.ndarray) -> np.ndarray:
        rhs = np.zeros((len(x) + 2,) + f.shape[1:])
        rhs[0] = estimate_endpoint_deriv(x, f, "lo", self.deriv_estimate)
        rhs[-1] = estimate_endpoint_deriv(x, f, "hi", self.deriv_estimate)
        rhs[1:-1] = f
        return rhs

    def _solve(self, x: np.ndarray, f: np.ndarray, bc: BoundaryCondition):
        self._check_bc(bc)
        self._check_sites(x)
        if len(f) != len(x):
            raise ValueError(
                f"Got {len(x)} interpolation sites but {len(f)} values"
            )
        ab = self.assemble_banded_matrix(x)
        rhs = self.assemble_rhs(x, f)
        ctrl = solve_banded((1, 1), ab, rhs)
        return pad_knots(x, self.degree), ctrl


class CubicSplineInterp1D(CubicSplineInterp):
    """Interpolate scalar data ``f(x)`` with a clamped cubic spline."""

    def __call__(
        self,
        x,
        f,
        bc: BoundaryCondition = BoundaryCondition.HERMITE,
    ) -> SplineCurve1D:
        x = np.asarray(x, dtype=np.float64)
        f = np.asarray(f, dtype=np.float64)
        if f.ndim != 1:
            raise ValueError("CubicSplineInterp1D needs scalar values")
        knots, ctrl = self._solve(x, f, bc)
        return SplineCurve1D(self.degree, knots, ctrl)


class CubicSplineInterp3D(CubicSplineInterp):
    """Interpolate 3D points with a clamped cubic space curve.

    Called with points only, the curve is parametrized by point index.
    """

    def __call__(
        self,
        x,
        points=None,
        bc: BoundaryCondition = BoundaryCondition.HERMITE,
    ) -> SplineCurve3D:
        if points is None:
            points = np.asarray(x, dtype=np.float64)
            x = np.arange(len(points), dtype=np.float64)
        x = np.asarray(x, dtype=np.float64)
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(
                f"CubicSplineInterp3D needs points of shape (n, 3), got {points.shape}"
            )
        knots, ctrl = self._solve(x, points, bc)
        return SplineCurve3D(self.degree, knots, ctrl)
