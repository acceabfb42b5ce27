"""B-spline basis functions via the Cox–de Boor recursion.

Both entry points take the *unpadded* knot vector and pad it internally with
``degree`` copies of the first and last knot.  Over ``L`` unpadded knots this
yields ``L + degree - 1`` basis functions, which is exactly the number of
control points of a clamped spline interpolating ``L`` data sites.

The functions keep no state between calls and may be used concurrently.
"""

from __future__ import annotations

import numpy as np

_EPS = np.finfo(np.float64).eps


def pad_knots(knots, degree: int) -> np.ndarray:
    """Return *knots* with ``degree`` extra copies of its first and last entry."""
    t = np.asarray(knots, dtype=np.float64)
    return np.concatenate([np.full(degree, t[0]), t, np.full(degree, t[-1])])


def _check_degree(degree: int) -> None:
    if degree < 0:
        raise ValueError(f"Polynomial degree must not be negative, got {degree}")


def _ratio(num: float, den: float) -> float:
    # 0/0 := 0
    if den <= _EPS:
        return 0.0
    return num / den


def _cox_de_boor(t: np.ndarray, k: int, i: int, x: float) -> float:
    if k == 0:
        if t[i] <= x < t[i + 1]:
            return 1.0
        return 0.0
    first = _ratio(x - t[i], t[i + k] - t[i])
    second = _ratio(t[i + k + 1] - x, t[i + k + 1] - t[i + 1])
    return first * _cox_de_boor(t, k - 1, i, x) + second * _cox_de_boor(t, k - 1, i + 1, x)


def _closed_upper(t: np.ndarray, k: int, i: int, x: float) -> float:
    """Cox–de Boor value with the last non-empty knot interval closed on the right."""
    if k == 0:
        if t[i] <= x < t[i + 1]:
            return 1.0
        if x == t[-1] and t[i] < t[i + 1] == t[-1]:
            return 1.0
        return 0.0
    first = _ratio(x - t[i], t[i + k] - t[i])
    second = _ratio(t[i + k + 1] - x, t[i + k + 1] - t[i + 1])
    return (first * _closed_upper(t, k - 1, i, x)
            + second * _closed_upper(t, k - 1, i + 1, x))


def _derivative(t: np.ndarray, k: int, i: int, x: float, order: int) -> float:
    if order == 0:
        return _closed_upper(t, k, i, x)
    if k == 0:
        return 0.0
    left = _ratio(_derivative(t, k - 1, i, x, order - 1), t[i + k] - t[i])
    right = _ratio(_derivative(t, k - 1, i + 1, x, order - 1), t[i + k + 1] - t[i + 1])
    return k * (left - right)


def num_basis_functions(knots, degree: int) -> int:
    """Number of basis functions of *degree* over the unpadded *knots*."""
    return len(knots) + degree - 1


def evaluate_basis(knots, degree: int, interval: int, x: float) -> float:
    """Value of the ``interval``-th basis function of *degree* at *x*.

    Parameters
    ----------
    knots:
        Non-decreasing, unpadded knot vector.
    degree:
        Polynomial degree, must be >= 0.
    interval:
        Index of the basis function, ``0 <= interval < len(knots) + degree - 1``.
    x:
        Evaluation point.
    """
    _check_degree(degree)
    t = pad_knots(knots, degree)
    x = float(x)

    # on the closed upper boundary only the last basis function is non-zero
    if x == t[-1]:
        return 1.0 if interval == len(t) - degree - 2 else 0.0

    return _cox_de_boor(t, degree, interval, x)


def evaluate_basis_derivative(
    knots,
    degree: int,
    interval: int,
    x: float,
    deriv_order: int = 1,
) -> float:
    """``deriv_order``-th derivative of the ``interval``-th basis function at *x*.

    Uses the recurrence

        d/dx B_{i,k} = k * (B_{i,k-1} / (t_{i+k} - t_i)
                            - B_{i+1,k-1} / (t_{i+k+1} - t_{i+1}))

    applied ``deriv_order`` times.  At the upper end of the knot vector the
    left-hand limit is returned, so boundary derivatives are well defined.
    """
    _check_degree(degree)
    if deriv_order < 0:
        raise ValueError(f"Derivative order must not be negative, got {deriv_order}")
    if deriv_order == 0:
        return evaluate_basis(knots, degree, interval, x)
    t = pad_knots(knots, degree)
    return _derivative(t, degree, interval, float(x), deriv_order)
