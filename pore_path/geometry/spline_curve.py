"""Clamped B-spline curves in one and three dimensions.

A curve is stored as ``(degree, knots, ctrl_points)`` where *knots* is the full
(clamped) knot vector and ``len(ctrl_points) == len(knots) - degree - 1``.
Evaluation uses de Boor's algorithm; derivatives are evaluated on the
derivative curve, whose control points are differences of the original ones.
Outside the knot range the curve continues as a straight line.
"""

from __future__ import annotations

import math

import numpy as np

from pore_path.errors import ConvergenceError

_EPS = np.finfo(np.float64).eps

# Gauss–Legendre rule used per knot interval for arc length integrals
_GL_NODES, _GL_WEIGHTS = np.polynomial.legendre.leggauss(8)


def _de_boor(t: np.ndarray, c: np.ndarray, p: int, s: float) -> np.ndarray:
    """Evaluate a B-spline of degree *p* at *s* (inside the knot range)."""
    m = len(c)
    k = int(np.searchsorted(t, s, side="right")) - 1
    k = min(max(k, p), m - 1)

    d = np.array(c[k - p:k + 1], dtype=np.float64)
    for r in range(1, p + 1):
        for j in range(p, r - 1, -1):
            left = t[j + k - p]
            den = t[j + 1 + k - r] - left
            alpha = 0.0 if den <= _EPS else (s - left) / den
            d[j] = (1.0 - alpha) * d[j - 1] + alpha * d[j]
    return d[p]


class SplineCurve:
    """Shared machinery for :class:`SplineCurve1D` and :class:`SplineCurve3D`."""

    dim: int = 1

    def __init__(self, degree: int, knots, ctrl_points) -> None:
        knots = np.asarray(knots, dtype=np.float64)
        ctrl_points = np.asarray(ctrl_points, dtype=np.float64)
        if degree < 0:
            raise ValueError(f"Polynomial degree must not be negative, got {degree}")
        if len(ctrl_points) != len(knots) - degree - 1:
            raise ValueError(
                f"Inconsistent spline: {len(ctrl_points)} control points for "
                f"{len(knots)} knots of degree {degree}"
            )
        if np.any(np.diff(knots) < 0):
            raise ValueError("Knot vector must be non-decreasing")
        self._degree = degree
        self._knots = knots
        self._ctrl = ctrl_points
        self._deriv_cache: dict[int, tuple[np.ndarray, np.ndarray, int]] = {}

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def knots(self) -> np.ndarray:
        return self._knots.copy()

    @property
    def unique_knots(self) -> np.ndarray:
        return np.unique(self._knots)

    @property
    def ctrl_points(self) -> np.ndarray:
        return self._ctrl.copy()

    @property
    def domain(self) -> tuple[float, float]:
        return float(self._knots[0]), float(self._knots[-1])

    # ------------------------------------------------------------------
    # evaluation
    # ------------------------------------------------------------------

    def _zero(self):
        return 0.0 if self._ctrl.ndim == 1 else np.zeros(self._ctrl.shape[1])

    def _derivative_data(self, order: int) -> tuple[np.ndarray, np.ndarray, int]:
        cached = self._deriv_cache.get(order)
        if cached is not None:
            return cached

        t, c, p = self._knots, self._ctrl, self._degree
        for _ in range(order):
            if p == 0:
                break
            m = len(c)
            den = t[p + 1:p + m] - t[1:m]
            safe = np.where(den > _EPS, den, 1.0)
            scale = np.where(den > _EPS, p / safe, 0.0)
            if c.ndim > 1:
                scale = scale[:, None]
            c = scale * (c[1:] - c[:-1])
            t = t[1:-1]
            p -= 1
        else:
            self._deriv_cache[order] = (t, c, p)
            return t, c, p

        # derivative order exceeds degree
        result = (t, np.zeros_like(c[:1]), -1)
        self._deriv_cache[order] = result
        return result

    def _evaluate_inside(self, s: float, deriv: int):
        t, c, p = self._derivative_data(deriv)
        if p < 0:
            return self._zero()
        return _de_boor(t, c, p, s)

    def evaluate(self, s: float, deriv: int = 0):
        """Value (``deriv=0``) or ``deriv``-th derivative of the curve at *s*."""
        if deriv < 0:
            raise ValueError(f"Derivative order must not be negative, got {deriv}")
        s = float(s)
        lo, hi = self.domain
        if lo <= s <= hi:
            return self._evaluate_inside(s, deriv)

        end = lo if s < lo else hi
        if deriv == 0:
            return (self._evaluate_inside(end, 0)
                    + (s - end) * self._evaluate_inside(end, 1))
        if deriv == 1:
            return self._evaluate_inside(end, 1)
        return self._zero()

    def __call__(self, s: float, deriv: int = 0):
        return self.evaluate(s, deriv)

    def evaluate_many(self, s_values, deriv: int = 0) -> np.ndarray:
        return np.array([self.evaluate(s, deriv) for s in np.asarray(s_values, dtype=np.float64)])

    def _replace(self, knots: np.ndarray, ctrl_points: np.ndarray) -> None:
        self._knots = np.asarray(knots, dtype=np.float64)
        self._ctrl = np.asarray(ctrl_points, dtype=np.float64)
        self._deriv_cache.clear()

    def to_dict(self) -> dict:
        return {
            "degree": self._degree,
            "knots": self._knots.tolist(),
            "ctrl_points": self._ctrl.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(int(data["degree"]), data["knots"], data["ctrl_points"])


class SplineCurve1D(SplineCurve):
    """Scalar-valued spline, e.g. the pore radius as a function of arc length."""

    dim = 1

    def __init__(self, degree: int, knots, ctrl_points) -> None:
        super().__init__(degree, knots, ctrl_points)
        if self._ctrl.ndim != 1:
            raise ValueError("SplineCurve1D needs scalar control points")


class SplineCurve3D(SplineCurve):
    """Space curve, e.g. the centre line of a pore."""

    dim = 3

    def __init__(self, degree: int, knots, ctrl_points) -> None:
        super().__init__(degree, knots, ctrl_points)
        if self._ctrl.ndim != 2 or self._ctrl.shape[1] != 3:
            raise ValueError("SplineCurve3D needs control points of shape (n, 3)")
        self._reparametrized = False

    @property
    def is_arc_length_parametrized(self) -> bool:
        return self._reparametrized

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["arc_length_parametrized"] = self._reparametrized
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SplineCurve3D":
        curve = super().from_dict(data)
        curve._reparametrized = bool(data.get("arc_length_parametrized", False))
        return curve

    def tangent(self, s: float) -> np.ndarray:
        """Unit tangent vector at *s*."""
        d = self.evaluate(s, 1)
        norm = np.linalg.norm(d)
        if norm <= _EPS:
            return d
        return d / norm

    def _speed(self, s: float) -> float:
        return float(np.linalg.norm(self.evaluate(s, 1)))

    def _interval_length(self, a: float, b: float) -> float:
        half = 0.5 * (b - a)
        mid = 0.5 * (b + a)
        return half * sum(
            w * self._speed(mid + half * x) for x, w in zip(_GL_NODES, _GL_WEIGHTS)
        )

    def arc_length(self, lo: float | None = None, hi: float | None = None) -> float:
        """Length of the curve between parameters *lo* and *hi*.

        Defaults to the full knot range.  Integration is done interval by
        interval so that the integrand is smooth on every piece.
        """
        d_lo, d_hi = self.domain
        lo = d_lo if lo is None else float(lo)
        hi = d_hi if hi is None else float(hi)
        sign = 1.0
        if hi < lo:
            lo, hi, sign = hi, lo, -1.0

        breaks = self.unique_knots
        breaks = breaks[(breaks > lo) & (breaks < hi)]
        edges = np.concatenate([[lo], breaks, [hi]])
        total = sum(self._interval_length(a, b) for a, b in zip(edges[:-1], edges[1:]))
        return sign * total

    def ctrl_point_arc_length(self) -> np.ndarray:
        """Cumulative arc length at every unique knot, starting at zero."""
        u = self.unique_knots
        pieces = [self._interval_length(a, b) for a, b in zip(u[:-1], u[1:])]
        return np.concatenate([[0.0], np.cumsum(pieces)])

    def reparametrize_by_arc_length(self) -> None:
        """Refit the curve so that its parameter is arc length.

        The curve is resampled at its unique knots and re-interpolated with the
        cumulative arc length as the new parameter.  Must be called at most
        once and before any query that relies on arc length.
        """
        from pore_path.geometry.spline_interp import CubicSplineInterp3D

        if self._reparametrized:
            raise RuntimeError("Curve is already parametrized by arc length")

        u = self.unique_knots
        points = self.evaluate_many(u)
        s = self.ctrl_point_arc_length()
        refit = CubicSplineInterp3D()(s, points)

        self._degree = refit.degree
        self._replace(refit.knots, refit.ctrl_points)
        self._reparametrized = True

    def shift(self, vector) -> None:
        """Translate the whole curve by *vector*."""
        vector = np.asarray(vector, dtype=np.float64).reshape(3)
        self._replace(self._knots, self._ctrl + vector)

    @staticmethod
    def normal_frame(tangent: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Normal and binormal for *tangent*, anchored on a fixed global axis."""
        ref = np.array([1.0, 0.0, 0.0])
        if abs(float(np.dot(ref, tangent))) > 0.9:
            ref = np.array([0.0, 1.0, 0.0])
        normal = ref - np.dot(ref, tangent) * tangent
        normal /= np.linalg.norm(normal)
        binormal = np.cross(tangent, normal)
        return normal, binormal

    def cartesian_to_curvilinear(
        self,
        point,
        near_index: int,
        tolerance: float,
        max_iter: int = 100,
    ) -> np.ndarray:
        """Map a cartesian *point* to curvilinear coordinates ``(s, rho, phi)``.

        Newton iteration on ``(C(s) - p) . C'(s) = 0`` starting from the
        ``near_index``-th unique knot.  Raises :class:`ConvergenceError` when
        the parameter update does not drop below *tolerance* within
        *max_iter* steps.
        """
        p = np.asarray(point, dtype=np.float64).reshape(3)
        u = self.unique_knots
        near_index = min(max(int(near_index), 0), len(u) - 1)
        s = float(u[near_index])

        for _ in range(max_iter):
            diff = self.evaluate(s) - p
            d1 = self.evaluate(s, 1)
            d2 = self.evaluate(s, 2)
            grad = float(np.dot(diff, d1))
            hess = float(np.dot(d1, d1) + np.dot(diff, d2))
            if hess <= _EPS:
                # fall back to the Gauss-Newton curvature
                hess = float(np.dot(d1, d1))
                if hess <= _EPS:
                    break
            step = -grad / hess
            s += step
            if not math.isfinite(s):
                break
            if abs(step) < tolerance:
                return self._curvilinear_at(p, s)

        raise ConvergenceError(
            f"Curvilinear mapping of {p.tolist()} did not converge "
            f"within {max_iter} iterations"
        )

    def _curvilinear_at(self, p: np.ndarray, s: float) -> np.ndarray:
        offset = p - self.evaluate(s)
        rho = float(np.linalg.norm(offset))
        tangent = self.tangent(s)
        normal, binormal = self.normal_frame(tangent)
        phi = math.atan2(float(np.dot(offset, binormal)), float(np.dot(offset, normal)))
        return np.array([s, rho, phi])
