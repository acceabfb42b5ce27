"""Continuous representation of a molecular pathway.

A :class:`MolecularPath` is a centre-line space curve together with a radius
profile, both parametrized by arc length ``s``.  Positions can be mapped onto
the pathway as curvilinear coordinates ``(s, rho, phi)`` and classified as
inside or outside the pore.
"""

from __future__ import annotations

import math
import warnings
from typing import Iterable

import numpy as np
from scipy.optimize import minimize_scalar

from pore_path.errors import ConvergenceError
from pore_path.geometry.spline_curve import SplineCurve1D, SplineCurve3D
from pore_path.geometry.spline_interp import CubicSplineInterp1D, CubicSplineInterp3D
from pore_path.models import PathPoint
from pore_path.search.neighbor_search import NeighborSearch, minimum_image

# 4-point Gauss-Legendre integrates r(s)^2 of a cubic spline exactly per interval
_GL_NODES, _GL_WEIGHTS = np.polynomial.legendre.leggauss(4)


class MolecularPath:
    """Pore centre line and radius profile built from probe support points.

    Parameters
    ----------
    path_points:
        Ordered support points on the centre line, shape (n, 3), n >= 3.
    path_radii:
        Free radius at every support point, shape (n,).
    """

    def __init__(self, path_points, path_radii) -> None:
        path_points = np.asarray(path_points, dtype=np.float64)
        path_radii = np.asarray(path_radii, dtype=np.float64)
        if path_points.ndim != 2 or path_points.shape[1] != 3:
            raise ValueError(
                f"path_points must have shape (n, 3), got {path_points.shape}"
            )
        if len(path_radii) != len(path_points):
            raise ValueError(
                f"Got {len(path_points)} path points but {len(path_radii)} radii"
            )
        if not np.all(np.isfinite(path_radii)):
            raise ValueError("Path radii must be finite")

        self._path_points = path_points.copy()
        self._path_radii = path_radii.copy()

        centre_line = CubicSplineInterp3D()(path_points)
        centre_line.reparametrize_by_arc_length()
        arc_len = centre_line.unique_knots
        pore_radius = CubicSplineInterp1D()(arc_len, path_radii)

        self._set_splines(centre_line, pore_radius)

    def _set_splines(self, centre_line: SplineCurve3D, pore_radius: SplineCurve1D) -> None:
        self._centre_line = centre_line
        self._pore_radius = pore_radius
        knots = centre_line.unique_knots
        self._opening_lo = float(knots[0])
        self._opening_hi = float(knots[-1])
        self._length = abs(self._opening_hi - self._opening_lo)
        self._properties: dict[str, tuple[SplineCurve1D, bool]] = {}

    @classmethod
    def from_path_points(cls, points: Iterable[PathPoint]) -> "MolecularPath":
        points = list(points)
        return cls(
            np.array([p.position for p in points]),
            np.array([p.radius for p in points]),
        )

    # ------------------------------------------------------------------
    # serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "path_points": self._path_points.tolist(),
            "path_radii": self._path_radii.tolist(),
            "centre_line": self._centre_line.to_dict(),
            "pore_radius": self._pore_radius.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MolecularPath":
        """Rebuild a path from :meth:`to_dict` output without refitting."""
        path = cls.__new__(cls)
        path._path_points = np.asarray(data["path_points"], dtype=np.float64)
        path._path_radii = np.asarray(data["path_radii"], dtype=np.float64)
        path._set_splines(
            SplineCurve3D.from_dict(data["centre_line"]),
            SplineCurve1D.from_dict(data["pore_radius"]),
        )
        return path

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def path_points(self) -> np.ndarray:
        return self._path_points.copy()

    def path_radii(self) -> np.ndarray:
        return self._path_radii.copy()

    def centre_line(self) -> SplineCurve3D:
        return self._centre_line

    def pore_radius(self) -> SplineCurve1D:
        return self._pore_radius

    def centre_line_knots(self) -> np.ndarray:
        return self._centre_line.knots

    def centre_line_ctrl_points(self) -> np.ndarray:
        return self._centre_line.ctrl_points

    def pore_radius_knots(self) -> np.ndarray:
        return self._pore_radius.knots

    def pore_radius_ctrl_points(self) -> np.ndarray:
        return self._pore_radius.ctrl_points

    def length(self) -> float:
        return self._length

    def s_lo(self) -> float:
        return self._opening_lo

    def s_hi(self) -> float:
        return self._opening_hi

    def radius(self, s: float) -> float:
        return float(self._pore_radius(s))

    # ------------------------------------------------------------------
    # aggregate properties
    # ------------------------------------------------------------------

    def min_radius(self) -> tuple[float, float]:
        """Arc length and value of the smallest radius between the openings."""
        knots = self._pore_radius.unique_knots
        fine = np.linspace(0.0, 1.0, 11)[:-1]
        s = np.concatenate(
            [a + (b - a) * fine for a, b in zip(knots[:-1], knots[1:])] + [knots[-1:]]
        )
        r = self._pore_radius.evaluate_many(s)
        i = int(np.argmin(r))

        lo = s[max(i - 1, 0)]
        hi = s[min(i + 1, len(s) - 1)]
        best_s, best_r = float(s[i]), float(r[i])
        if hi > lo:
            res = minimize_scalar(self.radius, bounds=(lo, hi), method="bounded")
            if res.success and res.fun < best_r:
                best_s, best_r = float(res.x), float(res.fun)
        return best_s, best_r

    def volume(self) -> float:
        """Volume of the pore between the openings, the integral of pi r(s)^2 ds."""
        knots = self._pore_radius.unique_knots
        total = 0.0
        for a, b in zip(knots[:-1], knots[1:]):
            half = 0.5 * (b - a)
            mid = 0.5 * (a + b)
            r = np.array([self.radius(mid + half * x) for x in _GL_NODES])
            total += half * float(np.dot(_GL_WEIGHTS, r ** 2))
        return math.pi * total

    # ------------------------------------------------------------------
    # sampling
    # ------------------------------------------------------------------

    def sample_arc_length(self, n_points: int, extrap_dist: float = 0.0) -> np.ndarray:
        """*n_points* equally spaced arc lengths from ``s_lo - extrap_dist``
        to ``s_hi + extrap_dist`` inclusive."""
        if n_points < 2:
            raise ValueError(f"Need at least 2 sample points, got {n_points}")
        return np.linspace(
            self._opening_lo - extrap_dist,
            self._opening_hi + extrap_dist,
            int(n_points),
        )

    def _arc_length_sample(self, sample, extrap_dist: float) -> np.ndarray:
        if np.ndim(sample) == 0:
            return self.sample_arc_length(int(sample), extrap_dist)
        return np.asarray(sample, dtype=np.float64)

    def sample_points(self, sample, extrap_dist: float = 0.0) -> np.ndarray:
        """Centre-line points, either *sample* equally spaced or at given arc lengths."""
        s = self._arc_length_sample(sample, extrap_dist)
        return self._centre_line.evaluate_many(s)

    def sample_tangents(self, sample, extrap_dist: float = 0.0) -> np.ndarray:
        s = self._arc_length_sample(sample, extrap_dist)
        return self._centre_line.evaluate_many(s, deriv=1)

    def sample_norm_tangents(self, sample, extrap_dist: float = 0.0) -> np.ndarray:
        s = self._arc_length_sample(sample, extrap_dist)
        return np.array([self._centre_line.tangent(x) for x in s])

    def sample_radii(self, sample, extrap_dist: float = 0.0) -> np.ndarray:
        s = self._arc_length_sample(sample, extrap_dist)
        return self._pore_radius.evaluate_many(s)

    # ------------------------------------------------------------------
    # mapping
    # ------------------------------------------------------------------

    def map_selection(
        self,
        positions,
        ids: Iterable[int] | None = None,
        map_tol: float = 1e-6,
        search_cutoff: float | None = None,
        max_iter: int = 100,
        box=None,
    ) -> dict[int, np.ndarray]:
        """Map *positions* onto curvilinear coordinates ``(s, rho, phi)``.

        The closest centre-line support point seeds a Newton refinement on the
        centre line.  Positions that fail to converge, or that have no support
        point within *search_cutoff*, are left out of the result.  With a
        periodic *box*, each position is first moved to its image closest to
        the seeding support point.

        Returns a dict from identifier (``ids`` or the position index) to an
        array ``[s, rho, phi]``.
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        ids = list(range(len(positions))) if ids is None else list(ids)
        if len(ids) != len(positions):
            raise ValueError(f"Got {len(positions)} positions but {len(ids)} ids")

        knots = self._centre_line.unique_knots
        reference = self._centre_line.evaluate_many(knots)
        search = NeighborSearch(reference, cutoff=search_cutoff, box=box)
        box = search.box

        mapped: dict[int, np.ndarray] = {}
        for pid, pos in zip(ids, positions):
            hit = search.nearest(pos)
            if hit is None:
                continue
            if box is not None:
                near = reference[hit[0]]
                pos = near + minimum_image(pos - near, box)
            try:
                mapped[pid] = self._centre_line.cartesian_to_curvilinear(
                    pos, hit[0], map_tol, max_iter=max_iter,
                )
            except ConvergenceError:
                continue

        n_missing = len(ids) - len(mapped)
        if n_missing:
            warnings.warn(
                f"{n_missing} of {len(ids)} positions could not be mapped onto "
                "the pathway and were omitted"
            )
        return mapped

    def map_positions(self, positions, map_tol: float = 1e-6, **kwargs) -> dict[int, np.ndarray]:
        """Like :meth:`map_selection`, keyed by position index."""
        return self.map_selection(positions, None, map_tol=map_tol, **kwargs)

    def check_if_inside(
        self,
        mapped_coords: dict[int, np.ndarray],
        margin: float = 0.0,
        s_lo: float | None = None,
        s_hi: float | None = None,
    ) -> dict[int, bool]:
        """Flag mapped points whose radial offset is below ``radius(s) + margin``.

        If *s_lo* and/or *s_hi* are given, points outside that arc length
        window are flagged as outside.
        """
        inside: dict[int, bool] = {}
        for pid, coord in mapped_coords.items():
            s, rho = float(coord[0]), float(coord[1])
            flag = rho < self.radius(s) + margin
            if s_lo is not None and s < s_lo:
                flag = False
            if s_hi is not None and s > s_hi:
                flag = False
            inside[pid] = flag
        return inside

    # ------------------------------------------------------------------
    # mapped properties
    # ------------------------------------------------------------------

    def add_scalar_property(self, name: str, curve: SplineCurve1D, divergent: bool = False) -> None:
        """Attach a scalar profile along the pathway; replaces any previous *name*."""
        self._properties[name] = (curve, bool(divergent))

    def scalar_properties(self) -> dict[str, tuple[SplineCurve1D, bool]]:
        return dict(self._properties)

    def shift(self, vector) -> None:
        """Translate the pathway by *vector*."""
        vector = np.asarray(vector, dtype=np.float64).reshape(3)
        self._centre_line.shift(vector)
        self._path_points = self._path_points + vector
