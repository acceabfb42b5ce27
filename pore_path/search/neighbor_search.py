"""Cutoff-based neighbour queries over a fixed set of reference atoms.

Supports an optional rectangular periodic box; distances then follow the
minimum-image convention.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import KDTree


def minimum_image(delta: np.ndarray, box: np.ndarray | None) -> np.ndarray:
    """Reduce displacement vector(s) *delta* to their shortest periodic image."""
    if box is None:
        return delta
    return delta - box * np.round(delta / box)


def periodic_distance(a, b, box=None) -> float:
    """Distance between points *a* and *b*, periodic in *box* if given."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    box = None if box is None else np.asarray(box, dtype=np.float64)
    return float(np.linalg.norm(minimum_image(b - a, box)))


def _wrap(points: np.ndarray, box: np.ndarray) -> np.ndarray:
    wrapped = np.mod(points, box)
    # np.mod can round tiny negatives up to exactly box
    return np.where(wrapped >= box, 0.0, wrapped)


class NeighborSearch:
    """Neighbour search over *positions*.

    Parameters
    ----------
    positions:
        Reference points, shape (N, 3).
    cutoff:
        Search radius.  ``None`` (or a non-positive value) means no cutoff:
        every reference point is a neighbour of every query point.
    box:
        Edge lengths of a rectangular periodic box, shape (3,), or ``None``
        for open boundaries.
    """

    def __init__(self, positions, cutoff: float | None = None, box=None) -> None:
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        self.cutoff = cutoff if cutoff is not None and cutoff > 0 else None
        self.box = None if box is None else np.asarray(box, dtype=np.float64).reshape(3)

        if self.box is not None:
            positions = _wrap(positions, self.box)
        self._positions = positions
        self._tree = None
        if len(positions):
            self._tree = KDTree(positions, boxsize=self.box)

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> np.ndarray:
        return self._positions.copy()

    def _query_point(self, point) -> np.ndarray:
        p = np.asarray(point, dtype=np.float64).reshape(3)
        if self.box is not None:
            p = _wrap(p, self.box)
        return p

    def _squared_distances(self, p: np.ndarray, idx: np.ndarray) -> np.ndarray:
        delta = minimum_image(self._positions[idx] - p, self.box)
        return np.einsum("ij,ij->i", delta, delta)

    def within(self, point) -> tuple[np.ndarray, np.ndarray]:
        """Indices and squared distances of all reference points within the cutoff."""
        if self._tree is None:
            return np.empty(0, dtype=np.int64), np.empty(0)

        p = self._query_point(point)
        if self.cutoff is None:
            idx = np.arange(len(self._positions))
        else:
            idx = np.array(sorted(self._tree.query_ball_point(p, r=self.cutoff)),
                           dtype=np.int64)
            if len(idx) == 0:
                return idx, np.empty(0)
        return idx, self._squared_distances(p, idx)

    def nearest(self, point) -> tuple[int, float] | None:
        """Closest reference point as ``(index, squared_distance)``.

        Returns ``None`` if no reference point lies within the cutoff.
        """
        if self._tree is None:
            return None

        p = self._query_point(point)
        bound = np.inf if self.cutoff is None else self.cutoff
        dist, idx = self._tree.query(p, distance_upper_bound=bound)
        if not np.isfinite(dist):
            return None
        return int(idx), float(dist) ** 2
