"""Free distance between a probe position and the surrounding vdW surface."""

from __future__ import annotations

import math

import numpy as np

from pore_path.search.neighbor_search import NeighborSearch


class FreeDistanceProbe:
    """Radius of the largest empty sphere centred at a query position.

    Parameters
    ----------
    search:
        Neighbour search built over the pore-forming atoms.
    vdw_radii:
        vdW radius of every reference atom, index-aligned with *search*.
    probe_radius:
        Radius of the probe itself, subtracted from every clearance.
    """

    def __init__(
        self,
        search: NeighborSearch,
        vdw_radii,
        probe_radius: float = 0.0,
    ) -> None:
        vdw_radii = np.asarray(vdw_radii, dtype=np.float64).reshape(-1)
        if len(vdw_radii) != len(search):
            raise ValueError(
                f"Got {len(vdw_radii)} vdW radii for {len(search)} reference atoms"
            )
        self.search = search
        self.vdw_radii = vdw_radii
        self.probe_radius = float(probe_radius)

    def minimal_free_distance(self, position) -> float:
        """Smallest ``distance - vdw_radius - probe_radius`` over all neighbours.

        Returns ``math.inf`` when the neighbour query finds nothing, i.e. no
        obstruction lies within the search cutoff.
        """
        idx, d2 = self.search.within(position)
        if len(idx) == 0:
            return math.inf
        clearance = np.sqrt(d2) - self.vdw_radii[idx] - self.probe_radius
        return float(clearance.min())

    __call__ = minimal_free_distance
