"""In-plane optimised probe stepping.

The probe advances along a fixed channel axis.  At every step the position is
refined inside the plane perpendicular to the axis so that the free distance
is maximal; the optimal offset of one step seeds the next.
"""

from __future__ import annotations

import numpy as np

from pore_path.optim.simulated_annealing import AnnealingParameters
from pore_path.path_finding.base import ProbeStepStrategy, StepContext, optimise_in_plane
from pore_path.path_finding.free_distance import FreeDistanceProbe


class InplaneOptimisedStrategy(ProbeStepStrategy):

    def __init__(self, probe: FreeDistanceProbe, annealing: AnnealingParameters) -> None:
        self.probe = probe
        self.annealing = annealing

    @property
    def seed(self) -> int:
        return self.annealing.seed

    def initial(self, init_pos, direction, rng) -> StepContext:
        return optimise_in_plane(
            self.probe, self.annealing,
            centre=np.asarray(init_pos, dtype=np.float64),
            direction=direction,
            seed=np.zeros(2),
            step=0,
            rng=rng,
        )

    def step(self, previous, sign, step_length, rng) -> StepContext:
        centre = previous.centre + step_length * previous.direction
        return optimise_in_plane(
            self.probe, self.annealing,
            centre=centre,
            direction=previous.direction,
            seed=previous.seed,
            step=previous.point.step + sign,
            rng=rng,
            plane=previous.plane,
        )
