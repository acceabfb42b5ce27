"""Direction-optimised probe stepping.

Instead of following a fixed axis, the probe picks its next step direction by
maximising the free distance one step ahead.  The optimisation variable is a
3D perturbation ``delta`` of the current direction ``d``; the trial direction
is ``(d + delta) / |d + delta|``.  Perturbations that would turn the probe
around (forward component of ``d + delta`` at or below ``MIN_FORWARD``) are
invalid.  The chosen direction becomes the reference for the next step, so the
next optimisation starts from a zero perturbation.
"""

from __future__ import annotations

import math

import numpy as np

from pore_path.models import PathPoint
from pore_path.optim.simulated_annealing import (
    AnnealingParameters,
    SimulatedAnnealingOptimizer,
)
from pore_path.path_finding.base import ProbeStepStrategy, StepContext, optimise_in_plane
from pore_path.path_finding.free_distance import FreeDistanceProbe

MIN_FORWARD = 0.1


def _trial_direction(direction: np.ndarray, delta: np.ndarray) -> np.ndarray | None:
    w = direction + delta
    if float(np.dot(w, direction)) <= MIN_FORWARD:
        return None
    return w / np.linalg.norm(w)


class OptimisedDirectionStrategy(ProbeStepStrategy):

    def __init__(self, probe: FreeDistanceProbe, annealing: AnnealingParameters) -> None:
        self.probe = probe
        self.annealing = annealing

    @property
    def seed(self) -> int:
        return self.annealing.seed

    def initial(self, init_pos, direction, rng) -> StepContext:
        # the starting point is centred in the plane of the initial direction
        return optimise_in_plane(
            self.probe, self.annealing,
            centre=np.asarray(init_pos, dtype=np.float64),
            direction=direction,
            seed=np.zeros(2),
            step=0,
            rng=rng,
        )

    def step(self, previous, sign, step_length, rng) -> StepContext:
        start = previous.point.position
        direction = previous.direction

        def cost(delta: np.ndarray) -> float:
            trial = _trial_direction(direction, delta)
            if trial is None:
                return -math.inf
            return self.probe(start + step_length * trial)

        result = SimulatedAnnealingOptimizer(cost, self.annealing, rng=rng).optimize(
            np.zeros(3)
        )
        new_direction = _trial_direction(direction, result.best_x)
        position = start + step_length * new_direction
        point = PathPoint(
            position=position,
            radius=self.probe(position),
            step=previous.point.step + sign,
        )
        return StepContext(point=point, centre=position, direction=new_direction,
                           seed=np.zeros(3))
