"""Naive cylindrical path: a straight line of constant radius."""

from __future__ import annotations

import numpy as np

from pore_path.models import PathPoint
from pore_path.path_finding.base import ProbeStepStrategy, StepContext


class NaiveCylindricalStrategy(ProbeStepStrategy):
    """Step along the fixed channel axis without any optimisation.

    Every support point gets the same *radius*, so the resulting pathway is a
    cylinder around the axis through the initial position.
    """

    def __init__(self, radius: float) -> None:
        self.radius = float(radius)

    def initial(self, init_pos, direction, rng) -> StepContext:
        pos = np.asarray(init_pos, dtype=np.float64)
        return StepContext(
            point=PathPoint(position=pos, radius=self.radius, step=0),
            centre=pos,
            direction=direction,
            seed=np.zeros(0),
        )

    def step(self, previous, sign, step_length, rng) -> StepContext:
        pos = previous.centre + step_length * previous.direction
        return StepContext(
            point=PathPoint(position=pos, radius=self.radius,
                            step=previous.point.step + sign),
            centre=pos,
            direction=previous.direction,
            seed=previous.seed,
        )
