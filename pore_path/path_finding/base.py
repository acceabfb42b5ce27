"""Abstract base class for probe stepping strategies."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from pore_path.models import PathPoint
from pore_path.optim.simulated_annealing import (
    AnnealingParameters,
    SimulatedAnnealingOptimizer,
)


@dataclass(frozen=True)
class StepContext:
    """Everything a strategy carries from one probe step to the next."""
    point: PathPoint
    centre: np.ndarray      # nominal position on the stepping axis
    direction: np.ndarray   # unit travel direction
    seed: np.ndarray        # optimiser start vector for the next step
    plane: np.ndarray | None = None  # (2, 3) basis the seed is expressed in


def unit_vector(vec) -> np.ndarray:
    vec = np.asarray(vec, dtype=np.float64).reshape(3)
    norm = np.linalg.norm(vec)
    if norm == 0.0:
        raise ValueError("Direction vector must not be zero")
    return vec / norm


def orthonormal_plane(direction: np.ndarray) -> np.ndarray:
    """Two orthonormal vectors spanning the plane perpendicular to *direction*.

    Returned as the rows of a (2, 3) array.
    """
    ref = np.array([1.0, 0.0, 0.0])
    if abs(float(np.dot(ref, direction))) > 0.9:
        ref = np.array([0.0, 1.0, 0.0])
    u = np.cross(direction, ref)
    u /= np.linalg.norm(u)
    v = np.cross(direction, u)
    return np.stack([u, v])


def optimise_in_plane(
    probe,
    annealing: AnnealingParameters,
    centre: np.ndarray,
    direction: np.ndarray,
    seed: np.ndarray,
    step: int,
    rng: np.random.Generator,
    plane: np.ndarray | None = None,
) -> StepContext:
    """Maximise the free distance over offsets perpendicular to *direction*.

    *seed* is a 2D offset in *plane*, the rows of which span the plane.  When
    *plane* is not given it is built from *direction*; the returned context
    carries it so that later steps, in either direction, read the seed in the
    same basis.
    """
    if plane is None:
        plane = orthonormal_plane(direction)

    def cost(offset: np.ndarray) -> float:
        return probe(centre + offset @ plane)

    result = SimulatedAnnealingOptimizer(cost, annealing, rng=rng).optimize(seed)
    position = centre + result.best_x @ plane
    point = PathPoint(position=position, radius=probe(position), step=step)
    return StepContext(point=point, centre=centre, direction=direction,
                       seed=result.best_x, plane=plane)


class ProbeStepStrategy(ABC):
    """Abstract base for the three probe stepping strategies.

    A strategy only turns the previous step into the next one; the stepping
    loop and termination live in :class:`~pore_path.path_finding.finder.ProbePathFinder`.
    """

    @property
    def seed(self) -> int | None:
        """Seed of the strategy's random source, ``None`` if it uses none."""
        return None

    @abstractmethod
    def initial(
        self,
        init_pos: np.ndarray,
        direction: np.ndarray,
        rng: np.random.Generator,
    ) -> StepContext:
        """Place the probe at its starting point."""
        ...

    @abstractmethod
    def step(
        self,
        previous: StepContext,
        sign: int,
        step_length: float,
        rng: np.random.Generator,
    ) -> StepContext:
        """Advance the probe one step along ``previous.direction``."""
        ...
