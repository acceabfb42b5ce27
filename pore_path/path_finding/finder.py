"""Probe-based path finding.

The finder places a probe at an initial position and steps it in both
directions along the channel, delegating the geometry of each step to a
:class:`~pore_path.path_finding.base.ProbeStepStrategy`.  A direction stops
when the free distance exceeds ``max_radius`` (the probe has left the pore)
or after ``max_steps`` steps.

States: INITIAL -> STEPPING_FORWARD -> STEPPING_BACKWARD -> DONE.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Literal, Mapping

import numpy as np

from pore_path.errors import ConfigurationError
from pore_path.models import PathPoint
from pore_path.optim.simulated_annealing import AnnealingParameters
from pore_path.path_finding.base import ProbeStepStrategy, StepContext, unit_vector
from pore_path.path_finding.free_distance import FreeDistanceProbe

PathFindingMethod = Literal["inplane-optim", "optim-direction", "naive-cylindrical"]


@dataclass(frozen=True)
class PathFinderParameters:
    """Mandatory parameters of the probe path finder (lengths in nm)."""

    probe_radius: float
    step_length: float
    max_radius: float
    max_steps: int

    def __post_init__(self) -> None:
        if self.step_length <= 0:
            raise ConfigurationError(
                f"step_length must be positive, got {self.step_length}"
            )
        if self.max_steps < 0:
            raise ConfigurationError(
                f"max_steps must not be negative, got {self.max_steps}"
            )
        if self.probe_radius < 0:
            raise ConfigurationError(
                f"probe_radius must not be negative, got {self.probe_radius}"
            )

    @classmethod
    def from_dict(cls, params: Mapping[str, float]) -> "PathFinderParameters":
        """Build from a mapping, failing loudly on any missing key."""
        values = {}
        for f in fields(cls):
            if f.name not in params:
                raise ConfigurationError(f"Path finder parameter {f.name!r} not given")
            values[f.name] = params[f.name]
        values["max_steps"] = int(values["max_steps"])
        return cls(**values)


class FinderState(Enum):
    INITIAL = "initial"
    STEPPING_FORWARD = "stepping_forward"
    STEPPING_BACKWARD = "stepping_backward"
    DONE = "done"


def make_strategy(
    method: PathFindingMethod,
    params: PathFinderParameters,
    probe: FreeDistanceProbe | None = None,
    annealing: AnnealingParameters | None = None,
) -> ProbeStepStrategy:
    """Return the stepping strategy registered under *method*."""
    from pore_path.path_finding.cylindrical import NaiveCylindricalStrategy
    from pore_path.path_finding.direction import OptimisedDirectionStrategy
    from pore_path.path_finding.inplane import InplaneOptimisedStrategy

    if method == "naive-cylindrical":
        return NaiveCylindricalStrategy(radius=params.max_radius)

    if method not in ("inplane-optim", "optim-direction"):
        raise ValueError(
            f"Unknown path finding method: {method!r}. Use 'inplane-optim', "
            "'optim-direction' or 'naive-cylindrical'."
        )
    if probe is None or annealing is None:
        raise ConfigurationError(
            f"Method {method!r} needs a free distance probe and annealing parameters"
        )
    if method == "inplane-optim":
        return InplaneOptimisedStrategy(probe, annealing)
    return OptimisedDirectionStrategy(probe, annealing)


class ProbePathFinder:
    """Step a probe through a pore and collect support points.

    Parameters
    ----------
    params:
        Step length, maximum radius and maximum step count.
    strategy:
        How a single step is taken.
    init_pos:
        Initial probe position, shape (3,).
    chan_dir:
        Channel direction; normalised internally.
    """

    def __init__(
        self,
        params: PathFinderParameters,
        strategy: ProbeStepStrategy,
        init_pos,
        chan_dir=(0.0, 0.0, 1.0),
    ) -> None:
        if params is None:
            raise ConfigurationError("Path finder parameters not given")
        self.params = params
        self.strategy = strategy
        self.init_pos = np.asarray(init_pos, dtype=np.float64).reshape(3)
        self.chan_dir = unit_vector(chan_dir)
        self.state = FinderState.INITIAL
        self._forward: list[PathPoint] = []
        self._backward: list[PathPoint] = []
        self._initial: PathPoint | None = None

    def _run_direction(
        self,
        start: StepContext,
        sign: int,
        rng: np.random.Generator,
    ) -> list[PathPoint]:
        points: list[PathPoint] = []
        ctx = start
        for _ in range(self.params.max_steps):
            ctx = self.strategy.step(ctx, sign, self.params.step_length, rng)
            radius = ctx.point.radius
            if not math.isfinite(radius):
                break
            points.append(ctx.point)
            if radius > self.params.max_radius:
                break
        return points

    def find_path(self, parallel: bool = False) -> list[PathPoint]:
        """Run the stepping procedure once and return the ordered support points.

        With ``parallel=True`` the two directions run in separate threads.
        Every direction draws from its own random stream, so the result does
        not depend on the execution order.
        """
        if self.state is not FinderState.INITIAL:
            raise RuntimeError("find_path() can only be run once per finder")

        rng_init, rng_fwd, rng_bwd = (
            np.random.default_rng(s)
            for s in np.random.SeedSequence(self.strategy.seed).spawn(3)
        )

        start = self.strategy.initial(self.init_pos, self.chan_dir, rng_init)
        if not math.isfinite(start.point.radius):
            raise ValueError(
                "No pore-forming atoms within the search cutoff of the initial "
                f"probe position {self.init_pos.tolist()}"
            )
        self._initial = start.point
        backward_start = replace(start, direction=-start.direction)

        self.state = FinderState.STEPPING_FORWARD
        if parallel:
            with ThreadPoolExecutor(max_workers=2) as pool:
                fwd = pool.submit(self._run_direction, start, 1, rng_fwd)
                bwd = pool.submit(self._run_direction, backward_start, -1, rng_bwd)
                self._forward = fwd.result()
                self.state = FinderState.STEPPING_BACKWARD
                self._backward = bwd.result()
        else:
            self._forward = self._run_direction(start, 1, rng_fwd)
            self.state = FinderState.STEPPING_BACKWARD
            self._backward = self._run_direction(backward_start, -1, rng_bwd)

        self.state = FinderState.DONE
        return self.path_points()

    def path_points(self) -> list[PathPoint]:
        """Support points ordered from the backward end to the forward end."""
        if self.state is not FinderState.DONE:
            raise RuntimeError("find_path() has not been run")
        return list(reversed(self._backward)) + [self._initial] + list(self._forward)

    def get_molecular_path(self):
        from pore_path.path_finding.molecular_path import MolecularPath
        return MolecularPath.from_path_points(self.path_points())
