"""Simulated annealing maximiser over a real parameter vector.

Acceptance rule (maximisation):
- always accept a candidate whose cost is not lower than the current cost
- otherwise accept with probability exp((candidate - current) / T)

Temperature decreases geometrically every iteration.  The run stops after
``max_iter`` iterations or once the last ``num_cost_samples`` accepted costs
agree to within ``conv_rel_tol``.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

import numpy as np


@dataclass
class AnnealingParameters:
    """Configuration for :class:`SimulatedAnnealingOptimizer`."""

    seed: int
    init_temp: float = 0.1
    cooling_factor: float = 0.98
    max_iter: int = 1000
    num_cost_samples: int = 10
    conv_rel_tol: float = 1e-3
    step_length: float = 0.001
    adaptive_step: bool = False

    def __post_init__(self) -> None:
        if not 0.0 < self.cooling_factor < 1.0:
            raise ValueError(
                f"cooling_factor must lie in (0, 1), got {self.cooling_factor}"
            )
        if self.init_temp <= 0.0:
            raise ValueError(f"init_temp must be positive, got {self.init_temp}")
        if self.max_iter < 0:
            raise ValueError(f"max_iter must not be negative, got {self.max_iter}")
        if self.num_cost_samples < 2:
            raise ValueError(
                f"num_cost_samples must be at least 2, got {self.num_cost_samples}"
            )


@dataclass
class AnnealingState:
    """Mutable state of a single annealing run."""

    x: np.ndarray
    cost: float
    best_x: np.ndarray
    best_cost: float
    temperature: float
    iteration: int = 0
    recent_costs: deque = field(default_factory=deque)


@dataclass
class AnnealingResult:
    best_x: np.ndarray
    best_cost: float
    iterations: int
    converged: bool


def _accept(delta: float, temperature: float, rng: np.random.Generator) -> bool:
    """Metropolis criterion for a maximisation problem."""
    if delta >= 0:
        return True
    if temperature <= 0:
        return False
    return rng.random() < math.exp(delta / temperature)


class SimulatedAnnealingOptimizer:
    """Maximise *cost_fn* starting from a given parameter vector.

    Parameters
    ----------
    cost_fn:
        Objective mapping a parameter vector to a float.  Non-finite values
        mark invalid candidates, which are never accepted.
    params:
        Annealing configuration.
    rng:
        Random generator.  Defaults to ``np.random.default_rng(params.seed)``;
        pass a spawned generator to keep independent runs reproducible.
    """

    def __init__(
        self,
        cost_fn: Callable[[np.ndarray], float],
        params: AnnealingParameters,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.cost_fn = cost_fn
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(params.seed)
        self.state: AnnealingState | None = None

    def _evaluate(self, x: np.ndarray) -> float:
        cost = float(self.cost_fn(x))
        if math.isnan(cost) or cost == math.inf:
            return -math.inf
        return cost

    def _step_length(self) -> float:
        p = self.params
        if p.adaptive_step:
            return p.step_length * self.state.temperature / p.init_temp
        return p.step_length

    def _candidate(self) -> np.ndarray:
        x = self.state.x
        return x + self._step_length() * self.rng.uniform(-1.0, 1.0, size=x.shape)

    def _is_converged(self) -> bool:
        window = self.state.recent_costs
        if len(window) < self.params.num_cost_samples:
            return False
        lo, hi = min(window), max(window)
        if not (math.isfinite(lo) and math.isfinite(hi)):
            return False
        scale = max(abs(hi), abs(lo))
        if scale == 0.0:
            return True
        return (hi - lo) / scale < self.params.conv_rel_tol

    def step(self) -> bool:
        """Perform one annealing iteration; return True if the candidate was accepted."""
        s = self.state
        cand = self._candidate()
        cand_cost = self._evaluate(cand)

        accepted = False
        if math.isfinite(cand_cost):
            if not math.isfinite(s.cost):
                accepted = True
            else:
                accepted = _accept(cand_cost - s.cost, s.temperature, self.rng)

        if accepted:
            s.x, s.cost = cand, cand_cost
            s.recent_costs.append(cand_cost)
            if cand_cost > s.best_cost:
                s.best_x, s.best_cost = cand.copy(), cand_cost

        s.temperature *= self.params.cooling_factor
        s.iteration += 1
        return accepted

    def optimize(self, x0) -> AnnealingResult:
        """Run annealing from *x0* and return the best vector seen."""
        x0 = np.asarray(x0, dtype=np.float64).copy()
        cost0 = self._evaluate(x0)
        self.state = AnnealingState(
            x=x0,
            cost=cost0,
            best_x=x0.copy(),
            best_cost=cost0,
            temperature=self.params.init_temp,
            recent_costs=deque(maxlen=self.params.num_cost_samples),
        )

        converged = False
        while self.state.iteration < self.params.max_iter:
            self.step()
            if self._is_converged():
                converged = True
                break

        return AnnealingResult(
            best_x=self.state.best_x.copy(),
            best_cost=self.state.best_cost,
            iterations=self.state.iteration,
            converged=converged,
        )
