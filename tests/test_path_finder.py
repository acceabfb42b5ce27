"""
Tests for probe path finding through a synthetic ring pore.

The pore consists of ten rings of twenty atoms (radius 1 nm, vdW radius
0.05 nm) stacked along z from 0 to 2.7 nm.  Inside the pore the free distance
is about 0.95 nm; the probe leaves the pore roughly 0.35 nm beyond the outer
rings.
"""

from dataclasses import replace

import pytest
import numpy as np

from pore_path.errors import ConfigurationError
from pore_path.optim.simulated_annealing import AnnealingParameters
from pore_path.path_finding.base import orthonormal_plane, unit_vector
from pore_path.path_finding.cylindrical import NaiveCylindricalStrategy
from pore_path.path_finding.direction import MIN_FORWARD, _trial_direction
from pore_path.path_finding.finder import (
    FinderState,
    PathFinderParameters,
    ProbePathFinder,
    make_strategy,
)
from pore_path.path_finding.free_distance import FreeDistanceProbe
from pore_path.path_finding.inplane import InplaneOptimisedStrategy
from pore_path.search.neighbor_search import NeighborSearch

from tests.conftest import RING_Z

INIT_POS = np.array([0.0, 0.0, 1.35])
PARAMS = PathFinderParameters(
    probe_radius=0.0, step_length=0.05, max_radius=1.0, max_steps=100,
)


def ring_probe(atoms):
    positions = np.array([a.pos for a in atoms])
    radii = np.array([a.radius for a in atoms])
    return FreeDistanceProbe(NeighborSearch(positions), radii)


def ring_finder(atoms, method="inplane-optim", seed=1):
    annealing = AnnealingParameters(seed=seed, max_iter=200)
    strategy = make_strategy(method, PARAMS, probe=ring_probe(atoms), annealing=annealing)
    return ProbePathFinder(PARAMS, strategy, INIT_POS)


class TestParameters:
    """Path finder configuration."""

    def test_from_dict(self):
        params = PathFinderParameters.from_dict({
            "probe_radius": 0.0, "step_length": 0.1,
            "max_radius": 1.0, "max_steps": 10.0,
        })
        assert params.max_steps == 10
        assert isinstance(params.max_steps, int)

    @pytest.mark.parametrize(
        "missing", ["probe_radius", "step_length", "max_radius", "max_steps"]
    )
    def test_missing_key_raises(self, missing):
        data = {"probe_radius": 0.0, "step_length": 0.1, "max_radius": 1.0, "max_steps": 10}
        del data[missing]
        with pytest.raises(ConfigurationError):
            PathFinderParameters.from_dict(data)

    def test_non_positive_step_raises(self):
        with pytest.raises(ConfigurationError):
            PathFinderParameters(probe_radius=0.0, step_length=0.0, max_radius=1.0, max_steps=1)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            make_strategy("random-walk", PARAMS)

    def test_optimised_method_needs_probe(self):
        with pytest.raises(ConfigurationError):
            make_strategy("inplane-optim", PARAMS)


class TestGeometryHelpers:
    """Direction normalisation and in-plane basis."""

    def test_zero_direction_raises(self):
        with pytest.raises(ValueError):
            unit_vector([0.0, 0.0, 0.0])

    @pytest.mark.parametrize("direction", [[0, 0, 1], [1, 0, 0], [1, 2, 3]])
    def test_plane_is_orthonormal(self, direction):
        d = unit_vector(direction)
        plane = orthonormal_plane(d)
        np.testing.assert_allclose(plane @ plane.T, np.eye(2), atol=1e-12)
        np.testing.assert_allclose(plane @ d, np.zeros(2), atol=1e-12)

    def test_backward_trial_direction_invalid(self):
        d = np.array([0.0, 0.0, 1.0])
        assert _trial_direction(d, np.array([0.0, 0.0, -0.95])) is None
        assert _trial_direction(d, np.array([0.0, 0.0, MIN_FORWARD - 1.0])) is None
        trial = _trial_direction(d, np.array([0.5, 0.0, 0.0]))
        assert np.linalg.norm(trial) == pytest.approx(1.0)


class TestNaiveCylindrical:
    """Straight stepping without optimisation."""

    def test_point_count_and_spacing(self):
        params = PathFinderParameters(probe_radius=0.0, step_length=0.1,
                                      max_radius=0.5, max_steps=5)
        finder = ProbePathFinder(params, NaiveCylindricalStrategy(0.5), [0, 0, 0],
                                 chan_dir=[0, 0, 2])
        points = finder.find_path()

        assert len(points) == 11
        assert [p.step for p in points] == list(range(-5, 6))
        z = np.array([p.position[2] for p in points])
        np.testing.assert_allclose(z, 0.1 * np.arange(-5, 6), atol=1e-12)
        assert all(p.radius == 0.5 for p in points)

    def test_cylinder_path(self):
        params = PathFinderParameters(probe_radius=0.0, step_length=0.1,
                                      max_radius=0.5, max_steps=10)
        finder = ProbePathFinder(params, NaiveCylindricalStrategy(0.5), [0, 0, 0])
        finder.find_path()
        path = finder.get_molecular_path()
        assert path.length() == pytest.approx(2.0, rel=1e-8)
        assert path.radius(0.7) == pytest.approx(0.5)


class TestFinderStateMachine:
    """Run-once semantics."""

    def test_runs_only_once(self):
        finder = ProbePathFinder(PARAMS, NaiveCylindricalStrategy(1.0), INIT_POS)
        assert finder.state is FinderState.INITIAL
        finder.find_path()
        assert finder.state is FinderState.DONE
        with pytest.raises(RuntimeError):
            finder.find_path()

    def test_points_before_run_raise(self):
        finder = ProbePathFinder(PARAMS, NaiveCylindricalStrategy(1.0), INIT_POS)
        with pytest.raises(RuntimeError):
            finder.path_points()

    def test_missing_parameters(self):
        with pytest.raises(ConfigurationError):
            ProbePathFinder(None, NaiveCylindricalStrategy(1.0), INIT_POS)

    def test_initial_position_without_neighbours(self, ring_atoms):
        positions = np.array([a.pos for a in ring_atoms])
        probe = FreeDistanceProbe(
            NeighborSearch(positions, cutoff=0.5), [a.radius for a in ring_atoms]
        )
        strategy = make_strategy("inplane-optim", PARAMS, probe=probe,
                                 annealing=AnnealingParameters(seed=1, max_iter=10))
        finder = ProbePathFinder(PARAMS, strategy, INIT_POS)
        with pytest.raises(ValueError):
            finder.find_path()


class TestInplaneOptimised:
    """In-plane optimisation through the ring pore."""

    def test_follows_pore_axis(self, ring_atoms):
        points = ring_finder(ring_atoms).find_path()
        inside = [p for p in points if RING_Z[0] <= p.position[2] <= RING_Z[-1]]
        assert len(inside) > 40
        for p in inside:
            assert np.hypot(p.position[0], p.position[1]) < 0.05
            assert p.radius == pytest.approx(1.0, abs=0.1)

    def test_fitted_profile_follows_pore_axis(self, ring_atoms):
        """The fitted centre line and radius hold between support points too."""
        finder = ring_finder(ring_atoms)
        finder.find_path()
        path = finder.get_molecular_path()
        points = path.sample_points(400)
        radii = path.sample_radii(400)
        inside = (points[:, 2] >= RING_Z[0]) & (points[:, 2] <= RING_Z[-1])
        assert inside.sum() > 200
        np.testing.assert_array_less(np.hypot(points[inside, 0], points[inside, 1]), 0.05)
        np.testing.assert_allclose(radii[inside], 0.95, atol=0.05)

    def test_leaves_pore_at_both_ends(self, ring_atoms):
        points = ring_finder(ring_atoms).find_path()
        assert points[0].position[2] < RING_Z[0]
        assert points[-1].position[2] > RING_Z[-1]
        assert points[0].radius > PARAMS.max_radius
        assert points[-1].radius > PARAMS.max_radius
        assert all(p.radius <= PARAMS.max_radius for p in points[1:-1])

    def test_ordered_by_step(self, ring_atoms):
        points = ring_finder(ring_atoms).find_path()
        steps = [p.step for p in points]
        assert steps == sorted(steps)
        assert 0 in steps

    def test_reproducible(self, ring_atoms):
        a = ring_finder(ring_atoms, seed=3).find_path()
        b = ring_finder(ring_atoms, seed=3).find_path()
        np.testing.assert_array_equal(
            [p.position for p in a], [p.position for p in b]
        )

    def test_parallel_matches_serial(self, ring_atoms):
        serial = ring_finder(ring_atoms, seed=4).find_path()
        parallel = ring_finder(ring_atoms, seed=4).find_path(parallel=True)
        np.testing.assert_array_equal(
            [p.position for p in serial], [p.position for p in parallel]
        )

    def test_molecular_path(self, ring_atoms):
        finder = ring_finder(ring_atoms)
        finder.find_path()
        path = finder.get_molecular_path()
        assert path.length() > RING_Z[-1] - RING_Z[0]
        _, r_min = path.min_radius()
        assert r_min == pytest.approx(0.95, abs=0.02)


    def test_off_axis_start_is_symmetric(self, ring_atoms):
        """The first steps either side of an off-axis start stay centred."""
        annealing = AnnealingParameters(seed=1, max_iter=300, step_length=0.005)
        strategy = make_strategy("inplane-optim", PARAMS, probe=ring_probe(ring_atoms),
                                 annealing=annealing)
        points = ProbePathFinder(PARAMS, strategy, [0.0, -0.3, 1.35]).find_path()
        by_step = {p.step: p for p in points}
        assert np.hypot(*by_step[0].position[:2]) < 0.05
        for step in (-1, 1):
            p = by_step[step]
            assert np.hypot(*p.position[:2]) < 0.05
            assert p.radius == pytest.approx(by_step[0].radius, abs=0.02)


class TestSeedContinuity:
    """The optimal offset of one step seeds the next, in a fixed basis."""

    def test_backward_step_reads_seed_in_forward_basis(self, ring_atoms):
        # without iterations the optimiser returns its seed unchanged
        strategy = InplaneOptimisedStrategy(
            ring_probe(ring_atoms), AnnealingParameters(seed=0, max_iter=0)
        )
        rng = np.random.default_rng(0)
        start = strategy.initial(INIT_POS, unit_vector([0, 0, 1]), rng)
        start = replace(start, seed=np.array([0.2, -0.1]))

        fwd = strategy.step(start, 1, 0.05, rng)
        bwd = strategy.step(replace(start, direction=-start.direction), -1, 0.05, rng)

        np.testing.assert_allclose(bwd.point.position[:2], fwd.point.position[:2],
                                   atol=1e-12)
        assert np.hypot(*fwd.point.position[:2]) == pytest.approx(np.hypot(0.2, 0.1))
        assert fwd.point.position[2] == pytest.approx(1.40)
        assert bwd.point.position[2] == pytest.approx(1.30)
        assert bwd.point.step == -1
        np.testing.assert_array_equal(bwd.plane, start.plane)


class TestOptimisedDirection:
    """Direction optimisation through the ring pore."""

    def test_traverses_pore(self, ring_atoms):
        points = ring_finder(ring_atoms, method="optim-direction").find_path()
        assert len(points) > 20
        assert points[0].position[2] < RING_Z[0]
        assert points[-1].position[2] > RING_Z[-1]

    def test_consecutive_points_one_step_apart(self, ring_atoms):
        points = ring_finder(ring_atoms, method="optim-direction").find_path()
        forward = [p for p in points if p.step >= 0]
        for a, b in zip(forward[:-1], forward[1:]):
            assert np.linalg.norm(b.position - a.position) == pytest.approx(
                PARAMS.step_length
            )
