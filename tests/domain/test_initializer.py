"""Tests for seeded flock initialization."""

from __future__ import annotations

import math
from random import Random

import numpy as np

from boid_flocking.config.types import FlockConfiguration
from boid_flocking.domain.initializer import initialize_agents, random_unit_vector


class TestRandomUnitVector:
    def test_unit_length(self) -> None:
        rng = Random(0)
        for _ in range(50):
            assert math.isclose(math.hypot(*random_unit_vector(rng)), 1.0, rel_tol=1e-12)


class TestInitializeAgents:
    def test_positions_within_initial_bounds(self) -> None:
        cfg = FlockConfiguration(initial_bounds=(10.0, 20.0, 5.0))
        store = initialize_agents(cfg, 200, Random(1))
        pos = store.current().positions
        assert pos.shape == (200, 3)
        assert np.all(np.abs(pos) <= np.array([10.0, 20.0, 5.0]))

    def test_negative_bounds_use_absolute_value(self) -> None:
        cfg = FlockConfiguration(initial_bounds=(-4.0, -4.0, -4.0))
        pos = initialize_agents(cfg, 100, Random(2)).current().positions
        assert np.all(np.abs(pos) <= 4.0)
        assert np.any(pos > 0.0) and np.any(pos < 0.0)

    def test_speed_between_half_and_full_max_velocity(self) -> None:
        cfg = FlockConfiguration(max_velocity=25.0)
        vel = initialize_agents(cfg, 200, Random(3)).current().velocities
        speeds = np.linalg.norm(vel, axis=1)
        assert np.all(speeds >= 12.5 - 1e-9)
        assert np.all(speeds <= 25.0 + 1e-9)

    def test_same_seed_reproducible(self) -> None:
        cfg = FlockConfiguration()
        first = initialize_agents(cfg, 30, Random(42)).current()
        second = initialize_agents(cfg, 30, Random(42)).current()
        assert np.array_equal(first.positions, second.positions)
        assert np.array_equal(first.velocities, second.velocities)

    def test_different_seed_differs(self) -> None:
        cfg = FlockConfiguration()
        first = initialize_agents(cfg, 30, Random(1)).current()
        second = initialize_agents(cfg, 30, Random(2)).current()
        assert not np.array_equal(first.positions, second.positions)

    def test_non_positive_amount_gives_empty_store(self) -> None:
        for amount in (0, -5):
            store = initialize_agents(FlockConfiguration(), amount, Random(0))
            assert store.count == 0
            assert len(store.current()) == 0

    def test_non_positive_max_velocity_gives_motionless_agents(self) -> None:
        store = initialize_agents(FlockConfiguration(max_velocity=-3.0), 5, Random(0))
        assert np.array_equal(store.current().velocities, np.zeros((5, 3)))
