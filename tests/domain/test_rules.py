"""Tests for the flocking rule engines."""

from __future__ import annotations

import numpy as np
import pytest

from boid_flocking.config.types import (
    CohesionScope,
    FlockConfiguration,
    RuleModel,
    SeparationWeighting,
)
from boid_flocking.domain.rules import (
    ClassicRuleEngine,
    ReynoldsRuleEngine,
    RuleEngine,
    alignment,
    cohesion,
    create_rule_engine,
    separation,
)
from boid_flocking.domain.snapshot import Snapshot


def _snapshot(positions: list[list[float]], velocities: list[list[float]] | None = None) -> Snapshot:
    if velocities is None:
        velocities = [[0.0, 0.0, 0.0]] * len(positions)
    return Snapshot.from_arrays(0, positions, velocities)


class TestSeparation:
    def test_pair_pushed_apart_along_connecting_axis(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        cfg = FlockConfiguration(separation_radius=10.0, cohesion_radius=20.0)
        first = separation(snap, 0, cfg)
        second = separation(snap, 1, cfg)
        assert first[0] < 0.0 and second[0] > 0.0
        np.testing.assert_allclose(first[1:], [0.0, 0.0])
        np.testing.assert_allclose(second[1:], [0.0, 0.0])
        np.testing.assert_allclose(first, -second)

    def test_outside_radius_contributes_nothing(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        cfg = FlockConfiguration(separation_radius=5.0)
        assert np.array_equal(separation(snap, 0, cfg), np.zeros(3))

    def test_coincident_agents_yield_no_nan(self) -> None:
        snap = _snapshot([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        for weighting in SeparationWeighting:
            cfg = FlockConfiguration(separation_weighting=weighting)
            out = separation(snap, 0, cfg)
            assert not np.any(np.isnan(out))

    @pytest.mark.parametrize("weighting", list(SeparationWeighting))
    def test_magnitude_non_increasing_towards_radius(
        self, weighting: SeparationWeighting
    ) -> None:
        cfg = FlockConfiguration(separation_radius=5.0, separation_weighting=weighting)
        magnitudes = []
        for distance in (0.25, 0.5, 1.0, 2.0, 3.5, 4.99):
            snap = _snapshot([[0.0, 0.0, 0.0], [distance, 0.0, 0.0]])
            magnitudes.append(float(np.linalg.norm(separation(snap, 0, cfg))))
        assert all(a >= b for a, b in zip(magnitudes, magnitudes[1:]))
        assert magnitudes[-1] > 0.0

    def test_inverse_square_weighting(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        cfg = FlockConfiguration(
            separation_radius=5.0,
            separation_factor=1.0,
            separation_weighting=SeparationWeighting.INVERSE_SQUARE,
        )
        np.testing.assert_allclose(separation(snap, 0, cfg), [-0.25, 0.0, 0.0])


class TestCohesion:
    def test_steers_towards_neighbour_centroid(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 4.0, 0.0]])
        cfg = FlockConfiguration(separation_radius=1.0, cohesion_radius=10.0, cohesion_factor=0.5)
        np.testing.assert_allclose(cohesion(snap, 0, cfg), [0.5, 1.0, 0.0])

    def test_radius_scope_ignores_far_agents(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [100.0, 0.0, 0.0]])
        cfg = FlockConfiguration(cohesion_radius=10.0)
        assert np.array_equal(cohesion(snap, 0, cfg), np.zeros(3))

    def test_global_scope_uses_every_other_agent(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [100.0, 0.0, 0.0], [0.0, 100.0, 0.0]])
        cfg = FlockConfiguration(cohesion_scope=CohesionScope.GLOBAL, cohesion_factor=1.0)
        np.testing.assert_allclose(cohesion(snap, 0, cfg), [50.0, 50.0, 0.0])

    def test_nearest_scope_uses_closest_fraction(self) -> None:
        positions = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]
        positions += [[30.0 + i, 0.0, 0.0] for i in range(6)]
        snap = _snapshot(positions)
        cfg = FlockConfiguration(
            cohesion_scope=CohesionScope.NEAREST,
            nearest_fraction=0.25,
            cohesion_factor=1.0,
        )
        # 8 agents * 0.25 = 2 sampled, the agent itself plus one neighbour
        np.testing.assert_allclose(cohesion(snap, 0, cfg), [1.0, 0.0, 0.0])

    def test_normalized_steering_has_factor_length(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
        cfg = FlockConfiguration(normalize_steering=True, cohesion_factor=0.04)
        np.testing.assert_allclose(cohesion(snap, 0, cfg), [0.04, 0.0, 0.0])

    def test_non_positive_radius_selects_nobody(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        cfg = FlockConfiguration(separation_radius=-1.0, cohesion_radius=-1.0)
        engine = ClassicRuleEngine(cfg)
        assert np.array_equal(engine.steering(snap, [0, 1]), np.zeros((2, 3)))


class TestAlignment:
    def test_matched_velocities_give_zero(self) -> None:
        rng = np.random.default_rng(3)
        positions = rng.uniform(-2.0, 2.0, size=(6, 3)).tolist()
        velocities = [[1.5, -2.0, 0.25]] * 6
        snap = _snapshot(positions, velocities)
        cfg = FlockConfiguration(cohesion_radius=20.0)
        for agent_id in range(6):
            np.testing.assert_allclose(alignment(snap, agent_id, cfg), np.zeros(3), atol=1e-12)

    def test_steers_towards_mean_velocity(self) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 2.0, 0.0]],
            [[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [0.0, 4.0, 0.0]],
        )
        cfg = FlockConfiguration(cohesion_radius=10.0, alignment_factor=1.0)
        np.testing.assert_allclose(alignment(snap, 0, cfg), [1.0, 2.0, 0.0])

    def test_separate_alignment_radius(self) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [8.0, 0.0, 0.0]],
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]],
        )
        cfg = FlockConfiguration(cohesion_radius=10.0, alignment_radius=5.0)
        assert np.array_equal(alignment(snap, 0, cfg), np.zeros(3))


class TestZeroNeighbours:
    @pytest.mark.parametrize("model", list(RuleModel))
    def test_isolated_agents_receive_zero(self, model: RuleModel) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [100.0, 0.0, 0.0]],
            [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        )
        engine = create_rule_engine(FlockConfiguration(rule_model=model))
        parts = engine.components(snap, [0, 1])
        assert np.array_equal(parts.cohesion, np.zeros((2, 3)))
        assert np.array_equal(parts.separation, np.zeros((2, 3)))
        assert np.array_equal(parts.alignment, np.zeros((2, 3)))

    def test_single_agent_flock(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0]], [[1.0, 0.0, 0.0]])
        engine = ClassicRuleEngine(FlockConfiguration())
        assert np.array_equal(engine.steering(snap, [0]), np.zeros((1, 3)))

    def test_empty_selection(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0]])
        assert ClassicRuleEngine(FlockConfiguration()).steering(snap, []).shape == (0, 3)


class TestFollowLeader:
    def test_followers_steer_to_leader(self) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]],
            [[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]],
        )
        cfg = FlockConfiguration(
            follow_leader=True,
            separation_radius=1.0,
            cohesion_factor=0.04,
            alignment_factor=0.02,
        )
        np.testing.assert_allclose(cohesion(snap, 1, cfg), [-0.2, 0.0, 0.0])
        np.testing.assert_allclose(alignment(snap, 1, cfg), [0.02, 0.0, 0.0])

    def test_leader_exempt(self) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]],
            [[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]],
        )
        cfg = FlockConfiguration(follow_leader=True, separation_radius=1.0)
        assert np.array_equal(cohesion(snap, 0, cfg), np.zeros(3))
        assert np.array_equal(alignment(snap, 0, cfg), np.zeros(3))

    def test_reynolds_leader_exempt(self) -> None:
        snap = _snapshot(
            [[0.0, 0.0, 0.0], [8.0, 0.0, 0.0]],
            [[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]],
        )
        engine = ReynoldsRuleEngine(
            FlockConfiguration(rule_model=RuleModel.REYNOLDS, follow_leader=True)
        )
        parts = engine.components(snap, [0, 1])
        assert np.array_equal(parts.cohesion[0], np.zeros(3))
        assert parts.cohesion[1][0] < 0.0


class TestReynoldsRuleEngine:
    def test_separation_limited_by_max_force(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        engine = ReynoldsRuleEngine(FlockConfiguration(rule_model=RuleModel.REYNOLDS))
        parts = engine.components(snap, [0])
        np.testing.assert_allclose(parts.separation[0], [-1.3, 0.0, 0.0])

    def test_separation_tier_excludes_other_rules(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], [[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        engine = ReynoldsRuleEngine(FlockConfiguration(rule_model=RuleModel.REYNOLDS))
        parts = engine.components(snap, [0])
        assert np.array_equal(parts.cohesion, np.zeros((1, 3)))
        assert np.array_equal(parts.alignment, np.zeros((1, 3)))

    def test_cohesion_in_outer_tier(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [8.0, 0.0, 0.0]])
        engine = ReynoldsRuleEngine(FlockConfiguration(rule_model=RuleModel.REYNOLDS))
        parts = engine.components(snap, [0])
        np.testing.assert_allclose(parts.cohesion[0], [1.3, 0.0, 0.0])

    def test_weighted_sum(self) -> None:
        snap = _snapshot([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        engine = ReynoldsRuleEngine(FlockConfiguration(rule_model=RuleModel.REYNOLDS))
        np.testing.assert_allclose(engine.steering(snap, [0])[0], [-1.95, 0.0, 0.0])


class TestRuleEngineContract:
    @pytest.mark.parametrize("model", list(RuleModel))
    def test_batch_matches_single_agent_calls(self, model: RuleModel) -> None:
        rng = np.random.default_rng(11)
        snap = _snapshot(
            rng.uniform(-6.0, 6.0, size=(12, 3)).tolist(),
            rng.uniform(-3.0, 3.0, size=(12, 3)).tolist(),
        )
        engine = create_rule_engine(FlockConfiguration(rule_model=model))
        batch = engine.steering(snap, np.arange(12))
        for agent_id in range(12):
            np.testing.assert_allclose(batch[agent_id], engine.steering(snap, agent_id)[0])

    def test_factory_and_protocol(self) -> None:
        classic = create_rule_engine(FlockConfiguration())
        reynolds = create_rule_engine(FlockConfiguration(rule_model=RuleModel.REYNOLDS))
        assert isinstance(classic, ClassicRuleEngine)
        assert isinstance(reynolds, ReynoldsRuleEngine)
        assert isinstance(classic, RuleEngine)
