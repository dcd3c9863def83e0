"""Tests for configuration dataclasses and their validation."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from boid_flocking.config.types import (
    BoundaryPolicyKind,
    CohesionScope,
    ExecutionMode,
    FlockConfiguration,
    RuleModel,
    RunConfig,
    SchedulerConfig,
    SeparationWeighting,
)


class TestFlockConfiguration:
    def test_defaults(self) -> None:
        cfg = FlockConfiguration()
        assert cfg.max_velocity == 25.0
        assert cfg.separation_radius == 5.0
        assert cfg.cohesion_radius == 10.0
        assert cfg.boundary_policy is BoundaryPolicyKind.BOUNCE
        assert cfg.rule_model is RuleModel.CLASSIC
        assert cfg.cohesion_scope is CohesionScope.RADIUS
        assert cfg.separation_weighting is SeparationWeighting.UNIT
        assert cfg.volume_bounds == (50.0, 50.0, 50.0)
        assert cfg.follow_leader is False

    def test_frozen(self) -> None:
        cfg = FlockConfiguration()
        with pytest.raises(AttributeError):
            cfg.max_velocity = 1.0  # type: ignore[misc]

    def test_enum_fields_accept_string_values(self) -> None:
        cfg = FlockConfiguration(
            boundary_policy="wraparound",  # type: ignore[arg-type]
            rule_model="reynolds",  # type: ignore[arg-type]
            cohesion_scope="nearest",  # type: ignore[arg-type]
            separation_weighting="inverse_square",  # type: ignore[arg-type]
        )
        assert cfg.boundary_policy is BoundaryPolicyKind.WRAPAROUND
        assert cfg.rule_model is RuleModel.REYNOLDS
        assert cfg.cohesion_scope is CohesionScope.NEAREST
        assert cfg.separation_weighting is SeparationWeighting.INVERSE_SQUARE

    def test_unknown_enum_value_rejected(self) -> None:
        with pytest.raises(ValueError, match="boundary_policy must be one of"):
            FlockConfiguration(boundary_policy="teleport")  # type: ignore[arg-type]

    def test_bounds_coerced_to_float_tuple(self) -> None:
        cfg = FlockConfiguration(volume_bounds=[10, 20, 30])  # type: ignore[arg-type]
        assert cfg.volume_bounds == (10.0, 20.0, 30.0)

    def test_bounds_must_have_three_components(self) -> None:
        with pytest.raises(ValueError, match="exactly three"):
            FlockConfiguration(volume_bounds=(1.0, 2.0))  # type: ignore[arg-type]

    def test_non_finite_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_velocity must be finite"):
            FlockConfiguration(max_velocity=math.inf)

    def test_degenerate_values_accepted(self) -> None:
        cfg = FlockConfiguration(
            max_velocity=0.0,
            separation_radius=-1.0,
            cohesion_radius=-2.0,
            volume_bounds=(0.0, 0.0, 0.0),
        )
        assert cfg.max_velocity == 0.0
        assert cfg.separation_radius == -1.0

    def test_nearest_fraction_range(self) -> None:
        with pytest.raises(ValueError, match="nearest_fraction"):
            FlockConfiguration(nearest_fraction=1.5)

    def test_speed_boost_divisor_positive(self) -> None:
        with pytest.raises(ValueError, match="speed_boost_divisor"):
            FlockConfiguration(speed_boost_divisor=0.0)

    def test_alignment_radius_falls_back_to_cohesion(self) -> None:
        assert FlockConfiguration(cohesion_radius=12.0).effective_alignment_radius == 12.0
        cfg = FlockConfiguration(cohesion_radius=12.0, alignment_radius=7.0)
        assert cfg.effective_alignment_radius == 7.0


class TestSchedulerConfig:
    def test_defaults(self) -> None:
        cfg = SchedulerConfig()
        assert cfg.execution_mode is ExecutionMode.THREADED
        assert cfg.max_workers is None
        assert cfg.chunk_size == 1

    def test_string_mode_coerced(self) -> None:
        cfg = SchedulerConfig(execution_mode="vectorized")  # type: ignore[arg-type]
        assert cfg.execution_mode is ExecutionMode.VECTORIZED

    @pytest.mark.parametrize("kwargs", [{"max_workers": 0}, {"chunk_size": 0}])
    def test_invalid_sizes_rejected(self, kwargs: dict[str, int]) -> None:
        with pytest.raises(ValueError):
            SchedulerConfig(**kwargs)  # type: ignore[arg-type]


class TestRunConfig:
    def test_defaults_nest_flock_and_scheduler(self) -> None:
        cfg = RunConfig()
        assert isinstance(cfg.flock, FlockConfiguration)
        assert isinstance(cfg.scheduler, SchedulerConfig)
        assert cfg.out_dir == Path("data")

    def test_steps_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="steps must be >= 1"):
            RunConfig(steps=0)

    def test_negative_delta_time_rejected(self) -> None:
        with pytest.raises(ValueError, match="delta_time"):
            RunConfig(delta_time=-0.1)

    def test_log_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="log_interval"):
            RunConfig(log_interval=0)

    def test_non_positive_amount_allowed(self) -> None:
        assert RunConfig(amount=0).amount == 0
