"""Configuration dataclasses and mode enums for flocking runs.

All frozen dataclasses that parameterise the flock rules, the tick scheduler
and batch runs live here.

Degenerate numbers (negative radii, non-positive bounds or speed) are accepted
on purpose: the simulation turns them into a valid no-op or motionless run.
Only structurally malformed values are rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from boid_flocking.config.constants import (
    ALIGNMENT_FACTOR,
    AMOUNT,
    BOUNDARY_FACTOR,
    COHESION_FACTOR,
    COHESION_RADIUS,
    DELTA_TIME,
    INITIAL_BOUNDS,
    MAX_FORCE,
    MAX_VELOCITY,
    NEAREST_FRACTION,
    NUM_STEPS,
    REYNOLDS_ALIGNMENT_WEIGHT,
    REYNOLDS_COHESION_WEIGHT,
    REYNOLDS_SEPARATION_WEIGHT,
    SEPARATION_FACTOR,
    SEPARATION_RADIUS,
    SPEED_BOOST_DIVISOR,
    VOLUME_BOUNDS,
)

__all__ = [
    "BoundaryPolicyKind",
    "CohesionScope",
    "ExecutionMode",
    "FlockConfiguration",
    "RuleModel",
    "RunConfig",
    "RunSummary",
    "SchedulerConfig",
    "SeparationWeighting",
]

Vec3 = tuple[float, float, float]

# ---------------------------------------------------------------------------
# Mode enums
# ---------------------------------------------------------------------------


class BoundaryPolicyKind(Enum):
    """Strategy applied when an agent leaves the simulated volume."""

    BOUNCE = "bounce"
    REFLECT = "reflect"
    SOFT_REFLECT = "soft_reflect"
    WRAPAROUND = "wraparound"


class RuleModel(Enum):
    """Force model combining cohesion, separation and alignment."""

    CLASSIC = "classic"
    REYNOLDS = "reynolds"


class CohesionScope(Enum):
    """Which agents contribute to the cohesion centroid."""

    RADIUS = "radius"
    GLOBAL = "global"
    NEAREST = "nearest"


class SeparationWeighting(Enum):
    """Per-neighbour weight of the unit avoidance direction."""

    UNIT = "unit"
    INVERSE_DISTANCE = "inverse_distance"
    INVERSE_SQUARE = "inverse_square"


class ExecutionMode(Enum):
    """How the per-agent work units of one tick are executed."""

    SEQUENTIAL = "sequential"
    THREADED = "threaded"
    VECTORIZED = "vectorized"


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _as_vec3(raw: object, name: str) -> Vec3:
    try:
        values = tuple(float(v) for v in raw)  # type: ignore[attr-defined]
    except TypeError as exc:
        raise ValueError(f"{name} must be a sequence of three numbers") from exc
    if len(values) != 3:
        raise ValueError(f"{name} must have exactly three components")
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"{name} components must be finite")
    return values  # type: ignore[return-value]


def _require_finite(value: float, name: str) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite")


def _coerce_enum(enum_cls: type[Enum], raw: object, name: str) -> Enum:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError as exc:
        valid = ", ".join(str(member.value) for member in enum_cls)
        raise ValueError(f"{name} must be one of {valid}") from exc


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlockConfiguration:
    """Immutable per-run flocking parameters."""

    max_velocity: float = MAX_VELOCITY
    separation_radius: float = SEPARATION_RADIUS
    cohesion_radius: float = COHESION_RADIUS
    alignment_radius: float | None = None
    """Defaults to ``cohesion_radius`` (two-tier layout)."""
    cohesion_factor: float = COHESION_FACTOR
    separation_factor: float = SEPARATION_FACTOR
    alignment_factor: float = ALIGNMENT_FACTOR
    boundary_policy: BoundaryPolicyKind = BoundaryPolicyKind.BOUNCE
    boundary_factor: float = BOUNDARY_FACTOR
    volume_bounds: Vec3 = VOLUME_BOUNDS
    initial_bounds: Vec3 = INITIAL_BOUNDS
    follow_leader: bool = False
    rule_model: RuleModel = RuleModel.CLASSIC
    cohesion_scope: CohesionScope = CohesionScope.RADIUS
    nearest_fraction: float = NEAREST_FRACTION
    separation_weighting: SeparationWeighting = SeparationWeighting.UNIT
    normalize_steering: bool = False
    """Scale cohesion/alignment steers to unit length before the factor."""
    max_force: float = MAX_FORCE
    separation_weight: float = REYNOLDS_SEPARATION_WEIGHT
    alignment_weight: float = REYNOLDS_ALIGNMENT_WEIGHT
    cohesion_weight: float = REYNOLDS_COHESION_WEIGHT
    min_speed: float = 0.0
    """Agents slower than this get a noisy forward boost (0 disables)."""
    speed_boost_divisor: float = SPEED_BOOST_DIVISOR

    def __post_init__(self) -> None:
        object.__setattr__(self, "volume_bounds", _as_vec3(self.volume_bounds, "volume_bounds"))
        object.__setattr__(
            self, "initial_bounds", _as_vec3(self.initial_bounds, "initial_bounds")
        )
        object.__setattr__(
            self,
            "boundary_policy",
            _coerce_enum(BoundaryPolicyKind, self.boundary_policy, "boundary_policy"),
        )
        object.__setattr__(
            self, "rule_model", _coerce_enum(RuleModel, self.rule_model, "rule_model")
        )
        object.__setattr__(
            self,
            "cohesion_scope",
            _coerce_enum(CohesionScope, self.cohesion_scope, "cohesion_scope"),
        )
        object.__setattr__(
            self,
            "separation_weighting",
            _coerce_enum(
                SeparationWeighting, self.separation_weighting, "separation_weighting"
            ),
        )
        for name in (
            "max_velocity",
            "separation_radius",
            "cohesion_radius",
            "cohesion_factor",
            "separation_factor",
            "alignment_factor",
            "boundary_factor",
            "max_force",
            "separation_weight",
            "alignment_weight",
            "cohesion_weight",
            "min_speed",
        ):
            _require_finite(float(getattr(self, name)), name)
        if self.alignment_radius is not None:
            _require_finite(float(self.alignment_radius), "alignment_radius")
        if not 0.0 <= self.nearest_fraction <= 1.0:
            raise ValueError("nearest_fraction must be in [0.0, 1.0]")
        if self.speed_boost_divisor <= 0.0:
            raise ValueError("speed_boost_divisor must be > 0")

    @property
    def effective_alignment_radius(self) -> float:
        """Alignment tier radius, falling back to the cohesion tier."""
        if self.alignment_radius is None:
            return self.cohesion_radius
        return self.alignment_radius


@dataclass(frozen=True)
class SchedulerConfig:
    """Execution strategy for the per-tick fan-out."""

    execution_mode: ExecutionMode = ExecutionMode.THREADED
    max_workers: int | None = None
    """``None`` lets the thread pool pick a size from the CPU count."""
    chunk_size: int = 1
    """Agents per work unit; one agent per unit by default."""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "execution_mode",
            _coerce_enum(ExecutionMode, self.execution_mode, "execution_mode"),
        )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")


@dataclass(frozen=True)
class RunConfig:
    """Batch-run parameters: population, duration, output and nested configs."""

    amount: int = AMOUNT
    steps: int = NUM_STEPS
    delta_time: float = DELTA_TIME
    seed: int | None = 0
    out_dir: Path = Path("data")
    log_interval: int = 1
    """Record the trajectory every N ticks."""
    flock: FlockConfiguration = field(default_factory=FlockConfiguration)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise ValueError("steps must be >= 1")
        if not math.isfinite(self.delta_time) or self.delta_time < 0.0:
            raise ValueError("delta_time must be a finite value >= 0")
        if self.log_interval < 1:
            raise ValueError("log_interval must be >= 1")


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunSummary:
    """Top-level result for one batch run."""

    run_id: str
    amount: int
    steps: int
    final_polarization: float | None
    final_mean_speed: float | None
    max_speed_observed: float
    trajectory_path: Path
    metrics_path: Path
