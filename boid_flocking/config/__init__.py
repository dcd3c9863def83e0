"""Configuration layer: constants and typed config dataclasses."""

from boid_flocking.config.constants import (
    AMOUNT,
    DELTA_TIME,
    FLUSH_THRESHOLD,
    LEADER_INDEX,
    MAX_VELOCITY,
    NUM_STEPS,
)
from boid_flocking.config.types import (
    BoundaryPolicyKind,
    CohesionScope,
    ExecutionMode,
    FlockConfiguration,
    RuleModel,
    RunConfig,
    RunSummary,
    SchedulerConfig,
    SeparationWeighting,
)

__all__ = [
    "AMOUNT",
    "BoundaryPolicyKind",
    "CohesionScope",
    "DELTA_TIME",
    "ExecutionMode",
    "FLUSH_THRESHOLD",
    "FlockConfiguration",
    "LEADER_INDEX",
    "MAX_VELOCITY",
    "NUM_STEPS",
    "RuleModel",
    "RunConfig",
    "RunSummary",
    "SchedulerConfig",
    "SeparationWeighting",
]
