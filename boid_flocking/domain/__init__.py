"""Domain layer: agent snapshots, storage, boundary policies and flocking rules."""

from boid_flocking.domain.boundary import (
    BoundaryPolicy,
    BounceBoundary,
    ReflectBoundary,
    SoftReflectBoundary,
    WrapBoundary,
    create_boundary_policy,
)
from boid_flocking.domain.initializer import initialize_agents, random_unit_vector
from boid_flocking.domain.rules import (
    ClassicRuleEngine,
    ReynoldsRuleEngine,
    RuleComponents,
    RuleEngine,
    alignment,
    cohesion,
    create_rule_engine,
    separation,
)
from boid_flocking.domain.snapshot import AgentState, Snapshot
from boid_flocking.domain.store import AgentStore
from boid_flocking.domain.vectors import clamp_speed, limit_magnitude, reflect, safe_normalize

__all__ = [
    "AgentState",
    "AgentStore",
    "BoundaryPolicy",
    "BounceBoundary",
    "ClassicRuleEngine",
    "ReflectBoundary",
    "ReynoldsRuleEngine",
    "RuleComponents",
    "RuleEngine",
    "Snapshot",
    "SoftReflectBoundary",
    "WrapBoundary",
    "alignment",
    "clamp_speed",
    "cohesion",
    "create_boundary_policy",
    "create_rule_engine",
    "initialize_agents",
    "limit_magnitude",
    "random_unit_vector",
    "reflect",
    "safe_normalize",
    "separation",
]
