"""Simulation layer: tick scheduling, the public facade and batch runs."""

from boid_flocking.simulation.engine import (
    SimulationHandle,
    initialize,
    positions,
    run_simulation,
    tick,
    velocities,
)
from boid_flocking.simulation.scheduler import (
    ParallelStepScheduler,
    SchedulerState,
    SchedulerStateError,
    TickError,
)

__all__ = [
    "ParallelStepScheduler",
    "SchedulerState",
    "SchedulerStateError",
    "SimulationHandle",
    "TickError",
    "initialize",
    "positions",
    "run_simulation",
    "tick",
    "velocities",
]
