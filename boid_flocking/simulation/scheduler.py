"""Per-tick fan-out/fan-in of agent work units.

One tick walks the state machine ``IDLE -> DISPATCHED -> ALL_COMPLETE ->
COMMITTED -> IDLE``:

1. take the store's current snapshot and a fresh back buffer, split the agent
   rows into work units and dispatch them;
2. each unit reads only the snapshot and writes only its own rows of the back
   buffer, so no locking is needed while units run;
3. wait for every unit (the barrier);
4. commit the full back buffer to the store.

If any unit raises, the tick is abandoned before commit: the store keeps its
previous snapshot and the caller gets a ``TickError``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from enum import Enum

import numpy as np

from boid_flocking.config.types import ExecutionMode, FlockConfiguration, SchedulerConfig
from boid_flocking.domain.boundary import BoundaryPolicy
from boid_flocking.domain.rules import RuleEngine
from boid_flocking.domain.snapshot import Snapshot
from boid_flocking.domain.store import AgentStore
from boid_flocking.domain.vectors import clamp_speed

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Lifecycle of one tick."""

    IDLE = "idle"
    DISPATCHED = "dispatched"
    ALL_COMPLETE = "all_complete"
    COMMITTED = "committed"


class TickError(RuntimeError):
    """A work unit failed; the tick was aborted without committing."""


class SchedulerStateError(RuntimeError):
    """A tick was requested while another one had not returned to idle."""


def speed_boost(config: FlockConfiguration, noise: float) -> float:
    """Forward boost granted to agents slower than ``config.min_speed``."""
    return config.max_velocity * (1.0 + noise) / config.speed_boost_divisor


def run_work_unit(
    snapshot: Snapshot,
    rows: np.ndarray,
    rules: RuleEngine,
    boundary: BoundaryPolicy,
    config: FlockConfiguration,
    delta_time: float,
    noise: float,
    out_positions: np.ndarray,
    out_velocities: np.ndarray,
) -> None:
    """Advance the agents in ``rows`` by one tick into the output buffers."""
    old_positions = snapshot.positions[rows]
    old_velocities = snapshot.velocities[rows]
    steer = rules.steering(snapshot, rows)
    push = boundary.velocity_delta(old_positions, old_velocities, config.volume_bounds)
    velocities = clamp_speed(
        old_velocities + steer + push,
        config.max_velocity,
        min_speed=config.min_speed,
        boost=speed_boost(config, noise),
    )
    positions = old_positions + velocities * delta_time
    out_positions[rows] = boundary.correct_position(positions, config.volume_bounds)
    out_velocities[rows] = velocities


class ParallelStepScheduler:
    """Runs one tick per ``step`` call using the configured execution mode."""

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        on_transition: Callable[[SchedulerState], None] | None = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self._on_transition = on_transition
        self._state = SchedulerState.IDLE
        self._state_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def _transition(self, new_state: SchedulerState) -> None:
        self._state = new_state
        if self._on_transition is not None:
            self._on_transition(new_state)

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers, thread_name_prefix="flock-unit"
            )
        return self._executor

    def partition(self, n_agents: int) -> list[np.ndarray]:
        """Split agent rows into independent work units."""
        if n_agents <= 0:
            return []
        rows = np.arange(n_agents, dtype=np.intp)
        if self.config.execution_mode is ExecutionMode.VECTORIZED:
            return [rows]
        size = self.config.chunk_size
        return [rows[start : start + size] for start in range(0, n_agents, size)]

    def step(
        self,
        store: AgentStore,
        rules: RuleEngine,
        boundary: BoundaryPolicy,
        config: FlockConfiguration,
        delta_time: float,
        noise: float = 0.0,
    ) -> Snapshot:
        """Run one full tick and return the newly committed snapshot.

        The scheduler is back in ``IDLE`` when this returns or raises, even if
        an ``on_transition`` callback fails part-way through the tick.
        """
        with self._state_lock:
            if self._state is not SchedulerState.IDLE:
                raise SchedulerStateError(f"cannot start a tick while {self._state.value}")
            self._state = SchedulerState.DISPATCHED

        try:
            if self._on_transition is not None:
                self._on_transition(SchedulerState.DISPATCHED)
            try:
                snapshot = store.current()
                out_positions, out_velocities = store.allocate_back_buffer()
                units = self.partition(len(snapshot))
                args = (rules, boundary, config, delta_time, noise, out_positions, out_velocities)
                if self.config.execution_mode is ExecutionMode.THREADED and len(units) > 1:
                    pool = self._pool()
                    futures = [pool.submit(run_work_unit, snapshot, rows, *args) for rows in units]
                    wait(futures)
                    for future in futures:
                        future.result()
                else:
                    for rows in units:
                        run_work_unit(snapshot, rows, *args)
            except Exception as exc:
                logger.exception("tick %d aborted: work unit failed", store.tick + 1)
                raise TickError(f"tick {store.tick + 1} aborted: {exc}") from exc

            self._transition(SchedulerState.ALL_COMPLETE)
            committed = store.commit_arrays(out_positions, out_velocities)
            self._transition(SchedulerState.COMMITTED)
            logger.debug("tick %d committed (%d units)", committed.tick, len(units))
        finally:
            self._transition(SchedulerState.IDLE)
        return committed

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> ParallelStepScheduler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
