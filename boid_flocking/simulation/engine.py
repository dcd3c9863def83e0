"""Simulation facade: seeded initialization, ticking and batch runs.

The in-process contract consumed by renderers and tests is
``initialize`` / ``tick`` / ``positions`` / ``velocities``.  ``run_simulation``
drives a full seeded run and exports trajectory and flock-metric Parquet
files for offline analysis.
"""

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import asdict
from enum import Enum
from pathlib import Path

import pyarrow.parquet as pq

from boid_flocking.config.constants import FLUSH_THRESHOLD, GROUP_LINK_RADIUS
from boid_flocking.config.types import (
    FlockConfiguration,
    RunConfig,
    RunSummary,
    SchedulerConfig,
)
from boid_flocking.domain.boundary import BoundaryPolicy, create_boundary_policy
from boid_flocking.domain.initializer import initialize_agents
from boid_flocking.domain.rules import RuleEngine, create_rule_engine
from boid_flocking.domain.snapshot import Snapshot
from boid_flocking.domain.store import AgentStore
from boid_flocking.io.paths import (
    flock_metrics_path,
    logs_dir,
    run_config_path,
    trajectory_path,
)
from boid_flocking.io.schemas import (
    FLOCK_METRICS_SCHEMA,
    RUN_CONFIG_SCHEMA_VERSION,
    TRAJECTORY_SCHEMA,
)
from boid_flocking.metrics.flock import compute_tick_metrics
from boid_flocking.simulation.persistence import (
    empty_columns,
    flush_columns,
    write_empty_table,
)
from boid_flocking.simulation.scheduler import ParallelStepScheduler

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]


class SimulationHandle:
    """Owns every piece of mutable state for one flock.

    The store is the only thing a tick mutates.  The RNG is private to the
    handle, so two handles built from the same seed evolve identically.
    """

    def __init__(
        self,
        config: FlockConfiguration,
        store: AgentStore,
        rng: random.Random,
        scheduler_config: SchedulerConfig | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.rng = rng
        self.rules: RuleEngine = create_rule_engine(config)
        self.boundary: BoundaryPolicy = create_boundary_policy(config)
        self.scheduler = ParallelStepScheduler(scheduler_config)

    @property
    def snapshot(self) -> Snapshot:
        return self.store.current()

    @property
    def tick_count(self) -> int:
        return self.store.tick

    @property
    def amount(self) -> int:
        return self.store.count

    def close(self) -> None:
        self.scheduler.close()

    def __enter__(self) -> SimulationHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# In-process contract
# ---------------------------------------------------------------------------


def initialize(
    config: FlockConfiguration,
    amount: int,
    seed: int | None = None,
    scheduler_config: SchedulerConfig | None = None,
) -> SimulationHandle:
    """Create a flock of ``amount`` agents; ``seed`` makes the run reproducible."""
    rng = random.Random(seed)
    store = initialize_agents(config, amount, rng)
    handle = SimulationHandle(config, store, rng, scheduler_config)
    logger.info(
        "initialized flock: amount=%d seed=%s rule_model=%s boundary=%s mode=%s",
        store.count,
        seed,
        config.rule_model.value,
        config.boundary_policy.value,
        handle.scheduler.config.execution_mode.value,
    )
    return handle


def tick(handle: SimulationHandle, delta_time: float) -> Snapshot:
    """Advance the flock by one step and return the committed snapshot.

    The noise term for the speed boost is drawn here, once per tick, so the
    outcome does not depend on how the scheduler splits the work.
    """
    if not math.isfinite(delta_time):
        raise ValueError("delta_time must be finite")
    noise = handle.rng.random()
    return handle.scheduler.step(
        handle.store,
        handle.rules,
        handle.boundary,
        handle.config,
        delta_time,
        noise=noise,
    )


def positions(handle: SimulationHandle) -> tuple[Vec3, ...]:
    """Latest committed positions, ordered by agent id."""
    return handle.snapshot.position_tuples()


def velocities(handle: SimulationHandle) -> tuple[Vec3, ...]:
    """Latest committed velocities, ordered by agent id."""
    return handle.snapshot.velocity_tuples()


# ---------------------------------------------------------------------------
# Batch run with Parquet export
# ---------------------------------------------------------------------------


def _deterministic_run_id(run_config: RunConfig) -> str:
    """Build a run ID that is stable for identical population and seed."""
    seed = "none" if run_config.seed is None else str(run_config.seed)
    return f"flock_n{run_config.amount}_s{seed}"


def _json_default(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def run_config_payload(run_config: RunConfig, run_id: str) -> dict[str, object]:
    """JSON-ready record of every parameter that shaped a run."""
    payload = json.loads(json.dumps(asdict(run_config), default=_json_default))
    return {
        "run_id": run_id,
        "schema_version": RUN_CONFIG_SCHEMA_VERSION,
        "config": payload,
    }


def _append_trajectory(
    columns: dict[str, list[int | float | str]], run_id: str, snapshot: Snapshot
) -> None:
    count = len(snapshot)
    pos = snapshot.positions
    vel = snapshot.velocities
    columns["run_id"].extend([run_id] * count)
    columns["tick"].extend([snapshot.tick] * count)
    columns["agent_id"].extend(range(count))
    columns["x"].extend(pos[:, 0].tolist())
    columns["y"].extend(pos[:, 1].tolist())
    columns["z"].extend(pos[:, 2].tolist())
    columns["vx"].extend(vel[:, 0].tolist())
    columns["vy"].extend(vel[:, 1].tolist())
    columns["vz"].extend(vel[:, 2].tolist())


def run_simulation(run_config: RunConfig) -> RunSummary:
    """Run one seeded flock for ``run_config.steps`` ticks and persist outputs.

    Writes under ``out_dir``:

    - ``logs/trajectory.parquet``: agent states at tick 0 and every
      ``log_interval`` ticks after that
    - ``logs/flock_metrics.parquet``: one row of flock metrics per tick
    - ``run_config.json``: the full configuration of the run
    """
    out_dir = Path(run_config.out_dir)
    logs_dir(out_dir).mkdir(parents=True, exist_ok=True)
    run_id = _deterministic_run_id(run_config)
    traj_path = trajectory_path(out_dir)
    metrics_path = flock_metrics_path(out_dir)
    bounds = run_config.flock.volume_bounds

    traj_columns = empty_columns(TRAJECTORY_SCHEMA)
    metric_columns = empty_columns(FLOCK_METRICS_SCHEMA)
    traj_writer: pq.ParquetWriter | None = None
    metric_writer: pq.ParquetWriter | None = None
    max_speed_observed = 0.0
    last_metrics: dict[str, float | int] = {}

    try:
        with initialize(
            run_config.flock,
            run_config.amount,
            seed=run_config.seed,
            scheduler_config=run_config.scheduler,
        ) as handle:
            snapshot = handle.snapshot
            for step in range(run_config.steps + 1):
                if step > 0:
                    snapshot = tick(handle, run_config.delta_time)

                last_metrics = compute_tick_metrics(snapshot, bounds, GROUP_LINK_RADIUS)
                metric_columns["run_id"].append(run_id)
                metric_columns["tick"].append(snapshot.tick)
                metric_columns["elapsed"].append(snapshot.tick * run_config.delta_time)
                for key, value in last_metrics.items():
                    metric_columns[key].append(value)
                tick_max = float(last_metrics["max_speed"])
                if not math.isnan(tick_max):
                    max_speed_observed = max(max_speed_observed, tick_max)

                if snapshot.tick % run_config.log_interval == 0:
                    _append_trajectory(traj_columns, run_id, snapshot)
                if len(traj_columns["run_id"]) >= FLUSH_THRESHOLD:
                    traj_writer = flush_columns(
                        traj_columns, traj_path, traj_writer, TRAJECTORY_SCHEMA
                    )
                if len(metric_columns["run_id"]) >= FLUSH_THRESHOLD:
                    metric_writer = flush_columns(
                        metric_columns, metrics_path, metric_writer, FLOCK_METRICS_SCHEMA
                    )
                logger.debug(
                    "tick %d: polarization=%.4f mean_speed=%.4f",
                    snapshot.tick,
                    last_metrics["polarization"],
                    last_metrics["mean_speed"],
                )

        traj_writer = flush_columns(traj_columns, traj_path, traj_writer, TRAJECTORY_SCHEMA)
        metric_writer = flush_columns(
            metric_columns, metrics_path, metric_writer, FLOCK_METRICS_SCHEMA
        )
    finally:
        if traj_writer is not None:
            traj_writer.close()
        if metric_writer is not None:
            metric_writer.close()

    if traj_writer is None:
        write_empty_table(traj_path, TRAJECTORY_SCHEMA)
    if metric_writer is None:
        write_empty_table(metrics_path, FLOCK_METRICS_SCHEMA)

    run_config_path(out_dir).write_text(
        json.dumps(run_config_payload(run_config, run_id), ensure_ascii=False, indent=2)
    )

    final_polarization = float(last_metrics["polarization"])
    final_mean_speed = float(last_metrics["mean_speed"])
    summary = RunSummary(
        run_id=run_id,
        amount=max(0, run_config.amount),
        steps=run_config.steps,
        final_polarization=None if math.isnan(final_polarization) else final_polarization,
        final_mean_speed=None if math.isnan(final_mean_speed) else final_mean_speed,
        max_speed_observed=max_speed_observed,
        trajectory_path=traj_path,
        metrics_path=metrics_path,
    )
    logger.info(
        "run %s finished: steps=%d final_polarization=%s max_speed=%.4f",
        run_id,
        run_config.steps,
        summary.final_polarization,
        summary.max_speed_observed,
    )
    return summary
