"""Parquet schema definitions for simulation artifacts.

All Arrow schemas used for persisting trajectories and per-tick flock metrics
are centralised here so that every module works against the same column
contracts.
"""

from __future__ import annotations

import pyarrow as pa

# ---------------------------------------------------------------------------
# Schema version constants
# ---------------------------------------------------------------------------

RUN_CONFIG_SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Trajectory & metrics schemas
# ---------------------------------------------------------------------------

TRAJECTORY_SCHEMA = pa.schema(
    [
        ("run_id", pa.string()),
        ("tick", pa.int64()),
        ("agent_id", pa.int64()),
        ("x", pa.float64()),
        ("y", pa.float64()),
        ("z", pa.float64()),
        ("vx", pa.float64()),
        ("vy", pa.float64()),
        ("vz", pa.float64()),
    ]
)

# Single source of truth for per-tick flock metric names.
FLOCK_METRIC_NAMES = [
    "polarization",
    "mean_speed",
    "max_speed",
    "speed_variance",
    "mean_nearest_neighbor_distance",
    "group_count",
    "fraction_out_of_bounds",
    "centroid_x",
    "centroid_y",
    "centroid_z",
]

FLOCK_METRICS_SCHEMA = pa.schema(
    [
        ("run_id", pa.string()),
        ("tick", pa.int64()),
        ("elapsed", pa.float64()),
        ("polarization", pa.float64()),
        ("mean_speed", pa.float64()),
        ("max_speed", pa.float64()),
        ("speed_variance", pa.float64()),
        ("mean_nearest_neighbor_distance", pa.float64()),
        ("group_count", pa.int64()),
        ("fraction_out_of_bounds", pa.float64()),
        ("centroid_x", pa.float64()),
        ("centroid_y", pa.float64()),
        ("centroid_z", pa.float64()),
    ]
)
