"""Flock metrics computed from committed snapshots."""

from boid_flocking.metrics.flock import (
    centroid,
    compute_tick_metrics,
    flock_group_count,
    fraction_out_of_bounds,
    mean_nearest_neighbor_distance,
    mean_speed,
    polarization,
    speed_stats,
)

__all__ = [
    "centroid",
    "compute_tick_metrics",
    "flock_group_count",
    "fraction_out_of_bounds",
    "mean_nearest_neighbor_distance",
    "mean_speed",
    "polarization",
    "speed_stats",
]
