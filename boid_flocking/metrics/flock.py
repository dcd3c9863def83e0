"""Collective-motion metrics: polarization, speed, spacing and group structure.

Every function takes a ``Snapshot`` and returns a plain float (or int).
Metrics that are undefined for the given flock size return NaN.
"""

from __future__ import annotations

import networkx as nx
import numpy as np

from boid_flocking.config.constants import GROUP_LINK_RADIUS
from boid_flocking.domain.snapshot import Snapshot
from boid_flocking.domain.vectors import safe_normalize


def _speeds(snapshot: Snapshot) -> np.ndarray:
    return np.linalg.norm(snapshot.velocities, axis=1)


def polarization(snapshot: Snapshot) -> float:
    """Length of the mean heading vector, in [0, 1].

    1.0 means every moving agent points the same way.  Motionless agents have
    no heading and contribute a zero vector.  NaN for an empty flock.
    """
    if len(snapshot) == 0:
        return float("nan")
    headings = safe_normalize(snapshot.velocities)
    return float(np.linalg.norm(headings.mean(axis=0)))


def mean_speed(snapshot: Snapshot) -> float:
    if len(snapshot) == 0:
        return float("nan")
    return float(_speeds(snapshot).mean())


def speed_stats(snapshot: Snapshot) -> tuple[float, float, float]:
    """Return ``(mean, max, population variance)`` of agent speeds."""
    if len(snapshot) == 0:
        nan = float("nan")
        return nan, nan, nan
    speeds = _speeds(snapshot)
    return float(speeds.mean()), float(speeds.max()), float(speeds.var())


def centroid(snapshot: Snapshot) -> tuple[float, float, float]:
    if len(snapshot) == 0:
        nan = float("nan")
        return nan, nan, nan
    x, y, z = snapshot.positions.mean(axis=0)
    return float(x), float(y), float(z)


def _pairwise_distances(positions: np.ndarray) -> np.ndarray:
    offsets = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    return np.sqrt(np.sum(offsets * offsets, axis=-1))


def mean_nearest_neighbor_distance(snapshot: Snapshot) -> float:
    """Mean distance from each agent to its closest other agent.

    NaN when fewer than two agents exist.
    """
    if len(snapshot) < 2:
        return float("nan")
    distances = _pairwise_distances(snapshot.positions)
    np.fill_diagonal(distances, np.inf)
    return float(distances.min(axis=1).mean())


def flock_group_count(snapshot: Snapshot, link_radius: float = GROUP_LINK_RADIUS) -> int:
    """Number of connected groups when agents closer than ``link_radius`` are linked.

    Returns 0 for an empty flock; every agent counts as its own group when
    ``link_radius`` is non-positive.
    """
    n_agents = len(snapshot)
    graph = nx.Graph()
    graph.add_nodes_from(range(n_agents))
    if n_agents > 1 and link_radius > 0.0:
        distances = _pairwise_distances(snapshot.positions)
        rows, cols = np.nonzero(np.triu(distances < link_radius, k=1))
        graph.add_edges_from(zip(rows.tolist(), cols.tolist()))
    return nx.number_connected_components(graph)


def fraction_out_of_bounds(snapshot: Snapshot, bounds: tuple[float, float, float]) -> float:
    """Share of agents with any coordinate strictly outside ``[-|b|, |b|]``."""
    if len(snapshot) == 0:
        return float("nan")
    limits = np.abs(np.asarray(bounds, dtype=np.float64))
    outside = np.any(np.abs(snapshot.positions) > limits, axis=1)
    return float(outside.mean())


def compute_tick_metrics(
    snapshot: Snapshot,
    bounds: tuple[float, float, float],
    link_radius: float = GROUP_LINK_RADIUS,
) -> dict[str, float | int]:
    """Evaluate every per-tick flock metric, keyed by its column name."""
    speed_mean, speed_max, speed_var = speed_stats(snapshot)
    cx, cy, cz = centroid(snapshot)
    return {
        "polarization": polarization(snapshot),
        "mean_speed": speed_mean,
        "max_speed": speed_max,
        "speed_variance": speed_var,
        "mean_nearest_neighbor_distance": mean_nearest_neighbor_distance(snapshot),
        "group_count": flock_group_count(snapshot, link_radius),
        "fraction_out_of_bounds": fraction_out_of_bounds(snapshot, bounds),
        "centroid_x": cx,
        "centroid_y": cy,
        "centroid_z": cz,
    }
