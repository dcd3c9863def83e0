"""Flocking rule engines: cohesion, separation and alignment.

A rule engine maps a read-only ``Snapshot`` and a set of agent rows to one
velocity delta per row.  Engines never look at anything but the snapshot, so
the result for an agent does not depend on which other rows are evaluated in
the same call, on evaluation order, or on the worker that runs it.

Two force models are provided:

- ``ClassicRuleEngine``: displacement-based rules summed with per-rule factors.
  Supports one or two radius tiers, global / radius / nearest-N cohesion,
  optional unit-length steering and follow-the-leader mode.
- ``ReynoldsRuleEngine``: ``steer = limit(desired - velocity, max_force)`` per
  rule, with separation weighted above alignment and cohesion.  Agents inside
  the separation tier only count towards separation.

Every neighbour scan is an all-pairs pass over the snapshot (O(N^2) per tick).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from boid_flocking.config.constants import LEADER_INDEX
from boid_flocking.config.types import (
    CohesionScope,
    FlockConfiguration,
    RuleModel,
    SeparationWeighting,
)
from boid_flocking.domain.snapshot import Snapshot
from boid_flocking.domain.vectors import limit_magnitude, safe_normalize

# ---------------------------------------------------------------------------
# Shared geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleComponents:
    """Per-rule steering for a batch of agents, each ``(k, 3)``."""

    cohesion: np.ndarray
    separation: np.ndarray
    alignment: np.ndarray


@dataclass(frozen=True)
class _Neighbourhood:
    indices: np.ndarray
    self_positions: np.ndarray
    self_velocities: np.ndarray
    offsets: np.ndarray
    """``other - self`` for every pair, shape ``(k, N, 3)``."""
    dist_sq: np.ndarray
    others: np.ndarray
    """``(k, N)`` mask excluding each agent itself."""


def _as_indices(indices: object) -> np.ndarray:
    return np.atleast_1d(np.asarray(indices, dtype=np.intp))


def _neighbourhood(snapshot: Snapshot, indices: np.ndarray) -> _Neighbourhood:
    positions = snapshot.positions
    self_positions = positions[indices]
    offsets = positions[np.newaxis, :, :] - self_positions[:, np.newaxis, :]
    dist_sq = np.sum(offsets * offsets, axis=-1)
    others = np.arange(len(snapshot))[np.newaxis, :] != indices[:, np.newaxis]
    return _Neighbourhood(
        indices=indices,
        self_positions=self_positions,
        self_velocities=snapshot.velocities[indices],
        offsets=offsets,
        dist_sq=dist_sq,
        others=others,
    )


def _within(dist_sq: np.ndarray, radius: float) -> np.ndarray:
    """Strictly-inside test; a non-positive radius selects nobody."""
    if radius <= 0.0:
        return np.zeros_like(dist_sq, dtype=bool)
    return dist_sq < radius * radius


def _masked_mean(values: np.ndarray, mask: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Mean of ``values`` over ``mask`` along the neighbour axis.

    ``values`` is ``(k, N, 3)`` or ``(N, 3)`` (broadcast across rows).  Rows
    without any selected neighbour get a zero mean.
    """
    counts = np.sum(mask, axis=1)
    if values.ndim == 2:
        values = values[np.newaxis, :, :]
    totals = np.sum(np.where(mask[:, :, np.newaxis], values, 0.0), axis=1)
    means = np.zeros_like(totals)
    np.divide(totals, counts[:, np.newaxis], out=means, where=counts[:, np.newaxis] > 0)
    return means, counts


def _leader_rows(indices: np.ndarray, n_agents: int) -> np.ndarray:
    return (indices == LEADER_INDEX) & (n_agents > 0)


# ---------------------------------------------------------------------------
# Engine protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class RuleEngine(Protocol):
    """Contract shared by every force model: ``delta = f(snapshot, i, config)``."""

    config: FlockConfiguration

    def components(self, snapshot: Snapshot, indices: object) -> RuleComponents: ...

    def steering(self, snapshot: Snapshot, indices: object) -> np.ndarray: ...


# ---------------------------------------------------------------------------
# Classic displacement model
# ---------------------------------------------------------------------------


class ClassicRuleEngine:
    """Cohesion + separation + alignment as scaled displacement vectors."""

    def __init__(self, config: FlockConfiguration) -> None:
        self.config = config

    def components(self, snapshot: Snapshot, indices: object) -> RuleComponents:
        rows = _as_indices(indices)
        if rows.size == 0 or len(snapshot) == 0:
            empty = np.zeros((rows.size, 3), dtype=np.float64)
            return RuleComponents(cohesion=empty, separation=empty.copy(), alignment=empty.copy())
        hood = _neighbourhood(snapshot, rows)
        separation = self._separation(hood)
        if self.config.follow_leader:
            cohesion, alignment = self._follow_leader(snapshot, hood)
        else:
            cohesion = self._cohesion(hood)
            alignment = self._alignment(snapshot, hood)
        return RuleComponents(cohesion=cohesion, separation=separation, alignment=alignment)

    def steering(self, snapshot: Snapshot, indices: object) -> np.ndarray:
        parts = self.components(snapshot, indices)
        return parts.cohesion + parts.separation + parts.alignment

    def _shape_steer(self, steer: np.ndarray, factor: float) -> np.ndarray:
        if self.config.normalize_steering:
            steer = safe_normalize(steer)
        return steer * factor

    def _separation(self, hood: _Neighbourhood) -> np.ndarray:
        cfg = self.config
        mask = hood.others & _within(hood.dist_sq, cfg.separation_radius)
        away = safe_normalize(-hood.offsets)
        weighting = cfg.separation_weighting
        if weighting is SeparationWeighting.UNIT:
            weights = mask.astype(np.float64)
        else:
            denom = (
                np.sqrt(hood.dist_sq)
                if weighting is SeparationWeighting.INVERSE_DISTANCE
                else hood.dist_sq
            )
            weights = np.zeros_like(hood.dist_sq)
            np.divide(1.0, denom, out=weights, where=mask & (denom > 0.0))
        push = np.sum(away * weights[:, :, np.newaxis], axis=1)
        return push * cfg.separation_factor

    def _cohesion_mask(self, hood: _Neighbourhood) -> np.ndarray:
        cfg = self.config
        scope = cfg.cohesion_scope
        if scope is CohesionScope.GLOBAL:
            return hood.others
        if scope is CohesionScope.NEAREST:
            n_agents = hood.dist_sq.shape[1]
            # the sampled fraction includes the agent itself
            k = min(max(int(n_agents * cfg.nearest_fraction) - 1, 0), n_agents - 1)
            mask = np.zeros_like(hood.others)
            if k == 0:
                return mask
            ranked = np.where(hood.others, hood.dist_sq, np.inf)
            nearest = np.argsort(ranked, axis=1, kind="stable")[:, :k]
            np.put_along_axis(mask, nearest, True, axis=1)
            return mask & hood.others
        return hood.others & _within(hood.dist_sq, cfg.cohesion_radius)

    def _cohesion(self, hood: _Neighbourhood) -> np.ndarray:
        towards_centroid, _ = _masked_mean(hood.offsets, self._cohesion_mask(hood))
        return self._shape_steer(towards_centroid, self.config.cohesion_factor)

    def _alignment(self, snapshot: Snapshot, hood: _Neighbourhood) -> np.ndarray:
        cfg = self.config
        mask = hood.others & _within(hood.dist_sq, cfg.effective_alignment_radius)
        mean_velocity, counts = _masked_mean(snapshot.velocities, mask)
        steer = np.where(
            (counts > 0)[:, np.newaxis], mean_velocity - hood.self_velocities, 0.0
        )
        return self._shape_steer(steer, cfg.alignment_factor)

    def _follow_leader(
        self, snapshot: Snapshot, hood: _Neighbourhood
    ) -> tuple[np.ndarray, np.ndarray]:
        cfg = self.config
        leader = _leader_rows(hood.indices, len(snapshot))[:, np.newaxis]
        to_leader = snapshot.positions[LEADER_INDEX] - hood.self_positions
        match_leader = snapshot.velocities[LEADER_INDEX] - hood.self_velocities
        cohesion = np.where(leader, 0.0, self._shape_steer(to_leader, cfg.cohesion_factor))
        alignment = np.where(leader, 0.0, self._shape_steer(match_leader, cfg.alignment_factor))
        return cohesion, alignment


# ---------------------------------------------------------------------------
# Reynolds steering model
# ---------------------------------------------------------------------------


class ReynoldsRuleEngine:
    """Reynolds steering: each rule yields ``limit(desired - velocity, max_force)``."""

    def __init__(self, config: FlockConfiguration) -> None:
        self.config = config

    def _steer_towards(self, desired: np.ndarray, velocities: np.ndarray) -> np.ndarray:
        desired = safe_normalize(desired) * self.config.max_velocity
        return limit_magnitude(desired - velocities, self.config.max_force)

    def components(self, snapshot: Snapshot, indices: object) -> RuleComponents:
        rows = _as_indices(indices)
        if rows.size == 0 or len(snapshot) == 0:
            empty = np.zeros((rows.size, 3), dtype=np.float64)
            return RuleComponents(cohesion=empty, separation=empty.copy(), alignment=empty.copy())
        cfg = self.config
        hood = _neighbourhood(snapshot, rows)
        velocities = hood.self_velocities
        candidates = hood.others & (hood.dist_sq > 0.0)

        too_close = candidates & _within(hood.dist_sq, cfg.separation_radius)
        away = safe_normalize(-hood.offsets)
        inv_sq = np.zeros_like(hood.dist_sq)
        np.divide(1.0, hood.dist_sq, out=inv_sq, where=too_close)
        mean_away, _ = _masked_mean(away * inv_sq[:, :, np.newaxis], too_close)
        has_push = (np.sum(mean_away * mean_away, axis=-1) > 0.0)[:, np.newaxis]
        separation = np.where(has_push, self._steer_towards(mean_away, velocities), 0.0)

        if cfg.follow_leader:
            leader = _leader_rows(hood.indices, len(snapshot))[:, np.newaxis]
            alignment = np.where(
                leader,
                0.0,
                self._steer_towards(
                    np.broadcast_to(snapshot.velocities[LEADER_INDEX], velocities.shape),
                    velocities,
                ),
            )
            cohesion = np.where(
                leader,
                0.0,
                self._steer_towards(
                    snapshot.positions[LEADER_INDEX] - hood.self_positions, velocities
                ),
            )
            return RuleComponents(cohesion=cohesion, separation=separation, alignment=alignment)

        flocking = candidates & ~too_close
        align_mask = flocking & _within(hood.dist_sq, cfg.effective_alignment_radius)
        mean_velocity, align_counts = _masked_mean(snapshot.velocities, align_mask)
        alignment = np.where(
            (align_counts > 0)[:, np.newaxis],
            self._steer_towards(mean_velocity, velocities),
            0.0,
        )

        cohesion_mask = flocking & _within(hood.dist_sq, cfg.cohesion_radius)
        towards_centroid, cohesion_counts = _masked_mean(hood.offsets, cohesion_mask)
        cohesion = np.where(
            (cohesion_counts > 0)[:, np.newaxis],
            self._steer_towards(towards_centroid, velocities),
            0.0,
        )
        return RuleComponents(cohesion=cohesion, separation=separation, alignment=alignment)

    def steering(self, snapshot: Snapshot, indices: object) -> np.ndarray:
        cfg = self.config
        parts = self.components(snapshot, indices)
        return (
            cfg.separation_weight * parts.separation
            + cfg.alignment_weight * parts.alignment
            + cfg.cohesion_weight * parts.cohesion
        )


def create_rule_engine(config: FlockConfiguration) -> RuleEngine:
    """Instantiate the force model selected in ``config``."""
    if config.rule_model is RuleModel.REYNOLDS:
        return ReynoldsRuleEngine(config)
    return ClassicRuleEngine(config)


# ---------------------------------------------------------------------------
# Single-agent conveniences
# ---------------------------------------------------------------------------


def cohesion(snapshot: Snapshot, agent_id: int, config: FlockConfiguration) -> np.ndarray:
    """Classic cohesion steer for one agent, shape ``(3,)``."""
    return ClassicRuleEngine(config).components(snapshot, agent_id).cohesion[0]


def separation(snapshot: Snapshot, agent_id: int, config: FlockConfiguration) -> np.ndarray:
    """Classic separation steer for one agent, shape ``(3,)``."""
    return ClassicRuleEngine(config).components(snapshot, agent_id).separation[0]


def alignment(snapshot: Snapshot, agent_id: int, config: FlockConfiguration) -> np.ndarray:
    """Classic alignment steer for one agent, shape ``(3,)``."""
    return ClassicRuleEngine(config).components(snapshot, agent_id).alignment[0]
