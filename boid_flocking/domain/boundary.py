"""Pluggable world-boundary policies.

Each policy splits its work into two hooks the scheduler calls at different
points of a work unit:

- ``velocity_delta`` runs before the speed clamp and returns a steering delta
  computed from the agent's pre-move state;
- ``correct_position`` runs after integration and may move the agent.

``apply`` composes both hooks for callers that just want the corrected pair.
All hooks accept a single ``(3,)`` vector or a ``(k, 3)`` batch.

Policy types:

- ``BounceBoundary``: push back towards the centre once outside (velocity only)
- ``ReflectBoundary``: mirror outward-moving velocity components (hard bounce)
- ``SoftReflectBoundary``: steer towards the mirrored velocity, force-limited
- ``WrapBoundary``: teleport to the opposite face (position only)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from boid_flocking.config.types import BoundaryPolicyKind, FlockConfiguration
from boid_flocking.domain.vectors import limit_magnitude, reflect, safe_normalize

_AXIS_NORMALS = np.eye(3, dtype=np.float64)


def _bounds_array(bounds: object) -> np.ndarray:
    return np.abs(np.asarray(bounds, dtype=np.float64))


@runtime_checkable
class BoundaryPolicy(Protocol):
    """Strategy converting an out-of-bounds agent into a correction."""

    kind: BoundaryPolicyKind

    def velocity_delta(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> np.ndarray: ...

    def correct_position(self, positions: np.ndarray, bounds: object) -> np.ndarray: ...

    def apply(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> tuple[np.ndarray, np.ndarray]: ...


class _PolicyBase:
    kind: BoundaryPolicyKind

    def velocity_delta(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> np.ndarray:
        return np.zeros_like(np.asarray(velocities, dtype=np.float64))

    def correct_position(self, positions: np.ndarray, bounds: object) -> np.ndarray:
        return np.asarray(positions, dtype=np.float64)

    def apply(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> tuple[np.ndarray, np.ndarray]:
        positions = np.asarray(positions, dtype=np.float64)
        velocities = np.asarray(velocities, dtype=np.float64)
        delta = self.velocity_delta(positions, velocities, bounds)
        return self.correct_position(positions, bounds), velocities + delta


def _mirror_outward(positions: np.ndarray, velocities: np.ndarray, bounds: np.ndarray) -> np.ndarray:
    """Reflect every velocity component that carries the agent further outside."""
    mirrored = velocities.copy()
    for axis in range(3):
        moving_out = ((positions[..., axis] > bounds[axis]) & (velocities[..., axis] > 0.0)) | (
            (positions[..., axis] < -bounds[axis]) & (velocities[..., axis] < 0.0)
        )
        mirrored = np.where(
            moving_out[..., np.newaxis], reflect(mirrored, _AXIS_NORMALS[axis]), mirrored
        )
    return mirrored


class BounceBoundary(_PolicyBase):
    """Unit push towards the centre, scaled by ``factor``; position untouched."""

    kind = BoundaryPolicyKind.BOUNCE

    def __init__(self, factor: float) -> None:
        self.factor = float(factor)

    def velocity_delta(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64)
        limits = _bounds_array(bounds)
        push = np.where(positions < -limits, 1.0, np.where(positions > limits, -1.0, 0.0))
        return self.factor * safe_normalize(push)


class ReflectBoundary(_PolicyBase):
    """Hard bounce: outward-moving components are mirrored in one tick."""

    kind = BoundaryPolicyKind.REFLECT

    def velocity_delta(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64)
        velocities = np.asarray(velocities, dtype=np.float64)
        return _mirror_outward(positions, velocities, _bounds_array(bounds)) - velocities


class SoftReflectBoundary(_PolicyBase):
    """Steer towards the mirrored velocity, limited to ``max_force`` per tick."""

    kind = BoundaryPolicyKind.SOFT_REFLECT

    def __init__(self, max_force: float) -> None:
        self.max_force = float(max_force)

    def velocity_delta(
        self, positions: np.ndarray, velocities: np.ndarray, bounds: object
    ) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64)
        velocities = np.asarray(velocities, dtype=np.float64)
        steer = _mirror_outward(positions, velocities, _bounds_array(bounds)) - velocities
        return limit_magnitude(steer, self.max_force)


class WrapBoundary(_PolicyBase):
    """Periodic volume: a coordinate past one face re-enters through the other.

    A coordinate exactly on a face (``pos == ±bound``) is left alone.  Overshoot
    larger than the whole span wraps as many times as needed, so the result
    always lies inside the volume.  A zero-width axis is left untouched.
    """

    kind = BoundaryPolicyKind.WRAPAROUND

    def correct_position(self, positions: np.ndarray, bounds: object) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float64)
        limits = np.broadcast_to(_bounds_array(bounds), positions.shape)
        span = 2.0 * limits
        outside = ((positions < -limits) | (positions > limits)) & (span > 0.0)
        wrapped = np.mod(positions + limits, np.where(span > 0.0, span, 1.0)) - limits
        return np.where(outside, wrapped, positions)


def create_boundary_policy(config: FlockConfiguration) -> BoundaryPolicy:
    """Instantiate the boundary policy selected in ``config``."""
    kind = config.boundary_policy
    if kind is BoundaryPolicyKind.BOUNCE:
        return BounceBoundary(config.boundary_factor)
    if kind is BoundaryPolicyKind.REFLECT:
        return ReflectBoundary()
    if kind is BoundaryPolicyKind.SOFT_REFLECT:
        return SoftReflectBoundary(config.max_force)
    if kind is BoundaryPolicyKind.WRAPAROUND:
        return WrapBoundary()
    raise ValueError(f"unsupported boundary policy: {kind!r}")
