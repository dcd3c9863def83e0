"""Seeded flock initialization."""

from __future__ import annotations

import math
from random import Random

import numpy as np

from boid_flocking.config.constants import INITIAL_SPEED_FRACTION
from boid_flocking.config.types import FlockConfiguration
from boid_flocking.domain.store import AgentStore


def random_unit_vector(rng: Random) -> tuple[float, float, float]:
    """Direction drawn uniformly from the unit sphere."""
    z = rng.uniform(-1.0, 1.0)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    ring = math.sqrt(max(0.0, 1.0 - z * z))
    return (ring * math.cos(phi), ring * math.sin(phi), z)


def initialize_agents(config: FlockConfiguration, amount: int, rng: Random) -> AgentStore:
    """Create a store with ``amount`` agents scattered through the spawn volume.

    Positions are uniform in ``[-|b|, |b|]`` per axis of ``initial_bounds``.
    Velocities point in a uniform random direction with a speed drawn from
    ``[0.5 * max_velocity, max_velocity]``.  A non-positive ``amount`` yields
    an empty store.
    """
    count = max(0, int(amount))
    half_extents = [abs(b) for b in config.initial_bounds]
    top_speed = max(0.0, config.max_velocity)
    low_speed = top_speed * INITIAL_SPEED_FRACTION

    positions = np.zeros((count, 3), dtype=np.float64)
    velocities = np.zeros((count, 3), dtype=np.float64)
    for i in range(count):
        positions[i] = [rng.uniform(-h, h) for h in half_extents]
        speed = rng.uniform(low_speed, top_speed)
        velocities[i] = [component * speed for component in random_unit_vector(rng)]
    return AgentStore(positions, velocities)
