"""Centralized defaults for flocking simulations.

All magic numbers that appear across multiple modules are defined here.
Consuming modules should import from this module rather than defining
their own inline literals.
"""

from __future__ import annotations

AMOUNT = 20
"""Default number of agents per simulation."""

NUM_STEPS = 200
"""Default number of ticks for a batch run."""

DELTA_TIME = 1.0 / 60.0
"""Default tick duration in seconds."""

MAX_VELOCITY = 25.0
"""Speed clamp applied at the end of every tick."""

SEPARATION_RADIUS = 5.0
"""Inner neighbour tier: agents closer than this are pushed apart."""

COHESION_RADIUS = 10.0
"""Outer neighbour tier used by cohesion (and alignment unless overridden)."""

COHESION_FACTOR = 0.04
"""Scale applied to the displacement towards the local centroid."""

SEPARATION_FACTOR = 0.5
"""Scale applied to the accumulated avoidance vector."""

ALIGNMENT_FACTOR = 0.02
"""Scale applied to the velocity-matching steer."""

BOUNDARY_FACTOR = 25.0
"""Magnitude of the bounce push once an agent leaves the volume."""

VOLUME_BOUNDS: tuple[float, float, float] = (50.0, 50.0, 50.0)
"""Half extents of the simulated volume along x, y, z."""

INITIAL_BOUNDS: tuple[float, float, float] = (50.0, 50.0, 50.0)
"""Half extents of the spawn volume along x, y, z."""

NEAREST_FRACTION = 0.25
"""Fraction of the flock used as the neighbourhood by nearest-scope cohesion."""

MAX_FORCE = 1.3
"""Steering limit for the reynolds model and the soft-reflect boundary."""

REYNOLDS_SEPARATION_WEIGHT = 1.5
"""Reynolds weighted sum: separation dominates."""

REYNOLDS_ALIGNMENT_WEIGHT = 1.0
"""Reynolds weighted sum: alignment."""

REYNOLDS_COHESION_WEIGHT = 1.0
"""Reynolds weighted sum: cohesion."""

SPEED_BOOST_DIVISOR = 5.0
"""Slow agents gain ``max_velocity * (1 + noise) / SPEED_BOOST_DIVISOR``."""

INITIAL_SPEED_FRACTION = 0.5
"""Lower end of the spawn speed range as a fraction of ``max_velocity``."""

LEADER_INDEX = 0
"""Index of the anchor agent in follow-the-leader mode."""

GROUP_LINK_RADIUS = 10.0
"""Default link distance when counting connected flock groups."""

FLUSH_THRESHOLD = 8_192
"""Flush trajectory rows to Parquet once this in-memory row count is reached."""
