"""Authoritative agent storage with double-buffered commits.

The store never mutates a published snapshot.  Each tick writes into a fresh
back buffer which ``commit`` freezes and swaps in, so a reader still holding
an earlier ``Snapshot`` keeps seeing consistent data.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

import numpy as np

from boid_flocking.domain.snapshot import AgentState, Snapshot


class AgentStore:
    """Owns the current flock snapshot; agent count is fixed for life."""

    def __init__(self, positions: object, velocities: object) -> None:
        self._current = Snapshot.from_arrays(0, positions, velocities)
        self._count = len(self._current)
        self._swap_lock = threading.Lock()

    @classmethod
    def from_states(cls, states: Sequence[AgentState]) -> AgentStore:
        snapshot = Snapshot.from_states(0, list(states))
        return cls(snapshot.positions, snapshot.velocities)

    @property
    def count(self) -> int:
        return self._count

    @property
    def tick(self) -> int:
        return self._current.tick

    def current(self) -> Snapshot:
        """Return the latest committed snapshot."""
        return self._current

    def allocate_back_buffer(self) -> tuple[np.ndarray, np.ndarray]:
        """Fresh writable ``(N, 3)`` position and velocity buffers for the next tick."""
        return (
            np.empty((self._count, 3), dtype=np.float64),
            np.empty((self._count, 3), dtype=np.float64),
        )

    def commit_arrays(self, positions: np.ndarray, velocities: np.ndarray) -> Snapshot:
        """Publish a complete result buffer as the new current snapshot."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 3)
        if positions.shape[0] != self._count or velocities.shape[0] != self._count:
            raise ValueError(
                f"commit expects {self._count} agents, got "
                f"{positions.shape[0]} positions and {velocities.shape[0]} velocities"
            )
        with self._swap_lock:
            snapshot = Snapshot.from_arrays(self._current.tick + 1, positions, velocities)
            self._current = snapshot
        return snapshot

    def commit(self, states: Sequence[AgentState]) -> Snapshot:
        """Publish agent records ordered by ``agent_id`` as the new snapshot."""
        staged = Snapshot.from_states(self._current.tick + 1, list(states))
        return self.commit_arrays(staged.positions, staged.velocities)
