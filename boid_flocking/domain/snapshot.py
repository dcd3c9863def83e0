"""Typed domain model for agent state snapshots.

Provides ``AgentState`` (frozen dataclass, one agent) and ``Snapshot``
(frozen, read-only view of the whole flock at one tick).  Array rows are
indexed by agent id, which stays stable for the lifetime of a run.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class AgentState:
    """Immutable state of a single agent at one point in time."""

    agent_id: int
    position: Vec3
    velocity: Vec3


def _frozen_copy(values: object) -> np.ndarray:
    array = np.array(values, dtype=np.float64).reshape(-1, 3)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Point-in-time copy of every agent, taken between ticks.

    ``positions`` and ``velocities`` are ``(N, 3)`` float64 arrays with the
    write flag cleared, so any number of readers can share one instance.
    """

    tick: int
    positions: np.ndarray
    velocities: np.ndarray

    @classmethod
    def from_arrays(cls, tick: int, positions: object, velocities: object) -> Snapshot:
        """Copy the given buffers into a new read-only snapshot."""
        pos = _frozen_copy(positions)
        vel = _frozen_copy(velocities)
        if pos.shape != vel.shape:
            raise ValueError("positions and velocities must describe the same agents")
        return cls(tick=tick, positions=pos, velocities=vel)

    @classmethod
    def from_states(cls, tick: int, states: tuple[AgentState, ...] | list[AgentState]) -> Snapshot:
        """Build a snapshot from agent records ordered by ``agent_id``."""
        for index, state in enumerate(states):
            if state.agent_id != index:
                raise ValueError("agent states must be ordered by agent_id starting at 0")
        return cls.from_arrays(
            tick,
            [state.position for state in states],
            [state.velocity for state in states],
        )

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    def __getitem__(self, agent_id: int) -> AgentState:
        if not -len(self) <= agent_id < len(self):
            raise IndexError(f"agent_id {agent_id} out of range")
        agent_id = agent_id % len(self)
        return AgentState(
            agent_id=agent_id,
            position=tuple(float(v) for v in self.positions[agent_id]),  # type: ignore[arg-type]
            velocity=tuple(float(v) for v in self.velocities[agent_id]),  # type: ignore[arg-type]
        )

    def __iter__(self) -> Iterator[AgentState]:
        for agent_id in range(len(self)):
            yield self[agent_id]

    def agents(self) -> tuple[AgentState, ...]:
        """Return every agent as an ``AgentState`` tuple."""
        return tuple(self)

    def position_tuples(self) -> tuple[Vec3, ...]:
        return tuple(tuple(float(v) for v in row) for row in self.positions)  # type: ignore[misc]

    def velocity_tuples(self) -> tuple[Vec3, ...]:
        return tuple(tuple(float(v) for v in row) for row in self.velocities)  # type: ignore[misc]
