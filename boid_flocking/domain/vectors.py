"""Vector helpers shared by the rule engine, boundary policies and scheduler.

Every function accepts either a single ``(3,)`` vector or a ``(k, 3)`` batch
and works row-wise on batches.  Zero-length inputs never produce NaN.
"""

from __future__ import annotations

import numpy as np


def _norms(vectors: np.ndarray) -> np.ndarray:
    return np.sqrt(np.sum(vectors * vectors, axis=-1, keepdims=True))


def safe_normalize(vectors: np.ndarray) -> np.ndarray:
    """Unit vector(s) in the same direction; the zero vector maps to zero."""
    vectors = np.asarray(vectors, dtype=np.float64)
    norms = _norms(vectors)
    out = np.zeros_like(vectors)
    np.divide(vectors, norms, out=out, where=norms > 0.0)
    return out


def limit_magnitude(vectors: np.ndarray, max_magnitude: float) -> np.ndarray:
    """Scale down vectors longer than ``max_magnitude``, keep the rest as-is."""
    vectors = np.asarray(vectors, dtype=np.float64)
    if max_magnitude <= 0.0:
        return np.zeros_like(vectors)
    sq = np.sum(vectors * vectors, axis=-1, keepdims=True)
    too_long = sq > max_magnitude * max_magnitude
    return np.where(too_long, safe_normalize(vectors) * max_magnitude, vectors)


def clamp_speed(
    velocities: np.ndarray,
    max_velocity: float,
    min_speed: float = 0.0,
    boost: float = 0.0,
) -> np.ndarray:
    """Clamp speed to ``max_velocity`` after an optional slow-agent boost.

    Agents slower than ``min_speed`` are pushed forward by ``boost`` along
    their heading.  The clamp runs last, so ``|v| <= max_velocity`` always
    holds; a non-positive ``max_velocity`` yields motionless agents.
    """
    velocities = np.asarray(velocities, dtype=np.float64)
    if min_speed > 0.0 and boost != 0.0:
        sq = np.sum(velocities * velocities, axis=-1, keepdims=True)
        slow = sq < min_speed * min_speed
        velocities = np.where(slow, velocities + safe_normalize(velocities) * boost, velocities)
    return limit_magnitude(velocities, max_velocity)


def reflect(vectors: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Mirror ``vectors`` about the plane with unit ``normal``."""
    vectors = np.asarray(vectors, dtype=np.float64)
    normal = np.asarray(normal, dtype=np.float64)
    dot = np.sum(vectors * normal, axis=-1, keepdims=True)
    return vectors - 2.0 * dot * normal
