"""
User-user similarity over explicit star ratings.

Similarity is plain cosine over the items both users rated. Vectors are
built on the sorted common item ids, so the result does not depend on
argument order.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

import numpy as np

from .config import MAX_NEIGHBORS, SIMILARITY_NOISE_FLOOR

logger = logging.getLogger(__name__)


def cosine_similarity(ratings_a: dict[int, float], ratings_b: dict[int, float]) -> float:
    """
    Cosine similarity restricted to commonly rated items.

    Returns 0.0 when there is no overlap or either vector has zero norm.
    """
    common = sorted(ratings_a.keys() & ratings_b.keys())
    if not common:
        return 0.0

    vec_a = np.array([ratings_a[i] for i in common], dtype=float)
    vec_b = np.array([ratings_b[i] for i in common], dtype=float)

    norm_a = float(np.dot(vec_a, vec_a))
    norm_b = float(np.dot(vec_b, vec_b))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(vec_a, vec_b)) / math.sqrt(norm_a * norm_b)


def find_neighbors(
    target: dict[int, float],
    others: Iterable[tuple[str, dict[int, float]]],
    noise_floor: float = SIMILARITY_NOISE_FLOOR,
    k: int = MAX_NEIGHBORS,
) -> list[tuple[str, float]]:
    """
    Find the k users most similar to the target rating vector.

    Args:
        target: Target user's item_id -> rating mapping
        others: (user_id, rating vector) pairs for every other user
        noise_floor: Similarities at or below this value are discarded
        k: Maximum number of neighbors to return

    Returns:
        List of (user_id, similarity) tuples, sorted by similarity descending.
        Equal similarities keep the order in which users were supplied.
    """
    scored = []
    for user_id, vector in others:
        sim = cosine_similarity(target, vector)
        if sim > noise_floor:
            scored.append((user_id, sim))

    neighbors = sorted(scored, key=lambda x: -x[1])[:k]
    logger.debug(f"Found {len(neighbors)} neighbors ({len(scored)} above noise floor {noise_floor})")
    return neighbors
