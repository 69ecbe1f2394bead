"""
Utility functions for vector similarity calculations.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Cosine similarity measures the cosine of the angle between two vectors,
    ranging from -1 (opposite) to 1 (identical direction).

    Returns 0.0 if either vector has zero magnitude or the dimensions differ.

    Examples:
        >>> cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
        1.0

        >>> cosine_similarity([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
        0.0
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    if a.shape != b.shape or a.size == 0:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def cosine_scores(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> List[float]:
    """
    Score every stored vector against one query vector.

    Vectors whose dimension differs from the query, and zero vectors on
    either side, score exactly 0.0.
    """
    if not vectors:
        return []

    q = np.asarray(query, dtype=np.float64)
    q_norm = np.linalg.norm(q)
    dim = q.shape[0] if q.ndim == 1 else -1

    scores = [0.0] * len(vectors)
    if q_norm == 0 or dim <= 0:
        return scores

    # Only same-dimension vectors go through the batched path
    positions = [i for i, v in enumerate(vectors) if len(v) == dim]
    if not positions:
        return scores

    matrix = np.asarray([vectors[i] for i in positions], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1)
    dots = matrix @ q

    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / (norms * q_norm), 0.0)

    for pos, sim in zip(positions, sims):
        scores[pos] = float(sim)
    return scores
