"""Diversity-aware final selection (MMR-style).

Greedily picks the best-scoring candidate that is not a near-duplicate of
anything already selected. Similarity defaults to the cosine similarity of
the entries' embedding vectors, falling back to a text-length proxy when
vectors are unusable.
"""

from collections.abc import Callable

import numpy as np

from memory_recall.retrieval.constants import DEFAULT_MMR_THRESHOLD
from memory_recall.retrieval.types import ScoredCandidate

SimilarityFn = Callable[[ScoredCandidate, ScoredCandidate], float]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Cosine similarity, or 0.0 if either vector has zero norm.

    Raises:
        ValueError: If the dimensions differ.
    """
    if len(a) != len(b):
        raise ValueError("Vector dimensions must match")

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def length_similarity(a: str, b: str) -> float:
    """Cheap similarity proxy based on normalized text length difference."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - abs(len(a) - len(b)) / longest


def candidate_similarity(a: ScoredCandidate, b: ScoredCandidate) -> float:
    """Similarity between two candidates.

    Uses vector cosine similarity when both entries carry vectors of the same
    dimensionality, otherwise the text-length proxy.
    """
    va, vb = a.entry.vector, b.entry.vector
    if va and vb and len(va) == len(vb):
        return cosine_similarity(va, vb)
    return length_similarity(a.entry.text, b.entry.text)


def select_diverse(
    candidates: list[ScoredCandidate],
    limit: int,
    threshold: float = DEFAULT_MMR_THRESHOLD,
    similarity: SimilarityFn = candidate_similarity,
) -> list[ScoredCandidate]:
    """Greedy diversity-aware selection.

    The highest-scoring candidate is always selected first. Each later pick
    is the highest-scoring remaining candidate whose maximum similarity to
    every selected candidate is strictly below ``threshold``. Selection stops
    when ``limit`` is reached or no candidate qualifies; near-duplicates are
    never forced in.

    Args:
        candidates: Candidates sorted by score descending (ties by id).
        limit: Maximum number of candidates to select.
        threshold: Similarity at or above which a candidate is a near-duplicate.
        similarity: Pairwise similarity function.

    Returns:
        Selected candidates in selection order (score descending).
    """
    if limit <= 0 or not candidates:
        return []

    remaining = list(candidates)
    selected = [remaining.pop(0)]

    while remaining and len(selected) < limit:
        best_idx = -1
        best_score = float("-inf")

        for idx, candidate in enumerate(remaining):
            max_sim = max(similarity(candidate, chosen) for chosen in selected)
            # Strict comparison keeps the earlier (lower id) candidate on ties
            if max_sim < threshold and candidate.score > best_score:
                best_score = candidate.score
                best_idx = idx

        if best_idx < 0:
            break
        selected.append(remaining.pop(best_idx))

    return selected
