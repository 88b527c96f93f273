"""Weighted fusion of vector and lexical candidate lists.

Each signal contributes ``raw_score * weight`` to a candidate's fused score.
Contributions are summed per entry id, so the fused score of an id does not
depend on the order in which hits of the same source are processed.
"""

from collections.abc import Callable

from memory_recall.retrieval.types import (
    ScoredCandidate,
    ScoreProvenance,
    SearchHit,
    WeightPair,
)
from memory_recall.utils.logging import get_logger

logger = get_logger(__name__)

MalformedCallback = Callable[[SearchHit, str], None]


def is_malformed(hit: SearchHit, expected_dimensions: int | None) -> str | None:
    """Check a search hit for unusable data.

    Args:
        hit: Search hit to check.
        expected_dimensions: Deployment vector dimensionality, if known.

    Returns:
        A short reason string if the hit is malformed, otherwise None.
    """
    vector = hit.entry.vector
    if not vector:
        return "missing_vector"
    if expected_dimensions is not None and len(vector) != expected_dimensions:
        return "dimension_mismatch"
    return None


def fuse_candidates(
    vector_hits: list[SearchHit],
    lexical_hits: list[SearchHit],
    weights: WeightPair,
    expected_dimensions: int | None = None,
    on_malformed: MalformedCallback | None = None,
) -> dict[str, ScoredCandidate]:
    """Merge vector and lexical hits into one scored candidate set.

    Vector hits are processed first, then lexical hits; a lexical hit for an
    id already present adds its weighted score to the existing candidate.
    Entries found by only one signal are kept without penalty.

    Args:
        vector_hits: Ranked vector search hits (best first).
        lexical_hits: Ranked lexical search hits (best first).
        weights: Fusion weights for this query.
        expected_dimensions: Vector dimensionality; hits that disagree are skipped.
        on_malformed: Called with (hit, source) for every skipped hit.

    Returns:
        Mapping of entry id to fused candidate (unordered).
    """
    combined: dict[str, ScoredCandidate] = {}
    seen_vector: set[str] = set()
    seen_lexical: set[str] = set()

    def skip(hit: SearchHit, source: str, reason: str) -> None:
        logger.warning(
            f"Skipping malformed {source} candidate: id={hit.entry.id}, reason={reason}"
        )
        if on_malformed is not None:
            on_malformed(hit, source)

    for rank, hit in enumerate(vector_hits, start=1):
        reason = is_malformed(hit, expected_dimensions)
        if reason:
            skip(hit, "vector", reason)
            continue
        # A provider returning the same id twice keeps its best-ranked hit
        if hit.entry.id in seen_vector:
            continue
        seen_vector.add(hit.entry.id)

        combined[hit.entry.id] = ScoredCandidate(
            entry=hit.entry,
            score=hit.score * weights.vector_weight,
            sources=ScoreProvenance().with_vector(hit.score, rank),
        )

    for rank, hit in enumerate(lexical_hits, start=1):
        reason = is_malformed(hit, expected_dimensions)
        if reason:
            skip(hit, "bm25", reason)
            continue
        if hit.entry.id in seen_lexical:
            continue
        seen_lexical.add(hit.entry.id)

        contribution = hit.score * weights.bm25_weight
        existing = combined.get(hit.entry.id)
        if existing is not None:
            combined[hit.entry.id] = ScoredCandidate(
                entry=existing.entry,
                score=existing.score + contribution,
                sources=existing.sources.with_bm25(hit.score, rank),
            )
        else:
            combined[hit.entry.id] = ScoredCandidate(
                entry=hit.entry,
                score=contribution,
                sources=ScoreProvenance().with_bm25(hit.score, rank),
            )

    return {
        entry_id: candidate.with_sources(candidate.sources.with_fused(candidate.score))
        for entry_id, candidate in combined.items()
    }
