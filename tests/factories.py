"""Builders for test entries, hits and candidates."""

from memory_recall.retrieval.types import (
    MemoryCategory,
    MemoryEntry,
    ScoredCandidate,
    SearchHit,
)

# Fixed request time used across tests (2024-06-01T00:00:00Z)
NOW_MS = 1_717_200_000_000
DAY_MS = 86_400_000
DIMS = 4


def make_entry(
    entry_id: str,
    text: str = "User prefers dark roast coffee in the morning",
    vector: list[float] | None = None,
    importance: float = 1.0,
    age_days: float = 0.0,
    scope: str = "global",
    category: MemoryCategory = MemoryCategory.PREFERENCE,
) -> MemoryEntry:
    """Build a memory entry with sensible defaults."""
    return MemoryEntry(
        id=entry_id,
        text=text,
        vector=vector if vector is not None else [1.0, 0.0, 0.0, 0.0],
        importance=importance,
        timestamp=int(NOW_MS - age_days * DAY_MS),
        scope=scope,
        category=category,
    )


def make_hit(entry_id: str, score: float, **kwargs) -> SearchHit:
    return SearchHit(entry=make_entry(entry_id, **kwargs), score=score)


def make_candidate(entry_id: str, score: float, **kwargs) -> ScoredCandidate:
    return ScoredCandidate(entry=make_entry(entry_id, **kwargs), score=score)
