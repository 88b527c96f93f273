"""In-memory reference index implementing both search protocols.

Useful for tests, local tooling and small deployments. Vector search is an
exhaustive L2 scan; lexical search is BM25 over a Unicode-aware tokenizer
that emits Latin/digit words and individual CJK characters.
"""

import math
import re

import numpy as np
from rank_bm25 import BM25Okapi

from memory_recall.retrieval.constants import BM25_SIGMOID_SCALE, MAX_RETRIEVAL_LIMIT
from memory_recall.retrieval.types import MemoryCategory, MemoryEntry, SearchHit
from memory_recall.utils.logging import get_logger

logger = get_logger(__name__)

# CJK ideographs, kana and hangul are indexed one character at a time
CJK_CHARS = r"\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff\uac00-\ud7af"
TOKEN_PATTERN = re.compile(rf"[{CJK_CHARS}]|[^\W_{CJK_CHARS}]+")

BM25_K1 = 1.2
BM25_B = 0.75

DEFAULT_SCOPE = "global"


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens; each CJK character is its own token."""
    return TOKEN_PATTERN.findall(text.lower())


def normalize_bm25(raw: float) -> float:
    """Map a raw BM25 score into [0.5, 1) with ``1 / (1 + exp(-raw / 5))``.

    Non-positive raw scores map to 0.5.
    """
    if raw <= 0:
        return 0.5
    return 1.0 / (1.0 + math.exp(-raw / BM25_SIGMOID_SCALE))


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_RETRIEVAL_LIMIT))


class InMemoryIndex:
    """Memory entries held in a list, searchable by vector and by keyword.

    The BM25 model is rebuilt lazily on the first lexical search after a
    write.

    Attributes:
        entries: Indexed entries in insertion order.
    """

    def __init__(self, entries: list[MemoryEntry] | None = None) -> None:
        self.entries: list[MemoryEntry] = []
        self._bm25: BM25Okapi | None = None
        self._corpus: list[list[str]] = []
        self._dirty = True
        if entries:
            self.extend(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, entry: MemoryEntry) -> None:
        """Add or replace an entry (matched by id)."""
        for idx, existing in enumerate(self.entries):
            if existing.id == entry.id:
                self.entries[idx] = entry
                break
        else:
            self.entries.append(entry)
        self._dirty = True

    def extend(self, entries: list[MemoryEntry]) -> None:
        for entry in entries:
            self.add(entry)

    def delete(self, entry_id: str) -> bool:
        """Remove an entry by id. Returns True if it existed."""
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        removed = len(self.entries) != before
        if removed:
            self._dirty = True
        return removed

    def _matches(
        self,
        entry: MemoryEntry,
        scope_filter: list[str] | None,
        category: MemoryCategory | None,
    ) -> bool:
        if scope_filter is not None and (entry.scope or DEFAULT_SCOPE) not in scope_filter:
            return False
        if category is not None and entry.category != category:
            return False
        return True

    def _rebuild(self) -> None:
        self._corpus = [tokenize(entry.text) for entry in self.entries]
        # BM25Okapi divides by the corpus size
        self._bm25 = BM25Okapi(self._corpus, k1=BM25_K1, b=BM25_B) if self._corpus else None
        self._dirty = False
        logger.debug(f"BM25 index rebuilt with {len(self._corpus)} documents")

    async def vector_search(
        self,
        vector: list[float],
        limit: int,
        min_score: float,
        scope_filter: list[str] | None = None,
        category: MemoryCategory | None = None,
    ) -> list[SearchHit]:
        """Exhaustive nearest-neighbour search.

        Scores are ``1 / (1 + L2 distance)``. Entries without a vector of the
        query's dimensionality are not searchable.

        Args:
            vector: Query embedding.
            limit: Maximum hits (clamped to 1..20).
            min_score: Minimum score to include.
            scope_filter: Allowed scopes; entries without a scope count as global.
            category: Optional category filter.

        Returns:
            Hits sorted by score descending.
        """
        query = np.asarray(vector, dtype=np.float64)
        hits: list[SearchHit] = []

        for entry in self.entries:
            if not self._matches(entry, scope_filter, category):
                continue
            if not entry.vector or len(entry.vector) != len(query):
                continue
            distance = float(np.linalg.norm(np.asarray(entry.vector, dtype=np.float64) - query))
            score = 1.0 / (1.0 + distance)
            if score >= min_score:
                hits.append(SearchHit(entry=entry, score=score))

        hits.sort(key=lambda h: (-h.score, h.entry.id))
        return hits[: clamp_limit(limit)]

    async def bm25_search(
        self,
        query: str,
        limit: int,
        scope_filter: list[str] | None = None,
        category: MemoryCategory | None = None,
    ) -> list[SearchHit]:
        """Keyword search ranked by BM25.

        Only entries sharing at least one token with the query are returned.

        Args:
            query: Query text.
            limit: Maximum hits (clamped to 1..20).
            scope_filter: Allowed scopes; entries without a scope count as global.
            category: Optional category filter.

        Returns:
            Hits sorted by normalized score descending.
        """
        if self._dirty:
            self._rebuild()

        query_tokens = tokenize(query)
        if self._bm25 is None or not query_tokens:
            return []

        raw_scores = self._bm25.get_scores(query_tokens)
        wanted = set(query_tokens)
        hits: list[SearchHit] = []

        for entry, doc_tokens, raw in zip(self.entries, self._corpus, raw_scores):
            if not self._matches(entry, scope_filter, category):
                continue
            if wanted.isdisjoint(doc_tokens):
                continue
            hits.append(SearchHit(entry=entry, score=normalize_bm25(float(raw))))

        hits.sort(key=lambda h: (-h.score, h.entry.id))
        return hits[: clamp_limit(limit)]
