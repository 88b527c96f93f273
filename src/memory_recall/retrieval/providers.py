"""Contracts for the collaborators the retrieval engine depends on.

The engine does not embed text or execute raw searches itself. It receives
an embedder and search providers implementing these protocols.
"""

from typing import Protocol, runtime_checkable

from memory_recall.retrieval.types import MemoryCategory, SearchHit


@runtime_checkable
class Embedder(Protocol):
    """Turns query text into a fixed-dimension vector.

    May be slow and is called at most once per retrieval.
    """

    @property
    def dimensions(self) -> int: ...

    async def embed_query(self, text: str) -> list[float]: ...


@runtime_checkable
class VectorSearchProvider(Protocol):
    """Executes vector similarity search.

    Returns hits ranked best first with scores normalized to [0, 1].
    """

    async def vector_search(
        self,
        vector: list[float],
        limit: int,
        min_score: float,
        scope_filter: list[str] | None = None,
        category: MemoryCategory | None = None,
    ) -> list[SearchHit]: ...


@runtime_checkable
class LexicalSearchProvider(Protocol):
    """Executes lexical (full-text) search.

    Returns hits ranked best first with scores normalized to [0, 1]. An empty
    list means no lexical signal (e.g. no full-text index), not an error.
    """

    async def bm25_search(
        self,
        query: str,
        limit: int,
        scope_filter: list[str] | None = None,
        category: MemoryCategory | None = None,
    ) -> list[SearchHit]: ...
