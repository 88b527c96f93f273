"""Core types for the retrieval module.

This module defines the data structures used throughout the retrieval
pipeline: stored memory entries, search hits returned by the index
collaborators, scored candidates with their provenance, and requests.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memory_recall.retrieval.constants import (
    DEFAULT_MMR_THRESHOLD,
    DEFAULT_RERANK_TIMEOUT_MS,
    MAX_RETRIEVAL_LIMIT,
)


class MemoryCategory(str, Enum):
    """Closed set of memory categories."""

    PREFERENCE = "preference"
    FACT = "fact"
    DECISION = "decision"
    ENTITY = "entity"
    OTHER = "other"


class RetrievalMode(str, Enum):
    """Which search signals feed the fusion step.

    Attributes:
        HYBRID: Vector search plus lexical (BM25) search.
        VECTOR: Vector search only.
    """

    HYBRID = "hybrid"
    VECTOR = "vector"


class RerankMode(str, Enum):
    """Reranking mode.

    Attributes:
        CROSS_ENCODER: Call an external cross-encoder rerank endpoint.
        LIGHTWEIGHT: Accepted for compatibility; behaves like NONE.
        NONE: No reranking.
    """

    CROSS_ENCODER = "cross-encoder"
    LIGHTWEIGHT = "lightweight"
    NONE = "none"


class MemoryEntry(BaseModel):
    """A stored memory as handed to the engine by the storage layer.

    Attributes:
        id: Opaque unique identifier.
        text: Memory text content.
        vector: Embedding vector (fixed dimensionality per deployment).
        category: Memory category.
        scope: Isolation namespace.
        importance: Importance in [0, 1].
        timestamp: Creation time (Unix epoch in milliseconds).
        metadata: Optional opaque metadata (usually JSON).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique entry identifier")
    text: str = Field(description="Memory text content")
    vector: list[float] = Field(default_factory=list, description="Embedding vector")
    category: MemoryCategory = Field(default=MemoryCategory.OTHER, description="Memory category")
    scope: str = Field(default="global", description="Isolation namespace")
    importance: float = Field(default=0.7, ge=0.0, le=1.0, description="Importance in [0, 1]")
    timestamp: int = Field(description="Creation timestamp (Unix epoch in milliseconds)")
    metadata: str | None = Field(default=None, description="Opaque metadata string")


@dataclass(frozen=True)
class SearchHit:
    """A single result from a search collaborator.

    Attributes:
        entry: The matched memory entry.
        score: Signal score normalized to [0, 1].
    """

    entry: MemoryEntry
    score: float


@dataclass(frozen=True)
class SignalScore:
    """Raw score and 1-based rank contributed by one search signal."""

    score: float
    rank: int


@dataclass(frozen=True)
class ScoreProvenance:
    """Record of which signals contributed to a candidate's score.

    Provenance is additive: the ``with_*`` helpers return a copy with one
    more field set and leave the others untouched.
    """

    vector: SignalScore | None = None
    bm25: SignalScore | None = None
    fused: float | None = None
    reranked: float | None = None

    def with_vector(self, score: float, rank: int) -> "ScoreProvenance":
        return replace(self, vector=SignalScore(score=score, rank=rank))

    def with_bm25(self, score: float, rank: int) -> "ScoreProvenance":
        return replace(self, bm25=SignalScore(score=score, rank=rank))

    def with_fused(self, score: float) -> "ScoreProvenance":
        return replace(self, fused=score)

    def with_reranked(self, score: float) -> "ScoreProvenance":
        return replace(self, reranked=score)


@dataclass(frozen=True)
class ScoredCandidate:
    """A memory entry paired with its running score and provenance.

    Instances are immutable; each pipeline stage returns new candidates.

    Attributes:
        entry: The underlying memory entry.
        score: Running score (unbounded during the pipeline).
        sources: Provenance of the score.
    """

    entry: MemoryEntry
    score: float
    sources: ScoreProvenance = field(default_factory=ScoreProvenance)

    @property
    def id(self) -> str:
        return self.entry.id

    def with_score(self, score: float) -> "ScoredCandidate":
        return replace(self, score=score)

    def with_sources(self, sources: ScoreProvenance) -> "ScoredCandidate":
        return replace(self, sources=sources)


@dataclass(frozen=True)
class WeightPair:
    """Fusion multipliers for the vector and lexical signals.

    Both lie in [0, 1]; they are independent multipliers and need not sum to 1.
    """

    vector_weight: float
    bm25_weight: float


class RetrievalRequest(BaseModel):
    """A single retrieval request.

    Attributes:
        query: Natural-language query text.
        limit: Maximum number of results (clamped to MAX_RETRIEVAL_LIMIT).
        scope_filter: Optional set of allowed scopes.
        category: Optional category filter.
    """

    model_config = ConfigDict(frozen=True)

    query: str = Field(description="Query text")
    limit: int = Field(default=5, ge=1, description="Maximum number of results")
    scope_filter: list[str] | None = Field(default=None, description="Allowed scopes")
    category: MemoryCategory | None = Field(default=None, description="Category filter")

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        """Clamp the limit to the engine maximum instead of rejecting it."""
        return min(v, MAX_RETRIEVAL_LIMIT)


@dataclass(frozen=True)
class ScoringConfig:
    """Read-only scoring parameters consumed by a retriever instance.

    Built once (usually via ``Settings.scoring_config()``) and never changed
    for the lifetime of the engine.
    """

    mode: RetrievalMode = RetrievalMode.HYBRID
    vector_weight: float = 0.7
    bm25_weight: float = 0.3
    dynamic_weights: bool = True
    min_score: float = 0.3
    hard_min_score: float = 0.35
    candidate_pool_size: int = 20
    recency_half_life_days: float = 14.0
    recency_weight: float = 0.10
    length_norm_anchor: int = 500
    time_decay_half_life_days: float = 60.0
    filter_noise: bool = True
    mmr_threshold: float = DEFAULT_MMR_THRESHOLD
    rerank: RerankMode = RerankMode.CROSS_ENCODER
    rerank_provider: str = "jina"
    rerank_model: str = "jina-reranker-v2-base-multilingual"
    rerank_endpoint: str = "https://api.jina.ai/v1/rerank"
    rerank_api_key: str = ""
    rerank_timeout_ms: int = DEFAULT_RERANK_TIMEOUT_MS

    @property
    def rerank_enabled(self) -> bool:
        """Cross-encoder reranking runs only when selected and a key is configured."""
        return self.rerank == RerankMode.CROSS_ENCODER and bool(self.rerank_api_key)


def sort_candidates(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort candidates by score descending, breaking ties by ascending id."""
    return sorted(candidates, key=lambda c: (-c.score, c.entry.id))
