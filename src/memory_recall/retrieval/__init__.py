"""Retrieval module for hybrid memory search with multi-stage scoring.

This module provides the core retrieval pipeline, including:
- Vector + BM25 candidate fusion with query-dependent weights
- Recency, importance, length and time-decay scoring stages
- Cross-encoder reranking with fail-open degradation
- Noise filtering and diversity-aware final selection
- An adaptive gate that skips retrieval for trivial queries

Example usage:
    >>> from memory_recall.retrieval import InMemoryIndex, MemoryRetriever, RetrievalRequest
    >>> index = InMemoryIndex(entries)
    >>> retriever = MemoryRetriever(index, embedder, lexical_provider=index)
    >>> results = await retriever.retrieve(RetrievalRequest(query="coffee preference", limit=5))
"""

from memory_recall.retrieval.classifier import (
    ClassificationResult,
    QueryClassifier,
    QueryType,
)
from memory_recall.retrieval.constants import (
    DEFAULT_MMR_THRESHOLD,
    DEFAULT_RERANK_TIMEOUT_MS,
    MAX_CANDIDATE_POOL_SIZE,
    MAX_RETRIEVAL_LIMIT,
)
from memory_recall.retrieval.diversity import select_diverse
from memory_recall.retrieval.formatting import format_recall_context, sanitize_for_context
from memory_recall.retrieval.fusion import fuse_candidates
from memory_recall.retrieval.gate import should_skip_retrieval
from memory_recall.retrieval.memory_index import InMemoryIndex
from memory_recall.retrieval.noise import NoiseFilterOptions, filter_noise, is_noise
from memory_recall.retrieval.providers import (
    Embedder,
    LexicalSearchProvider,
    VectorSearchProvider,
)
from memory_recall.retrieval.retriever import MemoryRetriever, RetrieverHealth
from memory_recall.retrieval.scoring import ScoringPipeline
from memory_recall.retrieval.types import (
    MemoryCategory,
    MemoryEntry,
    RerankMode,
    RetrievalMode,
    RetrievalRequest,
    ScoredCandidate,
    ScoreProvenance,
    ScoringConfig,
    SearchHit,
    SignalScore,
    WeightPair,
    sort_candidates,
)

__all__ = [
    # Retriever
    "MemoryRetriever",
    "RetrieverHealth",
    "InMemoryIndex",
    # Pipeline stages
    "QueryClassifier",
    "ClassificationResult",
    "QueryType",
    "fuse_candidates",
    "ScoringPipeline",
    "select_diverse",
    "should_skip_retrieval",
    "is_noise",
    "filter_noise",
    "NoiseFilterOptions",
    "sanitize_for_context",
    "format_recall_context",
    # Collaborator protocols
    "Embedder",
    "VectorSearchProvider",
    "LexicalSearchProvider",
    # Types
    "MemoryCategory",
    "MemoryEntry",
    "RerankMode",
    "RetrievalMode",
    "RetrievalRequest",
    "ScoredCandidate",
    "ScoreProvenance",
    "ScoringConfig",
    "SearchHit",
    "SignalScore",
    "WeightPair",
    "sort_candidates",
    # Constants
    "MAX_RETRIEVAL_LIMIT",
    "MAX_CANDIDATE_POOL_SIZE",
    "DEFAULT_MMR_THRESHOLD",
    "DEFAULT_RERANK_TIMEOUT_MS",
]
