"""Memory retriever with hybrid search, multi-stage scoring and reranking.

This module implements the core retrieval pipeline:
- Query embedding and concurrent vector + lexical (BM25) search
- Weighted fusion with query-dependent weights
- Recency, importance and length scoring stages
- Optional cross-encoder reranking with fail-open degradation
- Time decay, hard score cutoff and noise filtering
- Diversity-aware final selection
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from memory_recall.errors import (
    ConfigurationError,
    RetrievalCancelledError,
    SearchProviderError,
)
from memory_recall.rerankers.base import BaseReranker
from memory_recall.rerankers.client import CrossEncoderReranker
from memory_recall.retrieval.classifier import QueryClassifier
from memory_recall.retrieval.constants import DEFAULT_RECALL_LIMIT, RERANK_BLEND_WEIGHT
from memory_recall.retrieval.diversity import select_diverse
from memory_recall.retrieval.fusion import fuse_candidates
from memory_recall.retrieval.gate import should_skip_retrieval
from memory_recall.retrieval.noise import filter_noise
from memory_recall.retrieval.providers import (
    Embedder,
    LexicalSearchProvider,
    VectorSearchProvider,
)
from memory_recall.retrieval.scoring import ScoringPipeline
from memory_recall.retrieval.types import (
    RerankMode,
    RetrievalMode,
    RetrievalRequest,
    ScoredCandidate,
    ScoringConfig,
    SearchHit,
    WeightPair,
    sort_candidates,
)
from memory_recall.utils.logging import (
    bind_context,
    clear_context,
    configure_logging_from_settings,
    get_logger,
)
from memory_recall.utils.metrics import RetrievalMetrics, get_default_metrics

if TYPE_CHECKING:
    from memory_recall.config import Settings


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RetrieverHealth:
    """Result of a retriever self-test.

    Attributes:
        success: Whether a probe retrieval completed.
        mode: Configured retrieval mode.
        has_lexical_support: Whether a lexical provider takes part in retrieval.
        error: Failure message when the probe failed.
    """

    success: bool
    mode: RetrievalMode
    has_lexical_support: bool
    error: str | None = None


class MemoryRetriever:
    """Hybrid memory retriever.

    Stateless per request: every ``retrieve`` call works on its own local
    candidate lists, so one instance can serve concurrent requests.

    Attributes:
        vector_provider: Vector search collaborator.
        lexical_provider: Lexical search collaborator (None disables BM25).
        embedder: Query embedder.
        reranker: Cross-encoder reranker (None disables reranking).
        config: Frozen scoring configuration.
        vector_dimensions: Deployment embedding dimensionality.
        classifier: Query classifier for dynamic fusion weights.
        metrics: Prometheus metrics sink.
    """

    def __init__(
        self,
        vector_provider: VectorSearchProvider,
        embedder: Embedder,
        config: ScoringConfig | None = None,
        lexical_provider: LexicalSearchProvider | None = None,
        reranker: BaseReranker | None = None,
        vector_dimensions: int | None = None,
        logger: Any = None,
        metrics: RetrievalMetrics | None = None,
        classifier: QueryClassifier | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            vector_provider: Vector search collaborator.
            embedder: Query embedder.
            config: Scoring configuration (defaults to ScoringConfig()).
            lexical_provider: Lexical search collaborator.
            reranker: Reranker to use; built from config when omitted and
                cross-encoder reranking is enabled.
            vector_dimensions: Deployment dimensionality; must match the embedder.
            logger: structlog logger (defaults to the module logger).
            metrics: Metrics sink (defaults to the process-wide instance).
            classifier: Query classifier (defaults to QueryClassifier()).
            clock: Returns the current time in epoch milliseconds.

        Raises:
            ConfigurationError: If the embedder and index dimensions differ, or
                the configured rerank provider is unknown.
        """
        self.vector_provider = vector_provider
        self.lexical_provider = lexical_provider
        self.embedder = embedder
        self.config = config if config is not None else ScoringConfig()
        self.logger = logger if logger is not None else get_logger(__name__)
        self.metrics = metrics if metrics is not None else get_default_metrics()
        self.classifier = classifier if classifier is not None else QueryClassifier()
        self._clock = clock if clock is not None else _now_ms

        embedder_dims = embedder.dimensions
        if vector_dimensions is not None and embedder_dims != vector_dimensions:
            raise ConfigurationError(
                f"Embedder produces {embedder_dims}-dimensional vectors but the "
                f"index expects {vector_dimensions}"
            )
        self.vector_dimensions = (
            vector_dimensions if vector_dimensions is not None else embedder_dims
        )

        if reranker is None and self.config.rerank_enabled:
            reranker = CrossEncoderReranker(
                api_key=self.config.rerank_api_key,
                endpoint=self.config.rerank_endpoint,
                model=self.config.rerank_model,
                provider=self.config.rerank_provider,
                timeout_ms=self.config.rerank_timeout_ms,
            )
        self.reranker = reranker

        self.logger.info(
            f"Initialized memory retriever: mode={self.config.mode.value}, "
            f"lexical={self.has_lexical_support}, "
            f"rerank={self.reranker.name if self.reranker else 'none'}, "
            f"dimensions={self.vector_dimensions}"
        )

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        vector_provider: VectorSearchProvider,
        embedder: Embedder,
        lexical_provider: LexicalSearchProvider | None = None,
        **kwargs: Any,
    ) -> "MemoryRetriever":
        """Build a retriever from application settings.

        Also configures structured logging from ``log_level`` and ``log_json``.

        Args:
            settings: Application settings.
            vector_provider: Vector search collaborator.
            embedder: Query embedder.
            lexical_provider: Lexical search collaborator.
            **kwargs: Extra constructor arguments (logger, metrics, reranker, ...).

        Returns:
            Configured MemoryRetriever.
        """
        configure_logging_from_settings(settings)
        return cls(
            vector_provider=vector_provider,
            embedder=embedder,
            config=settings.scoring_config(),
            lexical_provider=lexical_provider,
            vector_dimensions=settings.vector_dimensions,
            **kwargs,
        )

    @property
    def has_lexical_support(self) -> bool:
        return self.config.mode == RetrievalMode.HYBRID and self.lexical_provider is not None

    @property
    def rerank_active(self) -> bool:
        return self.config.rerank == RerankMode.CROSS_ENCODER and self.reranker is not None

    def compute_weights(self, query: str) -> WeightPair:
        """Fusion weights for a query: classifier-derived or fixed from config."""
        if self.config.dynamic_weights:
            return self.classifier.compute_weights(query)
        return WeightPair(
            vector_weight=self.config.vector_weight,
            bm25_weight=self.config.bm25_weight,
        )

    async def retrieve(
        self,
        request: RetrievalRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> list[ScoredCandidate]:
        """Execute the full retrieval pipeline for one request.

        Args:
            request: Query, limit and filters.
            cancel_event: Optional event; when set before reranking the
                request is abandoned.

        Returns:
            At most ``request.limit`` candidates, sorted by score descending
            (ties by id), each scoring at least ``hard_min_score``.

        Raises:
            SearchProviderError: If vector search (or embedding) fails.
            RetrievalCancelledError: If ``cancel_event`` was set.
        """
        start = time.perf_counter()
        mode = self.config.mode.value
        clear_context()
        bind_context(query=request.query[:50], limit=request.limit, mode=mode)

        try:
            results = await self._run_pipeline(request, cancel_event)
        except Exception:
            self.metrics.record_retrieval(mode, False, time.perf_counter() - start, 0)
            raise

        latency = time.perf_counter() - start
        self.metrics.record_retrieval(mode, True, latency, len(results))
        self.logger.info(
            f"Retrieval completed: mode={mode}, results={len(results)}, "
            f"latency_ms={latency * 1000:.2f}"
        )
        return results

    async def _run_pipeline(
        self,
        request: RetrievalRequest,
        cancel_event: asyncio.Event | None,
    ) -> list[ScoredCandidate]:
        now_ms = self._clock()
        pipeline = ScoringPipeline(self.config, now_ms)

        self.logger.debug(
            f"Starting retrieval: query={request.query[:50]!r}, limit={request.limit}, "
            f"scope_filter={request.scope_filter}, category={request.category}"
        )

        vector_hits, lexical_hits = await self._search(request)
        pool = self.config.candidate_pool_size
        vector_hits = vector_hits[:pool]
        lexical_hits = lexical_hits[:pool]
        self.logger.debug(
            f"Search completed: vector={len(vector_hits)}, bm25={len(lexical_hits)}"
        )

        weights = self.compute_weights(request.query)
        fused = fuse_candidates(
            vector_hits,
            lexical_hits,
            weights,
            expected_dimensions=self.vector_dimensions,
            on_malformed=lambda _hit, source: self.metrics.record_malformed_candidate(source),
        )

        candidates = sort_candidates(pipeline.apply(list(fused.values())))

        if cancel_event is not None and cancel_event.is_set():
            raise RetrievalCancelledError("Retrieval cancelled before reranking")

        if self.rerank_active and candidates:
            candidates = await self._apply_reranking(self.reranker, request.query, candidates)

        candidates = pipeline.cutoff(pipeline.decay(candidates))
        if self.config.filter_noise:
            candidates = filter_noise(candidates, lambda c: c.entry.text)

        return select_diverse(
            sort_candidates(candidates),
            request.limit,
            threshold=self.config.mmr_threshold,
        )

    async def _search(self, request: RetrievalRequest) -> tuple[list[SearchHit], list[SearchHit]]:
        """Embed the query once and run vector and lexical search concurrently."""
        pool = self.config.candidate_pool_size

        try:
            vector = await self.embedder.embed_query(request.query)
        except Exception as e:
            raise SearchProviderError(f"Query embedding failed: {e}", source="embedder") from e

        vector_task = self.vector_provider.vector_search(
            vector,
            pool,
            self.config.min_score,
            request.scope_filter,
            request.category,
        )

        if not self.has_lexical_support:
            try:
                return await vector_task, []
            except Exception as e:
                raise SearchProviderError(f"Vector search failed: {e}") from e

        lexical_task = self.lexical_provider.bm25_search(
            request.query,
            pool,
            request.scope_filter,
            request.category,
        )
        vector_result, lexical_result = await asyncio.gather(
            vector_task, lexical_task, return_exceptions=True
        )

        if isinstance(vector_result, BaseException):
            raise SearchProviderError(f"Vector search failed: {vector_result}") from vector_result

        if isinstance(lexical_result, BaseException):
            self.logger.warning(
                f"Lexical search failed, continuing with vector results only: {lexical_result}"
            )
            lexical_result = []

        return vector_result, lexical_result

    async def _apply_reranking(
        self, reranker: BaseReranker, query: str, candidates: list[ScoredCandidate]
    ) -> list[ScoredCandidate]:
        """Blend cross-encoder scores into candidates, failing open.

        Candidates referenced by a valid, first-seen result index get
        ``0.6 * rerank + 0.4 * previous``; the rest keep their score. On any
        reranker failure every score is left unchanged.
        """
        provider = reranker.name
        start = time.perf_counter()

        outcome = await reranker.rerank(query, [c.entry.text for c in candidates])
        latency = time.perf_counter() - start
        self.metrics.record_rerank(provider, outcome.ok, latency)

        if not outcome.ok:
            reason = outcome.reason.value if outcome.reason else "unknown"
            self.logger.warning(
                f"Rerank failed, keeping pre-rerank order: provider={provider}, "
                f"reason={reason}, detail={outcome.detail}"
            )
            self.metrics.record_rerank_degradation(provider, reason)
            return candidates

        reranked = list(candidates)
        seen: set[int] = set()
        for result in outcome.results:
            if not 0 <= result.index < len(candidates) or result.index in seen:
                continue
            seen.add(result.index)
            original = candidates[result.index]
            blended = result.score * RERANK_BLEND_WEIGHT + original.score * (
                1.0 - RERANK_BLEND_WEIGHT
            )
            reranked[result.index] = ScoredCandidate(
                entry=original.entry,
                score=blended,
                sources=original.sources.with_reranked(result.score),
            )

        self.logger.info(
            f"Reranking complete: provider={provider}, candidates={len(candidates)}, "
            f"rescored={len(seen)}, latency_ms={latency * 1000:.2f}"
        )
        return sort_candidates(reranked)

    async def recall(
        self,
        query: str,
        limit: int = DEFAULT_RECALL_LIMIT,
        scope_filter: list[str] | None = None,
    ) -> list[ScoredCandidate]:
        """Gate-aware retrieval for automatic context injection.

        Returns an empty list without searching when the adaptive gate decides
        the query does not warrant memory retrieval.
        """
        skipped = should_skip_retrieval(query)
        self.metrics.record_gate_decision(skipped)
        if skipped:
            self.logger.debug(f"Skipping retrieval for query: {query[:50]!r}")
            return []

        return await self.retrieve(
            RetrievalRequest(query=query, limit=limit, scope_filter=scope_filter)
        )

    async def test(self, query: str = "test query") -> RetrieverHealth:
        """Run a probe retrieval and report whether the engine is usable."""
        try:
            await self.retrieve(RetrievalRequest(query=query, limit=1))
            return RetrieverHealth(
                success=True,
                mode=self.config.mode,
                has_lexical_support=self.has_lexical_support,
            )
        except Exception as e:
            self.logger.error(f"Retriever self-test failed: {e}", exc_info=True)
            return RetrieverHealth(
                success=False,
                mode=self.config.mode,
                has_lexical_support=self.has_lexical_support,
                error=str(e),
            )
