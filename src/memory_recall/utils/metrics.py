"""Prometheus metrics instrumentation for the retrieval engine.

Tracks:
- Retrieval latency, throughput and result counts
- Reranker requests, latency and fail-open degradations
- Adaptive retrieval gate decisions
- Malformed candidates skipped during fusion

Metrics are grouped in a RetrievalMetrics instance that is injected into the
retriever. Tests pass their own CollectorRegistry (or NullMetrics) so no
process-wide state is shared between them.
"""

from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class RetrievalMetrics:
    """Prometheus collectors for one retrieval engine.

    Attributes:
        registry: Registry the collectors are registered with.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Create and register the collectors.

        Args:
            registry: Target registry. Uses the default global registry if None.
        """
        self.registry = registry if registry is not None else REGISTRY

        # ==================== Retrieval Metrics ====================

        self.retrieval_latency = Histogram(
            "retrieval_latency_seconds",
            "Retrieval request latency in seconds",
            ["mode"],
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )
        self.retrieval_requests = Counter(
            "retrieval_requests_total",
            "Total retrieval requests",
            ["mode", "status"],
            registry=self.registry,
        )
        self.retrieval_results = Histogram(
            "retrieval_results_count",
            "Number of results returned per retrieval",
            ["mode"],
            buckets=[0, 1, 3, 5, 10, 20],
            registry=self.registry,
        )

        # ==================== Reranker Metrics ====================

        self.reranker_requests = Counter(
            "reranker_requests_total",
            "Total reranker requests",
            ["provider", "status"],
            registry=self.registry,
        )
        self.reranker_latency = Histogram(
            "reranker_latency_seconds",
            "Reranker latency in seconds",
            ["provider"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )
        self.reranker_degraded = Counter(
            "reranker_degraded_total",
            "Total reranker fail-open degradations",
            ["provider", "reason"],
            registry=self.registry,
        )

        # ==================== Gate / Data Quality Metrics ====================

        self.gate_decisions = Counter(
            "retrieval_gate_decisions_total",
            "Adaptive retrieval gate decisions",
            ["decision"],
            registry=self.registry,
        )
        self.malformed_candidates = Counter(
            "malformed_candidates_total",
            "Candidates skipped because of malformed data",
            ["source"],
            registry=self.registry,
        )

    def record_retrieval(self, mode: str, success: bool, latency: float, results: int) -> None:
        """Record a finished retrieval.

        Args:
            mode: Retrieval mode (hybrid, vector).
            success: Whether the request succeeded.
            latency: Wall time in seconds.
            results: Number of results returned (ignored on failure).
        """
        status = "success" if success else "error"
        self.retrieval_requests.labels(mode=mode, status=status).inc()
        self.retrieval_latency.labels(mode=mode).observe(latency)
        if success:
            self.retrieval_results.labels(mode=mode).observe(results)

    def record_rerank(self, provider: str, success: bool, latency: float) -> None:
        """Record a reranker round-trip.

        Args:
            provider: Rerank provider name.
            success: Whether the call produced usable scores.
            latency: Round-trip time in seconds.
        """
        status = "success" if success else "error"
        self.reranker_requests.labels(provider=provider, status=status).inc()
        self.reranker_latency.labels(provider=provider).observe(latency)

    def record_rerank_degradation(self, provider: str, reason: str) -> None:
        """Record a reranker degradation event.

        Args:
            provider: Rerank provider that degraded.
            reason: Reason for degradation (timeout, http_error, network, malformed).
        """
        self.reranker_degraded.labels(provider=provider, reason=reason).inc()

    def record_gate_decision(self, skipped: bool) -> None:
        """Record whether the adaptive gate skipped a query."""
        self.gate_decisions.labels(decision="skip" if skipped else "retrieve").inc()

    def record_malformed_candidate(self, source: str) -> None:
        """Record a candidate dropped for malformed data.

        Args:
            source: Signal that produced it (vector, bm25).
        """
        self.malformed_candidates.labels(source=source).inc()

    def export(self) -> bytes:
        """Get metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)


class NullMetrics(RetrievalMetrics):
    """Metrics sink that records nothing."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()

    def record_retrieval(self, mode: str, success: bool, latency: float, results: int) -> None:
        pass

    def record_rerank(self, provider: str, success: bool, latency: float) -> None:
        pass

    def record_rerank_degradation(self, provider: str, reason: str) -> None:
        pass

    def record_gate_decision(self, skipped: bool) -> None:
        pass

    def record_malformed_candidate(self, source: str) -> None:
        pass


@lru_cache(maxsize=1)
def get_default_metrics() -> RetrievalMetrics:
    """Get the process-wide metrics bound to the default registry.

    Collectors can only be registered once per registry, so the default
    instance is cached.
    """
    return RetrievalMetrics()


def get_content_type() -> str:
    """Get content type for a metrics response.

    Returns:
        Content type string for Prometheus metrics.
    """
    return CONTENT_TYPE_LATEST
