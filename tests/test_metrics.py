"""Tests for Prometheus metrics instrumentation."""

import pytest
from prometheus_client import CollectorRegistry

from memory_recall.utils.metrics import (
    NullMetrics,
    RetrievalMetrics,
    get_content_type,
    get_default_metrics,
)


@pytest.fixture
def registry() -> CollectorRegistry:
    """Create an isolated registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> RetrievalMetrics:
    return RetrievalMetrics(registry=registry)


class TestRetrievalMetrics:
    """Test retrieval-related metrics."""

    def test_record_retrieval_success(
        self, metrics: RetrievalMetrics, registry: CollectorRegistry
    ) -> None:
        """Test successful retrievals are counted and observed."""
        metrics.record_retrieval("hybrid", True, 0.05, 3)

        assert registry.get_sample_value(
            "retrieval_requests_total", {"mode": "hybrid", "status": "success"}
        ) == 1.0
        assert registry.get_sample_value("retrieval_results_count_sum", {"mode": "hybrid"}) == 3.0

    def test_record_retrieval_failure(
        self, metrics: RetrievalMetrics, registry: CollectorRegistry
    ) -> None:
        """Test failed retrievals do not observe a result count."""
        metrics.record_retrieval("vector", False, 0.01, 0)

        assert registry.get_sample_value(
            "retrieval_requests_total", {"mode": "vector", "status": "error"}
        ) == 1.0
        count = registry.get_sample_value("retrieval_results_count_count", {"mode": "vector"})
        assert count is None


class TestRerankerMetrics:
    """Test reranker metrics."""

    def test_record_rerank(self, metrics: RetrievalMetrics, registry: CollectorRegistry) -> None:
        """Test rerank calls are counted per provider and status."""
        metrics.record_rerank("jina", True, 0.2)
        metrics.record_rerank("jina", False, 5.0)

        for status in ("success", "error"):
            assert registry.get_sample_value(
                "reranker_requests_total", {"provider": "jina", "status": status}
            ) == 1.0
        count = registry.get_sample_value("reranker_latency_seconds_count", {"provider": "jina"})
        assert count == 2.0

    def test_record_degradation(
        self, metrics: RetrievalMetrics, registry: CollectorRegistry
    ) -> None:
        """Test fail-open degradations are counted by reason."""
        metrics.record_rerank_degradation("pinecone", "timeout")

        assert registry.get_sample_value(
            "reranker_degraded_total", {"provider": "pinecone", "reason": "timeout"}
        ) == 1.0


class TestGateAndDataMetrics:
    """Test gate and data-quality metrics."""

    def test_gate_decisions(self, metrics: RetrievalMetrics, registry: CollectorRegistry) -> None:
        """Test skip and retrieve decisions are labelled."""
        metrics.record_gate_decision(True)
        metrics.record_gate_decision(False)
        metrics.record_gate_decision(False)

        assert registry.get_sample_value(
            "retrieval_gate_decisions_total", {"decision": "skip"}
        ) == 1.0
        assert registry.get_sample_value(
            "retrieval_gate_decisions_total", {"decision": "retrieve"}
        ) == 2.0

    def test_malformed_candidates(
        self, metrics: RetrievalMetrics, registry: CollectorRegistry
    ) -> None:
        """Test skipped candidates are counted by source."""
        metrics.record_malformed_candidate("bm25")

        assert registry.get_sample_value("malformed_candidates_total", {"source": "bm25"}) == 1.0


class TestExport:
    """Test metrics export."""

    def test_export_returns_text_format(self, metrics: RetrievalMetrics) -> None:
        """Test export produces Prometheus exposition text."""
        metrics.record_gate_decision(True)

        output = metrics.export()

        assert isinstance(output, bytes)
        assert b"retrieval_gate_decisions_total" in output

    def test_get_content_type(self) -> None:
        """Test content type is correct."""
        content_type = get_content_type()
        assert "text/plain" in content_type or "openmetrics" in content_type.lower()

    def test_default_metrics_are_cached(self) -> None:
        """Test the process-wide instance is created once."""
        assert get_default_metrics() is get_default_metrics()


class TestNullMetrics:
    """Test the no-op metrics sink."""

    def test_records_nothing(self) -> None:
        """Test every recorder is a no-op."""
        metrics = NullMetrics()

        metrics.record_retrieval("hybrid", True, 0.1, 1)
        metrics.record_rerank("jina", True, 0.1)
        metrics.record_rerank_degradation("jina", "timeout")
        metrics.record_gate_decision(True)
        metrics.record_malformed_candidate("vector")

        assert b"retrieval_requests_total" not in metrics.export()
