"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from memory_recall.retrieval.types import RerankMode, ScoringConfig
from memory_recall.utils.metrics import NullMetrics
from tests.factories import DIMS


@pytest.fixture
def plain_config() -> ScoringConfig:
    """Scoring config with every optional stage disabled."""
    return ScoringConfig(
        dynamic_weights=False,
        hard_min_score=0.0,
        recency_half_life_days=0,
        length_norm_anchor=0,
        time_decay_half_life_days=0,
        filter_noise=False,
        rerank=RerankMode.NONE,
    )


@pytest.fixture
def mock_embedder() -> MagicMock:
    """Create a mock embedder producing 4-dimensional vectors."""
    embedder = MagicMock()
    embedder.dimensions = DIMS
    embedder.embed_query = AsyncMock(return_value=[1.0, 0.0, 0.0, 0.0])
    return embedder


@pytest.fixture
def mock_vector_provider() -> MagicMock:
    """Create a mock vector search provider with no hits."""
    provider = MagicMock()
    provider.vector_search = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def mock_lexical_provider() -> MagicMock:
    """Create a mock lexical search provider with no hits."""
    provider = MagicMock()
    provider.bm25_search = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def null_metrics() -> NullMetrics:
    return NullMetrics()
