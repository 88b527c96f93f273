"""Cross-encoder reranking for retrieved memories.

Provides a provider-pluggable HTTP reranker that returns result-or-error
outcomes, so rerank failures degrade gracefully instead of aborting retrieval.
"""

from memory_recall.rerankers.base import (
    BaseReranker,
    RankedResult,
    RerankFailureReason,
    RerankOutcome,
)
from memory_recall.rerankers.client import CrossEncoderReranker
from memory_recall.rerankers.providers import (
    JINA,
    PINECONE,
    PROVIDERS,
    SILICONFLOW,
    RerankProvider,
    get_provider,
)

__all__ = [
    "BaseReranker",
    "CrossEncoderReranker",
    "RankedResult",
    "RerankFailureReason",
    "RerankOutcome",
    "RerankProvider",
    "get_provider",
    "PROVIDERS",
    "JINA",
    "SILICONFLOW",
    "PINECONE",
]
