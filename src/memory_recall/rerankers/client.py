"""HTTP client for external cross-encoder rerank APIs.

Makes exactly one attempt per call, bounded by a timeout, and never raises
for request failures: every failure is returned as a RerankOutcome so the
retriever can fall back to its pre-rerank ordering.
"""

import asyncio

import httpx

from memory_recall.rerankers.base import (
    BaseReranker,
    RankedResult,
    RerankFailureReason,
    RerankOutcome,
)
from memory_recall.rerankers.providers import RerankProvider, get_provider
from memory_recall.utils.logging import get_logger

logger = get_logger(__name__)


class CrossEncoderReranker(BaseReranker):
    """Cross-encoder reranker backed by a hosted rerank endpoint.

    Attributes:
        provider: Request/response adapter, selected at construction.
        endpoint: Rerank API URL.
        model: Rerank model name.
        timeout_ms: Total timeout for one call in milliseconds.
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        model: str,
        provider: str = "jina",
        timeout_ms: int = 5000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the reranker.

        Args:
            api_key: API key for the provider.
            endpoint: Rerank API URL.
            model: Rerank model name.
            provider: Provider name (jina, siliconflow, pinecone).
            timeout_ms: Total timeout for one call in milliseconds.
            transport: Optional httpx transport (used by tests).

        Raises:
            ConfigurationError: If the provider is unknown.
        """
        self.provider: RerankProvider = get_provider(provider)
        self.endpoint = endpoint
        self.model = model
        self.timeout_ms = timeout_ms
        self._api_key = api_key
        self._transport = transport

        logger.info(
            f"Initialized cross-encoder reranker: provider={self.provider.name}, "
            f"model={model}, timeout_ms={timeout_ms}"
        )

    @property
    def name(self) -> str:
        return self.provider.name

    def _create_async_client(self) -> httpx.AsyncClient:
        """Create an async HTTP client with provider auth headers."""
        return httpx.AsyncClient(
            headers=self.provider.build_headers(self._api_key),
            timeout=self.timeout_ms / 1000.0,
            transport=self._transport,
        )

    async def _post(self, query: str, documents: list[str]) -> list[RankedResult]:
        payload = self.provider.build_payload(self.model, query, documents)
        async with self._create_async_client() as client:
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
            return self.provider.parse_response(response.json())

    async def rerank(self, query: str, documents: list[str]) -> RerankOutcome:
        """Score documents against a query.

        Args:
            query: The search query.
            documents: Candidate texts in current ranking order.

        Returns:
            RerankOutcome with per-index scores, or the failure reason.
        """
        if not documents:
            return RerankOutcome.success([])

        try:
            results = await asyncio.wait_for(
                self._post(query, documents),
                timeout=self.timeout_ms / 1000.0,
            )
            return RerankOutcome.success(results)

        except (TimeoutError, httpx.TimeoutException):
            detail = f"Rerank timeout ({self.timeout_ms}ms)"
            logger.warning(f"{detail} for provider: {self.provider.name}")
            return RerankOutcome.failure(RerankFailureReason.TIMEOUT, detail)

        except httpx.HTTPStatusError as e:
            detail = f"Rerank API error: {e.response.status_code} {e.response.reason_phrase}"
            logger.warning(detail)
            return RerankOutcome.failure(RerankFailureReason.HTTP_ERROR, detail)

        except httpx.RequestError as e:
            detail = f"Rerank request failed: {e}"
            logger.warning(detail)
            return RerankOutcome.failure(RerankFailureReason.NETWORK, detail)

        except ValueError as e:
            # JSON decode errors and MalformedRerankResponse
            detail = f"Malformed rerank response: {e}"
            logger.warning(detail)
            return RerankOutcome.failure(RerankFailureReason.MALFORMED, detail)

        except Exception as e:
            logger.error(f"Unexpected rerank failure: {e}", exc_info=True)
            return RerankOutcome.failure(RerankFailureReason.UNEXPECTED, str(e))
