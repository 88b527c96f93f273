"""Provider-specific request and response shapes for rerank APIs.

Each provider is a small record of functions building the headers and the
JSON payload and parsing the response. The provider is looked up once when
the reranker is constructed, not per call.

Supported providers:
- jina / siliconflow: bearer token auth, documents as plain strings,
  ``{"results": [{"index", "relevance_score"}]}`` responses
- pinecone: ``Api-Key`` header plus an API version header, documents as
  ``{"text": ...}`` objects, ``{"data": [{"index", "score"}]}`` responses
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from memory_recall.errors import ConfigurationError
from memory_recall.rerankers.base import RankedResult

PINECONE_API_VERSION = "2024-10"


class MalformedRerankResponse(ValueError):
    """Raised by a response parser when the payload has an unexpected shape."""


@dataclass(frozen=True)
class RerankProvider:
    """Request/response adapter for one rerank API.

    Attributes:
        name: Provider name.
        build_headers: Maps an API key to request headers.
        build_payload: Maps (model, query, documents) to the JSON body.
        parse_response: Maps the decoded JSON body to ranked results.
    """

    name: str
    build_headers: Callable[[str], dict[str, str]]
    build_payload: Callable[[str, str, list[str]], dict[str, Any]]
    parse_response: Callable[[Any], list[RankedResult]]


def _bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }


def _pinecone_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Api-Key": api_key,
        "X-Pinecone-API-Version": PINECONE_API_VERSION,
    }


def _string_documents_payload(model: str, query: str, documents: list[str]) -> dict[str, Any]:
    return {
        "model": model,
        "query": query,
        "documents": documents,
        "top_n": len(documents),
    }


def _text_object_documents_payload(
    model: str, query: str, documents: list[str]
) -> dict[str, Any]:
    return {
        "model": model,
        "query": query,
        "documents": [{"text": text} for text in documents],
        "top_n": len(documents),
    }


def _parse_items(data: Any, list_key: str, score_key: str) -> list[RankedResult]:
    if not isinstance(data, dict):
        raise MalformedRerankResponse(f"Expected JSON object, got {type(data).__name__}")

    items = data.get(list_key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedRerankResponse(f"'{list_key}' must be a list")

    results = []
    for item in items:
        try:
            index = item["index"]
            score = item[score_key]
        except (KeyError, TypeError) as e:
            raise MalformedRerankResponse(f"Missing field in rerank item: {e}") from e
        if isinstance(index, bool) or not isinstance(index, int):
            raise MalformedRerankResponse(f"Invalid index: {index!r}")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise MalformedRerankResponse(f"Invalid score: {score!r}")
        results.append(RankedResult(index=index, score=float(score)))
    return results


def _parse_results_relevance(data: Any) -> list[RankedResult]:
    return _parse_items(data, "results", "relevance_score")


def _parse_data_score(data: Any) -> list[RankedResult]:
    return _parse_items(data, "data", "score")


JINA = RerankProvider(
    name="jina",
    build_headers=_bearer_headers,
    build_payload=_string_documents_payload,
    parse_response=_parse_results_relevance,
)

SILICONFLOW = RerankProvider(
    name="siliconflow",
    build_headers=_bearer_headers,
    build_payload=_string_documents_payload,
    parse_response=_parse_results_relevance,
)

PINECONE = RerankProvider(
    name="pinecone",
    build_headers=_pinecone_headers,
    build_payload=_text_object_documents_payload,
    parse_response=_parse_data_score,
)

PROVIDERS: dict[str, RerankProvider] = {p.name: p for p in (JINA, SILICONFLOW, PINECONE)}


def get_provider(name: str) -> RerankProvider:
    """Look up a rerank provider by name.

    Args:
        name: Provider name (case-insensitive).

    Returns:
        The provider record.

    Raises:
        ConfigurationError: If the provider is unknown.
    """
    provider = PROVIDERS.get(name.strip().lower())
    if provider is None:
        raise ConfigurationError(
            f"Unknown rerank provider '{name}'. Supported: {', '.join(sorted(PROVIDERS))}"
        )
    return provider
