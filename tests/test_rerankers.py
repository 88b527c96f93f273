"""Tests for the cross-encoder reranker client and provider adapters."""

import asyncio
import json

import httpx
import pytest

from memory_recall.errors import ConfigurationError
from memory_recall.rerankers import (
    PINECONE,
    CrossEncoderReranker,
    RankedResult,
    RerankFailureReason,
    get_provider,
)
from memory_recall.rerankers.providers import MalformedRerankResponse

ENDPOINT = "https://rerank.test/v1/rerank"


def make_reranker(
    handler, provider: str = "jina", timeout_ms: int = 5000
) -> CrossEncoderReranker:
    """Create a reranker whose HTTP calls go to ``handler``."""
    return CrossEncoderReranker(
        api_key="test-key",
        endpoint=ENDPOINT,
        model="test-model",
        provider=provider,
        timeout_ms=timeout_ms,
        transport=httpx.MockTransport(handler),
    )


class TestProviders:
    """Tests for provider lookup and adapters."""

    def test_get_provider_is_case_insensitive(self) -> None:
        """Test provider names are normalized."""
        assert get_provider(" Pinecone ") is PINECONE

    def test_unknown_provider_raises(self) -> None:
        """Test an unknown provider is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown rerank provider"):
            get_provider("cohere")

    def test_unknown_provider_fails_at_construction(self) -> None:
        """Test the reranker validates its provider eagerly."""
        with pytest.raises(ConfigurationError):
            CrossEncoderReranker(api_key="k", endpoint=ENDPOINT, model="m", provider="nope")

    def test_parser_rejects_non_object(self) -> None:
        """Test a non-object response is malformed."""
        with pytest.raises(MalformedRerankResponse):
            get_provider("jina").parse_response([1, 2, 3])

    def test_parser_rejects_invalid_index(self) -> None:
        """Test a non-integer index is malformed."""
        with pytest.raises(MalformedRerankResponse, match="Invalid index"):
            get_provider("jina").parse_response(
                {"results": [{"index": "0", "relevance_score": 0.5}]}
            )

    def test_parser_tolerates_missing_list(self) -> None:
        """Test a response without results yields no scores."""
        assert get_provider("jina").parse_response({}) == []


class TestJinaRequests:
    """Tests for jina-compatible providers."""

    @pytest.mark.asyncio
    async def test_request_shape_and_parsing(self) -> None:
        """Test bearer auth, string documents and relevance_score parsing."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"index": 1, "relevance_score": 0.9},
                        {"index": 0, "relevance_score": 0.2},
                    ]
                },
            )

        outcome = await make_reranker(handler).rerank("coffee", ["tea", "espresso"])

        assert outcome.ok
        assert outcome.results == [
            RankedResult(index=1, score=0.9),
            RankedResult(index=0, score=0.2),
        ]
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"] == {
            "model": "test-model",
            "query": "coffee",
            "documents": ["tea", "espresso"],
            "top_n": 2,
        }

    @pytest.mark.asyncio
    async def test_siliconflow_uses_same_shape(self) -> None:
        """Test siliconflow shares the jina wire format."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer test-key"
            return httpx.Response(200, json={"results": [{"index": 0, "relevance_score": 0.7}]})

        outcome = await make_reranker(handler, provider="siliconflow").rerank("q", ["doc"])

        assert outcome.ok
        assert outcome.results == [RankedResult(index=0, score=0.7)]


class TestPineconeRequests:
    """Tests for the pinecone provider."""

    @pytest.mark.asyncio
    async def test_request_shape_and_parsing(self) -> None:
        """Test Api-Key auth, version header, text objects and data[].score."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": [{"index": 0, "score": 0.42}]})

        outcome = await make_reranker(handler, provider="pinecone").rerank("q", ["only doc"])

        assert outcome.ok
        assert outcome.results == [RankedResult(index=0, score=0.42)]
        assert seen["headers"]["Api-Key"] == "test-key"
        assert seen["headers"]["X-Pinecone-API-Version"] == "2024-10"
        assert "Authorization" not in seen["headers"]
        assert seen["body"]["documents"] == [{"text": "only doc"}]


class TestFailures:
    """Tests that failures become outcomes, never exceptions."""

    @pytest.mark.asyncio
    async def test_empty_documents_skip_the_call(self) -> None:
        """Test no request is made for an empty candidate list."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        outcome = await make_reranker(handler).rerank("q", [])

        assert outcome.ok
        assert outcome.results == []

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test a non-2xx status."""
        outcome = await make_reranker(lambda request: httpx.Response(500)).rerank("q", ["d"])

        assert not outcome.ok
        assert outcome.reason == RerankFailureReason.HTTP_ERROR
        assert "500" in outcome.detail

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        """Test a connection failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        outcome = await make_reranker(handler).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.NETWORK

    @pytest.mark.asyncio
    async def test_transport_timeout(self) -> None:
        """Test an httpx timeout."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        outcome = await make_reranker(handler).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_overall_timeout(self) -> None:
        """Test the call is abandoned after timeout_ms."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1.0)
            return httpx.Response(200, json={"results": []})

        outcome = await make_reranker(handler, timeout_ms=20).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test a body that is not JSON."""
        outcome = await make_reranker(
            lambda request: httpx.Response(200, content=b"<html>oops</html>")
        ).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.MALFORMED

    @pytest.mark.asyncio
    async def test_malformed_payload(self) -> None:
        """Test a JSON body with the wrong shape."""
        outcome = await make_reranker(
            lambda request: httpx.Response(200, json={"results": [{"index": 0}]})
        ).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.MALFORMED

    @pytest.mark.asyncio
    async def test_unexpected_error(self) -> None:
        """Test an arbitrary exception is contained."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("boom")

        outcome = await make_reranker(handler).rerank("q", ["d"])

        assert outcome.reason == RerankFailureReason.UNEXPECTED
        assert outcome.detail == "boom"
