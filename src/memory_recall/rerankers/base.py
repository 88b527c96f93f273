"""Base abstract class and result types for rerankers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class RankedResult:
    """A single relevance score returned by a reranker.

    Attributes:
        index: Position of the document in the submitted list.
        score: Relevance score (higher is better).
    """

    index: int
    score: float


class RerankFailureReason(str, Enum):
    """Why a rerank call produced no usable scores."""

    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK = "network"
    MALFORMED = "malformed"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class RerankOutcome:
    """Result-or-error value returned by a rerank call.

    Exactly one of ``results`` (on success) or ``reason`` (on failure) is
    meaningful. Callers branch on ``ok`` instead of catching exceptions.

    Attributes:
        ok: Whether the call succeeded.
        results: Scores returned by the provider.
        reason: Failure category.
        detail: Human-readable failure detail for logs.
    """

    ok: bool
    results: list[RankedResult] = field(default_factory=list)
    reason: RerankFailureReason | None = None
    detail: str = ""

    @classmethod
    def success(cls, results: list[RankedResult]) -> "RerankOutcome":
        return cls(ok=True, results=results)

    @classmethod
    def failure(cls, reason: RerankFailureReason, detail: str = "") -> "RerankOutcome":
        return cls(ok=False, reason=reason, detail=detail)


class BaseReranker(ABC):
    """Abstract base class for reranker implementations.

    Rerankers score candidate documents against a query. Implementations
    must not raise for request failures; they return a failed RerankOutcome
    so the caller can keep its existing ordering.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs and metric labels."""

    @abstractmethod
    async def rerank(self, query: str, documents: list[str]) -> RerankOutcome:
        """Score documents against a query.

        Args:
            query: The search query.
            documents: Candidate texts in current ranking order.

        Returns:
            RerankOutcome with per-index scores, or the failure reason.
        """
