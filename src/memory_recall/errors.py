"""Exception types raised by the retrieval engine."""


class MemoryRecallError(Exception):
    """Base class for all memory-recall errors."""


class ConfigurationError(MemoryRecallError, ValueError):
    """Raised at startup when the engine configuration is unusable.

    Covers unsupported embedding models, embedder/index dimension mismatches
    and unknown reranker providers. Never raised per request.
    """


class SearchProviderError(MemoryRecallError):
    """Raised when the vector search collaborator fails.

    Retrieval cannot proceed without the vector signal, so this propagates
    to the caller as a request-level failure.
    """

    def __init__(self, message: str, source: str = "vector") -> None:
        super().__init__(message)
        self.source = source


class RetrievalCancelledError(MemoryRecallError):
    """Raised when the caller abandons a request before reranking."""
