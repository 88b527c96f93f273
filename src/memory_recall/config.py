"""Configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from memory_recall.errors import ConfigurationError
from memory_recall.retrieval.constants import (
    DEFAULT_MMR_THRESHOLD,
    DEFAULT_RERANK_TIMEOUT_MS,
    MAX_CANDIDATE_POOL_SIZE,
)
from memory_recall.retrieval.types import RerankMode, RetrievalMode, ScoringConfig

# Known embedding model dimensions
EMBEDDING_DIMENSIONS: dict[str, int] = {
    # OpenAI
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-004": 768,
    # Google Gemini
    "gemini-embedding-001": 3072,
    # Ollama / local
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    # BAAI / sentence-transformers
    "BAAI/bge-m3": 1024,
    "all-MiniLM-L6-v2": 384,
    "all-mpnet-base-v2": 768,
    # Jina
    "jina-embeddings-v5-text-small": 1024,
    "jina-embeddings-v5-text-nano": 768,
}

RERANK_PROVIDERS = ("jina", "siliconflow", "pinecone")


def resolve_vector_dimensions(model: str, override: int | None = None) -> int:
    """Resolve the embedding dimensionality for a model.

    Args:
        model: Embedding model name.
        override: Explicit dimensionality; wins when positive.

    Returns:
        Number of dimensions of the model's vectors.

    Raises:
        ConfigurationError: If the model is unknown and no override is given.
    """
    if override is not None and override > 0:
        return override

    dims = EMBEDDING_DIMENSIONS.get(model)
    if dims is None:
        raise ConfigurationError(
            f"Unsupported embedding model: {model}. Either add it to "
            "EMBEDDING_DIMENSIONS or set embedding_dimensions explicitly."
        )
    return dims


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MEMORY_RECALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Emit JSON logs (False for console)")

    # Embeddings
    embedding_model: str = Field(
        default="jina-embeddings-v5-text-small", description="Embedding model name"
    )
    embedding_dimensions: int | None = Field(
        default=None, description="Explicit embedding dimensionality (overrides model table)"
    )

    # Retrieval
    retrieval_mode: RetrievalMode = Field(
        default=RetrievalMode.HYBRID, description="Retrieval mode: 'hybrid' or 'vector'"
    )
    vector_weight: float = Field(default=0.7, ge=0.0, le=1.0, description="Vector fusion weight")
    bm25_weight: float = Field(default=0.3, ge=0.0, le=1.0, description="BM25 fusion weight")
    dynamic_weights: bool = Field(
        default=True, description="Derive fusion weights from the query"
    )
    min_score: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Minimum vector similarity for candidates"
    )
    hard_min_score: float = Field(
        default=0.35, ge=0.0, description="Final score floor; lower candidates are dropped"
    )
    candidate_pool_size: int = Field(
        default=20,
        ge=1,
        le=MAX_CANDIDATE_POOL_SIZE,
        description="Candidates fetched from each search signal",
    )
    filter_noise: bool = Field(default=True, description="Drop noise-like memories")
    mmr_threshold: float = Field(
        default=DEFAULT_MMR_THRESHOLD,
        gt=0.0,
        le=1.0,
        description="Similarity at which candidates count as near-duplicates",
    )

    # Scoring pipeline
    recency_half_life_days: float = Field(
        default=14.0, description="Recency boost half-life in days (<= 0 disables)"
    )
    recency_weight: float = Field(default=0.10, ge=0.0, description="Recency boost weight")
    length_norm_anchor: int = Field(
        default=500, description="Text length anchor for length normalization (<= 0 disables)"
    )
    time_decay_half_life_days: float = Field(
        default=60.0, description="Time decay half-life in days (<= 0 disables)"
    )

    # Reranking
    rerank: RerankMode = Field(
        default=RerankMode.CROSS_ENCODER,
        description="Rerank mode: 'cross-encoder', 'lightweight' or 'none'",
    )
    rerank_provider: str = Field(
        default="jina", description="Rerank provider: jina, siliconflow or pinecone"
    )
    rerank_model: str = Field(
        default="jina-reranker-v2-base-multilingual", description="Cross-encoder model"
    )
    rerank_endpoint: str = Field(
        default="https://api.jina.ai/v1/rerank", description="Rerank API endpoint"
    )
    rerank_api_key: str = Field(default="", description="Rerank API key")
    rerank_timeout_ms: int = Field(
        default=DEFAULT_RERANK_TIMEOUT_MS, gt=0, description="Rerank timeout in milliseconds"
    )

    @field_validator("rerank_provider")
    @classmethod
    def validate_rerank_provider(cls, v: str) -> str:
        """Validate the reranker provider name."""
        provider = v.strip().lower()
        if provider not in RERANK_PROVIDERS:
            raise ValueError(
                f"Rerank provider must be one of {', '.join(RERANK_PROVIDERS)}, got '{v}'"
            )
        return provider

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level '{v}'")
        return level

    @model_validator(mode="after")
    def validate_embedding_model(self) -> "Settings":
        """Fail fast when the embedding dimensionality cannot be resolved."""
        resolve_vector_dimensions(self.embedding_model, self.embedding_dimensions)
        return self

    @property
    def vector_dimensions(self) -> int:
        """Embedding dimensionality for this deployment."""
        return resolve_vector_dimensions(self.embedding_model, self.embedding_dimensions)

    def scoring_config(self) -> ScoringConfig:
        """Build the frozen scoring configuration for a retriever."""
        return ScoringConfig(
            mode=self.retrieval_mode,
            vector_weight=self.vector_weight,
            bm25_weight=self.bm25_weight,
            dynamic_weights=self.dynamic_weights,
            min_score=self.min_score,
            hard_min_score=self.hard_min_score,
            candidate_pool_size=self.candidate_pool_size,
            recency_half_life_days=self.recency_half_life_days,
            recency_weight=self.recency_weight,
            length_norm_anchor=self.length_norm_anchor,
            time_decay_half_life_days=self.time_decay_half_life_days,
            filter_noise=self.filter_noise,
            mmr_threshold=self.mmr_threshold,
            rerank=self.rerank,
            rerank_provider=self.rerank_provider,
            rerank_model=self.rerank_model,
            rerank_endpoint=self.rerank_endpoint,
            rerank_api_key=self.rerank_api_key,
            rerank_timeout_ms=self.rerank_timeout_ms,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
