"""Configuration constants for the retrieval module.

This module defines the fixed coefficients of the scoring pipeline along
with default weights and limits used when no explicit configuration is given.
"""

MAX_RETRIEVAL_LIMIT = 20
"""Upper bound for the number of results a single request may ask for.

Requests above this value are clamped rather than rejected.
"""

MAX_CANDIDATE_POOL_SIZE = 20
"""Upper bound for the number of candidates fetched from each search signal."""

MS_PER_DAY = 86_400_000
"""Milliseconds per day, used to convert entry timestamps to ages."""

# Dynamic weighting buckets (vector_weight, bm25_weight)
SPECIFIC_WEIGHTS = (0.5, 0.5)
"""Weights for queries containing names, dates, IDs, URLs or paths.

Lexical precision matters as much as semantics for these queries.
"""

ABSTRACT_WEIGHTS = (0.9, 0.1)
"""Weights for conceptual or explanatory queries (how/why/what/explain)."""

DEFAULT_WEIGHTS = (0.7, 0.3)
"""Weights for everything else."""

# Importance weighting: score *= IMPORTANCE_FLOOR + IMPORTANCE_SPAN * importance
IMPORTANCE_FLOOR = 0.7
IMPORTANCE_SPAN = 0.3

LENGTH_NORM_STRENGTH = 0.5
"""Coefficient on log2(length / anchor) in the length normalization factor."""

TIME_DECAY_FLOOR = 0.5
"""Lower bound of the time decay multiplier as age grows without limit."""

RERANK_BLEND_WEIGHT = 0.6
"""Share of the cross-encoder score in the blended score.

The remaining 0.4 comes from the pre-rerank pipeline score.
"""

DEFAULT_MMR_THRESHOLD = 0.85
"""Similarity at or above which a candidate counts as a near-duplicate."""

DEFAULT_RERANK_TIMEOUT_MS = 5000
"""Timeout for the external rerank call in milliseconds."""

BM25_SIGMOID_SCALE = 5.0
"""Scale for squashing raw (unbounded) BM25 scores into (0, 1)."""

DEFAULT_RECALL_LIMIT = 3
"""Number of memories injected by gate-aware recall."""
