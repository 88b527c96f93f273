"""Query classification for dynamic fusion weights.

Classifies queries to decide how much the vector and lexical signals
should each contribute to the fused score:
- Specific terms (names, dates, IDs, URLs, paths) -> balanced weights
- Abstract/conceptual questions -> vector-heavy weights
- Everything else -> default weights
"""

import re
from dataclasses import dataclass
from enum import Enum

from memory_recall.retrieval.constants import (
    ABSTRACT_WEIGHTS,
    DEFAULT_WEIGHTS,
    SPECIFIC_WEIGHTS,
)
from memory_recall.retrieval.types import WeightPair


class QueryType(str, Enum):
    """Weighting bucket a query falls into."""

    SPECIFIC = "specific"
    ABSTRACT = "abstract"
    DEFAULT = "default"


@dataclass(frozen=True)
class ClassificationResult:
    """Result of query classification."""

    query_type: QueryType
    weights: WeightPair


class QueryClassifier:
    """Heuristic classifier mapping a query to fusion weights.

    Rules are evaluated in order and the first match wins. Specific-term
    detection runs before abstract-term detection, so "What did John say"
    is specific (it names someone) rather than abstract.
    """

    # Specific-term patterns
    CAPITALIZED_PATTERN = re.compile(r"[A-Z][a-z]+")
    DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
    EMAIL_PATTERN = re.compile(r"@\w+", re.ASCII)
    NUMBER_PATTERN = re.compile(r"#?\d+", re.ASCII)
    URL_PATTERN = re.compile(r"https?://")
    PATH_PATTERN = re.compile(r"[/\\]")

    # Abstract-term patterns. CJK has no word boundaries, so those terms are
    # matched as plain substrings.
    ABSTRACT_PATTERN = re.compile(
        r"\b(how|why|what|explain|understand|meaning|concept|idea)\b",
        re.IGNORECASE | re.ASCII,
    )
    ABSTRACT_CJK_PATTERN = re.compile(r"(感觉|怎么|为什么|什么|意思|概念|想法)")

    SPECIFIC_PATTERNS = (
        CAPITALIZED_PATTERN,
        DATE_PATTERN,
        EMAIL_PATTERN,
        NUMBER_PATTERN,
        URL_PATTERN,
        PATH_PATTERN,
    )

    def has_specific_terms(self, query: str) -> bool:
        """Check for names, dates, emails, IDs, URLs or paths."""
        return any(pattern.search(query) for pattern in self.SPECIFIC_PATTERNS)

    def has_abstract_terms(self, query: str) -> bool:
        """Check for interrogative or explanatory keywords (Latin or CJK)."""
        return bool(self.ABSTRACT_PATTERN.search(query) or self.ABSTRACT_CJK_PATTERN.search(query))

    def classify(self, query: str) -> ClassificationResult:
        """Classify a query into a weighting bucket.

        Args:
            query: Raw query text.

        Returns:
            ClassificationResult with the bucket and its weights.
        """
        if self.has_specific_terms(query):
            query_type, (vector_weight, bm25_weight) = QueryType.SPECIFIC, SPECIFIC_WEIGHTS
        elif self.has_abstract_terms(query):
            query_type, (vector_weight, bm25_weight) = QueryType.ABSTRACT, ABSTRACT_WEIGHTS
        else:
            query_type, (vector_weight, bm25_weight) = QueryType.DEFAULT, DEFAULT_WEIGHTS

        return ClassificationResult(
            query_type=query_type,
            weights=WeightPair(vector_weight=vector_weight, bm25_weight=bm25_weight),
        )

    def compute_weights(self, query: str) -> WeightPair:
        """Get the fusion weights for a query.

        Args:
            query: Raw query text.

        Returns:
            WeightPair for the query's bucket.
        """
        return self.classify(query).weights
