"""Multi-stage scoring pipeline.

Every stage is a pure function of a candidate, the request time and the
scoring configuration, and returns a new candidate. Stages run in a fixed
order:

1. Recency boost (short horizon, favours very recent entries)
2. Importance weighting
3. Length normalization
   ... optional cross-encoder rerank (see MemoryRetriever) ...
4. Time decay (long horizon, floored at 0.5)
5. Hard minimum score cutoff
"""

import math

from memory_recall.retrieval.constants import (
    IMPORTANCE_FLOOR,
    IMPORTANCE_SPAN,
    LENGTH_NORM_STRENGTH,
    MS_PER_DAY,
    TIME_DECAY_FLOOR,
)
from memory_recall.retrieval.types import ScoredCandidate, ScoringConfig


def age_in_days(timestamp_ms: int, now_ms: int) -> float:
    """Age of an entry in days; entries from the future count as age 0."""
    return max(0.0, (now_ms - timestamp_ms) / MS_PER_DAY)


def recency_multiplier(age_days: float, half_life_days: float, weight: float) -> float:
    """Multiplier ``1 + exp(-age / half_life) * weight``; 1.0 when disabled."""
    if half_life_days <= 0:
        return 1.0
    return 1.0 + math.exp(-age_days / half_life_days) * weight


def importance_multiplier(importance: float) -> float:
    """Multiplier ``0.7 + 0.3 * importance`` (1.0 for importance 1, 0.7 for 0)."""
    return IMPORTANCE_FLOOR + IMPORTANCE_SPAN * importance


def length_multiplier(text_length: int, anchor: int) -> float:
    """Multiplier ``1 / (1 + 0.5 * log2(max(1, length / anchor)))``; 1.0 when disabled.

    Texts shorter than the anchor are not boosted.
    """
    if anchor <= 0:
        return 1.0
    ratio = text_length / anchor
    return 1.0 / (1.0 + LENGTH_NORM_STRENGTH * math.log2(max(1.0, ratio)))


def time_decay_multiplier(age_days: float, half_life_days: float) -> float:
    """Multiplier ``0.5 + 0.5 * exp(-age / half_life)`` in [0.5, 1.0]; 1.0 when disabled."""
    if half_life_days <= 0:
        return 1.0
    return TIME_DECAY_FLOOR + (1.0 - TIME_DECAY_FLOOR) * math.exp(-age_days / half_life_days)


class ScoringPipeline:
    """Applies the scoring stages to candidates for one request.

    Attributes:
        config: Scoring configuration.
        now_ms: Request time (Unix epoch in milliseconds) used for all ages.
    """

    def __init__(self, config: ScoringConfig, now_ms: int) -> None:
        self.config = config
        self.now_ms = now_ms

    def _age(self, candidate: ScoredCandidate) -> float:
        return age_in_days(candidate.entry.timestamp, self.now_ms)

    def apply_recency_boost(self, candidate: ScoredCandidate) -> ScoredCandidate:
        factor = recency_multiplier(
            self._age(candidate),
            self.config.recency_half_life_days,
            self.config.recency_weight,
        )
        return candidate.with_score(candidate.score * factor)

    def apply_importance(self, candidate: ScoredCandidate) -> ScoredCandidate:
        return candidate.with_score(
            candidate.score * importance_multiplier(candidate.entry.importance)
        )

    def apply_length_normalization(self, candidate: ScoredCandidate) -> ScoredCandidate:
        factor = length_multiplier(len(candidate.entry.text), self.config.length_norm_anchor)
        return candidate.with_score(candidate.score * factor)

    def apply_time_decay(self, candidate: ScoredCandidate) -> ScoredCandidate:
        factor = time_decay_multiplier(
            self._age(candidate), self.config.time_decay_half_life_days
        )
        return candidate.with_score(candidate.score * factor)

    def apply(self, candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        """Run the pre-rerank stages (recency, importance, length) in order."""
        return [
            self.apply_length_normalization(self.apply_importance(self.apply_recency_boost(c)))
            for c in candidates
        ]

    def decay(self, candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        """Run the post-rerank time decay stage."""
        return [self.apply_time_decay(c) for c in candidates]

    def cutoff(self, candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        """Drop candidates below the hard minimum score.

        Must run after every boost and decay so nothing below the floor can
        be rescued by a later stage.
        """
        return [c for c in candidates if c.score >= self.config.hard_min_score]
