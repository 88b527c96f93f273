"""Tests for the multi-stage scoring pipeline."""

import math

import pytest

from memory_recall.retrieval.scoring import (
    ScoringPipeline,
    age_in_days,
    importance_multiplier,
    length_multiplier,
    recency_multiplier,
    time_decay_multiplier,
)
from memory_recall.retrieval.types import ScoringConfig
from tests.factories import DAY_MS, NOW_MS, make_candidate


class TestMultipliers:
    """Tests for the pure stage multipliers."""

    def test_age_in_days(self) -> None:
        """Test age conversion from milliseconds."""
        assert age_in_days(NOW_MS - 3 * DAY_MS, NOW_MS) == pytest.approx(3.0)

    def test_future_timestamp_counts_as_age_zero(self) -> None:
        """Test clock skew does not produce negative ages."""
        assert age_in_days(NOW_MS + DAY_MS, NOW_MS) == 0.0

    def test_recency_boost_for_fresh_entry(self) -> None:
        """Test a brand-new entry gets the full recency weight."""
        assert recency_multiplier(0.0, 14.0, 0.1) == pytest.approx(1.1)

    def test_recency_boost_is_monotone(self) -> None:
        """Test newer entries never get a smaller boost than older ones."""
        ages = [0, 1, 7, 14, 30, 365]
        boosts = [recency_multiplier(age, 14.0, 0.1) for age in ages]

        assert boosts == sorted(boosts, reverse=True)
        assert all(boost >= 1.0 for boost in boosts)

    def test_recency_disabled(self) -> None:
        """Test a non-positive half-life disables the boost."""
        assert recency_multiplier(0.0, 0.0, 0.1) == 1.0

    def test_importance_multiplier_bounds(self) -> None:
        """Test importance 1.0 keeps the score and 0.0 scales it by 0.7."""
        assert importance_multiplier(1.0) == pytest.approx(1.0)
        assert importance_multiplier(0.0) == pytest.approx(0.7)

    def test_length_normalization_does_not_boost_short_text(self) -> None:
        """Test texts at or under the anchor are untouched."""
        assert length_multiplier(10, 500) == 1.0
        assert length_multiplier(500, 500) == 1.0

    def test_length_normalization_penalizes_long_text(self) -> None:
        """Test a text twice the anchor gets 1 / 1.5."""
        assert length_multiplier(1000, 500) == pytest.approx(1.0 / 1.5)

    def test_length_normalization_disabled(self) -> None:
        """Test a non-positive anchor disables the stage."""
        assert length_multiplier(10_000, 0) == 1.0

    def test_time_decay_is_bounded(self) -> None:
        """Test the decay multiplier stays within [0.5, 1.0]."""
        for age in [0, 1, 60, 600, 60_000]:
            factor = time_decay_multiplier(age, 60.0)
            assert 0.5 <= factor <= 1.0

        assert time_decay_multiplier(0, 60.0) == pytest.approx(1.0)
        assert time_decay_multiplier(60, 60.0) == pytest.approx(0.5 + 0.5 * math.exp(-1))

    def test_time_decay_disabled(self) -> None:
        """Test a non-positive half-life disables decay."""
        assert time_decay_multiplier(1000, 0) == 1.0


class TestScoringPipeline:
    """Tests for ScoringPipeline."""

    def test_importance_one_at_age_zero_passes_through(self) -> None:
        """Test that importance 1.0 leaves the score unchanged."""
        pipeline = ScoringPipeline(ScoringConfig(), NOW_MS)
        candidate = make_candidate("A", 0.8, importance=1.0)

        assert pipeline.apply_importance(candidate).score == pytest.approx(0.8)

    def test_apply_runs_all_pre_rerank_stages(self) -> None:
        """Test recency, importance and length are combined."""
        config = ScoringConfig(recency_half_life_days=14, recency_weight=0.1, length_norm_anchor=10)
        pipeline = ScoringPipeline(config, NOW_MS)
        candidate = make_candidate("A", 0.5, importance=0.0, text="x" * 20, age_days=0)

        [scored] = pipeline.apply([candidate])

        assert scored.score == pytest.approx(0.5 * 1.1 * 0.7 * (1 / 1.5))

    def test_stages_do_not_mutate_input(self) -> None:
        """Test stages return new candidates."""
        pipeline = ScoringPipeline(ScoringConfig(), NOW_MS)
        candidate = make_candidate("A", 0.5, importance=0.0)

        pipeline.apply([candidate])

        assert candidate.score == 0.5

    def test_decay_then_cutoff(self) -> None:
        """Test old entries can be decayed below the hard minimum."""
        config = ScoringConfig(time_decay_half_life_days=60, hard_min_score=0.35)
        pipeline = ScoringPipeline(config, NOW_MS)
        fresh = make_candidate("fresh", 0.6, age_days=0)
        old = make_candidate("old", 0.6, age_days=3650)

        kept = pipeline.cutoff(pipeline.decay([fresh, old]))

        assert [c.id for c in kept] == ["fresh"]

    def test_cutoff_keeps_scores_at_threshold(self) -> None:
        """Test the cutoff is inclusive."""
        pipeline = ScoringPipeline(ScoringConfig(hard_min_score=0.35), NOW_MS)

        kept = pipeline.cutoff([make_candidate("A", 0.35), make_candidate("B", 0.3499)])

        assert [c.id for c in kept] == ["A"]
