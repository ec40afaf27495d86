#!/usr/bin/env python3
"""
Ensemble Voting Tests

Degradation ladder:
-------------------
- 0 valid:  Mixed / 50, low, needs review
- 1 valid:  pass-through (re-clamped), low, needs review
- 2 valid:  same bucket -> clamped mean; different -> raw mean, derived bucket
- 3+ valid: unanimous / strict majority / median fallback

Key scenario:
-------------
Positive(78), Positive(82), Mixed(60) -> Positive 80, outlier = Mixed judge,
no review needed (Positive and Mixed are adjacent).

Run:
----
    pytest tests/test_ensemble.py -v
"""

import pytest

from critic_scoring.buckets import Bucket
from critic_scoring.ensemble import (
    agreement_level,
    ensemble_score,
    majority_bucket,
    to_model_score,
)
from critic_scoring.models import Confidence, EnsembleSource, ModelScore


def ms(model, bucket, score, **kwargs):
    return ModelScore(model=model, bucket=bucket, score=score, **kwargs)


def failed(model):
    return to_model_score(None, model, error="timeout")


class TestZeroAndOne:

    def test_no_results(self):
        result = ensemble_score([])
        assert result.score == 50
        assert result.bucket == Bucket.MIXED
        assert result.confidence == Confidence.LOW
        assert result.needs_review is True
        assert result.review_reason == "All models failed to score"

    def test_all_failed(self):
        result = ensemble_score([None, failed("openai"), failed("gemini")])
        assert result.score == 50
        assert result.bucket == Bucket.MIXED
        assert result.needs_review is True
        assert result.model_results == {}

    def test_single_model_fallback(self):
        result = ensemble_score([ms("claude", Bucket.RAVE, 90), None, failed("gemini")])
        assert result.score == 90
        assert result.bucket == Bucket.RAVE
        assert result.confidence == Confidence.LOW
        assert result.source == EnsembleSource.SINGLE_MODEL
        assert result.needs_review is True
        assert result.review_reason == "Single model fallback"
        assert list(result.model_results) == ["claude"]


class TestTwoModels:

    def test_same_bucket_tight(self):
        result = ensemble_score([ms("claude", Bucket.POSITIVE, 78), ms("openai", Bucket.POSITIVE, 81)])
        assert result.bucket == Bucket.POSITIVE
        assert result.score == 80  # 79.5 rounds up
        assert result.confidence == Confidence.HIGH
        assert result.needs_review is False
        assert result.source == EnsembleSource.TWO_MODEL

    def test_same_bucket_loose(self):
        result = ensemble_score([ms("claude", Bucket.POSITIVE, 71), ms("openai", Bucket.POSITIVE, 84)])
        assert result.confidence == Confidence.MEDIUM
        assert result.needs_review is False

    def test_same_bucket_twenty_point_gap_needs_review(self):
        result = ensemble_score([ms("claude", Bucket.PAN, 5), ms("openai", Bucket.PAN, 25)])
        assert result.bucket == Bucket.PAN
        assert result.score == 15
        assert result.needs_review is True
        assert "20" in result.review_reason

    def test_adjacent_buckets_not_flagged(self):
        result = ensemble_score([ms("claude", Bucket.POSITIVE, 72), ms("openai", Bucket.MIXED, 66)])
        assert result.score == 69
        assert result.bucket == Bucket.MIXED
        assert result.confidence == Confidence.LOW
        assert result.needs_review is False

    def test_distant_buckets_flagged_with_unclamped_mean(self):
        result = ensemble_score([ms("claude", Bucket.RAVE, 90), ms("openai", Bucket.NEGATIVE, 40)])
        assert result.score == 65
        assert result.bucket == Bucket.MIXED
        assert result.needs_review is True


class TestMultiModel:

    def test_unanimous_tight(self):
        result = ensemble_score([
            ms("claude", Bucket.RAVE, 90),
            ms("openai", Bucket.RAVE, 92),
            ms("gemini", Bucket.RAVE, 94),
        ])
        assert result.bucket == Bucket.RAVE
        assert result.score == 92
        assert result.confidence == Confidence.HIGH
        assert result.needs_review is False
        assert result.source == EnsembleSource.UNANIMOUS

    def test_unanimous_spread_is_medium(self):
        result = ensemble_score([
            ms("claude", Bucket.RAVE, 86),
            ms("openai", Bucket.RAVE, 90),
            ms("gemini", Bucket.RAVE, 99),
        ])
        assert result.confidence == Confidence.MEDIUM
        assert result.needs_review is False

    def test_majority_with_adjacent_outlier(self):
        result = ensemble_score([
            ms("claude", Bucket.POSITIVE, 78),
            ms("openai", Bucket.POSITIVE, 82),
            ms("gemini", Bucket.MIXED, 60),
        ])
        assert result.bucket == Bucket.POSITIVE
        assert result.score == 80
        assert result.source == EnsembleSource.MAJORITY
        assert result.confidence == Confidence.MEDIUM
        assert result.outlier is not None
        assert result.outlier.model == "gemini"
        assert result.outlier.bucket == Bucket.MIXED
        assert result.outlier.score == 60
        assert result.needs_review is False

    def test_majority_with_distant_outlier_needs_review(self):
        result = ensemble_score([
            ms("claude", Bucket.RAVE, 88),
            ms("openai", Bucket.RAVE, 90),
            ms("gemini", Bucket.NEGATIVE, 45),
        ])
        assert result.bucket == Bucket.RAVE
        assert result.outlier.model == "gemini"
        assert result.needs_review is True
        assert "gemini" in result.review_reason

    def test_majority_of_five_low_confidence(self):
        result = ensemble_score([
            ms("a", Bucket.MIXED, 60),
            ms("b", Bucket.MIXED, 62),
            ms("c", Bucket.MIXED, 64),
            ms("d", Bucket.POSITIVE, 75),
            ms("e", Bucket.NEGATIVE, 50),
        ])
        assert result.bucket == Bucket.MIXED
        assert result.score == 62
        assert result.confidence == Confidence.LOW
        assert result.outlier is None
        assert result.needs_review is False

    def test_three_way_split_uses_median(self):
        result = ensemble_score([
            ms("claude", Bucket.RAVE, 95),
            ms("openai", Bucket.MIXED, 60),
            ms("gemini", Bucket.PAN, 10),
        ])
        assert result.source == EnsembleSource.NO_CONSENSUS
        assert result.score == 60
        assert result.bucket == Bucket.MIXED
        assert result.confidence == Confidence.LOW
        assert result.needs_review is True
        assert "claude=Rave" in result.review_reason
        assert "3-way" in result.review_reason

    def test_failed_judge_reduces_to_two_model_rung(self):
        result = ensemble_score([
            ms("claude", Bucket.POSITIVE, 78),
            failed("openai"),
            ms("gemini", Bucket.POSITIVE, 80),
        ])
        assert result.source == EnsembleSource.TWO_MODEL
        assert "openai" not in result.model_results


class TestTieBreak:

    def test_tie_goes_to_more_favorable_bucket(self):
        results = [
            ms("a", Bucket.MIXED, 60),
            ms("b", Bucket.POSITIVE, 75),
            ms("c", Bucket.MIXED, 62),
            ms("d", Bucket.POSITIVE, 77),
        ]
        bucket, count = majority_bucket(results)
        assert bucket == Bucket.POSITIVE
        assert count == 2

    def test_even_split_is_not_a_majority(self):
        result = ensemble_score([
            ms("a", Bucket.MIXED, 60),
            ms("b", Bucket.POSITIVE, 75),
            ms("c", Bucket.MIXED, 62),
            ms("d", Bucket.POSITIVE, 77),
        ])
        assert result.source == EnsembleSource.NO_CONSENSUS
        assert result.score == 69  # median of 60, 62, 75, 77 = 68.5


class TestHelpers:

    @pytest.mark.parametrize("buckets,expected", [
        ([Bucket.RAVE], "insufficient"),
        ([Bucket.RAVE, Bucket.RAVE, Bucket.RAVE], "unanimous"),
        ([Bucket.RAVE, Bucket.RAVE, Bucket.MIXED], "majority"),
        ([Bucket.RAVE, Bucket.MIXED, Bucket.PAN], "split"),
    ])
    def test_agreement_level(self, buckets, expected):
        results = [ms(f"m{i}", b, 50) for i, b in enumerate(buckets)]
        assert agreement_level(results) == expected

    def test_to_model_score_error_placeholder(self):
        placeholder = to_model_score(None, "kimi")
        assert placeholder.error == "No result"
        assert placeholder.is_valid is False

    def test_result_to_dict(self):
        result = ensemble_score([
            ms("claude", Bucket.POSITIVE, 78),
            ms("openai", Bucket.POSITIVE, 82),
            ms("gemini", Bucket.MIXED, 60),
        ])
        data = result.to_dict()
        assert data["bucket"] == "Positive"
        assert data["source"] == "ensemble-majority"
        assert data["outlier"] == {"model": "gemini", "bucket": "Mixed", "score": 60}
        assert set(data["model_results"]) == {"claude", "openai", "gemini"}
