#!/usr/bin/env python3
"""
Calibration Tests

Scenarios:
----------
- Identity matching between human ratings and scored reviews
- Legacy per-model ensemble data
- MAE / RMSE / bias / std / bucket accuracy, and their order independence
- Threshold-driven recommendations
- Aggregator thumbs comparison

Run:
----
    pytest tests/test_calibration.py -v
"""

import random

from critic_scoring.buckets import Bucket
from critic_scoring.calibration.ground_truth import (
    CalibrationDataPoint,
    HumanRating,
    ScoredReview,
    find_ground_truth_reviews,
    identities_match,
    match_calibration_points,
    normalize_identity,
)
from critic_scoring.calibration.metrics import (
    calculate_ground_truth_calibration,
    compute_calibration_stats,
    compute_segment_stats,
    generate_recommendations,
    largest_errors,
)
from critic_scoring.calibration.thumbs import ThumbDistribution, compare_thumb_distributions
from critic_scoring.models import Confidence

LONG_TEXT = "A sharp, funny and unexpectedly moving evening at the theater. " * 3


def point(human, produced, show_id="show-a", outlet="", outlet_id="", **kwargs):
    return CalibrationDataPoint.create(
        show_id=show_id,
        outlet_id=outlet_id,
        outlet=outlet,
        critic_name="",
        human_score=human,
        model_score=produced,
        **kwargs,
    )


def human(show_id="hamilton-2015", outlet="The New York Times", outlet_id="NYT", critic="Jesse Green", **kwargs):
    return HumanRating(show_id=show_id, outlet=outlet, outlet_id=outlet_id, critic_name=critic, **kwargs)


def scored(show_id="hamilton-2015", outlet="the new york times", outlet_id="nyt", critic="Jesse Green", **kwargs):
    return ScoredReview(show_id=show_id, outlet=outlet, outlet_id=outlet_id, critic_name=critic, **kwargs)


FIXTURE = [
    point(80, 85),   # Positive vs Rave
    point(60, 70),   # Mixed vs Positive
    point(90, 90),
    point(40, 30),   # Negative vs Pan
]


class TestIdentityMatching:

    def test_normalize_identity(self):
        assert normalize_identity("Hamilton-2015") == "hamilton2015"
        assert normalize_identity(None) == ""

    def test_outlet_name_match(self):
        assert identities_match(human(outlet_id=""), scored(outlet_id=""))

    def test_outlet_id_match(self):
        assert identities_match(human(outlet="NY Times"), scored())

    def test_empty_outlets_do_not_match(self):
        assert not identities_match(human(outlet="", outlet_id=""), scored(outlet="", outlet_id=""))

    def test_critic_mismatch(self):
        assert not identities_match(human(), scored(critic="Ben Brantley"))

    def test_missing_critic_is_tolerated(self):
        assert identities_match(human(critic=""), scored())

    def test_show_mismatch(self):
        assert not identities_match(human(), scored(show_id="wicked-2003"))


class TestRecords:

    def test_human_score_prefers_assigned(self):
        rating = HumanRating.from_dict({"showId": "x", "assignedScore": 77, "originalRating": "4/5"})
        assert rating.human_score == 77

    def test_human_score_from_original_rating(self):
        rating = HumanRating.from_dict({"showId": "x", "originalScore": "B"})
        assert rating.human_score == 83

    def test_numeric_original_rating(self):
        rating = HumanRating.from_dict({"showId": "x", "originalRating": 8})
        assert rating.original_rating == "8"
        assert rating.human_score == 80
        assert HumanRating.from_dict({"showId": "x", "originalRating": 3.5}).human_score == 35

    def test_scored_review_record(self):
        review = ScoredReview.from_dict({
            "showId": "x",
            "outletId": "NYT",
            "llmScore": {"score": 72, "confidence": "high"},
            "llmMetadata": {"model": "claude-sonnet-4-5"},
            "ensemble": {"score": 80, "bucket": "Positive", "confidence": "medium"},
        })
        assert review.llm.score == 72
        assert review.llm.model == "claude-sonnet-4-5"
        assert review.llm.bucket == Bucket.POSITIVE
        assert review.ensemble.confidence == Confidence.MEDIUM
        assert review.produced(use_ensemble=True).score == 80

    def test_legacy_ensemble_data(self):
        review = ScoredReview.from_dict({
            "showId": "x",
            "ensembleData": {"claudeScore": 80, "openaiScore": 85, "note": "old"},
        })
        assert review.ensemble.score == 83
        assert review.llm is None


class TestMatching:

    def test_find_ground_truth_reviews(self):
        ratings = [
            human(original_rating="4/5"),
            human(show_id="wicked-2003", original_rating="a triumph"),
            human(show_id="six-2021", original_rating="B"),
        ]
        reviews = [
            scored(full_text=LONG_TEXT),
            scored(show_id="wicked-2003", full_text=LONG_TEXT),
            scored(show_id="six-2021", full_text="Too short."),
        ]
        found = find_ground_truth_reviews(ratings, reviews)
        assert len(found) == 1
        assert found[0].ground_truth_score == 80
        assert found[0].show_id == "hamilton-2015"

    def test_match_calibration_points(self):
        ratings = [human(assigned_score=70, original_rating="3.5/5")]
        reviews = [
            ScoredReview.from_dict({
                "showId": "hamilton-2015",
                "outlet": "The New York Times",
                "outletId": "NYT",
                "criticName": "Jesse Green",
                "llmScore": {"score": 86, "confidence": "low"},
            }),
            scored(show_id="wicked-2003"),
        ]
        points = match_calibration_points(ratings, reviews)
        assert len(points) == 1
        p = points[0]
        assert p.delta == 16
        assert p.absolute_error == 16
        assert p.bucket_match is False
        assert p.rating_format == "fraction"
        assert p.confidence == Confidence.LOW


class TestMetrics:

    def test_overall_stats(self):
        stats = compute_segment_stats(FIXTURE)
        assert stats.count == 4
        assert stats.mae == 6.25
        assert stats.rmse == 7.5
        assert stats.mean_bias == 1.25
        assert stats.std_dev == 7.4
        assert stats.bucket_accuracy == 25.0

    def test_empty_stats(self):
        stats = compute_segment_stats([])
        assert stats.count == 0
        assert stats.mae == 0.0

    def test_order_independent(self):
        points = [point(h, m) for h, m in [(80, 85), (60, 70), (90, 90), (40, 30), (71, 73), (55, 48), (99, 86)]]
        baseline = compute_calibration_stats(points).to_dict()
        shuffled = list(points)
        random.Random(7).shuffle(shuffled)
        assert compute_calibration_stats(shuffled).to_dict() == baseline
        assert compute_calibration_stats(reversed(points)).to_dict() == baseline

    def test_segments(self):
        points = [
            point(80, 85, outlet_id="NYT", confidence=Confidence.HIGH, model="ensemble"),
            point(60, 70, outlet_id="SOMEBLOG", model="ensemble"),
        ]
        stats = compute_calibration_stats(points)
        assert set(stats.by_tier) == {"tier1", "tier3"}
        assert set(stats.by_confidence) == {"high", "unknown"}
        assert stats.by_model["ensemble"].count == 2
        assert stats.by_rating_format == {}

    def test_largest_errors(self):
        errors = largest_errors(FIXTURE, limit=2)
        assert [p.absolute_error for p in errors] == [10, 10]
        assert [p.human_score for p in errors] == [60, 40]


class TestRecommendations:

    def test_no_points(self):
        stats = compute_calibration_stats([])
        assert generate_recommendations(stats) == ["No scored reviews found for calibration"]

    def test_high_bias(self):
        points = [point(72, 82), point(74, 84), point(70, 80)]
        recommendations = generate_recommendations(compute_calibration_stats(points))
        assert recommendations[0].startswith("Scores run 10.0 points high")
        assert not any("Bucket accuracy" in r for r in recommendations)

    def test_low_bucket_accuracy(self):
        recommendations = generate_recommendations(compute_calibration_stats(FIXTURE))
        assert any(r.startswith("Bucket accuracy is only 25.0%") for r in recommendations)

    def test_weak_segment(self):
        points = [point(50, 70, model="kimi") for _ in range(3)]
        points += [point(50, 50, model="claude") for _ in range(7)]
        recommendations = generate_recommendations(compute_calibration_stats(points))
        assert any(r.startswith("model 'kimi' has higher error") for r in recommendations)
        assert not any("'claude'" in r for r in recommendations)

    def test_outlet_bias(self):
        points = [
            point(70, 80, outlet="Variety"),
            point(72, 82, outlet="Variety"),
            point(70, 70, outlet="Time Out"),
            point(70, 70, outlet="Time Out"),
            point(50, 50, outlet="Solo"),
        ]
        recommendations = generate_recommendations(compute_calibration_stats(points))
        assert "Outlets with systematic bias: Variety (+10.0)." in recommendations


class TestGroundTruthReport:

    def test_report(self):
        ratings = [human(original_rating="4/5"), human(show_id="wicked-2003", original_rating="C")]
        reviews = [
            scored(full_text=LONG_TEXT),
            ScoredReview.from_dict({
                "showId": "wicked-2003",
                "outlet": "The New York Times",
                "criticName": "Jesse Green",
                "fullText": LONG_TEXT,
                "ensemble": {"score": 75, "bucket": "Positive"},
            }),
        ]
        found = find_ground_truth_reviews(ratings, reviews)
        report = calculate_ground_truth_calibration(found, use_ensemble=True)

        assert report.total_reviews == 2
        assert report.scored_reviews == 1
        assert report.stats.overall.mean_bias == 2.0
        assert report.largest_errors[0].show_id == "wicked-2003"
        assert report.to_dict()["stats"]["count"] == 1


class TestThumbs:

    def test_distribution_from_scores(self):
        dist = ThumbDistribution.from_scores([90, 75, 60, 40])
        assert (dist.up, dist.flat, dist.down) == (2, 1, 1)
        assert dist.sentiment() == "positive"

    def test_from_thumbs_ignores_unknown(self):
        dist = ThumbDistribution.from_thumbs(["Up", "thumbs down", "sideways", None, "??"])
        assert (dist.up, dist.flat, dist.down) == (1, 1, 1)

    def test_from_thumbs_reads_aggregator_vocabulary(self):
        dist = ThumbDistribution.from_thumbs(["Rave", "Positive", "Fresh", "Mixed", "Rotten"])
        assert (dist.up, dist.flat, dist.down) == (3, 1, 1)

    def test_too_few_reviews(self):
        comparison = compare_thumb_distributions(
            ThumbDistribution(up=2),
            ThumbDistribution(up=5),
        )
        assert comparison.comparable is False
        assert comparison.disagreement is False

    def test_agreement(self):
        comparison = compare_thumb_distributions(
            ThumbDistribution(up=6, flat=2, down=2),
            ThumbDistribution(up=7, flat=2, down=1),
        )
        assert comparison.comparable
        assert not comparison.disagreement

    def test_sentiment_flip(self):
        comparison = compare_thumb_distributions(
            ThumbDistribution(up=6, flat=1, down=3),
            ThumbDistribution(up=3, flat=1, down=6),
        )
        assert comparison.disagreement
        assert any("Sentiment flip" in d for d in comparison.details)
