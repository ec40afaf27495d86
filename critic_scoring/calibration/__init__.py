"""
Calibration & Ground Truth

Measures produced scores against human ratings.

Modules:
    ratings.py      - Human rating string -> 0-100 conversion
    ground_truth.py - Record types and show/outlet identity matching
    metrics.py      - MAE / RMSE / bias / bucket accuracy, segments, recommendations
    thumbs.py       - Thumbs distribution check against aggregators
"""

from .ratings import LETTER_GRADES, convert_rating_to_score, rating_format

from .ground_truth import (
    CalibrationDataPoint,
    GroundTruthReview,
    HumanRating,
    ScoredReview,
    find_ground_truth_reviews,
    match_calibration_points,
    normalize_identity,
)

from .metrics import (
    CalibrationStats,
    SegmentStats,
    calculate_ground_truth_calibration,
    compute_calibration_stats,
    compute_segment_stats,
    generate_recommendations,
    largest_errors,
)

from .thumbs import ThumbDistribution, compare_thumb_distributions

__all__ = [
    "LETTER_GRADES",
    "convert_rating_to_score",
    "rating_format",
    "CalibrationDataPoint",
    "GroundTruthReview",
    "HumanRating",
    "ScoredReview",
    "find_ground_truth_reviews",
    "match_calibration_points",
    "normalize_identity",
    "CalibrationStats",
    "SegmentStats",
    "calculate_ground_truth_calibration",
    "compute_calibration_stats",
    "compute_segment_stats",
    "generate_recommendations",
    "largest_errors",
    "ThumbDistribution",
    "compare_thumb_distributions",
]
