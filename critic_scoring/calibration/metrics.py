"""
Calibration Statistics

Accuracy of produced scores against human scores: MAE, RMSE, mean signed
bias (positive = system overscores), standard deviation of the error, and
bucket accuracy. The same metrics are computed per segment (confidence,
outlet tier, human bucket, rating format, model) because systematic bias
usually lives in one segment.

Every statistic is order-independent: shuffling the input points does not
change any value.

Usage:
    from critic_scoring.calibration.metrics import compute_calibration_stats, generate_recommendations

    stats = compute_calibration_stats(points)
    for line in generate_recommendations(stats):
        print(line)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from critic_scoring.calibration.ground_truth import (
    CalibrationDataPoint,
    GroundTruthReview,
    ground_truth_points,
)
from critic_scoring.outlets import get_outlet_tier
from critic_scoring.stats import compute_mean, compute_rmse, compute_std

# Mean bias beyond which recalibration is suggested
BIAS_THRESHOLD = 5.0
# Bucket accuracy below which boundaries should be revisited
BUCKET_ACCURACY_CRITICAL = 60.0
# Bucket accuracy below which more calibration examples help
BUCKET_ACCURACY_TARGET = 70.0
# Segment needs this many points before it is called out
MIN_SEGMENT_COUNT = 3
# Segment MAE this far above overall MAE is called out
SEGMENT_MAE_MARGIN = 5.0
# Outlets need this many points to report a bias
MIN_OUTLET_COUNT = 2


@dataclass(frozen=True)
class SegmentStats:
    """Accuracy metrics for one set of points."""
    count: int = 0
    mae: float = 0.0
    rmse: float = 0.0
    mean_bias: float = 0.0
    std_dev: float = 0.0
    bucket_accuracy: float = 0.0     # Percent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "mae": self.mae,
            "rmse": self.rmse,
            "mean_bias": self.mean_bias,
            "std_dev": self.std_dev,
            "bucket_accuracy": self.bucket_accuracy,
        }


@dataclass(frozen=True)
class OutletBias:
    count: int
    mean_bias: float


@dataclass
class CalibrationStats:
    """Overall metrics plus segmented breakdowns."""
    overall: SegmentStats
    by_confidence: Dict[str, SegmentStats] = field(default_factory=dict)
    by_tier: Dict[str, SegmentStats] = field(default_factory=dict)
    by_human_bucket: Dict[str, SegmentStats] = field(default_factory=dict)
    by_rating_format: Dict[str, SegmentStats] = field(default_factory=dict)
    by_model: Dict[str, SegmentStats] = field(default_factory=dict)
    outlet_bias: Dict[str, OutletBias] = field(default_factory=dict)

    def segments(self) -> Dict[str, Dict[str, SegmentStats]]:
        return {
            "confidence": self.by_confidence,
            "outlet tier": self.by_tier,
            "human bucket": self.by_human_bucket,
            "rating format": self.by_rating_format,
            "model": self.by_model,
        }

    def to_dict(self) -> Dict[str, Any]:
        def _seg(d: Dict[str, SegmentStats]) -> Dict[str, Any]:
            return {k: v.to_dict() for k, v in sorted(d.items())}

        return {
            **self.overall.to_dict(),
            "by_confidence": _seg(self.by_confidence),
            "by_tier": _seg(self.by_tier),
            "by_human_bucket": _seg(self.by_human_bucket),
            "by_rating_format": _seg(self.by_rating_format),
            "by_model": _seg(self.by_model),
            "outlet_bias": {
                k: {"count": v.count, "mean_bias": v.mean_bias}
                for k, v in sorted(self.outlet_bias.items())
            },
        }


# ============================================================================
# Core Metrics
# ============================================================================

def compute_segment_stats(points: Sequence[CalibrationDataPoint]) -> SegmentStats:
    """
    Compute accuracy metrics over a set of points.

    Args:
        points: Matched (human, produced) pairs

    Returns:
        SegmentStats rounded to 2 decimals (all zero for an empty set)
    """
    if not points:
        return SegmentStats()

    deltas = [p.delta for p in points]
    matches = sum(1 for p in points if p.bucket_match)

    return SegmentStats(
        count=len(points),
        mae=round(compute_mean([p.absolute_error for p in points]), 2),
        rmse=round(compute_rmse(deltas), 2),
        mean_bias=round(compute_mean(deltas), 2),
        std_dev=round(compute_std(deltas), 2),
        bucket_accuracy=round(matches / len(points) * 100, 2),
    )


def _segment_by(
    points: Sequence[CalibrationDataPoint],
    key: Callable[[CalibrationDataPoint], Optional[str]],
) -> Dict[str, SegmentStats]:
    groups: Dict[str, List[CalibrationDataPoint]] = {}
    for p in points:
        k = key(p)
        if k is None:
            continue
        groups.setdefault(k, []).append(p)
    return {k: compute_segment_stats(v) for k, v in groups.items()}


def compute_outlet_bias(points: Sequence[CalibrationDataPoint]) -> Dict[str, OutletBias]:
    """Mean bias per outlet, for outlets with at least MIN_OUTLET_COUNT points."""
    groups: Dict[str, List[int]] = {}
    for p in points:
        name = p.outlet or p.outlet_id
        if name:
            groups.setdefault(name, []).append(p.delta)
    return {
        name: OutletBias(count=len(deltas), mean_bias=round(compute_mean(deltas), 2))
        for name, deltas in groups.items()
        if len(deltas) >= MIN_OUTLET_COUNT
    }


def compute_calibration_stats(points: Iterable[CalibrationDataPoint]) -> CalibrationStats:
    """Overall and segmented calibration statistics."""
    points = list(points)
    return CalibrationStats(
        overall=compute_segment_stats(points),
        by_confidence=_segment_by(points, lambda p: p.confidence.value if p.confidence else "unknown"),
        by_tier=_segment_by(points, lambda p: f"tier{get_outlet_tier(p.outlet_id or p.outlet)}"),
        by_human_bucket=_segment_by(points, lambda p: p.human_bucket.value),
        by_rating_format=_segment_by(points, lambda p: p.rating_format),
        by_model=_segment_by(points, lambda p: p.model),
        outlet_bias=compute_outlet_bias(points),
    )


def largest_errors(points: Iterable[CalibrationDataPoint], limit: int = 5) -> List[CalibrationDataPoint]:
    """Points with the largest absolute error, ties broken by identity."""
    ordered = sorted(
        points,
        key=lambda p: (-p.absolute_error, p.show_id, p.outlet_id, p.outlet, p.critic_name),
    )
    return ordered[:limit]


# ============================================================================
# Recommendations
# ============================================================================

def generate_recommendations(stats: CalibrationStats) -> List[str]:
    """
    Advisory strings derived from threshold checks.

    Nothing here changes scores; the output is meant for a human deciding
    whether prompts or bucket boundaries need work.
    """
    overall = stats.overall
    if overall.count == 0:
        return ["No scored reviews found for calibration"]

    recommendations = []

    if overall.mean_bias > BIAS_THRESHOLD:
        recommendations.append(
            f"Scores run {abs(overall.mean_bias):.1f} points high on average. "
            f"Recalibrate with more low-scoring examples."
        )
    elif overall.mean_bias < -BIAS_THRESHOLD:
        recommendations.append(
            f"Scores run {abs(overall.mean_bias):.1f} points low on average. "
            f"Recalibrate with more high-scoring examples."
        )

    if overall.bucket_accuracy < BUCKET_ACCURACY_CRITICAL:
        recommendations.append(
            f"Bucket accuracy is only {overall.bucket_accuracy:.1f}%. Revisit bucket boundary definitions."
        )
    elif overall.bucket_accuracy < BUCKET_ACCURACY_TARGET:
        recommendations.append(
            f"Bucket accuracy is {overall.bucket_accuracy:.1f}%. Add calibration examples near bucket boundaries."
        )

    for label, segments in stats.segments().items():
        for key, seg in sorted(segments.items()):
            if seg.count >= MIN_SEGMENT_COUNT and seg.mae > overall.mae + SEGMENT_MAE_MARGIN:
                recommendations.append(
                    f"{label} '{key}' has higher error (MAE {seg.mae:.1f} vs {overall.mae:.1f}). "
                    f"Add targeted '{key}' calibration examples."
                )

    biased = sorted(
        (name, b) for name, b in stats.outlet_bias.items() if abs(b.mean_bias) >= BIAS_THRESHOLD
    )
    if biased:
        listed = ", ".join(f"{name} ({b.mean_bias:+.1f})" for name, b in biased)
        recommendations.append(f"Outlets with systematic bias: {listed}.")

    return recommendations


# ============================================================================
# Ground Truth Report
# ============================================================================

@dataclass
class GroundTruthCalibrationReport:
    total_reviews: int
    scored_reviews: int
    stats: CalibrationStats
    largest_errors: List[CalibrationDataPoint]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_reviews": self.total_reviews,
            "scored_reviews": self.scored_reviews,
            "stats": self.stats.to_dict(),
            "largest_errors": [p.to_dict() for p in self.largest_errors],
            "recommendations": list(self.recommendations),
        }


def calculate_ground_truth_calibration(
    reviews: Iterable[GroundTruthReview],
    use_ensemble: bool = True,
) -> GroundTruthCalibrationReport:
    """
    Compare produced scores of ground-truth reviews with their converted ratings.

    Args:
        reviews: Ground-truth reviews (see find_ground_truth_reviews)
        use_ensemble: Compare ensemble scores (True) or single-judge scores
    """
    reviews = list(reviews)
    points = ground_truth_points(reviews, use_ensemble=use_ensemble)
    stats = compute_calibration_stats(points)
    return GroundTruthCalibrationReport(
        total_reviews=len(reviews),
        scored_reviews=len(points),
        stats=stats,
        largest_errors=largest_errors(points),
        recommendations=generate_recommendations(stats),
    )


__all__ = [
    "SegmentStats",
    "OutletBias",
    "CalibrationStats",
    "GroundTruthCalibrationReport",
    "compute_segment_stats",
    "compute_outlet_bias",
    "compute_calibration_stats",
    "largest_errors",
    "generate_recommendations",
    "calculate_ground_truth_calibration",
]
