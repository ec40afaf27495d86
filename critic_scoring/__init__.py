"""
Critic Review Scoring Engine

Scores critic review text on a 0-100 recommendation scale with a five-bucket
sentiment taxonomy, using several independent LLM judges combined by a
voting engine, and measures the result against ground-truth human ratings.

Subpackages:
    judges/       - LLM judges, prompts, parsing, ensemble orchestration
    calibration/  - Rating conversion, ground truth matching, accuracy stats
"""

__version__ = "1.0.0"

from .buckets import (
    Bucket,
    Thumb,
    BUCKET_ORDER,
    BUCKET_RANGES,
    score_to_bucket,
    clamp_score_to_bucket,
    bucket_distance,
    score_to_thumb,
)

from .models import (
    Confidence,
    EnsembleSource,
    RejectionReason,
    ModelScore,
    EnsembleResult,
    Outlier,
    ScoreabilityRejection,
)

from .ensemble import ensemble_score
from .consensus import resolve_scoreability

__all__ = [
    "Bucket",
    "Thumb",
    "BUCKET_ORDER",
    "BUCKET_RANGES",
    "score_to_bucket",
    "clamp_score_to_bucket",
    "bucket_distance",
    "score_to_thumb",
    "Confidence",
    "EnsembleSource",
    "RejectionReason",
    "ModelScore",
    "EnsembleResult",
    "Outlier",
    "ScoreabilityRejection",
    "ensemble_score",
    "resolve_scoreability",
]
