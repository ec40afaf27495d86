"""
Bucket / Score Model

Sentiment buckets partition the 0-100 recommendation-strength scale into
five closed integer ranges. Every other component (adapters, ensemble voter,
calibration) speaks in terms of these buckets.

Usage:
    from critic_scoring.buckets import Bucket, score_to_bucket, clamp_score_to_bucket

    bucket = score_to_bucket(78)                # Bucket.POSITIVE
    score = clamp_score_to_bucket(92, bucket)   # 84
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Bucket(Enum):
    """Discrete sentiment category, most to least favorable."""
    RAVE = "Rave"
    POSITIVE = "Positive"
    MIXED = "Mixed"
    NEGATIVE = "Negative"
    PAN = "Pan"


class Thumb(Enum):
    """Coarse Up/Flat/Down signal used by review aggregators."""
    UP = "Up"
    FLAT = "Flat"
    DOWN = "Down"


@dataclass(frozen=True)
class BucketRange:
    """Closed integer range [min, max] for one bucket."""
    min: int
    max: int

    @property
    def midpoint(self) -> int:
        return (self.min + self.max) // 2

    def contains(self, score: int) -> bool:
        return self.min <= score <= self.max


# ============================================================================
# Bucket Table
# ============================================================================

BUCKET_ORDER: List[Bucket] = [
    Bucket.RAVE,
    Bucket.POSITIVE,
    Bucket.MIXED,
    Bucket.NEGATIVE,
    Bucket.PAN,
]

BUCKET_RANGES: Dict[Bucket, BucketRange] = {
    Bucket.RAVE: BucketRange(85, 100),
    Bucket.POSITIVE: BucketRange(70, 84),
    Bucket.MIXED: BucketRange(55, 69),
    Bucket.NEGATIVE: BucketRange(35, 54),
    Bucket.PAN: BucketRange(0, 34),
}

SCORE_MIN = 0
SCORE_MAX = 100

# Thumb cutoffs on the raw score
THUMB_UP_MIN = 70
THUMB_FLAT_MIN = 50


# ============================================================================
# Helpers
# ============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (so 79.5 -> 80, -0.5 -> 0)."""
    return int(math.floor(value + 0.5))


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_bucket(value: Any) -> Optional[Bucket]:
    """Case-insensitive bucket lookup. Returns None for anything unrecognized."""
    if isinstance(value, Bucket):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    for bucket in BUCKET_ORDER:
        if bucket.value.lower() == key:
            return bucket
    return None


def bucket_range(bucket: Bucket) -> BucketRange:
    return BUCKET_RANGES[bucket]


def bucket_midpoint(bucket: Bucket) -> int:
    return BUCKET_RANGES[bucket].midpoint


# ============================================================================
# Core Operations
# ============================================================================

def score_to_bucket(score: Any) -> Bucket:
    """
    Map a score to its bucket.

    The score is rounded half-up first, so fractional means land in the
    same bucket their rounded value would. Out-of-range, NaN, or
    non-numeric input maps to Pan.

    Args:
        score: Numeric score (int, float, or numeric string)

    Returns:
        The bucket whose closed range contains the rounded score
    """
    number = _as_number(score)
    if number is None:
        return Bucket.PAN
    rounded = round_half_up(number)
    for bucket in BUCKET_ORDER:
        if BUCKET_RANGES[bucket].contains(rounded):
            return bucket
    return Bucket.PAN


def clamp_score_to_bucket(score: float, bucket: Bucket) -> int:
    """
    Clamp a score into the bucket's range.

    Args:
        score: Raw score (rounded half-up before clamping)
        bucket: Target bucket

    Returns:
        Integer score inside [bucket.min, bucket.max]
    """
    rng = BUCKET_RANGES[bucket]
    number = _as_number(score)
    if number is None:
        return rng.midpoint
    return max(rng.min, min(rng.max, round_half_up(number)))


def bucket_distance(b1: Bucket, b2: Bucket) -> int:
    """Absolute ordinal distance between two buckets (Rave..Pan = 4)."""
    return abs(BUCKET_ORDER.index(b1) - BUCKET_ORDER.index(b2))


def score_to_thumb(score: float) -> Thumb:
    """Up at 70+, Flat at 50+, Down otherwise."""
    if score >= THUMB_UP_MIN:
        return Thumb.UP
    if score >= THUMB_FLAT_MIN:
        return Thumb.FLAT
    return Thumb.DOWN


__all__ = [
    "Bucket",
    "Thumb",
    "BucketRange",
    "BUCKET_ORDER",
    "BUCKET_RANGES",
    "SCORE_MIN",
    "SCORE_MAX",
    "round_half_up",
    "parse_bucket",
    "bucket_range",
    "bucket_midpoint",
    "score_to_bucket",
    "clamp_score_to_bucket",
    "bucket_distance",
    "score_to_thumb",
]
