"""
Ensemble Voting for Multi-Judge Review Scoring

Combines 0..N judge opinions into one EnsembleResult using a fixed
degradation ladder:

- 0 valid results: neutral fallback (Mixed / 50), flagged for review
- 1 valid result: pass-through at low confidence, flagged for review
- 2 valid results: mean with score-delta / bucket-distance checks
- 3+ valid results: bucket majority vote with outlier detection,
  median fallback when no bucket holds a strict majority

The voter is a pure function of its inputs. Failed judges (None or
ModelScore.error set) are filtered out before the ladder is applied.

Usage:
    from critic_scoring.ensemble import ensemble_score

    result = ensemble_score([claude_score, openai_score, None])
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from critic_scoring.buckets import (
    BUCKET_ORDER,
    Bucket,
    bucket_distance,
    clamp_score_to_bucket,
    round_half_up,
    score_to_bucket,
)
from critic_scoring.models import (
    Confidence,
    EnsembleResult,
    EnsembleSource,
    ModelScore,
    Outlier,
)
from critic_scoring.stats import compute_mean, compute_median

logger = logging.getLogger(__name__)

# Score spread at or below which agreement counts as tight
TIGHT_AGREEMENT_THRESHOLD = 5
# Score delta above which same-bucket judges still need review
HIGH_DISAGREEMENT_THRESHOLD = 15
# Bucket distance tolerated without review (adjacent buckets)
MAX_TOLERATED_BUCKET_DISTANCE = 1

NEUTRAL_SCORE = 50
NEUTRAL_BUCKET = Bucket.MIXED


# ============================================================================
# Helpers
# ============================================================================

def valid_results(results: Sequence[Optional[ModelScore]]) -> List[ModelScore]:
    """Drop missing and errored judge results."""
    return [r for r in results if r is not None and r.is_valid]


def _model_results_map(results: Sequence[ModelScore]) -> Dict[str, ModelScore]:
    return {r.model: r for r in results}


def _bucket_list(results: Sequence[ModelScore]) -> str:
    return ", ".join(f"{r.model}={r.bucket.value}" for r in results)


def tally_buckets(results: Sequence[ModelScore]) -> Dict[Bucket, int]:
    counts = {bucket: 0 for bucket in BUCKET_ORDER}
    for r in results:
        counts[r.bucket] += 1
    return counts


def majority_bucket(results: Sequence[ModelScore]) -> Tuple[Bucket, int]:
    """
    Most-voted bucket and its count.

    Scans Rave -> Pan and only a strictly greater count replaces the
    leader, so ties resolve to the more favorable bucket.
    """
    counts = tally_buckets(results)
    leader, leader_count = BUCKET_ORDER[0], counts[BUCKET_ORDER[0]]
    for bucket in BUCKET_ORDER[1:]:
        if counts[bucket] > leader_count:
            leader, leader_count = bucket, counts[bucket]
    return leader, leader_count


def score_spread(results: Sequence[ModelScore]) -> int:
    """max - min of the scores, 0 for fewer than two results."""
    if len(results) < 2:
        return 0
    scores = [r.score for r in results]
    return max(scores) - min(scores)


# ============================================================================
# Degradation Ladder
# ============================================================================

def _all_failed() -> EnsembleResult:
    return EnsembleResult(
        score=NEUTRAL_SCORE,
        bucket=NEUTRAL_BUCKET,
        confidence=Confidence.LOW,
        source=EnsembleSource.SINGLE_MODEL,
        agreement="No valid model results",
        note="All models failed",
        needs_review=True,
        review_reason="All models failed to score",
    )


def _single_model(result: ModelScore) -> EnsembleResult:
    return EnsembleResult(
        score=clamp_score_to_bucket(result.score, result.bucket),
        bucket=result.bucket,
        confidence=Confidence.LOW,
        source=EnsembleSource.SINGLE_MODEL,
        agreement=f"Only {result.model} succeeded",
        note=f"Only {result.model} succeeded",
        model_results=_model_results_map([result]),
        needs_review=True,
        review_reason="Single model fallback",
    )


def _two_models(first: ModelScore, second: ModelScore) -> EnsembleResult:
    delta = abs(first.score - second.score)
    mean = round_half_up(compute_mean([first.score, second.score]))
    model_results = _model_results_map([first, second])

    if first.bucket == second.bucket:
        needs_review = delta > HIGH_DISAGREEMENT_THRESHOLD
        return EnsembleResult(
            score=clamp_score_to_bucket(mean, first.bucket),
            bucket=first.bucket,
            confidence=Confidence.HIGH if delta <= TIGHT_AGREEMENT_THRESHOLD else Confidence.MEDIUM,
            source=EnsembleSource.TWO_MODEL,
            agreement=f"Both models agree: {first.bucket.value}",
            model_results=model_results,
            needs_review=needs_review,
            review_reason=f"Score delta {delta} exceeds threshold" if needs_review else None,
        )

    # No authoritative bucket: keep the raw mean and derive the bucket from it
    distance = bucket_distance(first.bucket, second.bucket)
    needs_review = distance > MAX_TOLERATED_BUCKET_DISTANCE
    return EnsembleResult(
        score=mean,
        bucket=score_to_bucket(mean),
        confidence=Confidence.LOW,
        source=EnsembleSource.TWO_MODEL,
        agreement=f"Bucket disagreement: {_bucket_list([first, second])}",
        model_results=model_results,
        needs_review=needs_review,
        review_reason="Bucket disagreement > 1 bucket apart" if needs_review else None,
    )


def _multi_model(results: List[ModelScore]) -> EnsembleResult:
    n = len(results)
    bucket, count = majority_bucket(results)
    model_results = _model_results_map(results)

    if count == n:
        mean = round_half_up(compute_mean([r.score for r in results]))
        spread = score_spread(results)
        return EnsembleResult(
            score=clamp_score_to_bucket(mean, bucket),
            bucket=bucket,
            confidence=Confidence.HIGH if spread <= TIGHT_AGREEMENT_THRESHOLD else Confidence.MEDIUM,
            source=EnsembleSource.UNANIMOUS,
            agreement=f"All {n} models agree: {bucket.value}",
            model_results=model_results,
            needs_review=False,
        )

    if count * 2 > n:
        majority = [r for r in results if r.bucket == bucket]
        dissenters = [r for r in results if r.bucket != bucket]
        mean = round_half_up(compute_mean([r.score for r in majority]))

        outlier = None
        if len(dissenters) == 1:
            d = dissenters[0]
            outlier = Outlier(model=d.model, bucket=d.bucket, score=d.score)

        severe = [r for r in dissenters if bucket_distance(bucket, r.bucket) > MAX_TOLERATED_BUCKET_DISTANCE]
        review_reason = None
        if severe:
            review_reason = "; ".join(
                f"Outlier {r.model} chose {r.bucket.value}, "
                f"{bucket_distance(bucket, r.bucket)} buckets from majority"
                for r in severe
            )

        return EnsembleResult(
            score=clamp_score_to_bucket(mean, bucket),
            bucket=bucket,
            confidence=Confidence.MEDIUM if count >= n - 1 else Confidence.LOW,
            source=EnsembleSource.MAJORITY,
            agreement=f"{count}/{n} models agree: {bucket.value}",
            outlier=outlier,
            model_results=model_results,
            needs_review=bool(severe),
            review_reason=review_reason,
        )

    # Median resists a single extreme judge dominating a split vote
    median = round_half_up(compute_median([r.score for r in results]))
    buckets = _bucket_list(results)
    return EnsembleResult(
        score=median,
        bucket=score_to_bucket(median),
        confidence=Confidence.LOW,
        source=EnsembleSource.NO_CONSENSUS,
        agreement="No bucket consensus - using median score",
        note=f"Buckets: {buckets}",
        model_results=model_results,
        needs_review=True,
        review_reason=f"{n}-way bucket disagreement ({buckets})",
    )


# ============================================================================
# Public API
# ============================================================================

def ensemble_score(results: Sequence[Optional[ModelScore]]) -> EnsembleResult:
    """
    Combine judge results into a single EnsembleResult.

    Args:
        results: One entry per configured judge; None or errored entries
            count as failed participants

    Returns:
        EnsembleResult (never raises for any combination of inputs)
    """
    valid = valid_results(results)
    failed = len(results) - len(valid)
    if failed:
        logger.info("[ensemble] FILTERED failed=%d valid=%d", failed, len(valid))

    if not valid:
        logger.warning("[ensemble] ALL_FAILED judges=%d", len(results))
        return _all_failed()
    if len(valid) == 1:
        return _single_model(valid[0])
    if len(valid) == 2:
        return _two_models(valid[0], valid[1])
    return _multi_model(valid)


def to_model_score(
    score: Optional[ModelScore],
    model: str,
    error: Optional[str] = None,
) -> ModelScore:
    """Return the score, or an errored placeholder for a judge with no usable result."""
    if score is None or error:
        return ModelScore(
            model=model,
            bucket=NEUTRAL_BUCKET,
            score=NEUTRAL_SCORE,
            confidence=Confidence.LOW,
            error=error or "No result",
        )
    return score


def agreement_level(results: Sequence[Optional[ModelScore]]) -> str:
    """Short agreement label for logging: unanimous, majority, split, insufficient."""
    valid = valid_results(results)
    if len(valid) < 2:
        return "insufficient"
    _, count = majority_bucket(valid)
    if count == len(valid):
        return "unanimous"
    if count * 2 > len(valid):
        return "majority"
    return "split"


__all__ = [
    "ensemble_score",
    "to_model_score",
    "agreement_level",
    "majority_bucket",
    "tally_buckets",
    "score_spread",
    "valid_results",
    "TIGHT_AGREEMENT_THRESHOLD",
    "HIGH_DISAGREEMENT_THRESHOLD",
]
