"""
Ground Truth Matching

Joins two external record sets by normalized show + outlet identity:

- HumanRating: human-assigned scores and the critic's original rating
- ScoredReview: review text with produced (single-model or ensemble) scores

and turns the matches into CalibrationDataPoints or GroundTruthReviews.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from critic_scoring.buckets import Bucket, parse_bucket, round_half_up, score_to_bucket
from critic_scoring.calibration.ratings import convert_rating_to_score, rating_format
from critic_scoring.models import Confidence

MIN_GROUND_TRUTH_TEXT_LENGTH = 100


def normalize_identity(value: Optional[str]) -> str:
    """Lowercase and strip everything but letters and digits."""
    if not value:
        return ""
    return re.sub(r"[^a-z0-9]", "", value.lower())


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return round_half_up(float(value))
    except (TypeError, ValueError):
        return None


# ============================================================================
# Record Types
# ============================================================================

@dataclass
class HumanRating:
    """A human-assigned rating for one review."""
    show_id: str
    outlet: str = ""
    outlet_id: str = ""
    critic_name: str = ""
    assigned_score: Optional[int] = None
    bucket: Optional[Bucket] = None
    original_rating: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HumanRating":
        original = data.get("originalRating") or data.get("originalScore")
        if isinstance(original, (int, float)) and not isinstance(original, bool):
            original = str(original)
        return cls(
            show_id=data.get("showId", ""),
            outlet=data.get("outlet") or "",
            outlet_id=data.get("outletId") or "",
            critic_name=data.get("criticName") or "",
            assigned_score=_optional_int(data.get("assignedScore")),
            bucket=parse_bucket(data.get("bucket")),
            original_rating=original,
        )

    @property
    def human_score(self) -> Optional[int]:
        """Assigned score, else the converted original rating."""
        if self.assigned_score is not None:
            return self.assigned_score
        return convert_rating_to_score(self.original_rating)


@dataclass
class ProducedScore:
    score: int
    bucket: Bucket
    confidence: Optional[Confidence] = None
    model: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], model: Optional[str] = None) -> Optional["ProducedScore"]:
        if not data:
            return None
        score = _optional_int(data.get("score"))
        if score is None:
            return None
        confidence = data.get("confidence")
        return cls(
            score=score,
            bucket=parse_bucket(data.get("bucket")) or score_to_bucket(score),
            confidence=Confidence.parse(confidence) if confidence else None,
            model=data.get("model") or model,
        )


@dataclass
class ScoredReview:
    """A review text record carrying produced scores."""
    show_id: str
    outlet: str = ""
    outlet_id: str = ""
    critic_name: str = ""
    full_text: Optional[str] = None
    llm: Optional[ProducedScore] = None
    ensemble: Optional[ProducedScore] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoredReview":
        """
        Create from a review text record.

        Reads ``llmScore`` (single judge) and ``ensemble`` (EnsembleResult
        dict). Older records with only ``ensembleData`` per-model scores get
        the rounded mean of those scores as their ensemble score.
        """
        model = (data.get("llmMetadata") or {}).get("model")
        ensemble = ProducedScore.from_dict(data.get("ensemble"), model="ensemble")
        if ensemble is None:
            legacy = data.get("ensembleData") or {}
            parts = [v for k, v in legacy.items() if k.endswith("Score") and isinstance(v, (int, float))]
            if len(parts) >= 2:
                mean = round_half_up(sum(parts) / len(parts))
                ensemble = ProducedScore(score=mean, bucket=score_to_bucket(mean), model="ensemble")
        return cls(
            show_id=data.get("showId", ""),
            outlet=data.get("outlet") or "",
            outlet_id=data.get("outletId") or "",
            critic_name=data.get("criticName") or "",
            full_text=data.get("fullText"),
            llm=ProducedScore.from_dict(data.get("llmScore"), model=model),
            ensemble=ensemble,
        )

    def produced(self, use_ensemble: bool) -> Optional[ProducedScore]:
        return self.ensemble if use_ensemble else self.llm


@dataclass
class GroundTruthReview:
    """A review whose human rating converts deterministically to 0-100."""
    show_id: str
    outlet_id: str
    outlet: str
    critic_name: str
    original_rating: str
    ground_truth_score: int
    full_text: str
    llm_score: Optional[int] = None
    ensemble_score: Optional[int] = None


@dataclass(frozen=True)
class CalibrationDataPoint:
    """One matched (human, produced) score pair."""
    show_id: str
    outlet_id: str
    outlet: str
    critic_name: str
    human_score: int
    model_score: int
    delta: int                       # model - human; positive = overscoring
    absolute_error: int
    human_bucket: Bucket
    model_bucket: Bucket
    bucket_match: bool
    confidence: Optional[Confidence] = None
    model: Optional[str] = None
    rating_format: Optional[str] = None
    original_rating: Optional[str] = None

    @classmethod
    def create(
        cls,
        show_id: str,
        outlet_id: str,
        outlet: str,
        critic_name: str,
        human_score: int,
        model_score: int,
        human_bucket: Optional[Bucket] = None,
        model_bucket: Optional[Bucket] = None,
        **kwargs,
    ) -> "CalibrationDataPoint":
        """Build a point, deriving delta, error and missing buckets."""
        human_bucket = human_bucket or score_to_bucket(human_score)
        model_bucket = model_bucket or score_to_bucket(model_score)
        delta = model_score - human_score
        return cls(
            show_id=show_id,
            outlet_id=outlet_id,
            outlet=outlet,
            critic_name=critic_name,
            human_score=human_score,
            model_score=model_score,
            delta=delta,
            absolute_error=abs(delta),
            human_bucket=human_bucket,
            model_bucket=model_bucket,
            bucket_match=human_bucket == model_bucket,
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "show_id": self.show_id,
            "outlet_id": self.outlet_id,
            "outlet": self.outlet,
            "critic_name": self.critic_name,
            "original_rating": self.original_rating,
            "human_score": self.human_score,
            "model_score": self.model_score,
            "delta": self.delta,
            "absolute_error": self.absolute_error,
            "human_bucket": self.human_bucket.value,
            "model_bucket": self.model_bucket.value,
            "bucket_match": self.bucket_match,
            "confidence": self.confidence.value if self.confidence else None,
            "model": self.model,
            "rating_format": self.rating_format,
        }


# ============================================================================
# Matching
# ============================================================================

def identities_match(human: HumanRating, scored: ScoredReview) -> bool:
    """Same show and outlet (by name or id); critics must agree when both are known."""
    if normalize_identity(human.show_id) != normalize_identity(scored.show_id):
        return False

    outlet_match = (
        (human.outlet and normalize_identity(human.outlet) == normalize_identity(scored.outlet))
        or (human.outlet_id and normalize_identity(human.outlet_id) == normalize_identity(scored.outlet_id))
    )
    if not outlet_match:
        return False

    if human.critic_name and scored.critic_name:
        return normalize_identity(human.critic_name) == normalize_identity(scored.critic_name)
    return True


def _find_match(human: HumanRating, scored_reviews: List[ScoredReview]) -> Optional[ScoredReview]:
    for scored in scored_reviews:
        if identities_match(human, scored):
            return scored
    return None


def find_ground_truth_reviews(
    ratings: Iterable[HumanRating],
    scored_reviews: Iterable[ScoredReview],
    min_text_length: int = MIN_GROUND_TRUTH_TEXT_LENGTH,
) -> List[GroundTruthReview]:
    """
    Reviews whose original rating converts to a score and whose text is known.

    Args:
        ratings: Human rating records
        scored_reviews: Review text records
        min_text_length: Shorter texts are not usable ground truth
    """
    scored_list = list(scored_reviews)
    found = []
    for human in ratings:
        score = convert_rating_to_score(human.original_rating)
        if score is None:
            continue
        scored = _find_match(human, scored_list)
        if scored is None or not scored.full_text or len(scored.full_text) < min_text_length:
            continue
        found.append(GroundTruthReview(
            show_id=human.show_id,
            outlet_id=human.outlet_id or scored.outlet_id,
            outlet=human.outlet or scored.outlet,
            critic_name=human.critic_name or scored.critic_name or "Unknown",
            original_rating=human.original_rating,
            ground_truth_score=score,
            full_text=scored.full_text,
            llm_score=scored.llm.score if scored.llm else None,
            ensemble_score=scored.ensemble.score if scored.ensemble else None,
        ))
    return found


def match_calibration_points(
    ratings: Iterable[HumanRating],
    scored_reviews: Iterable[ScoredReview],
    use_ensemble: bool = False,
) -> List[CalibrationDataPoint]:
    """
    Pair every scored review with its human rating.

    Reviews without a produced score, or whose human record has neither an
    assigned score nor a convertible rating, are skipped.
    """
    ratings_list = list(ratings)
    points = []
    for scored in scored_reviews:
        produced = scored.produced(use_ensemble)
        if produced is None:
            continue
        human = next((h for h in ratings_list if identities_match(h, scored)), None)
        if human is None or human.human_score is None:
            continue
        points.append(CalibrationDataPoint.create(
            show_id=scored.show_id,
            outlet_id=scored.outlet_id or human.outlet_id,
            outlet=scored.outlet or human.outlet,
            critic_name=scored.critic_name or human.critic_name,
            human_score=human.human_score,
            model_score=produced.score,
            human_bucket=human.bucket,
            model_bucket=produced.bucket,
            confidence=produced.confidence,
            model=produced.model,
            rating_format=rating_format(human.original_rating) if human.original_rating else None,
            original_rating=human.original_rating,
        ))
    return points


def ground_truth_points(
    reviews: Iterable[GroundTruthReview],
    use_ensemble: bool = True,
) -> List[CalibrationDataPoint]:
    """CalibrationDataPoints for ground-truth reviews that have a produced score."""
    points = []
    for r in reviews:
        produced = r.ensemble_score if use_ensemble else r.llm_score
        if produced is None:
            continue
        points.append(CalibrationDataPoint.create(
            show_id=r.show_id,
            outlet_id=r.outlet_id,
            outlet=r.outlet,
            critic_name=r.critic_name,
            human_score=r.ground_truth_score,
            model_score=produced,
            model="ensemble" if use_ensemble else None,
            rating_format=rating_format(r.original_rating),
            original_rating=r.original_rating,
        ))
    return points


__all__ = [
    "normalize_identity",
    "HumanRating",
    "ProducedScore",
    "ScoredReview",
    "GroundTruthReview",
    "CalibrationDataPoint",
    "identities_match",
    "find_ground_truth_reviews",
    "match_calibration_points",
    "ground_truth_points",
]
