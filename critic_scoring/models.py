"""
Scoring Data Model

Defines the value types passed between adapters, the scoreability gate,
and the ensemble voter. Everything a judge produces is immutable once
created; the only mutable state is per-adapter token accounting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from critic_scoring.buckets import Bucket, parse_bucket


class Confidence(Enum):
    """Confidence attached to a judgment or an ensemble result."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def parse(cls, value: Any, default: Optional["Confidence"] = None) -> "Confidence":
        """Lenient lookup; unknown values fall back to default (medium)."""
        if isinstance(value, Confidence):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return default if default is not None else cls.MEDIUM


_CONFIDENCE_RANK = {
    Confidence.LOW: 0,
    Confidence.MEDIUM: 1,
    Confidence.HIGH: 2,
}


def cap_confidence(confidence: Confidence, ceiling: Confidence) -> Confidence:
    """Return the lower of the two confidences."""
    return confidence if confidence.rank <= ceiling.rank else ceiling


class EnsembleSource(Enum):
    """Which rung of the degradation ladder produced a result."""
    UNANIMOUS = "ensemble-unanimous"
    MAJORITY = "ensemble-majority"
    NO_CONSENSUS = "ensemble-no-consensus"
    TWO_MODEL = "two-model-fallback"
    SINGLE_MODEL = "single-model-fallback"


class RejectionReason(Enum):
    """Why a judge considers text unscoreable, most specific first."""
    WRONG_SHOW = "wrong_show"
    WRONG_PRODUCTION = "wrong_production"
    NOT_A_REVIEW = "not_a_review"
    GARBAGE_TEXT = "garbage_text"

    @classmethod
    def normalize(cls, value: Any) -> "RejectionReason":
        """Map free-form judge output to a reason; unknown values are not_a_review."""
        if isinstance(value, RejectionReason):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_").replace(" ", "_")
            for reason in cls:
                if reason.value == key:
                    return reason
        return cls.NOT_A_REVIEW


# Tie-break order for competing rejection reasons
REJECTION_SPECIFICITY: List[RejectionReason] = [
    RejectionReason.WRONG_SHOW,
    RejectionReason.WRONG_PRODUCTION,
    RejectionReason.NOT_A_REVIEW,
    RejectionReason.GARBAGE_TEXT,
]


# ============================================================================
# Judge Output
# ============================================================================

@dataclass(frozen=True)
class ModelScore:
    """
    One judge's opinion of one review.

    A ModelScore with ``error`` set is a failed participant and is excluded
    from voting; its bucket/score are placeholders.
    """
    model: str                       # Judge identifier (e.g., "claude")
    bucket: Bucket
    score: int                       # Always inside the bucket's range
    confidence: Confidence = Confidence.MEDIUM
    verdict: str = ""                # Short phrase, e.g. "qualified rave"
    key_quote: str = ""
    reasoning: str = ""
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "model": self.model,
            "bucket": self.bucket.value,
            "score": self.score,
            "confidence": self.confidence.value,
            "verdict": self.verdict,
            "key_quote": self.key_quote,
            "reasoning": self.reasoning,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelScore":
        """Create from a persisted dictionary."""
        return cls(
            model=data.get("model", "unknown"),
            bucket=parse_bucket(data.get("bucket")) or Bucket.MIXED,
            score=int(data.get("score", 50)),
            confidence=Confidence.parse(data.get("confidence")),
            verdict=data.get("verdict", ""),
            key_quote=data.get("key_quote", data.get("keyQuote", "")),
            reasoning=data.get("reasoning", ""),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class JudgeRejection:
    """A single judge declaring the text unscoreable."""
    reason: RejectionReason
    reasoning: str = ""
    raw_reason: str = ""             # What the judge literally said


@dataclass
class TokenUsage:
    """Accumulated prompt/completion token counts."""
    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output

    def add(self, input_tokens: int, output_tokens: int) -> None:
        self.input += input_tokens
        self.output += output_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(self.input + other.input, self.output + other.output)

    def to_dict(self) -> Dict[str, int]:
        return {"input": self.input, "output": self.output, "total": self.total}


@dataclass(frozen=True)
class AdapterOutcome:
    """
    Result of one adapter call: exactly one of score, rejection, or error.
    """
    model: str
    score: Optional[ModelScore] = None
    rejection: Optional[JudgeRejection] = None
    error: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    attempts: int = 0

    @property
    def is_success(self) -> bool:
        return self.score is not None

    @property
    def is_rejection(self) -> bool:
        return self.rejection is not None

    @classmethod
    def success(cls, model: str, score: ModelScore, **kwargs) -> "AdapterOutcome":
        return cls(model=model, score=score, **kwargs)

    @classmethod
    def rejected(cls, model: str, rejection: JudgeRejection, **kwargs) -> "AdapterOutcome":
        return cls(model=model, rejection=rejection, **kwargs)

    @classmethod
    def failed(cls, model: str, error: str, **kwargs) -> "AdapterOutcome":
        return cls(model=model, error=error, **kwargs)


# ============================================================================
# Ensemble Output
# ============================================================================

@dataclass(frozen=True)
class Outlier:
    """The single dissenting judge in a majority vote."""
    model: str
    bucket: Bucket
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"model": self.model, "bucket": self.bucket.value, "score": self.score}


@dataclass(frozen=True)
class EnsembleResult:
    """Combined judgment for one review."""
    score: int
    bucket: Bucket
    confidence: Confidence
    source: EnsembleSource
    agreement: str
    model_results: Dict[str, ModelScore] = field(default_factory=dict)
    outlier: Optional[Outlier] = None
    needs_review: bool = False
    review_reason: Optional[str] = None
    note: Optional[str] = None       # Extra explanation (e.g. confidence capped)

    def to_dict(self) -> Dict[str, Any]:
        """Persistence shape attached to a review record."""
        data: Dict[str, Any] = {
            "score": self.score,
            "bucket": self.bucket.value,
            "confidence": self.confidence.value,
            "source": self.source.value,
            "agreement": self.agreement,
            "model_results": {name: ms.to_dict() for name, ms in self.model_results.items()},
            "needs_review": self.needs_review,
        }
        if self.outlier is not None:
            data["outlier"] = self.outlier.to_dict()
        if self.review_reason:
            data["review_reason"] = self.review_reason
        if self.note:
            data["note"] = self.note
        return data


@dataclass(frozen=True)
class ScoreabilityRejection:
    """Terminal outcome when a strict majority of judges reject the text."""
    rejection: RejectionReason
    reasoning: str
    rejecting_models: List[str]
    total_models: int
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scoreable": False,
            "rejection": self.rejection.value,
            "reasoning": self.reasoning,
            "rejecting_models": list(self.rejecting_models),
            "total_models": self.total_models,
            "note": self.note,
        }


__all__ = [
    "Confidence",
    "cap_confidence",
    "EnsembleSource",
    "RejectionReason",
    "REJECTION_SPECIFICITY",
    "ModelScore",
    "JudgeRejection",
    "TokenUsage",
    "AdapterOutcome",
    "Outlier",
    "EnsembleResult",
    "ScoreabilityRejection",
]
