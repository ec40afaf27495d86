"""
Judge Response Parsing

Turns raw judge output into a typed ModelScore or JudgeRejection.

Parsing is tiered and each tier is its own function:
1. parse_rejection: detect {"scoreable": false, ...} before anything else
2. parse_structured: strict JSON + pydantic validation + normalization
3. extract_from_malformed: regex recovery of "bucket" / "score", used only
   when the strict path raised ResponseParseError

parse_response chains the three and raises ResponseParseError when no tier
produces a usable result.
"""

import json
import math
import re
from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from critic_scoring.buckets import (
    BUCKET_ORDER,
    bucket_midpoint,
    clamp_score_to_bucket,
    parse_bucket,
    score_to_bucket,
)
from critic_scoring.judges.prompts import PromptVersion
from critic_scoring.models import Confidence, JudgeRejection, ModelScore, RejectionReason

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_BUCKET_RE = re.compile(
    r'"bucket"\s*:\s*"(' + "|".join(b.value for b in BUCKET_ORDER) + r')"',
    re.IGNORECASE,
)
_SCORE_RE = re.compile(r'"score"\s*:\s*(\d+(?:\.\d+)?)')
_SCOREABLE_FALSE_RE = re.compile(r'"scoreable"\s*:\s*"?false"?', re.IGNORECASE)
_REJECTION_RE = re.compile(r'"rejection"\s*:\s*"([^"]+)"')
_REASONING_RE = re.compile(r'"reasoning"\s*:\s*"([^"]*)"')


class ResponseParseError(ValueError):
    """Judge output could not be turned into a score."""

    def __init__(self, reason: str, content: str = ""):
        self.reason = reason
        self.content_preview = content[:200]
        super().__init__(f"{reason}: {self.content_preview}")


class JudgeResponse(BaseModel):
    """Raw judge JSON before normalization."""

    model_config = ConfigDict(extra="ignore")

    scoreable: Optional[bool] = None
    bucket: Optional[str] = None
    score: Optional[float] = None
    confidence: Optional[str] = None
    verdict: str = ""
    key_quote: str = Field("", validation_alias=AliasChoices("keyQuote", "key_quote"))
    reasoning: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(number) or math.isinf(number) else number

    @field_validator("bucket", "confidence", mode="before")
    @classmethod
    def coerce_optional_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("verdict", "key_quote", "reasoning", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


# ============================================================================
# JSON Helpers
# ============================================================================

def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    return _FENCE_RE.sub("", content.strip()).strip()


def load_json_object(content: str) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object from judge output.

    Tries the fence-stripped text first, then the outermost {...} span.
    Returns None when neither is a JSON object.
    """
    text = strip_code_fences(content)
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            data = json.loads(match.group())
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass
    return None


# ============================================================================
# Tier 1: Rejection
# ============================================================================

def parse_rejection(content: str) -> Optional[JudgeRejection]:
    """Detect a scoreability rejection, including in malformed JSON."""
    data = load_json_object(content)
    if data is not None:
        scoreable = data.get("scoreable")
        if scoreable is False or (isinstance(scoreable, str) and scoreable.lower() == "false"):
            raw = str(data.get("rejection") or "")
            return JudgeRejection(
                reason=RejectionReason.normalize(raw),
                reasoning=str(data.get("reasoning") or ""),
                raw_reason=raw,
            )
        return None

    if _SCOREABLE_FALSE_RE.search(content):
        match = _REJECTION_RE.search(content)
        raw = match.group(1) if match else ""
        reasoning = _REASONING_RE.search(content)
        return JudgeRejection(
            reason=RejectionReason.normalize(raw),
            reasoning=reasoning.group(1) if reasoning else "",
            raw_reason=raw,
        )
    return None


# ============================================================================
# Tier 2: Structured
# ============================================================================

def normalize_response(response: JudgeResponse, prompt: PromptVersion, model: str) -> ModelScore:
    """
    Normalize a validated response into a ModelScore.

    Bucket-first schemas: the bucket is authoritative (case-insensitive);
    an unrecognized bucket falls back to the bucket of the score. A missing
    score becomes the bucket midpoint. Score-only schemas derive the bucket
    from the score. The returned score is always clamped into its bucket.

    Raises:
        ResponseParseError: If no bucket can be determined
    """
    if prompt.bucket_first:
        bucket = parse_bucket(response.bucket)
        if bucket is None:
            if response.score is None:
                raise ResponseParseError("missing_bucket", str(response.bucket or ""))
            bucket = score_to_bucket(response.score)
    else:
        if response.score is None:
            raise ResponseParseError("missing_score")
        bucket = score_to_bucket(response.score)

    raw_score = response.score if response.score is not None else bucket_midpoint(bucket)

    return ModelScore(
        model=model,
        bucket=bucket,
        score=clamp_score_to_bucket(raw_score, bucket),
        confidence=Confidence.parse(response.confidence),
        verdict=response.verdict,
        key_quote=response.key_quote,
        reasoning=response.reasoning,
    )


def parse_structured(content: str, prompt: PromptVersion, model: str) -> ModelScore:
    """
    Strict parse: JSON object -> JudgeResponse -> ModelScore.

    Raises:
        ResponseParseError: On invalid JSON, schema violations, or missing fields
    """
    data = load_json_object(content)
    if data is None:
        raise ResponseParseError("invalid_json", content)
    try:
        response = JudgeResponse.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"schema: {e.error_count()} errors", content) from e
    return normalize_response(response, prompt, model)


# ============================================================================
# Tier 3: Regex Recovery
# ============================================================================

def extract_from_malformed(content: str, prompt: PromptVersion, model: str) -> Optional[ModelScore]:
    """
    Pull "bucket" and "score" out of text that is not valid JSON.

    Bucket-first schemas need both fields; score-only schemas need a score.
    Recovered results are always low confidence.
    """
    score_match = _SCORE_RE.search(content)
    if score_match is None:
        return None
    score = float(score_match.group(1))

    if prompt.bucket_first:
        bucket_match = _BUCKET_RE.search(content)
        if bucket_match is None:
            return None
        bucket = parse_bucket(bucket_match.group(1))
    else:
        bucket = score_to_bucket(score)

    return ModelScore(
        model=model,
        bucket=bucket,
        score=clamp_score_to_bucket(score, bucket),
        confidence=Confidence.LOW,
        reasoning="Extracted from malformed response",
    )


# ============================================================================
# Entry Point
# ============================================================================

def parse_response(
    content: str,
    prompt: PromptVersion,
    model: str,
) -> Union[ModelScore, JudgeRejection]:
    """
    Parse one judge response.

    Returns:
        JudgeRejection if the judge declined to score, otherwise a ModelScore

    Raises:
        ResponseParseError: If no tier yields a usable result
    """
    if not content or not content.strip():
        raise ResponseParseError("empty_response")

    if prompt.supports_rejection:
        rejection = parse_rejection(content)
        if rejection is not None:
            return rejection

    try:
        return parse_structured(content, prompt, model)
    except ResponseParseError as strict_error:
        recovered = extract_from_malformed(content, prompt, model)
        if recovered is None:
            raise strict_error
        return recovered


__all__ = [
    "ResponseParseError",
    "JudgeResponse",
    "strip_code_fences",
    "load_json_object",
    "parse_rejection",
    "normalize_response",
    "parse_structured",
    "extract_from_malformed",
    "parse_response",
]
