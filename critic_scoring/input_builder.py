"""
Scoring Input Builder

Picks the text to send to judges for one review, labels its quality, and
assembles the context block.

Policy:
- Complete full text is scored on its own; context carries only the show
  and critic identity.
- Truncated or corrupted full text stays primary, with a warning plus
  corroborating signal (outlet tier, original rating, aggregator thumbs,
  excerpts not already in the text). Truncated text with no verdict
  language left in it is called out, and verdict-bearing excerpts go first.
- Without usable full text, distinct curated excerpts are combined.
- The returned confidence is a ceiling for the ensemble result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from critic_scoring.models import Confidence
from critic_scoring.multi_show import MultiShowResult, ShowTitleIndex, detect_multi_show
from critic_scoring.outlets import get_outlet_tier, tier_name
from critic_scoring.text_quality import TextAssessment, assess_full_text, clean_text, has_verdict

MIN_EXCERPT_LENGTH = 30

# (key, display name, record field)
EXCERPT_SOURCES: List[Tuple[str, str, str]] = [
    ("show_score", "Show Score", "showScoreExcerpt"),
    ("dtli", "DTLI", "dtliExcerpt"),
    ("bww", "BWW", "bwwExcerpt"),
    ("nyc_theatre", "NYC Theatre", "nycTheatreExcerpt"),
]

THUMB_SOURCES: List[Tuple[str, str, str]] = [
    ("dtli", "Did They Like It", "dtliThumb"),
    ("bww", "BroadwayWorld", "bwwThumb"),
]

# Record flags meaning the full text belongs to something else
DATA_QUALITY_FLAGS: List[Tuple[str, str]] = [
    ("misattributed_full_text", "misattributedFullText"),
    ("wrong_show", "wrongShow"),
    ("wrong_production", "wrongProduction"),
    ("show_not_mentioned", "showNotMentioned"),
]

THUMB_MAP = {
    "up": "Up", "thumbs up": "Up", "rave": "Up", "positive": "Up", "fresh": "Up",
    "flat": "Flat", "sideways": "Flat", "mixed": "Flat", "meh": "Flat",
    "down": "Down", "thumbs down": "Down", "pan": "Down", "negative": "Down", "rotten": "Down",
}


class TextQuality(Enum):
    COMPLETE = "complete"
    TRUNCATED = "truncated"
    CORRUPTED = "corrupted"
    EXCERPT_ONLY = "excerpt-only"
    INSUFFICIENT = "insufficient"


@dataclass
class ReviewInput:
    """Everything known about one review before scoring."""
    show_id: str = ""
    show_title: str = ""
    outlet_id: str = ""
    outlet: str = ""
    critic_name: str = ""
    full_text: Optional[str] = None
    excerpts: Dict[str, str] = field(default_factory=dict)   # EXCERPT_SOURCES key -> text
    thumbs: Dict[str, str] = field(default_factory=dict)     # THUMB_SOURCES key -> raw thumb
    original_rating: Optional[str] = None
    flags: Set[str] = field(default_factory=set)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewInput":
        """Create from a review record (camelCase keys)."""
        excerpts = {key: data[name] for key, _, name in EXCERPT_SOURCES if data.get(name)}
        thumbs = {key: data[name] for key, _, name in THUMB_SOURCES if data.get(name)}
        flags = {flag for flag, name in DATA_QUALITY_FLAGS if data.get(name)}
        return cls(
            show_id=data.get("showId") or "",
            show_title=data.get("showTitle") or "",
            outlet_id=data.get("outletId") or "",
            outlet=data.get("outlet") or "",
            critic_name=data.get("criticName") or "",
            full_text=data.get("fullText"),
            excerpts=excerpts,
            thumbs=thumbs,
            original_rating=data.get("originalRating") or data.get("originalScore"),
            flags=flags,
        )

    def quality_flag(self) -> Optional[str]:
        for flag, _ in DATA_QUALITY_FLAGS:
            if flag in self.flags:
                return flag
        return None


@dataclass
class ScoringInput:
    """Text and context handed to every judge for one review."""
    text: str
    context: str
    text_quality: TextQuality
    confidence: Confidence           # Ceiling for the ensemble result
    reasoning: str
    includes_aggregator_context: bool = False
    source_field: Optional[str] = None   # "full_text" or "excerpts"
    multi_show: Optional[MultiShowResult] = None

    @property
    def is_scoreable(self) -> bool:
        return bool(self.text)


# ============================================================================
# Helpers
# ============================================================================

def normalize_thumb(value: Optional[str]) -> Optional[str]:
    """Map aggregator thumb vocabulary to Up/Flat/Down."""
    if not value:
        return None
    return THUMB_MAP.get(value.strip().lower())


def unique_excerpts(review: ReviewInput, min_length: int = MIN_EXCERPT_LENGTH) -> List[Tuple[str, str]]:
    """(display name, text) for distinct excerpts at least min_length long."""
    seen = set()
    result = []
    for key, name, _ in EXCERPT_SOURCES:
        text = (review.excerpts.get(key) or "").strip()
        if len(text) < min_length or text in seen:
            continue
        seen.add(text)
        result.append((name, text))
    return result


def combine_excerpts(review: ReviewInput, min_length: int = MIN_EXCERPT_LENGTH) -> str:
    return "\n\n".join(text for _, text in unique_excerpts(review, min_length))


def _thumb_line(review: ReviewInput) -> Optional[str]:
    parts = []
    for key, name, _ in THUMB_SOURCES:
        thumb = normalize_thumb(review.thumbs.get(key))
        if thumb:
            parts.append(f"{name}: {thumb}")
    return f"Aggregator verdicts: {', '.join(parts)}" if parts else None


def _identity_lines(review: ReviewInput) -> List[str]:
    lines = []
    if review.show_title:
        lines.append(f"Show: {review.show_title}")
    if review.critic_name:
        lines.append(f"Critic: {review.critic_name}")
    return lines


def _confidence_for(quality: TextQuality, includes_aggregator: bool, excerpt_count: int) -> Confidence:
    if quality == TextQuality.COMPLETE:
        return Confidence.HIGH
    if quality == TextQuality.EXCERPT_ONLY:
        # A lone curated quote may be cherry-picked
        return Confidence.MEDIUM if excerpt_count > 1 else Confidence.LOW
    if quality == TextQuality.TRUNCATED and includes_aggregator:
        return Confidence.MEDIUM
    return Confidence.LOW


# ============================================================================
# Builder
# ============================================================================

def build_scoring_input(
    review: ReviewInput,
    assessor: Optional[Callable[[str], TextAssessment]] = None,
    show_index: Optional[ShowTitleIndex] = None,
) -> ScoringInput:
    """
    Select text and build judge context for one review.

    Args:
        review: Review record
        assessor: Full-text quality assessor (defaults to assess_full_text)
        show_index: Enables multi-show detection when given

    Returns:
        ScoringInput; text is empty when nothing usable exists
    """
    assessor = assessor or assess_full_text
    notes = []

    full_text = review.full_text
    flag = review.quality_flag()
    if flag and full_text:
        notes.append(f"Skipped full text ({flag} flag).")
        full_text = None

    assessment = assessor(full_text) if full_text else None
    excerpts = unique_excerpts(review)

    if assessment is not None and assessment.status is not None:
        text = clean_text(full_text)
        quality = TextQuality(assessment.status.value)
        source_field = "full_text"
        notes.append(assessment.reason or f"Full text {quality.value}")
    elif excerpts:
        text = "\n\n".join(t for _, t in excerpts)
        quality = TextQuality.EXCERPT_ONLY
        source_field = "excerpts"
        if assessment is not None:
            notes.append(f"Full text unusable ({assessment.reason}).")
        notes.append(f"Using {len(excerpts)} curated excerpt(s)")
    else:
        notes.append("No usable text found")
        return ScoringInput(
            text="",
            context="",
            text_quality=TextQuality.INSUFFICIENT,
            confidence=Confidence.LOW,
            reasoning=" ".join(notes),
        )

    parts = _identity_lines(review)
    includes_aggregator = False
    verdict_in_text = quality != TextQuality.TRUNCATED or has_verdict(text)

    if quality != TextQuality.COMPLETE:
        if review.outlet or review.outlet_id:
            tier = get_outlet_tier(review.outlet_id)
            parts.append(f"Outlet: {review.outlet or review.outlet_id} ({tier_name(tier)})")

        if review.original_rating:
            parts.append(f"\n## Original Rating: {review.original_rating}")
            parts.append("The critic's own rating should weigh heavily in the bucket choice.")

        parts.append("\n## Text Quality Warning")
        if quality == TextQuality.TRUNCATED:
            parts.append("This review text appears TRUNCATED. The critic's final verdict may be missing; "
                         "be cautious about low scores.")
            parts.append(f"Assessment: {assessment.reason}")
            if not verdict_in_text:
                parts.append("No verdict language survives in the visible text. "
                             "Weigh the rating and excerpts below over the tone of the opening.")
                notes.append("Truncated text carries no verdict language.")
        elif quality == TextQuality.CORRUPTED:
            parts.append("This review text contains artifacts (navigation, captions, site text). "
                         "Ignore anything that is not the critic's writing.")
            parts.append(f"Assessment: {assessment.reason}")
        else:
            parts.append("Only curated excerpts are available. They may not represent the full verdict.")
            if len(excerpts) == 1:
                parts.append("\n## Single Excerpt Warning")
                parts.append("Only ONE excerpt is available and it may be cherry-picked. "
                             "Score conservatively toward the middle of the chosen bucket.")

        aggregator_lines = []
        thumb_line = _thumb_line(review)
        if thumb_line:
            aggregator_lines.append(thumb_line)
        if quality in (TextQuality.TRUNCATED, TextQuality.CORRUPTED):
            extra = [(name, t) for name, t in excerpts if t not in text]
            if not verdict_in_text:
                extra.sort(key=lambda item: not has_verdict(item[1]))
            if extra:
                aggregator_lines.append("Additional curated excerpts from this review:")
                aggregator_lines.extend(f'{name} excerpt: "{t}"' for name, t in extra)

        if aggregator_lines:
            includes_aggregator = True
            parts.append("\n## Aggregator Context (for reference only)")
            parts.append("Use this to help identify the likely verdict, but make your own assessment.")
            parts.extend(aggregator_lines)

    confidence = _confidence_for(quality, includes_aggregator, len(excerpts))

    multi_show = None
    if show_index is not None and review.show_id:
        multi_show = detect_multi_show(text, review.show_id, show_index)
        if multi_show.recommendation != "score":
            title = review.show_title or review.show_id
            parts.append("\n## Multi-Show Warning")
            parts.append(f"{multi_show.reason}. Score only what the critic says about {title}.")
            notes.append(multi_show.reason)
        if multi_show.recommendation == "skip":
            confidence = Confidence.LOW

    return ScoringInput(
        text=text,
        context="\n".join(parts).strip(),
        text_quality=quality,
        confidence=confidence,
        reasoning=" ".join(notes),
        includes_aggregator_context=includes_aggregator,
        source_field=source_field,
        multi_show=multi_show,
    )


__all__ = [
    "TextQuality",
    "ReviewInput",
    "ScoringInput",
    "normalize_thumb",
    "unique_excerpts",
    "combine_excerpts",
    "build_scoring_input",
]
