"""
Review Text Quality Assessment

Pattern-based checks used by the input builder to decide whether scraped
full text is complete, truncated (paywall, cut off mid-sentence), or
corrupted (navigation, captions, cookie banners mixed in).

Any callable with the signature of ``assess_full_text`` can be passed to
the input builder instead of this default.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

MIN_FULL_TEXT_LENGTH = 50


class TextStatus(Enum):
    COMPLETE = "complete"
    TRUNCATED = "truncated"
    CORRUPTED = "corrupted"


@dataclass
class TextAssessment:
    """Assessor verdict. status None means the text is unusable."""
    status: Optional[TextStatus]
    reason: str = ""
    signals: List[str] = field(default_factory=list)


VERDICT_PATTERNS = [
    re.compile(r"\b(must[- ]see|essential|masterpiece|triumph|unmissable)\b", re.I),
    re.compile(r"\b(highly recommend|worth (seeing|the trip|every penny))\b", re.I),
    re.compile(r"\b(don'?t miss|not to be missed)\b", re.I),
    re.compile(r"\b(skip|avoid|miss this one|don'?t bother)\b", re.I),
    re.compile(r"\b(disappointing|disappoints|waste of time)\b", re.I),
    re.compile(r"\b(falls (flat|short)|misses the mark|underwhelms)\b", re.I),
    re.compile(r"\b(mixed (results|feelings|bag)|has (its|some) (moments|charms))\b", re.I),
    re.compile(r"\b\d\s*(out of|/)\s*\d\s*(stars?)?\b", re.I),
    re.compile(r"\bgrade:?\s*[A-F][+-]?(?![A-Za-z])", re.I),
    re.compile(r"\b(the (bottom line|verdict)|in (short|sum|conclusion))\b", re.I),
]

TRUNCATION_PATTERNS = [
    ("paywall", re.compile(r"(subscribe|sign in) to (continue|read|keep)", re.I)),
    ("continue-reading", re.compile(r"(to )?continue reading", re.I)),
    ("subscribers-only", re.compile(r"for subscribers only|members only|unlock this article", re.I)),
    ("read-more", re.compile(r"read more\.{0,3}$", re.I)),
    ("ellipsis-ending", re.compile(r"\.{3}\s*$")),
    ("mid-sentence-ending", re.compile(r"[a-z,]\s*$")),
    ("advertisement-ending", re.compile(r"advertisement\s*$", re.I)),
]

CORRUPTION_PATTERNS = [
    ("masthead", re.compile(r"^(democracy dies in darkness|all the news that'?s fit to print)", re.I)),
    ("share-link", re.compile(r"\bshare\s+(this\s+)?(article|story|on)\b", re.I)),
    ("listen-widget", re.compile(r"\blisten\s+\d+\s*min\b", re.I)),
    ("comment-count", re.compile(r"\bcomment\s*\(\d+\)", re.I)),
    ("save-link", re.compile(r"\bsave\s+(article|story)\b", re.I)),
    ("photo-credit", re.compile(r"\((photo|credit|getty|ap photo|reuters)[^)]*\)", re.I)),
    ("cookie-notice", re.compile(r"\bcookies?\s+(policy|settings|preferences)\b", re.I)),
    ("privacy-notice", re.compile(r"\bprivacy\s+(policy|notice)\b", re.I)),
    ("social-follow", re.compile(r"\bfollow us on\b|\btweet\s+this\b", re.I)),
    ("control-characters", re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")),
]

_SENTENCE_END_RE = re.compile(r"[.!?][\"'”’]?\s*$")

_LEADING_JUNK = [
    re.compile(r"^(Democracy Dies in Darkness|All the News That's Fit to Print)\s*", re.I),
    re.compile(r"^(Things you buy through our links|We may earn a commission)[^.]*\.\s*", re.I),
    re.compile(r"^Photo\s*:\s*[^\n]+\n\s*", re.I),
]

_INLINE_JUNK = [
    re.compile(r"\([^)]*(?:Photo|Credit|Getty|AP Photo|Reuters)[^)]*\)", re.I),
    re.compile(r"Listen\s*\d+\s*min\s*(Share\s*)?(Comment\s*)?", re.I),
    re.compile(r"Share\s+(this\s+)?(article|story|on\s+\w+)", re.I),
    re.compile(r"We use cookies[^.]+\.", re.I),
    re.compile(r"Privacy Policy[^.]*\.", re.I),
]

_TRAILING_JUNK = [
    re.compile(r"\n\s*(When we learn of a mistake|If you spot an error|A version of this)[\s\S]*$", re.I),
    re.compile(r"\n\s*(Share full article|Related Content|Advertisement|Share this)[\s\S]*$", re.I),
    re.compile(r"\n\s*(Running time|Tickets|Through \w+ \d+)[\s\S]*$", re.I),
    re.compile(r"\n\s*(More from|Read more)[\s\S]*$", re.I),
    re.compile(r"\s+(Related|Also Read|You May Also Like|More Stories|Recommended):[\s\S]*$", re.I),
]


def clean_text(text: str) -> str:
    """Strip mastheads, captions, share widgets and trailing site furniture."""
    if not text:
        return ""
    cleaned = text
    for pattern in _LEADING_JUNK:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.lstrip()
    for pattern in _INLINE_JUNK:
        cleaned = pattern.sub("", cleaned)
    for pattern in _TRAILING_JUNK:
        cleaned = pattern.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def has_verdict(text: str, end_only: bool = False) -> bool:
    """True if the text (or its last 600 chars) contains verdict language."""
    if not text:
        return False
    sample = text[-600:] if end_only else text
    return any(p.search(sample) for p in VERDICT_PATTERNS)


def check_truncation(text: str) -> List[str]:
    return [name for name, p in TRUNCATION_PATTERNS if p.search(text)]


def check_corruption(text: str) -> List[str]:
    return [name for name, p in CORRUPTION_PATTERNS if p.search(text)]


def ends_with_sentence(text: str) -> bool:
    return bool(_SENTENCE_END_RE.search(text.strip()))


def assess_full_text(text: Optional[str]) -> TextAssessment:
    """
    Classify scraped full text.

    Corruption needs two or more distinct signals (a single photo credit is
    tolerated). Any truncation signal, or a missing sentence-final
    punctuation mark, marks the text truncated.

    Args:
        text: Raw full text

    Returns:
        TextAssessment; status is None when the text is too short to use
    """
    if not text or len(text) < MIN_FULL_TEXT_LENGTH:
        return TextAssessment(status=None, reason="Text too short to assess")

    cleaned = clean_text(text)
    if len(cleaned) < MIN_FULL_TEXT_LENGTH:
        return TextAssessment(status=None, reason="Text too short after cleaning")

    corruption = check_corruption(cleaned)
    if len(corruption) > 1:
        return TextAssessment(
            status=TextStatus.CORRUPTED,
            reason=f"Artifacts detected: {', '.join(corruption)}",
            signals=corruption,
        )

    truncation = check_truncation(cleaned)
    if truncation:
        return TextAssessment(
            status=TextStatus.TRUNCATED,
            reason=f"Truncation signals: {', '.join(truncation)}",
            signals=truncation,
        )

    if ends_with_sentence(cleaned):
        return TextAssessment(status=TextStatus.COMPLETE, reason="Ends with complete sentence")

    return TextAssessment(
        status=TextStatus.TRUNCATED,
        reason="No sentence-final punctuation",
        signals=["no-final-punctuation"],
    )


__all__ = [
    "TextStatus",
    "TextAssessment",
    "clean_text",
    "has_verdict",
    "check_truncation",
    "check_corruption",
    "ends_with_sentence",
    "assess_full_text",
]
