"""
Human Rating Conversion

Converts free-form critic ratings ("4/5", "3.5 stars", "B+", "★★★★",
"8 out of 10") to the 0-100 scale. Stars are out of 5 unless the rating
states its own scale ("3.5 stars out of 4"). Anything that cannot be read
deterministically returns None ("no ground truth"), never 0.
"""

import re
from typing import Optional

from critic_scoring.buckets import round_half_up

LETTER_GRADES = {
    "A+": 97, "A": 93, "A-": 90,
    "B+": 87, "B": 83, "B-": 80,
    "C+": 77, "C": 73, "C-": 70,
    "D+": 67, "D": 60, "D-": 57,
    "F": 50,
}

STAR_SCALE = 5

_NUMBER = r"(\d+(?:\.\d+)?)"
_GRADE = r"([a-f][+-]?)"

_LETTER_RANGE_RE = re.compile(rf"^{_GRADE}\s*/\s*{_GRADE}$")
_FRACTION_RE = re.compile(rf"^{_NUMBER}\s*/\s*{_NUMBER}(?:\s*stars?)?$")
_STARS_RE = re.compile(rf"^{_NUMBER}\s*(?:stars?|★)(?:\s*(?:out of|/)\s*{_NUMBER})?")
_GLYPH_RE = re.compile(r"^[★*]+$")
_LETTER_RE = re.compile(rf"^{_GRADE}$")
_NUMERIC_RE = re.compile(rf"^{_NUMBER}\s*(?:out of\s*{_NUMBER})?(?:\s*stars?)?$")


def _ratio_score(value: float, scale: float) -> Optional[int]:
    if scale <= 0 or value < 0 or value > scale:
        return None
    return round_half_up(value / scale * 100)


def convert_rating_to_score(rating: Optional[str]) -> Optional[int]:
    """
    Convert a human rating string to 0-100.

    Args:
        rating: Rating as written by the critic

    Returns:
        Integer score, or None when the rating is unparseable or
        inconsistent (zero denominator, value above its scale)
    """
    if not rating or not isinstance(rating, str):
        return None
    normalized = rating.strip().lower()
    if not normalized:
        return None

    match = _LETTER_RANGE_RE.match(normalized)
    if match:
        first = LETTER_GRADES.get(match.group(1).upper())
        second = LETTER_GRADES.get(match.group(2).upper())
        if first is None or second is None:
            return None
        return round_half_up((first + second) / 2)

    match = _FRACTION_RE.match(normalized)
    if match:
        return _ratio_score(float(match.group(1)), float(match.group(2)))

    match = _STARS_RE.match(normalized)
    if match:
        scale = float(match.group(2)) if match.group(2) else STAR_SCALE
        return _ratio_score(float(match.group(1)), scale)

    if _GLYPH_RE.match(normalized):
        return _ratio_score(len(normalized), STAR_SCALE)

    match = _LETTER_RE.match(normalized)
    if match:
        return LETTER_GRADES.get(match.group(1).upper())

    match = _NUMERIC_RE.match(normalized)
    if match:
        value = float(match.group(1))
        if match.group(2):
            scale = float(match.group(2))
        else:
            scale = 10.0 if value <= 10 else 100.0
        return _ratio_score(value, scale)

    return None


def rating_format(rating: Optional[str]) -> str:
    """Rating family: fraction, letter, stars, numeric, or other."""
    if not rating or not isinstance(rating, str):
        return "other"
    normalized = rating.strip().lower()
    if _LETTER_RANGE_RE.match(normalized) or _LETTER_RE.match(normalized):
        return "letter"
    if _FRACTION_RE.match(normalized) and "star" not in normalized:
        return "fraction"
    if "star" in normalized or "★" in normalized or _GLYPH_RE.match(normalized):
        return "stars"
    if _NUMERIC_RE.match(normalized):
        return "numeric"
    return "other"


__all__ = [
    "LETTER_GRADES",
    "convert_rating_to_score",
    "rating_format",
]
