"""
Multi-Show Detection

Flags roundup and comparison articles that discuss several shows, which
should not be scored as a single-show review.

Show titles are held in a ShowTitleIndex built once by the caller and passed
to detect_multi_show on every call.

Usage:
    index = ShowTitleIndex.from_json(Path("data/shows.json"))
    result = detect_multi_show(text, "hamilton-2015", index)
    if result.recommendation == "skip":
        ...
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

MIN_TEXT_LENGTH = 200
MIN_TITLE_LENGTH = 4
# Mentions for another show to count at all
MENTION_THRESHOLD = 3
# Mentions for a single other show to mark a comparison article
COMPARISON_THRESHOLD = 5

# Titles that are also ordinary words
SKIP_TITLES = frozenset([
    "six", "cats", "rent", "hair", "fame", "nine", "once", "annie", "grease",
    "chicago", "oliver", "company", "pippin",
])


@dataclass(frozen=True)
class OtherShow:
    title: str
    mentions: int


@dataclass
class MultiShowResult:
    """recommendation is one of "score", "warn", "skip"."""
    is_multi_show: bool
    recommendation: str
    other_shows: List[OtherShow] = field(default_factory=list)
    reason: Optional[str] = None


class ShowTitleIndex:
    """Lowercase show title -> show id, with precompiled mention patterns."""

    def __init__(self, titles: Dict[str, str]):
        self._titles: Dict[str, str] = {}
        self._patterns: Dict[str, re.Pattern] = {}
        for title, show_id in titles.items():
            key = title.strip().lower()
            if len(key) < MIN_TITLE_LENGTH or key in SKIP_TITLES:
                continue
            self._titles[key] = show_id
            self._patterns[key] = re.compile(r"\b" + re.escape(key) + r"\b")

    @classmethod
    def from_shows(cls, shows: Iterable[Dict[str, Any]]) -> "ShowTitleIndex":
        """Build from show records with "title" and "id" (or "slug")."""
        titles = {}
        for show in shows:
            title = show.get("title")
            show_id = show.get("id") or show.get("slug")
            if title and show_id:
                titles[title] = show_id
        return cls(titles)

    @classmethod
    def from_json(cls, path: Path) -> "ShowTitleIndex":
        """Load a shows file: a list of shows or {"shows": [...]}."""
        with open(path) as f:
            raw = json.load(f)
        shows = raw.get("shows", []) if isinstance(raw, dict) else raw
        return cls.from_shows(shows)

    def __len__(self) -> int:
        return len(self._titles)

    def title_for(self, show_id: str) -> Optional[str]:
        for title, sid in self._titles.items():
            if sid == show_id:
                return title
        return None

    def items(self) -> List[Tuple[str, str]]:
        return list(self._titles.items())

    def count_mentions(self, lower_text: str, title: str) -> int:
        pattern = self._patterns.get(title)
        if pattern is None:
            return 0
        return len(pattern.findall(lower_text))


def _id_words(show_id: str) -> List[str]:
    base = re.sub(r"-\d{4}$", "", show_id)
    return [w for w in base.split("-") if len(w) > 3]


def detect_multi_show(text: str, target_show_id: str, index: ShowTitleIndex) -> MultiShowResult:
    """
    Check whether a review discusses shows other than its target.

    - 2+ other shows with 3+ mentions each: roundup, skip
    - 1 other show with 5+ mentions: comparison, warn (multi-show)
    - 1 other show with 3-4 mentions: warn only
    """
    if not text or len(text) < MIN_TEXT_LENGTH or len(index) == 0:
        return MultiShowResult(is_multi_show=False, recommendation="score")

    lower_text = text.lower()
    target_title = index.title_for(target_show_id)
    target_words = _id_words(target_show_id)

    others: List[OtherShow] = []
    for title, show_id in index.items():
        if show_id == target_show_id or title == target_title:
            continue
        # Titles sharing most of their words with the target id are the target
        title_words = [w for w in title.split() if len(w) > 3]
        overlap = sum(1 for w in title_words if w in target_words)
        if overlap > 0 and overlap >= len(title_words) * 0.5:
            continue
        mentions = index.count_mentions(lower_text, title)
        if mentions >= MENTION_THRESHOLD:
            others.append(OtherShow(title=title, mentions=mentions))

    others.sort(key=lambda s: (-s.mentions, s.title))

    if not others:
        return MultiShowResult(is_multi_show=False, recommendation="score")

    if len(others) >= 2:
        names = ", ".join(s.title for s in others[:3])
        return MultiShowResult(
            is_multi_show=True,
            recommendation="skip",
            other_shows=others,
            reason=f"Roundup article: {len(others)} other shows mentioned {MENTION_THRESHOLD}+ times ({names})",
        )

    top = others[0]
    if top.mentions >= COMPARISON_THRESHOLD:
        return MultiShowResult(
            is_multi_show=True,
            recommendation="warn",
            other_shows=others,
            reason=f'Comparison article: "{top.title}" mentioned {top.mentions} times',
        )
    return MultiShowResult(
        is_multi_show=False,
        recommendation="warn",
        other_shows=others,
        reason=f'"{top.title}" mentioned {top.mentions} times (may be comparison)',
    )
