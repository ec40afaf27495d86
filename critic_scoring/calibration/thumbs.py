"""
Aggregator Thumbs Validation

Compares the Up/Flat/Down distribution implied by produced scores for a
show with the thumbs published by review aggregators for the same show.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from critic_scoring.buckets import Thumb, score_to_thumb
from critic_scoring.input_builder import normalize_thumb

MIN_REVIEWS = 3
# Percentage points between distributions that count as disagreement
MAX_CATEGORY_DIFF = 25.0


@dataclass
class ThumbDistribution:
    up: int = 0
    flat: int = 0
    down: int = 0

    @property
    def total(self) -> int:
        return self.up + self.flat + self.down

    def add(self, thumb: Thumb) -> None:
        if thumb == Thumb.UP:
            self.up += 1
        elif thumb == Thumb.FLAT:
            self.flat += 1
        else:
            self.down += 1

    def percentages(self) -> Dict[str, float]:
        if self.total == 0:
            return {"up": 0.0, "flat": 0.0, "down": 0.0}
        return {
            "up": self.up / self.total * 100,
            "flat": self.flat / self.total * 100,
            "down": self.down / self.total * 100,
        }

    def sentiment(self) -> str:
        """positive, negative or mixed, by comparing up and down shares."""
        if self.up > self.down:
            return "positive"
        if self.down > self.up:
            return "negative"
        return "mixed"

    @classmethod
    def from_scores(cls, scores: Iterable[float]) -> "ThumbDistribution":
        dist = cls()
        for s in scores:
            dist.add(score_to_thumb(s))
        return dist

    @classmethod
    def from_thumbs(cls, thumbs: Iterable[Optional[str]]) -> "ThumbDistribution":
        """Aggregator thumb vocabulary as read by normalize_thumb; anything else is ignored."""
        dist = cls()
        for t in thumbs:
            thumb = normalize_thumb(t)
            if thumb is not None:
                dist.add(Thumb(thumb))
        return dist


@dataclass
class ThumbComparison:
    ours: ThumbDistribution
    theirs: ThumbDistribution
    comparable: bool
    disagreement: bool = False
    details: List[str] = field(default_factory=list)


def compare_thumb_distributions(ours: ThumbDistribution, theirs: ThumbDistribution) -> ThumbComparison:
    """
    Flag disagreement between two distributions.

    Needs MIN_REVIEWS on both sides. Disagreement is any category differing
    by more than MAX_CATEGORY_DIFF points, or a positive/negative flip.
    """
    if ours.total < MIN_REVIEWS or theirs.total < MIN_REVIEWS:
        return ThumbComparison(ours=ours, theirs=theirs, comparable=False)

    our_pct = ours.percentages()
    their_pct = theirs.percentages()
    details = []

    category, diff = max(
        ((c, abs(our_pct[c] - their_pct[c])) for c in ("up", "flat", "down")),
        key=lambda item: item[1],
    )
    if diff > MAX_CATEGORY_DIFF:
        details.append(
            f"{category} thumbs differ by {diff:.0f}% "
            f"(ours: {our_pct[category]:.0f}%, theirs: {their_pct[category]:.0f}%)"
        )

    our_sentiment, their_sentiment = ours.sentiment(), theirs.sentiment()
    if {our_sentiment, their_sentiment} == {"positive", "negative"}:
        details.append(f"Sentiment flip: we say {our_sentiment}, they say {their_sentiment}")

    return ThumbComparison(
        ours=ours,
        theirs=theirs,
        comparable=True,
        disagreement=bool(details),
        details=details,
    )


__all__ = [
    "ThumbDistribution",
    "ThumbComparison",
    "compare_thumb_distributions",
]
