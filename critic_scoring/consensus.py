"""
Scoreability Consensus

Judges may refuse to score text that is not a review of the target show.
A strict majority of configured judges must agree before the review as a
whole is rejected; a minority rejection only removes those judges from the
vote.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from critic_scoring.models import (
    REJECTION_SPECIFICITY,
    AdapterOutcome,
    ModelScore,
    RejectionReason,
    ScoreabilityRejection,
)
from critic_scoring.ensemble import to_model_score

logger = logging.getLogger(__name__)


@dataclass
class ScoreabilityDecision:
    """Either a terminal rejection or the scores that go on to voting."""
    rejection: Optional[ScoreabilityRejection] = None
    scores: List[ModelScore] = field(default_factory=list)

    @property
    def is_rejected(self) -> bool:
        return self.rejection is not None


def pick_rejection_reason(reasons: Sequence[RejectionReason]) -> RejectionReason:
    """Most common reason; ties go to the more specific reason."""
    counts = Counter(reasons)
    return max(
        counts,
        key=lambda reason: (counts[reason], -REJECTION_SPECIFICITY.index(reason)),
    )


def resolve_scoreability(outcomes: Sequence[AdapterOutcome]) -> ScoreabilityDecision:
    """
    Apply the quorum rule to one review's adapter outcomes.

    Args:
        outcomes: One outcome per configured judge

    Returns:
        ScoreabilityDecision with a rejection when a strict majority of
        judges rejected, otherwise one ModelScore per judge (rejecting and
        failed judges become errored placeholders)
    """
    total = len(outcomes)
    rejectors = [o for o in outcomes if o.is_rejection]

    if rejectors and len(rejectors) * 2 > total:
        reason = pick_rejection_reason([o.rejection.reason for o in rejectors])
        agreeing = [o for o in rejectors if o.rejection.reason == reason]
        reasoning = next((o.rejection.reasoning for o in agreeing if o.rejection.reasoning), "")
        names = [o.model for o in rejectors]
        logger.info(
            "[consensus] REJECTED reason=%s rejectors=%s total=%d",
            reason.value, ",".join(names), total,
        )
        return ScoreabilityDecision(
            rejection=ScoreabilityRejection(
                rejection=reason,
                reasoning=reasoning,
                rejecting_models=names,
                total_models=total,
                note=f"{len(rejectors)}/{total} models rejected as {reason.value}",
            )
        )

    scores = []
    for o in outcomes:
        if o.is_success:
            scores.append(o.score)
        elif o.is_rejection:
            logger.info(
                "[consensus] MINORITY_REJECTION model=%s reason=%s",
                o.model, o.rejection.reason.value,
            )
            scores.append(to_model_score(
                None, o.model,
                error=f"Rejected as unscoreable: {o.rejection.reason.value}",
            ))
        else:
            scores.append(to_model_score(None, o.model, error=o.error or "No result"))
    return ScoreabilityDecision(scores=scores)


__all__ = [
    "ScoreabilityDecision",
    "pick_rejection_reason",
    "resolve_scoreability",
]
