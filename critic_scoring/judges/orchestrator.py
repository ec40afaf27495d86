"""
Ensemble Scorer

Coordinates all judges for a review: fans out to every adapter in
parallel, waits for all of them to settle, applies the scoreability quorum,
then runs the ensemble voter.

Reviews in a batch are processed one at a time with a configurable delay
between them to stay inside provider rate limits.

Usage:
    from critic_scoring.judges.orchestrator import EnsembleScorer

    scorer = EnsembleScorer.from_config()
    outcome = await scorer.score_input(scoring_input)
    if outcome.rejection:
        ...
    else:
        record["ensemble"] = outcome.result.to_dict()
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from critic_scoring.config import ScoringConfig, get_config, get_enabled_judges, load_judge_config
from critic_scoring.consensus import resolve_scoreability
from critic_scoring.ensemble import agreement_level, ensemble_score
from critic_scoring.input_builder import ScoringInput
from critic_scoring.judges.adapter import ModelAdapter
from critic_scoring.models import (
    AdapterOutcome,
    Confidence,
    EnsembleResult,
    ScoreabilityRejection,
    TokenUsage,
    cap_confidence,
)

logger = logging.getLogger(__name__)


@dataclass
class ReviewScoringOutcome:
    """Exactly one of result or rejection is set."""
    result: Optional[EnsembleResult] = None
    rejection: Optional[ScoreabilityRejection] = None
    adapter_outcomes: List[AdapterOutcome] = field(default_factory=list)

    @property
    def is_rejected(self) -> bool:
        return self.rejection is not None


class EnsembleScorer:
    """Runs every configured judge on a review and combines their results."""

    def __init__(self, adapters: Sequence[ModelAdapter], prompt_version: Optional[str] = None):
        if not adapters:
            raise ValueError("EnsembleScorer needs at least one adapter")
        self.adapters = list(adapters)
        self.prompt_version = prompt_version or self.adapters[0].prompt.version

    @classmethod
    def from_config(
        cls,
        config: Optional[ScoringConfig] = None,
        judge_config: Optional[Dict[str, Any]] = None,
        **adapter_kwargs,
    ) -> "EnsembleScorer":
        """
        Build adapters for every enabled judge with an API key.

        Raises:
            ValueError: If no judge is available
        """
        config = config or get_config()
        judge_config = judge_config or load_judge_config(config.judge_config_path)
        judges = get_enabled_judges(judge_config)
        if not judges:
            raise ValueError("No enabled judges with configured API keys")
        adapters = [ModelAdapter.from_judge_config(j, config, **adapter_kwargs) for j in judges]
        logger.info("[scorer] JUDGES %s", ",".join(a.name for a in adapters))
        return cls(adapters, prompt_version=config.prompt_version)

    @property
    def model_names(self) -> List[str]:
        return [a.name for a in self.adapters]

    # ------------------------------------------------------------------
    # Token accounting
    # ------------------------------------------------------------------

    def get_token_usage(self) -> Dict[str, TokenUsage]:
        """Per-judge usage plus a "total" entry."""
        usage = {a.name: a.get_token_usage() for a in self.adapters}
        total = TokenUsage()
        for u in usage.values():
            total = total + u
        usage["total"] = total
        return usage

    def reset_token_usage(self) -> None:
        for a in self.adapters:
            a.reset_token_usage()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def _run_adapters(self, text: str, context: str) -> List[AdapterOutcome]:
        raw = await asyncio.gather(
            *(a.score(text, context) for a in self.adapters),
            return_exceptions=True,
        )
        outcomes = []
        for adapter, r in zip(self.adapters, raw):
            if isinstance(r, BaseException):
                logger.error("[scorer] ADAPTER_CRASHED model=%s error=%r", adapter.name, r)
                outcomes.append(AdapterOutcome.failed(adapter.name, f"{type(r).__name__}: {r}"))
            else:
                outcomes.append(r)
        return outcomes

    async def score_review(
        self,
        text: str,
        context: str = "",
        confidence_ceiling: Confidence = Confidence.HIGH,
    ) -> ReviewScoringOutcome:
        """
        Score one review with every judge.

        Args:
            text: Review text
            context: Context block for judges
            confidence_ceiling: Highest confidence the text quality supports

        Returns:
            ReviewScoringOutcome with an EnsembleResult or a ScoreabilityRejection
        """
        outcomes = await self._run_adapters(text, context)

        decision = resolve_scoreability(outcomes)
        if decision.is_rejected:
            return ReviewScoringOutcome(rejection=decision.rejection, adapter_outcomes=outcomes)

        result = ensemble_score(decision.scores)
        capped = cap_confidence(result.confidence, confidence_ceiling)
        if capped != result.confidence:
            note = f"Confidence capped at {capped.value} by text quality"
            if result.note:
                note = f"{result.note}; {note}"
            result = replace(result, confidence=capped, note=note)

        logger.info(
            "[scorer] SCORED bucket=%s score=%d confidence=%s source=%s agreement=%s review=%s",
            result.bucket.value, result.score, result.confidence.value,
            result.source.value, agreement_level(decision.scores), result.needs_review,
        )
        return ReviewScoringOutcome(result=result, adapter_outcomes=outcomes)

    async def score_input(self, scoring_input: ScoringInput) -> ReviewScoringOutcome:
        """Score a built ScoringInput, honoring its confidence ceiling."""
        if not scoring_input.is_scoreable:
            # Nothing to send; every judge counts as failed
            logger.warning("[scorer] NO_TEXT reason=%s", scoring_input.reasoning)
            outcomes = [AdapterOutcome.failed(a.name, "No usable text") for a in self.adapters]
            decision = resolve_scoreability(outcomes)
            return ReviewScoringOutcome(result=ensemble_score(decision.scores), adapter_outcomes=outcomes)
        return await self.score_review(
            scoring_input.text,
            scoring_input.context,
            confidence_ceiling=scoring_input.confidence,
        )

    async def score_inputs(
        self,
        inputs: Sequence[ScoringInput],
        delay_seconds: Optional[float] = None,
    ) -> List[ReviewScoringOutcome]:
        """Score reviews sequentially with a pause between them."""
        if delay_seconds is None:
            delay_seconds = get_config().review_delay
        results = []
        for i, scoring_input in enumerate(inputs):
            if i > 0 and delay_seconds > 0:
                await asyncio.sleep(delay_seconds)
            results.append(await self.score_input(scoring_input))
        return results

    def build_scoring_metadata(
        self,
        scoring_input: Optional[ScoringInput] = None,
        usage: Optional[TokenUsage] = None,
    ) -> Dict[str, Any]:
        """Metadata stored next to an EnsembleResult."""
        if usage is None:
            usage = self.get_token_usage()["total"]
        metadata: Dict[str, Any] = {
            "models": self.model_names,
            "prompt_version": self.prompt_version,
            "scored_at": datetime.now(timezone.utc).isoformat(),
            "token_usage": usage.to_dict(),
        }
        if scoring_input is not None:
            metadata["text_source"] = scoring_input.source_field
            metadata["text_quality"] = scoring_input.text_quality.value
            metadata["input_confidence"] = scoring_input.confidence.value
        return metadata


__all__ = [
    "EnsembleScorer",
    "ReviewScoringOutcome",
]
