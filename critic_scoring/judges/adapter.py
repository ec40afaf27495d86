"""
Model Adapter

One judge: a LiteLLM model plus a prompt version. ``score`` runs the
completion with retry/backoff, parses the response, and always returns an
AdapterOutcome (score, rejection, or error). Provider and parse failures
never raise out of ``score``.

Retry policy:
- HTTP 429: wait 2^attempt seconds (capped)
- HTTP 5xx: wait 2^attempt * 0.5 seconds (capped)
- Unparseable response: retry immediately
- Anything else: abort

Usage:
    adapter = ModelAdapter(name="claude", model="claude-sonnet-4-5")
    outcome = await adapter.score(review_text, context)
    usage = adapter.get_token_usage()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from critic_scoring.config import ScoringConfig
from critic_scoring.judges.client import complete, get_status_code, resolve_model
from critic_scoring.judges.parsing import ResponseParseError, parse_response
from critic_scoring.judges.prompts import PromptVersion, get_prompt_version
from critic_scoring.models import AdapterOutcome, JudgeRejection, TokenUsage

logger = logging.getLogger(__name__)

CompletionFn = Callable[..., Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[Any]]


class ModelAdapter:
    """Scores review text with one judge model."""

    def __init__(
        self,
        name: str,
        model: str,
        prompt: Union[PromptVersion, str, None] = None,
        max_retries: int = 3,
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        max_backoff: float = 30.0,
        completion_fn: Optional[CompletionFn] = None,
        sleep_fn: Optional[SleepFn] = None,
    ):
        """
        Args:
            name: Judge identifier used in results (e.g., "claude")
            model: LiteLLM model identifier
            prompt: PromptVersion or version id (defaults to current)
            max_retries: Total attempts per call
            completion_fn: Replacement for client.complete (same signature)
            sleep_fn: Replacement for asyncio.sleep

        Raises:
            ValueError: If max_retries < 1 or the prompt version is unknown
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        if prompt is None or isinstance(prompt, str):
            prompt = get_prompt_version(prompt) if prompt else get_prompt_version()

        self.name = name
        self.model = model
        self.prompt = prompt
        self.max_retries = max_retries
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_backoff = max_backoff
        self._complete = completion_fn or complete
        self._sleep = sleep_fn or asyncio.sleep
        self._usage = TokenUsage()

    @classmethod
    def from_judge_config(
        cls,
        judge: Dict[str, Any],
        config: ScoringConfig,
        **kwargs,
    ) -> "ModelAdapter":
        """Build an adapter from a judges/config.json entry."""
        provider = judge.get("provider")
        return cls(
            name=judge.get("name") or provider,
            model=resolve_model(provider, judge.get("model")),
            prompt=config.prompt_version,
            max_retries=judge.get("max_retries", config.max_retries),
            temperature=judge.get("temperature", config.temperature),
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            max_backoff=config.max_backoff,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Token accounting
    # ------------------------------------------------------------------

    def get_token_usage(self) -> TokenUsage:
        return TokenUsage(self._usage.input, self._usage.output)

    def reset_token_usage(self) -> None:
        self._usage = TokenUsage()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def backoff_seconds(self, status: Optional[int], attempt: int) -> Optional[float]:
        """Seconds to wait before retrying, or None if the error is not retryable."""
        if status == 429:
            return min(2.0 ** attempt, self.max_backoff)
        if status is not None and 500 <= status < 600:
            return min(2.0 ** attempt * 0.5, self.max_backoff)
        return None

    async def score(self, text: str, context: str = "") -> AdapterOutcome:
        """
        Score one review.

        Args:
            text: Review text
            context: Optional context block (quality warnings, outlet tier, ...)

        Returns:
            AdapterOutcome with a ModelScore, a JudgeRejection, or an error
        """
        messages = self.prompt.build_messages(text, context)
        input_tokens = output_tokens = 0
        last_error = "No attempts made"
        attempts = 0

        for attempt in range(1, self.max_retries + 1):
            attempts = attempt
            try:
                result = await self._complete(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                )
            except Exception as e:
                status = get_status_code(e)
                last_error = f"{type(e).__name__}: {e}"
                wait = self.backoff_seconds(status, attempt)
                if wait is None:
                    logger.warning(
                        "[adapter] NON_RETRYABLE model=%s status=%s error=%s",
                        self.name, status, last_error,
                    )
                    break
                if attempt < self.max_retries:
                    logger.info(
                        "[adapter] RETRY model=%s status=%s attempt=%d/%d wait=%.1fs",
                        self.name, status, attempt, self.max_retries, wait,
                    )
                    await self._sleep(wait)
                continue

            input_tokens += result.input_tokens
            output_tokens += result.output_tokens
            self._usage.add(result.input_tokens, result.output_tokens)

            try:
                parsed = parse_response(result.content, self.prompt, self.name)
            except ResponseParseError as e:
                last_error = f"Parse failure: {e.reason}"
                logger.warning(
                    "[adapter] PARSE_FAILED model=%s attempt=%d/%d reason=%s",
                    self.name, attempt, self.max_retries, e.reason,
                )
                continue

            if isinstance(parsed, JudgeRejection):
                logger.info(
                    "[adapter] REJECTED model=%s reason=%s",
                    self.name, parsed.reason.value,
                )
                return AdapterOutcome.rejected(
                    self.name, parsed,
                    input_tokens=input_tokens, output_tokens=output_tokens, attempts=attempts,
                )
            return AdapterOutcome.success(
                self.name, parsed,
                input_tokens=input_tokens, output_tokens=output_tokens, attempts=attempts,
            )

        logger.warning("[adapter] FAILED model=%s attempts=%d error=%s", self.name, attempts, last_error)
        return AdapterOutcome.failed(
            self.name, last_error,
            input_tokens=input_tokens, output_tokens=output_tokens, attempts=attempts,
        )

    def __repr__(self) -> str:
        return f"ModelAdapter(name={self.name!r}, model={self.model!r}, prompt={self.prompt.version!r})"


__all__ = ["ModelAdapter"]
