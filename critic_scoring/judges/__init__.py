"""
Multi-LLM Review Judges

This package runs independent language-model judges over critic review
text and combines their opinions. Key features:

- LiteLLM unified interface for Anthropic, OpenAI, Gemini, OpenRouter
- Versioned prompt/schema strategies (bucket-first and legacy score-only)
- Tiered response parsing (rejection, strict JSON, regex recovery)
- Retry with exponential backoff on rate limits and server errors
- Scoreability quorum before voting
- Per-judge token accounting

Usage:
    from critic_scoring.judges import EnsembleScorer
    from critic_scoring.input_builder import ReviewInput, build_scoring_input

    scorer = EnsembleScorer.from_config()
    scoring_input = build_scoring_input(ReviewInput.from_dict(record))
    outcome = await scorer.score_input(scoring_input)

Modules:
    client.py       - LiteLLM async wrapper and provider availability
    prompts.py      - PromptVersion registry
    parsing.py      - Response parsing tiers
    adapter.py      - One judge with retries and token counters
    orchestrator.py - Parallel fan-out, quorum, voting, batch scoring
    config.json     - Judge roster (provider, enabled, model override)
"""

__version__ = "1.0.0"

from .orchestrator import (
    EnsembleScorer,
    ReviewScoringOutcome,
)

from .adapter import ModelAdapter

from .prompts import (
    PromptVersion,
    PROMPT_VERSIONS,
    CURRENT_PROMPT_VERSION,
    get_prompt_version,
)

from .parsing import (
    ResponseParseError,
    parse_response,
)

from .client import (
    complete,
    has_api_key,
    resolve_model,
    SUPPORTED_MODELS,
)

__all__ = [
    "EnsembleScorer",
    "ReviewScoringOutcome",
    "ModelAdapter",
    "PromptVersion",
    "PROMPT_VERSIONS",
    "CURRENT_PROMPT_VERSION",
    "get_prompt_version",
    "ResponseParseError",
    "parse_response",
    "complete",
    "has_api_key",
    "resolve_model",
    "SUPPORTED_MODELS",
]
