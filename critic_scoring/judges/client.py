"""
Unified LLM Client using LiteLLM

Provides async multi-provider chat completion for review judges.
Supports Anthropic, OpenAI, Gemini, and OpenRouter-hosted models through a
unified interface, and reports token usage alongside the response text.

Usage:
    from critic_scoring.judges.client import complete, has_api_key

    result = await complete(
        model="claude-sonnet-4-5",
        messages=[{"role": "user", "content": "Score this review..."}],
    )
    print(result.content, result.input_tokens, result.output_tokens)

    # Skip judges whose provider has no key configured
    if has_api_key("anthropic"):
        ...
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import litellm
from litellm import acompletion

# Suppress LiteLLM's verbose logging
litellm.suppress_debug_info = True

# Drop unsupported params for models with restrictions (e.g., gpt-5 only supports temp=1)
litellm.drop_params = True


# ============================================================================
# Model Configuration
# ============================================================================

SUPPORTED_MODELS: Dict[str, str] = {
    "anthropic": "claude-sonnet-4-5",
    "openai": "gpt-5-mini",
    "gemini": "gemini/gemini-2.5-flash",
    "openrouter": "openrouter/moonshotai/kimi-k2",
}

# Environment variable names for API keys
API_KEY_ENV_VARS: Dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


@dataclass(frozen=True)
class CompletionResult:
    """Raw text of one completion plus its token usage."""
    content: str
    input_tokens: int = 0
    output_tokens: int = 0


# ============================================================================
# Provider Availability
# ============================================================================

def has_api_key(provider: Optional[str]) -> bool:
    """True when the provider's key variable is set to a non-blank value."""
    env_var = API_KEY_ENV_VARS.get(provider or "")
    return bool(env_var and os.getenv(env_var, "").strip())


def resolve_model(provider: Optional[str], model: Optional[str] = None) -> str:
    """
    LiteLLM model identifier for a judge.

    An explicit model wins; otherwise the provider default is used.

    Raises:
        ValueError: If no model is given and the provider has no default
    """
    if model:
        return model
    default = SUPPORTED_MODELS.get(provider or "")
    if default is None:
        raise ValueError(f"No default model for provider {provider!r}; set 'model' on the judge")
    return default


# ============================================================================
# Error Inspection
# ============================================================================

def get_status_code(error: BaseException) -> Optional[int]:
    """
    HTTP status code carried by a provider exception, if any.

    LiteLLM exceptions expose ``status_code``; some wrapped errors only carry
    it on an attached ``response``.
    """
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


# ============================================================================
# LLM API Calls
# ============================================================================

def _usage_value(usage: Any, name: str) -> int:
    if usage is None:
        return 0
    value = usage.get(name) if isinstance(usage, dict) else getattr(usage, name, None)
    return int(value or 0)


async def complete(
    model: str,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
    max_tokens: int = 1024,
    timeout: float = 60.0,
) -> CompletionResult:
    """
    Run one chat completion via LiteLLM.

    Args:
        model: LiteLLM model identifier
        messages: Chat messages (system + user)
        temperature: Sampling temperature
        max_tokens: Completion token limit
        timeout: Request timeout in seconds

    Returns:
        CompletionResult with the response text and token usage

    Raises:
        Exception: Provider errors propagate unchanged (callers inspect
            get_status_code to decide on retries)
    """
    response = await acompletion(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
    )

    content = response.choices[0].message.content or ""
    usage = getattr(response, "usage", None)

    return CompletionResult(
        content=content,
        input_tokens=_usage_value(usage, "prompt_tokens"),
        output_tokens=_usage_value(usage, "completion_tokens"),
    )


# ============================================================================
# Exports
# ============================================================================

__all__ = [
    "complete",
    "CompletionResult",
    "has_api_key",
    "resolve_model",
    "get_status_code",
    "SUPPORTED_MODELS",
    "API_KEY_ENV_VARS",
]
