"""
Scoring Configuration

Loads configuration from environment variables and provides defaults.
A single .env file at the project root is loaded with python-dotenv.
The judge roster lives in judges/config.json.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

DEFAULT_JUDGE_CONFIG_PATH = Path(__file__).parent / "judges" / "config.json"


@dataclass
class ScoringConfig:
    """Scoring pipeline configuration."""

    # Prompt/schema generation every adapter is built with
    prompt_version: str = "5.2.0"

    # Adapter behaviour
    max_retries: int = 3
    temperature: float = 0.3
    max_tokens: int = 1024
    timeout: float = 60.0
    max_backoff: float = 30.0       # Seconds, caps exponential backoff

    # Seconds between reviews in a sequential batch
    review_delay: float = 1.0

    # Judge roster
    judge_config_path: Path = DEFAULT_JUDGE_CONFIG_PATH

    @classmethod
    def from_env(cls) -> "ScoringConfig":
        """Load configuration from environment variables."""
        judge_path = os.getenv("SCORING_JUDGE_CONFIG")
        return cls(
            prompt_version=os.getenv("SCORING_PROMPT_VERSION", "5.2.0"),
            max_retries=int(os.getenv("SCORING_MAX_RETRIES", "3")),
            temperature=float(os.getenv("SCORING_TEMPERATURE", "0.3")),
            max_tokens=int(os.getenv("SCORING_MAX_TOKENS", "1024")),
            timeout=float(os.getenv("SCORING_TIMEOUT", "60")),
            max_backoff=float(os.getenv("SCORING_MAX_BACKOFF", "30")),
            review_delay=float(os.getenv("SCORING_REVIEW_DELAY", "1.0")),
            judge_config_path=Path(judge_path) if judge_path else DEFAULT_JUDGE_CONFIG_PATH,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.max_retries < 1:
            errors.append(f"max_retries must be >= 1, got {self.max_retries}")

        if self.review_delay < 0:
            errors.append(f"review_delay must be >= 0, got {self.review_delay}")

        if self.max_backoff <= 0:
            errors.append(f"max_backoff must be > 0, got {self.max_backoff}")

        # judges package imports this module
        from critic_scoring.judges.prompts import PROMPT_VERSIONS
        if self.prompt_version not in PROMPT_VERSIONS:
            errors.append(
                f"Unknown prompt version: {self.prompt_version}. "
                f"Known: {sorted(PROMPT_VERSIONS)}"
            )

        return len(errors) == 0, errors


# Global config instance
_config: Optional[ScoringConfig] = None


def get_config() -> ScoringConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ScoringConfig.from_env()
    return _config


def reload_config() -> ScoringConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()


# ============================================================================
# Judge Roster
# ============================================================================

def load_judge_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load judge configuration from config.json.

    Args:
        config_path: Path to config.json (defaults to judges/config.json)

    Returns:
        Configuration dict
    """
    if config_path is None:
        config_path = DEFAULT_JUDGE_CONFIG_PATH

    if not config_path.exists():
        # Return defaults if config doesn't exist
        return {
            "judges": [
                {"name": "claude", "provider": "anthropic", "enabled": True},
                {"name": "openai", "provider": "openai", "enabled": True},
                {"name": "gemini", "provider": "gemini", "enabled": True},
                {"name": "kimi", "provider": "openrouter", "enabled": False},
            ],
        }

    with open(config_path) as f:
        return json.load(f)


def get_enabled_judges(config: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Get list of enabled judges that have valid API keys.

    Args:
        config: Judge configuration

    Returns:
        List of enabled judge configs with available API keys
    """
    from critic_scoring.judges.client import has_api_key

    enabled = []
    for judge in config.get("judges", []):
        if judge.get("enabled", False):
            if has_api_key(judge.get("provider")):
                enabled.append(judge)
    return enabled
