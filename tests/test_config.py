#!/usr/bin/env python3
"""
Configuration and Prompt Registry Tests

Run:
----
    pytest tests/test_config.py -v
"""

import json

import pytest

from critic_scoring.config import (
    ScoringConfig,
    get_enabled_judges,
    load_judge_config,
    reload_config,
)
from critic_scoring.judges.client import has_api_key, resolve_model
from critic_scoring.judges.prompts import CURRENT_PROMPT_VERSION, get_prompt_version


class TestScoringConfig:

    def test_defaults_validate(self):
        valid, errors = ScoringConfig().validate()
        assert valid
        assert errors == []

    def test_invalid_values(self):
        config = ScoringConfig(max_retries=0, review_delay=-1, prompt_version="0.0.1")
        valid, errors = config.validate()
        assert not valid
        assert len(errors) == 3

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCORING_MAX_RETRIES", "5")
        monkeypatch.setenv("SCORING_REVIEW_DELAY", "0")
        monkeypatch.setenv("SCORING_PROMPT_VERSION", "3.0.0")
        config = reload_config()
        assert config.max_retries == 5
        assert config.review_delay == 0.0
        assert config.prompt_version == "3.0.0"
        monkeypatch.undo()
        reload_config()


class TestJudgeRoster:

    def test_bundled_config(self):
        config = load_judge_config()
        names = [j["name"] for j in config["judges"]]
        assert names[:3] == ["claude", "openai", "gemini"]

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_judge_config(tmp_path / "missing.json")
        assert len(config["judges"]) == 4

    def test_custom_file(self, tmp_path):
        path = tmp_path / "judges.json"
        path.write_text(json.dumps({"judges": [{"name": "solo", "provider": "openai", "enabled": True}]}))
        assert load_judge_config(path)["judges"][0]["name"] == "solo"

    def test_enabled_judges_need_keys(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        config = {
            "judges": [
                {"name": "claude", "provider": "anthropic", "enabled": True},
                {"name": "gemini", "provider": "gemini", "enabled": True},
                {"name": "gemini-off", "provider": "gemini", "enabled": False},
            ],
        }
        assert [j["name"] for j in get_enabled_judges(config)] == ["gemini"]


class TestProviders:

    def test_blank_key_is_not_available(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")
        assert not has_api_key("openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert has_api_key("openai")

    def test_unknown_provider_has_no_key(self):
        assert not has_api_key("mistral")
        assert not has_api_key(None)

    def test_resolve_model(self):
        assert resolve_model("openrouter") == "openrouter/moonshotai/kimi-k2"
        assert resolve_model("openai", "gpt-5") == "gpt-5"
        assert resolve_model("mistral", "mistral/mistral-large") == "mistral/mistral-large"
        with pytest.raises(ValueError):
            resolve_model("mistral")


class TestPrompts:

    def test_current_version(self):
        prompt = get_prompt_version()
        assert prompt.version == CURRENT_PROMPT_VERSION
        assert prompt.bucket_first
        assert prompt.supports_rejection

    def test_messages_carry_text_and_context(self):
        messages = get_prompt_version().build_messages("The best show of the year.", "Show: Hamlet")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "The best show of the year." in messages[1]["content"]
        assert "Show: Hamlet" in messages[1]["content"]

    def test_system_prompt_lists_buckets(self):
        system = get_prompt_version().system_prompt
        for bucket in ("Rave", "Positive", "Mixed", "Negative", "Pan"):
            assert bucket in system

    def test_unknown_version(self):
        with pytest.raises(ValueError):
            get_prompt_version("1.0.0")
