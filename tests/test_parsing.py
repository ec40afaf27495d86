#!/usr/bin/env python3
"""
Judge Response Parsing Tests

Tiers:
------
1. Rejection detection ({"scoreable": false})
2. Strict JSON + schema validation
3. Regex recovery from malformed output

Run:
----
    pytest tests/test_parsing.py -v
"""

import pytest

from critic_scoring.buckets import Bucket
from critic_scoring.judges.parsing import (
    ResponseParseError,
    extract_from_malformed,
    load_json_object,
    parse_rejection,
    parse_response,
    strip_code_fences,
)
from critic_scoring.judges.prompts import get_prompt_version
from critic_scoring.models import Confidence, JudgeRejection, ModelScore, RejectionReason

BUCKET_FIRST = get_prompt_version("5.2.0")
SCORE_ONLY = get_prompt_version("3.0.0")


class TestJsonHelpers:

    def test_strip_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_load_object_embedded_in_prose(self):
        data = load_json_object('Here is my answer: {"bucket": "Rave", "score": 90} Thanks!')
        assert data == {"bucket": "Rave", "score": 90}

    def test_load_non_object(self):
        assert load_json_object("[1, 2, 3]") is None
        assert load_json_object("no json here") is None


class TestRejection:

    def test_json_rejection(self):
        content = '{"scoreable": false, "rejection": "wrong_show", "reasoning": "Reviews a different musical"}'
        rejection = parse_rejection(content)
        assert rejection.reason == RejectionReason.WRONG_SHOW
        assert rejection.reasoning == "Reviews a different musical"
        assert rejection.raw_reason == "wrong_show"

    def test_unknown_reason(self):
        rejection = parse_rejection('{"scoreable": false, "rejection": "spam"}')
        assert rejection.reason == RejectionReason.NOT_A_REVIEW
        assert rejection.raw_reason == "spam"

    def test_malformed_rejection(self):
        content = '{"scoreable": false, "rejection": "garbage_text", "reasoning": "binary noise"'
        rejection = parse_rejection(content)
        assert rejection.reason == RejectionReason.GARBAGE_TEXT
        assert rejection.reasoning == "binary noise"

    def test_scoreable_response_is_not_rejection(self):
        assert parse_rejection('{"scoreable": true, "bucket": "Rave", "score": 90}') is None

    def test_rejection_ignored_without_support(self):
        with pytest.raises(ResponseParseError):
            parse_response('{"scoreable": false, "rejection": "wrong_show"}', SCORE_ONLY, "claude")


class TestStructured:

    def test_bucket_first_response(self):
        content = (
            '```json\n{"bucket": "positive", "score": 92, "confidence": "HIGH", '
            '"verdict": "warm recommendation", "keyQuote": "a delight", "reasoning": "..."}\n```'
        )
        result = parse_response(content, BUCKET_FIRST, "claude")
        assert isinstance(result, ModelScore)
        assert result.bucket == Bucket.POSITIVE
        assert result.score == 84  # clamped into Positive
        assert result.confidence == Confidence.HIGH
        assert result.key_quote == "a delight"
        assert result.model == "claude"

    def test_missing_score_uses_midpoint(self):
        result = parse_response('{"bucket": "Rave"}', BUCKET_FIRST, "openai")
        assert result.bucket == Bucket.RAVE
        assert result.score == 92

    def test_unknown_bucket_falls_back_to_score(self):
        result = parse_response('{"bucket": "Great", "score": "58"}', BUCKET_FIRST, "gemini")
        assert result.bucket == Bucket.MIXED
        assert result.score == 58

    def test_unknown_confidence_defaults_to_medium(self):
        result = parse_response('{"bucket": "Pan", "score": 10, "confidence": "certain"}', BUCKET_FIRST, "m")
        assert result.confidence == Confidence.MEDIUM

    def test_score_only_schema_derives_bucket(self):
        result = parse_response('{"score": 71, "confidence": "low"}', SCORE_ONLY, "claude")
        assert result.bucket == Bucket.POSITIVE
        assert result.score == 71
        assert result.confidence == Confidence.LOW

    def test_no_bucket_no_score_raises(self):
        with pytest.raises(ResponseParseError):
            parse_response('{"verdict": "hard to say"}', BUCKET_FIRST, "claude")

    def test_empty_response_raises(self):
        with pytest.raises(ResponseParseError) as exc:
            parse_response("   ", BUCKET_FIRST, "claude")
        assert exc.value.reason == "empty_response"


class TestMalformedRecovery:

    def test_truncated_json_recovered(self):
        content = '{"bucket": "Negative", "score": 48, "reasoning": "The second act drag'
        result = parse_response(content, BUCKET_FIRST, "claude")
        assert result.bucket == Bucket.NEGATIVE
        assert result.score == 48
        assert result.confidence == Confidence.LOW
        assert result.reasoning == "Extracted from malformed response"

    def test_bucket_first_needs_bucket(self):
        assert extract_from_malformed('{"score": 48, "reason', BUCKET_FIRST, "claude") is None

    def test_score_only_needs_score(self):
        result = extract_from_malformed('{"score": 88, "reason', SCORE_ONLY, "claude")
        assert result.bucket == Bucket.RAVE

    def test_unrecoverable_reraises_strict_error(self):
        with pytest.raises(ResponseParseError) as exc:
            parse_response("I think this review is pretty positive overall.", BUCKET_FIRST, "claude")
        assert exc.value.reason == "invalid_json"

    def test_rejection_checked_before_score(self):
        content = '{"scoreable": false, "rejection": "not_a_review", "bucket": "Rave", "score": 90}'
        result = parse_response(content, BUCKET_FIRST, "claude")
        assert isinstance(result, JudgeRejection)
