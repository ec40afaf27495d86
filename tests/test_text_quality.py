#!/usr/bin/env python3
"""
Text Quality Assessment Tests

Run:
----
    pytest tests/test_text_quality.py -v
"""

from critic_scoring.outlets import get_outlet_tier, tier_name
from critic_scoring.text_quality import (
    TextStatus,
    assess_full_text,
    clean_text,
    has_verdict,
)

COMPLETE = (
    "The production is a triumph from start to finish, and the cast sings "
    "beautifully under a clear-eyed director. Highly recommended for all."
)


class TestAssessFullText:

    def test_complete(self):
        assessment = assess_full_text(COMPLETE)
        assert assessment.status == TextStatus.COMPLETE

    def test_too_short(self):
        assert assess_full_text("Great show.").status is None
        assert assess_full_text(None).status is None

    def test_paywall_truncation(self):
        text = (
            "The revival opens with a thrilling overture and a cast that clearly "
            "loves the material. Subscribe to continue reading."
        )
        assessment = assess_full_text(text)
        assert assessment.status == TextStatus.TRUNCATED
        assert "paywall" in assessment.signals

    def test_mid_sentence_truncation(self):
        text = (
            "The revival opens with a thrilling overture and a cast that clearly "
            "loves the material, and"
        )
        assessment = assess_full_text(text)
        assert assessment.status == TextStatus.TRUNCATED
        assert "mid-sentence-ending" in assessment.signals

    def test_corruption_needs_two_signals(self):
        text = (
            "Manage cookie settings here. Follow us on Instagram. Comment (12). "
            "The show is a triumph and everyone should see it."
        )
        assessment = assess_full_text(text)
        assert assessment.status == TextStatus.CORRUPTED
        assert len(assessment.signals) >= 2

    def test_single_artifact_tolerated(self):
        text = "Follow us on Instagram. " + COMPLETE
        assert assess_full_text(text).status == TextStatus.COMPLETE


class TestHelpers:

    def test_clean_text_strips_masthead_and_whitespace(self):
        cleaned = clean_text("Democracy Dies in Darkness   The show   is a triumph.")
        assert cleaned == "The show is a triumph."

    def test_clean_text_drops_trailing_furniture(self):
        cleaned = clean_text("A lovely evening.\nRunning time: 2 hours 30 minutes.")
        assert cleaned == "A lovely evening."

    def test_has_verdict(self):
        assert has_verdict("In short, a must-see.")
        assert has_verdict("I give it 4 out of 5 stars")
        assert not has_verdict("The curtain rose at eight.")

    def test_outlet_tiers(self):
        assert get_outlet_tier("nyt") == 1
        assert get_outlet_tier("NYP") == 2
        assert get_outlet_tier("SOMEBLOG") == 3
        assert get_outlet_tier(None) == 3
        assert tier_name(1).startswith("Tier 1")
