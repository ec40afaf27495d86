"""
Versioned Prompt Strategies

Each prompt generation is a PromptVersion: the system/user text plus the
response schema it asks for. Adapters are parameterized with one version,
so older score-only schemas and the current bucket-first schema share the
same adapter and parser code.

Usage:
    from critic_scoring.judges.prompts import get_prompt_version

    prompt = get_prompt_version("5.2.0")
    messages = prompt.build_messages(review_text, context)
"""

from dataclasses import dataclass
from typing import Dict, List

from critic_scoring.buckets import BUCKET_ORDER, BUCKET_RANGES
from critic_scoring.models import RejectionReason

CURRENT_PROMPT_VERSION = "5.2.0"


@dataclass(frozen=True)
class PromptVersion:
    """One prompt/schema generation."""
    version: str
    system_prompt: str
    user_template: str               # Placeholders: {context}, {review_text}
    bucket_first: bool = True        # False: response carries only a score
    supports_rejection: bool = True  # Response may be {"scoreable": false, ...}

    def build_user_prompt(self, text: str, context: str = "") -> str:
        context_block = f"{context.strip()}\n\n" if context and context.strip() else ""
        return self.user_template.format(context=context_block, review_text=text)

    def build_messages(self, text: str, context: str = "") -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.build_user_prompt(text, context)},
        ]


# ============================================================================
# Prompt Text
# ============================================================================

def _bucket_table() -> str:
    rows = ["| Bucket | Score Range |", "|--------|-------------|"]
    for bucket in BUCKET_ORDER:
        rng = BUCKET_RANGES[bucket]
        rows.append(f"| {bucket.value} | {rng.min}-{rng.max} |")
    return "\n".join(rows)


def _rejection_list() -> str:
    descriptions = {
        RejectionReason.WRONG_SHOW: "text is about a different show or topic",
        RejectionReason.WRONG_PRODUCTION: "reviews a different production (tour, off-Broadway, earlier run)",
        RejectionReason.NOT_A_REVIEW: "press release, plot summary, listing, or promotion with no evaluation",
        RejectionReason.GARBAGE_TEXT: "navigation, error page, paywall, or other non-article content",
    }
    return "\n".join(f"- {reason.value}: {descriptions[reason]}" for reason in RejectionReason)


_BUCKET_FIRST_SYSTEM = f"""You score theater critic reviews by how strongly the critic recommends seeing the show.

## Step 0: Scoreability
If the text cannot be scored, respond with ONLY:
{{"scoreable": false, "rejection": "<reason>", "reasoning": "<one sentence>"}}

Reasons:
{_rejection_list()}

Truncated text, excerpts, and multi-show roundups are still scoreable; lower your confidence instead.

## Step 1: Choose the bucket
Rave (must-see), Positive (recommends), Mixed (neither), Negative (does not recommend), Pan (strongly negative).
Judge the final verdict, not the opening setup.

## Step 2: Score within the bucket
{_bucket_table()}

Use the whole range of the bucket; do not default to its midpoint.

## Output
Respond with ONLY this JSON:
{{"scoreable": true, "bucket": "<bucket>", "score": <int>, "confidence": "high|medium|low", "verdict": "<short phrase>", "keyQuote": "<quote from the text>", "reasoning": "<one or two sentences>"}}"""

_BUCKET_FIRST_USER = """Score this review.

{context}## Review Text
{review_text}"""


_SCORE_ONLY_SYSTEM = """You score theater critic reviews from 0 (strongly discourages) to 100 (must-see).

Respond with ONLY this JSON:
{"score": <int 0-100>, "confidence": "high|medium|low", "verdict": "<short phrase>", "keyQuote": "<quote>", "reasoning": "<one or two sentences>"}"""

_SCORE_ONLY_USER = """{context}Review:
{review_text}"""


# ============================================================================
# Registry
# ============================================================================

PROMPT_VERSIONS: Dict[str, PromptVersion] = {
    "5.2.0": PromptVersion(
        version="5.2.0",
        system_prompt=_BUCKET_FIRST_SYSTEM,
        user_template=_BUCKET_FIRST_USER,
        bucket_first=True,
        supports_rejection=True,
    ),
    "3.0.0": PromptVersion(
        version="3.0.0",
        system_prompt=_SCORE_ONLY_SYSTEM,
        user_template=_SCORE_ONLY_USER,
        bucket_first=False,
        supports_rejection=False,
    ),
}


def get_prompt_version(version: str = CURRENT_PROMPT_VERSION) -> PromptVersion:
    """
    Look up a prompt generation by version id.

    Raises:
        ValueError: If the version is not registered
    """
    prompt = PROMPT_VERSIONS.get(version)
    if prompt is None:
        raise ValueError(f"Unknown prompt version: {version}. "
                        f"Known: {sorted(PROMPT_VERSIONS)}")
    return prompt


__all__ = [
    "PromptVersion",
    "PROMPT_VERSIONS",
    "CURRENT_PROMPT_VERSION",
    "get_prompt_version",
]
