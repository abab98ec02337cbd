"""LLM-backed risk scoring on a 1 (very positive) to 10 (very negative) scale."""

from __future__ import annotations

import logging
import re

from repwatch.llm import LLMClient
from repwatch.models import Sentiment

logger = logging.getLogger(__name__)

FALLBACK_SCORE = 5
MIN_SCORE = 1
MAX_SCORE = 10

_MAX_CONTENT_CHARS = 1000
_SCORE_RE = re.compile(r"\b([1-9]|10)\b")

_SYSTEM_PROMPT = (
    "You are a sentiment analysis expert. Analyze social media posts and score "
    "them from 1 to 10 where:\n"
    "- Score 1-3: Very positive, supportive, appreciative, praising, expressing love/joy\n"
    "- Score 4-5: Neutral or slightly positive/negative, balanced, factual\n"
    "- Score 6-7: Moderately negative, critical, concerned, disappointed\n"
    "- Score 8-10: Very negative, hateful, blaming, attacking, extreme criticism, accusations\n\n"
    "Consider the overall sentiment, the intensity of emotion, the presence of "
    "hatred, blame or extreme criticism, and the tone and language used.\n\n"
    "Respond with ONLY a single integer from 1 to 10, nothing else."
)


def score_to_sentiment(score: int) -> Sentiment:
    if score <= 3:
        return "positive"
    if score >= 8:
        return "negative"
    return "neutral"


def parse_score(raw: str) -> int | None:
    """Pull the first 1–10 integer out of a free-text reply."""
    match = _SCORE_RE.search(raw or "")
    if not match:
        return None
    return max(MIN_SCORE, min(MAX_SCORE, int(match.group(1))))


class Scorer:
    def __init__(self, llm: LLMClient | None) -> None:
        self._llm = llm

    async def score(self, content: str, platform: str) -> int:
        """Score *content*; any failure yields :data:`FALLBACK_SCORE`."""
        if self._llm is None or not self._llm.available:
            logger.debug("LLM not configured, using fallback score")
            return FALLBACK_SCORE

        user_msg = (
            f"Analyze this {platform} post and assign a score from 1-10 "
            f"(1=positive, 10=negative):\n\n"
            f'"{content[:_MAX_CONTENT_CHARS]}"\n\n'
            "Respond with only the integer score (1-10):"
        )
        try:
            raw = (await self._llm.chat(_SYSTEM_PROMPT, user_msg, temperature=0.3, max_tokens=10)).strip()
        except Exception as exc:
            logger.error("Error scoring post with LLM: %s", exc)
            return FALLBACK_SCORE

        if not raw:
            logger.warning("LLM returned empty response, using fallback score")
            return FALLBACK_SCORE

        score = parse_score(raw)
        if score is None:
            logger.warning("Could not parse score from LLM response %r, using fallback", raw)
            return FALLBACK_SCORE
        return score
