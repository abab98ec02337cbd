"""Drafts short admin-style replies to high-risk posts from collected evidence."""

from __future__ import annotations

import logging

from repwatch.llm import LLMClient
from repwatch.models import EvidenceResult

logger = logging.getLogger(__name__)

NO_EVIDENCE = "No evidence found from search."
_MAX_POST_CHARS = 500

_SYSTEM_PROMPT = (
    "You are a professional administrator responding to social media posts on "
    "behalf of the person/organization mentioned.\n"
    "Generate a professional admin-style response based on the evidence provided "
    "from Google AI search results.\n"
    "Write as if you are the admin/representative responding to this post.\n"
    "Use ONLY the evidence provided from the Google AI search results.\n"
    "Generate exactly 2-3 sentences (not more, not less).\n"
    "Be professional, clear, and evidence-based.\n"
    "Address the specific claim in the post directly.\n"
    "Reference specific facts from the evidence when possible.\n"
    "Make it sound like an official admin response."
)


def evidence_digest(evidence: list[EvidenceResult]) -> str:
    if not evidence:
        return NO_EVIDENCE
    return "\n\n".join(
        f"EVIDENCE {i}:\nTitle: {e.title}\nURL: {e.url}\n{e.snippet or e.text_block or ''}\n---"
        for i, e in enumerate(evidence, start=1)
    )


class ResponseDrafter:
    def __init__(self, llm: LLMClient | None) -> None:
        self._llm = llm

    @property
    def model(self) -> str | None:
        return self._llm.model if self._llm is not None else None

    @property
    def provider(self) -> str | None:
        return self._llm.provider if self._llm is not None else None

    async def draft(
        self, post_text: str, post_score: int, evidence: list[EvidenceResult]
    ) -> str | None:
        """Return a 2–3 sentence reply, or ``None`` when unavailable or empty."""
        if self._llm is None or not self._llm.available:
            logger.warning("LLM not configured, skipping admin response generation")
            return None

        user_msg = (
            f'Post text: "{post_text[:_MAX_POST_CHARS]}"\n\n'
            f"Evidence from search:\n{evidence_digest(evidence)}\n\n"
            "Generate a professional admin response to this post based on the "
            "evidence. Keep it to 2-3 sentences."
        )
        try:
            reply = (await self._llm.chat(_SYSTEM_PROMPT, user_msg, temperature=0.6, max_tokens=200)).strip()
        except Exception as exc:
            logger.error("Error generating admin response: %s", exc)
            return None

        if not reply:
            return None
        logger.info("Generated admin response for post (score: %d)", post_score)
        return reply
