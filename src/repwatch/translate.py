"""Translate post text to English."""

from __future__ import annotations

import logging

from repwatch.llm import LLMClient

logger = logging.getLogger(__name__)

_MAX_CHARS = 1000

_SYSTEM_PROMPT = (
    "You are a translation assistant. Translate the given text to English.\n"
    "If the text is already in English, return it as-is.\n"
    "If the text is in another language, translate it to clear, natural English.\n"
    "Preserve the tone and style of the original text.\n"
    "Return ONLY the translated text, nothing else."
)


class Translator:
    def __init__(self, llm: LLMClient | None) -> None:
        self._llm = llm

    async def translate(self, text: str) -> str | None:
        if self._llm is None or not self._llm.available:
            logger.warning("LLM not configured, skipping translation")
            return None

        user_msg = f'Translate this text to English:\n\n"{text[:_MAX_CHARS]}"'
        try:
            translated = (await self._llm.chat(_SYSTEM_PROMPT, user_msg, temperature=0.3, max_tokens=500)).strip()
        except Exception as exc:
            logger.error("Translation error: %s", exc)
            return None

        if not translated:
            logger.warning("Translation returned empty response")
            return None
        return translated
