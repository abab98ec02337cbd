"""Thin async chat-completion client shared by the scorer, drafter and translator."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class LLMClient:
    """Provider-agnostic chat wrapper. Ships with OpenAI; easily swappable.

    With no API key the client stays unavailable and callers fall back to
    their own deterministic defaults.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", provider: str = "openai") -> None:
        self._provider = provider.lower()
        self._model = model
        self._client: Any = None

        if not api_key:
            logger.warning("OPENAI_API_KEY not set — LLM features will use fallbacks.")
            return

        if self._provider == "openai":
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=api_key)
        else:
            logger.warning("Unknown LLM provider '%s'; LLM features disabled.", provider)

    @property
    def available(self) -> bool:
        return self._client is not None

    @property
    def model(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return self._provider

    async def aclose(self) -> None:
        """Release the underlying HTTP connections; safe to call twice."""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.close()

    async def chat(
        self,
        system: str,
        user: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 512,
    ) -> str:
        """Send one system+user exchange and return the reply text ("" if none)."""
        if self._client is None:
            raise RuntimeError("LLM client is not configured")

        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""
