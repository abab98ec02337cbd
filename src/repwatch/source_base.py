"""Shared plumbing for the per-platform source adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from repwatch.models import Platform, Post

logger = logging.getLogger(__name__)

# Placeholder values carried until the scorer overwrites them.
PLACEHOLDER_SCORE = 5
PLACEHOLDER_SENTIMENT = "neutral"


class SourceAdapter(ABC):
    """Base class: one upstream API in, a list of canonical posts out.

    ``fetch`` never raises for missing credentials, HTTP errors or malformed
    payloads; those all yield ``[]`` and a warning.
    """

    name: str = "Source"
    platform: Platform
    max_items: int = 20

    def __init__(
        self,
        api_key: str,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._http = http
        self._timeout = timeout

    # ── public ──────────────────────────────────────────────────────────

    async def fetch(self, keyword: str) -> list[Post]:
        if not self._api_key:
            logger.warning("%s: API key not configured", self.name)
            return []
        try:
            posts = await self._fetch(keyword)
        except Exception as exc:
            logger.warning("%s fetch error for %s: %s", self.name, keyword, exc)
            return []
        logger.info("%s final count: %d posts for keyword: %s", self.name, len(posts), keyword)
        return posts

    # ── private ─────────────────────────────────────────────────────────

    @abstractmethod
    async def _fetch(self, keyword: str) -> list[Post]:
        """Query the upstream API and map its payload to posts."""

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET *url*; return decoded JSON, or ``None`` on a non-200 status."""
        if self._http is not None:
            resp = await self._http.get(url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url, params=params, headers=headers)

        if resp.status_code != 200:
            logger.warning(
                "%s HTTP %d: %s", self.name, resp.status_code, resp.text[:200]
            )
            return None
        return resp.json()
