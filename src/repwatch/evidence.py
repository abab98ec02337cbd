"""Evidence collection from SerpAPI's Google AI Mode for high-risk posts."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from repwatch.models import EvidenceResult

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://serpapi.com/search.json"
_MAX_QUERY_CHARS = 200
_MAX_TEXT_BLOCKS = 3
_MAX_REFERENCES = 5

EVIDENCE_SOURCE = "serpapi_google_ai"


def parse_evidence(data: dict[str, Any], query: str) -> list[EvidenceResult]:
    """AI paragraph blocks first, then linked references, in upstream order."""
    evidence: list[EvidenceResult] = []
    search_url = f"https://www.google.com/search?q={quote(query, safe='')}"

    for block in (data.get("text_blocks") or [])[:_MAX_TEXT_BLOCKS]:
        if not isinstance(block, dict):
            continue
        snippet = block.get("snippet")
        if block.get("type") == "paragraph" and snippet:
            evidence.append(
                EvidenceResult(
                    title=f"AI Summary: {snippet[:100]}",
                    url=search_url,
                    snippet=snippet,
                    text_block=snippet,
                )
            )

    for ref in (data.get("references") or [])[:_MAX_REFERENCES]:
        if not isinstance(ref, dict) or not ref.get("link"):
            continue
        evidence.append(
            EvidenceResult(
                title=ref.get("title") or ref.get("source") or "Reference",
                url=ref["link"],
                snippet=ref.get("snippet"),
            )
        )
    return evidence


class EvidenceCollector:
    """Never raises: missing key, HTTP errors and bad payloads all give ``[]``."""

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

    async def collect(self, post_text: str) -> list[EvidenceResult]:
        if not self._api_key:
            logger.warning("SERPAPI_KEY not configured, skipping evidence collection")
            return []

        query = post_text[:_MAX_QUERY_CHARS].strip()
        params = {"engine": "google_ai_mode", "q": query, "api_key": self._api_key}
        try:
            if self._http is not None:
                resp = await self._http.get(_SEARCH_URL, params=params)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(_SEARCH_URL, params=params)

            if resp.status_code != 200:
                logger.warning("SerpAPI HTTP %d for evidence collection", resp.status_code)
                return []
            evidence = parse_evidence(resp.json(), query)
        except Exception as exc:
            logger.error("Error collecting evidence: %s", exc)
            return []

        logger.info("Collected %d evidence items for post", len(evidence))
        return evidence
