"""Present stored evidence for a post as reviewable fact-check claims.

No model is involved: each evidence row becomes one ``unverified`` claim
whose confidence reflects how much supporting text and linkage it carries.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import Literal

from pydantic import BaseModel, Field

from repwatch.models import EvidenceRow
from repwatch.store import PostStore

logger = logging.getLogger(__name__)

_AI_PREFIX_RE = re.compile(r"^AI Summary:\s*", re.IGNORECASE)
_MAX_CLAIM_CHARS = 500

Verdict = Literal["true", "false", "misleading", "unverified"]
Confidence = Literal["high", "medium", "low"]


class EvidenceItem(BaseModel):
    title: str | None = None
    url: str | None = None
    snippet: str | None = None


class FactCheckClaim(BaseModel):
    id: str
    text: str
    verdict: Verdict = "unverified"
    confidence: Confidence = "low"
    correct_data: str | None = None
    sources: list[str] = Field(default_factory=list)
    explanation: str = ""
    evidence_item: EvidenceItem | None = None


class FactCheckResult(BaseModel):
    claims: list[FactCheckClaim] = Field(default_factory=list)
    has_evidence: bool = False


def _confidence(snippet: str | None, url: str | None) -> Confidence:
    if snippet and len(snippet) > 150 and url:
        return "high"
    if snippet and len(snippet) > 50:
        return "medium"
    return "low"


def evidence_to_claims(evidence: list[EvidenceRow], post_content: str) -> list[FactCheckClaim]:
    if not evidence:
        return [
            FactCheckClaim(
                id="claim-1",
                text=post_content[:_MAX_CLAIM_CHARS],
                explanation=(
                    "No evidence available for fact-checking. Evidence is only "
                    "collected for high-risk posts (score >= 8)."
                ),
            )
        ]

    claims: list[FactCheckClaim] = []
    for index, ev in enumerate(evidence, start=1):
        extra = ev.evidence_data or {}
        snippet = ev.snippet or extra.get("text_block") or extra.get("snippet")
        url = ev.url or extra.get("url")
        title = ev.title or extra.get("title")
        origin = ev.source or "Google AI Mode"

        if title:
            text = _AI_PREFIX_RE.sub("", title)
        else:
            text = snippet or f"Evidence {index}: Related Information"

        sources: list[str] = []
        if url:
            sources.append(url)
        if title and title not in sources:
            sources.append(title)

        if snippet:
            explanation = snippet
        elif title:
            explanation = f"Evidence collected from {origin}: {title}"
        else:
            explanation = f"Evidence collected from {origin}."

        claims.append(
            FactCheckClaim(
                id=f"claim-{index}",
                text=text,
                confidence=_confidence(snippet, url),
                correct_data=snippet,
                sources=sources or ["Unknown source"],
                explanation=explanation,
                evidence_item=EvidenceItem(title=title, url=url, snippet=snippet),
            )
        )
    return claims


def fact_check_post(store: PostStore, post_id: str, post_content: str) -> FactCheckResult:
    try:
        evidence = store.get_evidence(post_id)
    except sqlite3.Error as exc:
        logger.error("Error fact-checking post %s: %s", post_id, exc)
        return FactCheckResult()
    return FactCheckResult(
        claims=evidence_to_claims(evidence, post_content),
        has_evidence=bool(evidence),
    )
