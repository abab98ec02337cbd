"""Pipeline orchestration — wires fetch → score → store → evidence/response."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from repwatch import config
from repwatch.evidence import EVIDENCE_SOURCE, EvidenceCollector
from repwatch.extract import resolve_timestamp
from repwatch.facebook_client import FacebookClient
from repwatch.llm import LLMClient
from repwatch.models import (
    AdminResponseRow,
    EntityRow,
    EvidenceResult,
    EvidenceRow,
    MediaRow,
    Post,
    PostRow,
    SearchResult,
)
from repwatch.news_client import NewsClient
from repwatch.reddit_client import RedditClient
from repwatch.responder import ResponseDrafter
from repwatch.scoring import Scorer, score_to_sentiment
from repwatch.source_base import SourceAdapter
from repwatch.store import PostStore
from repwatch.twitter_client import TwitterClient

logger = logging.getLogger(__name__)

_MEDIA_ROW_TYPES = {"image": "photo", "video": "video", "gif": "gif"}
_ROW_METADATA = set(PostRow.model_fields)


@dataclass
class HighRiskItem:
    """One high-risk post and everything gathered for it during enrichment."""

    post: Post
    score: int
    evidence: list[EvidenceResult] = field(default_factory=list)
    response: str | None = None


def to_post_row(post: Post, now: datetime | None = None) -> PostRow:
    """Flatten a scored post for storage; unparsable timestamps become *now*."""
    created = resolve_timestamp(post.timestamp, now or datetime.now(UTC))
    known = {k: v for k, v in post.metadata.items() if k in _ROW_METADATA and v is not None}
    extra = {k: v for k, v in post.metadata.items() if k not in _ROW_METADATA and v is not None}
    fields = {
        "user_verified": "Verified" in post.badges or None,
        **known,
        "id": post.id,
        "platform": post.platform,
        "entity": post.entity,
        "full_text": post.content,
        "created_at": created.astimezone(UTC).isoformat(),
        "user_name": post.author,
        "user_screen_name": post.handle.replace("@", ""),
        "platform_data": extra or None,
        "score": round(post.risk_score),
        "sentiment": post.sentiment,
        "reach": post.reach,
        "engagement": post.engagement,
        "url": post.url,
    }
    return PostRow(**fields)


def entity_rows(post: Post) -> list[EntityRow]:
    return [
        EntityRow(post_id=post.id, entity_type="hashtag", text=tag)
        for tag in post.hashtags or []
    ]


def media_rows(post: Post) -> list[MediaRow]:
    return [
        MediaRow(post_id=post.id, media_url_https=m.url, media_type=_MEDIA_ROW_TYPES[m.type])
        for m in post.media or []
    ]


class SearchPipeline:
    """Fetch from every source, score and store each post, enrich the risky ones.

    All collaborators are injected; ``build_pipeline`` wires the production
    set from :mod:`repwatch.config`.
    """

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        scorer: Scorer,
        collector: EvidenceCollector,
        drafter: ResponseDrafter,
        store: PostStore,
        *,
        high_risk_threshold: int = config.HIGH_RISK_THRESHOLD,
    ) -> None:
        self._sources = list(sources)
        self._scorer = scorer
        self._collector = collector
        self._drafter = drafter
        self._store = store
        self._threshold = high_risk_threshold

    async def process_and_store_posts(self, keyword: str) -> SearchResult:
        """Run the full search for *keyword*. Never raises for per-source or per-post failures."""
        errors: list[str] = []

        # ── 1. Fetch from all sources concurrently ────────────────────────
        posts = await self._fetch_all(keyword, errors)
        logger.info("Fetched %d posts for %r from %d sources", len(posts), keyword, len(self._sources))

        # ── 2. Score and store, one post at a time ───────────────────────
        now = datetime.now(UTC)
        processed: list[Post] = []
        high_risk: list[HighRiskItem] = []
        for post in posts:
            try:
                score = await self._scorer.score(post.content, post.platform)
                post.risk_score = score
                post.sentiment = score_to_sentiment(score)
                await self._store_post(post, now)
                if score >= self._threshold:
                    high_risk.append(HighRiskItem(post=post, score=score))
            except Exception as exc:
                logger.error("Error processing post %s: %s", post.id, exc)
                errors.append(f"Post {post.id}: {exc}")
            # Included whether or not storage succeeded.
            processed.append(post)

        # ── 3. Evidence + admin responses for high-risk posts ────────────
        if high_risk:
            await self._enrich(high_risk, errors)

        # ── 4. Newest first ──────────────────────────────────────────────
        processed.sort(key=lambda p: resolve_timestamp(p.timestamp, now), reverse=True)
        logger.info(
            "Search %r done: %d posts, %d high-risk, %d errors",
            keyword, len(processed), len(high_risk), len(errors),
        )
        return SearchResult(posts=processed, errors=errors)

    # ── private ─────────────────────────────────────────────────────────

    async def _fetch_all(self, keyword: str, errors: list[str]) -> list[Post]:
        results = await asyncio.gather(
            *(source.fetch(keyword) for source in self._sources),
            return_exceptions=True,
        )
        posts: list[Post] = []
        for source, result in zip(self._sources, results):
            if isinstance(result, BaseException):
                reason = str(result) or "Failed to fetch"
                logger.warning("%s fetch failed: %s", source.name, reason)
                errors.append(f"{source.name}: {reason}")
                continue
            posts.extend(result)
        return posts

    async def _store_post(self, post: Post, now: datetime) -> None:
        await asyncio.to_thread(self._store.upsert_post, to_post_row(post, now))
        entities = entity_rows(post)
        if entities:
            await asyncio.to_thread(self._store.insert_entities, post.id, entities)
        media = media_rows(post)
        if media:
            await asyncio.to_thread(self._store.insert_media, post.id, media)

    async def _enrich(self, items: list[HighRiskItem], errors: list[str]) -> None:
        logger.info("Processing %d high-risk posts in parallel...", len(items))

        evidence_results = await asyncio.gather(
            *(self._collector.collect(item.post.content) for item in items),
            return_exceptions=True,
        )
        for item, result in zip(items, evidence_results):
            if isinstance(result, BaseException):
                logger.error("Error collecting evidence for post %s: %s", item.post.id, result)
                continue
            item.evidence = result

        responses = await asyncio.gather(
            *(self._drafter.draft(item.post.content, item.score, item.evidence) for item in items),
            return_exceptions=True,
        )
        for item, result in zip(items, responses):
            if isinstance(result, BaseException):
                logger.error("Error generating response for post %s: %s", item.post.id, result)
                continue
            item.response = result

        for item in items:
            try:
                await self._store_enrichment(item)
            except Exception as exc:
                logger.error("Error storing evidence/response for post %s: %s", item.post.id, exc)
                errors.append(f"Post {item.post.id} evidence/response: {exc}")

    async def _store_enrichment(self, item: HighRiskItem) -> None:
        for ev in item.evidence:
            row = EvidenceRow(
                post_id=item.post.id,
                source=EVIDENCE_SOURCE,
                title=ev.title,
                url=ev.url,
                snippet=ev.snippet or ev.text_block,
                evidence_data=ev.model_dump(),
            )
            await asyncio.to_thread(self._store.insert_evidence, row)

        if item.response:
            row = AdminResponseRow(
                post_id=item.post.id,
                response_text=item.response,
                generated_by=self._drafter.provider,
                model_used=self._drafter.model,
            )
            await asyncio.to_thread(self._store.insert_admin_response, row)


def build_pipeline(
    http: httpx.AsyncClient | None = None,
    store: PostStore | None = None,
    llm: LLMClient | None = None,
) -> SearchPipeline:
    """Construct the production pipeline from environment configuration.

    The caller owns *llm* when one is passed in and is responsible for
    closing it.
    """
    timeout = config.HTTP_TIMEOUT
    if llm is None:
        llm = LLMClient(api_key=config.LLM_API_KEY, model=config.LLM_MODEL)
    sources: list[SourceAdapter] = [
        TwitterClient(config.RAPIDAPI_KEY, http=http, timeout=timeout),
        RedditClient(config.RAPIDAPI_KEY, http=http, timeout=timeout),
        NewsClient(config.SERPAPI_KEY, http=http, timeout=timeout),
        FacebookClient(
            config.RAPIDAPI_KEY,
            search_url=config.RAPIDAPI_FB_SEARCH_URL,
            host=config.RAPIDAPI_FB_SEARCH_HOST,
            http=http,
            timeout=timeout,
        ),
    ]
    return SearchPipeline(
        sources=sources,
        scorer=Scorer(llm),
        collector=EvidenceCollector(config.SERPAPI_KEY, http=http, timeout=timeout),
        drafter=ResponseDrafter(llm),
        store=store if store is not None else PostStore(config.db_path()),
    )


async def run_search(keyword: str) -> SearchResult:
    """Run one search with shared HTTP and LLM clients, closed afterwards."""
    llm = LLMClient(api_key=config.LLM_API_KEY, model=config.LLM_MODEL)
    try:
        async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT) as http:
            pipeline = build_pipeline(http=http, llm=llm)
            return await pipeline.process_and_store_posts(keyword)
    finally:
        await llm.aclose()
