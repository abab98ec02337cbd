"""Facebook post search via the RapidAPI ``facebook-scraper3`` aggregator."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from repwatch.extract import (
    count_of,
    dig,
    extract_hashtags,
    format_relative,
    is_image_url,
    parse_datetime,
    probe,
)
from repwatch.models import MediaItem, Post
from repwatch.source_base import PLACEHOLDER_SCORE, PLACEHOLDER_SENTIMENT, SourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://facebook-scraper3.p.rapidapi.com/search/posts"
DEFAULT_HOST = "facebook-scraper3.p.rapidapi.com"

_DEFAULT_REACH = 60000
_DEFAULT_ENGAGEMENT = 1500

_LIST_PATHS = (("results",), ("result",), ("data",))
_AUTHOR_OBJ_PATHS = (("from",), ("author",), ("user",))
_AUTHOR_NAME_PATHS = (("name",), ("username",), ("id",))
_TEXT_PATHS = (("message",), ("text",), ("story",))
_URL_PATHS = (("permalink_url",), ("url",))
_TIME_PATHS = (("created_time",), ("created_at",), ("timestamp",))
_SHARE_COUNT_PATHS = (("count",), ("summary", "total_count"))


class FacebookClient(SourceAdapter):
    """Public post search for a keyword."""

    name = "Facebook"
    platform = "facebook"
    max_items = 10

    def __init__(
        self,
        api_key: str,
        *,
        search_url: str = DEFAULT_SEARCH_URL,
        host: str = DEFAULT_HOST,
        http: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(api_key, http=http, timeout=timeout)
        self._search_url = search_url
        self._host = host

    async def fetch(self, keyword: str) -> list[Post]:
        if not self._search_url or not self._host:
            logger.warning("Facebook: search URL or host not configured")
            return []
        return await super().fetch(keyword)

    async def _fetch(self, keyword: str) -> list[Post]:
        headers = {"X-RapidAPI-Key": self._api_key, "X-RapidAPI-Host": self._host}
        params = {"query": keyword, "limit": str(self.max_items)}

        payload = await self._get_json(self._search_url, params, headers)
        if not isinstance(payload, dict):
            return []

        posts = probe(payload, _LIST_PATHS, [])
        if not isinstance(posts, list) or not posts:
            logger.warning("Facebook empty results for %s. Keys: %s", keyword, list(payload))
            return []
        logger.info("Facebook API returned %d raw posts for keyword: %s", len(posts), keyword)

        now = datetime.now(UTC)
        items: list[Post] = []
        for i, p in enumerate(posts[:20]):
            if not isinstance(p, dict):
                continue
            post = self._parse_post(p, i, keyword, now)
            if post is not None:
                items.append(post)
            if len(items) >= self.max_items:
                break
        return items

    def _parse_post(
        self, p: dict[str, Any], index: int, keyword: str, now: datetime
    ) -> Post | None:
        text = str(probe(p, _TEXT_PATHS, "")).strip()
        if not text:
            logger.debug("Facebook post %d skipped - empty text", index)
            return None

        author = _author(p)
        reactions = count_of(p.get("reactions")) or count_of(p.get("likes"))
        shares = count_of(p.get("shares"), _SHARE_COUNT_PATHS)
        comments = count_of(p.get("comments"))
        hashtags = extract_hashtags(text)
        media = _media(p)

        return Post(
            id=f"fb_{p.get('post_id') or p.get('id') or index}",
            platform="facebook",
            author=author,
            handle=author,
            timestamp=format_relative(parse_datetime(probe(p, _TIME_PATHS)), now),
            content=text,
            risk_score=PLACEHOLDER_SCORE,
            sentiment=PLACEHOLDER_SENTIMENT,
            reach=_DEFAULT_REACH,
            engagement=(reactions + shares + comments) or reactions or _DEFAULT_ENGAGEMENT,
            entity=keyword,
            url=probe(p, _URL_PATHS),
            hashtags=hashtags or None,
            media=media or None,
            metadata={
                "favorite_count": reactions or None,
                "retweet_count": shares or None,
                "reply_count": comments or None,
            },
        )


def _author(p: dict[str, Any]) -> str:
    obj = probe(p, _AUTHOR_OBJ_PATHS)
    if isinstance(obj, dict):
        return str(probe(obj, _AUTHOR_NAME_PATHS, "Unknown"))
    if isinstance(obj, str):
        return obj
    return "Unknown"


def _media(p: dict[str, Any]) -> list[MediaItem]:
    """Attachments first, then ``full_picture`` unless already present."""
    items: list[MediaItem] = []
    for att in p.get("attachments") or []:
        if not isinstance(att, dict):
            continue
        image = dig(att, ("media", "image", "src"))
        video = dig(att, ("media", "source"))
        target = dig(att, ("target", "url"))
        if image:
            items.append(MediaItem(url=image, type="image", thumbnail_url=image))
        elif video:
            thumb = dig(att, ("media", "preview", "src")) or video
            items.append(MediaItem(url=video, type="video", thumbnail_url=thumb))
        elif is_image_url(target):
            items.append(MediaItem(url=target, type="image", thumbnail_url=target))

    picture = p.get("full_picture")
    if picture and all(m.url != picture for m in items):
        items.append(MediaItem(url=picture, type="image", thumbnail_url=picture))
    return items
