"""Reddit search via the RapidAPI ``reddit34`` aggregator."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from repwatch.extract import (
    as_int,
    decode_amp,
    dig,
    extract_hashtags,
    format_relative,
    is_image_url,
    parse_datetime,
    probe,
)
from repwatch.models import MediaItem, Post
from repwatch.source_base import PLACEHOLDER_SCORE, PLACEHOLDER_SENTIMENT, SourceAdapter

_SEARCH_URL = "https://reddit34.p.rapidapi.com/getSearchPosts"
_HOST = "reddit34.p.rapidapi.com"

_DEFAULT_REACH = 10000
_DEFAULT_ENGAGEMENT = 500
_REMOVED = {"[deleted]", "[removed]"}

_FALLBACK_LIST_PATHS = (("posts",), ("results",), ("data", "children"))
_SUBREDDIT_PATHS = (("subreddit",), ("subreddit_name_prefixed",))
_CREATED_PATHS = (("created_utc",), ("createdAt",), ("created",))
_URL_PATHS = (("url",), ("full_link",))
_SCORE_PATHS = (("score",), ("ups",), ("upvotes",))
_COMMENTS_PATHS = (("num_comments",), ("comment_count",), ("numComments",))
_SUBSCRIBER_PATHS = (("subreddit_subscribers",), ("subscribers",))


class RedditClient(SourceAdapter):
    """Post search across all of Reddit for a keyword."""

    name = "Reddit"
    platform = "reddit"
    max_items = 20

    async def _fetch(self, keyword: str) -> list[Post]:
        headers = {"x-rapidapi-key": self._api_key, "x-rapidapi-host": _HOST}
        data = await self._get_json(_SEARCH_URL, {"query": keyword}, headers)
        if data is None:
            return []

        posts = dig(data, ("data", "posts"))
        if not isinstance(posts, list):
            posts = probe(data, _FALLBACK_LIST_PATHS, [])
        if not isinstance(posts, list):
            return []

        now = datetime.now(UTC)
        items: list[Post] = []
        for i, raw in enumerate(posts[: self.max_items]):
            p = raw.get("data") if isinstance(raw, dict) and "data" in raw else raw
            if not isinstance(p, dict):
                continue
            post = self._parse_post(p, i, keyword, now)
            if post is not None:
                items.append(post)
        return items

    def _parse_post(
        self, p: dict[str, Any], index: int, keyword: str, now: datetime
    ) -> Post | None:
        title = p.get("title") or "(untitled)"
        subreddit = str(probe(p, _SUBREDDIT_PATHS, "Unknown"))
        handle = subreddit if subreddit.startswith("r/") else f"r/{subreddit}"

        text = title
        selftext = p.get("selftext") or ""
        if selftext and selftext not in _REMOVED:
            text += f" — {selftext}"
        if not text.strip():
            return None

        score = as_int(probe(p, _SCORE_PATHS, 0))
        comments = as_int(probe(p, _COMMENTS_PATHS, 0))
        subscribers = as_int(probe(p, _SUBSCRIBER_PATHS, 0))
        hashtags = extract_hashtags(text)
        media = _media(p)

        return Post(
            id=f"reddit_{p.get('id') or f'post_{index}'}",
            platform="reddit",
            author=subreddit,
            handle=handle,
            timestamp=format_relative(parse_datetime(probe(p, _CREATED_PATHS)), now),
            content=text,
            risk_score=PLACEHOLDER_SCORE,
            sentiment=PLACEHOLDER_SENTIMENT,
            reach=subscribers or _DEFAULT_REACH,
            engagement=(score + comments) or score or _DEFAULT_ENGAGEMENT,
            entity=keyword,
            url=_permalink(p, handle),
            hashtags=hashtags or None,
            media=media or None,
            metadata={
                "reply_count": comments or None,
                "favorite_count": score or None,
                "user_followers_count": subscribers or None,
                "upvote_ratio": p.get("upvote_ratio"),
                "author_name": p.get("author"),
            },
        )


def _permalink(p: dict[str, Any], handle: str) -> str | None:
    url = probe(p, _URL_PATHS)
    if not url and p.get("permalink"):
        url = f"https://www.reddit.com{p['permalink']}"
    if not url and p.get("id"):
        url = f"https://www.reddit.com/{handle}/comments/{p['id']}/"
    return url


def _media(p: dict[str, Any]) -> list[MediaItem]:
    """Preview images, direct image links, then gallery items."""
    items: list[MediaItem] = []

    for img in dig(p, ("preview", "images")) or []:
        url = probe(img, (("source", "url"), ("url",)))
        if url:
            url = decode_amp(url)
            items.append(MediaItem(url=url, type="image", thumbnail_url=url))

    direct = p.get("url")
    if isinstance(direct, str) and (is_image_url(direct) or p.get("post_hint") == "image"):
        items.append(MediaItem(url=direct, type="image", thumbnail_url=direct))

    metadata = p.get("media_metadata") or {}
    for entry in dig(p, ("gallery_data", "items")) or []:
        url = dig(metadata, (entry.get("media_id", ""), "s", "u")) if isinstance(entry, dict) else None
        if url:
            url = decode_amp(url)
            items.append(MediaItem(url=url, type="image", thumbnail_url=url))

    return items
