"""Twitter search via the RapidAPI ``twitter241`` aggregator."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from repwatch.extract import as_int, dig, format_relative, parse_datetime, probe
from repwatch.models import MediaItem, Post
from repwatch.source_base import PLACEHOLDER_SCORE, PLACEHOLDER_SENTIMENT, SourceAdapter

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://twitter241.p.rapidapi.com/search"
_HOST = "twitter241.p.rapidapi.com"

_DEFAULT_REACH = 50000
_DEFAULT_ENGAGEMENT = 1000

# ── Extraction tables (tried in order, first non-empty wins) ───────────────
_TWEET_PATHS = (
    ("content", "itemContent", "tweet_results", "result"),
    ("content", "itemContent", "tweet_results", "tweet"),
    ("content", "itemContent", "tweet_results"),
)
_AUTHOR_PATHS = (
    ("core", "name"),
    ("legacy", "name"),
    ("name",),
    ("legacy", "display_name"),
    ("display_name",),
)
_USERNAME_PATHS = (
    ("core", "screen_name"),
    ("legacy", "screen_name"),
    ("screen_name",),
    ("legacy", "username"),
    ("username",),
)
_FOLLOWERS_PATHS = (
    ("legacy", "followers_count"),
    ("legacy", "followersCount"),
    ("core", "followers_count"),
)
_VERIFIED_PATHS = (("core", "verified"), ("legacy", "verified"), ("verified",))
_AVATAR_PATHS = (("avatar", "image_url"), ("legacy", "profile_image_url_https"))
_LOCATION_PATHS = (("location", "location"), ("legacy", "location"))
_VIEW_PATHS = (("legacy", "view_count"), ("legacy", "views", "count"), ("views", "count"))

# tweet.legacy counters: canonical name → accepted spellings
_COUNTERS = {
    "favorite_count": (("favorite_count",), ("favoriteCount",)),
    "retweet_count": (("retweet_count",), ("retweetCount",)),
    "reply_count": (("reply_count",), ("replyCount",)),
    "quote_count": (("quote_count",), ("quoteCount",)),
}

_MEDIA_TYPES = {"photo": "image", "video": "video", "animated_gif": "gif"}


class TwitterClient(SourceAdapter):
    """Top-tweets search for a keyword."""

    name = "Twitter"
    platform = "twitter"
    max_items = 20

    async def _fetch(self, keyword: str) -> list[Post]:
        headers = {"x-rapidapi-key": self._api_key, "x-rapidapi-host": _HOST}
        params = {"type": "Top", "count": str(self.max_items), "query": keyword}

        data = await self._get_json(_SEARCH_URL, params, headers)
        if data is None:
            return []

        entries = _timeline_entries(data)
        logger.info("Twitter: found %d raw tweets in response", len(entries))

        now = datetime.now(UTC)
        items: list[Post] = []
        for i, entry in enumerate(entries[: self.max_items]):
            post = self._parse_entry(entry, i, keyword, now)
            if post is not None:
                items.append(post)
        return items

    def _parse_entry(
        self, entry: Any, index: int, keyword: str, now: datetime
    ) -> Post | None:
        tweet = probe(entry, _TWEET_PATHS, {})
        if not isinstance(tweet, dict):
            return None
        # Visibility-restricted tweets wrap the payload one level deeper.
        if "legacy" not in tweet and isinstance(tweet.get("tweet"), dict):
            tweet = tweet["tweet"]
        if not tweet:
            logger.warning("Twitter: could not extract tweet from entry %d", index)
            return None

        legacy: dict[str, Any] = tweet.get("legacy") or {}
        text: str = legacy.get("full_text") or ""
        if not text.strip():
            return None

        user = dig(tweet, ("core", "user_results", "result")) or {}
        username = probe(user, _USERNAME_PATHS, "")
        author = probe(user, _AUTHOR_PATHS, "") or username or "Unknown"
        if author == "Unknown":
            logger.warning("Twitter: could not extract author for tweet %d", index)

        tweet_id = str(tweet.get("rest_id") or index)
        counts = {name: as_int(probe(legacy, paths, 0)) for name, paths in _COUNTERS.items()}
        views = as_int(probe(tweet, _VIEW_PATHS, 0))
        followers = as_int(probe(user, _FOLLOWERS_PATHS, 0))
        total = sum(counts.values())
        verified = bool(probe(user, _VERIFIED_PATHS, False))

        # Entity hashtags are kept as Twitter reports them.
        hashtags = [
            tag
            for h in dig(legacy, ("entities", "hashtags")) or []
            if isinstance(h, dict) and (tag := h.get("text") or h.get("tag"))
        ]
        media = _media(legacy)

        return Post(
            id=f"tw_{tweet_id}",
            platform="twitter",
            author=author,
            handle=f"@{username}" if username else "Unknown",
            timestamp=format_relative(parse_datetime(legacy.get("created_at")), now),
            content=text,
            risk_score=PLACEHOLDER_SCORE,
            sentiment=PLACEHOLDER_SENTIMENT,
            badges=["Verified"] if verified else [],
            reach=views or followers or _DEFAULT_REACH,
            engagement=total or _DEFAULT_ENGAGEMENT,
            entity=keyword,
            url=f"https://twitter.com/{username}/status/{tweet_id}" if username else None,
            hashtags=hashtags or None,
            media=media or None,
            metadata={
                **counts,
                "view_count": views or None,
                "lang": legacy.get("lang"),
                "source": tweet.get("source"),
                "conversation_id_str": legacy.get("conversation_id_str"),
                "user_followers_count": followers or None,
                "user_verified": verified,
                "user_avatar_url": probe(user, _AVATAR_PATHS),
                "user_location": probe(user, _LOCATION_PATHS),
            },
        )


def _timeline_entries(data: Any) -> list[dict[str, Any]]:
    """Collect ``TimelineTimelineItem`` entries from every add-entries instruction."""
    instructions = dig(data, ("result", "timeline", "instructions")) or []
    entries: list[dict[str, Any]] = []
    for instruction in instructions:
        if not isinstance(instruction, dict) or instruction.get("type") != "TimelineAddEntries":
            continue
        for entry in instruction.get("entries") or []:
            if dig(entry, ("content", "entryType")) == "TimelineTimelineItem":
                entries.append(entry)
    return entries


def _media(legacy: dict[str, Any]) -> list[MediaItem]:
    raw = probe(legacy, (("extended_entities", "media"), ("entities", "media")), [])
    items: list[MediaItem] = []
    for m in raw:
        if not isinstance(m, dict):
            continue
        url = m.get("media_url_https") or m.get("media_url")
        if not url:
            continue
        items.append(
            MediaItem(url=url, type=_MEDIA_TYPES.get(m.get("type"), "image"), thumbnail_url=url)
        )
    return items
