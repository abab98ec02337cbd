"""Google News search via SerpAPI."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from repwatch.extract import as_int, format_relative, parse_datetime, probe
from repwatch.models import MediaItem, Post
from repwatch.source_base import PLACEHOLDER_SCORE, PLACEHOLDER_SENTIMENT, SourceAdapter

_SEARCH_URL = "https://serpapi.com/search.json"

_DEFAULT_REACH = 80000
_MISSING_POSITION = 999

_SOURCE_PATHS = (("source", "name"), ("source",))
_DATE_PATHS = (("iso_date",),)
_THUMBNAIL_PATHS = (("thumbnail",), ("thumbnail_small",))


def position_engagement(position: int) -> int:
    """Search rank as an engagement proxy: rank 1 → 5000, rank 10 → 500."""
    return max(1, (11 - position) * 500)


def _title_checksum(title: str) -> int:
    return sum(ord(ch) for ch in title) & 0xFFFF


class NewsClient(SourceAdapter):
    """Google News results for a keyword."""

    name = "News"
    platform = "news"
    max_items = 20

    async def _fetch(self, keyword: str) -> list[Post]:
        params = {"engine": "google_news", "q": keyword, "api_key": self._api_key}
        data = await self._get_json(_SEARCH_URL, params)
        if not isinstance(data, dict):
            return []

        now = datetime.now(UTC)
        items: list[Post] = []
        for i, n in enumerate((data.get("news_results") or [])[: self.max_items]):
            if not isinstance(n, dict):
                continue
            post = self._parse_result(n, i, keyword, now)
            if post is not None:
                items.append(post)
        return items

    def _parse_result(
        self, n: dict[str, Any], index: int, keyword: str, now: datetime
    ) -> Post | None:
        source = probe(n, _SOURCE_PATHS, "News Source")
        if not isinstance(source, str):
            source = "News Source"
        title = n.get("title") or ""
        snippet = n.get("snippet") or ""
        text = f"{title} — {snippet}" if snippet else title
        if not text.strip():
            return None

        position = as_int(n.get("position")) or _MISSING_POSITION
        thumbnail = probe(n, _THUMBNAIL_PATHS)
        media = [MediaItem(url=thumbnail, type="image", thumbnail_url=thumbnail)] if thumbnail else None

        return Post(
            id=f"news_{n.get('position') or index}_{_title_checksum(title)}",
            platform="news",
            author=source,
            handle=source,
            timestamp=format_relative(parse_datetime(probe(n, _DATE_PATHS)), now),
            content=text,
            risk_score=PLACEHOLDER_SCORE,
            sentiment=PLACEHOLDER_SENTIMENT,
            reach=_DEFAULT_REACH,
            engagement=position_engagement(position),
            entity=keyword,
            url=n.get("link"),
            media=media,
            metadata={"position": n.get("position")},
        )
