"""Helpers for pulling values out of loosely-structured upstream JSON.

Upstream schemas drift, so every logical field is described as an ordered
tuple of key-paths.  :func:`probe` walks them in order and returns the first
non-empty hit.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

Path = Sequence[str | int]

_HASHTAG_RE = re.compile(r"#(\w+)", re.ASCII)
_IMAGE_URL_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)
_RELATIVE_RE = re.compile(r"^\s*(\d+)\s+(minute|hour|day)s?\s+ago\s*$", re.IGNORECASE)
_TWITTER_DATE_FMT = "%a %b %d %H:%M:%S %z %Y"

_UNITS = {"minute": 60, "hour": 3600, "day": 86400}


def dig(data: Any, path: Path) -> Any:
    """Follow *path* through nested dicts/lists; ``None`` if any step is missing."""
    cur = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or not -len(cur) <= key < len(cur):
                return None
            cur = cur[key]
        elif isinstance(cur, dict):
            cur = cur.get(key)
        else:
            return None
        if cur is None:
            return None
    return cur


def probe(data: Any, paths: Iterable[Path], default: Any = None) -> Any:
    """Return the first truthy value found along *paths*, else *default*."""
    for path in paths:
        value = dig(data, path)
        if value:
            return value
    return default


def as_int(value: Any) -> int:
    """Coerce counts that may arrive as ints, floats or digit strings."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if stripped.isdigit():
            return int(stripped)
    return 0


def count_of(value: Any, paths: Iterable[Path] = (("summary", "total_count"), ("count",))) -> int:
    """Read an engagement count that is either a bare number or a summary object."""
    if isinstance(value, dict):
        return as_int(probe(value, paths, 0))
    return as_int(value)


def unique(items: Iterable[str]) -> list[str]:
    """De-duplicate ignoring case; the first-seen spelling is kept."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            out.append(item)
    return out


def extract_hashtags(text: str) -> list[str]:
    """Return ``#tags`` found in *text* without the leading ``#``."""
    return unique(_HASHTAG_RE.findall(text or ""))


def is_image_url(url: Any) -> bool:
    return isinstance(url, str) and bool(_IMAGE_URL_RE.search(url))


def decode_amp(url: str) -> str:
    """Reddit escapes ``&`` in preview URLs."""
    return url.replace("&amp;", "&")


# ── Time ───────────────────────────────────────────────────────────────────


def parse_datetime(value: Any) -> datetime | None:
    """Parse epoch seconds, Twitter's legacy date format, or ISO-8601."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return datetime.strptime(raw, _TWITTER_DATE_FMT)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_relative(when: datetime | None, now: datetime | None = None) -> str:
    """Render *when* as "N minutes/hours/days ago"; ``None`` means now."""
    now = now or datetime.now(UTC)
    when = when or now
    diff = max(0.0, (now - when).total_seconds())
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)

    if minutes < 60:
        return f"{minutes} {'minute' if minutes == 1 else 'minutes'} ago"
    if hours < 24:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    return f"{days} {'day' if days == 1 else 'days'} ago"


def resolve_timestamp(text: str, now: datetime | None = None) -> datetime:
    """Turn a stored timestamp string back into an instant.

    Accepts the relative strings produced by :func:`format_relative` as well
    as absolute dates. Anything unparsable resolves to *now*.
    """
    now = now or datetime.now(UTC)
    match = _RELATIVE_RE.match(text or "")
    if match:
        amount, unit = int(match.group(1)), match.group(2).lower()
        return now - timedelta(seconds=amount * _UNITS[unit])
    return parse_datetime(text) or now
