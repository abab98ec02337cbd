"""SQLite-backed store for posts, entities, media, evidence and admin responses.

Constructed without a path the store is disabled: every write returns
``False`` and every read returns ``None`` / ``[]`` so the pipeline runs in a
degraded, non-persistent mode.  ``sqlite3.Error`` is not caught here.
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from collections import Counter
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from repwatch.models import (
    AdminResponseRow,
    DailyMentions,
    DashboardStats,
    EntityRow,
    EvidenceRow,
    MediaRow,
    PlatformStat,
    PostRow,
    RiskBreakdown,
    SentimentShare,
    TopicStat,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS posts (
    id                   TEXT PRIMARY KEY,
    platform             TEXT NOT NULL,
    entity               TEXT NOT NULL DEFAULT '',
    full_text            TEXT NOT NULL,
    created_at           TEXT NOT NULL,
    lang                 TEXT,
    source               TEXT,
    conversation_id_str  TEXT,
    favorite_count       INTEGER,
    retweet_count        INTEGER,
    reply_count          INTEGER,
    quote_count          INTEGER,
    view_count           INTEGER,
    user_name            TEXT,
    user_screen_name     TEXT,
    user_avatar_url      TEXT,
    user_location        TEXT,
    user_followers_count INTEGER,
    user_verified        INTEGER,
    platform_data        TEXT,
    score                INTEGER,
    sentiment            TEXT,
    reach                INTEGER,
    engagement           INTEGER,
    url                  TEXT,
    inserted_at          TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts (created_at);

CREATE TABLE IF NOT EXISTS entities (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id     TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    text        TEXT,
    url         TEXT
);
CREATE INDEX IF NOT EXISTS idx_entities_post ON entities (post_id);

CREATE TABLE IF NOT EXISTS media (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id         TEXT NOT NULL,
    media_url_https TEXT,
    media_type      TEXT,
    width           INTEGER,
    height          INTEGER
);

CREATE TABLE IF NOT EXISTS evidence (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id       TEXT NOT NULL,
    source        TEXT NOT NULL,
    title         TEXT,
    url           TEXT,
    snippet       TEXT,
    evidence_data TEXT,
    created_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_evidence_post ON evidence (post_id);

CREATE TABLE IF NOT EXISTS admin_responses (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id       TEXT NOT NULL,
    response_text TEXT NOT NULL,
    generated_by  TEXT,
    model_used    TEXT,
    created_at    TEXT NOT NULL
);
"""

_POST_COLUMNS: list[str] = list(PostRow.model_fields)
_UPSERT_POST = (
    f"INSERT INTO posts ({', '.join(_POST_COLUMNS)}, inserted_at) "
    f"VALUES ({', '.join('?' for _ in _POST_COLUMNS)}, ?) "
    "ON CONFLICT(id) DO UPDATE SET "
    + ", ".join(f"{c} = excluded.{c}" for c in _POST_COLUMNS if c != "id")
)

# Deleted children first.
_TABLES = ("admin_responses", "evidence", "media", "entities", "posts")

_RANGE_DAYS = {"24h": 1, "7d": 7, "30d": 30}
_TOP_TOPICS = 5


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


class PostStore:
    """Persistence for search results and their high-risk enrichments."""

    def __init__(self, db_path: Path | None) -> None:
        self._db_path = db_path
        if db_path is None:
            logger.warning("Database path not configured; storage will be skipped.")
            return
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @property
    def configured(self) -> bool:
        return self._db_path is not None

    # ── writes ──────────────────────────────────────────────────────────

    def upsert_post(self, row: PostRow) -> bool:
        """Insert or replace a post keyed by ``id``."""
        if not self.configured:
            return False
        data = row.model_dump()
        values: list[Any] = []
        for col in _POST_COLUMNS:
            value = data[col]
            if col == "platform_data" and value is not None:
                value = json.dumps(value, default=str)
            values.append(value)
        values.append(_now())

        con = self._connect()
        try:
            con.execute(_UPSERT_POST, values)
            con.commit()
        finally:
            con.close()
        return True

    def insert_entities(self, post_id: str, rows: list[EntityRow]) -> bool:
        if not self.configured:
            return False
        if not rows:
            return True
        con = self._connect()
        try:
            con.executemany(
                "INSERT INTO entities (post_id, entity_type, text, url) VALUES (?, ?, ?, ?)",
                [(post_id, r.entity_type, r.text, r.url) for r in rows],
            )
            con.commit()
        finally:
            con.close()
        return True

    def insert_media(self, post_id: str, rows: list[MediaRow]) -> bool:
        if not self.configured:
            return False
        if not rows:
            return True
        con = self._connect()
        try:
            con.executemany(
                """
                INSERT INTO media (post_id, media_url_https, media_type, width, height)
                VALUES (?, ?, ?, ?, ?)
                """,
                [(post_id, r.media_url_https, r.media_type, r.width, r.height) for r in rows],
            )
            con.commit()
        finally:
            con.close()
        return True

    def insert_evidence(self, row: EvidenceRow) -> bool:
        if not self.configured:
            return False
        con = self._connect()
        try:
            con.execute(
                """
                INSERT INTO evidence (post_id, source, title, url, snippet, evidence_data, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row.post_id,
                    row.source,
                    row.title,
                    row.url,
                    row.snippet,
                    json.dumps(row.evidence_data) if row.evidence_data is not None else None,
                    _now(),
                ),
            )
            con.commit()
        finally:
            con.close()
        return True

    def insert_admin_response(self, row: AdminResponseRow) -> bool:
        if not self.configured:
            return False
        con = self._connect()
        try:
            con.execute(
                """
                INSERT INTO admin_responses (post_id, response_text, generated_by, model_used, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (row.post_id, row.response_text, row.generated_by, row.model_used, _now()),
            )
            con.commit()
        finally:
            con.close()
        return True

    def clear_all(self) -> bool:
        """Delete every row from every table."""
        if not self.configured:
            logger.warning("Database not configured, cannot clear data")
            return False
        con = self._connect()
        try:
            for table in _TABLES:
                con.execute(f"DELETE FROM {table}")  # noqa: S608
            con.commit()
        finally:
            con.close()
        logger.info("All data cleared")
        return True

    # ── reads ───────────────────────────────────────────────────────────

    def get_admin_response(self, post_id: str) -> str | None:
        """Most recent response text for *post_id*."""
        if not self.configured:
            return None
        rows = self._query(
            "SELECT response_text FROM admin_responses WHERE post_id = ? ORDER BY id DESC LIMIT 1",
            (post_id,),
        )
        return rows[0]["response_text"] if rows else None

    def get_evidence(self, post_id: str) -> list[EvidenceRow]:
        if not self.configured:
            return []
        rows = self._query(
            "SELECT * FROM evidence WHERE post_id = ? ORDER BY id DESC", (post_id,)
        )
        return [
            EvidenceRow(
                post_id=r["post_id"],
                source=r["source"],
                title=r["title"],
                url=r["url"],
                snippet=r["snippet"],
                evidence_data=json.loads(r["evidence_data"]) if r["evidence_data"] else None,
            )
            for r in rows
        ]

    def get_post(self, post_id: str) -> PostRow | None:
        if not self.configured:
            return None
        rows = self._query("SELECT * FROM posts WHERE id = ?", (post_id,))
        if not rows:
            return None
        data = {col: rows[0][col] for col in _POST_COLUMNS}
        if data["platform_data"]:
            data["platform_data"] = json.loads(data["platform_data"])
        if data["user_verified"] is not None:
            data["user_verified"] = bool(data["user_verified"])
        return PostRow.model_validate(data)

    def dashboard_stats(
        self, time_range: str = "7d", now: datetime | None = None
    ) -> DashboardStats | None:
        """Aggregate mentions, risk and hashtag topics over a trailing window.

        ``time_range`` is one of ``24h``, ``7d`` or ``30d``; anything else
        means seven days.
        """
        if not self.configured:
            return None
        now = now or datetime.now(UTC)
        start = (now - timedelta(days=_RANGE_DAYS.get(time_range, 7))).isoformat()

        posts = self._query(
            """
            SELECT id, platform, score, sentiment, created_at FROM posts
            WHERE created_at >= ? ORDER BY created_at DESC
            """,
            (start,),
        )
        if not posts:
            return DashboardStats()

        scores = [p["score"] for p in posts if p["score"] is not None]
        average = _round_half_up(sum(scores) / len(scores), 1) if scores else 5.0

        return DashboardStats(
            total_mentions=len(posts),
            platform_data=_platform_breakdown(posts),
            risk_data=RiskBreakdown(
                high=sum(1 for p in posts if p["score"] and p["score"] >= 8),
                medium=sum(1 for p in posts if p["score"] and 4 <= p["score"] < 8),
                low=sum(1 for p in posts if not p["score"] or p["score"] < 4),
            ),
            mentions_over_time=_mentions_by_day(posts),
            average_score=average,
            top_topics=self._top_topics({p["id"]: p for p in posts}),
        )

    # ── private ─────────────────────────────────────────────────────────

    def _top_topics(self, window: dict[str, sqlite3.Row]) -> list[TopicStat]:
        rows = self._query(
            "SELECT text, post_id FROM entities WHERE entity_type = 'hashtag' AND text IS NOT NULL"
        )
        counts: Counter[str] = Counter()
        post_ids: dict[str, list[str]] = {}
        for r in rows:
            tag = (r["text"] or "").lower()
            if not tag:
                continue
            counts[tag] += 1
            ids = post_ids.setdefault(tag, [])
            if r["post_id"] not in ids:
                ids.append(r["post_id"])

        topics: list[TopicStat] = []
        for tag, volume in counts.most_common(_TOP_TOPICS):
            tagged = [window[pid] for pid in post_ids[tag] if pid in window]
            if not tagged:
                topics.append(TopicStat(name=f"#{tag}", volume=volume, risk_score=5.0))
                continue
            scores = [p["score"] for p in tagged if p["score"] is not None]
            total = len(tagged)
            share = {
                label: int(_round_half_up(sum(1 for p in tagged if p["sentiment"] == label) / total * 100))
                for label in ("positive", "neutral", "negative")
            }
            topics.append(
                TopicStat(
                    name=f"#{tag}",
                    volume=volume,
                    risk_score=_round_half_up(sum(scores) / len(scores), 1) if scores else 5.0,
                    sentiment=SentimentShare(**share),
                )
            )
        return topics

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        con = self._connect()
        try:
            con.row_factory = sqlite3.Row
            return con.execute(sql, params).fetchall()
        finally:
            con.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _init_db(self) -> None:
        con = self._connect()
        try:
            con.executescript(_SCHEMA)
        finally:
            con.close()


def _platform_breakdown(posts: list[sqlite3.Row]) -> list[PlatformStat]:
    totals: dict[str, list[int]] = {}
    for p in posts:
        bucket = totals.setdefault(p["platform"] or "unknown", [0, 0])
        bucket[0] += 1
        bucket[1] += p["score"] or 0
    return [
        PlatformStat(platform=name, mentions=n, score=int(_round_half_up(total / n)))
        for name, (n, total) in totals.items()
    ]


def _mentions_by_day(posts: list[sqlite3.Row]) -> list[DailyMentions]:
    by_day: Counter[str] = Counter()
    for p in posts:
        when = datetime.fromisoformat(p["created_at"]).astimezone(UTC)
        by_day[when.date().isoformat()] += 1
    out: list[DailyMentions] = []
    for day in sorted(by_day):
        d = datetime.fromisoformat(day)
        out.append(DailyMentions(date=f"{d:%b} {d.day}", mentions=by_day[day]))
    return out
