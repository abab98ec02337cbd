"""Domain models used across the pipeline."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Platform = Literal["twitter", "reddit", "facebook", "news"]
Sentiment = Literal["positive", "neutral", "negative"]


class MediaItem(BaseModel):
    url: str
    type: Literal["image", "video", "gif"] = "image"
    thumbnail_url: str | None = None


class Post(BaseModel):
    """Canonical post record shared by every source adapter.

    Serialised with camelCase keys (``riskScore``) for outward consumers;
    ``metadata`` carries platform extras for storage only. Assignments are
    validated, so a ``risk_score`` outside 1-10 is rejected here too.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)

    id: str
    platform: Platform
    author: str
    handle: str
    timestamp: str  # relative, e.g. "2 hours ago"
    content: str
    risk_score: int = Field(default=5, ge=1, le=10)
    sentiment: Sentiment = "neutral"
    badges: list[str] = Field(default_factory=list)
    reach: int = 0
    engagement: int = 0
    entity: str = ""
    url: str | None = None
    hashtags: list[str] | None = None
    media: list[MediaItem] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, exclude=True)


class EvidenceResult(BaseModel):
    title: str
    url: str
    snippet: str | None = None
    text_block: str | None = None


class SearchResult(BaseModel):
    posts: list[Post] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


# ── Persisted rows ─────────────────────────────────────────────────────────


class PostRow(BaseModel):
    id: str
    platform: Platform
    entity: str
    full_text: str
    created_at: str  # ISO-8601
    lang: str | None = None
    source: str | None = None
    conversation_id_str: str | None = None
    favorite_count: int | None = None
    retweet_count: int | None = None
    reply_count: int | None = None
    quote_count: int | None = None
    view_count: int | None = None
    user_name: str | None = None
    user_screen_name: str | None = None
    user_avatar_url: str | None = None
    user_location: str | None = None
    user_followers_count: int | None = None
    user_verified: bool | None = None
    platform_data: dict[str, Any] | None = None
    score: int | None = None
    sentiment: Sentiment | None = None
    reach: int | None = None
    engagement: int | None = None
    url: str | None = None


class EntityRow(BaseModel):
    post_id: str
    entity_type: Literal["user_mention", "hashtag", "url", "symbol", "timestamp"]
    text: str | None = None
    url: str | None = None


class MediaRow(BaseModel):
    post_id: str
    media_url_https: str | None = None
    media_type: Literal["photo", "video", "gif", "animated_gif"] | None = None
    width: int | None = None
    height: int | None = None


class EvidenceRow(BaseModel):
    post_id: str
    source: str
    title: str | None = None
    url: str | None = None
    snippet: str | None = None
    evidence_data: dict[str, Any] | None = None


class AdminResponseRow(BaseModel):
    post_id: str
    response_text: str
    generated_by: str | None = None
    model_used: str | None = None


# ── Dashboard aggregates ───────────────────────────────────────────────────


class PlatformStat(BaseModel):
    platform: str
    mentions: int
    score: int


class RiskBreakdown(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class DailyMentions(BaseModel):
    date: str  # e.g. "Oct 18"
    mentions: int


class SentimentShare(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class TopicStat(BaseModel):
    name: str  # "#hashtag"
    volume: int
    risk_score: float
    sentiment: SentimentShare = Field(default_factory=SentimentShare)


class DashboardStats(BaseModel):
    total_mentions: int = 0
    platform_data: list[PlatformStat] = Field(default_factory=list)
    risk_data: RiskBreakdown = Field(default_factory=RiskBreakdown)
    mentions_over_time: list[DailyMentions] = Field(default_factory=list)
    average_score: float = 5.0
    top_topics: list[TopicStat] = Field(default_factory=list)
