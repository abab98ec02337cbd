"""Tests for the four source adapters against canned upstream payloads."""

from typing import Any

import httpx
import pytest

from repwatch.facebook_client import FacebookClient
from repwatch.news_client import NewsClient, position_engagement
from repwatch.reddit_client import RedditClient
from repwatch.source_base import SourceAdapter
from repwatch.twitter_client import TwitterClient


def _http(payload: Any, status: int = 200, seen: list[httpx.Request] | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _tweet_entry(rest_id: str, text: str, **legacy: Any) -> dict[str, Any]:
    return {
        "content": {
            "entryType": "TimelineTimelineItem",
            "itemContent": {
                "tweet_results": {
                    "result": {
                        "rest_id": rest_id,
                        "core": {
                            "user_results": {
                                "result": {
                                    "core": {"name": "Acme News", "screen_name": "acmenews"},
                                    "legacy": {"followers_count": 1200, "verified": True},
                                }
                            }
                        },
                        "legacy": {
                            "full_text": text,
                            "created_at": "Sun Oct 18 09:30:00 +0000 2026",
                            **legacy,
                        },
                    }
                }
            },
        }
    }


def _timeline(*entries: dict[str, Any]) -> dict[str, Any]:
    return {
        "result": {
            "timeline": {
                "instructions": [
                    {"type": "TimelineClearCache"},
                    {"type": "TimelineAddEntries", "entries": list(entries)},
                ]
            }
        }
    }


class TestTwitterClient:
    @pytest.mark.asyncio
    async def test_parses_timeline_entries(self) -> None:
        seen: list[httpx.Request] = []
        payload = _timeline(
            _tweet_entry(
                "111",
                "Acme layoffs announced #Acme #acme #Jobs",
                favorite_count=10,
                retweet_count=5,
                entities={"hashtags": [{"text": "Acme"}, {"text": "acme"}, {"tag": "Jobs"}]},
                extended_entities={
                    "media": [
                        {"type": "photo", "media_url_https": "https://pbs.twimg.com/a.jpg"},
                        {"type": "animated_gif", "media_url": "http://pbs.twimg.com/b.mp4"},
                    ]
                },
            ),
            {"content": {"entryType": "TimelineTimelineCursor"}},
        )
        async with _http(payload, seen=seen) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")

        assert len(posts) == 1
        post = posts[0]
        assert post.id == "tw_111"
        assert post.platform == "twitter"
        assert post.author == "Acme News"
        assert post.handle == "@acmenews"
        assert post.entity == "Acme"
        assert post.reach == 1200
        assert post.engagement == 15
        assert post.badges == ["Verified"]
        assert post.hashtags == ["Acme", "acme", "Jobs"]
        assert [m.type for m in post.media or []] == ["image", "gif"]
        assert post.url == "https://twitter.com/acmenews/status/111"
        assert post.timestamp.endswith("ago")
        assert seen[0].headers["x-rapidapi-key"] == "key"
        assert seen[0].url.params["query"] == "Acme"

    @pytest.mark.asyncio
    async def test_defaults_when_metrics_missing(self) -> None:
        entry = _tweet_entry("222", "plain tweet")
        user = entry["content"]["itemContent"]["tweet_results"]["result"]["core"]["user_results"]["result"]
        user["legacy"] = {}
        async with _http(_timeline(entry)) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")
        assert posts[0].reach == 50000
        assert posts[0].engagement == 1000
        assert posts[0].hashtags is None

    @pytest.mark.asyncio
    async def test_view_count_preferred_for_reach(self) -> None:
        entry = _tweet_entry("333", "viewed tweet")
        entry["content"]["itemContent"]["tweet_results"]["result"]["views"] = {"count": "98765"}
        async with _http(_timeline(entry)) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")
        assert posts[0].reach == 98765

    @pytest.mark.asyncio
    async def test_entity_hashtags_kept_as_reported(self) -> None:
        entry = _tweet_entry(
            "444",
            "#AI news",
            entities={"hashtags": [{"text": "AI"}, {"text": "ai"}, {"text": ""}, "junk"]},
        )
        async with _http(_timeline(entry)) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")
        assert posts[0].hashtags == ["AI", "ai"]

    @pytest.mark.asyncio
    async def test_skips_empty_text(self) -> None:
        async with _http(_timeline(_tweet_entry("1", "   "), _tweet_entry("2", "ok"))) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")
        assert [p.id for p in posts] == ["tw_2"]

    @pytest.mark.asyncio
    async def test_caps_at_twenty(self) -> None:
        entries = [_tweet_entry(str(i), f"tweet {i}") for i in range(30)]
        async with _http(_timeline(*entries)) as http:
            posts = await TwitterClient("key", http=http).fetch("Acme")
        assert len(posts) == 20

    @pytest.mark.asyncio
    async def test_missing_key_short_circuits(self) -> None:
        seen: list[httpx.Request] = []
        async with _http({}, seen=seen) as http:
            assert await TwitterClient("", http=http).fetch("Acme") == []
        assert seen == []

    @pytest.mark.asyncio
    async def test_non_200_is_empty(self) -> None:
        async with _http({"message": "forbidden"}, status=403) as http:
            assert await TwitterClient("key", http=http).fetch("Acme") == []

    @pytest.mark.asyncio
    async def test_malformed_json_is_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            assert await TwitterClient("key", http=http).fetch("Acme") == []


class TestRedditClient:
    @pytest.mark.asyncio
    async def test_parses_posts(self) -> None:
        payload = {
            "data": {
                "posts": [
                    {
                        "data": {
                            "id": "abc",
                            "title": "Acme recall",
                            "selftext": "Big problem #Recall #recall",
                            "subreddit": "news",
                            "created_utc": 1760000000,
                            "score": 120,
                            "num_comments": 30,
                            "subreddit_subscribers": 250000,
                            "permalink": "/r/news/comments/abc/acme_recall/",
                            "preview": {"images": [{"source": {"url": "https://preview.redd.it/x.jpg?a=1&amp;b=2"}}]},
                        }
                    },
                    {"title": "Second", "selftext": "[removed]", "subreddit": "r/stocks", "id": "def"},
                ]
            }
        }
        async with _http(payload) as http:
            posts = await RedditClient("key", http=http).fetch("Acme")

        first, second = posts
        assert first.id == "reddit_abc"
        assert first.handle == "r/news"
        assert first.content == "Acme recall — Big problem #Recall #recall"
        assert first.engagement == 150
        assert first.reach == 250000
        assert first.hashtags == ["Recall"]
        assert first.url == "https://www.reddit.com/r/news/comments/abc/acme_recall/"
        assert first.media and first.media[0].url == "https://preview.redd.it/x.jpg?a=1&b=2"

        assert second.content == "Second"
        assert second.handle == "r/stocks"
        assert second.engagement == 500
        assert second.reach == 10000
        assert second.url == "https://www.reddit.com/r/stocks/comments/def/"

    @pytest.mark.asyncio
    async def test_fallback_list_shapes(self) -> None:
        payload = {"data": {"posts": "unexpected"}, "results": [{"id": "z", "title": "From results"}]}
        async with _http(payload) as http:
            posts = await RedditClient("key", http=http).fetch("Acme")
        assert [p.id for p in posts] == ["reddit_z"]

    @pytest.mark.asyncio
    async def test_gallery_and_direct_image(self) -> None:
        payload = {
            "data": {
                "posts": [
                    {
                        "id": "g1",
                        "title": "Gallery",
                        "url": "https://i.redd.it/direct.png",
                        "gallery_data": {"items": [{"media_id": "m1"}]},
                        "media_metadata": {"m1": {"s": {"u": "https://preview.redd.it/m1.jpg?x=1&amp;y=2"}}},
                    }
                ]
            }
        }
        async with _http(payload) as http:
            posts = await RedditClient("key", http=http).fetch("Acme")
        urls = [m.url for m in posts[0].media or []]
        assert urls == ["https://i.redd.it/direct.png", "https://preview.redd.it/m1.jpg?x=1&y=2"]


class TestNewsClient:
    def test_position_engagement(self) -> None:
        assert position_engagement(1) == 5000
        assert position_engagement(10) == 500
        assert position_engagement(999) == 1

    @pytest.mark.asyncio
    async def test_parses_results(self) -> None:
        seen: list[httpx.Request] = []
        payload = {
            "news_results": [
                {
                    "position": 1,
                    "title": "Acme shares fall",
                    "snippet": "Investors react",
                    "source": {"name": "Reuters"},
                    "link": "https://reuters.com/acme",
                    "thumbnail": "https://img/1.jpg",
                },
                {"position": 2, "title": "Acme expands", "source": "Bloomberg", "link": "https://b/2"},
                {"position": 3, "title": ""},
            ]
        }
        async with _http(payload, seen=seen) as http:
            posts = await NewsClient("serp", http=http).fetch("Acme")

        assert len(posts) == 2
        first, second = posts
        assert first.id.startswith("news_1_")
        assert first.author == "Reuters"
        assert first.content == "Acme shares fall — Investors react"
        assert first.engagement == 5000
        assert first.reach == 80000
        assert second.author == "Bloomberg"
        assert second.content == "Acme expands"
        assert first.id != second.id
        assert seen[0].url.params["engine"] == "google_news"
        assert seen[0].url.params["api_key"] == "serp"


class TestFacebookClient:
    @pytest.mark.asyncio
    async def test_parses_posts(self) -> None:
        payload = {
            "results": [
                {
                    "post_id": "p1",
                    "author": {"name": "Acme Fans"},
                    "message": "Loving the new #Widget",
                    "url": "https://facebook.com/p1",
                    "timestamp": 1760000000,
                    "reactions": {"summary": {"total_count": 40}},
                    "shares": {"count": 5},
                    "comments": 3,
                    "attachments": [{"media": {"image": {"src": "https://fb/img.jpg"}}}],
                    "full_picture": "https://fb/img.jpg",
                },
                {"post_id": "p2", "author": "Plain Name", "text": "no metrics"},
                {"post_id": "p3", "message": "   "},
            ]
        }
        async with _http(payload) as http:
            posts = await FacebookClient("key", http=http).fetch("Acme")

        assert [p.id for p in posts] == ["fb_p1", "fb_p2"]
        first, second = posts
        assert first.author == first.handle == "Acme Fans"
        assert first.engagement == 48
        assert first.reach == 60000
        assert first.hashtags == ["Widget"]
        assert len(first.media or []) == 1
        assert second.author == "Plain Name"
        assert second.engagement == 1500

    @pytest.mark.asyncio
    async def test_caps_at_ten(self) -> None:
        payload = {"data": [{"id": str(i), "message": f"post {i}"} for i in range(15)]}
        async with _http(payload) as http:
            posts = await FacebookClient("key", http=http).fetch("Acme")
        assert len(posts) == 10

    @pytest.mark.asyncio
    async def test_custom_endpoint_and_headers(self) -> None:
        seen: list[httpx.Request] = []
        async with _http({"results": []}, seen=seen) as http:
            client = FacebookClient("key", search_url="https://fb.example/search", host="fb.example", http=http)
            assert await client.fetch("Acme") == []
        assert seen[0].url.host == "fb.example"
        assert seen[0].headers["X-RapidAPI-Host"] == "fb.example"
        assert seen[0].url.params["limit"] == "10"


class TestSourceAdapter:
    def test_base_cannot_be_instantiated(self) -> None:
        with pytest.raises(TypeError):
            SourceAdapter("key")  # type: ignore[abstract]

    def test_subclass_without_fetch_cannot_be_instantiated(self) -> None:
        class Incomplete(SourceAdapter):
            name = "Incomplete"

        with pytest.raises(TypeError):
            Incomplete("key")  # type: ignore[abstract]
