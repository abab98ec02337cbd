"""Test doubles injected in place of live services."""

from __future__ import annotations

from collections.abc import Callable

from repwatch.models import EvidenceResult, Post


class FakeLLM:
    """Stands in for :class:`repwatch.llm.LLMClient`.

    ``reply`` is either a fixed string, an exception to raise, or a callable
    mapping the user message to a reply.
    """

    def __init__(
        self,
        reply: str | Exception | Callable[[str], str] = "",
        available: bool = True,
        model: str = "gpt-4o-mini",
    ) -> None:
        self._reply = reply
        self.available = available
        self.model = model
        self.provider = "openai"
        self.calls: list[dict[str, object]] = []

    async def chat(self, system: str, user: str, *, temperature: float = 0.3, max_tokens: int = 512) -> str:
        self.calls.append(
            {"system": system, "user": user, "temperature": temperature, "max_tokens": max_tokens}
        )
        if isinstance(self._reply, Exception):
            raise self._reply
        if callable(self._reply):
            return self._reply(user)
        return self._reply


class FakeSource:
    def __init__(self, name: str, posts: list[Post] | None = None, error: Exception | None = None) -> None:
        self.name = name
        self._posts = posts or []
        self._error = error
        self.keywords: list[str] = []

    async def fetch(self, keyword: str) -> list[Post]:
        self.keywords.append(keyword)
        if self._error is not None:
            raise self._error
        return list(self._posts)


class FakeScorer:
    def __init__(self, scores: dict[str, int], default: int = 5) -> None:
        self._scores = scores
        self._default = default

    async def score(self, content: str, platform: str) -> int:
        return self._scores.get(content, self._default)


class FakeCollector:
    def __init__(self, evidence: list[EvidenceResult] | None = None, error: Exception | None = None) -> None:
        self._evidence = evidence or []
        self._error = error
        self.queries: list[str] = []

    async def collect(self, post_text: str) -> list[EvidenceResult]:
        self.queries.append(post_text)
        if self._error is not None:
            raise self._error
        return [e.model_copy(update={"title": f"{e.title} ({post_text})"}) for e in self._evidence]


class FakeDrafter:
    model = "gpt-4o-mini"
    provider = "openai"

    def __init__(self, reply: str | None = "We take this seriously.") -> None:
        self._reply = reply
        self.calls: list[tuple[str, int, list[EvidenceResult]]] = []

    async def draft(self, post_text: str, post_score: int, evidence: list[EvidenceResult]) -> str | None:
        self.calls.append((post_text, post_score, evidence))
        return self._reply


def make_post(
    post_id: str,
    content: str,
    platform: str = "twitter",
    timestamp: str = "1 hour ago",
    hashtags: list[str] | None = None,
) -> Post:
    return Post(
        id=post_id,
        platform=platform,  # type: ignore[arg-type]
        author="tester",
        handle="@tester",
        timestamp=timestamp,
        content=content,
        reach=100,
        engagement=10,
        entity="Acme",
        hashtags=hashtags,
    )
