"""In-memory stand-ins for the generation pipeline collaborators."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from schemas.generation import GenerationRequest, ScrapedArticle
from services.generation.backend import BackendOptions
from services.generation.enhancement import EnhancementPayload
from services.generation.exceptions import BackendConnectionFailure, EnhancementFailure


LONG_CONTENT = (
    "今日は新しいメニューのお知らせです。季節の食材を使った限定メニューが登場しました。"
    "ぜひ店頭でお試しください。ご来店を心よりお待ちしております。"
)


def text_events(*chunks: str) -> list[dict[str, Any]]:
    """Backend events for a successful response made of ``chunks``."""
    events: list[dict[str, Any]] = [
        {"type": "response.created", "sequence_number": 0},
        {"type": "response.in_progress", "sequence_number": 1},
    ]
    for i, chunk in enumerate(chunks):
        events.append(
            {
                "type": "response.output_text.delta",
                "delta": chunk,
                "item_id": "msg_1",
                "output_index": 0,
                "content_index": 0,
                "sequence_number": 2 + i,
            }
        )
    events.append({"type": "response.output_text.done", "text": "".join(chunks)})
    events.append({"type": "response.completed"})
    return events


class FakeScraper:
    def __init__(
        self,
        article: ScrapedArticle | None = None,
        error: Exception | None = None,
    ) -> None:
        self.article = article or ScrapedArticle(
            title="Example Post",
            content=LONG_CONTENT,
            images=["https://example.com/img/1.jpg"],
        )
        self.error = error
        self.calls: list[str] = []

    async def scrape(self, url: str) -> ScrapedArticle:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.article


class FakeBackend:
    """Replays one scripted response per call.

    Each script entry is a list of raw events or an exception to raise when
    the stream is opened. The last entry is reused once the script runs out.
    """

    def __init__(self, *scripts: list[Any] | Exception) -> None:
        self.scripts = list(scripts) or [text_events("こんにちは")]
        self.calls: list[tuple[str, BackendOptions]] = []

    async def create_stream(
        self, prompt: str, options: BackendOptions
    ) -> AsyncIterator[dict[str, Any]]:
        self.calls.append((prompt, options))
        script = self.scripts[min(len(self.calls), len(self.scripts)) - 1]
        if isinstance(script, Exception):
            raise script
        return self._replay(script)

    async def _replay(self, events: list[Any]) -> AsyncIterator[Any]:
        for event in events:
            yield event


class FailingBackend(FakeBackend):
    def __init__(self, message: str = "connection refused") -> None:
        super().__init__(BackendConnectionFailure(message))


class FakeEnhancer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[GenerationRequest, str]] = []

    async def enhance(
        self, request: GenerationRequest, topic: str
    ) -> EnhancementPayload:
        self.calls.append((request, topic))
        if self.error is not None:
            raise self.error
        return EnhancementPayload(
            topic=topic,
            summary="地域で話題の限定メニューです。",
            citations=["https://news.example.com/a"],
        )


class UnavailableEnhancer(FakeEnhancer):
    def __init__(self) -> None:
        super().__init__(EnhancementFailure("search quota exceeded"))
