"""Stream relay contract tests: event order and the terminating sentinel."""

from __future__ import annotations

import json
from typing import Any

import pytest

from fakes import (
    FailingBackend,
    FakeBackend,
    FakeEnhancer,
    FakeScraper,
    text_events,
)
from schemas.generation import SSE_DONE, GenerationRequest, ScrapedArticle
from services.generation.exceptions import ScrapeFailure
from services.generation.relay import StreamRelay, placeholder_title
from services.generation.session import GenerationSession


def _relay(
    settings,
    scraper: FakeScraper | None = None,
    backend: FakeBackend | None = None,
) -> StreamRelay:
    session = GenerationSession(backend or FakeBackend(), FakeEnhancer(), settings)
    return StreamRelay(scraper or FakeScraper(), session, settings)


async def _collect(chunks) -> list[str]:
    return [chunk async for chunk in chunks]


def _events(chunks: list[str]) -> list[dict[str, Any]]:
    return [json.loads(chunk[len("data: ") :]) for chunk in chunks if chunk != SSE_DONE]


def _types(chunks: list[str]) -> list[str]:
    return [event["type"] for event in _events(chunks)]


class TestRelayHappyPath:
    """Events are emitted in protocol order and end with the sentinel."""

    @pytest.mark.asyncio
    async def test_event_order(self, settings, request_model) -> None:
        relay = _relay(settings, backend=FakeBackend(text_events("本日", "のお知らせ")))

        chunks = await _collect(relay.stream(request_model, 1))

        assert _types(chunks) == [
            "process_start",
            "scraped_content",
            "variation_info",
            "generation_starting",
            "variation_info",
            "response.created",
            "response.in_progress",
            "response.output_text.delta",
            "response.output_text.delta",
            "response.output_text.done",
            "response.completed",
            "variation_complete",
        ]
        assert chunks[-1] == SSE_DONE
        assert chunks.count(SSE_DONE) == 1

    @pytest.mark.asyncio
    async def test_every_chunk_is_sse_framed(self, settings, request_model) -> None:
        chunks = await _collect(_relay(settings).stream(request_model, 0))
        for chunk in chunks:
            assert chunk.startswith("data: ")
            assert chunk.endswith("\n\n")

    @pytest.mark.asyncio
    async def test_scraped_content_summary(self, settings, request_model) -> None:
        scraper = FakeScraper()
        chunks = await _collect(_relay(settings, scraper=scraper).stream(request_model, 0))

        scraped = next(e for e in _events(chunks) if e["type"] == "scraped_content")
        assert scraped["data"] == {
            "title": "Example Post",
            "contentLength": len(scraper.article.content),
            "imageCount": 1,
        }
        assert scraper.calls == [request_model.blog_url]

    @pytest.mark.asyncio
    async def test_backend_events_relayed_verbatim(
        self, settings, request_model
    ) -> None:
        raw = text_events("やあ")
        chunks = await _collect(
            _relay(settings, backend=FakeBackend(raw)).stream(request_model, 0)
        )
        relayed = [e for e in _events(chunks) if e["type"].startswith("response.")]
        assert relayed == raw

    @pytest.mark.asyncio
    async def test_pre_scraped_content_skips_scraper(
        self, settings, request_model
    ) -> None:
        scraper = FakeScraper()
        supplied = ScrapedArticle(
            title="Supplied", content="十分な長さの本文です。" * 10, images=[]
        )
        request = request_model.model_copy(update={"scraped_content": supplied})

        chunks = await _collect(_relay(settings, scraper=scraper).stream(request, 0))

        assert scraper.calls == []
        scraped = next(e for e in _events(chunks) if e["type"] == "scraped_content")
        assert scraped["data"]["title"] == "Supplied"


class TestRelayDegradedScrape:
    """Scrape problems become a warning and placeholder content."""

    @pytest.mark.asyncio
    async def test_short_content_emits_warning_not_scraped_content(
        self, settings, request_model
    ) -> None:
        short = ScrapedArticle(title="Example Post", content="短い", images=[])
        backend = FakeBackend()
        relay = _relay(settings, scraper=FakeScraper(article=short), backend=backend)

        chunks = await _collect(relay.stream(request_model, 0))
        types = _types(chunks)

        assert "scraping_warning" in types
        assert "scraped_content" not in types
        assert "variation_complete" in types
        prompt, _ = backend.calls[0]
        assert request_model.blog_url in prompt
        assert chunks[-1] == SSE_DONE

    @pytest.mark.asyncio
    async def test_scrape_failure_uses_placeholder(
        self, settings, request_model
    ) -> None:
        backend = FakeBackend()
        relay = _relay(
            settings,
            scraper=FakeScraper(error=ScrapeFailure("HTTP 404")),
            backend=backend,
        )

        chunks = await _collect(relay.stream(request_model, 2))
        events = _events(chunks)

        warning = next(e for e in events if e["type"] == "scraping_warning")
        assert "HTTP 404" in warning["warning"]
        prompt, _ = backend.calls[0]
        assert "example-post" in prompt
        assert events[-1]["type"] == "variation_complete"

    @pytest.mark.asyncio
    async def test_placeholder_keeps_selected_images(
        self, settings, request_model
    ) -> None:
        relay = _relay(settings, scraper=FakeScraper(error=RuntimeError("boom")))
        article, warning = await relay.resolve_article(request_model)

        assert warning is not None
        assert article.images == request_model.selected_images
        assert article.title == "example-post"

    def test_placeholder_title_falls_back(self) -> None:
        assert placeholder_title("https://example.com/") == "記事タイトル"
        assert placeholder_title("https://example.com/a/b/") == "b"


class TestRelayFailures:
    """Generation failures end the channel cleanly."""

    @pytest.mark.asyncio
    async def test_backend_failure_emits_error_then_sentinel(
        self, settings, request_model
    ) -> None:
        relay = _relay(settings, backend=FailingBackend("connection refused"))

        chunks = await _collect(relay.stream(request_model, 0))
        events = _events(chunks)

        assert events[-1]["type"] == "error"
        assert "connection refused" in events[-1]["error"]
        assert "variation_complete" not in _types(chunks)
        assert chunks[-1] == SSE_DONE
        assert chunks.count(SSE_DONE) == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_still_terminates(
        self, settings, request_model
    ) -> None:
        relay = _relay(settings, backend=FakeBackend(ValueError("bad options")))

        chunks = await _collect(relay.stream(request_model, 0))

        assert _types(chunks)[-1] == "error"
        assert chunks.count(SSE_DONE) == 1


class TestRelayParameters:
    """Raw query parameters are validated inside the stream."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("request_data", "index"),
        [
            (None, "0"),
            ("{not json", "0"),
            ('{"company_name": "no url"}', "0"),
            ('{"blog_url": "https://example.com/p"}', "3"),
            ('{"blog_url": "https://example.com/p"}', "-1"),
            ('{"blog_url": "https://example.com/p"}', "first"),
        ],
    )
    async def test_invalid_parameters(
        self, settings, request_data, index
    ) -> None:
        backend = FakeBackend()
        chunks = await _collect(
            _relay(settings, backend=backend).open(request_data, index)
        )

        assert _types(chunks) == ["error"]
        assert chunks[-1] == SSE_DONE
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_missing_index_defaults_to_first(self, settings) -> None:
        request = GenerationRequest(blog_url="https://example.com/p")
        chunks = await _collect(
            _relay(settings).open(request.model_dump_json(), None)
        )
        info = next(e for e in _events(chunks) if e["type"] == "variation_info")
        assert info["index"] == 0
        assert info["total"] == 3
