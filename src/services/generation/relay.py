"""Stream relay: one variation's execution as an SSE byte stream.

The relay never raises to the transport layer and always finishes with the
``data: [DONE]`` sentinel, whatever happens upstream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Protocol
from urllib.parse import urlparse

from pydantic import ValidationError

from core.config import Settings, get_settings
from core.error_handler import StructuredLogger
from schemas.generation import (
    SSE_DONE,
    VARIATION_COUNT,
    GenerationRequest,
    ScrapedArticle,
    StreamEvent,
)

from .exceptions import GenerationError
from .session import GenerationSession


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

PLACEHOLDER_TITLE = "記事タイトル"
SCRAPE_FAILED_CONTENT = (
    "記事の内容を解析できませんでした。関連情報を検索して配信記事を作成します。"
)
SHORT_CONTENT_NOTICE = "記事の内容が十分に取得できませんでした。"


class Scraper(Protocol):
    async def scrape(self, url: str) -> ScrapedArticle: ...


def _error_message(exc: Exception) -> str:
    return exc.message if isinstance(exc, GenerationError) else str(exc)


async def error_stream(message: str) -> AsyncIterator[str]:
    """A channel carrying only an `error` event and the sentinel."""
    yield StreamEvent.error(message).to_sse()
    yield SSE_DONE


def placeholder_title(blog_url: str) -> str:
    """Last path segment of the article URL, or a generic title."""
    segment = urlparse(blog_url).path.rstrip("/").rsplit("/", 1)[-1]
    return segment or PLACEHOLDER_TITLE


class StreamRelay:
    """Drive scraping plus one generation session onto an SSE channel."""

    def __init__(
        self,
        scraper: Scraper,
        session: GenerationSession,
        settings: Settings | None = None,
    ) -> None:
        self._scraper = scraper
        self._session = session
        self._settings = settings or get_settings()

    @property
    def session(self) -> GenerationSession:
        return self._session

    async def open(
        self, request_data: str | None, variation_index: str | int | None
    ) -> AsyncIterator[str]:
        """Validate raw stream parameters, then relay.

        Invalid parameters produce a single ``error`` event followed by the
        sentinel.
        """
        try:
            request, index = self.parse_parameters(request_data, variation_index)
        except ValueError as exc:
            structured_logger.warning("Rejected stream request", reason=str(exc))
            async for chunk in error_stream(str(exc)):
                yield chunk
            return

        async for chunk in self.stream(request, index):
            yield chunk

    @staticmethod
    def parse_parameters(
        request_data: str | None, variation_index: str | int | None
    ) -> tuple[GenerationRequest, int]:
        if not request_data:
            raise ValueError("リクエストデータが見つかりません")
        try:
            request = GenerationRequest.model_validate(json.loads(request_data))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ValueError(f"リクエストデータが不正です: {exc}") from exc

        try:
            index = int(variation_index) if variation_index is not None else 0
        except (TypeError, ValueError) as exc:
            raise ValueError("variationIndex must be an integer") from exc
        if not 0 <= index < VARIATION_COUNT:
            raise ValueError(
                f"variationIndex must be between 0 and {VARIATION_COUNT - 1}"
            )
        return request, index

    async def stream(
        self, request: GenerationRequest, index: int
    ) -> AsyncIterator[str]:
        try:
            async for event in self._events(request, index):
                yield event.to_sse()
        except Exception as exc:  # noqa: BLE001
            message = _error_message(exc)
            structured_logger.error(
                "Variation generation failed",
                variation_index=index,
                error_code=getattr(exc, "error_code", type(exc).__name__),
                error=message,
            )
            yield StreamEvent.error(
                f"コンテンツ生成中にエラーが発生しました: {message}"
            ).to_sse()
        yield SSE_DONE

    async def _events(
        self, request: GenerationRequest, index: int
    ) -> AsyncIterator[StreamEvent]:
        yield StreamEvent.process_start()

        article, warning = await self.resolve_article(request)
        if warning is not None:
            yield StreamEvent.scraping_warning(warning)
        else:
            yield StreamEvent.scraped_content(article)

        yield StreamEvent.variation_info(index)
        yield StreamEvent.generation_starting()

        async for event in self._session.run(request, article, index):
            yield event

    async def resolve_article(
        self, request: GenerationRequest
    ) -> tuple[ScrapedArticle, str | None]:
        """Return the article to generate from, plus a warning if degraded.

        Supplied content is used when non-empty; otherwise the scraper is
        called. A failed scrape or content under ``MIN_CONTENT_LENGTH``
        yields placeholder content and a warning instead of an error.
        """
        supplied = request.scraped_content
        if supplied is not None and supplied.content.strip():
            article = supplied
        else:
            try:
                article = await self._scraper.scrape(request.blog_url)
            except Exception as exc:  # noqa: BLE001
                message = _error_message(exc)
                logger.info(f"Scrape failed, continuing with placeholder: {message}")
                placeholder = ScrapedArticle(
                    title=placeholder_title(request.blog_url),
                    content=SCRAPE_FAILED_CONTENT,
                    images=list(request.selected_images),
                )
                return placeholder, (
                    "記事の詳細な取得に失敗しましたが、基本情報で処理を続行します: "
                    f"{message}"
                )

        min_length = self._settings.MIN_CONTENT_LENGTH
        if len(article.content) < min_length:
            padded = ScrapedArticle(
                title=article.title,
                content=(
                    f"{article.content or SHORT_CONTENT_NOTICE}\n\n"
                    f"{request.blog_url} の記事を基に、LINE配信記事を作成します。"
                ),
                images=article.images,
            )
            return padded, (
                f"記事の本文が短すぎます ({len(article.content)}文字、"
                f"最低{min_length}文字)。補足情報を加えて続行します"
            )
        return article, None
