"""Generation session: one backend stream for one variation index."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from pydantic import ValidationError

from core.config import Settings, get_settings
from core.observability import get_tracer
from schemas.generation import (
    RESPONSE_COMPLETED_EVENT,
    TEXT_DELTA_EVENT,
    GenerationRequest,
    ScrapedArticle,
    StreamEvent,
)

from .backend import BackendOptions, GenerationBackend
from .enhancement import EnhancementPayload
from .exceptions import (
    BackendConnectionFailure,
    EmptyResultAnomaly,
    GenerationError,
    ProtocolMalformedEvent,
)
from .prompts import build_prompt, build_variation_input


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class Enhancer(Protocol):
    async def enhance(
        self, request: GenerationRequest, topic: str
    ) -> EnhancementPayload: ...


def _normalize_event(raw: Any) -> StreamEvent:
    """Validate a raw backend event, raising ProtocolMalformedEvent."""
    if not isinstance(raw, dict):
        raise ProtocolMalformedEvent(f"Expected an object, got {type(raw).__name__}")
    try:
        event = StreamEvent.model_validate(raw)
    except ValidationError as exc:
        raise ProtocolMalformedEvent("Event has no string 'type'") from exc
    if event.type == TEXT_DELTA_EVENT and not isinstance(
        event.fields.get("delta"), str
    ):
        raise ProtocolMalformedEvent("Text delta without a string 'delta'")
    return event


class GenerationSession:
    """Produce the normalized event sequence for one variation.

    Events, in order: ``web_search_complete`` or ``web_search_error`` (only
    when enhancement is requested), ``variation_info``, every backend event
    as received, then ``variation_complete``. Empty text deltas are dropped.
    A response that completes with only whitespace is requested again, up to
    ``MAX_EMPTY_RETRIES`` extra times.

    Raises ``BackendConnectionFailure`` (or its subclass
    ``EmptyResultAnomaly``) when no usable stream could be obtained.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        enhancer: Enhancer,
        settings: Settings | None = None,
    ) -> None:
        self._backend = backend
        self._enhancer = enhancer
        self._settings = settings or get_settings()

    def options_for(self, index: int, use_web_search: bool) -> BackendOptions:
        settings = self._settings
        return BackendOptions(
            input_text=build_variation_input(index),
            temperature=round(
                settings.BASE_TEMPERATURE + index * settings.TEMPERATURE_STEP, 4
            ),
            top_p=settings.TOP_P,
            use_web_search=use_web_search,
        )

    async def run(
        self, request: GenerationRequest, article: ScrapedArticle, index: int
    ) -> AsyncIterator[StreamEvent]:
        span = tracer.start_span("generation.session")
        span.set_attribute("variation.index", index)
        span.set_attribute("variation.use_web_search", request.use_web_search)
        outcome = "error"
        try:
            enhancement: EnhancementPayload | None = None
            if request.use_web_search:
                try:
                    enhancement = await self._enhancer.enhance(request, article.title)
                except Exception as exc:  # noqa: BLE001
                    message = (
                        exc.message if isinstance(exc, GenerationError) else str(exc)
                    )
                    logger.warning(
                        f"Web enhancement failed for variation {index + 1}, "
                        f"continuing without it: {message}"
                    )
                    yield StreamEvent.web_search_error(message)
                else:
                    yield StreamEvent.web_search_complete()

            prompt = build_prompt(
                request,
                article,
                enhancement_summary=enhancement.summary if enhancement else None,
                max_article_chars=self._settings.MAX_PROMPT_ARTICLE_CHARS,
            )
            yield StreamEvent.variation_info(index)

            options = self.options_for(index, request.use_web_search)
            max_attempts = 1 + self._settings.MAX_EMPTY_RETRIES
            for attempt in range(1, max_attempts + 1):
                accumulated = ""
                completed = False
                async for event in self._relay_backend(prompt, options):
                    if event.type == TEXT_DELTA_EVENT:
                        accumulated += event.fields["delta"]
                    elif event.type == RESPONSE_COMPLETED_EVENT:
                        completed = True
                    yield event
                span.set_attribute("variation.attempts", attempt)
                if accumulated.strip():
                    break
                if not completed:
                    raise BackendConnectionFailure(
                        "Backend stream ended before the response completed"
                    )
                logger.warning(
                    f"Variation {index + 1} came back empty "
                    f"(attempt {attempt}/{max_attempts})"
                )
            else:
                raise EmptyResultAnomaly(attempts=max_attempts)

            yield StreamEvent.variation_complete(index)
            outcome = "complete"
        finally:
            span.set_attribute("variation.outcome", outcome)
            span.end()

    async def _relay_backend(
        self, prompt: str, options: BackendOptions
    ) -> AsyncIterator[StreamEvent]:
        stream = await self._backend.create_stream(prompt, options)
        async for raw in stream:
            try:
                event = _normalize_event(raw)
            except ProtocolMalformedEvent as exc:
                logger.warning(f"Skipping malformed backend event: {exc.message}")
                continue
            if event.type == TEXT_DELTA_EVENT and not event.fields["delta"]:
                logger.debug("Skipping empty text delta")
                continue
            yield event
