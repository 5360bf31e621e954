"""Generation backend: the streaming text model behind each variation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI

from .exceptions import BackendConnectionFailure


logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL: dict[str, str] = {"type": "web_search_preview"}


@dataclass(frozen=True)
class BackendOptions:
    """Per-call sampling options for one variation."""

    input_text: str
    temperature: float
    top_p: float
    use_web_search: bool = False


class GenerationBackend(Protocol):
    async def create_stream(
        self, prompt: str, options: BackendOptions
    ) -> AsyncIterator[dict[str, Any]]:
        """Open a backend stream.

        Raises ``BackendConnectionFailure`` when the stream cannot be opened.
        The returned iterator yields backend-defined events as plain dicts.
        """
        ...


class OpenAIResponsesBackend:
    """Stream generation through the OpenAI Responses API."""

    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        self._client = client
        self._model = model

    async def create_stream(
        self, prompt: str, options: BackendOptions
    ) -> AsyncIterator[dict[str, Any]]:
        tools = [WEB_SEARCH_TOOL] if options.use_web_search else []
        try:
            stream = await self._client.responses.create(
                model=self._model,
                instructions=prompt,
                input=options.input_text,
                tools=tools,  # type: ignore[arg-type]
                temperature=options.temperature,
                top_p=options.top_p,
                stream=True,
            )
        except openai.APIError as exc:
            logger.warning(
                "Generation backend connect failed: %s - %s",
                type(exc).__name__,
                str(exc),
            )
            raise BackendConnectionFailure(str(exc)) from exc
        return self._iter_events(stream)

    async def _iter_events(self, stream: Any) -> AsyncIterator[dict[str, Any]]:
        try:
            async for event in stream:
                yield event.model_dump(mode="json")
        except openai.APIError as exc:
            logger.warning("Generation backend stream broke: %s", str(exc))
            raise BackendConnectionFailure(
                f"Backend stream interrupted: {exc}"
            ) from exc
