"""Client side of the generation SSE channel."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any, Protocol

import httpx

from schemas.generation import DONE_SENTINEL, GenerationRequest
from services.generation.exceptions import ChannelFailure


logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "
STREAM_PATH = "/api/v1/generate/stream"

ChannelEvent = dict[str, Any] | str


class VariationChannel(Protocol):
    def stream(
        self, request: GenerationRequest, index: int
    ) -> AsyncGenerator[ChannelEvent, None]:
        """Yield parsed events for one variation, ending with ``[DONE]``.

        Closing the generator closes the underlying connection.
        """
        ...


def parse_sse_line(line: str) -> ChannelEvent | None:
    """Parse one SSE line into an event dict or the ``[DONE]`` sentinel.

    Lines without the ``data: `` prefix are ignored. Malformed payloads are
    logged and dropped; they never abort the channel.
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    payload = line[len(SSE_DATA_PREFIX) :].strip()
    if payload == DONE_SENTINEL:
        return DONE_SENTINEL
    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning(f"Dropping unparseable stream payload: {payload[:200]}")
        return None
    if not isinstance(event, dict) or not isinstance(event.get("type"), str):
        logger.warning(f"Dropping stream payload without a type: {payload[:200]}")
        return None
    return event


class HttpVariationChannel:
    """Open generation streams over HTTP with bounded retries.

    Opening is retried on network errors and 5xx responses, waiting
    ``retry_delay * attempt`` seconds between attempts. Once events have
    started to flow the channel is never reopened.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        path: str = STREAM_PATH,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ) -> None:
        self._client = client
        self._path = path
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def stream(
        self, request: GenerationRequest, index: int
    ) -> AsyncGenerator[ChannelEvent, None]:
        response = await self._open(request, index)
        try:
            async for line in response.aiter_lines():
                event = parse_sse_line(line)
                if event is None:
                    continue
                yield event
                if event == DONE_SENTINEL:
                    return
        except httpx.HTTPError as exc:
            raise ChannelFailure(f"Stream interrupted: {exc}") from exc
        finally:
            await response.aclose()

    async def _open(self, request: GenerationRequest, index: int) -> httpx.Response:
        http_request = self._client.build_request(
            "GET",
            self._path,
            params={
                "requestData": request.model_dump_json(),
                "variationIndex": str(index),
            },
            headers={"Accept": "text/event-stream"},
        )
        last_error = "no attempt made"
        for attempt in range(1, self.max_retries + 2):
            try:
                response = await self._client.send(http_request, stream=True)
            except httpx.TransportError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if response.status_code < 500:
                    if response.is_success:
                        return response
                    await response.aclose()
                    raise ChannelFailure(
                        f"Stream request rejected with HTTP {response.status_code}"
                    )
                await response.aclose()
                last_error = f"HTTP {response.status_code}"

            if attempt <= self.max_retries:
                delay = self.retry_delay * attempt
                logger.warning(
                    f"Opening stream for variation {index + 1} failed ({last_error}); "
                    f"retry {attempt}/{self.max_retries} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise ChannelFailure(
            f"Could not open stream after {self.max_retries + 1} attempts: {last_error}"
        )
