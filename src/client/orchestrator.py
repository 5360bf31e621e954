"""Sequential client orchestration of the three variation sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from schemas.generation import VARIATION_COUNT, GeneratedVariation, GenerationRequest
from services.generation.exceptions import GenerationCancelled, GenerationError
from services.generation.formatting import format_as_markdown

from .channel import VariationChannel
from .state import (
    VariationSession,
    cancel_session,
    fail_session,
    reduce_event,
    start_session,
)


logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.5

UpdateCallback = Callable[[VariationSession], None]


class VariationOrchestrator:
    """Run the three sessions of a request one after another.

    Session ``i + 1`` opens only after session ``i`` is terminal and the
    settle delay has passed, so at most one channel is open at a time.
    ``run`` returns exactly three variations, or raises
    ``GenerationCancelled`` after ``cancel()``.
    """

    def __init__(
        self,
        channel: VariationChannel,
        *,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self._channel = channel
        self._settle_delay = settle_delay
        self._on_update = on_update
        self._sessions = [VariationSession(index=i) for i in range(VARIATION_COUNT)]
        self._active_task: asyncio.Task[None] | None = None
        self._cancelled = asyncio.Event()
        self._started = False

    @property
    def sessions(self) -> tuple[VariationSession, ...]:
        return tuple(self._sessions)

    def cancel(self) -> None:
        """Close the open channel, or cut the settle delay short, and abort."""
        self._cancelled.set()
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()

    async def run(self, request: GenerationRequest) -> list[GeneratedVariation]:
        if self._started:
            raise RuntimeError("An orchestrator runs a single request")
        self._started = True
        title = request.scraped_content.title if request.scraped_content else None

        for index in range(VARIATION_COUNT):
            if index > 0:
                await self._settle()
            if self._cancelled.is_set():
                self._abort(index)

            self._update(start_session(self._sessions[index]))
            task = asyncio.create_task(self._drive(request, index, title))
            self._active_task = task
            try:
                await task
            except asyncio.CancelledError:
                if not self._cancelled.is_set():
                    raise
                self._abort(index)
            finally:
                if not task.done():
                    task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                self._active_task = None

        return self._aggregate(request)

    async def _settle(self) -> None:
        """Wait out the settle delay, returning early on cancel."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), self._settle_delay)
        except TimeoutError:
            pass

    def _abort(self, index: int) -> None:
        self._update(cancel_session(self._sessions[index]))
        logger.info(f"Generation cancelled during variation {index + 1}")
        raise GenerationCancelled()

    async def _drive(
        self, request: GenerationRequest, index: int, title: str | None
    ) -> None:
        stream = self._channel.stream(request, index)
        try:
            async for event in stream:
                self._update(reduce_event(self._sessions[index], event, title=title))
                if self._sessions[index].is_terminal:
                    break
        except Exception as exc:  # noqa: BLE001
            message = exc.message if isinstance(exc, GenerationError) else str(exc)
            logger.warning(f"Channel for variation {index + 1} failed: {message}")
            self._update(fail_session(self._sessions[index], message, title))
        finally:
            await stream.aclose()

        if not self._sessions[index].is_terminal:
            self._update(
                fail_session(
                    self._sessions[index],
                    "Channel closed without the end-of-stream sentinel",
                    title,
                )
            )

    def _update(self, session: VariationSession) -> None:
        if session == self._sessions[session.index]:
            return
        self._sessions[session.index] = session
        if self._on_update is not None:
            self._on_update(session)

    def _aggregate(self, request: GenerationRequest) -> list[GeneratedVariation]:
        return [
            GeneratedVariation(
                content=session.content,
                markdown=format_as_markdown(
                    session.content, request.selected_images, request.blog_url
                ),
            )
            for session in self._sessions
        ]
