"""Per-variation session state and the pure event reducer.

``reduce_event`` never mutates its input; it returns a new
``VariationSession``. Progress only moves forward (every update goes
through ``max``) until the session reaches a terminal status.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from schemas.generation import DONE_SENTINEL, TEXT_DELTA_EVENT, TEXT_DONE_EVENT
from services.generation.formatting import fallback_content


class SessionStatus(StrEnum):
    PENDING = "pending"
    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETE, SessionStatus.ERROR, SessionStatus.CANCELLED}
)

# Floors applied with max(); event types not listed leave progress alone.
PROGRESS_FLOORS: dict[str, int] = {
    "process_start": 10,
    "scraped_content": 20,
    "scraping_warning": 25,
    "variation_info": 30,
    "generation_starting": 35,
    "response.created": 40,
    "response.in_progress": 50,
    "web_search_complete": 60,
    "web_search_error": 60,
    "web_search_call": 60,
    TEXT_DONE_EVENT: 98,
}
WEB_SEARCH_CALL_PREFIX = "response.web_search_call."
DELTA_PROGRESS_BASE = 60
DELTA_PROGRESS_CAP = 95
CHARS_PER_PROGRESS_POINT = 15


@dataclass(frozen=True)
class VariationSession:
    index: int
    status: SessionStatus = SessionStatus.PENDING
    progress: int = 0
    accumulated_text: str = ""
    title: str | None = None
    warning: str | None = None
    error: str | None = None
    fallback: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def content(self) -> str:
        return self.accumulated_text


def start_session(session: VariationSession) -> VariationSession:
    return replace(session, status=SessionStatus.LOADING)


def cancel_session(session: VariationSession) -> VariationSession:
    if session.is_terminal:
        return session
    return replace(session, status=SessionStatus.CANCELLED, error="cancelled")


def fail_session(
    session: VariationSession, error: str, title: str | None = None
) -> VariationSession:
    """Terminate with fallback content naming the article and variation."""
    if session.is_terminal:
        return session
    fallback_title = title or session.title
    return replace(
        session,
        status=SessionStatus.ERROR,
        error=error,
        accumulated_text=fallback_content(session.index, fallback_title),
        fallback=True,
    )


def _advance(session: VariationSession, floor: int) -> VariationSession:
    progress = max(session.progress, floor)
    if progress == session.progress:
        return session
    return replace(session, progress=progress)


def reduce_event(
    session: VariationSession,
    event: dict[str, Any] | str,
    *,
    title: str | None = None,
) -> VariationSession:
    """Apply one stream event (or the ``[DONE]`` sentinel) to a session.

    ``title`` is the caller's article title, used for fallback content in
    preference to one reported by ``scraped_content``. Events arriving
    after the session is terminal are ignored.
    """
    if session.is_terminal:
        return session

    if event == DONE_SENTINEL:
        return fail_session(
            session, "Stream closed before the variation completed", title
        )
    if not isinstance(event, dict):
        return session

    event_type = event.get("type")
    if not isinstance(event_type, str):
        return session

    if event_type == "variation_complete":
        return replace(session, status=SessionStatus.COMPLETE, progress=100)

    if event_type == "error":
        return fail_session(session, str(event.get("error") or "Unknown error"), title)

    if event_type == TEXT_DELTA_EVENT:
        delta = event.get("delta")
        if not isinstance(delta, str):
            return session
        text = session.accumulated_text + delta
        floor = min(
            DELTA_PROGRESS_BASE + len(text) // CHARS_PER_PROGRESS_POINT,
            DELTA_PROGRESS_CAP,
        )
        return replace(
            session,
            accumulated_text=text,
            progress=max(session.progress, floor),
        )

    if event_type == "scraped_content":
        data = event.get("data")
        reported = data.get("title") if isinstance(data, dict) else None
        session = _advance(session, PROGRESS_FLOORS[event_type])
        if isinstance(reported, str) and reported:
            session = replace(session, title=reported)
        return session

    if event_type == "scraping_warning":
        session = _advance(session, PROGRESS_FLOORS[event_type])
        return replace(session, warning=str(event.get("warning") or ""))

    if event_type.startswith(WEB_SEARCH_CALL_PREFIX):
        return _advance(session, PROGRESS_FLOORS["web_search_call"])

    floor = PROGRESS_FLOORS.get(event_type)
    if floor is None:
        return session
    return _advance(session, floor)
