"""Domain exceptions for the variation generation pipeline.

Each exception carries a stable ``error_code`` for log and span tagging.
Where each one is recovered:

- ``ScrapeFailure``: in the stream relay, which substitutes placeholder
  content and emits ``scraping_warning``.
- ``EnhancementFailure``: in the generation session, which emits
  ``web_search_error`` and continues without enhancement data.
- ``BackendConnectionFailure``: fatal to one session only; the relay turns
  it into an ``error`` event.
- ``EmptyResultAnomaly``: retried a bounded number of times inside the
  session, then surfaced as a ``BackendConnectionFailure``.
- ``ProtocolMalformedEvent``: dropped and logged wherever it is detected.
- ``GenerationCancelled``: aborts the whole request on the client side.
- ``ChannelFailure``: the client could not open or finish reading a
  channel; the orchestrator treats it like an `error` event.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class GenerationError(Exception):
    """Base class for generation pipeline errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class ScrapeFailure(GenerationError):
    def __init__(self, message: str = "Failed to scrape the source article") -> None:
        super().__init__(message=message, error_code="scrape_failed")


class EnhancementFailure(GenerationError):
    def __init__(self, message: str = "Web enhancement lookup failed") -> None:
        super().__init__(message=message, error_code="enhancement_failed")


class BackendConnectionFailure(GenerationError):
    def __init__(
        self,
        message: str = "Could not connect to the generation backend",
        error_code: str = "backend_unavailable",
    ) -> None:
        super().__init__(message=message, error_code=error_code)


class EmptyResultAnomaly(BackendConnectionFailure):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            message=f"Backend returned empty content after {attempts} attempts",
            error_code="empty_result",
        )
        self.attempts = attempts


class ProtocolMalformedEvent(GenerationError):
    def __init__(self, message: str = "Malformed stream event") -> None:
        super().__init__(message=message, error_code="malformed_event")


class GenerationCancelled(GenerationError):
    def __init__(self, message: str = "Generation was cancelled") -> None:
        super().__init__(message=message, error_code="cancelled")


class ChannelFailure(GenerationError):
    def __init__(self, message: str = "Stream channel could not be read") -> None:
        super().__init__(message=message, error_code="channel_failed")
