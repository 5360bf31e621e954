"""Brave Search lookup backing the web enhancement step."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from core.config import get_settings


logger = logging.getLogger(__name__)

BRAVE_SEARCH_ENDPOINT = "https://api.search.brave.com/res/v1/web/search"
SEARCH_RESULT_LIMIT = 5
SEARCH_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class WebSearchResult:
    title: str
    url: str
    description: str | None


@dataclass(frozen=True)
class WebSearchOutcome:
    status: Literal["ok", "unconfigured", "error"]
    results: list[WebSearchResult] = field(default_factory=list)
    message: str | None = None

    @property
    def citations(self) -> list[str]:
        return [result.url for result in self.results]

    def as_context(self) -> str:
        """Render results as bullet lines for a summarization prompt."""
        lines = []
        for result in self.results:
            line = f"- {result.title} ({result.url})"
            if result.description:
                line += f": {result.description}"
            lines.append(line)
        return "\n".join(lines)


def _get_api_key() -> str | None:
    return get_settings().BRAVE_SEARCH_API_KEY


async def search_web(
    query: str,
    *,
    max_results: int = SEARCH_RESULT_LIMIT,
    country: str = "JP",
    search_lang: str = "jp",
) -> WebSearchOutcome:
    """Search Brave for pages related to an article topic.

    Never raises: a missing key or a failed request is reported through
    ``WebSearchOutcome.status`` so enhancement can fall back to the model's
    own knowledge.
    """
    max_results = min(max_results, SEARCH_RESULT_LIMIT)
    api_key = _get_api_key()
    if not api_key:
        return WebSearchOutcome(
            status="unconfigured",
            message="Brave Search API key is not configured.",
        )

    try:
        async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS) as client:
            response = await client.get(
                BRAVE_SEARCH_ENDPOINT,
                params={
                    "q": query,
                    "count": max_results,
                    "country": country,
                    "search_lang": search_lang,
                },
                headers={
                    "Accept": "application/json",
                    "X-Subscription-Token": api_key,
                },
            )
            response.raise_for_status()
            payload = response.json()

        return WebSearchOutcome(
            status="ok", results=_parse_brave_results(payload, max_results)
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "Brave search request failed: %s - %s", type(exc).__name__, str(exc)
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(
            "Brave search parse failed: %s - %s", type(exc).__name__, str(exc)
        )

    return WebSearchOutcome(
        status="error", message="Unable to fetch search results right now."
    )


def _parse_brave_results(
    payload: dict[str, Any], max_results: int
) -> list[WebSearchResult]:
    web = payload.get("web") or {}
    results: list[WebSearchResult] = []
    for item in (web.get("results") or [])[:max_results]:
        url = item.get("url")
        title = item.get("title")
        if not url or not title:
            continue
        results.append(
            WebSearchResult(
                title=str(title), url=str(url), description=item.get("description")
            )
        )
    return results
