"""Best-effort web enhancement: research notes about the article topic."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from pydantic_ai import Agent
from pydantic_ai.models import Model

from schemas.generation import GenerationRequest
from services.web_search import WebSearchOutcome, search_web

from .exceptions import EnhancementFailure
from .model_factory import get_text_model


logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "あなたは与えられたトピックについて最新の情報を調べるリサーチアシスタントです。"
    "調べた内容は日本語で簡潔に要約してください。"
)

SearchFn = Callable[[str], Awaitable[WebSearchOutcome]]


@dataclass(frozen=True)
class EnhancementPayload:
    topic: str
    summary: str
    citations: list[str] = field(default_factory=list)


class WebEnhancer:
    """Look up related information and summarize it for the prompt.

    The search step is optional context; the summary comes from the
    enhancement model and is required. Any failure surfaces as
    ``EnhancementFailure``.
    """

    def __init__(
        self, model: Model | None = None, search: SearchFn = search_web
    ) -> None:
        self._model = model
        self._search = search
        self._agent: Agent[None, str] | None = None

    def _get_agent(self) -> Agent[None, str]:
        if self._agent is None:
            self._agent = Agent(
                self._model or get_text_model(),
                output_type=str,
                system_prompt=RESEARCH_SYSTEM_PROMPT,
            )
        return self._agent

    async def enhance(
        self, request: GenerationRequest, topic: str
    ) -> EnhancementPayload:
        query = f"{request.company_name} {topic}".strip()
        outcome = await self._search(query)
        if outcome.status != "ok":
            logger.info(f"Search unavailable for enhancement ({outcome.status})")

        prompt = f"以下のトピックに関する最新情報を調べて要約してください。検索対象: {query}"
        context = outcome.as_context()
        if context:
            prompt += f"\n\n参考になる検索結果:\n{context}"

        try:
            result = await self._get_agent().run(prompt)
        except Exception as exc:
            logger.warning(f"Enhancement summary failed: {exc}")
            raise EnhancementFailure(str(exc)) from exc

        summary = result.output.strip()
        if not summary:
            raise EnhancementFailure("Enhancement model returned an empty summary")
        return EnhancementPayload(
            topic=topic, summary=summary, citations=outcome.citations
        )
