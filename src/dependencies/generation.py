"""FastAPI providers for the generation pipeline collaborators.

Tests replace these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from core.config import get_settings
from services.generation.backend import GenerationBackend, OpenAIResponsesBackend
from services.generation.enhancement import WebEnhancer
from services.generation.model_factory import get_openai_client
from services.generation.relay import Scraper
from services.generation.session import Enhancer
from services.scraper import BlogScraper


def get_scraper() -> Scraper:
    return BlogScraper(timeout=get_settings().SCRAPE_TIMEOUT_SECONDS)


def get_generation_backend() -> GenerationBackend | None:
    """Return the OpenAI backend, or None when no API key is configured."""
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        return None
    return OpenAIResponsesBackend(get_openai_client(), settings.GENERATION_MODEL)


def get_enhancer() -> Enhancer:
    return WebEnhancer()


ScraperDep = Annotated[Scraper, Depends(get_scraper)]
BackendDep = Annotated[GenerationBackend | None, Depends(get_generation_backend)]
EnhancerDep = Annotated[Enhancer, Depends(get_enhancer)]
