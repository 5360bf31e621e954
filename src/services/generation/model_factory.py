"""Centralized factory for the OpenAI clients used by generation.

Usage:
    from services.generation.model_factory import get_openai_client, get_text_model

    client = get_openai_client()  # AsyncOpenAI for the Responses stream
    model = get_text_model()  # pydantic-ai Model for the enhancement summary
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from openai import AsyncOpenAI
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.openai import OpenAIProvider

from core.config import get_settings


if TYPE_CHECKING:
    from httpx import AsyncClient

logger = logging.getLogger(__name__)


def _require_api_key() -> str:
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        raise ValueError(
            "No generation backend configured. Set OPENAI_API_KEY to enable "
            "content generation."
        )
    return settings.OPENAI_API_KEY


def get_openai_client(http_client: AsyncClient | None = None) -> AsyncOpenAI:
    """Build an AsyncOpenAI client with the configured timeout and retries.

    Args:
        http_client: Optional HTTP client, mainly for tests.

    Raises:
        ValueError: If ``OPENAI_API_KEY`` is not configured.
    """
    settings = get_settings()
    return AsyncOpenAI(
        api_key=_require_api_key(),
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=settings.LLM_MAX_RETRIES,
        http_client=http_client,
    )


def get_text_model(http_client: AsyncClient | None = None) -> Model:
    """Get the text model used to summarize enhancement research.

    Args:
        http_client: Optional HTTP client for custom retry logic.

    Returns:
        A pydantic-ai Model bound to the OpenAI provider.
    """
    settings = get_settings()
    provider = OpenAIProvider(api_key=_require_api_key(), http_client=http_client)
    logger.info(f"Using OpenAI enhancement model: {settings.ENHANCEMENT_MODEL}")
    return OpenAIModel(settings.ENHANCEMENT_MODEL, provider=provider)
