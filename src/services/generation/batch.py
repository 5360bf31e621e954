"""Non-streaming generation of all three variations."""

from __future__ import annotations

import logging

from core.exceptions import UpstreamServiceError
from schemas.generation import (
    TEXT_DELTA_EVENT,
    VARIATION_COUNT,
    BatchGenerationResult,
    GeneratedVariation,
    GenerationRequest,
)

from .exceptions import EmptyResultAnomaly, GenerationError
from .formatting import empty_variation_content, format_as_markdown
from .relay import StreamRelay


logger = logging.getLogger(__name__)


async def generate_all_variations(
    request: GenerationRequest, relay: StreamRelay
) -> BatchGenerationResult:
    """Resolve the article once, then run the three sessions in order.

    A variation that stays empty after the session's retries gets a default
    text, and any whitespace the failed attempts streamed is discarded. A
    session that fails outright
    aborts the batch with ``UpstreamServiceError``.
    """
    article, warning = await relay.resolve_article(request)
    if warning:
        logger.warning(f"Batch generation continuing with degraded article: {warning}")

    options: list[GeneratedVariation] = []
    for index in range(VARIATION_COUNT):
        text = ""
        try:
            async for event in relay.session.run(request, article, index):
                if event.type == TEXT_DELTA_EVENT:
                    text += event.fields["delta"]
        except EmptyResultAnomaly as exc:
            logger.warning(f"Variation {index + 1} left empty: {exc.message}")
            text = ""
        except GenerationError as exc:
            logger.error(f"Variation {index + 1} failed: {exc}")
            raise UpstreamServiceError(
                f"Generation failed for variation {index + 1}: {exc.message}"
            ) from exc

        if not text.strip():
            text = empty_variation_content(index, article.title)
        options.append(
            GeneratedVariation(
                content=text,
                markdown=format_as_markdown(
                    text, request.selected_images, request.blog_url
                ),
            )
        )
        logger.info(f"Variation {index + 1} generated ({len(text)} chars)")

    return BatchGenerationResult(scraped_content=article, generated_options=options)
