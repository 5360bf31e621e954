"""LINE content generation endpoints (streaming and batch)."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from core.exceptions import UpstreamServiceError
from dependencies.generation import BackendDep, EnhancerDep, ScraperDep
from schemas.api import ApiResponse
from schemas.generation import BatchGenerationResult, GenerationRequest
from services.generation.batch import generate_all_variations
from services.generation.relay import StreamRelay, error_stream
from services.generation.session import GenerationSession


router = APIRouter(prefix="/generate", tags=["generation"])

MISSING_API_KEY_MESSAGE = "OPENAI_API_KEYが設定されていません"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


@router.get(
    "/stream",
    summary="Stream one LINE content variation via Server-Sent Events",
)
async def generate_stream(
    scraper: ScraperDep,
    backend: BackendDep,
    enhancer: EnhancerDep,
    request_data: Annotated[str | None, Query(alias="requestData")] = None,
    variation_index: Annotated[str | None, Query(alias="variationIndex")] = None,
) -> StreamingResponse:
    """Relay one variation's generation as `data: <json>` lines.

    `requestData` is a JSON-encoded GenerationRequest and `variationIndex`
    is 0, 1 or 2. Problems with either parameter are reported as an `error`
    event inside the stream. Every stream ends with `data: [DONE]`.
    """
    if backend is None:
        body = error_stream(MISSING_API_KEY_MESSAGE)
    else:
        relay = StreamRelay(scraper, GenerationSession(backend, enhancer))
        body = relay.open(request_data, variation_index)
    return StreamingResponse(body, media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("", response_model=ApiResponse[BatchGenerationResult])
async def generate_batch(
    payload: GenerationRequest,
    scraper: ScraperDep,
    backend: BackendDep,
    enhancer: EnhancerDep,
) -> ApiResponse[BatchGenerationResult]:
    """Generate all three variations and return them together."""
    if backend is None:
        raise UpstreamServiceError(MISSING_API_KEY_MESSAGE)
    relay = StreamRelay(scraper, GenerationSession(backend, enhancer))
    result = await generate_all_variations(payload, relay)
    return ApiResponse(
        success=True,
        data=result,
        message="Generated 3 variations",
    )
