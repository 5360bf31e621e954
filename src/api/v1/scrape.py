from fastapi import APIRouter

from core.exceptions import UpstreamServiceError
from dependencies.generation import ScraperDep
from schemas.api import ApiResponse
from schemas.generation import ScrapedArticle, ScrapeRequest
from services.generation.exceptions import ScrapeFailure


router = APIRouter(tags=["scrape"])


@router.post("/scrape", response_model=ApiResponse[ScrapedArticle])
async def scrape_article(
    payload: ScrapeRequest, scraper: ScraperDep
) -> ApiResponse[ScrapedArticle]:
    """Scrape an article without generating anything.

    Invalid URLs surface as 422 and fetch failures as 502.
    """
    try:
        article = await scraper.scrape(payload.url)
    except ScrapeFailure as exc:
        raise UpstreamServiceError(exc.message) from exc
    return ApiResponse(success=True, data=article, message="Article scraped")
