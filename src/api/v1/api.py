from fastapi import APIRouter

from .generation import router as generation_router
from .health import router as health_router
from .scrape import router as scrape_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(scrape_router)
api_router.include_router(generation_router)
