from fastapi import APIRouter

from schemas.api import ApiResponse


router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict[str, str]])
def health_check() -> ApiResponse[dict[str, str]]:
    """Liveness check for monitoring and load balancers."""
    return ApiResponse(
        success=True,
        data={"status": "healthy", "message": "LINE Content Studio API is running"},
        message="Health check successful",
    )
