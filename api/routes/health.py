from fastapi import APIRouter

from ..schemas import HealthResponse
from ..tokens import is_token_store_shared

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    token_store = "redis" if is_token_store_shared() else "memory"
    return HealthResponse(status="ok", token_store=token_store)
