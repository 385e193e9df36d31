# backend/app/api/v1/endpoints/health.py
from datetime import datetime, timezone

from fastapi import APIRouter

from backend.app.core.config import settings
from backend.app.schemas.account import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="OK",
        message=f"{settings.PROJECT_NAME} API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.ENVIRONMENT,
        version=settings.PROJECT_VERSION,
    )
