"""
Health Check Router - Survey Scoring Platform
app/routers/health.py

Reports service status and, when the semantic scorer is enabled, whether
its endpoint is configured.
"""
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.config import Settings, get_settings

router = APIRouter(tags=["Health"])


#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str
    dependencies: Dict[str, str]


#  Dependency Checks


def check_semantic_scorer(settings: Settings) -> str:
    """Configuration check only; no request is sent to the scorer."""
    if not settings.SEMANTIC_SCORER_ENABLED:
        return "disabled"
    if not settings.SEMANTIC_SCORER_API_KEY:
        return f"configured (URL: {settings.SEMANTIC_SCORER_BASE_URL}, no API key)"
    return f"configured (URL: {settings.SEMANTIC_SCORER_BASE_URL})"


#  Main Health Check Route


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Service status, version and environment.",
)
async def health_check(settings: Settings = Depends(get_settings)):
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
        dependencies={"semantic_scorer": check_semantic_scorer(settings)},
    )
