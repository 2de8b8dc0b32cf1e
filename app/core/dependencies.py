"""
Dependencies - Survey Scoring Platform
app/core/dependencies.py

FastAPI dependency injection for the scoring service and endpoint gates.
"""

from fastapi import Depends, HTTPException, status

from app.config import Settings, get_settings
from app.core.exceptions import DevToolsDisabledException
from app.services.scoring_service import ScoringService, get_scoring_service


def get_scoring_service_dependency() -> ScoringService:
    """Get the shared ScoringService instance."""
    return get_scoring_service()


def require_dev_tools(settings: Settings = Depends(get_settings)) -> None:
    """Reject inspection requests in production unless dev tools are enabled."""
    if not settings.dev_tools_enabled:
        exc = DevToolsDisabledException()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
