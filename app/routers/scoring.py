"""
Survey Scoring API Router
app/routers/scoring.py

Endpoints:
  POST /api/v1/scoring/score          - Score one response (summary + full trace)
  POST /api/v1/scoring/trace          - Read-only scoring trace (dev tools)
  POST /api/v1/scoring/validate       - Configuration findings + repaired config
  GET  /api/v1/scoring/bands/default  - Default five-tier band taxonomy

Register in main.py:
    from app.routers.scoring import router as scoring_router
    app.include_router(scoring_router)
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.config import get_settings
from app.core.dependencies import get_scoring_service_dependency, require_dev_tools
from app.models.scoring import Diagnostic, ScoringResult, ScoringValidationIssue
from app.models.survey import ScoreConfig, Survey
from app.services.scoring_service import ScoringService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix=get_settings().API_V1_PREFIX, tags=["Scoring"])


#  Validation Error Messages


FIELD_MESSAGES = {
    "survey": {
        "missing": "Survey is required",
        "model_type": "Survey must be an object",
    },
    "survey.questions": {
        "list_type": "Survey questions must be a list",
    },
    "answers": {
        "dict_type": "Answers must be an object keyed by question id",
    },
}

DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_type": "Field '{field}' must be a string",
    "bool_type": "Field '{field}' must be a boolean",
    "bool_parsing": "Field '{field}' must be a boolean",
    "float_type": "Field '{field}' must be a number",
    "float_parsing": "Field '{field}' must be a valid number",
    "int_type": "Field '{field}' must be an integer",
    "int_parsing": "Field '{field}' must be a valid integer",
    "list_type": "Field '{field}' must be a list",
    "dict_type": "Field '{field}' must be an object",
    "model_type": "Field '{field}' must be an object",
    "json_invalid": "Malformed JSON request body",
}


def get_validation_message(field: str, error_type: str) -> str:
    if field in FIELD_MESSAGES:
        for key in FIELD_MESSAGES[field]:
            if key in error_type:
                return FIELD_MESSAGES[field][key]
    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)
    return f"Invalid value for field '{field}'"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error_code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": None,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])
    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error_code": "INVALID_REQUEST",
                "message": "Malformed JSON request body",
                "details": None,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    field = ".".join(str(l) for l in loc if l != "body")
    message = get_validation_message(field, error_type)
    logger.info("request_validation_failed", path=request.url.path, field=field, type=error_type)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": message,
            "details": {"field": field, "type": error_type} if field else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


#  Schemas


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScoreRequest(BaseModel):
    """A survey plus one response's answers."""
    survey: Survey
    answers: Dict[str, Any] = Field(default_factory=dict, description="Question id -> answer")
    response_id: Optional[str] = None


class ScoreResponse(BaseModel):
    """Submission summary persisted with the response, plus the full trace."""
    score: Optional[int] = None
    band_id: Optional[str] = None
    band_label: Optional[str] = None
    result: ScoringResult


class ValidateRequest(BaseModel):
    survey: Survey


class ValidationSummary(BaseModel):
    error_count: int
    warning_count: int
    info_count: int
    is_valid: bool


class ValidateResponse(BaseModel):
    issues: List[ScoringValidationIssue]
    summary: ValidationSummary
    normalized_config: Optional[ScoreConfig] = None
    repairs: List[Diagnostic] = Field(default_factory=list)


class DefaultBand(BaseModel):
    band_id: str
    label: str
    color: str
    min: int
    max: int


# =====================================================================
# POST /api/v1/scoring/score - Score one response
# =====================================================================

@router.post(
    "/scoring/score",
    response_model=ScoreResponse,
    responses={422: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
    summary="Score one survey response",
    description="""
    Computes category scores, bands and the overall score for one response.
    Free-text answers are sent to the semantic scorer when it is enabled; its
    failure degrades the result to numeric-only scoring and is reported in
    `result.errors`.
    """,
)
async def score_survey_response(
    body: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service_dependency),
):
    result = await service.score(body.survey, body.answers, response_id=body.response_id)
    return ScoreResponse(**result.summary(), result=result)


# =====================================================================
# POST /api/v1/scoring/trace - Read-only inspection
# =====================================================================

@router.post(
    "/scoring/trace",
    response_model=ScoringResult,
    responses={403: {"description": "Dev tools disabled in production"}},
    summary="Inspect the scoring trace for one response",
    dependencies=[Depends(require_dev_tools)],
)
async def inspect_scoring_trace(
    body: ScoreRequest,
    service: ScoringService = Depends(get_scoring_service_dependency),
):
    """Echo the full trace verbatim. Nothing is persisted."""
    return await service.score(body.survey, body.answers, response_id=body.response_id)


# =====================================================================
# POST /api/v1/scoring/validate - Configuration report
# =====================================================================

@router.post(
    "/scoring/validate",
    response_model=ValidateResponse,
    summary="Validate a survey's scoring configuration",
)
async def validate_scoring_config(
    body: ValidateRequest,
    service: ScoringService = Depends(get_scoring_service_dependency),
):
    return ValidateResponse(**service.validate(body.survey))


# =====================================================================
# GET /api/v1/scoring/bands/default - Default taxonomy
# =====================================================================

@router.get(
    "/scoring/bands/default",
    response_model=List[DefaultBand],
    summary="Default band taxonomy",
)
async def get_default_bands():
    return ScoringService.default_bands()
