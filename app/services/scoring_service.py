"""
Scoring Service - Response Scoring Orchestrator
app/services/scoring_service.py

Wires settings into the scoring engine for the HTTP layer:

  1. Parse the survey and answers at the boundary
  2. Run score_response (semantic scorer attached when enabled)
  3. Return the full trace plus the submission summary
  4. Report configuration findings for the builder

The service holds no per-response state; one instance serves every request.
"""

from typing import Any, Dict, List, Mapping, Optional

import structlog

from app.config import Settings, get_settings
from app.models.scoring import ScoringResult, ScoringValidationIssue
from app.models.survey import Survey, parse_answers
from app.scoring.band_resolver import DEFAULT_BAND_DEFINITIONS
from app.scoring.config_normalizer import NormalizedConfig, ScoreConfigNormalizer
from app.scoring.config_validator import summarize_validation, validate_score_config
from app.scoring.semantic_scorer import ChatCompletionSemanticScorer, SemanticScorer
from app.scoring.trace_builder import score_response

logger = structlog.get_logger(__name__)


def build_semantic_scorer(settings: Settings) -> Optional[SemanticScorer]:
    """Chat-completions scorer from settings, or None when disabled."""
    if not settings.SEMANTIC_SCORER_ENABLED:
        return None
    api_key = settings.SEMANTIC_SCORER_API_KEY
    return ChatCompletionSemanticScorer(
        base_url=settings.SEMANTIC_SCORER_BASE_URL,
        api_key=api_key.get_secret_value() if api_key else None,
        model=settings.SEMANTIC_SCORER_MODEL,
        temperature=settings.SEMANTIC_SCORER_TEMPERATURE,
        timeout=settings.SEMANTIC_SCORER_TIMEOUT_SECONDS,
    )


class ScoringService:
    """Scores survey responses and validates scoring configurations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        semantic_scorer: Optional[SemanticScorer] = None,
    ):
        self.settings = settings or get_settings()
        self.semantic_scorer = semantic_scorer or build_semantic_scorer(self.settings)

    async def score(
        self,
        survey: Survey,
        raw_answers: Optional[Mapping[str, Any]],
        response_id: Optional[str] = None,
    ) -> ScoringResult:
        """Score one response and return its full trace."""
        answers = parse_answers(raw_answers)
        result = await score_response(
            survey,
            answers,
            semantic_scorer=self.semantic_scorer,
            timeout=self.settings.SEMANTIC_SCORER_TIMEOUT_SECONDS,
            response_id=response_id,
            point_ceiling=self.settings.SCORING_POINT_CEILING,
            scoring_engine_id=self.settings.SCORING_ENGINE_ID,
        )
        logger.info(
            "response_scored",
            survey_id=survey.id,
            response_id=response_id,
            answers=len(answers),
            **result.summary(),
        )
        return result

    def validate(self, survey: Survey) -> Dict[str, Any]:
        """Configuration findings, their summary, and the repaired config."""
        issues: List[ScoringValidationIssue] = validate_score_config(survey.questions, survey.score_config)
        normalized: Optional[NormalizedConfig] = None
        if survey.score_config is not None:
            normalized = ScoreConfigNormalizer(
                point_ceiling=self.settings.SCORING_POINT_CEILING,
            ).normalize(survey.score_config, survey.questions)

        logger.info("config_validated", survey_id=survey.id, issues=len(issues))
        return {
            "issues": issues,
            "summary": summarize_validation(issues),
            "normalized_config": normalized.config if normalized else None,
            "repairs": normalized.diagnostics if normalized else [],
        }

    @staticmethod
    def default_bands() -> List[Dict[str, Any]]:
        return [
            {
                "band_id": band.band_id.value,
                "label": band.label,
                "color": band.color,
                "min": band.min,
                "max": band.max,
            }
            for band in DEFAULT_BAND_DEFINITIONS
        ]


# Singleton
_service: Optional[ScoringService] = None


def get_scoring_service() -> ScoringService:
    global _service
    if _service is None:
        _service = ScoringService()
    return _service
