"""
Scoring Trace Builder
app/scoring/trace_builder.py

Entry points for one scoring pass over (survey, answers):

    normalize config -> aggregate numeric contributions -> fold semantic
    scores -> category breakdowns + bands -> overall score + band

build_scoring_trace() is pure and synchronous. score_response() adds the
single awaited call to the semantic scorer, bounded by a timeout; a failed
or slow call is recorded as ExternalScorerFailure and the numeric-only
result is returned.
"""

import asyncio
from typing import Any, List, Mapping, Optional, Sequence

import structlog

from app.models.enumerations import DiagnosticCode, Severity
from app.models.scoring import Diagnostic, ScoringMeta, ScoringResult
from app.models.survey import Answers, Survey
from app.scoring.category_aggregator import CategoryAggregator
from app.scoring.config_normalizer import DEFAULT_POINT_CEILING, ScoreConfigNormalizer
from app.scoring.overall_resolver import OverallResolver
from app.scoring.semantic_scorer import SemanticScorer, apply_semantic_scores, build_semantic_items

logger = structlog.get_logger(__name__)

DEFAULT_SCORING_ENGINE_ID = "engagement_v1"


def _meta(survey: Survey, response_id: Optional[str], scoring_engine_id: Optional[str], enabled: bool) -> ScoringMeta:
    return ScoringMeta(
        survey_id=survey.id,
        survey_title=survey.title,
        response_id=response_id,
        scoring_engine_id=survey.scoring_engine_id or scoring_engine_id or DEFAULT_SCORING_ENGINE_ID,
        scoring_enabled=enabled,
    )


def _scoring_enabled(survey: Survey) -> bool:
    return survey.score_config is not None and survey.score_config.enabled


def _disabled_result(survey: Survey, response_id: Optional[str], scoring_engine_id: Optional[str]) -> ScoringResult:
    return ScoringResult(
        meta=_meta(survey, response_id, scoring_engine_id, enabled=False),
        errors=[Diagnostic(
            code=DiagnosticCode.SCORING_DISABLED,
            message="Scoring is not enabled for this survey",
            severity=Severity.INFO,
        )],
    )


def build_scoring_trace(
    survey: Survey,
    answers: Answers,
    *,
    response_id: Optional[str] = None,
    semantic_scores: Optional[Mapping[str, Any]] = None,
    point_ceiling: int = DEFAULT_POINT_CEILING,
    scoring_engine_id: Optional[str] = None,
    diagnostics: Sequence[Diagnostic] = (),
) -> ScoringResult:
    """
    Score one response and return its full trace.

    Args:
        survey: Parsed survey with questions and score configuration.
        answers: Question id -> answer text (or list of texts).
        response_id: Echoed into the result meta.
        semantic_scores: Category id -> score already obtained from the
                         semantic scorer, if any.
        point_ceiling: Per-question ceiling used to size category scales.
        scoring_engine_id: Engine id used when the survey names none.
        diagnostics: Diagnostics gathered before this call (e.g. a failed
                     semantic scorer call); placed ahead of the pass's own.

    Returns:
        ScoringResult. Never raises for malformed survey or answer data.
    """
    if not _scoring_enabled(survey):
        return _disabled_result(survey, response_id, scoring_engine_id)

    errors: List[Diagnostic] = list(diagnostics)

    normalized = ScoreConfigNormalizer(point_ceiling=point_ceiling).normalize(
        survey.score_config, survey.questions,
    )
    config = normalized.config
    errors.extend(normalized.diagnostics)

    aggregator = CategoryAggregator()
    outcome = aggregator.aggregate(survey.questions, answers, config)
    errors.extend(outcome.diagnostics)

    semantic, semantic_diagnostics = apply_semantic_scores(outcome.totals, semantic_scores)
    errors.extend(semantic_diagnostics)

    categories = aggregator.build_breakdowns(outcome.totals, config, normalized.category_max)
    overall = OverallResolver(aggregator.band_resolver).resolve(categories, config.global_ranges())
    errors.extend(overall.diagnostics)

    result = ScoringResult(
        meta=_meta(survey, response_id, scoring_engine_id, enabled=True),
        config=config,
        questions=outcome.contributions,
        semantic=semantic,
        categories=categories,
        overall=overall.overall,
        errors=errors,
    )
    logger.info(
        "scoring_trace_built",
        survey_id=survey.id,
        response_id=response_id,
        categories=len(categories),
        contributions=len(outcome.contributions),
        semantic_contributions=len(semantic),
        diagnostics=len(errors),
        overall_score=result.summary()["score"],
    )
    return result


async def score_response(
    survey: Survey,
    answers: Answers,
    *,
    semantic_scorer: Optional[SemanticScorer] = None,
    timeout: Optional[float] = None,
    response_id: Optional[str] = None,
    point_ceiling: int = DEFAULT_POINT_CEILING,
    scoring_engine_id: Optional[str] = None,
) -> ScoringResult:
    """
    Score one response, consulting the semantic scorer for free-text answers.

    The scorer is awaited at most once. Its failure or timeout never aborts
    the pass.
    """
    if not _scoring_enabled(survey):
        return _disabled_result(survey, response_id, scoring_engine_id)

    config = survey.score_config
    items = build_semantic_items(survey, answers, config)
    semantic_scores: Optional[Mapping[str, Any]] = None
    diagnostics: List[Diagnostic] = []

    if items and semantic_scorer is None:
        diagnostics.append(Diagnostic(
            code=DiagnosticCode.EXTERNAL_SCORER_FAILURE,
            message=f"No semantic scorer configured; {len(items)} free-text answers not scored",
            severity=Severity.INFO,
        ))
    elif items:
        categories = [(c.id, c.name) for c in config.categories]
        try:
            semantic_scores = await asyncio.wait_for(semantic_scorer.score(items, categories), timeout)
        except asyncio.TimeoutError:
            logger.warning("semantic_scorer_timeout", survey_id=survey.id, timeout=timeout)
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.EXTERNAL_SCORER_FAILURE,
                message=f"Semantic scorer timed out after {timeout}s; numeric scores only",
            ))
        except Exception as e:
            logger.warning("semantic_scorer_failed", survey_id=survey.id, error=str(e))
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.EXTERNAL_SCORER_FAILURE,
                message=f"Semantic scorer failed: {e}; numeric scores only",
            ))

    return build_scoring_trace(
        survey,
        answers,
        response_id=response_id,
        semantic_scores=semantic_scores,
        point_ceiling=point_ceiling,
        scoring_engine_id=scoring_engine_id,
        diagnostics=diagnostics,
    )
