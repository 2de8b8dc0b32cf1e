"""
Score Configuration Validator
app/scoring/config_validator.py

Builder / publish-time checks on a raw (not yet normalized) score config.
Findings are reported, not repaired; the normalizer does the repairing at
scoring time.

Checks:
    NO_BANDS_DEFINED          warning  scoring on, no survey-level bands
    BAND_GAP                  error    part of 0-100 has no band
    BAND_OVERLAP              error    two bands share scores
    INVALID_BAND_RANGE        error    min >= max
    BAND_OUT_OF_RANGE         error    min < 0   (warning for max > 100)
    UNUSED_CATEGORY           warning  category has no scorable question
    SCORABLE_NO_CATEGORY      warning  scorable question without a category
    INVALID_CATEGORY_REF      error    question points at an undeclared category
    MISSING_OPTION_SCORES     warning  choice question without optionScores
    WEIGHT_IMBALANCE          warning  one question > 50% of total weight
    EXTREME_WEIGHT_VARIANCE   info     max weight > 5x min weight

Weight checks need at least 3 scorable questions.
"""

from typing import Dict, List, Optional, Sequence

from app.models.enumerations import QuestionType, Severity
from app.models.scoring import ScoringValidationIssue
from app.models.survey import Question, ScoreConfig, ScoreRange

OPTION_SCORED_TYPES = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.DROPDOWN,
    QuestionType.YES_NO,
    QuestionType.CHECKBOX,
})
WEIGHT_SHARE_LIMIT = 50.0
WEIGHT_RATIO_LIMIT = 5.0
MIN_QUESTIONS_FOR_WEIGHT_CHECKS = 3


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _check_band_coverage(bands: Sequence[ScoreRange]) -> List[ScoringValidationIssue]:
    if not bands:
        return [ScoringValidationIssue(
            code="NO_BANDS_DEFINED",
            severity=Severity.WARNING,
            message="Scoring is enabled but no score bands are defined",
        )]

    issues = []
    coverage = 0.0
    for band in sorted(bands, key=lambda b: b.min):
        if band.min > coverage:
            issues.append(ScoringValidationIssue(
                code="BAND_GAP",
                severity=Severity.ERROR,
                message=f"Score range {_fmt(coverage)}-{_fmt(band.min - 1)} has no assigned band",
                details={"gap_start": coverage, "gap_end": band.min - 1},
            ))
        coverage = max(coverage, band.max + 1)

    if coverage <= 100:
        issues.append(ScoringValidationIssue(
            code="BAND_GAP",
            severity=Severity.ERROR,
            message=f"Score range {_fmt(coverage)}-100 has no assigned band",
            details={"gap_start": coverage, "gap_end": 100},
        ))
    return issues


def _check_band_overlaps(bands: Sequence[ScoreRange]) -> List[ScoringValidationIssue]:
    issues = []
    for i, a in enumerate(bands):
        for b in bands[i + 1:]:
            if a.min <= b.max and b.min <= a.max:
                start, end = max(a.min, b.min), min(a.max, b.max)
                issues.append(ScoringValidationIssue(
                    code="BAND_OVERLAP",
                    severity=Severity.ERROR,
                    message=f'Bands "{a.label}" and "{b.label}" overlap in range {_fmt(start)}-{_fmt(end)}',
                    band_id=a.id,
                    details={
                        "band1": {"id": a.id, "label": a.label, "min": a.min, "max": a.max},
                        "band2": {"id": b.id, "label": b.label, "min": b.min, "max": b.max},
                        "overlap_range": {"start": start, "end": end},
                    },
                ))
    return issues


def _check_band_bounds(bands: Sequence[ScoreRange]) -> List[ScoringValidationIssue]:
    issues = []
    for band in bands:
        if band.min >= band.max:
            issues.append(ScoringValidationIssue(
                code="INVALID_BAND_RANGE",
                severity=Severity.ERROR,
                message=(
                    f'Band "{band.label}" has invalid range: '
                    f"min ({_fmt(band.min)}) >= max ({_fmt(band.max)})"
                ),
                band_id=band.id,
                details={"min": band.min, "max": band.max},
            ))
        if band.min < 0:
            issues.append(ScoringValidationIssue(
                code="BAND_OUT_OF_RANGE",
                severity=Severity.ERROR,
                message=f'Band "{band.label}" has negative min value ({_fmt(band.min)})',
                band_id=band.id,
            ))
        if band.max > 100:
            issues.append(ScoringValidationIssue(
                code="BAND_OUT_OF_RANGE",
                severity=Severity.WARNING,
                message=f'Band "{band.label}" max value ({_fmt(band.max)}) exceeds 100',
                band_id=band.id,
            ))
    return issues


def _check_category_usage(questions: Sequence[Question], config: ScoreConfig) -> List[ScoringValidationIssue]:
    counts: Dict[str, int] = {c.id: 0 for c in config.categories}
    for q in questions:
        if q.scorable and q.scoring_category in counts:
            counts[q.scoring_category] += 1
    return [
        ScoringValidationIssue(
            code="UNUSED_CATEGORY",
            severity=Severity.WARNING,
            message=(
                f'Category "{config.category_name(category_id)}" is defined '
                "but no questions are assigned to it"
            ),
            category_id=category_id,
        )
        for category_id, count in counts.items()
        if count == 0
    ]


def _check_scorable_questions(questions: Sequence[Question], config: ScoreConfig) -> List[ScoringValidationIssue]:
    issues = []
    category_ids = set(config.category_ids())
    for q in questions:
        if not q.scorable:
            continue
        if not q.scoring_category:
            issues.append(ScoringValidationIssue(
                code="SCORABLE_NO_CATEGORY",
                severity=Severity.WARNING,
                message=f'Scorable question "{q.question[:50]}..." has no category assigned',
                question_id=q.id,
            ))
        elif category_ids and q.scoring_category not in category_ids:
            issues.append(ScoringValidationIssue(
                code="INVALID_CATEGORY_REF",
                severity=Severity.ERROR,
                message=f'Question references non-existent category "{q.scoring_category}"',
                question_id=q.id,
                category_id=q.scoring_category,
            ))
        if q.question_type in OPTION_SCORED_TYPES and not q.option_scores:
            issues.append(ScoringValidationIssue(
                code="MISSING_OPTION_SCORES",
                severity=Severity.WARNING,
                message=f"Scorable {q.type} question has no option scores defined",
                question_id=q.id,
            ))
    return issues


def _check_weight_distribution(questions: Sequence[Question]) -> List[ScoringValidationIssue]:
    scorable = [q for q in questions if q.scorable]
    if len(scorable) < MIN_QUESTIONS_FOR_WEIGHT_CHECKS:
        return []

    issues = []
    weights = [q.score_weight for q in scorable]
    total = sum(weights)
    if total > 0:
        for q in scorable:
            share = q.score_weight / total * 100
            if share > WEIGHT_SHARE_LIMIT:
                issues.append(ScoringValidationIssue(
                    code="WEIGHT_IMBALANCE",
                    severity=Severity.WARNING,
                    message=(
                        f"Question has {share:.0f}% of total weight "
                        f"({_fmt(q.score_weight)} of {_fmt(total)})"
                    ),
                    question_id=q.id,
                    details={"weight": q.score_weight, "total_weight": total, "percentage": share},
                ))

    high, low = max(weights), min(weights)
    if low > 0 and high > low * WEIGHT_RATIO_LIMIT:
        issues.append(ScoringValidationIssue(
            code="EXTREME_WEIGHT_VARIANCE",
            severity=Severity.INFO,
            message=(
                f"Weight variance is high: max weight ({_fmt(high)}) is "
                f"{high / low:.1f}x the min weight ({_fmt(low)})"
            ),
            details={"max_weight": high, "min_weight": low, "ratio": high / low},
        ))
    return issues


def validate_score_config(
    questions: Sequence[Question],
    config: Optional[ScoreConfig],
) -> List[ScoringValidationIssue]:
    """
    Run every configuration check.

    Band checks look at survey-level bands only (0-100 scale); category
    bands live on their category's raw scale and are sized at scoring time.
    Returns an empty list when scoring is disabled.
    """
    if config is None or not config.enabled:
        return []

    bands = config.global_ranges()
    issues: List[ScoringValidationIssue] = []
    issues.extend(_check_band_coverage(bands))
    issues.extend(_check_band_overlaps(bands))
    issues.extend(_check_band_bounds(bands))
    if config.categories:
        issues.extend(_check_category_usage(questions, config))
    issues.extend(_check_scorable_questions(questions, config))
    issues.extend(_check_weight_distribution(questions))
    return issues


def summarize_validation(issues: Sequence[ScoringValidationIssue]) -> Dict[str, object]:
    """Counts by severity; a config is valid when it has no errors."""
    errors = sum(1 for i in issues if i.severity == Severity.ERROR)
    warnings = sum(1 for i in issues if i.severity == Severity.WARNING)
    infos = sum(1 for i in issues if i.severity == Severity.INFO)
    return {
        "error_count": errors,
        "warning_count": warnings,
        "info_count": infos,
        "is_valid": errors == 0,
    }
