"""
Scoring result models.

A ScoringResult is built fresh by every scoring pass and never mutated
afterwards. The same value is persisted in summary form on submission and
echoed verbatim by the inspection endpoint.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.enumerations import DiagnosticCode, Severity
from app.models.survey import ScoreConfig, ScoreRange


class _ResultModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Diagnostic(_ResultModel):
    """A non-fatal problem found while scoring."""

    code: DiagnosticCode
    message: str
    severity: Severity = Severity.WARNING
    question_id: Optional[str] = None
    category_id: Optional[str] = None


class QuestionContribution(_ResultModel):
    """How one answered question fed its category."""

    question_id: str
    question_text: str
    question_type: str
    category_id: str
    category_name: str
    raw_answer: Union[str, List[str]]
    option_score_used: Optional[int] = Field(
        default=None, description="The optionScores value used, if one matched"
    )
    used_explicit_option_score: bool = False
    score: int
    max_points: float
    weight: float
    contribution: float = Field(..., description="score x weight")
    max_contribution: float = Field(..., description="max_points x weight")
    normalized_contribution: int = Field(..., description="score / max_points on a 0-100 scale")


class SemanticContribution(_ResultModel):
    """One accepted value from the external semantic scorer."""

    category_id: str
    category_name: str
    raw_value: Any = Field(..., description="Value as returned by the collaborator")
    value: int = Field(..., ge=0, le=5)
    max_value: int = 5


class BandResolution(_ResultModel):
    """The band a score resolved to."""

    band_id: str
    label: str
    color: str
    matched_range: Optional[ScoreRange] = Field(
        default=None, description="None when the default taxonomy was used"
    )

    @property
    def is_fallback(self) -> bool:
        return self.matched_range is None


class CategoryBreakdown(_ResultModel):
    category_id: str
    category_name: str
    raw_score: float
    max_possible_score: float
    normalized_score: int = Field(..., description="round(raw / max x 100), 0 when max is 0")
    answered_count: int
    question_count: int = Field(..., description="Scorable and free-text questions mapped to this category")
    band: BandResolution


class OverallResolution(_ResultModel):
    score: int
    band: BandResolution


class ScoringMeta(_ResultModel):
    survey_id: str
    survey_title: str
    response_id: Optional[str] = None
    scoring_engine_id: str
    scoring_enabled: bool


class ScoringResult(_ResultModel):
    """The full, auditable outcome of one scoring pass."""

    meta: ScoringMeta
    config: Optional[ScoreConfig] = Field(
        default=None, description="Normalized configuration snapshot used for this pass"
    )
    questions: List[QuestionContribution] = Field(default_factory=list)
    semantic: List[SemanticContribution] = Field(default_factory=list)
    categories: List[CategoryBreakdown] = Field(default_factory=list)
    overall: Optional[OverallResolution] = None
    errors: List[Diagnostic] = Field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        """Score and band persisted alongside a submitted response."""
        if self.overall is None:
            return {"score": None, "band_id": None, "band_label": None}
        return {
            "score": self.overall.score,
            "band_id": self.overall.band.band_id,
            "band_label": self.overall.band.label,
        }

    def category(self, category_id: str) -> Optional[CategoryBreakdown]:
        for breakdown in self.categories:
            if breakdown.category_id == category_id:
                return breakdown
        return None

    def has_error(self, code: DiagnosticCode) -> bool:
        return any(d.code == code for d in self.errors)


class ScoringValidationIssue(_ResultModel):
    """A configuration finding for builder / publish feedback."""

    code: str
    severity: Severity
    message: str
    question_id: Optional[str] = None
    category_id: Optional[str] = None
    band_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
