"""
Survey boundary models.

Loosely-typed survey JSON (camelCase keys from the builder, legacy
minScore/maxScore range keys) is parsed once into these frozen models.
Structural repairs that need no survey-wide context happen here; range
repairs that depend on category scale happen in the config normalizer.
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.enumerations import QuestionType

MAX_SCORE_WEIGHT = 1000.0

AnswerValue = Union[str, List[str]]
Answers = Dict[str, AnswerValue]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ScoringCategory(_FrozenModel):
    """A named grouping of questions scored together."""

    id: str = Field(..., min_length=1, description="Category identifier")
    name: str = Field(default="", validate_default=True, description="Display name")

    @field_validator("name", mode="after")
    @classmethod
    def default_name(cls, v: str, info) -> str:
        if v:
            return v
        category_id = info.data.get("id", "")
        return category_id[:1].upper() + category_id[1:]


class ScoreRange(_FrozenModel):
    """A labeled inclusive interval of scores (a band)."""

    id: str = Field(default="", description="Range identifier")
    min: float = Field(default=0, validation_alias=AliasChoices("min", "minScore"))
    max: float = Field(default=0, validation_alias=AliasChoices("max", "maxScore"))
    label: str = Field(default="")
    category: Optional[str] = Field(
        default=None,
        description="Category id for category-scoped ranges; None for global ranges",
    )
    color: Optional[str] = None
    interpretation: Optional[str] = None

    @field_validator("min", "max", mode="before")
    @classmethod
    def finite_bound(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        return value if math.isfinite(value) else 0.0


def _dedupe_ranges(ranges: List[ScoreRange]) -> List[ScoreRange]:
    """Give id-less ranges positional ids and drop repeated ids (first wins)."""
    seen = set()
    result = []
    for index, score_range in enumerate(ranges):
        if not score_range.id:
            score_range = score_range.model_copy(update={"id": f"range-{index + 1}"})
        if score_range.id in seen:
            continue
        seen.add(score_range.id)
        result.append(score_range)
    return result


class ResultsCategoryConfig(_FrozenModel):
    """Per-category results-screen settings; custom bands are on the 0-100 scale."""

    category_id: str = Field(default="", alias="categoryId")
    bands_mode: str = Field(default="global", alias="bandsMode")
    bands: Optional[List[ScoreRange]] = None

    @field_validator("bands", mode="after")
    @classmethod
    def dedupe_bands(cls, v: Optional[List[ScoreRange]]) -> Optional[List[ScoreRange]]:
        return _dedupe_ranges(v) if v is not None else None

    @property
    def uses_custom_bands(self) -> bool:
        return self.bands_mode == "custom" and bool(self.bands)


class ResultsScreenConfig(_FrozenModel):
    """Presentation metadata for the respondent-facing results screen."""

    enabled: bool = True
    title: Optional[str] = None
    description: Optional[str] = None
    show_total_score: bool = Field(default=True, alias="showTotalScore")
    show_category_breakdown: bool = Field(default=True, alias="showCategoryBreakdown")
    score_ranges: Optional[List[ScoreRange]] = Field(default=None, alias="scoreRanges")
    categories: Optional[List[ResultsCategoryConfig]] = None

    @field_validator("score_ranges", mode="after")
    @classmethod
    def dedupe_ranges(cls, v: Optional[List[ScoreRange]]) -> Optional[List[ScoreRange]]:
        return _dedupe_ranges(v) if v is not None else None

    @field_validator("categories", mode="before")
    @classmethod
    def drop_malformed_categories(cls, v: Any) -> Any:
        if v is None:
            return None
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, (Mapping, ResultsCategoryConfig))]

    def category_settings(self, category_id: str) -> Optional[ResultsCategoryConfig]:
        """First entry for the category, if any."""
        for entry in self.categories or []:
            if entry.category_id == category_id:
                return entry
        return None


class ScoreConfig(_FrozenModel):
    """Scoring configuration: categories, bands and results-screen metadata."""

    enabled: bool = False
    categories: List[ScoringCategory] = Field(default_factory=list)
    score_ranges: List[ScoreRange] = Field(default_factory=list, alias="scoreRanges")
    results_screen: Optional[ResultsScreenConfig] = Field(default=None, alias="resultsScreen")
    dropped_categories: int = Field(
        default=0,
        exclude=True,
        description="Category entries discarded while parsing (missing id or repeated id)",
    )

    @model_validator(mode="before")
    @classmethod
    def dedupe_categories(cls, data: Any) -> Any:
        """Drop category entries without an id and repeated ids (first wins)."""
        if not isinstance(data, Mapping) or "categories" not in data:
            return data
        raw = data["categories"]
        if not isinstance(raw, list):
            raw = []
        seen = set()
        kept = []
        for entry in raw:
            if isinstance(entry, ScoringCategory):
                category_id = entry.id
            elif isinstance(entry, Mapping):
                category_id = entry.get("id")
            else:
                category_id = None
            if not isinstance(category_id, str) or not category_id or category_id in seen:
                continue
            seen.add(category_id)
            kept.append(entry)
        return {**data, "categories": kept, "dropped_categories": len(raw) - len(kept)}

    @field_validator("score_ranges", mode="after")
    @classmethod
    def dedupe_ranges(cls, v: List[ScoreRange]) -> List[ScoreRange]:
        return _dedupe_ranges(v)

    def category_ids(self) -> List[str]:
        return [c.id for c in self.categories]

    def category_name(self, category_id: str) -> str:
        for category in self.categories:
            if category.id == category_id:
                return category.name
        return category_id

    def global_ranges(self) -> List[ScoreRange]:
        """Survey-level ranges; results-screen ranges take precedence when set."""
        if self.results_screen and self.results_screen.score_ranges:
            return [r for r in self.results_screen.score_ranges if not r.category]
        return [r for r in self.score_ranges if not r.category]

    def ranges_for(self, category_id: str) -> List[ScoreRange]:
        return [r for r in self.score_ranges if r.category == category_id]

    def custom_bands_for(self, category_id: str) -> List[ScoreRange]:
        """Results-screen custom bands for a category; empty when it uses the global bands."""
        if self.results_screen is None:
            return []
        settings = self.results_screen.category_settings(category_id)
        if settings is None or not settings.uses_custom_bands:
            return []
        return list(settings.bands)


class Question(_FrozenModel):
    """A survey question with its scoring parameters."""

    id: str = Field(..., min_length=1)
    type: str = Field(..., description="Question type; unknown types are never scored")
    question: str = Field(default="", description="Question text")
    scorable: bool = False
    scoring_category: Optional[str] = Field(default=None, alias="scoringCategory")
    score_weight: float = Field(default=1.0, alias="scoreWeight")
    option_scores: Optional[Dict[str, int]] = Field(default=None, alias="optionScores")

    # Type-specific parameters
    options: Optional[List[str]] = None
    rating_scale: Optional[int] = Field(default=None, alias="ratingScale")
    likert_points: Optional[int] = Field(default=None, alias="likertPoints")
    min: Optional[float] = None
    max: Optional[float] = None
    max_selections: Optional[int] = Field(default=None, alias="maxSelections")
    image_options: Optional[List[Any]] = Field(default=None, alias="imageOptions")
    row_labels: Optional[List[str]] = Field(default=None, alias="rowLabels")
    col_labels: Optional[List[str]] = Field(default=None, alias="colLabels")
    total_points: Optional[int] = Field(default=None, alias="totalPoints")

    @field_validator("score_weight", mode="before")
    @classmethod
    def clamp_score_weight(cls, v: Any) -> float:
        """Missing or non-finite weights fall back to 1; absurd weights are capped."""
        if v is None:
            return 1.0
        try:
            weight = float(v)
        except (TypeError, ValueError):
            return 1.0
        if not math.isfinite(weight):
            return 1.0
        return max(0.0, min(weight, MAX_SCORE_WEIGHT))

    @field_validator("option_scores", mode="before")
    @classmethod
    def sanitize_option_scores(cls, v: Any) -> Optional[Dict[str, int]]:
        """Non-numeric or non-finite option scores become 0."""
        if v is None:
            return None
        if not isinstance(v, Mapping):
            return None
        result = {}
        for key, raw in v.items():
            try:
                value = float(raw)
            except (TypeError, ValueError):
                value = 0.0
            result[str(key)] = int(math.floor(value + 0.5)) if math.isfinite(value) else 0
        return result

    @property
    def question_type(self) -> Optional[QuestionType]:
        return QuestionType.parse(self.type)


class Survey(_FrozenModel):
    """The survey being scored: its questions plus scoring configuration."""

    id: str = ""
    title: str = "Untitled Survey"
    questions: List[Question] = Field(default_factory=list)
    score_config: Optional[ScoreConfig] = Field(default=None, alias="scoreConfig")
    scoring_engine_id: Optional[str] = Field(default=None, alias="scoringEngineId")


def parse_answers(raw: Optional[Mapping[str, Any]]) -> Answers:
    """
    Coerce a raw answers mapping into question id → text or list of texts.

    None values count as "not answered" and are dropped; other scalars are
    stringified so that numeric answers submitted as JSON numbers still parse.
    """
    answers: Answers = {}
    if not raw:
        return answers
    for question_id, value in raw.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            answers[str(question_id)] = [_answer_text(item) for item in value if item is not None]
        else:
            answers[str(question_id)] = _answer_text(value)
    return answers


def _answer_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
