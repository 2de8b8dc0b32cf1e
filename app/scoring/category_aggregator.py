"""
Category Aggregator
app/scoring/category_aggregator.py

Sums weighted question contributions per category.

Per scorable question with a known category and a present answer:
    contribution      = score x weight
    max_contribution  = max_points x weight
    raw_total        += contribution
    max_total        += max_contribution
    answered_count   += 1

    normalized_score  = round(raw_total / max_total x 100), 0 when max_total is 0

Category-scoped bands live on 0..scope max (mapped questions x point
ceiling), so a category's score is projected onto that scale before
matching: round(raw_total / max_total x scope max), clamped.

An absent answer key leaves both totals untouched. An answer that is present
but unparseable still adds its max to max_total (it scores 0).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

import structlog

from app.models.enumerations import DiagnosticCode, FREE_TEXT_TYPES, Severity
from app.models.scoring import BandResolution, CategoryBreakdown, Diagnostic, QuestionContribution
from app.models.survey import Answers, Question, ScoreConfig
from app.scoring.band_resolver import BandResolver
from app.scoring.question_calculator import QuestionContributionCalculator
from app.scoring.utils import Number, as_number, clamp, percentage, round_half_up, to_decimal

logger = structlog.get_logger(__name__)


@dataclass
class CategoryTotals:
    """Running totals for one category."""
    category_id: str
    category_name: str
    raw_total: Decimal = Decimal("0")
    max_total: Decimal = Decimal("0")
    answered_count: int = 0
    question_count: int = 0

    def add(self, contribution: Decimal, max_contribution: Decimal) -> None:
        self.raw_total += contribution
        self.max_total += max_contribution
        self.answered_count += 1

    @property
    def normalized_score(self) -> int:
        return percentage(self.raw_total, self.max_total)

    def scaled_score(self, scope_max: Number) -> int:
        """Score projected onto a 0..scope_max band scale, clamped to it."""
        if self.max_total <= 0:
            return 0
        scaled = round_half_up(self.raw_total / self.max_total * to_decimal(scope_max))
        return int(clamp(scaled, 0, round_half_up(scope_max)))


@dataclass
class AggregationOutcome:
    """Output of CategoryAggregator.aggregate()."""
    totals: Dict[str, CategoryTotals]
    contributions: List[QuestionContribution] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class CategoryAggregator:
    """
    Aggregate numeric question contributions into category totals.

    Usage:
        aggregator = CategoryAggregator()
        outcome = aggregator.aggregate(survey.questions, answers, normalized.config)
        breakdowns = aggregator.build_breakdowns(outcome.totals, normalized.config, normalized.category_max)
    """

    def __init__(
        self,
        calculator: Optional[QuestionContributionCalculator] = None,
        band_resolver: Optional[BandResolver] = None,
    ):
        self.calculator = calculator or QuestionContributionCalculator()
        self.band_resolver = band_resolver or BandResolver()

    def aggregate(
        self,
        questions: Sequence[Question],
        answers: Answers,
        config: ScoreConfig,
    ) -> AggregationOutcome:
        totals: Dict[str, CategoryTotals] = {
            c.id: CategoryTotals(category_id=c.id, category_name=c.name) for c in config.categories
        }
        outcome = AggregationOutcome(totals=totals)

        for q in questions:
            if q.question_type in FREE_TEXT_TYPES and q.scoring_category in totals:
                totals[q.scoring_category].question_count += 1
            if not self._is_eligible(q, outcome.diagnostics):
                continue

            category = totals.get(q.scoring_category)
            if category is None:
                outcome.diagnostics.append(Diagnostic(
                    code=DiagnosticCode.UNKNOWN_CATEGORY_REFERENCE,
                    message=f"Question {q.id} has unknown category: {q.scoring_category}",
                    question_id=q.id,
                    category_id=q.scoring_category,
                ))
                continue
            category.question_count += 1

            answer = answers.get(q.id)
            result = self.calculator.contribute(q, answer)
            if result is None:
                continue

            if not result.parsed:
                outcome.diagnostics.append(Diagnostic(
                    code=DiagnosticCode.UNPARSEABLE_ANSWER,
                    message=f"Answer to question {q.id} could not be scored; counted as 0",
                    severity=Severity.INFO,
                    question_id=q.id,
                    category_id=q.scoring_category,
                ))

            weight = to_decimal(q.score_weight)
            contribution = to_decimal(result.score) * weight
            max_contribution = to_decimal(result.max_points) * weight
            category.add(contribution, max_contribution)

            outcome.contributions.append(QuestionContribution(
                question_id=q.id,
                question_text=q.question or "Untitled Question",
                question_type=q.type,
                category_id=category.category_id,
                category_name=category.category_name,
                raw_answer=answer,
                option_score_used=result.option_score_used,
                used_explicit_option_score=result.used_explicit_option_score,
                score=result.score,
                max_points=result.max_points,
                weight=q.score_weight,
                contribution=as_number(contribution),
                max_contribution=as_number(max_contribution),
                normalized_contribution=percentage(result.score, result.max_points),
            ))

        logger.debug(
            "categories_aggregated",
            categories=len(totals),
            contributions=len(outcome.contributions),
        )
        return outcome

    def _is_eligible(self, q: Question, diagnostics: List[Diagnostic]) -> bool:
        """Numerically scorable and tagged; free-text questions go to the semantic scorer."""
        if q.question_type in FREE_TEXT_TYPES:
            return False
        if q.scoring_category and not q.scorable:
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.CATEGORY_WITHOUT_SCORABLE,
                message=f"Question {q.id} has scoringCategory but scorable=false. Skipping.",
                severity=Severity.INFO,
                question_id=q.id,
                category_id=q.scoring_category,
            ))
            return False
        if q.scorable and not q.scoring_category:
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.SCORABLE_WITHOUT_CATEGORY,
                message=f"Question {q.id} is scorable but missing scoringCategory. Skipping.",
                question_id=q.id,
            ))
            return False
        if not q.scorable:
            return False
        if not self.calculator.has_numeric_rule(q):
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.UNSUPPORTED_QUESTION_TYPE,
                message=f"Question {q.id} has type '{q.type}' which has no scoring rule. Skipping.",
                severity=Severity.INFO,
                question_id=q.id,
                category_id=q.scoring_category,
            ))
            return False
        return True

    def build_breakdowns(
        self,
        totals: Dict[str, CategoryTotals],
        config: ScoreConfig,
        category_max: Optional[Mapping[str, Number]] = None,
    ) -> List[CategoryBreakdown]:
        """
        Freeze totals into breakdowns, resolving each category's band.

        Band precedence per category:
          1. custom results-screen bands (0-100) match the normalized score
          2. category-scoped ranges match the score projected onto the
             category scale (category_max, else the widest range's max)
          3. global ranges match the normalized score
          4. the default taxonomy
        """
        global_ranges = config.global_ranges()
        category_max = category_max or {}
        breakdowns = []
        for category_id, data in totals.items():
            normalized = data.normalized_score
            band = self._category_band(
                data, normalized, config, category_id, category_max.get(category_id), global_ranges,
            )
            breakdowns.append(CategoryBreakdown(
                category_id=category_id,
                category_name=data.category_name,
                raw_score=as_number(data.raw_total),
                max_possible_score=as_number(data.max_total),
                normalized_score=normalized,
                answered_count=data.answered_count,
                question_count=data.question_count,
                band=band,
            ))
        return breakdowns

    def _category_band(self, data, normalized, config, category_id, scope_max, global_ranges) -> BandResolution:
        custom_bands = config.custom_bands_for(category_id)
        if custom_bands:
            return self.band_resolver.resolve(normalized, custom_bands)

        category_ranges = config.ranges_for(category_id)
        if category_ranges:
            if not scope_max:
                scope_max = max(r.max for r in category_ranges)
            return self.band_resolver.resolve(
                data.scaled_score(scope_max), category_ranges, color_score=normalized,
            )
        return self.band_resolver.resolve(normalized, global_ranges)
