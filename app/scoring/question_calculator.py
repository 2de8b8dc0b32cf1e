# app/scoring/question_calculator.py
"""
Question Contribution Calculator
--------------------------------
Pure per-question scoring: (question, answer) -> raw score + theoretical max.

Max points by question type (a zero or missing parameter falls back):
    rating            ratingScale            (5)
    nps               10
    likert            likertPoints           (5)
    opinion_scale     ratingScale            (5)
    slider            max - min              (10)
    multiple_choice   len(options)           (5)
    dropdown          len(options)           (5)
    checkbox          maxSelections          (5)
    image_choice      len(imageOptions) / len(options)  (5)
    yes_no            1
    matrix            len(rowLabels) x len(colLabels)   (1 x 5)
    ranking           len(options)           (5)
    constant_sum      totalPoints            (100)
    number            10
Any other type has no numeric rule and never contributes here.

Raw score resolution order (first answer text for list answers):
    1. optionScores[answer]          explicit points, used verbatim
    2. leading integer in the answer e.g. "4" or "4 - Agree"
    3. 1-based option position       multiple_choice / dropdown only
    4. 0                             answer is unparseable
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

from app.models.enumerations import QuestionType
from app.models.survey import AnswerValue, Question

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _count_or(default: int, *collections) -> int:
    for collection in collections:
        if collection:
            return len(collection)
    return default


def _slider_points(q: Question) -> float:
    if q.max is None:
        return 10
    span = q.max - (q.min or 0)
    if span <= 0:
        return 10
    return int(span) if float(span).is_integer() else span


_MAX_POINTS_RULES: Dict[QuestionType, Callable[[Question], float]] = {
    QuestionType.RATING:          lambda q: q.rating_scale or 5,
    QuestionType.NPS:             lambda q: 10,
    QuestionType.LIKERT:          lambda q: q.likert_points or 5,
    QuestionType.OPINION_SCALE:   lambda q: q.rating_scale or 5,
    QuestionType.SLIDER:          _slider_points,
    QuestionType.MULTIPLE_CHOICE: lambda q: _count_or(5, q.options),
    QuestionType.DROPDOWN:        lambda q: _count_or(5, q.options),
    QuestionType.CHECKBOX:        lambda q: q.max_selections or 5,
    QuestionType.IMAGE_CHOICE:    lambda q: _count_or(5, q.image_options, q.options),
    QuestionType.YES_NO:          lambda q: 1,
    QuestionType.MATRIX:          lambda q: _count_or(1, q.row_labels) * _count_or(5, q.col_labels),
    QuestionType.RANKING:         lambda q: _count_or(5, q.options),
    QuestionType.CONSTANT_SUM:    lambda q: q.total_points or 100,
    QuestionType.NUMBER:          lambda q: 10,
}

# Types whose unmatched answers fall back to their position in the option list
_POSITION_SCORED_TYPES: FrozenSet[QuestionType] = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.DROPDOWN,
})

NUMERIC_SCORED_TYPES: FrozenSet[QuestionType] = frozenset(_MAX_POINTS_RULES)


@dataclass(frozen=True)
class QuestionScore:
    """Output of QuestionContributionCalculator.contribute()."""
    score: int
    max_points: float
    used_explicit_option_score: bool
    option_score_used: Optional[int]
    parsed: bool                    # False when the answer resolved to the zero fallback


def first_answer_text(answer: AnswerValue) -> Optional[str]:
    if isinstance(answer, list):
        return answer[0] if answer else None
    return answer


def parse_leading_int(text: Optional[str]) -> Optional[int]:
    """Integer prefix of text, or None when there is none."""
    if text is None:
        return None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


class QuestionContributionCalculator:
    """Score a single answered question."""

    def has_numeric_rule(self, question: Question) -> bool:
        return question.question_type in NUMERIC_SCORED_TYPES

    def max_points(self, question: Question) -> float:
        """Theoretical max for one question; 0 for types without a rule."""
        rule = _MAX_POINTS_RULES.get(question.question_type)
        return rule(question) if rule else 0

    def raw_score(self, question: Question, answer: AnswerValue) -> QuestionScore:
        """Resolve the raw (unweighted) score for an answer."""
        text = first_answer_text(answer)
        max_points = self.max_points(question)

        option_scores = question.option_scores or {}
        if text is not None and text in option_scores:
            value = option_scores[text]
            return QuestionScore(value, max_points, True, value, True)

        parsed = parse_leading_int(text)
        if parsed is not None:
            return QuestionScore(parsed, max_points, False, None, True)

        if question.question_type in _POSITION_SCORED_TYPES and text is not None:
            options = question.options or []
            if text in options:
                return QuestionScore(options.index(text) + 1, max_points, False, None, True)

        return QuestionScore(0, max_points, False, None, False)

    def contribute(
        self,
        question: Question,
        answer: Optional[AnswerValue],
    ) -> Optional[QuestionScore]:
        """
        Score one question, or None when it does not apply.

        Not applicable: the question is not scorable, has no answer key,
        or its type has no numeric scoring rule.

        Examples:
            >>> calc = QuestionContributionCalculator()
            >>> q = Question(id="q1", type="rating", scorable=True, ratingScale=5)
            >>> calc.contribute(q, "4").score
            4
        """
        if not question.scorable or answer is None:
            return None
        if not self.has_numeric_rule(question):
            return None
        return self.raw_score(question, answer)
