"""
Score Configuration Normalizer
app/scoring/config_normalizer.py

Repairs a parsed ScoreConfig before any score is computed, so the rest of
the pipeline can trust its ranges.

Scopes:
  global     ranges without a category (results-screen ranges win), scale 0-100
  category   ranges tagged with a category id, scale 0 .. theoretical max
             theoretical max = questions mapped to the category x point ceiling
  custom     results-screen bands of a category in bandsMode "custom", scale 0-100

Repair pipeline, applied per scope:
  1. clamp bounds into [0, scope max] on the integer grid
  2. swap inverted bounds
  3. relabel duplicate labels by position (Needs Development, Developing,
     Excellent, Outstanding, then "Level N")
  4. drop zero-width ranges, except [0, 0]
  5. sort by min and make contiguous: first min = 0, next min = previous
     max + 1, gaps close by stretching the previous range, last max = scope max
  6. a category left without ranges synthesizes three equal-thirds ranges
     when its own ranges were all dropped or no global ranges exist

Every change is reported as a ConfigurationError diagnostic.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from app.models.enumerations import DiagnosticCode, FREE_TEXT_TYPES, Severity
from app.models.scoring import Diagnostic
from app.models.survey import Question, ResultsCategoryConfig, ResultsScreenConfig, ScoreConfig, ScoreRange
from app.scoring.utils import clamp, round_half_up

logger = structlog.get_logger(__name__)

DEFAULT_POINT_CEILING = 5
GLOBAL_SCOPE_MAX = 100
DEFAULT_LABEL_PROGRESSION = ["Needs Development", "Developing", "Excellent", "Outstanding"]


@dataclass
class _WorkingRange:
    source: ScoreRange
    min: int
    max: int
    label: str

    def build(self) -> ScoreRange:
        interpretation = self.source.interpretation
        if not interpretation:
            interpretation = f"Score range: {self.min}-{self.max}. Performance in the {self.label} category."
        return self.source.model_copy(update={
            "min": self.min,
            "max": self.max,
            "label": self.label,
            "interpretation": interpretation,
        })


@dataclass
class NormalizedConfig:
    """Output of ScoreConfigNormalizer.normalize()."""
    config: ScoreConfig
    diagnostics: List[Diagnostic] = field(default_factory=list)
    category_max: Dict[str, int] = field(default_factory=dict)


def mapped_question_counts(questions: Sequence[Question], category_ids: Sequence[str]) -> Dict[str, int]:
    """Questions mapped to each category (scorable questions and free-text questions)."""
    counts = {category_id: 0 for category_id in category_ids}
    for q in questions:
        if q.scoring_category not in counts:
            continue
        if q.scorable or q.question_type in FREE_TEXT_TYPES:
            counts[q.scoring_category] += 1
    return counts


def generate_fallback_ranges(category_id: str, theoretical_max: int, question_count: int) -> List[ScoreRange]:
    """Three contiguous equal-thirds ranges spanning [0, theoretical_max]."""
    low_end = math.ceil(theoretical_max / 3)
    mid_end = math.ceil(theoretical_max * 2 / 3)
    few_questions = question_count < 5
    specs = [
        (0, low_end, "Developing" if few_questions else "Needs Development",
         "Your performance indicates room for growth in this area."),
        (low_end + 1, mid_end, "Good" if few_questions else "Developing",
         "You demonstrate satisfactory performance with opportunities for improvement."),
        (mid_end + 1, theoretical_max, "Excellent",
         "You demonstrate strong competency and mastery in this area."),
    ]
    ranges = []
    for index, (lo, hi, label, text) in enumerate(specs, start=1):
        if lo > hi:
            continue
        ranges.append(ScoreRange(
            id=f"{category_id}-fallback-{index}",
            min=lo,
            max=hi,
            label=label,
            category=category_id,
            interpretation=f"Score range: {lo}-{hi}. {text}",
        ))
    return ranges


class ScoreConfigNormalizer:
    """Validate and repair a ScoreConfig once per scoring pass."""

    def __init__(self, point_ceiling: int = DEFAULT_POINT_CEILING):
        self.point_ceiling = point_ceiling

    def normalize(self, config: ScoreConfig, questions: Sequence[Question]) -> NormalizedConfig:
        diagnostics: List[Diagnostic] = []
        category_ids = config.category_ids()
        counts = mapped_question_counts(questions, category_ids)

        if config.dropped_categories:
            diagnostics.append(_config_error(
                f"{config.dropped_categories} scoring categories without an id or with a "
                f"repeated id were dropped",
            ))
        if not category_ids:
            diagnostics.append(_config_error("No scoring categories defined", severity=Severity.ERROR))

        declared_global = config.global_ranges()
        global_ranges = self._repair_scope(declared_global, GLOBAL_SCOPE_MAX, "overall", diagnostics)
        if not declared_global:
            diagnostics.append(_config_error(
                "No score ranges (bands) defined; default bands apply", severity=Severity.INFO,
            ))
        elif not global_ranges:
            diagnostics.append(_config_error(
                "All overall score ranges were invalid; default bands apply",
            ))

        known = set(category_ids)
        for score_range in config.score_ranges:
            if score_range.category and score_range.category not in known:
                diagnostics.append(_config_error(
                    f"Range '{score_range.label}' references unknown category "
                    f"{score_range.category}; dropped",
                    category_id=score_range.category,
                ))

        category_ranges: List[ScoreRange] = []
        category_max: Dict[str, int] = {}
        for category_id in category_ids:
            question_count = counts[category_id]
            scope_max = max(1, question_count) * self.point_ceiling
            category_max[category_id] = scope_max

            declared = config.ranges_for(category_id)
            repaired = self._repair_scope(declared, scope_max, category_id, diagnostics)
            if not repaired and (declared or not global_ranges):
                repaired = generate_fallback_ranges(category_id, scope_max, question_count)
                diagnostics.append(_config_error(
                    f"Category {category_id} has no usable ranges; "
                    f"generated {len(repaired)} fallback ranges over 0-{scope_max}",
                    category_id=category_id,
                ))
            category_ranges.extend(repaired)

        results_screen = config.results_screen
        if results_screen is not None:
            update = {}
            if results_screen.score_ranges is not None:
                update["score_ranges"] = None
            if results_screen.categories is not None:
                update["categories"] = self._repair_results_categories(results_screen, known, diagnostics)
            results_screen = results_screen.model_copy(update=update)

        normalized = config.model_copy(update={
            "score_ranges": global_ranges + category_ranges,
            "results_screen": results_screen,
            "dropped_categories": 0,
        })

        logger.info(
            "config_normalized",
            categories=len(category_ids),
            global_ranges=len(global_ranges),
            category_ranges=len(category_ranges),
            repairs=len(diagnostics),
        )
        return NormalizedConfig(config=normalized, diagnostics=diagnostics, category_max=category_max)

    def _repair_results_categories(
        self,
        results_screen: ResultsScreenConfig,
        known: set,
        diagnostics: List[Diagnostic],
    ) -> List[ResultsCategoryConfig]:
        """Custom results-screen bands are repaired on the 0-100 scale of their category."""
        repaired_entries = []
        for entry in results_screen.categories:
            if entry.category_id not in known:
                diagnostics.append(_config_error(
                    f"Results screen settings reference unknown category {entry.category_id or '(none)'}; "
                    f"dropped",
                    category_id=entry.category_id or None,
                ))
                continue
            if not entry.uses_custom_bands:
                repaired_entries.append(entry)
                continue
            bands = self._repair_scope(
                [b.model_copy(update={"category": entry.category_id}) for b in entry.bands],
                GLOBAL_SCOPE_MAX, entry.category_id, diagnostics,
            )
            if not bands:
                diagnostics.append(_config_error(
                    f"All custom results-screen bands for {entry.category_id} were invalid; "
                    f"category bands apply",
                    category_id=entry.category_id,
                ))
                entry = entry.model_copy(update={"bands_mode": "global", "bands": None})
            else:
                entry = entry.model_copy(update={"bands": bands})
            repaired_entries.append(entry)
        return repaired_entries

    # ------------------------------------------------------------------
    # Per-scope repair
    # ------------------------------------------------------------------

    def _repair_scope(
        self,
        ranges: Sequence[ScoreRange],
        scope_max: int,
        scope: str,
        diagnostics: List[Diagnostic],
    ) -> List[ScoreRange]:
        category_id = None if scope == "overall" else scope
        working: List[_WorkingRange] = []
        seen_labels: List[str] = []

        for position, score_range in enumerate(ranges):
            lo = int(clamp(round_half_up(score_range.min), 0, scope_max))
            hi = int(clamp(round_half_up(score_range.max), 0, scope_max))
            if (lo, hi) != (score_range.min, score_range.max):
                diagnostics.append(_config_error(
                    f"Range '{score_range.label}' in {scope} clamped to 0-{scope_max}",
                    category_id=category_id, severity=Severity.INFO,
                ))
            if lo > hi:
                lo, hi = hi, lo
                diagnostics.append(_config_error(
                    f"Range '{score_range.label}' in {scope} had min > max; swapped",
                    category_id=category_id, severity=Severity.INFO,
                ))

            label = score_range.label
            if not label or label in seen_labels:
                label = _positional_label(position, seen_labels)
                diagnostics.append(_config_error(
                    f"Range '{score_range.label}' in {scope} has a duplicate or empty label; "
                    f"relabeled '{label}'",
                    category_id=category_id, severity=Severity.INFO,
                ))
            seen_labels.append(label)

            if lo == hi and lo != 0:
                diagnostics.append(_config_error(
                    f"Range '{label}' in {scope} has zero width; dropped",
                    category_id=category_id,
                ))
                continue
            working.append(_WorkingRange(score_range, lo, hi, label))

        return [r.build() for r in self._make_contiguous(working, scope_max, scope, diagnostics)]

    def _make_contiguous(
        self,
        working: List[_WorkingRange],
        scope_max: int,
        scope: str,
        diagnostics: List[Diagnostic],
    ) -> List[_WorkingRange]:
        category_id = None if scope == "overall" else scope
        ordered = sorted(working, key=lambda r: (r.min, r.max))
        result: List[_WorkingRange] = []

        for current in ordered:
            if not result:
                if current.min != 0:
                    diagnostics.append(_config_error(
                        f"Range '{current.label}' in {scope} extended to start at 0",
                        category_id=category_id, severity=Severity.INFO,
                    ))
                    current.min = 0
                result.append(current)
                continue

            previous = result[-1]
            expected_min = previous.max + 1
            if current.max <= previous.max:
                diagnostics.append(_config_error(
                    f"Range '{current.label}' in {scope} is covered by '{previous.label}'; dropped",
                    category_id=category_id,
                ))
                continue
            if current.min > expected_min:
                diagnostics.append(_config_error(
                    f"Gap {expected_min}-{current.min - 1} in {scope} closed by extending "
                    f"'{previous.label}'",
                    category_id=category_id, severity=Severity.INFO,
                ))
                previous.max = current.min - 1
            elif current.min < expected_min:
                diagnostics.append(_config_error(
                    f"Range '{current.label}' in {scope} overlaps '{previous.label}'; "
                    f"now starts at {expected_min}",
                    category_id=category_id, severity=Severity.INFO,
                ))
                current.min = expected_min
            result.append(current)

        if result and result[-1].max != scope_max:
            diagnostics.append(_config_error(
                f"Range '{result[-1].label}' in {scope} extended to end at {scope_max}",
                category_id=category_id, severity=Severity.INFO,
            ))
            result[-1].max = scope_max
        return result


def _positional_label(position: int, taken: List[str]) -> str:
    if position < len(DEFAULT_LABEL_PROGRESSION):
        label = DEFAULT_LABEL_PROGRESSION[position]
    else:
        label = f"Level {position + 1}"
    suffix = 2
    candidate = label
    while candidate in taken:
        candidate = f"{label} {suffix}"
        suffix += 1
    return candidate


def _config_error(
    message: str,
    category_id: Optional[str] = None,
    severity: Severity = Severity.WARNING,
) -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.CONFIGURATION_ERROR,
        message=message,
        severity=severity,
        category_id=category_id,
    )
