"""
scoring/overall_resolver.py

Combines per-category normalized scores into one overall score and band.

Formula:
    overall = round(mean(normalized_score for categories with answered_count > 0))

No answered category → overall is None and a NoScorableData diagnostic is
recorded; callers decide how to present insufficient data.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from app.models.enumerations import DiagnosticCode, Severity
from app.models.scoring import CategoryBreakdown, Diagnostic, OverallResolution
from app.models.survey import ScoreRange
from app.scoring.band_resolver import BandResolver
from app.scoring.utils import rounded_mean

logger = structlog.get_logger(__name__)


@dataclass
class OverallOutcome:
    """Output of OverallResolver.resolve()."""
    overall: Optional[OverallResolution]
    diagnostics: List[Diagnostic]


class OverallResolver:
    """Resolve the survey-level score and band."""

    def __init__(self, band_resolver: Optional[BandResolver] = None):
        self.band_resolver = band_resolver or BandResolver()

    def resolve(
        self,
        categories: Sequence[CategoryBreakdown],
        global_ranges: Sequence[ScoreRange],
    ) -> OverallOutcome:
        answered = [c.normalized_score for c in categories if c.answered_count > 0]
        if not answered:
            return OverallOutcome(
                overall=None,
                diagnostics=[Diagnostic(
                    code=DiagnosticCode.NO_SCORABLE_DATA,
                    message="No category has an answered scorable question",
                    severity=Severity.WARNING,
                )],
            )

        score = rounded_mean(answered)
        band = self.band_resolver.resolve(score, global_ranges)
        logger.info(
            "overall_resolved",
            categories_answered=len(answered),
            overall_score=score,
            band_id=band.band_id,
            fallback=band.is_fallback,
        )
        return OverallOutcome(overall=OverallResolution(score=score, band=band), diagnostics=[])
