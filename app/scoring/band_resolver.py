"""
Band Resolver
app/scoring/band_resolver.py

Maps a score to a labeled band. Declared ranges are searched in order and
the first range with min <= score <= max wins. When nothing matches, the
default five-tier taxonomy below answers instead, so resolution always
yields a band.

Default taxonomy (0-100, contiguous, no gaps):

  band_id            label              min  max
  ─────────────────  ─────────────────  ───  ───
  critical           Critical             0   24
  needs-improvement  Needs Improvement   25   39
  developing         Developing          40   69
  effective          Effective           70   84
  highly-effective   Highly Effective    85  100
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.models.enumerations import BandId
from app.models.scoring import BandResolution
from app.models.survey import ScoreRange
from app.scoring.utils import Number, clamp


@dataclass(frozen=True)
class BandDefinition:
    band_id: BandId
    label: str
    color: str
    min: int
    max: int


DEFAULT_BAND_DEFINITIONS: List[BandDefinition] = [
    BandDefinition(BandId.CRITICAL, "Critical", "#ef4444", 0, 24),
    BandDefinition(BandId.NEEDS_IMPROVEMENT, "Needs Improvement", "#f97316", 25, 39),
    BandDefinition(BandId.DEVELOPING, "Developing", "#f59e0b", 40, 69),
    BandDefinition(BandId.EFFECTIVE, "Effective", "#84cc16", 70, 84),
    BandDefinition(BandId.HIGHLY_EFFECTIVE, "Highly Effective", "#22c55e", 85, 100),
]


def default_band_for(score: Number) -> BandDefinition:
    """
    Default-taxonomy band for a score, clamped into [0, 100] first.

    Fractional scores falling between two integer-bounded tiers belong to
    the upper tier.
    """
    lookup = clamp(score, 0, 100)
    for band in DEFAULT_BAND_DEFINITIONS:
        if lookup <= band.max:
            return band
    return DEFAULT_BAND_DEFINITIONS[-1]


def match_range(score: Number, ranges: Sequence[ScoreRange]) -> Optional[ScoreRange]:
    """First declared range containing the score, if any."""
    for score_range in ranges:
        if score_range.min <= score <= score_range.max:
            return score_range
    return None


class BandResolver:
    """Resolve scores against declared ranges with a default-taxonomy fallback."""

    def resolve(
        self,
        score: Number,
        ranges: Sequence[ScoreRange],
        color_score: Optional[Number] = None,
    ) -> BandResolution:
        """
        Args:
            score: Score on the ranges' scale.
            ranges: Declared ranges for the scope, in declaration order.
            color_score: 0-100 score used to pick the fallback band and the
                         color of a matched range that has none. Defaults
                         to score.

        Returns:
            BandResolution; matched_range is None exactly when the default
            taxonomy was used.
        """
        default = default_band_for(score if color_score is None else color_score)
        matched = match_range(score, ranges)
        if matched is None:
            return BandResolution(
                band_id=default.band_id.value,
                label=default.label,
                color=default.color,
                matched_range=None,
            )
        return BandResolution(
            band_id=matched.id,
            label=matched.label,
            color=matched.color or default.color,
            matched_range=matched,
        )
