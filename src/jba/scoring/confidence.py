"""Confidence tiers, data-quality signals and metric-level confidence.

The tier is a pure function of the effective (decay-weighted) case count.
Data quality never changes the tier; it only positions the reported
percentage inside the tier's band:

    percentage = band_low + overall_quality_score * (band_high - band_low)

where ``overall_quality_score`` blends temporal coverage (40%), case-type
diversity (30%) and freshness (30%).
"""

from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import WeightedCase
from ..core.normalization import month_key, months_in_range
from ..utils.logging import get_logger
from ..weighting.temporal import years_between

logger = get_logger(__name__)

TEMPORAL_WEIGHT = 0.40
DIVERSITY_WEIGHT = 0.30
FRESHNESS_WEIGHT = 0.30

# Months of coverage (and distinct case types) that earn a full score
FULL_COVERAGE_MONTHS = 12
FULL_DIVERSITY_TYPES = 5

# (minimum effective size, confidence) checked top-down
METRIC_CONFIDENCE_STEPS: Tuple[Tuple[float, float], ...] = (
    (100, 95.0),
    (50, 90.0),
    (30, 85.0),
    (20, 80.0),
    (10, 75.0),
    (5, 70.0),
)
METRIC_CONFIDENCE_FLOOR = 65.0


class ConfidenceTier(str, Enum):
    TIER_1 = "tier_1"
    TIER_2 = "tier_2"
    TIER_3 = "tier_3"
    LIMITED = "limited"

    @property
    def band(self) -> Tuple[float, float]:
        return TIER_BANDS[self]

    @property
    def label(self) -> str:
        return TIER_LABELS[self][0]

    @property
    def reliability(self) -> str:
        return TIER_LABELS[self][1]


TIER_BANDS = {
    ConfidenceTier.TIER_1: (90.0, 95.0),
    ConfidenceTier.TIER_2: (80.0, 89.0),
    ConfidenceTier.TIER_3: (70.0, 79.0),
    ConfidenceTier.LIMITED: (40.0, 69.0),
}

TIER_LABELS = {
    ConfidenceTier.TIER_1: ("Very High Confidence", "very_high"),
    ConfidenceTier.TIER_2: ("High Confidence", "high"),
    ConfidenceTier.TIER_3: ("Moderate Confidence", "moderate"),
    ConfidenceTier.LIMITED: ("Limited Confidence", "low"),
}


class DataQuality(BaseModel):
    """Data-quality signals for one report; all scores are in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    total_cases: int
    effective_cases: float
    temporal_distribution_score: float = Field(ge=0.0, le=1.0)
    category_diversity_score: float = Field(ge=0.0, le=1.0)
    data_freshness_score: float = Field(ge=0.0, le=1.0)
    overall_quality_score: float = Field(ge=0.0, le=1.0)
    excluded_undated_cases: int = 0
    # Per-field gaps found at the input boundary
    missing_decision_date: int = 0
    missing_case_value: int = 0
    missing_outcome: int = 0
    missing_motion_type: int = 0
    missing_party_types: int = 0


class ConfidenceScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: ConfidenceTier
    percentage: float = Field(ge=0.0, le=100.0)
    band_low: float
    band_high: float
    label: str
    reliability: str
    description: str
    forced: bool = False


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def metric_confidence(effective_size: float, cap: Optional[float] = None) -> float:
    """Step-table confidence for a single metric, optionally capped."""
    confidence = METRIC_CONFIDENCE_FLOOR
    for minimum, value in METRIC_CONFIDENCE_STEPS:
        if effective_size >= minimum:
            confidence = value
            break
    if cap is not None:
        confidence = min(confidence, cap)
    return confidence


class ConfidenceScorer:
    """Classify a dataset into a confidence tier and in-band percentage."""

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def tier_for(self, effective_cases: float) -> ConfidenceTier:
        """Tier from the effective case count rounded half-up to a whole case."""
        n = round_half_up(effective_cases)
        tier_1, tier_2, tier_3 = self.config.tier_breakpoints
        if n >= tier_1:
            return ConfidenceTier.TIER_1
        if n >= tier_2:
            return ConfidenceTier.TIER_2
        if n >= tier_3:
            return ConfidenceTier.TIER_3
        return ConfidenceTier.LIMITED

    def data_quality(
        self,
        weighted_cases: Sequence[WeightedCase],
        as_of: date,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> DataQuality:
        """Compute temporal coverage, diversity and freshness scores."""
        dated = [wc for wc in weighted_cases if wc.included]
        total_weight = sum(wc.weight for wc in dated)

        months: Set[str] = set()
        case_types: Set[str] = set()
        fresh_weight = 0.0
        first: Optional[date] = None
        last: Optional[date] = None
        for wc in dated:
            ref = wc.case.reference_date
            months.add(month_key(ref))
            first = ref if first is None or ref < first else first
            last = ref if last is None or ref > last else last
            decided = wc.case.decision_date
            if decided is not None and years_between(as_of, decided) <= self.config.freshness_window_years:
                fresh_weight += wc.weight
        for wc in weighted_cases:
            if wc.case.case_type:
                case_types.add(wc.case.case_type.strip().lower())

        range_start = start_date or first
        range_end = end_date or last
        if range_start is not None and range_end is not None and months:
            span = min(months_in_range(range_start, range_end), FULL_COVERAGE_MONTHS)
            temporal = min(1.0, min(len(months), FULL_COVERAGE_MONTHS) / span) if span > 0 else 0.0
        else:
            temporal = 0.0

        diversity = min(len(case_types), FULL_DIVERSITY_TYPES) / FULL_DIVERSITY_TYPES
        freshness = min(1.0, fresh_weight / total_weight) if total_weight > 0 else 0.0
        overall = TEMPORAL_WEIGHT * temporal + DIVERSITY_WEIGHT * diversity + FRESHNESS_WEIGHT * freshness

        return DataQuality(
            total_cases=len(weighted_cases),
            effective_cases=total_weight,
            temporal_distribution_score=temporal,
            category_diversity_score=diversity,
            data_freshness_score=freshness,
            overall_quality_score=min(1.0, max(0.0, overall)),
            excluded_undated_cases=len(weighted_cases) - len(dated),
        )

    def score(self, quality: DataQuality) -> ConfidenceScore:
        """Tier and percentage for a dataset described by ``quality``."""
        tier = self.tier_for(quality.effective_cases)
        forced = quality.total_cases < self.config.comprehensive_case_threshold
        if forced and tier is not ConfidenceTier.LIMITED:
            logger.debug(
                f"Forcing limited tier: {quality.total_cases} raw cases is below "
                f"{self.config.comprehensive_case_threshold}"
            )
            tier = ConfidenceTier.LIMITED
        band_low, band_high = tier.band
        percentage = round(band_low + quality.overall_quality_score * (band_high - band_low), 1)
        return ConfidenceScore(
            tier=tier,
            percentage=percentage,
            band_low=band_low,
            band_high=band_high,
            label=tier.label,
            reliability=tier.reliability,
            description=self._describe(tier, quality.effective_cases),
            forced=forced,
        )

    def _describe(self, tier: ConfidenceTier, effective_cases: float) -> str:
        n = round_half_up(effective_cases)
        minimum = self.config.comprehensive_case_threshold
        if tier is ConfidenceTier.TIER_1:
            return (
                f"Comprehensive analysis based on {n} effective cases. Statistical patterns are "
                "highly reliable with sufficient data across multiple case types and time periods."
            )
        if tier is ConfidenceTier.TIER_2:
            return (
                f"Substantial analysis based on {n} effective cases. Statistical patterns are "
                "reliable with good data coverage across case types and time periods."
            )
        if tier is ConfidenceTier.TIER_3:
            return (
                f"Adequate analysis based on {n} effective cases (minimum threshold met). "
                "Statistical patterns are moderately reliable. Some categories may have limited data."
            )
        return (
            f"Limited analysis based on {n} effective cases (below recommended minimum of {minimum}). "
            "Statistical patterns should be interpreted with caution. Results may not be representative."
        )

    def recommendations(self, score: ConfidenceScore, quality: DataQuality) -> List[str]:
        """Concrete steps that would raise confidence in a future report."""
        recs: List[str] = []
        tier_1, tier_2, _ = self.config.tier_breakpoints
        if score.tier is ConfidenceTier.LIMITED:
            recs.append(
                f"Increase case dataset to at least {self.config.comprehensive_case_threshold} cases "
                f"(currently {quality.total_cases}) for full analytics with moderate confidence"
            )
        if quality.data_freshness_score < 0.5:
            recs.append(
                f"Add more recent cases (within last {self.config.freshness_window_years:g} years) "
                "to improve temporal relevance"
            )
        if quality.category_diversity_score < 0.5:
            recs.append("Include more diverse case types to improve pattern detection reliability")
        if quality.temporal_distribution_score < 0.5:
            recs.append("Cover more months of the reporting period to reduce seasonal gaps")
        n = round_half_up(quality.effective_cases)
        if score.tier is ConfidenceTier.TIER_3:
            recs.append(f"Add {int(tier_2) - n} more effective cases to reach Tier 2 (High) confidence")
        elif score.tier is ConfidenceTier.TIER_2:
            recs.append(f"Add {int(tier_1) - n} more effective cases to reach Tier 1 (Very High) confidence")
        return recs
