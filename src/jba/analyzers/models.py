"""Result models produced by the per-dimension analyzers."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.models import PartyType, RepresentationType
from ..core.taxonomy import MotionCategory


class MotionCategoryPattern(BaseModel):
    """Grant/deny behaviour for one motion category."""

    model_config = ConfigDict(frozen=True)

    category: MotionCategory
    label: str
    total_motions: int
    granted: int
    denied: int
    effective_sample_size: float = Field(ge=0.0, description="Weight of cases with a grant/deny outcome")
    grant_rate: Optional[float] = None
    deny_rate: Optional[float] = None
    avg_days_to_decision: Optional[float] = None
    median_days_to_decision: Optional[float] = None
    timing_sample_size: int = 0
    confidence: float = Field(ge=0.0, le=100.0)
    low_confidence: bool = False


class MotionAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    patterns_by_type: List[MotionCategoryPattern] = Field(default_factory=list)
    overall_grant_rate: Optional[float] = None
    overall_deny_rate: Optional[float] = None
    avg_decision_time: Optional[float] = None
    total_motions_analyzed: int = 0
    effective_sample_size: float = 0.0
    confidence: float = Field(0.0, ge=0.0, le=100.0)

    def overall_only(self) -> MotionAnalysis:
        return self.model_copy(update={"patterns_by_type": []})


class ComplexityTier(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    HIGHLY_COMPLEX = "highly_complex"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class TierTiming(BaseModel):
    """Weighted decision-time distribution for one complexity tier."""

    model_config = ConfigDict(frozen=True)

    tier: ComplexityTier
    label: str
    min_value: float
    max_value: Optional[float] = None
    case_count: int = 0
    effective_sample_size: float = 0.0
    mean_days: Optional[float] = None
    p25_days: Optional[float] = None
    median_days: Optional[float] = None
    p75_days: Optional[float] = None
    p90_days: Optional[float] = None
    min_days: Optional[float] = None
    max_days: Optional[float] = None
    confidence: float = Field(0.0, ge=0.0, le=100.0)
    outlier_candidates: List[str] = Field(default_factory=list)
    outlier_cases: List[str] = Field(default_factory=list)


class TimingAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    by_complexity: List[TierTiming] = Field(default_factory=list)
    overall_mean_days: Optional[float] = None
    overall_median_days: Optional[float] = None
    fastest_tier: Optional[ComplexityTier] = None
    slowest_tier: Optional[ComplexityTier] = None
    total_cases_analyzed: int = 0
    effective_sample_size: float = 0.0
    excluded_missing_value: int = 0
    excluded_invalid_duration: int = 0

    def overall_only(self) -> TimingAnalysis:
        return self.model_copy(update={"by_complexity": [], "fastest_tier": None, "slowest_tier": None})


class PartyCell(BaseModel):
    """Favorable-outcome rate for one party type x representation cell."""

    model_config = ConfigDict(frozen=True)

    party_type: PartyType
    representation_type: RepresentationType
    case_count: int
    effective_sample_size: float
    favorable_rate: float
    confidence: float = Field(ge=0.0, le=100.0)


class PartyMarginal(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    case_count: int
    effective_sample_size: float
    favorable_rate: Optional[float] = None
    confidence: float = Field(ge=0.0, le=100.0)
    reportable: bool = False


class PartyDifferential(BaseModel):
    """Individual vs corporation outcomes in cases involving both."""

    model_config = ConfigDict(frozen=True)

    individual_favorable_rate: float
    corporation_favorable_rate: float
    differential: float
    case_count: int
    effective_sample_size: float


class SideFavorability(BaseModel):
    model_config = ConfigDict(frozen=True)

    plaintiff_rate: float
    defendant_rate: float
    decided_cases: int
    effective_sample_size: float


class PartyAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    cells: List[PartyCell] = Field(default_factory=list)
    suppressed_cells: int = 0
    by_party_type: List[PartyMarginal] = Field(default_factory=list)
    by_representation: List[PartyMarginal] = Field(default_factory=list)
    pro_se_success_rate: Optional[float] = None
    individual_vs_corporation: Optional[PartyDifferential] = None
    plaintiff_favorability: Optional[SideFavorability] = None
    total_cases_analyzed: int = 0
    effective_sample_size: float = 0.0


class BracketStats(BaseModel):
    """Outcome mix and award ratios for one case-value bracket."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    min_value: float
    max_value: Optional[float] = None
    case_count: int = 0
    effective_sample_size: float = 0.0
    settlement_rate: Optional[float] = None
    dismissal_rate: Optional[float] = None
    judgment_rate: Optional[float] = None
    judgment_ratio_mean: Optional[float] = None
    judgment_ratio_std: Optional[float] = None
    judgment_ratio_count: int = 0
    avg_duration_days: Optional[float] = None
    correlation_eligible: bool = False
    confidence: float = Field(0.0, ge=0.0, le=100.0)


class ValueAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    brackets: List[BracketStats] = Field(default_factory=list)
    overall_settlement_rate: Optional[float] = None
    high_value_settlement_rate: Optional[float] = None
    low_value_settlement_rate: Optional[float] = None
    settlement_value_correlation: Optional[float] = None
    total_cases_analyzed: int = 0
    effective_sample_size: float = 0.0
    insights: List[str] = Field(default_factory=list)

    def overall_only(self) -> ValueAnalysis:
        """Drop the per-bracket breakdown and everything derived from it."""
        return self.model_copy(
            update={
                "brackets": [],
                "high_value_settlement_rate": None,
                "low_value_settlement_rate": None,
                "settlement_value_correlation": None,
                "insights": [],
            }
        )
