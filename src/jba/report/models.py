"""Report aggregate models.

A :class:`BiasReport` is produced once per request and never mutated; a
later request for the same judge builds a new object.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..analyzers.models import MotionAnalysis, PartyAnalysis, TimingAnalysis, ValueAnalysis
from ..anomaly.detector import BaselineComparison
from ..core.models import AnomalyFlag, MetricRow
from ..scoring.confidence import ConfidenceScore, DataQuality
from ..weighting.temporal import WeightDistribution


class ReportState(str, Enum):
    INIT = "init"
    DATASET_LOADED = "dataset_loaded"
    WEIGHTED = "weighted"
    ANALYZED = "analyzed"
    BASELINE_JOINED = "baseline_joined"
    SCORED = "scored"
    FINALIZED = "finalized"
    DEGRADED = "degraded"


class AnalysisMethod(str, Enum):
    COMPREHENSIVE = "comprehensive"
    LIMITED = "limited"


class ReportRequest(BaseModel):
    """Identifies the judge and window a report covers."""

    model_config = ConfigDict(frozen=True)

    judge_id: str
    jurisdiction: str
    judge_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    as_of: Optional[date] = None


class ReportMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    judge_id: str
    judge_name: Optional[str] = None
    jurisdiction: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    as_of: date
    total_cases: int
    effective_cases: float
    analysis_method: AnalysisMethod
    meets_minimum_threshold: bool
    warning: Optional[str] = None


class DetailedFindings(BaseModel):
    model_config = ConfigDict(frozen=True)

    motion_analysis: MotionAnalysis
    timing_analysis: TimingAnalysis
    value_analysis: ValueAnalysis
    party_analysis: Optional[PartyAnalysis] = None
    baseline_comparison: Optional[BaselineComparison] = None
    weight_distribution: WeightDistribution


class Narrative(BaseModel):
    """Prose sections rendered from a report."""

    model_config = ConfigDict(frozen=True)

    overview: str
    key_patterns: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)
    context_notes: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class BiasReport(BaseModel):
    """Statistically qualified pattern report for one judge."""

    model_config = ConfigDict(frozen=True)

    metadata: ReportMetadata
    state: ReportState
    confidence_tier: ConfidenceScore
    data_quality: DataQuality
    metrics_table: List[MetricRow] = Field(default_factory=list)
    flagged_anomalies: List[AnomalyFlag] = Field(default_factory=list)
    detailed_findings: DetailedFindings
    executive_summary: str
    methodology_notes: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    narrative: Optional[Narrative] = None

    @property
    def degraded(self) -> bool:
        return self.state is ReportState.DEGRADED
