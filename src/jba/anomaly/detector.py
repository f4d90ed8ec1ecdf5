"""Peer-baseline deviation and anomaly flagging.

A metric row is compared against its jurisdiction profile as a z-score
``(value - mean) / stddev``.  A row is flagged only when the deviation
reaches the sigma threshold *and* the judge's own effective sample for the
metric is large enough to trust; a five-sigma swing on ten cases is noise.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from scipy import stats

from ..baseline.cache import BaselineSnapshot
from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import AnomalyFlag, BaselineProfile, Dimension, MetricRow, Severity
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Overall deviation score: mean |sigma| scaled to 0-100
DEVIATION_SCORE_SCALE = 25

_SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MODERATE: 1}


def format_metric_value(metric_key: str, value: float) -> str:
    """Render a metric value in its natural unit."""
    if "days" in metric_key:
        return f"{value:.0f} days"
    if "correlation" in metric_key or "individual_vs_corporation" in metric_key:
        return f"{value:+.2f}"
    if "judgment_ratio" in metric_key:
        return f"{value:.2f}"
    return f"{value * 100:.1f}%"


def two_sided_p_value(sigma: float) -> float:
    return float(min(1.0, 2.0 * stats.norm.sf(abs(sigma))))


class MetricComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric_key: str
    dimension: Dimension
    label: str
    judge_value: float
    baseline_value: float
    baseline_stddev: float
    peer_judges: int
    deviation_sigma: Optional[float] = None
    is_significant: bool = False
    interpretation: str


class BaselineComparison(BaseModel):
    """Judge vs jurisdiction comparison across every metric with a profile."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    computed_at: datetime
    peer_judges: int
    comparisons: List[MetricComparison] = Field(default_factory=list)
    overall_deviation_score: int = Field(0, ge=0, le=100)
    category: str
    description: str
    severity: str


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    rows: List[MetricRow]
    flags: List[AnomalyFlag] = Field(default_factory=list)
    comparison: BaselineComparison


def interpret_deviation_score(score: int) -> Dict[str, str]:
    """Map an overall deviation score to a category and description."""
    if score <= 20:
        return {
            "category": "well_within_norms",
            "description": "Performance metrics are well within jurisdictional norms",
            "severity": "low",
        }
    if score <= 50:
        return {
            "category": "minor_variance",
            "description": "Minor variance from jurisdictional averages, within acceptable range",
            "severity": "low",
        }
    if score <= 75:
        return {
            "category": "notable_deviation",
            "description": "Notable deviation from peer patterns, warrants closer review",
            "severity": "medium",
        }
    return {
        "category": "significant_deviation",
        "description": "Significant deviation from jurisdictional norms across multiple metrics",
        "severity": "high",
    }


def overall_deviation_score(sigmas: Sequence[float]) -> int:
    if not sigmas:
        return 0
    mean_abs = sum(abs(s) for s in sigmas) / len(sigmas)
    return int(min(100, math.floor(mean_abs * DEVIATION_SCORE_SCALE + 0.5)))


class AnomalyDetector:
    """Join metric rows to baseline profiles and flag significant deviations."""

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def deviation(self, row: MetricRow, profile: BaselineProfile) -> Optional[float]:
        """Z-score of the row against the profile; None when undefined."""
        if profile.sample_size < self.config.minimum_peer_judges_for_baseline:
            return None
        if profile.stddev <= 0:
            return None
        return (row.value - profile.mean) / profile.stddev

    def severity(self, sigma: float) -> Severity:
        return Severity.HIGH if abs(sigma) >= self.config.high_severity_sigma else Severity.MODERATE

    def is_flagged(self, row: MetricRow, sigma: Optional[float]) -> bool:
        if sigma is None:
            return False
        return (
            abs(sigma) >= self.config.anomaly_sigma_threshold
            and row.effective_sample_size >= self.config.anomaly_min_effective_sample
        )

    def detect(self, rows: Sequence[MetricRow], snapshot: BaselineSnapshot) -> DetectionResult:
        profiles = snapshot.by_metric_key()
        annotated: List[MetricRow] = []
        flags: List[AnomalyFlag] = []
        comparisons: List[MetricComparison] = []
        sigmas: List[float] = []

        for row in rows:
            profile = profiles.get(row.metric_key)
            if profile is None or profile.dimension is not row.dimension:
                annotated.append(row)
                continue
            sigma = self.deviation(row, profile)
            flagged = self.is_flagged(row, sigma)
            interpretation = self._interpret(row, sigma)
            annotated.append(
                row.model_copy(
                    update={
                        "baseline_value": profile.mean,
                        "deviation_sigma": sigma,
                        "flagged": flagged,
                        "interpretation": interpretation,
                    }
                )
            )
            comparisons.append(
                MetricComparison(
                    metric_key=row.metric_key,
                    dimension=row.dimension,
                    label=row.label,
                    judge_value=row.value,
                    baseline_value=profile.mean,
                    baseline_stddev=profile.stddev,
                    peer_judges=profile.sample_size,
                    deviation_sigma=sigma,
                    is_significant=flagged,
                    interpretation=interpretation,
                )
            )
            if sigma is not None:
                sigmas.append(sigma)
            if flagged:
                flags.append(self._flag(row, profile, sigma))

        flags.sort(key=lambda f: (_SEVERITY_ORDER[f.severity], -abs(f.deviation_sigma), f.metric_ref))
        score = overall_deviation_score(sigmas)
        verdict = interpret_deviation_score(score)
        if flags:
            logger.info(f"Flagged {len(flags)} anomalies against {snapshot.jurisdiction} baseline")

        return DetectionResult(
            rows=annotated,
            flags=flags,
            comparison=BaselineComparison(
                jurisdiction=snapshot.jurisdiction,
                computed_at=snapshot.computed_at,
                peer_judges=snapshot.judge_count,
                comparisons=comparisons,
                overall_deviation_score=score,
                category=verdict["category"],
                description=verdict["description"],
                severity=verdict["severity"],
            ),
        )

    def _interpret(self, row: MetricRow, sigma: Optional[float]) -> str:
        if sigma is None:
            return "No peer variation to compare against"
        if abs(sigma) < self.config.anomaly_sigma_threshold:
            return "Within normal range of jurisdiction peers"
        if row.effective_sample_size < self.config.anomaly_min_effective_sample:
            return f"Deviates from peers ({abs(sigma):.1f}σ) but sample is too small to flag"
        if "days" in row.metric_key:
            direction = "slower" if sigma > 0 else "faster"
        else:
            direction = "higher" if sigma > 0 else "lower"
        return f"Significantly {direction} than jurisdiction average ({abs(sigma):.1f}σ)"

    def _flag(self, row: MetricRow, profile: BaselineProfile, sigma: float) -> AnomalyFlag:
        return AnomalyFlag(
            metric_ref=row.metric_key,
            dimension=row.dimension,
            label=row.label,
            judge_value=row.value,
            baseline_value=profile.mean,
            deviation_sigma=sigma,
            p_value=two_sided_p_value(sigma),
            severity=self.severity(sigma),
            description=(
                f"{row.label} is {format_metric_value(row.metric_key, row.value)} versus a peer average of "
                f"{format_metric_value(row.metric_key, profile.mean)} ({sigma:+.1f}σ across "
                f"{profile.sample_size} judges)"
            ),
        )
