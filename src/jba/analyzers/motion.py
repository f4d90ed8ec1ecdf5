"""Motion grant/deny patterns by motion category."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import CaseRecord, Dimension, MetricRow, WeightedCase
from ..core.taxonomy import MotionCategory, classify_motion, motion_granted
from ..scoring.confidence import metric_confidence
from ..utils.logging import get_logger
from ..weighting.temporal import weighted_mean, weighted_quantile, weighted_rate
from .models import MotionAnalysis, MotionCategoryPattern

logger = get_logger(__name__)


def _granted(case: CaseRecord) -> Optional[bool]:
    return motion_granted(case.effective_outcome)


class MotionPatternAnalyzer:
    """Weighted grant rates and decision times per motion category.

    A case contributes to a category's grant rate only when its outcome is
    a determinable grant or denial, and to the timing figures only when it
    has both dates.  Categories whose effective size falls below
    ``motion_low_confidence_floor`` are marked low confidence no matter how
    large the overall dataset is.
    """

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def analyze(self, weighted_cases: Sequence[WeightedCase]) -> MotionAnalysis:
        groups: Dict[MotionCategory, List[WeightedCase]] = defaultdict(list)
        for wc in weighted_cases:
            if not wc.included:
                continue
            category = classify_motion(wc.case.motion_type)
            if category is None:
                continue
            groups[category].append(wc)

        patterns: List[MotionCategoryPattern] = []
        granted_weight = 0.0
        decided_weight = 0.0
        decided_count = 0
        all_days: List[float] = []
        all_day_weights: List[float] = []

        for category, cases in groups.items():
            decided = weighted_rate(cases, _granted)
            days: List[float] = []
            day_weights: List[float] = []
            for wc in cases:
                duration = wc.case.duration_days
                if duration is not None and duration >= 0:
                    days.append(duration)
                    day_weights.append(wc.weight)

            ess = decided.total_weight
            granted_weight += decided.positive_weight
            decided_weight += ess
            decided_count += decided.count
            all_days.extend(days)
            all_day_weights.extend(day_weights)

            patterns.append(
                MotionCategoryPattern(
                    category=category,
                    label=category.label,
                    total_motions=len(cases),
                    granted=decided.positive_count,
                    denied=decided.count - decided.positive_count,
                    effective_sample_size=ess,
                    grant_rate=decided.rate,
                    deny_rate=1.0 - decided.rate if decided.rate is not None else None,
                    avg_days_to_decision=weighted_mean(days, day_weights),
                    median_days_to_decision=weighted_quantile(days, day_weights, 0.5),
                    timing_sample_size=len(days),
                    confidence=metric_confidence(ess),
                    low_confidence=ess < self.config.motion_low_confidence_floor,
                )
            )

        # Most common motion types first, category order breaks ties
        order = list(MotionCategory)
        patterns.sort(key=lambda p: (-p.total_motions, order.index(p.category)))

        logger.debug(f"Analyzed {decided_count} decided motions across {len(patterns)} categories")
        return MotionAnalysis(
            patterns_by_type=patterns,
            overall_grant_rate=granted_weight / decided_weight if decided_weight > 0 else None,
            overall_deny_rate=(decided_weight - granted_weight) / decided_weight if decided_weight > 0 else None,
            avg_decision_time=weighted_mean(all_days, all_day_weights),
            total_motions_analyzed=decided_count,
            effective_sample_size=decided_weight,
            confidence=metric_confidence(decided_weight),
        )

    def metric_rows(self, analysis: MotionAnalysis, detailed: bool = True) -> List[MetricRow]:
        """Metric rows for the report table.

        With ``detailed=False`` only the overall rates are emitted.
        """
        rows: List[MetricRow] = []
        if analysis.overall_grant_rate is not None:
            rows.append(
                MetricRow(
                    metric_key="motion.grant_rate.overall",
                    dimension=Dimension.MOTION,
                    label="Overall motion grant rate",
                    value=analysis.overall_grant_rate,
                    sample_size=analysis.total_motions_analyzed,
                    effective_sample_size=analysis.effective_sample_size,
                    confidence=analysis.confidence,
                    low_confidence=analysis.effective_sample_size < self.config.motion_low_confidence_floor,
                )
            )
        if analysis.avg_decision_time is not None:
            rows.append(
                MetricRow(
                    metric_key="motion.mean_days.overall",
                    dimension=Dimension.MOTION,
                    label="Average days to motion decision",
                    value=analysis.avg_decision_time,
                    sample_size=sum(p.timing_sample_size for p in analysis.patterns_by_type),
                    effective_sample_size=analysis.effective_sample_size,
                    confidence=analysis.confidence,
                )
            )
        if not detailed:
            return rows
        for pattern in analysis.patterns_by_type:
            if pattern.grant_rate is None:
                continue
            rows.append(
                MetricRow(
                    metric_key=f"motion.grant_rate.{pattern.category.value}",
                    dimension=Dimension.MOTION,
                    label=f"{pattern.label} grant rate",
                    value=pattern.grant_rate,
                    sample_size=pattern.granted + pattern.denied,
                    effective_sample_size=pattern.effective_sample_size,
                    confidence=pattern.confidence,
                    low_confidence=pattern.low_confidence,
                )
            )
        return rows
