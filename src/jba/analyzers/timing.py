"""Decision timing by case complexity tier."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import Dimension, MetricRow, WeightedCase
from ..scoring.confidence import metric_confidence
from ..utils.logging import get_logger
from ..weighting.temporal import weighted_mean, weighted_quantile
from .models import ComplexityTier, TierTiming, TimingAnalysis

logger = get_logger(__name__)

# Durations outside this window are treated as data errors
MAX_VALID_DURATION_DAYS = 3650.0

# (tier, inclusive lower bound, exclusive upper bound)
COMPLEXITY_BOUNDS: Tuple[Tuple[ComplexityTier, float, Optional[float]], ...] = (
    (ComplexityTier.SIMPLE, 0.0, 50_000.0),
    (ComplexityTier.MODERATE, 50_000.0, 250_000.0),
    (ComplexityTier.COMPLEX, 250_000.0, 1_000_000.0),
    (ComplexityTier.HIGHLY_COMPLEX, 1_000_000.0, None),
)


def complexity_tier(case_value: Optional[float]) -> Optional[ComplexityTier]:
    if case_value is None:
        return None
    for tier, low, high in COMPLEXITY_BOUNDS:
        if case_value >= low and (high is None or case_value < high):
            return tier
    return None


def timing_metric_key(tier: ComplexityTier) -> str:
    return f"timing.mean_days.{tier.value}"


class DecisionTimingAnalyzer:
    """Weighted decision-time distributions per complexity tier.

    Cases without a ``case_value`` are left out of this analyzer entirely.
    Cases whose duration exceeds the tier's weighted P90 are recorded as
    outlier candidates; they only become ``outlier_cases`` through
    :meth:`confirm_outliers` once the tier itself deviates from the peer
    baseline.
    """

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def analyze(self, weighted_cases: Sequence[WeightedCase]) -> TimingAnalysis:
        groups: Dict[ComplexityTier, List[Tuple[str, float, float]]] = {t: [] for t, _, _ in COMPLEXITY_BOUNDS}
        missing_value = 0
        invalid_duration = 0

        for index, wc in enumerate(weighted_cases):
            if not wc.included:
                continue
            tier = complexity_tier(wc.case.case_value)
            if tier is None:
                missing_value += 1
                continue
            duration = wc.case.duration_days
            if duration is None:
                continue
            if duration < 0 or duration > MAX_VALID_DURATION_DAYS:
                invalid_duration += 1
                logger.debug(f"Excluding case {wc.case.case_id or index}: duration {duration:.0f} days")
                continue
            case_ref = wc.case.case_id or f"row-{index}"
            groups[tier].append((case_ref, duration, wc.weight))

        tiers: List[TierTiming] = []
        all_days: List[float] = []
        all_weights: List[float] = []
        for tier, low, high in COMPLEXITY_BOUNDS:
            entries = groups[tier]
            tiers.append(self._tier_timing(tier, low, high, entries))
            all_days.extend(days for _, days, _ in entries)
            all_weights.extend(w for _, _, w in entries)

        with_data = [t for t in tiers if t.mean_days is not None]
        fastest = min(with_data, key=lambda t: t.mean_days).tier if with_data else None
        slowest = max(with_data, key=lambda t: t.mean_days).tier if with_data else None

        return TimingAnalysis(
            by_complexity=tiers,
            overall_mean_days=weighted_mean(all_days, all_weights),
            overall_median_days=weighted_quantile(all_days, all_weights, 0.5),
            fastest_tier=fastest,
            slowest_tier=slowest,
            total_cases_analyzed=len(all_days),
            effective_sample_size=float(sum(all_weights)),
            excluded_missing_value=missing_value,
            excluded_invalid_duration=invalid_duration,
        )

    def _tier_timing(
        self,
        tier: ComplexityTier,
        low: float,
        high: Optional[float],
        entries: List[Tuple[str, float, float]],
    ) -> TierTiming:
        if not entries:
            return TierTiming(tier=tier, label=tier.label, min_value=low, max_value=high)
        days = [d for _, d, _ in entries]
        weights = [w for _, _, w in entries]
        ess = float(sum(weights))
        p90 = weighted_quantile(days, weights, 0.90)
        candidates = [ref for ref, d, _ in entries if p90 is not None and d > p90]
        return TierTiming(
            tier=tier,
            label=tier.label,
            min_value=low,
            max_value=high,
            case_count=len(entries),
            effective_sample_size=ess,
            mean_days=weighted_mean(days, weights),
            p25_days=weighted_quantile(days, weights, 0.25),
            median_days=weighted_quantile(days, weights, 0.50),
            p75_days=weighted_quantile(days, weights, 0.75),
            p90_days=p90,
            min_days=min(days),
            max_days=max(days),
            confidence=metric_confidence(ess),
            outlier_candidates=candidates,
        )

    def confirm_outliers(
        self,
        analysis: TimingAnalysis,
        deviations: Mapping[str, float],
    ) -> TimingAnalysis:
        """Promote outlier candidates in tiers whose baseline deviation is significant.

        Args:
            analysis: The analyzer's result.
            deviations: Metric key to deviation sigma for rows that had a
                baseline.
        """
        threshold = self.config.anomaly_sigma_threshold
        updated: List[TierTiming] = []
        for tier in analysis.by_complexity:
            sigma = deviations.get(timing_metric_key(tier.tier))
            if sigma is not None and abs(sigma) > threshold and tier.outlier_candidates:
                tier = tier.model_copy(update={"outlier_cases": list(tier.outlier_candidates)})
            updated.append(tier)
        return analysis.model_copy(update={"by_complexity": updated})

    def metric_rows(self, analysis: TimingAnalysis, detailed: bool = True) -> List[MetricRow]:
        rows: List[MetricRow] = []
        overall_conf = metric_confidence(analysis.effective_sample_size)
        if analysis.overall_mean_days is not None:
            rows.append(
                MetricRow(
                    metric_key="timing.mean_days.overall",
                    dimension=Dimension.TIMING,
                    label="Average days to decision",
                    value=analysis.overall_mean_days,
                    sample_size=analysis.total_cases_analyzed,
                    effective_sample_size=analysis.effective_sample_size,
                    confidence=overall_conf,
                )
            )
        if analysis.overall_median_days is not None:
            rows.append(
                MetricRow(
                    metric_key="timing.median_days.overall",
                    dimension=Dimension.TIMING,
                    label="Median days to decision",
                    value=analysis.overall_median_days,
                    sample_size=analysis.total_cases_analyzed,
                    effective_sample_size=analysis.effective_sample_size,
                    confidence=overall_conf,
                )
            )
        if not detailed:
            return rows
        for tier in analysis.by_complexity:
            if tier.mean_days is None:
                continue
            rows.append(
                MetricRow(
                    metric_key=timing_metric_key(tier.tier),
                    dimension=Dimension.TIMING,
                    label=f"Average days to decision ({tier.label} cases)",
                    value=tier.mean_days,
                    sample_size=tier.case_count,
                    effective_sample_size=tier.effective_sample_size,
                    confidence=tier.confidence,
                )
            )
        return rows
