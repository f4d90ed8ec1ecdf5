"""Outcome patterns across case-value brackets."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import Dimension, MetricRow, WeightedCase
from ..core.taxonomy import OutcomeClass, classify_outcome
from ..scoring.confidence import metric_confidence
from ..utils.logging import get_logger
from ..weighting.temporal import weighted_mean, weighted_pearson, weighted_std
from .models import BracketStats, ValueAnalysis

logger = get_logger(__name__)

# (key, label, inclusive lower bound, exclusive upper bound)
VALUE_BRACKETS: Tuple[Tuple[str, str, float, Optional[float]], ...] = (
    ("under_10k", "Under $10K", 0.0, 10_000.0),
    ("10k_25k", "$10K - $25K", 10_000.0, 25_000.0),
    ("25k_50k", "$25K - $50K", 25_000.0, 50_000.0),
    ("50k_100k", "$50K - $100K", 50_000.0, 100_000.0),
    ("100k_250k", "$100K - $250K", 100_000.0, 250_000.0),
    ("250k_500k", "$250K - $500K", 250_000.0, 500_000.0),
    ("500k_1m", "$500K - $1M", 500_000.0, 1_000_000.0),
    ("1m_5m", "$1M - $5M", 1_000_000.0, 5_000_000.0),
    ("over_5m", "Over $5M", 5_000_000.0, None),
)

HIGH_VALUE_THRESHOLD = 250_000.0
LOW_VALUE_THRESHOLD = 50_000.0

# Judgment-to-claim ratios outside this range are called out as insights
HIGH_AWARD_RATIO = 0.9
LOW_AWARD_RATIO = 0.3
INSIGHT_MIN_CASES = 10

_DECIDED = (OutcomeClass.SETTLED, OutcomeClass.DISMISSED, OutcomeClass.JUDGMENT)


def value_bracket(case_value: Optional[float]) -> Optional[str]:
    if case_value is None:
        return None
    for key, _, low, high in VALUE_BRACKETS:
        if case_value >= low and (high is None or case_value < high):
            return key
    return None


class ValueBracketAnalyzer:
    """Settlement, dismissal and judgment rates by case-value bracket.

    Every bracket is reported with its raw counts.  Only brackets whose
    effective size reaches ``value_correlation_floor`` feed the
    value/settlement correlation.
    """

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def analyze(self, weighted_cases: Sequence[WeightedCase]) -> ValueAnalysis:
        groups: Dict[str, List[WeightedCase]] = {key: [] for key, _, _, _ in VALUE_BRACKETS}
        for wc in weighted_cases:
            if not wc.included:
                continue
            key = value_bracket(wc.case.case_value)
            if key is not None:
                groups[key].append(wc)

        brackets: List[BracketStats] = []
        for key, label, low, high in VALUE_BRACKETS:
            brackets.append(self._bracket_stats(key, label, low, high, groups[key]))

        eligible = {b.key for b in brackets if b.correlation_eligible}
        values: List[float] = []
        settled: List[float] = []
        weights: List[float] = []
        total = high_total = low_total = 0.0
        total_settled = high_settled = low_settled = 0.0
        for key, cases in groups.items():
            for wc in cases:
                outcome = classify_outcome(wc.case.effective_outcome)
                if outcome not in _DECIDED:
                    continue
                is_settled = outcome is OutcomeClass.SETTLED
                total += wc.weight
                total_settled += wc.weight if is_settled else 0.0
                if wc.case.case_value >= HIGH_VALUE_THRESHOLD:
                    high_total += wc.weight
                    high_settled += wc.weight if is_settled else 0.0
                elif wc.case.case_value < LOW_VALUE_THRESHOLD:
                    low_total += wc.weight
                    low_settled += wc.weight if is_settled else 0.0
                if key in eligible:
                    values.append(wc.case.case_value)
                    settled.append(1.0 if is_settled else 0.0)
                    weights.append(wc.weight)

        correlation = weighted_pearson(values, settled, weights) if len(eligible) > 0 else None

        return ValueAnalysis(
            brackets=brackets,
            overall_settlement_rate=total_settled / total if total > 0 else None,
            high_value_settlement_rate=high_settled / high_total if high_total > 0 else None,
            low_value_settlement_rate=low_settled / low_total if low_total > 0 else None,
            settlement_value_correlation=correlation,
            total_cases_analyzed=sum(len(c) for c in groups.values()),
            effective_sample_size=float(sum(wc.weight for c in groups.values() for wc in c)),
            insights=self._insights(brackets),
        )

    def _bracket_stats(
        self,
        key: str,
        label: str,
        low: float,
        high: Optional[float],
        cases: List[WeightedCase],
    ) -> BracketStats:
        ess = float(sum(wc.weight for wc in cases))
        outcome_weight: Dict[OutcomeClass, float] = {o: 0.0 for o in _DECIDED}
        ratios: List[float] = []
        ratio_weights: List[float] = []
        days: List[float] = []
        day_weights: List[float] = []
        for wc in cases:
            outcome = classify_outcome(wc.case.effective_outcome)
            if outcome in outcome_weight:
                outcome_weight[outcome] += wc.weight
            claimed = wc.case.case_value
            if wc.case.judgment_amount is not None and claimed:
                ratios.append(wc.case.judgment_amount / claimed)
                ratio_weights.append(wc.weight)
            duration = wc.case.duration_days
            if duration is not None and duration >= 0:
                days.append(duration)
                day_weights.append(wc.weight)

        decided = sum(outcome_weight.values())

        def rate(outcome: OutcomeClass) -> Optional[float]:
            return outcome_weight[outcome] / decided if decided > 0 else None

        ratio_mean = weighted_mean(ratios, ratio_weights)
        return BracketStats(
            key=key,
            label=label,
            min_value=low,
            max_value=high,
            case_count=len(cases),
            effective_sample_size=ess,
            settlement_rate=rate(OutcomeClass.SETTLED),
            dismissal_rate=rate(OutcomeClass.DISMISSED),
            judgment_rate=rate(OutcomeClass.JUDGMENT),
            judgment_ratio_mean=ratio_mean,
            judgment_ratio_std=weighted_std(ratios, ratio_weights, ratio_mean),
            judgment_ratio_count=len(ratios),
            avg_duration_days=weighted_mean(days, day_weights),
            correlation_eligible=ess >= self.config.value_correlation_floor,
            confidence=metric_confidence(ess),
        )

    @staticmethod
    def _insights(brackets: List[BracketStats]) -> List[str]:
        insights: List[str] = []
        for b in brackets:
            if b.judgment_ratio_mean is None or b.judgment_ratio_count < INSIGHT_MIN_CASES:
                continue
            pct = round(b.judgment_ratio_mean * 100)
            if b.judgment_ratio_mean > HIGH_AWARD_RATIO:
                insights.append(f"{b.label} cases: {pct}% of claimed amount awarded on average")
            elif b.judgment_ratio_mean < LOW_AWARD_RATIO:
                insights.append(f"{b.label} cases: only {pct}% of claimed amount awarded on average")
        return insights

    def metric_rows(self, analysis: ValueAnalysis, detailed: bool = True) -> List[MetricRow]:
        floor = self.config.value_correlation_floor
        rows: List[MetricRow] = []
        if analysis.overall_settlement_rate is not None:
            rows.append(
                MetricRow(
                    metric_key="value.settlement_rate.overall",
                    dimension=Dimension.VALUE,
                    label="Overall settlement rate",
                    value=analysis.overall_settlement_rate,
                    sample_size=analysis.total_cases_analyzed,
                    effective_sample_size=analysis.effective_sample_size,
                    confidence=metric_confidence(analysis.effective_sample_size),
                )
            )
        if not detailed:
            return rows
        for b in analysis.brackets:
            if b.settlement_rate is not None:
                rows.append(
                    MetricRow(
                        metric_key=f"value.settlement_rate.{b.key}",
                        dimension=Dimension.VALUE,
                        label=f"Settlement rate ({b.label})",
                        value=b.settlement_rate,
                        sample_size=b.case_count,
                        effective_sample_size=b.effective_sample_size,
                        confidence=b.confidence,
                        low_confidence=b.effective_sample_size < floor,
                    )
                )
            if b.judgment_ratio_mean is not None:
                rows.append(
                    MetricRow(
                        metric_key=f"value.judgment_ratio.{b.key}",
                        dimension=Dimension.VALUE,
                        label=f"Judgment-to-claim ratio ({b.label})",
                        value=b.judgment_ratio_mean,
                        sample_size=b.judgment_ratio_count,
                        effective_sample_size=b.effective_sample_size,
                        confidence=b.confidence,
                        low_confidence=b.effective_sample_size < floor,
                    )
                )
        if analysis.settlement_value_correlation is not None:
            eligible = [b for b in analysis.brackets if b.correlation_eligible]
            ess = float(sum(b.effective_sample_size for b in eligible))
            rows.append(
                MetricRow(
                    metric_key="value.settlement_correlation",
                    dimension=Dimension.VALUE,
                    label="Case value vs settlement correlation",
                    value=analysis.settlement_value_correlation,
                    sample_size=sum(b.case_count for b in eligible),
                    effective_sample_size=ess,
                    confidence=metric_confidence(ess),
                )
            )
        return rows
