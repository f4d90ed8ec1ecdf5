"""Plain-language narrative for a bias report.

Narrative text is produced by looking up fixed templates keyed by the
report's confidence tier, its highest anomaly severity and the direction of
each headline metric (high, low or typical).  There is no randomness and no
wall-clock input, so the same report always yields the same narrative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from ..core.models import Severity
from ..scoring.confidence import ConfidenceTier
from ..report.models import BiasReport, Narrative

DATA_EXTENT = {
    ConfidenceTier.TIER_1: "comprehensive",
    ConfidenceTier.TIER_2: "substantial",
    ConfidenceTier.TIER_3: "adequate",
    ConfidenceTier.LIMITED: "limited",
}

ANOMALY_LEVEL = {
    "none": "no significant anomalies",
    Severity.MODERATE.value: "some moderate deviations from typical patterns",
    Severity.HIGH.value: "several notable patterns requiring attention",
}

OVERVIEW_TEMPLATE = (
    "This analysis of {judge}'s judicial patterns is based on {extent} data comprising "
    "{total} cases spanning {period}. The analysis reveals {anomalies}. Overall confidence "
    "in these findings is {confidence} ({percentage}%)."
)

DEGRADED_NOTE = (
    "Only headline rates are reported because the dataset is below the minimum needed "
    "for party-level and peer-comparison analysis."
)


@dataclass(frozen=True)
class PatternRule:
    """Maps one headline metric's direction to a key-pattern template."""

    metric: str
    low: float
    high: float
    templates: Dict[str, str]


def _pct(value: float) -> int:
    return int(round(value * 100))


# Headline metrics read from the report; None means not available
_EXTRACTORS: Dict[str, Callable[[BiasReport], Optional[float]]] = {
    "settlement_rate": lambda r: r.detailed_findings.value_analysis.overall_settlement_rate,
    "motion_grant_rate": lambda r: r.detailed_findings.motion_analysis.overall_grant_rate,
    "avg_days": lambda r: r.detailed_findings.timing_analysis.overall_mean_days,
    "individual_favorable_rate": lambda r: (
        r.detailed_findings.party_analysis.individual_vs_corporation.individual_favorable_rate
        if r.detailed_findings.party_analysis is not None
        and r.detailed_findings.party_analysis.individual_vs_corporation is not None
        else None
    ),
    "plaintiff_rate": lambda r: (
        r.detailed_findings.party_analysis.plaintiff_favorability.plaintiff_rate
        if r.detailed_findings.party_analysis is not None
        and r.detailed_findings.party_analysis.plaintiff_favorability is not None
        else None
    ),
    "pro_se_success_rate": lambda r: (
        r.detailed_findings.party_analysis.pro_se_success_rate
        if r.detailed_findings.party_analysis is not None
        else None
    ),
}

KEY_PATTERN_RULES = (
    PatternRule(
        "settlement_rate",
        0.35,
        0.65,
        {
            "high": (
                "Encourages settlement in {pct}% of eligible cases, which is higher than typical "
                "judicial averages. This suggests a preference for negotiated resolutions over trial."
            ),
            "low": (
                "Cases settle less frequently ({pct}% rate) compared to typical courts, indicating "
                "a willingness to take matters to trial or judgment."
            ),
            "typical": "Settlement rate of {pct}% is within the normal range for judicial proceedings.",
        },
    ),
    PatternRule(
        "motion_grant_rate",
        0.35,
        0.60,
        {
            "high": (
                "Grants motions at a {pct}% rate, suggesting a relatively permissive approach "
                "to procedural requests."
            ),
            "low": (
                "Denies most motions ({inverse_pct}% denial rate), demonstrating high scrutiny "
                "of procedural requests."
            ),
        },
    ),
    PatternRule(
        "avg_days",
        120.0,
        240.0,
        {
            "high": (
                "Cases take an average of {days} days to resolve, which is longer than typical "
                "judicial timelines. This may reflect case complexity or docket management."
            ),
            "low": (
                "Resolves cases quickly with an average of {days} days from filing to decision, "
                "which is faster than typical case timelines."
            ),
        },
    ),
    PatternRule(
        "individual_favorable_rate",
        0.40,
        0.60,
        {
            "high": (
                "In disputes between individuals and corporations, outcomes favor individuals "
                "{pct}% of the time."
            ),
            "low": (
                "In disputes between individuals and corporations, outcomes favor corporations "
                "{inverse_pct}% of the time."
            ),
        },
    ),
)

STRENGTH_RULES = (
    PatternRule(
        "avg_days",
        150.0,
        float("inf"),
        {"low": "Efficient case management with average resolution time of {days} days"},
    ),
    PatternRule(
        "plaintiff_rate",
        0.45,
        0.55,
        {
            "typical": (
                "Balanced outcomes between plaintiffs and defendants suggest impartial case evaluation"
            )
        },
    ),
    PatternRule(
        "pro_se_success_rate",
        0.30,
        0.30,
        {
            "high": (
                "Self-represented litigants achieve favorable outcomes {pct}% of the time, "
                "indicating consideration for pro se parties"
            )
        },
    ),
)

CONCERN_RULES = (
    PatternRule(
        "motion_grant_rate",
        0.20,
        0.80,
        {
            "high": "Motion grant rate of {pct}% is outside typical judicial range (35-65%)",
            "low": "Motion grant rate of {pct}% is outside typical judicial range (35-65%)",
        },
    ),
    PatternRule(
        "avg_days",
        float("-inf"),
        365.0,
        {
            "high": (
                "Extended case duration ({days} days average) may indicate docket congestion "
                "or complex caseload"
            )
        },
    ),
    PatternRule(
        "individual_favorable_rate",
        0.25,
        0.75,
        {
            "high": "Notable imbalance in individual vs. corporation outcomes may warrant further examination",
            "low": "Notable imbalance in individual vs. corporation outcomes may warrant further examination",
        },
    ),
)


def direction(value: float, low: float, high: float) -> str:
    if value > high:
        return "high"
    if value < low:
        return "low"
    return "typical"


def highest_severity(report: BiasReport) -> str:
    severities = {flag.severity for flag in report.flagged_anomalies}
    if Severity.HIGH in severities:
        return Severity.HIGH.value
    if Severity.MODERATE in severities:
        return Severity.MODERATE.value
    return "none"


def format_period(start: Optional[date], end: Optional[date]) -> str:
    if start is None or end is None:
        return "the available record"
    return f"{start:%b %Y} to {end:%b %Y}"


def _apply_rules(report: BiasReport, rules) -> List[str]:
    lines: List[str] = []
    for rule in rules:
        value = _EXTRACTORS[rule.metric](report)
        if value is None:
            continue
        template = rule.templates.get(direction(value, rule.low, rule.high))
        if template is None:
            continue
        lines.append(template.format(pct=_pct(value), inverse_pct=_pct(1 - value), days=int(round(value))))
    return lines


class NarrativeGenerator:
    """Render a :class:`Narrative` from a finished report."""

    def generate(self, report: BiasReport) -> Narrative:
        return Narrative(
            overview=self.overview(report),
            key_patterns=self.key_patterns(report),
            strengths=self.strengths(report),
            concerns=self.concerns(report),
            context_notes=self.context_notes(report),
            recommendations=self.recommendations(report),
        )

    def overview(self, report: BiasReport) -> str:
        meta = report.metadata
        text = OVERVIEW_TEMPLATE.format(
            judge=meta.judge_name or f"Judge {meta.judge_id}",
            extent=DATA_EXTENT[report.confidence_tier.tier],
            total=meta.total_cases,
            period=format_period(meta.start_date, meta.end_date),
            anomalies=ANOMALY_LEVEL[highest_severity(report)],
            confidence=report.confidence_tier.label.lower(),
            percentage=f"{report.confidence_tier.percentage:g}",
        )
        if report.degraded:
            text = f"{text} {DEGRADED_NOTE}"
        return text

    def key_patterns(self, report: BiasReport) -> List[str]:
        patterns = _apply_rules(report, KEY_PATTERN_RULES)
        value = report.detailed_findings.value_analysis
        if value.high_value_settlement_rate is not None and value.low_value_settlement_rate is not None:
            if value.high_value_settlement_rate - value.low_value_settlement_rate > 0.25:
                patterns.append(
                    "Shows different approaches based on case value: high-value cases (over $250K) "
                    f"settle {_pct(value.high_value_settlement_rate)}% of the time compared to "
                    f"{_pct(value.low_value_settlement_rate)}% for lower-value cases."
                )
        for flag in report.flagged_anomalies:
            if flag.severity is Severity.MODERATE:
                patterns.append(f"Moderate deviation from peers: {flag.description}")
        return patterns

    def strengths(self, report: BiasReport) -> List[str]:
        strengths = _apply_rules(report, STRENGTH_RULES)
        comparison = report.detailed_findings.baseline_comparison
        if comparison is not None and comparison.overall_deviation_score < 30:
            strengths.append(
                "Judicial patterns are consistent with jurisdiction norms, demonstrating predictable decision-making"
            )
        if highest_severity(report) != Severity.HIGH.value and not report.degraded:
            strengths.append("No high-severity anomalies detected in judicial pattern analysis")
        return strengths

    def concerns(self, report: BiasReport) -> List[str]:
        concerns = [f.description for f in report.flagged_anomalies if f.severity is Severity.HIGH]
        if report.confidence_tier.tier is ConfidenceTier.LIMITED:
            concerns.append(
                f"Limited dataset ({report.metadata.total_cases} cases) reduces statistical reliability of findings"
            )
        concerns.extend(_apply_rules(report, CONCERN_RULES))
        return concerns

    def context_notes(self, report: BiasReport) -> List[str]:
        notes = [
            "Statistical patterns reflect aggregated case outcomes and do not account for individual "
            "case merits, complexity, or legal standards applicable to each matter."
        ]
        if report.data_quality.data_freshness_score < 0.6:
            notes.append(
                "A significant portion of analyzed cases are older than 2 years, which may not fully "
                "reflect current judicial patterns."
            )
        comparison = report.detailed_findings.baseline_comparison
        if comparison is not None:
            notes.append(
                f"Comparisons are made against {report.metadata.jurisdiction} jurisdiction averages "
                f"based on {comparison.peer_judges} peer judges."
            )
        notes.append(
            "Analysis applies temporal weighting to prioritize recent cases while maintaining historical context."
        )
        notes.append(
            "Deviation from jurisdiction averages does not necessarily indicate improper bias. Judges "
            "may specialize in specific case types or handle unique dockets."
        )
        return notes

    def recommendations(self, report: BiasReport) -> List[str]:
        recs: List[str] = []
        if report.confidence_tier.tier is ConfidenceTier.LIMITED:
            recs.append(
                "Expand analysis to include additional cases (target: 500+ cases) for more reliable pattern detection"
            )
        if report.data_quality.data_freshness_score < 0.6:
            recs.append("Update analysis with more recent case data to reflect current judicial patterns")
        if report.data_quality.category_diversity_score < 0.5:
            recs.append("Include more diverse case types to improve comprehensiveness of pattern analysis")
        if highest_severity(report) == Severity.HIGH.value:
            recs.append(
                "Review high-severity anomalies with subject matter experts to determine if additional "
                "context is needed"
            )
        if len(report.flagged_anomalies) >= 3:
            recs.append("Consider detailed case-by-case review of significant deviations from jurisdiction norms")
        return recs


def render_text(report: BiasReport, narrative: Optional[Narrative] = None) -> str:
    """Plain-text export of a report and its narrative."""
    narrative = narrative or report.narrative or NarrativeGenerator().generate(report)
    meta = report.metadata
    rule = "=" * 80
    sub = "-" * 80
    lines: List[str] = [
        rule,
        "JUDICIAL PATTERN ANALYSIS REPORT",
        f"Judge: {meta.judge_name or meta.judge_id}",
        f"Jurisdiction: {meta.jurisdiction}",
        f"As of: {meta.as_of.isoformat()}",
        f"Analysis Period: {format_period(meta.start_date, meta.end_date)}",
        f"Total Cases: {meta.total_cases} (effective {meta.effective_cases:.1f})",
        f"Confidence: {report.confidence_tier.label} ({report.confidence_tier.percentage:g}%)",
        rule,
        "",
    ]
    if meta.warning:
        lines += [f"WARNING: {meta.warning}", ""]

    def section(title: str, items: List[str], marker: str) -> None:
        if not items:
            return
        lines.extend([title, sub])
        for i, item in enumerate(items, 1):
            lines.append(f"{i}. {item}" if marker == "#" else f"{marker} {item}")
        lines.append("")

    lines += ["EXECUTIVE SUMMARY", sub, report.executive_summary, ""]
    lines += ["OVERVIEW", sub, narrative.overview, ""]
    section("KEY PATTERNS IDENTIFIED", narrative.key_patterns, "#")
    section("STRENGTHS", narrative.strengths, "+")
    section("AREAS REQUIRING ATTENTION", narrative.concerns, "!")

    if report.flagged_anomalies:
        lines.extend(["FLAGGED ANOMALIES", sub])
        for flag in report.flagged_anomalies:
            lines.append(f"[{flag.severity.value.upper()}] {flag.dimension.value}: {flag.label}")
            lines.append(f"   {flag.description}")
            lines.append(
                f"   Judge Value: {flag.judge_value:.4g} | Baseline: {flag.baseline_value:.4g} | "
                f"Deviation: {flag.deviation_sigma:+.1f} sigma | p = {flag.p_value:.3g}"
            )
            lines.append("")

    if report.metrics_table:
        lines.extend(["METRICS", sub])
        for row in report.metrics_table:
            marker = "*" if row.flagged else " "
            low = " (low confidence)" if row.low_confidence else ""
            lines.append(
                f"{marker} {row.label}: {row.value:.4g} [n={row.sample_size}, "
                f"eff={row.effective_sample_size:.1f}, conf={row.confidence:g}%]{low}"
            )
        lines.append("")

    section("CONTEXT & LIMITATIONS", narrative.context_notes, "-")
    section("RECOMMENDATIONS", narrative.recommendations, "#")
    section("METHODOLOGY", report.methodology_notes, "-")
    lines += [rule, "End of Report", rule]
    return "\n".join(lines)
