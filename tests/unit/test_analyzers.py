"""Unit tests for the four pattern analyzers."""

from datetime import date, timedelta

import pytest

from jba.analyzers import (
    DecisionTimingAnalyzer,
    MotionPatternAnalyzer,
    PartyPatternAnalyzer,
    ValueBracketAnalyzer,
)
from jba.analyzers.models import ComplexityTier
from jba.analyzers.timing import complexity_tier
from jba.analyzers.value import value_bracket
from jba.core.models import PartyType, RepresentationType
from jba.core.taxonomy import MotionCategory
from tests.helpers import DENIED, GRANTED, SETTLED, make_case, make_dataset, make_weighted


def _plus_days(start: str, days: int) -> str:
    return (date.fromisoformat(start) + timedelta(days=days)).isoformat()


def motion_cases(motion: str, granted: int, denied: int, prefix: str = "m"):
    cases = []
    for i in range(granted + denied):
        cases.append(
            make_case(
                case_id=f"{prefix}-{i}",
                motion_type=motion,
                outcome=GRANTED if i < granted else DENIED,
            )
        )
    return cases


class TestMotionPatternAnalyzer:
    """Tests for motion grant/deny patterns."""

    def test_grant_rate_per_category(self) -> None:
        weighted = make_weighted(
            motion_cases("summary judgment", 30, 10, "msj") + motion_cases("motion to dismiss", 5, 15, "mtd")
        )
        analysis = MotionPatternAnalyzer().analyze(weighted)

        by_cat = {p.category: p for p in analysis.patterns_by_type}
        assert by_cat[MotionCategory.SUMMARY_JUDGMENT].grant_rate == pytest.approx(0.75)
        assert by_cat[MotionCategory.DISMISS].grant_rate == pytest.approx(0.25)
        assert analysis.overall_grant_rate == pytest.approx(35 / 60)
        assert analysis.total_motions_analyzed == 60

    def test_patterns_sorted_by_volume(self) -> None:
        weighted = make_weighted(
            motion_cases("motion to dismiss", 2, 2, "mtd") + motion_cases("summary judgment", 5, 5, "msj")
        )
        analysis = MotionPatternAnalyzer().analyze(weighted)
        assert [p.category for p in analysis.patterns_by_type] == [
            MotionCategory.SUMMARY_JUDGMENT,
            MotionCategory.DISMISS,
        ]

    def test_small_category_is_low_confidence(self) -> None:
        # Ten raw motions decay to fewer than ten effective cases
        weighted = make_weighted(motion_cases("summary judgment", 5, 5))
        analysis = MotionPatternAnalyzer().analyze(weighted)
        pattern = analysis.patterns_by_type[0]
        assert pattern.effective_sample_size < 10
        assert pattern.low_confidence is True

    def test_undetermined_outcome_excluded_from_rate(self) -> None:
        cases = motion_cases("summary judgment", 3, 1) + [
            make_case(case_id="pending", motion_type="summary judgment", outcome="Under advisement")
        ]
        analysis = MotionPatternAnalyzer().analyze(make_weighted(cases))
        pattern = analysis.patterns_by_type[0]
        assert pattern.total_motions == 5
        assert pattern.granted + pattern.denied == 4
        assert pattern.grant_rate == pytest.approx(0.75)

    def test_cases_without_motion_are_ignored(self) -> None:
        weighted = make_weighted([make_case(motion_type=None), make_case(case_id="2", motion_type="")])
        analysis = MotionPatternAnalyzer().analyze(weighted)
        assert analysis.patterns_by_type == []
        assert analysis.overall_grant_rate is None

    def test_summary_rows_only_when_not_detailed(self) -> None:
        analyzer = MotionPatternAnalyzer()
        analysis = analyzer.analyze(make_weighted(motion_cases("summary judgment", 10, 10)))
        keys = [r.metric_key for r in analyzer.metric_rows(analysis, detailed=False)]
        assert keys == ["motion.grant_rate.overall", "motion.mean_days.overall"]
        detailed = [r.metric_key for r in analyzer.metric_rows(analysis)]
        assert "motion.grant_rate.summary_judgment" in detailed


class TestDecisionTimingAnalyzer:
    """Tests for decision timing by complexity."""

    def test_complexity_tiers(self) -> None:
        assert complexity_tier(None) is None
        assert complexity_tier(49_999) is ComplexityTier.SIMPLE
        assert complexity_tier(50_000) is ComplexityTier.MODERATE
        assert complexity_tier(999_999) is ComplexityTier.COMPLEX
        assert complexity_tier(1_000_000) is ComplexityTier.HIGHLY_COMPLEX

    def test_exclusions(self) -> None:
        cases = [
            make_case(case_id="ok", case_value=10_000),
            make_case(case_id="no-value", case_value=None),
            make_case(case_id="too-long", case_value=10_000, filing_date="2010-01-01"),
            make_case(case_id="negative", case_value=10_000, filing_date="2024-05-01"),
        ]
        analysis = DecisionTimingAnalyzer().analyze(make_weighted(cases))
        assert analysis.excluded_missing_value == 1
        assert analysis.excluded_invalid_duration == 2
        assert analysis.total_cases_analyzed == 1
        assert analysis.overall_mean_days == pytest.approx(59.0)

    def test_outlier_candidates_above_p90(self) -> None:
        durations = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 1000]
        cases = [
            make_case(
                case_id=f"d{d}",
                case_value=10_000,
                filing_date="2020-01-01",
                decision_date=_plus_days("2020-01-01", d),
            )
            for d in durations
        ]
        analysis = DecisionTimingAnalyzer().analyze(make_weighted(cases))
        simple = analysis.by_complexity[0]
        assert simple.tier is ComplexityTier.SIMPLE
        assert simple.outlier_candidates == ["d1000"]
        assert simple.outlier_cases == []

    def test_confirm_outliers_needs_significant_tier_deviation(self) -> None:
        durations = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 1000]
        cases = [
            make_case(
                case_id=f"d{d}",
                case_value=10_000,
                filing_date="2020-01-01",
                decision_date=_plus_days("2020-01-01", d),
            )
            for d in durations
        ]
        analyzer = DecisionTimingAnalyzer()
        analysis = analyzer.analyze(make_weighted(cases))

        quiet = analyzer.confirm_outliers(analysis, {"timing.mean_days.simple": 1.2})
        assert quiet.by_complexity[0].outlier_cases == []

        loud = analyzer.confirm_outliers(analysis, {"timing.mean_days.simple": -2.4})
        assert loud.by_complexity[0].outlier_cases == ["d1000"]

        edge = analyzer.confirm_outliers(analysis, {"timing.mean_days.simple": 2.0})
        assert edge.by_complexity[0].outlier_cases == []

    def test_fastest_and_slowest(self) -> None:
        cases = [
            make_case(case_id="s", case_value=10_000, filing_date="2024-02-20"),
            make_case(case_id="h", case_value=2_000_000, filing_date="2023-03-01"),
        ]
        analysis = DecisionTimingAnalyzer().analyze(make_weighted(cases))
        assert analysis.fastest_tier is ComplexityTier.SIMPLE
        assert analysis.slowest_tier is ComplexityTier.HIGHLY_COMPLEX

    def test_rows(self) -> None:
        analyzer = DecisionTimingAnalyzer()
        analysis = analyzer.analyze(make_weighted(make_dataset(90)))
        keys = {r.metric_key for r in analyzer.metric_rows(analysis)}
        assert {"timing.mean_days.overall", "timing.median_days.overall", "timing.mean_days.simple"} <= keys
        summary = {r.metric_key for r in analyzer.metric_rows(analysis, detailed=False)}
        assert summary == {"timing.mean_days.overall", "timing.median_days.overall"}


class TestPartyPatternAnalyzer:
    """Tests for party/representation favorability."""

    def test_cells_and_suppression(self) -> None:
        counsel = [
            make_case(case_id=f"c{i}", outcome="Judgment for plaintiff", representation_type="private_counsel")
            for i in range(30)
        ]
        pro_se = [
            make_case(case_id=f"p{i}", outcome="Judgment for defendant", representation_type="pro_se")
            for i in range(5)
        ]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(counsel + pro_se))

        assert len(analysis.cells) == 1
        cell = analysis.cells[0]
        assert cell.party_type is PartyType.INDIVIDUAL
        assert cell.representation_type is RepresentationType.PRIVATE_COUNSEL
        assert cell.favorable_rate == pytest.approx(1.0)
        assert analysis.suppressed_cells == 1
        assert analysis.pro_se_success_rate is None

    def test_individual_vs_corporation_differential(self) -> None:
        cases = [
            make_case(case_id=f"w{i}", outcome="Judgment for plaintiff") for i in range(21)
        ] + [make_case(case_id=f"l{i}", outcome="Judgment for defendant") for i in range(7)]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(cases))
        diff = analysis.individual_vs_corporation
        assert diff.individual_favorable_rate == pytest.approx(0.75)
        assert diff.corporation_favorable_rate == pytest.approx(0.25)
        assert diff.differential == pytest.approx(0.5)

    def test_thin_headline_rates_are_omitted(self) -> None:
        """Test a single individual-vs-corporation case yields no differential."""
        cases = [
            make_case(
                case_id=f"g{i}",
                outcome="Judgment for plaintiff",
                party_types=["small_business", "government"],
            )
            for i in range(30)
        ] + [make_case(case_id="ic", outcome="Judgment for defendant")]
        analyzer = PartyPatternAnalyzer()
        analysis = analyzer.analyze(make_weighted(cases))
        assert analysis.individual_vs_corporation is None
        assert analysis.plaintiff_favorability is not None
        keys = {r.metric_key for r in analyzer.metric_rows(analysis)}
        assert "party.individual_vs_corporation" not in keys
        assert not any(r.low_confidence for r in analyzer.metric_rows(analysis))

    def test_thin_plaintiff_favorability_is_omitted(self) -> None:
        cases = [make_case(case_id=f"p{i}", outcome="Judgment for plaintiff") for i in range(5)]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(cases))
        assert analysis.plaintiff_favorability is None
        assert analysis.individual_vs_corporation is None

    def test_defendant_side_party_is_judged_from_its_side(self) -> None:
        cases = [
            make_case(case_id=f"d{i}", outcome="Judgment for plaintiff", party_role="defendant")
            for i in range(25)
        ]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(cases))
        assert analysis.cells[0].favorable_rate == pytest.approx(0.0)
        assert analysis.plaintiff_favorability.plaintiff_rate == pytest.approx(1.0)

    def test_settlements_are_not_decided(self) -> None:
        cases = [make_case(case_id=f"s{i}", outcome=SETTLED) for i in range(25)]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(cases))
        assert analysis.total_cases_analyzed == 0
        assert analysis.cells == []
        assert analysis.plaintiff_favorability is None

    def test_pro_se_rate_reported_with_enough_support(self) -> None:
        cases = [
            make_case(
                case_id=f"p{i}",
                outcome="Judgment for plaintiff" if i % 4 == 0 else "Judgment for defendant",
                representation_type="pro_se",
            )
            for i in range(40)
        ]
        analysis = PartyPatternAnalyzer().analyze(make_weighted(cases))
        assert analysis.pro_se_success_rate == pytest.approx(0.25)
        keys = {r.metric_key for r in PartyPatternAnalyzer().metric_rows(analysis)}
        assert "party.favor_rate.by_representation.pro_se" in keys
        assert "party.favor_rate.individual.pro_se" in keys


class TestValueBracketAnalyzer:
    """Tests for case-value bracket analysis."""

    def test_bracket_boundaries(self) -> None:
        assert value_bracket(None) is None
        assert value_bracket(0) == "under_10k"
        assert value_bracket(9_999.99) == "under_10k"
        assert value_bracket(10_000) == "10k_25k"
        assert value_bracket(4_999_999) == "1m_5m"
        assert value_bracket(5_000_000) == "over_5m"

    def test_rates_and_ratios(self) -> None:
        analysis = ValueBracketAnalyzer().analyze(make_weighted(make_dataset(360)))
        assert len(analysis.brackets) == 9
        for bracket in analysis.brackets:
            assert bracket.case_count == 40
            assert bracket.settlement_rate == pytest.approx(0.25, abs=0.05)
            assert bracket.judgment_ratio_mean == pytest.approx(0.6)
            assert bracket.correlation_eligible is True
        assert analysis.settlement_value_correlation is not None
        assert -1.0 <= analysis.settlement_value_correlation <= 1.0
        assert analysis.insights == []

    def test_overall_only_keeps_headline_rate(self) -> None:
        analysis = ValueBracketAnalyzer().analyze(make_weighted(make_dataset(360)))
        reduced = analysis.overall_only()
        assert reduced.brackets == []
        assert reduced.settlement_value_correlation is None
        assert reduced.high_value_settlement_rate is None
        assert reduced.overall_settlement_rate == analysis.overall_settlement_rate
        assert reduced.total_cases_analyzed == analysis.total_cases_analyzed

    def test_correlation_needs_supported_brackets(self) -> None:
        cases = [make_case(case_id=str(i), outcome=SETTLED if i % 2 else GRANTED) for i in range(10)]
        analysis = ValueBracketAnalyzer().analyze(make_weighted(cases))
        assert analysis.settlement_value_correlation is None
        bracket = next(b for b in analysis.brackets if b.key == "100k_250k")
        assert bracket.case_count == 10
        assert bracket.correlation_eligible is False

    def test_high_award_insight(self) -> None:
        cases = [
            make_case(case_id=str(i), outcome="Judgment for plaintiff", case_value=200_000, judgment_amount=190_000)
            for i in range(12)
        ]
        analysis = ValueBracketAnalyzer().analyze(make_weighted(cases))
        assert analysis.insights == ["$100K - $250K cases: 95% of claimed amount awarded on average"]

    def test_summary_rows_only_when_not_detailed(self) -> None:
        analyzer = ValueBracketAnalyzer()
        analysis = analyzer.analyze(make_weighted(make_dataset(90)))
        keys = [r.metric_key for r in analyzer.metric_rows(analysis, detailed=False)]
        assert keys == ["value.settlement_rate.overall"]
