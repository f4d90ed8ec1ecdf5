"""Unit tests for temporal weighting and weighted statistics."""

from datetime import date

import numpy as np
import pytest

from jba.core.models import CaseRecord
from jba.weighting.temporal import (
    TemporalWeightEngine,
    effective_case_count,
    weight,
    weight_distribution,
    weighted_mean,
    weighted_pearson,
    weighted_quantile,
    weighted_rate,
    weighted_std,
    years_between,
)
from tests.helpers import AS_OF, make_case, make_dataset


def make_record(**overrides) -> CaseRecord:
    return CaseRecord.model_validate(make_case(**overrides))


class TestWeight:
    """Tests for single-case decay weights."""

    def test_same_day_case_has_full_weight(self) -> None:
        case = make_record(decision_date=AS_OF.isoformat())
        assert weight(case, AS_OF) == pytest.approx(1.0)

    def test_one_year_old_case_decays_once(self) -> None:
        case = make_record(decision_date="2023-06-30")
        assert weight(case, date(2024, 6, 29), 0.95) == pytest.approx(0.95, abs=1e-3)

    def test_weight_monotonically_decreases_with_age(self) -> None:
        dates = ["2024-06-01", "2023-06-01", "2021-06-01", "2015-06-01", "1990-06-01"]
        weights = [weight(make_record(decision_date=d), AS_OF) for d in dates]
        assert all(a > b for a, b in zip(weights, weights[1:]))
        assert all(0 < w <= 1 for w in weights)

    def test_future_dated_case_clamped_to_one(self) -> None:
        case = make_record(decision_date="2030-01-01")
        assert weight(case, AS_OF) == 1.0

    def test_filing_date_used_when_decision_missing(self) -> None:
        case = make_record(decision_date=None, filing_date="2022-06-30")
        assert weight(case, AS_OF) == pytest.approx(0.95 ** years_between(AS_OF, date(2022, 6, 30)))

    def test_undated_case_has_zero_weight(self) -> None:
        case = make_record(decision_date=None, filing_date=None)
        assert weight(case, AS_OF) == 0.0

    def test_invalid_decay_rate_rejected(self) -> None:
        with pytest.raises(ValueError):
            TemporalWeightEngine(decay_rate=0.0)


class TestEngine:
    """Tests for applying weights to a case set."""

    def test_apply_keeps_undated_cases_excluded(self) -> None:
        records = [make_record(case_id="a"), make_record(case_id="b", decision_date=None, filing_date=None)]
        weighted = TemporalWeightEngine().apply(records, AS_OF)
        assert len(weighted) == 2
        assert weighted[0].included
        assert not weighted[1].included
        assert weighted[1].years_old is None

    def test_effective_count_never_exceeds_raw(self) -> None:
        records = [CaseRecord.model_validate(c) for c in make_dataset(200)]
        weighted = TemporalWeightEngine().apply(records, AS_OF)
        effective = effective_case_count(weighted)
        assert 0 < effective <= len(records)

    def test_weight_distribution_percentages(self) -> None:
        records = [
            make_record(case_id="new", decision_date="2024-05-01"),
            make_record(case_id="old", decision_date="2019-05-01"),
            make_record(case_id="none", decision_date=None, filing_date=None),
        ]
        dist = weight_distribution(TemporalWeightEngine().apply(records, AS_OF))
        assert dist.total_cases == 3
        assert dist.included_cases == 2
        assert dist.recent_cases_pct == pytest.approx(50.0)
        assert dist.old_cases_pct == pytest.approx(50.0)
        assert dist.max_weight > dist.min_weight


class TestWeightedStatistics:
    """Tests for the weighted helpers."""

    def test_weighted_mean_and_std_match_numpy(self) -> None:
        values = [1.0, 2.0, 4.0, 8.0]
        weights = [0.5, 1.0, 0.25, 0.75]
        mean = weighted_mean(values, weights)
        assert mean == pytest.approx(np.average(values, weights=weights))
        expected_std = np.sqrt(np.average((np.array(values) - mean) ** 2, weights=weights))
        assert weighted_std(values, weights) == pytest.approx(expected_std)

    def test_empty_inputs_return_none(self) -> None:
        assert weighted_mean([], []) is None
        assert weighted_std([], []) is None
        assert weighted_quantile([], [], 0.5) is None
        assert weighted_pearson([], [], []) is None

    def test_quantile_with_equal_weights(self) -> None:
        values = [10.0, 20.0, 30.0, 40.0]
        assert weighted_quantile(values, [1, 1, 1, 1], 0.5) == pytest.approx(25.0)
        assert weighted_quantile(values, [1, 1, 1, 1], 0.0) == pytest.approx(10.0)
        assert weighted_quantile(values, [1, 1, 1, 1], 1.0) == pytest.approx(40.0)

    def test_quantile_follows_weight(self) -> None:
        values = [10.0, 100.0]
        # Heavy weight on the small value pulls the median toward it
        assert weighted_quantile(values, [9.0, 1.0], 0.5) < 55.0

    def test_quantile_rejects_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            weighted_quantile([1.0], [1.0], 1.5)

    def test_pearson_perfect_and_constant(self) -> None:
        assert weighted_pearson([1, 2, 3], [2, 4, 6], [1, 1, 1]) == pytest.approx(1.0)
        assert weighted_pearson([1, 2, 3], [3, 2, 1], [1, 2, 1]) == pytest.approx(-1.0)
        assert weighted_pearson([1, 2, 3], [5, 5, 5], [1, 1, 1]) is None

    def test_weighted_rate_skips_undeterminable(self) -> None:
        records = [
            make_record(case_id="a", outcome="granted"),
            make_record(case_id="b", outcome="denied"),
            make_record(case_id="c", outcome="pending"),
        ]
        weighted = TemporalWeightEngine().apply(records, AS_OF)
        result = weighted_rate(weighted, lambda c: {"granted": True, "denied": False}.get(c.outcome))
        assert result.count == 2
        assert result.rate == pytest.approx(0.5)
