"""Temporal decay weighting and weighted statistics.

Recent judicial behaviour is more informative than decade-old rulings, so
every case carries a weight ``decay_rate ** years_old`` computed from its
decision date (filing date as fallback).  All downstream averages, rates,
quantiles and correlations are computed from these weights through the
helpers in this module so the weighting logic lives in exactly one place.

Cases with neither date get weight 0: they still count toward the raw case
total but are excluded from every weighted aggregate.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from ..core.models import CaseRecord, WeightedCase
from ..utils.logging import get_logger

logger = get_logger(__name__)

DAYS_PER_YEAR = 365.25
# Keeps very old cases strictly inside (0, 1]
MIN_WEIGHT = 1e-9


def years_between(as_of: date, then: date) -> float:
    """Fractional years from ``then`` to ``as_of``; future dates count as 0."""
    return max(0.0, (as_of - then).days / DAYS_PER_YEAR)


def weight(case: CaseRecord, as_of: date, decay_rate: float = 0.95) -> float:
    """Decay weight of a single case, 0.0 if it has no usable date."""
    ref = case.reference_date
    if ref is None:
        return 0.0
    w = decay_rate ** years_between(as_of, ref)
    return float(min(1.0, max(MIN_WEIGHT, w)))


class TemporalWeightEngine:
    """Attach decay weights to a case set relative to an ``as_of`` date."""

    def __init__(self, decay_rate: float = 0.95) -> None:
        if not 0.0 < decay_rate <= 1.0:
            raise ValueError(f"decay_rate must be in (0, 1], got {decay_rate}")
        self.decay_rate = decay_rate

    def weight(self, case: CaseRecord, as_of: date) -> float:
        return weight(case, as_of, self.decay_rate)

    def apply(self, cases: Iterable[CaseRecord], as_of: date) -> List[WeightedCase]:
        weighted: List[WeightedCase] = []
        excluded = 0
        for case in cases:
            ref = case.reference_date
            if ref is None:
                excluded += 1
                weighted.append(WeightedCase(case=case, weight=0.0, years_old=None))
                continue
            weighted.append(
                WeightedCase(case=case, weight=self.weight(case, as_of), years_old=years_between(as_of, ref))
            )
        if excluded:
            logger.debug(f"Excluded {excluded} undated cases from weighted aggregates")
        return weighted


class RateResult(BaseModel):
    rate: Optional[float]
    total_weight: float
    positive_weight: float
    count: int
    positive_count: int = 0


class WeightDistribution(BaseModel):
    """Summary of how weight is spread across a case set."""

    total_cases: int
    included_cases: int
    effective_cases: float
    avg_weight: float
    min_weight: float
    max_weight: float
    recent_cases_pct: float  # within 1 year
    old_cases_pct: float  # older than 3 years


def included(weighted_cases: Iterable[WeightedCase]) -> List[WeightedCase]:
    return [wc for wc in weighted_cases if wc.included]


def effective_case_count(weighted_cases: Iterable[WeightedCase]) -> float:
    """Sum of weights; never exceeds the raw case count."""
    return float(sum(wc.weight for wc in weighted_cases))


def weighted_mean(values: Sequence[float], weights: Sequence[float]) -> Optional[float]:
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    if v.size == 0 or v.size != w.size or w.sum() <= 0:
        return None
    return float(np.sum(w * v) / np.sum(w))


def weighted_std(
    values: Sequence[float],
    weights: Sequence[float],
    mean: Optional[float] = None,
) -> Optional[float]:
    """Population-form weighted standard deviation."""
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    if v.size == 0 or v.size != w.size or w.sum() <= 0:
        return None
    if mean is None:
        mean = float(np.sum(w * v) / np.sum(w))
    variance = np.sum(w * (v - mean) ** 2) / np.sum(w)
    return float(np.sqrt(variance))


def weighted_quantile(values: Sequence[float], weights: Sequence[float], q: float) -> Optional[float]:
    """Weight-aware quantile.

    Values are sorted, their weights accumulated, and each value is placed at
    the midpoint of its cumulative weight interval.  The quantile is linearly
    interpolated at the target weighted rank ``q`` (0..1), clamping to the
    extreme values outside the first/last midpoint.
    """
    if not 0.0 <= q <= 1.0:
        raise ValueError(f"q must be in [0, 1], got {q}")
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    if v.size == 0 or v.size != w.size:
        return None
    mask = w > 0
    v, w = v[mask], w[mask]
    if v.size == 0:
        return None
    order = np.argsort(v, kind="mergesort")
    v, w = v[order], w[order]
    cumulative = np.cumsum(w)
    positions = (cumulative - 0.5 * w) / cumulative[-1]
    return float(np.interp(q, positions, v))


def weighted_pearson(x: Sequence[float], y: Sequence[float], weights: Sequence[float]) -> Optional[float]:
    """Weighted Pearson correlation; None when either variable is constant."""
    xv = np.asarray(x, dtype=float)
    yv = np.asarray(y, dtype=float)
    w = np.asarray(weights, dtype=float)
    if xv.size < 2 or xv.size != yv.size or xv.size != w.size or w.sum() <= 0:
        return None
    mx = np.sum(w * xv) / np.sum(w)
    my = np.sum(w * yv) / np.sum(w)
    cov = np.sum(w * (xv - mx) * (yv - my))
    var_x = np.sum(w * (xv - mx) ** 2)
    var_y = np.sum(w * (yv - my) ** 2)
    if var_x <= 0 or var_y <= 0:
        return None
    r = cov / np.sqrt(var_x * var_y)
    return float(np.clip(r, -1.0, 1.0))


def weighted_rate(
    weighted_cases: Iterable[WeightedCase],
    predicate: Callable[[CaseRecord], Optional[bool]],
) -> RateResult:
    """Weighted share of cases for which ``predicate`` is True.

    Cases where the predicate returns None (undeterminable) are left out of
    both numerator and denominator.
    """
    positive = 0.0
    total = 0.0
    count = positive_count = 0
    for wc in weighted_cases:
        if not wc.included:
            continue
        result = predicate(wc.case)
        if result is None:
            continue
        total += wc.weight
        count += 1
        if result:
            positive += wc.weight
            positive_count += 1
    rate = positive / total if total > 0 else None
    return RateResult(
        rate=rate, total_weight=total, positive_weight=positive, count=count, positive_count=positive_count
    )


def weight_distribution(weighted_cases: Sequence[WeightedCase]) -> WeightDistribution:
    total = len(weighted_cases)
    inc = included(weighted_cases)
    if not inc:
        return WeightDistribution(
            total_cases=total,
            included_cases=0,
            effective_cases=0.0,
            avg_weight=0.0,
            min_weight=0.0,
            max_weight=0.0,
            recent_cases_pct=0.0,
            old_cases_pct=0.0,
        )
    weights = np.array([wc.weight for wc in inc])
    recent = sum(1 for wc in inc if wc.years_old is not None and wc.years_old <= 1.0)
    old = sum(1 for wc in inc if wc.years_old is not None and wc.years_old > 3.0)
    return WeightDistribution(
        total_cases=total,
        included_cases=len(inc),
        effective_cases=float(weights.sum()),
        avg_weight=float(weights.mean()),
        min_weight=float(weights.min()),
        max_weight=float(weights.max()),
        recent_cases_pct=100.0 * recent / len(inc),
        old_cases_pct=100.0 * old / len(inc),
    )
