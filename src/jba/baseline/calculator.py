"""Jurisdiction peer baselines.

For every metric key a judge's report can contain, the calculator pools the
per-judge values of all judges in the jurisdiction into a weighted mean and
standard deviation.  Each judge is weighted by the effective sample size
behind their value, and the pooling uses West's weighted variant of
Welford's single-pass algorithm so only one running accumulator per metric
is held while peers stream through.  Raw cases are held for one judge at a
time.
"""

from __future__ import annotations

import math
import threading
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..analyzers.motion import MotionPatternAnalyzer
from ..analyzers.party import PartyPatternAnalyzer
from ..analyzers.timing import DecisionTimingAnalyzer
from ..analyzers.value import ValueBracketAnalyzer
from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.errors import BaselineUnavailableError, MalformedInputError
from ..core.models import BaselineProfile, Dimension, MetricRow
from ..io.validation import validate_cases
from ..utils.logging import get_logger
from ..weighting.temporal import TemporalWeightEngine
from .cache import BaselineCache, BaselineSnapshot, InMemoryBaselineCache

logger = get_logger(__name__)


class PeerCaseSource(Protocol):
    """Data-access collaborator supplying peer judges' cases."""

    def judge_ids(self, jurisdiction: str) -> Iterable[str]:
        ...

    def cases_for(self, judge_id: str, jurisdiction: str) -> Sequence[Any]:
        ...


class InMemoryPeerSource:
    """Peer source over a ``{jurisdiction: {judge_id: [cases]}}`` mapping."""

    def __init__(self, data: Mapping[str, Mapping[str, Sequence[Any]]]) -> None:
        self._data = data

    @classmethod
    def single(cls, jurisdiction: str, judges: Mapping[str, Sequence[Any]]) -> "InMemoryPeerSource":
        return cls({jurisdiction: judges})

    def judge_ids(self, jurisdiction: str) -> Iterable[str]:
        return list(self._data.get(jurisdiction, {}).keys())

    def cases_for(self, judge_id: str, jurisdiction: str) -> Sequence[Any]:
        return self._data.get(jurisdiction, {}).get(judge_id, [])


class WeightedWelford:
    """Single-pass weighted mean/variance accumulator (West, 1979)."""

    __slots__ = ("count", "total_weight", "mean", "_m2")

    def __init__(self) -> None:
        self.count = 0
        self.total_weight = 0.0
        self.mean = 0.0
        self._m2 = 0.0

    def add(self, value: float, weight: float) -> None:
        if weight <= 0 or math.isnan(value):
            return
        self.count += 1
        new_total = self.total_weight + weight
        delta = value - self.mean
        self.mean += (weight / new_total) * delta
        self._m2 += weight * delta * (value - self.mean)
        self.total_weight = new_total

    @property
    def variance(self) -> float:
        if self.total_weight <= 0:
            return 0.0
        return max(0.0, self._m2 / self.total_weight)

    @property
    def stddev(self) -> float:
        return math.sqrt(self.variance)


class JudgeMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    value: float
    effective_sample_size: float


class JudgeSummary(BaseModel):
    """Aggregate metric values for one judge, without their raw cases."""

    model_config = ConfigDict(frozen=True)

    judge_id: str
    total_cases: int
    metrics: Dict[str, JudgeMetric] = Field(default_factory=dict)


def summary_from_rows(judge_id: str, total_cases: int, rows: Iterable[MetricRow]) -> JudgeSummary:
    return JudgeSummary(
        judge_id=judge_id,
        total_cases=total_cases,
        metrics={
            row.metric_key: JudgeMetric(
                dimension=row.dimension, value=row.value, effective_sample_size=row.effective_sample_size
            )
            for row in rows
        },
    )


def summarize_judge(
    judge_id: str,
    raw_cases: Any,
    as_of: date,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> JudgeSummary:
    """Run the four analyzers over one judge's cases and keep only the metric values."""
    cases, _ = validate_cases(raw_cases)
    weighted = TemporalWeightEngine(config.decay_rate).apply(cases, as_of)
    motion = MotionPatternAnalyzer(config)
    timing = DecisionTimingAnalyzer(config)
    party = PartyPatternAnalyzer(config)
    value = ValueBracketAnalyzer(config)
    rows: List[MetricRow] = []
    rows.extend(motion.metric_rows(motion.analyze(weighted)))
    rows.extend(timing.metric_rows(timing.analyze(weighted)))
    rows.extend(party.metric_rows(party.analyze(weighted)))
    rows.extend(value.metric_rows(value.analyze(weighted)))
    return summary_from_rows(judge_id, len(cases), rows)


class BaselineCalculator:
    """Compute and cache jurisdiction peer baselines.

    Args:
        source: Peer case source; required for compute-on-miss.
        cache: Snapshot cache; defaults to a private in-memory cache.
        config: Thresholds (peer floor, judge minimum effective size, TTL).
    """

    def __init__(
        self,
        source: Optional[PeerCaseSource] = None,
        cache: Optional[BaselineCache] = None,
        config: AnalyticsConfig = DEFAULT_CONFIG,
    ) -> None:
        self.source = source
        self.cache = cache if cache is not None else InMemoryBaselineCache()
        self.config = config
        self._compute_lock = threading.Lock()

    def build_snapshot(
        self,
        jurisdiction: str,
        summaries: Iterable[JudgeSummary],
        computed_at: Optional[datetime] = None,
    ) -> BaselineSnapshot:
        """Pool streamed judge summaries into profiles.

        Keys observed for fewer than ``minimum_peer_judges_for_baseline``
        judges produce no profile.
        """
        computed_at = computed_at or datetime.now(timezone.utc)
        accumulators: Dict[Tuple[Dimension, str], WeightedWelford] = {}
        judges = 0
        for summary in summaries:
            judges += 1
            for key, metric in summary.metrics.items():
                if metric.effective_sample_size < self.config.baseline_min_judge_effective_cases:
                    continue
                acc = accumulators.setdefault((metric.dimension, key), WeightedWelford())
                acc.add(metric.value, metric.effective_sample_size)

        profiles: List[BaselineProfile] = []
        for (dimension, key), acc in sorted(accumulators.items(), key=lambda kv: (kv[0][0].value, kv[0][1])):
            if acc.count < self.config.minimum_peer_judges_for_baseline:
                continue
            profiles.append(
                BaselineProfile(
                    jurisdiction=jurisdiction,
                    dimension=dimension,
                    metric_key=key,
                    mean=acc.mean,
                    stddev=acc.stddev,
                    sample_size=acc.count,
                    total_weight=acc.total_weight,
                    computed_at=computed_at,
                    ttl_seconds=self.config.baseline_ttl_seconds,
                )
            )
        return BaselineSnapshot(
            jurisdiction=jurisdiction,
            computed_at=computed_at,
            ttl_seconds=self.config.baseline_ttl_seconds,
            judge_count=judges,
            profiles=profiles,
        )

    def compute(
        self,
        jurisdiction: str,
        as_of: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> BaselineSnapshot:
        """Recompute a jurisdiction from the peer source, one judge at a time."""
        if self.source is None:
            raise BaselineUnavailableError(f"No peer case source configured for {jurisdiction}")
        now = now or datetime.now(timezone.utc)
        as_of = as_of or now.date()
        snapshot = self.build_snapshot(jurisdiction, self._stream_summaries(jurisdiction, as_of), now)
        logger.info(
            f"Computed {len(snapshot.profiles)} baseline profiles for {jurisdiction} "
            f"from {snapshot.judge_count} judges"
        )
        return snapshot

    def _stream_summaries(self, jurisdiction: str, as_of: date) -> Iterable[JudgeSummary]:
        try:
            judge_ids = list(self.source.judge_ids(jurisdiction))
        except Exception as e:
            raise BaselineUnavailableError(f"Peer source failed listing judges for {jurisdiction}: {e}") from e
        for judge_id in judge_ids:
            try:
                raw = self.source.cases_for(judge_id, jurisdiction)
            except Exception as e:
                raise BaselineUnavailableError(f"Peer source failed for judge {judge_id}: {e}") from e
            try:
                yield summarize_judge(judge_id, raw, as_of, self.config)
            except MalformedInputError as e:
                logger.warning(f"Skipping peer judge {judge_id} in {jurisdiction}: {e}")

    def profiles_for(
        self,
        jurisdiction: str,
        as_of: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> BaselineSnapshot:
        """Cached snapshot for ``jurisdiction``, recomputed on miss or expiry."""
        now = now or datetime.now(timezone.utc)
        snapshot = self.cache.snapshot(jurisdiction)
        if snapshot is not None and not snapshot.is_expired(now):
            return snapshot
        with self._compute_lock:
            # Another thread may have refreshed it while we waited
            snapshot = self.cache.snapshot(jurisdiction)
            if snapshot is not None and not snapshot.is_expired(now):
                return snapshot
            snapshot = self.compute(jurisdiction, as_of=as_of, now=now)
            self.cache.replace(snapshot)
            return snapshot

    def profile(
        self,
        jurisdiction: str,
        dimension: Dimension,
        metric_key: str,
        now: Optional[datetime] = None,
    ) -> Optional[BaselineProfile]:
        return self.profiles_for(jurisdiction, now=now).lookup(dimension, metric_key)
