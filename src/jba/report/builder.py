"""Report orchestration.

:class:`ReportBuilder` drives one report through a fixed sequence of states::

    init -> dataset_loaded -> weighted -> analyzed -> [baseline_joined]
         -> scored -> finalized | degraded

Datasets below ``minimum_raw_cases`` end in ``degraded``: only headline
rates are computed, party analysis is skipped and no baseline join or
anomaly detection happens.  Everything the builder computes is private to
the call until the finished :class:`BiasReport` is returned, so a cancelled
run leaves nothing behind.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..analyzers.motion import MotionPatternAnalyzer
from ..analyzers.party import PartyPatternAnalyzer
from ..analyzers.timing import DecisionTimingAnalyzer
from ..analyzers.value import ValueBracketAnalyzer
from ..anomaly.detector import AnomalyDetector, BaselineComparison
from ..baseline.calculator import BaselineCalculator
from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.errors import BaselineUnavailableError, ReportCancelledError
from ..core.models import AnomalyFlag, MetricRow, Severity, WeightedCase
from ..io.validation import validate_cases
from ..narrative.generator import NarrativeGenerator
from ..scoring.confidence import ConfidenceScore, ConfidenceScorer, round_half_up
from ..utils.logging import get_logger
from ..weighting.temporal import (
    TemporalWeightEngine,
    WeightDistribution,
    effective_case_count,
    weight_distribution,
)
from .models import (
    AnalysisMethod,
    BiasReport,
    DetailedFindings,
    ReportMetadata,
    ReportState,
)

logger = get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation checked between report states.

    Args:
        timeout: Optional number of seconds after which the token expires.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self, state: ReportState) -> None:
        if self.cancelled:
            raise ReportCancelledError(state.value, "cancelled")
        if self.expired:
            raise ReportCancelledError(state.value, "deadline exceeded")


class ReportBuilder:
    """Build a :class:`BiasReport` from one judge's case records.

    Args:
        config: Thresholds for every pipeline stage.
        baseline: Optional peer baseline calculator; without one the
            report is produced without peer comparison.
        narrative: Narrative generator; a default one is used if omitted.
    """

    def __init__(
        self,
        config: AnalyticsConfig = DEFAULT_CONFIG,
        baseline: Optional[BaselineCalculator] = None,
        narrative: Optional[NarrativeGenerator] = None,
    ) -> None:
        self.config = config
        self.baseline = baseline
        self.narrative = narrative or NarrativeGenerator()
        self.weights = TemporalWeightEngine(config.decay_rate)
        self.motion = MotionPatternAnalyzer(config)
        self.timing = DecisionTimingAnalyzer(config)
        self.party = PartyPatternAnalyzer(config)
        self.value = ValueBracketAnalyzer(config)
        self.scorer = ConfidenceScorer(config)
        self.detector = AnomalyDetector(config)

    def build(
        self,
        judge_id: str,
        jurisdiction: str,
        cases: Any,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        as_of: Optional[date] = None,
        judge_name: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> BiasReport:
        """Run the full pipeline.

        Raises:
            MalformedInputError: If ``cases`` violates the input contract.
            ReportCancelledError: If ``token`` is cancelled or expires.
        """
        state = ReportState.INIT
        self._check(token, state)

        records, audit = validate_cases(cases)
        state = ReportState.DATASET_LOADED
        self._check(token, state)
        total = len(records)
        degraded = total < self.config.minimum_raw_cases
        logger.info(f"Building report for judge {judge_id} ({jurisdiction}): {total} cases")

        if as_of is None:
            dated = [r.reference_date for r in records if r.reference_date is not None]
            as_of = end_date or (max(dated) if dated else date.today())
        weighted = self.weights.apply(records, as_of)
        effective = effective_case_count(weighted)
        state = ReportState.WEIGHTED
        self._check(token, state)

        results = self._run_analyzers(weighted, degraded)
        motion, timing, value = results["motion"], results["timing"], results["value"]
        party = results.get("party")
        rows: List[MetricRow] = []
        rows.extend(self.motion.metric_rows(motion, detailed=not degraded))
        rows.extend(self.timing.metric_rows(timing, detailed=not degraded))
        if party is not None:
            rows.extend(self.party.metric_rows(party))
        rows.extend(self.value.metric_rows(value, detailed=not degraded))
        if degraded:
            motion, timing, value = motion.overall_only(), timing.overall_only(), value.overall_only()
        state = ReportState.ANALYZED
        self._check(token, state)

        notes: List[str] = []
        flags: List[AnomalyFlag] = []
        comparison: Optional[BaselineComparison] = None
        if not degraded:
            comparison, rows, flags = self._join_baseline(jurisdiction, as_of, rows, notes)
            if comparison is not None:
                state = ReportState.BASELINE_JOINED
                deviations = {r.metric_key: r.deviation_sigma for r in rows if r.deviation_sigma is not None}
                timing = self.timing.confirm_outliers(timing, deviations)
                self._check(token, state)

        quality = self.scorer.data_quality(weighted, as_of, start_date, end_date)
        quality = quality.model_copy(update=audit.field_gaps())
        if audit.missing_outcome:
            notes.append(
                f"{audit.missing_outcome} cases without a recorded outcome or status are excluded from rate calculations"
            )
        confidence = self.scorer.score(quality)
        rows = [r.model_copy(update={"confidence": min(r.confidence, confidence.percentage)}) for r in rows]
        state = ReportState.SCORED
        self._check(token, state)

        meets_minimum = total >= self.config.comprehensive_case_threshold
        warning = None
        if not meets_minimum:
            warning = (
                f"Dataset below recommended minimum ({total}/{self.config.comprehensive_case_threshold} cases). "
                "Results should be interpreted with caution."
            )
        distribution = weight_distribution(weighted)
        metadata = ReportMetadata(
            judge_id=judge_id,
            judge_name=judge_name,
            jurisdiction=jurisdiction,
            start_date=start_date,
            end_date=end_date,
            as_of=as_of,
            total_cases=total,
            effective_cases=effective,
            analysis_method=AnalysisMethod.LIMITED if degraded else AnalysisMethod.COMPREHENSIVE,
            meets_minimum_threshold=meets_minimum,
            warning=warning,
        )
        final_state = ReportState.DEGRADED if degraded else ReportState.FINALIZED
        report = BiasReport(
            metadata=metadata,
            state=final_state,
            confidence_tier=confidence,
            data_quality=quality,
            metrics_table=rows,
            flagged_anomalies=flags,
            detailed_findings=DetailedFindings(
                motion_analysis=motion,
                timing_analysis=timing,
                value_analysis=value,
                party_analysis=party,
                baseline_comparison=comparison,
                weight_distribution=distribution,
            ),
            executive_summary=self._executive_summary(metadata, confidence, flags, comparison, degraded),
            methodology_notes=self._methodology_notes(metadata, distribution, degraded) + notes,
            recommendations=self.scorer.recommendations(confidence, quality),
        )
        report = report.model_copy(update={"narrative": self.narrative.generate(report)})
        self._check(token, final_state)
        logger.info(
            f"Report for judge {judge_id} {final_state.value}: tier={confidence.tier.value} "
            f"confidence={confidence.percentage:g}% anomalies={len(flags)}"
        )
        return report

    @staticmethod
    def _check(token: Optional[CancellationToken], state: ReportState) -> None:
        if token is not None:
            token.check(state)

    def _run_analyzers(self, weighted: Sequence[WeightedCase], degraded: bool) -> Dict[str, Any]:
        """Run the independent analyzers, in parallel when workers allow."""
        tasks: Dict[str, Callable[[], Any]] = {
            "motion": lambda: self.motion.analyze(weighted),
            "timing": lambda: self.timing.analyze(weighted),
            "value": lambda: self.value.analyze(weighted),
        }
        if not degraded:
            tasks["party"] = lambda: self.party.analyze(weighted)

        workers = min(self.config.max_analyzer_workers, len(tasks))
        if workers <= 1:
            return {name: task() for name, task in tasks.items()}
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="jba-analyzer") as pool:
            futures = {name: pool.submit(task) for name, task in tasks.items()}
            return {name: future.result() for name, future in futures.items()}

    def _join_baseline(
        self,
        jurisdiction: str,
        as_of: date,
        rows: List[MetricRow],
        notes: List[str],
    ):
        """Best-effort peer comparison; failures are recorded in ``notes``."""
        if self.baseline is None:
            notes.append("Peer baseline comparison not performed: no baseline source configured")
            return None, rows, []
        try:
            snapshot = self.baseline.profiles_for(jurisdiction, as_of=as_of)
        except BaselineUnavailableError as e:
            logger.warning(f"Baseline unavailable for {jurisdiction}: {e}")
            notes.append(f"Peer baseline comparison unavailable: {e}")
            return None, rows, []
        if not snapshot.profiles:
            floor = self.config.minimum_peer_judges_for_baseline
            notes.append(
                f"Peer baseline comparison unavailable: fewer than {floor} peer judges in {jurisdiction} "
                "with sufficient data"
            )
            return None, rows, []
        result = self.detector.detect(rows, snapshot)
        return result.comparison, result.rows, result.flags

    def _executive_summary(
        self,
        metadata: ReportMetadata,
        confidence: ConfidenceScore,
        flags: List[AnomalyFlag],
        comparison: Optional[BaselineComparison],
        degraded: bool,
    ) -> str:
        name = metadata.judge_name or f"Judge {metadata.judge_id}"
        minimum = self.config.comprehensive_case_threshold
        sections: List[str] = []
        if metadata.meets_minimum_threshold:
            sections.append(
                f"Comprehensive judicial pattern analysis for {name} based on {metadata.total_cases} cases. "
                f"{confidence.description}"
            )
        else:
            sections.append(
                f"Limited judicial pattern analysis for {name} based on {metadata.total_cases} cases "
                f"(below recommended minimum of {minimum}). Results should be interpreted with caution "
                "as they may not be fully representative."
            )
        if degraded:
            sections.append(
                f"Fewer than {self.config.minimum_raw_cases} cases are available, so only headline "
                "motion, timing and value rates are reported."
            )
        if comparison is not None:
            sections.append(
                f"Comparison to {comparison.jurisdiction} jurisdiction peers: {comparison.description}. "
                f"Overall deviation score: {comparison.overall_deviation_score}/100."
            )
        if flags:
            high = sum(1 for f in flags if f.severity is Severity.HIGH)
            moderate = len(flags) - high
            if high:
                sections.append(
                    f"{high} high-severity anomal{'y' if high == 1 else 'ies'} detected requiring attention."
                )
            if moderate:
                sections.append(
                    f"{moderate} moderate deviation{'' if moderate == 1 else 's'} from typical patterns identified."
                )
            sections.append("Key findings: " + " ".join(f"- {f.description}." for f in flags[:3]))
        elif not degraded:
            sections.append(
                "No significant anomalies detected. Judicial patterns appear consistent with "
                "jurisdiction norms and typical ranges."
            )
        return " ".join(sections)

    def _methodology_notes(
        self,
        metadata: ReportMetadata,
        distribution: WeightDistribution,
        degraded: bool,
    ) -> List[str]:
        minimum = self.config.comprehensive_case_threshold
        notes = [
            f"Analysis based on {metadata.total_cases} total cases with temporal weighting applied "
            f"(effective case count: {round_half_up(metadata.effective_cases)})",
            f"Temporal decay factor {self.config.decay_rate:g} per year: recent cases weighted more heavily "
            f"({distribution.recent_cases_pct:.0f}% within 1 year, {distribution.old_cases_pct:.0f}% older than 3 years)",
            f"Statistical significance determined using a {self.config.anomaly_sigma_threshold:g}-standard-deviation "
            f"threshold with at least {self.config.anomaly_min_effective_sample:g} effective cases per metric",
        ]
        if distribution.total_cases > distribution.included_cases:
            notes.append(
                f"{distribution.total_cases - distribution.included_cases} cases without filing or decision "
                "dates are counted in totals but excluded from weighted metrics"
            )
        if metadata.meets_minimum_threshold:
            notes.append(
                f"Full analytics provided: dataset meets {minimum}-case minimum threshold for comprehensive pattern detection"
            )
        else:
            notes.append(
                f"Limited analytics: dataset below {minimum}-case recommended threshold; results should be "
                "interpreted with caution"
            )
        if degraded:
            notes.append(
                f"Party analysis, peer comparison and anomaly detection skipped: fewer than "
                f"{self.config.minimum_raw_cases} cases"
            )
        notes.append(
            "Confidence scores reflect both sample size and data quality factors including temporal "
            "distribution and category diversity"
        )
        return notes
