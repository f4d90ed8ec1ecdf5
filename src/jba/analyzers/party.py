"""Outcome favorability by party type and representation."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config.analytics import DEFAULT_CONFIG, AnalyticsConfig
from ..core.models import Dimension, MetricRow, PartyRole, PartyType, RepresentationType, WeightedCase
from ..core.taxonomy import plaintiff_prevailed
from ..scoring.confidence import metric_confidence
from ..utils.logging import get_logger
from .models import PartyAnalysis, PartyCell, PartyDifferential, PartyMarginal, SideFavorability

logger = get_logger(__name__)

PARTY_LABELS = {
    PartyType.INDIVIDUAL: "Individuals",
    PartyType.CORPORATION: "Corporations",
    PartyType.SMALL_BUSINESS: "Small businesses",
    PartyType.GOVERNMENT: "Government entities",
    PartyType.NON_PROFIT: "Non-profits",
    PartyType.INSURANCE: "Insurance companies",
    PartyType.UNKNOWN: "Unidentified parties",
}

REPRESENTATION_LABELS = {
    RepresentationType.PRO_SE: "Pro se litigants",
    RepresentationType.PRIVATE_COUNSEL: "Privately represented parties",
    RepresentationType.PUBLIC_DEFENDER: "Publicly represented parties",
}


@dataclass
class _Tally:
    count: int = 0
    weight: float = 0.0
    favorable_weight: float = 0.0

    def add(self, weight: float, favorable: bool) -> None:
        self.count += 1
        self.weight += weight
        if favorable:
            self.favorable_weight += weight

    @property
    def rate(self) -> Optional[float]:
        return self.favorable_weight / self.weight if self.weight > 0 else None


def _favorable(prevailed: bool, role: PartyRole) -> bool:
    return prevailed if role is PartyRole.PLAINTIFF else not prevailed


class PartyPatternAnalyzer:
    """Cross-tab of favorable outcome rates by party type x representation.

    Favorability is judged from the side each listed party litigates on
    (see :meth:`CaseRecord.party_sides`).  Cells with an effective size
    below ``party_cell_floor`` are suppressed from the output rather than
    reported as zero.
    """

    def __init__(self, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def analyze(self, weighted_cases: Sequence[WeightedCase]) -> PartyAnalysis:
        floor = self.config.party_cell_floor
        cells: Dict[Tuple[PartyType, RepresentationType], _Tally] = defaultdict(_Tally)
        by_party: Dict[PartyType, _Tally] = defaultdict(_Tally)
        by_rep: Dict[RepresentationType, _Tally] = defaultdict(_Tally)
        indiv_vs_corp = _Tally()
        plaintiff = _Tally()
        analyzed = 0
        analyzed_weight = 0.0

        for wc in weighted_cases:
            if not wc.included:
                continue
            prevailed = plaintiff_prevailed(wc.case.effective_outcome)
            if prevailed is None:
                continue
            plaintiff.add(wc.weight, prevailed)

            sides = wc.case.party_sides()
            if not sides:
                continue
            analyzed += 1
            analyzed_weight += wc.weight

            primary_party, primary_role = sides[0]
            rep = wc.case.representation_type
            if rep is not None:
                primary_favorable = _favorable(prevailed, primary_role)
                cells[(primary_party, rep)].add(wc.weight, primary_favorable)
                by_rep[rep].add(wc.weight, primary_favorable)

            for party, role in sides:
                by_party[party].add(wc.weight, _favorable(prevailed, role))

            roles = dict(sides)
            if PartyType.INDIVIDUAL in roles and PartyType.CORPORATION in roles:
                indiv_vs_corp.add(wc.weight, _favorable(prevailed, roles[PartyType.INDIVIDUAL]))

        reportable: List[PartyCell] = []
        suppressed = 0
        for party in PartyType:
            for rep in RepresentationType:
                tally = cells.get((party, rep))
                if tally is None:
                    continue
                if tally.weight < floor:
                    suppressed += 1
                    continue
                reportable.append(
                    PartyCell(
                        party_type=party,
                        representation_type=rep,
                        case_count=tally.count,
                        effective_sample_size=tally.weight,
                        favorable_rate=tally.rate,
                        confidence=metric_confidence(tally.weight),
                    )
                )
        if suppressed:
            logger.debug(f"Suppressed {suppressed} party cells below {floor:g} effective cases")

        by_rep_tally = by_rep.get(RepresentationType.PRO_SE)
        pro_se = by_rep_tally.rate if by_rep_tally is not None and by_rep_tally.weight >= floor else None

        # Headline rates need the same support as a cell
        differential = None
        if indiv_vs_corp.count and indiv_vs_corp.weight >= floor:
            rate = indiv_vs_corp.rate
            differential = PartyDifferential(
                individual_favorable_rate=rate,
                corporation_favorable_rate=1.0 - rate,
                differential=rate - (1.0 - rate),
                case_count=indiv_vs_corp.count,
                effective_sample_size=indiv_vs_corp.weight,
            )

        favorability = None
        if plaintiff.count and plaintiff.weight >= floor:
            favorability = SideFavorability(
                plaintiff_rate=plaintiff.rate,
                defendant_rate=1.0 - plaintiff.rate,
                decided_cases=plaintiff.count,
                effective_sample_size=plaintiff.weight,
            )

        return PartyAnalysis(
            cells=reportable,
            suppressed_cells=suppressed,
            by_party_type=[
                self._marginal(p.value, PARTY_LABELS[p], by_party[p]) for p in PartyType if p in by_party
            ],
            by_representation=[
                self._marginal(r.value, REPRESENTATION_LABELS[r], by_rep[r])
                for r in RepresentationType
                if r in by_rep
            ],
            pro_se_success_rate=pro_se,
            individual_vs_corporation=differential,
            plaintiff_favorability=favorability,
            total_cases_analyzed=analyzed,
            effective_sample_size=analyzed_weight,
        )

    def _marginal(self, key: str, label: str, tally: _Tally) -> PartyMarginal:
        return PartyMarginal(
            key=key,
            label=label,
            case_count=tally.count,
            effective_sample_size=tally.weight,
            favorable_rate=tally.rate,
            confidence=metric_confidence(tally.weight),
            reportable=tally.weight >= self.config.party_cell_floor,
        )

    def metric_rows(self, analysis: PartyAnalysis) -> List[MetricRow]:
        rows: List[MetricRow] = []
        if analysis.plaintiff_favorability is not None:
            fav = analysis.plaintiff_favorability
            rows.append(
                MetricRow(
                    metric_key="party.plaintiff_favorability",
                    dimension=Dimension.PARTY,
                    label="Plaintiff-favorable outcome rate",
                    value=fav.plaintiff_rate,
                    sample_size=fav.decided_cases,
                    effective_sample_size=fav.effective_sample_size,
                    confidence=metric_confidence(fav.effective_sample_size),
                )
            )
        if analysis.individual_vs_corporation is not None:
            diff = analysis.individual_vs_corporation
            rows.append(
                MetricRow(
                    metric_key="party.individual_vs_corporation",
                    dimension=Dimension.PARTY,
                    label="Individual vs corporation outcome differential",
                    value=diff.differential,
                    sample_size=diff.case_count,
                    effective_sample_size=diff.effective_sample_size,
                    confidence=metric_confidence(diff.effective_sample_size),
                )
            )
        for marginal in analysis.by_representation:
            if not marginal.reportable:
                continue
            rows.append(
                MetricRow(
                    metric_key=f"party.favor_rate.by_representation.{marginal.key}",
                    dimension=Dimension.PARTY,
                    label=f"{marginal.label} favorable rate",
                    value=marginal.favorable_rate,
                    sample_size=marginal.case_count,
                    effective_sample_size=marginal.effective_sample_size,
                    confidence=marginal.confidence,
                )
            )
        for marginal in analysis.by_party_type:
            if not marginal.reportable:
                continue
            rows.append(
                MetricRow(
                    metric_key=f"party.favor_rate.by_party.{marginal.key}",
                    dimension=Dimension.PARTY,
                    label=f"{marginal.label} favorable rate",
                    value=marginal.favorable_rate,
                    sample_size=marginal.case_count,
                    effective_sample_size=marginal.effective_sample_size,
                    confidence=marginal.confidence,
                )
            )
        for cell in analysis.cells:
            rows.append(
                MetricRow(
                    metric_key=f"party.favor_rate.{cell.party_type.value}.{cell.representation_type.value}",
                    dimension=Dimension.PARTY,
                    label=(
                        f"{PARTY_LABELS[cell.party_type]} "
                        f"({cell.representation_type.value.replace('_', ' ')}) favorable rate"
                    ),
                    value=cell.favorable_rate,
                    sample_size=cell.case_count,
                    effective_sample_size=cell.effective_sample_size,
                    confidence=cell.confidence,
                )
            )
        return rows
