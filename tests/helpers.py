"""Deterministic case factories shared by the unit and integration tests."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from jba.core.models import CaseRecord, WeightedCase
from jba.weighting.temporal import TemporalWeightEngine

AS_OF = date(2024, 6, 30)

CASE_TYPES = ["contract", "tort", "employment", "property", "consumer", "civil_rights"]
CASE_VALUES = [5_000, 20_000, 40_000, 75_000, 150_000, 300_000, 750_000, 2_000_000, 8_000_000]
PARTY_PAIRS = [
    ["individual", "corporation"],
    ["corporation", "individual"],
    ["small_business", "government"],
    ["individual", "insurance"],
]
REPRESENTATIONS = ["private_counsel", "pro_se", "public_defender"]
MOTIONS = ["summary judgment", "motion to dismiss", "motion to compel discovery", "continuance"]

GRANTED = "Motion granted; judgment for plaintiff"
DENIED = "Motion denied; judgment for defendant"
SETTLED = "Settled"
DISMISSED = "Dismissed"


def make_case(**overrides: Any) -> Dict[str, Any]:
    """Create a single case mapping with sensible defaults."""
    case: Dict[str, Any] = {
        "case_id": "case-1",
        "case_type": "contract",
        "outcome": GRANTED,
        "filing_date": "2024-01-02",
        "decision_date": "2024-03-01",
        "case_value": 100_000,
        "motion_type": "summary judgment",
        "party_types": ["individual", "corporation"],
        "representation_type": "private_counsel",
    }
    case.update(overrides)
    return case


def _hit(k: int, rate: float) -> bool:
    # Exactly ``rate`` of the first n decided motions are granted, for any n
    return int((k + 1) * rate) > int(k * rate)


def make_dataset(
    n: int,
    as_of: date = AS_OF,
    years: float = 3.0,
    case_types: Optional[Sequence[str]] = None,
    grant_rate: float = 0.5,
    prefix: str = "case",
    duration_offset: int = 0,
) -> List[Dict[str, Any]]:
    """Create ``n`` cases spread evenly over ``years`` before ``as_of``.

    Outcomes cycle through granted/denied motions (at ``grant_rate``),
    settlements and dismissals so every analyzer sees data.  Motion type
    and party pair change every four cases so neither is tied to one
    outcome.
    """
    case_types = list(case_types or CASE_TYPES)
    span_days = int(years * 365.25)
    cases: List[Dict[str, Any]] = []
    decided = 0
    for i in range(n):
        decision = as_of - timedelta(days=(i * span_days) // max(n, 1))
        duration = 30 + duration_offset + (i * 37) % 300
        kind = i % 4
        if kind in (0, 1):
            outcome = GRANTED if _hit(decided, grant_rate) else DENIED
            decided += 1
        elif kind == 2:
            outcome = SETTLED
        else:
            outcome = DISMISSED
        value = CASE_VALUES[i % len(CASE_VALUES)]
        cases.append(
            {
                "case_id": f"{prefix}-{i}",
                "case_type": case_types[i % len(case_types)],
                "outcome": outcome,
                "filing_date": (decision - timedelta(days=duration)).isoformat(),
                "decision_date": decision.isoformat(),
                "case_value": value,
                "judgment_amount": value * 0.6 if outcome == GRANTED else None,
                "motion_type": MOTIONS[(i // 4) % len(MOTIONS)],
                "party_types": PARTY_PAIRS[(i // 4) % len(PARTY_PAIRS)],
                "representation_type": REPRESENTATIONS[i % len(REPRESENTATIONS)],
            }
        )
    return cases


def make_peers(
    rates: Sequence[float],
    n: int = 120,
    as_of: date = AS_OF,
) -> Dict[str, List[Dict[str, Any]]]:
    """Peer judges keyed by id, one per grant rate."""
    return {
        f"peer-{j}": make_dataset(n, as_of=as_of, grant_rate=rate, prefix=f"peer{j}", duration_offset=j * 5)
        for j, rate in enumerate(rates)
    }


def make_weighted(
    cases: Sequence[Dict[str, Any]],
    as_of: date = AS_OF,
    decay_rate: float = 0.95,
) -> List[WeightedCase]:
    """Validate and weight case mappings the way the report builder does."""
    records = [CaseRecord.model_validate(c) for c in cases]
    return TemporalWeightEngine(decay_rate).apply(records, as_of)
