"""Core domain models for case records, weighted cases and report rows."""

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .normalization import days_between, normalize_text, parse_amount, parse_date


class PartyType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATION = "corporation"
    SMALL_BUSINESS = "small_business"
    GOVERNMENT = "government"
    NON_PROFIT = "non_profit"
    INSURANCE = "insurance"
    UNKNOWN = "unknown"


class RepresentationType(str, Enum):
    PRO_SE = "pro_se"
    PRIVATE_COUNSEL = "private_counsel"
    PUBLIC_DEFENDER = "public_defender"


class PartyRole(str, Enum):
    PLAINTIFF = "plaintiff"
    DEFENDANT = "defendant"

    @property
    def opposite(self) -> "PartyRole":
        return PartyRole.DEFENDANT if self is PartyRole.PLAINTIFF else PartyRole.PLAINTIFF


class Dimension(str, Enum):
    MOTION = "motion"
    TIMING = "timing"
    PARTY = "party"
    VALUE = "value"


class Severity(str, Enum):
    MODERATE = "moderate"
    HIGH = "high"


_PARTY_ALIASES = {
    "insurance_company": PartyType.INSURANCE,
    "insurer": PartyType.INSURANCE,
    "nonprofit": PartyType.NON_PROFIT,
    "non-profit": PartyType.NON_PROFIT,
    "business": PartyType.SMALL_BUSINESS,
    "company": PartyType.CORPORATION,
    "person": PartyType.INDIVIDUAL,
    "state": PartyType.GOVERNMENT,
}

_REPRESENTATION_ALIASES = {
    "self-represented": RepresentationType.PRO_SE,
    "self represented": RepresentationType.PRO_SE,
    "pro per": RepresentationType.PRO_SE,
    "pro se": RepresentationType.PRO_SE,
    "public defender": RepresentationType.PUBLIC_DEFENDER,
    "appointed counsel": RepresentationType.PUBLIC_DEFENDER,
    "court-appointed": RepresentationType.PUBLIC_DEFENDER,
    "private counsel": RepresentationType.PRIVATE_COUNSEL,
    "attorney": RepresentationType.PRIVATE_COUNSEL,
    "counsel": RepresentationType.PRIVATE_COUNSEL,
}


def _coerce_party_type(value: Any) -> PartyType:
    if isinstance(value, PartyType):
        return value
    text = str(value).strip().lower()
    try:
        return PartyType(text.replace(" ", "_").replace("-", "_"))
    except ValueError:
        return _PARTY_ALIASES.get(text, PartyType.UNKNOWN)


class CaseRecord(BaseModel):
    """One litigated matter assigned to a judge.

    Records are validated once at the input boundary.  Unparseable dates and
    amounts become ``None`` so the affected case is dropped only from the
    computations that need that field.  ``party_types`` keeps caption order:
    the first entry is the party ``representation_type`` describes and sits
    on the ``party_role`` side (plaintiff when not given); a second entry is
    the opposing side.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    case_id: Optional[str] = None
    case_type: Optional[str] = None
    outcome: Optional[str] = None
    status: Optional[str] = None
    filing_date: Optional[date] = None
    decision_date: Optional[date] = None
    case_value: Optional[float] = None
    judgment_amount: Optional[float] = None
    motion_type: Optional[str] = None
    party_types: Tuple[PartyType, ...] = Field(default_factory=tuple)
    representation_type: Optional[RepresentationType] = None
    party_role: Optional[PartyRole] = None

    @field_validator("case_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @field_validator("case_type", "outcome", "status", "motion_type", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("filing_date", "decision_date", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> Optional[date]:
        return parse_date(v)

    @field_validator("case_value", "judgment_amount", mode="before")
    @classmethod
    def _parse_amounts(cls, v: Any) -> Optional[float]:
        return parse_amount(v)

    @field_validator("party_types", mode="before")
    @classmethod
    def _normalize_parties(cls, v: Any) -> Tuple[PartyType, ...]:
        if v is None:
            return ()
        if isinstance(v, (str, PartyType)):
            v = [v]
        if not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError(f"party_types must be a list, got {type(v).__name__}")
        parties: List[PartyType] = []
        for item in v:
            party = _coerce_party_type(item)
            if party not in parties:
                parties.append(party)
        return tuple(parties[:2])

    @field_validator("representation_type", mode="before")
    @classmethod
    def _normalize_representation(cls, v: Any) -> Optional[RepresentationType]:
        if v is None or isinstance(v, RepresentationType):
            return v
        text = normalize_text(v)
        try:
            return RepresentationType(text.replace(" ", "_"))
        except ValueError:
            return _REPRESENTATION_ALIASES.get(text)

    @field_validator("party_role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> Optional[PartyRole]:
        if v is None or isinstance(v, PartyRole):
            return v
        text = normalize_text(v)
        if text in ("plaintiff", "petitioner", "appellant", "prosecution"):
            return PartyRole.PLAINTIFF
        if text in ("defendant", "respondent", "appellee"):
            return PartyRole.DEFENDANT
        return None

    @property
    def effective_outcome(self) -> Optional[str]:
        """Outcome text, falling back to status."""
        return self.outcome or self.status

    @property
    def reference_date(self) -> Optional[date]:
        """Date used for recency: decision date, else filing date."""
        return self.decision_date or self.filing_date

    @property
    def duration_days(self) -> Optional[float]:
        return days_between(self.filing_date, self.decision_date)

    def party_sides(self) -> List[Tuple[PartyType, PartyRole]]:
        """Listed party types paired with the side they litigate on."""
        primary_role = self.party_role or PartyRole.PLAINTIFF
        sides: List[Tuple[PartyType, PartyRole]] = []
        for i, party in enumerate(self.party_types):
            sides.append((party, primary_role if i == 0 else primary_role.opposite))
        return sides


class WeightedCase(BaseModel):
    """A case record with its temporal decay weight."""

    model_config = ConfigDict(frozen=True)

    case: CaseRecord
    weight: float = Field(ge=0.0, le=1.0)
    years_old: Optional[float] = None

    @property
    def included(self) -> bool:
        """False for cases with no usable date; they carry zero weight."""
        return self.weight > 0.0


class MetricRow(BaseModel):
    """One reportable statistic."""

    model_config = ConfigDict(frozen=True)

    metric_key: str
    dimension: Dimension
    label: str
    value: float
    sample_size: int = Field(ge=0)
    effective_sample_size: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=100.0)
    baseline_value: Optional[float] = None
    deviation_sigma: Optional[float] = None
    flagged: bool = False
    low_confidence: bool = False
    interpretation: Optional[str] = None


class BaselineProfile(BaseModel):
    """Jurisdiction-level peer mean/stddev for one metric."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: str
    dimension: Dimension
    metric_key: str
    mean: float
    stddev: float = Field(ge=0.0)
    sample_size: int = Field(ge=0, description="Number of contributing judges")
    total_weight: float = Field(ge=0.0)
    computed_at: datetime
    ttl_seconds: int = 86400

    @property
    def cache_key(self) -> Tuple[str, str, str]:
        return (self.jurisdiction, self.dimension.value, self.metric_key)

    def is_expired(self, now: datetime) -> bool:
        return (now - self.computed_at).total_seconds() >= self.ttl_seconds


class AnomalyFlag(BaseModel):
    """A statistically significant deviation from the peer baseline."""

    model_config = ConfigDict(frozen=True)

    metric_ref: str
    dimension: Dimension
    label: str
    judge_value: float
    baseline_value: float
    deviation_sigma: float
    p_value: float = Field(ge=0.0, le=1.0)
    severity: Severity
    description: str
