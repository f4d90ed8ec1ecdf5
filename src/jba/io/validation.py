"""Input validation at the case-data boundary.

Case lists handed to the engine are validated exactly once, here.  The
function accepts plain mappings (as returned by the data-access
collaborator) or already-built :class:`CaseRecord` instances and returns a
list of frozen records.  Structural violations (the payload is not a list,
an element is not a mapping, a field has an impossible type) raise
:class:`MalformedInputError`; everything else is absorbed into ``None``
fields and summarised in a :class:`InputAudit`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ValidationError

from ..core.errors import MalformedInputError
from ..core.models import CaseRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)


class InputAudit(BaseModel):
    """Counts of per-record field gaps found during validation."""

    total_records: int = 0
    missing_both_dates: int = 0
    missing_decision_date: int = 0
    missing_case_value: int = 0
    missing_outcome: int = 0
    missing_motion_type: int = 0
    missing_party_types: int = 0

    def field_gaps(self) -> Dict[str, int]:
        """Missing-field counts, keyed as on :class:`DataQuality`."""
        return self.model_dump(exclude={"total_records", "missing_both_dates"})


def validate_cases(raw: Any) -> Tuple[List[CaseRecord], InputAudit]:
    """Validate a raw case payload into case records.

    Args:
        raw: The collaborator's payload; must be a list or tuple of mappings
            or ``CaseRecord`` objects.

    Returns:
        The validated records (input order preserved) and an audit of
        missing fields.

    Raises:
        MalformedInputError: If the payload violates the shape contract.
    """
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise MalformedInputError(f"expected a list of case records, got {type(raw).__name__}")

    records: List[CaseRecord] = []
    audit = InputAudit(total_records=len(raw))
    for i, item in enumerate(raw):
        if isinstance(item, CaseRecord):
            record = item
        elif isinstance(item, Mapping):
            try:
                record = CaseRecord.model_validate(dict(item))
            except (ValidationError, TypeError) as e:
                raise MalformedInputError(str(e), index=i) from e
        else:
            raise MalformedInputError(f"expected a mapping, got {type(item).__name__}", index=i)
        _audit_record(record, audit)
        records.append(record)

    if audit.missing_both_dates:
        logger.debug(f"{audit.missing_both_dates} of {audit.total_records} cases have no usable date")
    return records, audit


def _audit_record(record: CaseRecord, audit: InputAudit) -> None:
    if record.reference_date is None:
        audit.missing_both_dates += 1
    if record.decision_date is None:
        audit.missing_decision_date += 1
    if record.case_value is None:
        audit.missing_case_value += 1
    if record.effective_outcome is None:
        audit.missing_outcome += 1
    if record.motion_type is None:
        audit.missing_motion_type += 1
    if not record.party_types:
        audit.missing_party_types += 1
