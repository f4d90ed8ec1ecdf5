"""Exception hierarchy for the analytics engine.

Only structural problems propagate as exceptions.  Per-record data quality
issues (missing dates, unparseable values) are absorbed where they occur
and surface in the report's data quality scores instead.
"""

from typing import Optional


class JBAError(Exception):
    """Base class for engine errors."""


class MalformedInputError(JBAError):
    """The case-data collaborator returned data violating the shape contract."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        self.index = index
        if index is not None:
            message = f"record {index}: {message}"
        super().__init__(message)


class BaselineUnavailableError(JBAError):
    """Peer baseline could not be read or computed."""


class ReportCancelledError(JBAError):
    """Report generation was cancelled or ran past its deadline."""

    def __init__(self, state: str, reason: str = "cancelled") -> None:
        self.state = state
        self.reason = reason
        super().__init__(f"Report generation {reason} in state '{state}'")
