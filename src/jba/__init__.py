"""Judicial bias pattern analytics.

Descriptive statistics over a judge's case history: motion, timing, party
and case-value patterns, peer-baseline deviation and a tiered confidence
score.
"""

__version__ = "0.1.0"

from .config.analytics import AnalyticsConfig  # noqa: F401
from .report.builder import CancellationToken, ReportBuilder  # noqa: F401
from .report.batch import generate_reports  # noqa: F401
from .report.models import BiasReport, Narrative  # noqa: F401
