"""Report models, the report state machine and batch generation.

Only the models are re-exported here; import the builder from
``jba.report.builder`` (the narrative generator depends on these models).
"""

from .models import BiasReport, Narrative, ReportRequest, ReportState  # noqa: F401
