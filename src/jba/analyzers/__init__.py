"""Per-dimension analyzers.

Each analyzer consumes the same read-only list of weighted cases and
returns its own result model plus the metric rows it contributes to the
report table.  The analyzers do not depend on each other and can run in
parallel.
"""

from .motion import MotionPatternAnalyzer  # noqa: F401
from .party import PartyPatternAnalyzer  # noqa: F401
from .timing import DecisionTimingAnalyzer  # noqa: F401
from .value import ValueBracketAnalyzer  # noqa: F401
