"""Generate reports for many judges on a worker pool."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.errors import JBAError
from ..utils.logging import get_logger
from .builder import CancellationToken, ReportBuilder
from .models import BiasReport, ReportRequest

logger = get_logger(__name__)


class BatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    request: ReportRequest
    report: Optional[BiasReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.report is not None


def generate_reports(
    jobs: Iterable[Tuple[ReportRequest, Any]],
    builder: Optional[ReportBuilder] = None,
    max_workers: int = 4,
    token: Optional[CancellationToken] = None,
) -> List[BatchResult]:
    """Build one report per ``(request, cases)`` job.

    Reports for different judges share nothing but the (thread-safe)
    baseline cache, so they run independently.  Engine errors for one
    judge are captured in that judge's result and do not stop the batch.
    Results come back in input order.
    """
    builder = builder or ReportBuilder()
    jobs = list(jobs)
    results: List[Optional[BatchResult]] = [None] * len(jobs)

    def run(request: ReportRequest, cases: Any) -> BatchResult:
        try:
            report = builder.build(
                request.judge_id,
                request.jurisdiction,
                cases,
                start_date=request.start_date,
                end_date=request.end_date,
                as_of=request.as_of,
                judge_name=request.judge_name,
                token=token,
            )
        except JBAError as e:
            logger.warning(f"Report for judge {request.judge_id} failed: {e}")
            return BatchResult(request=request, error=str(e))
        return BatchResult(request=request, report=report)

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="jba-report") as pool:
        futures = {pool.submit(run, request, cases): i for i, (request, cases) in enumerate(jobs)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    done = [r for r in results if r is not None]
    logger.info(f"Generated {sum(1 for r in done if r.ok)}/{len(done)} reports")
    return done
