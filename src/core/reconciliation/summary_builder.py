"""
Summary Builder Module

Builds the run-level summary once every tenant has a final result.

This module is responsible for:
- Counting MATCH / MISMATCH / ERROR outcomes
- Stamping the date window, timestamp and duration
- Assembling the RunResult handed to the reporters
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from src.core.reconciliation.models import CheckStatus, RunResult, RunSummary, TenantCheckResult
from src.utils.date_utils import DateWindow


logger = logging.getLogger(__name__)


def _iso_utc(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class SummaryBuilder:
    """
    Build the RunSummary for a finished run.

    Example:
        >>> builder = SummaryBuilder(results, window, duration_ms=1520)
        >>> summary = builder.build()
        >>> print(f"Matched: {summary.matched}/{summary.total}")
    """

    def __init__(self, results: List[TenantCheckResult], window: DateWindow,
                 duration_ms: int, finished_at: Optional[datetime] = None):
        """
        Initialize the summary builder.

        Args:
            results: Final per-tenant results (after retry)
            window: Reporting window of the run
            duration_ms: Wall-clock duration of the run
            finished_at: Timestamp of the run (default: now, UTC)
        """
        self.results = results
        self.window = window
        self.duration_ms = duration_ms
        self.finished_at = finished_at or datetime.now(timezone.utc)

    def count(self, status: CheckStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    def build(self) -> RunSummary:
        summary = RunSummary(
            total=len(self.results),
            matched=self.count(CheckStatus.MATCH),
            mismatched=self.count(CheckStatus.MISMATCH),
            errors=self.count(CheckStatus.ERROR),
            date_range=self.window.to_dict(),
            timestamp=_iso_utc(self.finished_at),
            duration_ms=int(self.duration_ms),
        )
        logger.debug(f"Run summary built: {summary.to_dict()}")
        return summary


def build_run_result(results: List[TenantCheckResult], window: DateWindow,
                     duration_ms: int, finished_at: Optional[datetime] = None) -> RunResult:
    """Summary plus the results list, in requested tenant order."""
    summary = SummaryBuilder(results, window, duration_ms, finished_at).build()
    return RunResult(summary=summary, results=list(results))


__all__ = ['SummaryBuilder', 'build_run_result']
