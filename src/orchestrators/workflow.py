"""
Workflow orchestrator for the apportionment check.

Tenants are checked one at a time, in the order requested. A failure while
checking one tenant is recorded as that tenant's ERROR result and the run goes
on. After the first pass every failed tenant is retried exactly once, in its
original relative order, and the retry's result replaces the first one
whatever its outcome.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.core.reconciliation.models import CheckStatus, RunResult, TenantCheckResult
from src.core.reconciliation.summary_builder import build_run_result
from src.core.reconciliation.tenant_check import check_tenant
from src.utils.date_utils import DateWindow


logger = logging.getLogger(__name__)


CheckFn = Callable[..., TenantCheckResult]


def _run_one(check_fn: CheckFn, data_source, tenant_id: str, window: DateWindow,
             fiscal_year: Optional[int]) -> TenantCheckResult:
    """Check one tenant; any exception becomes an ERROR result."""
    try:
        return check_fn(data_source, tenant_id, window, fiscal_year=fiscal_year)
    except Exception as e:
        logger.error(
            f"Error processing {tenant_id}: {e}",
            extra={'tenant_id': tenant_id, 'error_type': type(e).__name__}
        )
        result = TenantCheckResult(tenant_id=tenant_id)
        result.mark_error(str(e))
        return result


def run_apportionment_check(
    data_source,
    tenants: List[str],
    window: DateWindow,
    fiscal_year: Optional[int] = None,
    check_fn: Optional[CheckFn] = None,
) -> RunResult:
    """
    Execute the apportionment check for every tenant.

    Args:
        data_source: Connected data source shared by every tenant
        tenants: Tenant identifiers, in reporting order
        window: Reporting window
        fiscal_year: Fiscal year for fund lookup and ledger postings (default: current year)
        check_fn: Per-tenant check (default: check_tenant)

    Returns:
        RunResult with exactly one result per requested tenant
    """
    check_fn = check_fn or check_tenant
    started = time.monotonic()
    logger.info("===== STARTING APPORTIONMENT CHECK =====")
    logger.info(f"Tenants: {', '.join(tenants)}")
    logger.info(f"Date Range: {window.from_date} to {window.to_date}")

    results: List[TenantCheckResult] = []
    failed_positions: List[int] = []

    for position, tenant_id in enumerate(tenants):
        logger.info(f"--- [{position + 1}/{len(tenants)}] Checking: {tenant_id} ---")
        result = _run_one(check_fn, data_source, tenant_id, window, fiscal_year)
        results.append(result)
        if result.status == CheckStatus.ERROR:
            failed_positions.append(position)

    if failed_positions:
        logger.warning(f"Retrying {len(failed_positions)} failed tenant(s)...")
        for position in failed_positions:
            tenant_id = tenants[position]
            logger.info(f"--- Retry: {tenant_id} ---")
            results[position] = _run_one(check_fn, data_source, tenant_id, window, fiscal_year)

    duration_ms = int((time.monotonic() - started) * 1000)
    run_result = build_run_result(results, window, duration_ms, datetime.now(timezone.utc))

    summary = run_result.summary
    if summary.all_matched:
        logger.info("===== ALL TENANTS MATCH =====")
    else:
        logger.warning(
            f"===== CHECK COMPLETED: {summary.matched} matched, "
            f"{summary.mismatched} mismatched, {summary.errors} errors ====="
        )
    return run_result


__all__ = ['run_apportionment_check']
