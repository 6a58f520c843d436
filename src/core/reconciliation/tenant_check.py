"""
Check one tenant end to end.

Steps:
    1. tenant config (noPriorTax) and GL fund map
    2. tax, misc and mortgage totals (the three domains run concurrently)
    3. combine domains, compare per category
    4. GL cross-check against ledger postings (diagnostic)

Errors propagate: the orchestrator owns failure isolation and retry.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional

from src.core.catalog import FUND_CATEGORIES
from src.core.logging_config import enrich
from src.core.reconciliation.classify import combine_domain_totals
from src.core.reconciliation.comparator import compare_categories, overall_status
from src.core.reconciliation.cross_check import cross_check_gl
from src.core.reconciliation.models import CheckStatus, TenantCheckResult
from src.core.reconciliation.sources import (
    compute_misc_totals,
    compute_mtg_totals,
    compute_tax_totals,
    get_fund_map,
    get_tenant_config,
)
from src.utils.date_utils import DateWindow


logger = logging.getLogger(__name__)


def check_tenant(data_source, tenant_id: str, window: DateWindow,
                 fiscal_year: Optional[int] = None, parallel: bool = True) -> TenantCheckResult:
    """
    Run the apportionment check for one tenant.

    Args:
        data_source: Connected MongoDataSource (or anything with ``tenant(id)``)
        tenant_id: Tenant identifier
        window: Reporting window
        fiscal_year: Fiscal year used for the fund map and ledger postings
            (default: current calendar year)
        parallel: Run the three domain aggregations concurrently

    Returns:
        TenantCheckResult with status MATCH or MISMATCH

    Raises:
        Any data-source or processing error, unchanged
    """
    log = enrich(logger, tenant_id=tenant_id)
    fiscal_year = fiscal_year or date.today().year
    result = TenantCheckResult(tenant_id=tenant_id, status=CheckStatus.RUNNING)

    db = data_source.tenant(tenant_id)

    log.info("[1/4] Getting tenant config...")
    tenant_config = get_tenant_config(db)

    log.info("[2/4] Getting fund mapping...")
    fund_map = get_fund_map(db, fiscal_year)
    log.info(
        f"Found {len(fund_map)} type \"x\" funds: "
        + ', '.join(f"{key}={info.description}" for key, info in fund_map.items())
    )

    log.info("[3/4] Computing tax, misc and mtg totals from source...")
    if parallel:
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix=f"recon-{tenant_id}") as executor:
            futures = [
                executor.submit(compute_tax_totals, db, window, tenant_config.no_prior_tax),
                executor.submit(compute_misc_totals, db, window),
                executor.submit(compute_mtg_totals, db, window),
            ]
            domains = [future.result() for future in futures]
    else:
        domains = [
            compute_tax_totals(db, window, tenant_config.no_prior_tax),
            compute_misc_totals(db, window),
            compute_mtg_totals(db, window),
        ]

    combined = combine_domain_totals(domains)

    log.info("[4/4] Comparing...")
    comparison = compare_categories(combined.apportionment_totals, combined.gl_totals, FUND_CATEGORIES)
    result.cross_check = cross_check_gl(
        db, window, fund_map, combined.gl_totals, fiscal_year, FUND_CATEGORIES, log=log
    )

    result.comparison = comparison
    result.status = overall_status(comparison)

    if result.status == CheckStatus.MISMATCH:
        log.warning(f"MISMATCH in: {', '.join(result.mismatched_categories)}")
    else:
        log.info("All categories match")

    return result


__all__ = ['check_tenant']
