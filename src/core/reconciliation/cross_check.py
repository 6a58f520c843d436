"""
GL cross-check against ledger postings.

The GL totals used by the comparator are derived from the source collections.
This module re-derives them from what was actually posted in
``gldailytransactions`` (net = deposits − payments − transfers out, per fund)
and reports any drift. Findings are diagnostic: they never change a category's
match flag or a tenant's status.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.core.catalog import FUND_CATEGORIES, FundCategory
from src.core.reconciliation import pipelines
from src.core.reconciliation.models import CrossCheckFinding, FundInfo
from src.utils.date_utils import DateWindow
from src.utils.pandas_utils import ensure_amount_columns, within_tolerance


logger = logging.getLogger(__name__)


CROSS_CHECK_TOLERANCE = 0.01


def get_gl_totals(db, window: DateWindow, fund_ids: List[Any], fiscal_year: int) -> Dict[str, float]:
    """
    Net posted amount per fund for the window.

    Returns:
        str(fund id) → deposits − payments − transfers out
    """
    df = db.aggregate(
        pipelines.GL_DAILY_TRANSACTIONS,
        pipelines.gl_postings_pipeline(window.query_from, window.query_to, fund_ids, fiscal_year),
    )
    if df is None or df.empty:
        return {}

    df = ensure_amount_columns(df, ['totalDeposit', 'totalPayments', 'totalTransferOut'])
    net = df['totalDeposit'] - df['totalPayments'] - df['totalTransferOut']

    return {str(fund_id): float(amount) for fund_id, amount in zip(df['_id'], net)}


def resolve_category_funds(
    fund_map: Mapping[str, FundInfo],
    catalog: Optional[List[FundCategory]] = None,
) -> List[Tuple[FundCategory, Any]]:
    """Categories whose GL fund key exists in the tenant's fund map, with the fund id."""
    catalog = catalog if catalog is not None else FUND_CATEGORIES
    return [
        (category, fund_map[category.gl_fund_key].fund_id)
        for category in catalog
        if category.gl_fund_key in fund_map
    ]


def cross_check_gl(
    db,
    window: DateWindow,
    fund_map: Mapping[str, FundInfo],
    computed_gl_totals: Mapping[str, float],
    fiscal_year: int,
    catalog: Optional[List[FundCategory]] = None,
    log=None,
) -> List[CrossCheckFinding]:
    """
    Compare computed GL totals with net ledger postings, per resolvable category.

    No resolvable fund means no ledger query and no findings.
    """
    log = log or logger
    resolved = resolve_category_funds(fund_map, catalog)
    if not resolved:
        log.info("GL cross-check skipped: no catalog fund found in fund map")
        return []

    actual_totals = get_gl_totals(db, window, [fund_id for _, fund_id in resolved], fiscal_year)

    findings = []
    for category, fund_id in resolved:
        actual = actual_totals.get(str(fund_id), 0.0)
        computed = float(computed_gl_totals.get(category.gl_fund_key) or 0.0)
        diff = abs(actual - computed)
        finding = CrossCheckFinding(
            category=category.label,
            fund_id=str(fund_id),
            computed=round(computed, 2),
            actual=round(actual, 2),
            diff=round(diff, 2),
            match=within_tolerance(diff, CROSS_CHECK_TOLERANCE),
        )
        findings.append(finding)

        if not finding.match:
            log.warning(
                f"⚠ GL cross-check: {category.description} computed={computed:.2f}, "
                f"actual={actual:.2f}, diff={diff:.2f}"
            )

    if all(f.match for f in findings):
        log.info("✓ GL cross-check: computed totals match gldailytransactions")

    return findings


__all__ = [
    'CROSS_CHECK_TOLERANCE',
    'get_gl_totals',
    'resolve_category_funds',
    'cross_check_gl',
]
