"""
Source aggregation per domain (tax, misc, mortgage).

Every function takes a tenant database handle (anything exposing
``aggregate(collection, pipeline) -> DataFrame``, ``find_one`` and ``find``,
see src.core.runners.mongo_runner.TenantDatabase) and a DateWindow. Queries
are read-only and errors propagate to the caller; retrying is the
orchestrator's job.

Functions:
    - get_tenant_config(): paymentConfig flags (noPriorTax)
    - get_fund_map(): cmnfunds altKey → fund id
    - fetch_tax_records(): both tax sources, normalized to TAX_RECORD_COLUMNS
    - compute_tax_totals(): merge + classify
    - compute_misc_totals(): grand total, per-unit tags, unclassified residual
    - compute_mtg_totals(): mortgage tax and certificate fee
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from src.core.catalog import MISC_GL_FUND_KEY, MISC_UNIT_CODE_TAGS, UNCLASSIFIED_TAG
from src.core.reconciliation import pipelines
from src.core.reconciliation.classify import (
    TAX_AMOUNT_COLUMNS,
    TAX_RECORD_COLUMNS,
    classify_tax_totals,
    merge_tax_records,
)
from src.core.reconciliation.fiscal import TaxYearStatus, get_tax_year_status
from src.core.reconciliation.models import DomainTotals, FundInfo, TenantConfig
from src.utils.date_utils import DateWindow
from src.utils.pandas_utils import ensure_amount_columns, exact_sum, first_value, within_tolerance


logger = logging.getLogger(__name__)


# Residual between the misc grand total and the classified units that is
# still considered rounding noise
MISC_RESIDUAL_TOLERANCE = 0.01

FUND_USAGE_TYPE = 'x'

# Raw aggregation column → normalized tax column
_TAX_COLUMN_MAP = {
    'taxYear': 'tax_year',
    'schoolDistrict': 'school_district',
    'taxAmt': 'tax_amt',
    'penaltyAmt': 'penalty_amt',
    'totalFees': 'total_fees',
    'total': 'total',
}


# ============================================================
# Tenant configuration and fund lookup
# ============================================================

def get_tenant_config(db) -> TenantConfig:
    """Read the tenant's paymentConfig document (missing document → defaults)."""
    doc = db.find_one(pipelines.CONFIGS, {'scope': 'paymentConfig'}) or {}
    config = doc.get('config') or {}
    return TenantConfig(no_prior_tax=bool(config.get('noPriorTax', False)))


def get_fund_map(db, fiscal_year: int, usage_type: str = FUND_USAGE_TYPE) -> Dict[str, FundInfo]:
    """
    Map GL fund altKey → FundInfo for funds of one usage type and fiscal year.

    Funds without an altKey cannot be matched to a category and are skipped.
    """
    funds = db.find(pipelines.FUNDS, {'fiscalYear': fiscal_year, 'type': usage_type})

    fund_map: Dict[str, FundInfo] = {}
    for fund in funds:
        alt_key = fund.get('altKey')
        if not alt_key:
            continue
        fund_map[alt_key] = FundInfo(
            fund_id=fund.get('_id'),
            description=fund.get('description') or fund.get('name') or alt_key,
        )
    return fund_map


# ============================================================
# Tax domain
# ============================================================

def normalize_tax_frame(raw: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Bring one raw tax aggregation result to the MergedTaxRecord shape.

    Missing amount fields become 0.0; missing key fields become None.
    """
    if raw is None or raw.empty:
        return merge_tax_records([])

    df = raw.rename(columns=_TAX_COLUMN_MAP)
    for col in ('tax_year', 'school_district'):
        if col not in df.columns:
            df[col] = None
    df = ensure_amount_columns(df, TAX_AMOUNT_COLUMNS)
    return df[TAX_RECORD_COLUMNS].reset_index(drop=True)


def fetch_tax_records(db, window: DateWindow) -> List[pd.DataFrame]:
    """
    Query both tax sources and normalize them.

    Returns:
        [taxpayments frame, paymenttaxdetails frame]
    """
    query_from, query_to = window.query_from, window.query_to
    queries = [
        (pipelines.TAX_PAYMENTS, pipelines.tax_payments_pipeline(query_from, query_to)),
        (pipelines.PAYMENT_TAX_DETAILS, pipelines.payment_tax_details_pipeline(query_from, query_to)),
    ]

    raw_frames = [db.aggregate(coll, pipe) for coll, pipe in queries]

    logger.info(
        f"taxPayments groups: {len(raw_frames[0])}, paymentTaxDetails groups: {len(raw_frames[1])}"
    )
    return [normalize_tax_frame(raw) for raw in raw_frames]


def compute_tax_totals(db, window: DateWindow, no_prior_tax: bool,
                       status: Optional[TaxYearStatus] = None) -> DomainTotals:
    """
    Tax-domain totals for the window.

    The tax-year status is taken from the window's end date unless given.
    """
    status = status or get_tax_year_status(window.query_to)
    logger.info(
        f"Tax year status: current={status.current_tax}, prior={status.prior_tax}, "
        f"back={status.back_tax}, noPriorTax={no_prior_tax}"
    )

    frames = fetch_tax_records(db, window)
    merged = merge_tax_records(frames)
    totals = classify_tax_totals(merged, status, no_prior_tax)

    logger.info(f"GL tax totals: {dict(totals.gl_totals)}")
    logger.info(f"Appt tax totals: {dict(totals.apportionment_totals)}")
    return totals


# ============================================================
# Misc domain
# ============================================================

def _unit_code_for(row: pd.Series) -> Optional[Any]:
    """unitCodeNumber from the $lookup array, if the unit was found."""
    joined = row.get('_commUnit')
    if isinstance(joined, list) and joined:
        first = joined[0] or {}
        return first.get('unitCodeNumber')
    return None


def _unit_code_key(unit_code: Any) -> str:
    """Catalog key for a unit code; whole-number doubles (1.0) key as "1"."""
    if isinstance(unit_code, float) and unit_code.is_integer():
        return str(int(unit_code))
    return str(unit_code)


def classify_misc_units(detail_df: Optional[pd.DataFrame]) -> Tuple[Dict[str, float], float]:
    """
    Per-tag misc totals from the unit breakdown.

    Returns:
        (tag → amount, sum of all unit amounts)
    """
    if detail_df is None or detail_df.empty:
        return {}, 0.0

    df = ensure_amount_columns(detail_df, ['totalAmount'])
    tags = []
    for _, row in df.iterrows():
        unit_code = _unit_code_for(row)
        if unit_code:
            tags.append(MISC_UNIT_CODE_TAGS.get(_unit_code_key(unit_code), UNCLASSIFIED_TAG))
        else:
            tags.append(UNCLASSIFIED_TAG)
    df = df.assign(tag=tags)

    by_tag = df.groupby('tag', sort=True)['totalAmount'].agg(exact_sum)
    return {tag: float(amount) for tag, amount in by_tag.items()}, exact_sum(df['totalAmount'])


def apply_unclassified_residual(appt_totals: Dict[str, float], grand_total: float,
                                classified_sum: float,
                                tolerance: float = MISC_RESIDUAL_TOLERANCE) -> Dict[str, float]:
    """
    Attribute the part of the grand total not covered by any unit to the
    unclassified tag, unless it is within tolerance.
    """
    result = dict(appt_totals)
    residual = grand_total - classified_sum
    if not within_tolerance(abs(residual), tolerance):
        logger.info(f"Misc residual {residual:.2f} attributed to unclassified bucket")
        result[UNCLASSIFIED_TAG] = exact_sum([result.get(UNCLASSIFIED_TAG, 0.0), residual])
    return result


def compute_misc_totals(db, window: DateWindow) -> DomainTotals:
    """
    Misc-domain totals: GL side is the grand total under "MISC"; apportionment
    side is the per-unit breakdown plus any unclassified residual.
    """
    query_from, query_to = window.query_from, window.query_to
    queries = [
        (pipelines.MISC_TRANSACTIONS, pipelines.misc_total_pipeline(query_from, query_to)),
        (pipelines.MISC_TRANSACTIONS, pipelines.misc_detail_pipeline(query_from, query_to)),
    ]
    total_df, detail_df = [db.aggregate(coll, pipe) for coll, pipe in queries]

    grand_total = first_value(total_df, 'totalMisc')
    unit_totals, classified_sum = classify_misc_units(detail_df)
    appt_totals = apply_unclassified_residual(unit_totals, grand_total, classified_sum)

    logger.info(f"Misc GL total: {grand_total}")
    logger.info(f"Misc appt totals: {appt_totals}")

    return DomainTotals(apportionment_totals=appt_totals, gl_totals={MISC_GL_FUND_KEY: grand_total})


# ============================================================
# Mortgage domain
# ============================================================

def compute_mtg_totals(db, window: DateWindow) -> DomainTotals:
    """Mortgage tax and certificate fee; the same amounts feed both sides."""
    result_df = db.aggregate(
        pipelines.MTG_TRANSACTIONS,
        pipelines.mtg_total_pipeline(window.query_from, window.query_to),
    )
    total_mtg_tax = first_value(result_df, 'totalMtgTax')
    total_cert_fee = first_value(result_df, 'totalCertFee')

    logger.info(f"MtgTax: {total_mtg_tax}, CertFee: {total_cert_fee}")

    return DomainTotals(
        apportionment_totals={'MtgTax': total_mtg_tax, 'MtgTaxCert': total_cert_fee},
        gl_totals={'MtgTax': total_mtg_tax, 'MtgTaxFee': total_cert_fee},
    )


__all__ = [
    'MISC_RESIDUAL_TOLERANCE',
    'FUND_USAGE_TYPE',
    'get_tenant_config',
    'get_fund_map',
    'normalize_tax_frame',
    'fetch_tax_records',
    'compute_tax_totals',
    'classify_misc_units',
    'apply_unclassified_residual',
    'compute_misc_totals',
    'compute_mtg_totals',
]
