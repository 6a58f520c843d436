"""
Merge & classify tax records into current / prior / back buckets.

Both tax sources arrive as normalized frames with the columns in
TAX_RECORD_COLUMNS. They are merged on (tax_year, school_district), each merged
record gets exactly one bucket, and the GL side and the apportionment side are
then summed from that same bucket column. Computing the two sides from
different groupings would let money drift between fiscal years unnoticed.

Example:
    >>> merged = merge_tax_records([frame_a, frame_b])
    >>> totals = classify_tax_totals(merged, get_tax_year_status("2025-03-31"), no_prior_tax=False)
    >>> totals.gl_totals["Current Tax"]
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import pandas as pd

from src.core.catalog import TAX_BUCKETS
from src.core.reconciliation.fiscal import TaxYearStatus
from src.core.reconciliation.models import DomainTotals
from src.utils.pandas_utils import ensure_amount_columns, exact_sum


logger = logging.getLogger(__name__)


TAX_KEY_COLUMNS = ['tax_year', 'school_district']
TAX_AMOUNT_COLUMNS = ['tax_amt', 'penalty_amt', 'total_fees', 'total']
TAX_RECORD_COLUMNS = TAX_KEY_COLUMNS + TAX_AMOUNT_COLUMNS


def _empty_tax_frame() -> pd.DataFrame:
    return ensure_amount_columns(
        pd.DataFrame({'tax_year': pd.Series(dtype='object'), 'school_district': pd.Series(dtype='object')}),
        TAX_AMOUNT_COLUMNS,
    )


def merge_tax_records(frames: Iterable[Optional[pd.DataFrame]]) -> pd.DataFrame:
    """
    Sum normalized tax frames that share a (tax_year, school_district) key.

    The per-key sums use math.fsum, so the merged totals do not depend on the
    order of the input frames.

    Args:
        frames: Normalized frames (see TAX_RECORD_COLUMNS); None/empty are skipped

    Returns:
        One row per key, sorted by key
    """
    parts = [f for f in frames if f is not None and not f.empty]
    if not parts:
        return _empty_tax_frame()

    combined = pd.concat(
        [ensure_amount_columns(f, TAX_AMOUNT_COLUMNS)[TAX_RECORD_COLUMNS] for f in parts],
        ignore_index=True,
    )

    merged = (
        combined.groupby(TAX_KEY_COLUMNS, dropna=False, sort=True)[TAX_AMOUNT_COLUMNS]
        .agg(exact_sum)
        .reset_index()
    )
    logger.debug(f"Merged {len(combined)} tax groups into {len(merged)} keys")
    return merged


def assign_tax_buckets(merged: pd.DataFrame, status: TaxYearStatus, no_prior_tax: bool) -> pd.Series:
    """
    Bucket name per merged record.

    current if tax_year == current_tax; otherwise back when the tenant has no
    prior-tax fund; otherwise prior if tax_year == prior_tax; otherwise back.
    """
    if merged.empty:
        return pd.Series([], dtype='object', index=merged.index)

    tax_year = pd.to_numeric(merged['tax_year'], errors='coerce')
    is_current = tax_year == status.current_tax
    is_prior = (tax_year == status.prior_tax) & (not no_prior_tax)

    buckets = pd.Series('back', index=merged.index, dtype='object')
    buckets.loc[is_prior] = 'prior'
    buckets.loc[is_current] = 'current'
    return buckets


def classify_tax_totals(merged: pd.DataFrame, status: TaxYearStatus, no_prior_tax: bool) -> DomainTotals:
    """
    Fold merged tax records into GL and apportionment totals.

    GL side: ``total`` per bucket under the bucket's fund key ("Current Tax", ...).
    Apportionment side: ``tax_amt``/``penalty_amt``/``total_fees`` per bucket under
    the bucket's tags (CTax/CTaxPen/CTaxFee, ...).

    Buckets with no records are absent from both maps.
    """
    if merged is None or merged.empty:
        return DomainTotals()

    frame = ensure_amount_columns(merged, TAX_AMOUNT_COLUMNS)
    frame = frame.assign(bucket=assign_tax_buckets(frame, status, no_prior_tax))

    by_bucket = frame.groupby('bucket', sort=True)[TAX_AMOUNT_COLUMNS].agg(exact_sum)

    gl_totals = {}
    appt_totals = {}
    for bucket_name, sums in by_bucket.iterrows():
        bucket = TAX_BUCKETS[bucket_name]
        gl_totals[bucket.gl_fund_key] = float(sums['total'])
        appt_totals[bucket.tax_tag] = float(sums['tax_amt'])
        appt_totals[bucket.penalty_tag] = float(sums['penalty_amt'])
        appt_totals[bucket.fee_tag] = float(sums['total_fees'])

    return DomainTotals(apportionment_totals=appt_totals, gl_totals=gl_totals)


def combine_domain_totals(domains: List[DomainTotals]) -> DomainTotals:
    """
    Combine per-domain totals into one pair of maps.

    Keys shared between domains are summed rather than overwritten.
    """
    appt_parts = {}
    gl_parts = {}
    for domain in domains:
        for key, value in domain.apportionment_totals.items():
            appt_parts.setdefault(key, []).append(value)
        for key, value in domain.gl_totals.items():
            gl_parts.setdefault(key, []).append(value)

    return DomainTotals(
        apportionment_totals={k: exact_sum(v) for k, v in appt_parts.items()},
        gl_totals={k: exact_sum(v) for k, v in gl_parts.items()},
    )


__all__ = [
    'TAX_KEY_COLUMNS',
    'TAX_AMOUNT_COLUMNS',
    'TAX_RECORD_COLUMNS',
    'merge_tax_records',
    'assign_tax_buckets',
    'classify_tax_totals',
    'combine_domain_totals',
]
