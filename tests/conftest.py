"""
Shared fixtures: an in-memory stand-in for a tenant database.

The fake answers ``aggregate`` by collection name (the misc collection is
queried twice; the breakdown pipeline is the one with a ``$lookup`` stage),
and ``find_one`` / ``find`` for the config and fund lookups.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pandas as pd
import pytest

from src.core.reconciliation import pipelines
from src.utils.date_utils import DateWindow


def tax_frame(*rows: Dict[str, Any]) -> pd.DataFrame:
    """Raw tax aggregation rows, as returned by TenantDatabase.aggregate."""
    return pd.DataFrame(list(rows), columns=['taxYear', 'schoolDistrict', 'taxAmt', 'penaltyAmt', 'totalFees', 'total'])


def _has_lookup(pipeline: List[Dict[str, Any]]) -> bool:
    return any('$lookup' in stage for stage in pipeline)


def make_tenant_db(
    tax_payments: Optional[pd.DataFrame] = None,
    payment_tax_details: Optional[pd.DataFrame] = None,
    misc_total: Optional[pd.DataFrame] = None,
    misc_detail: Optional[pd.DataFrame] = None,
    mtg: Optional[pd.DataFrame] = None,
    gl_postings: Optional[pd.DataFrame] = None,
    config_doc: Optional[Dict[str, Any]] = None,
    funds: Optional[List[Dict[str, Any]]] = None,
) -> MagicMock:
    """Build a MagicMock tenant database serving the given frames."""
    frames = {
        pipelines.TAX_PAYMENTS: tax_payments,
        pipelines.PAYMENT_TAX_DETAILS: payment_tax_details,
        pipelines.MTG_TRANSACTIONS: mtg,
        pipelines.GL_DAILY_TRANSACTIONS: gl_postings,
    }

    def aggregate(collection, pipeline):
        if collection == pipelines.MISC_TRANSACTIONS:
            frame = misc_detail if _has_lookup(pipeline) else misc_total
        else:
            frame = frames.get(collection)
        return frame.copy() if frame is not None else pd.DataFrame()

    db = MagicMock()
    db.aggregate.side_effect = aggregate
    db.find_one.return_value = config_doc
    db.find.return_value = list(funds or [])
    return db


@pytest.fixture
def window():
    """March 2025: tax year 2024 is current, 2023 prior, 2022 back."""
    return DateWindow('03-01-2025', '03-31-2025')


@pytest.fixture
def tenant_db_factory():
    return make_tenant_db


@pytest.fixture
def make_tax_frame():
    return tax_frame
