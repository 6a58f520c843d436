"""
Aggregation pipeline definitions.

Each builder returns a MongoDB aggregation pipeline for one source collection
and reporting window. Keeping them as plain data makes the filter predicates
reviewable (and testable) without a database.

Collections:
    - taxpayments: payments embedding a ``taxDetails`` list
    - paymenttaxdetails: flat per-detail records
    - misctransactions: misc receipts with per-unit ``details``
    - mtgtransactions: mortgage tax receipts
    - gldailytransactions: ledger postings per fund
"""

from datetime import datetime
from typing import Any, Dict, List


TAX_PAYMENTS = 'taxpayments'
PAYMENT_TAX_DETAILS = 'paymenttaxdetails'
MISC_TRANSACTIONS = 'misctransactions'
MISC_UNIT_CODES = 'miscunitcodes'
MTG_TRANSACTIONS = 'mtgtransactions'
GL_DAILY_TRANSACTIONS = 'gldailytransactions'
FUNDS = 'cmnfunds'
CONFIGS = 'configs'

Pipeline = List[Dict[str, Any]]


def _date_range(query_from: datetime, query_to: datetime) -> Dict[str, Any]:
    return {'$gte': query_from, '$lte': query_to}


def _not_exempt() -> Dict[str, Any]:
    # Documents without the flag count as not exempt
    return {'$in': [False, None]}


def tax_payments_pipeline(query_from: datetime, query_to: datetime) -> Pipeline:
    """taxpayments: unwind the embedded details, drop protested ones, group by (taxYear, schoolDistrict)."""
    return [
        {'$match': {'payDate': _date_range(query_from, query_to), 'isExempt': _not_exempt()}},
        {'$unwind': '$taxDetails'},
        {'$match': {'taxDetails.protest': False}},
        {
            '$group': {
                '_id': {'taxYear': '$taxDetails.taxYear', 'schoolDistrict': '$taxDetails.schoolDistrict'},
                'taxAmt': {'$sum': '$taxDetails.taxAmt'},
                'penaltyAmt': {'$sum': '$taxDetails.penaltyAmt'},
                'totalFees': {'$sum': '$taxDetails.totalFees'},
                'total': {'$sum': '$taxDetails.total'},
            }
        },
    ]


def payment_tax_details_pipeline(query_from: datetime, query_to: datetime) -> Pipeline:
    """paymenttaxdetails: same predicate and grouping as taxpayments, on flat records."""
    return [
        {
            '$match': {
                'payDate': _date_range(query_from, query_to),
                'isExempt': _not_exempt(),
                'protest': False,
            }
        },
        {
            '$group': {
                '_id': {'taxYear': '$taxYear', 'schoolDistrict': '$schoolDistrict'},
                'taxAmt': {'$sum': '$taxAmt'},
                'penaltyAmt': {'$sum': '$penaltyAmt'},
                'totalFees': {'$sum': '$totalFees'},
                'total': {'$sum': '$total'},
            }
        },
    ]


def _misc_match(query_from: datetime, query_to: datetime) -> Dict[str, Any]:
    return {
        '$match': {
            'businessDate': _date_range(query_from, query_to),
            'isSpecialApportionment': {'$ne': True},
        }
    }


def misc_total_pipeline(query_from: datetime, query_to: datetime) -> Pipeline:
    """Grand total of misc receipts, special apportionments excluded."""
    return [
        _misc_match(query_from, query_to),
        {'$group': {'_id': None, 'totalMisc': {'$sum': '$amount'}}},
    ]


def misc_detail_pipeline(query_from: datetime, query_to: datetime) -> Pipeline:
    """Per-unit misc totals joined to their unit code."""
    return [
        _misc_match(query_from, query_to),
        {'$unwind': '$details'},
        {'$group': {'_id': '$details.unit', 'totalAmount': {'$sum': '$details.amount'}}},
        {
            '$lookup': {
                'from': MISC_UNIT_CODES,
                'localField': '_id',
                'foreignField': '_id',
                'pipeline': [{'$project': {'_id': 1, 'description': 1, 'unitCodeNumber': 1}}],
                'as': '_commUnit',
            }
        },
    ]


def mtg_total_pipeline(query_from: datetime, query_to: datetime) -> Pipeline:
    """Mortgage tax and certificate fee totals, corrections excluded."""
    return [
        {
            '$match': {
                'businessDate': _date_range(query_from, query_to),
                'isCorrection': {'$ne': True},
            }
        },
        {
            '$group': {
                '_id': None,
                'totalMtgTax': {'$sum': '$mortgageTax'},
                'totalCertFee': {'$sum': '$fee'},
            }
        },
    ]


def gl_postings_pipeline(query_from: datetime, query_to: datetime,
                         fund_ids: List[Any], fiscal_year: int) -> Pipeline:
    """Ledger postings per fund for the window."""
    return [
        {
            '$match': {
                'fiscalYear': fiscal_year,
                'businessDate': _date_range(query_from, query_to),
                'fund': {'$in': list(fund_ids)},
            }
        },
        {
            '$group': {
                '_id': '$fund',
                'totalDeposit': {'$sum': '$deposit'},
                'totalPayments': {'$sum': '$payments'},
                'totalTransferOut': {'$sum': '$transferOut'},
            }
        },
    ]
