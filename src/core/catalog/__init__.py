"""
Fund Category Catalog Package

Declarative correspondence between apportionment tags and GL fund keys.
"""

from src.core.catalog.fund_categories import (
    FundCategory,
    TaxBucket,
    FUND_CATEGORIES,
    TAX_BUCKETS,
    MISC_UNIT_CODE_TAGS,
    MISC_GL_FUND_KEY,
    UNCLASSIFIED_TAG,
    list_categories,
    get_category,
    validate_catalog,
    to_dicts,
)

__all__ = [
    'FundCategory',
    'TaxBucket',
    'FUND_CATEGORIES',
    'TAX_BUCKETS',
    'MISC_UNIT_CODE_TAGS',
    'MISC_GL_FUND_KEY',
    'UNCLASSIFIED_TAG',
    'list_categories',
    'get_category',
    'validate_catalog',
    'to_dicts',
]
