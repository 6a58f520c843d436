"""
Category comparison between apportionment and GL totals.

For each FundCategory (in catalog order) the apportionment side is the sum of
the category's tags and the GL side is the total under its fund key. Missing
tags and fund keys count as zero.

Tolerance:
    - absolute DEFAULT_TOLERANCE (one cent) by default
    - tolerance_percent on a category switches to pct/100 × max(apportionment, gl)
"""

import logging
from typing import Dict, List, Mapping, Optional

from src.core.catalog import FUND_CATEGORIES, FundCategory
from src.core.reconciliation.models import CheckStatus, ComparisonResult
from src.utils.pandas_utils import exact_sum, within_tolerance


logger = logging.getLogger(__name__)


DEFAULT_TOLERANCE = 0.01


def _amount(totals: Mapping[str, float], key: str) -> float:
    value = totals.get(key)
    if value is None or value != value:  # None or NaN
        return 0.0
    return float(value)


def compare_values(apportionment: float, gl: float, tolerance: float = DEFAULT_TOLERANCE) -> ComparisonResult:
    """
    Compare two totals.

    ``match`` is decided on the difference before it is rounded to cents;
    the amounts on the result are rounded to cents for display.

    Examples:
        >>> compare_values(107.0, 100.0)
        ComparisonResult(apportionment=107.0, gl=100.0, diff=7.0, match=False, tolerance=0.01)
    """
    diff = abs(apportionment - gl)
    return ComparisonResult(
        apportionment=round(apportionment, 2),
        gl=round(gl, 2),
        diff=round(diff, 2),
        match=within_tolerance(diff, tolerance),
        tolerance=tolerance,
    )


def resolve_tolerance(category: FundCategory, apportionment: float, gl: float) -> float:
    """Absolute default, or the category's percentage of the larger side."""
    if category.tolerance_percent:
        return max(gl, apportionment) * (category.tolerance_percent / 100)
    return DEFAULT_TOLERANCE


def category_apportionment(category: FundCategory, apportionment_totals: Mapping[str, float]) -> float:
    """Sum of the category's tags (sorted, so the float sum is reproducible)."""
    return exact_sum(_amount(apportionment_totals, tag) for tag in sorted(category.apportionment_tags))


def compare_categories(
    apportionment_totals: Mapping[str, float],
    gl_totals: Mapping[str, float],
    catalog: Optional[List[FundCategory]] = None,
) -> Dict[str, ComparisonResult]:
    """
    Compare every category of the catalog.

    Returns:
        category label → ComparisonResult, in catalog order
    """
    catalog = catalog if catalog is not None else FUND_CATEGORIES
    comparison: Dict[str, ComparisonResult] = {}

    for category in catalog:
        appt_amount = category_apportionment(category, apportionment_totals)
        gl_amount = _amount(gl_totals, category.gl_fund_key)
        tolerance = resolve_tolerance(category, appt_amount, gl_amount)

        result = compare_values(appt_amount, gl_amount, tolerance)
        comparison[category.label] = result

        tag_list = '+'.join(
            t for t in sorted(category.apportionment_tags) if _amount(apportionment_totals, t)
        ) or '(none)'
        icon = '✓' if result.match else '✗'
        logger.info(
            f"{icon} {category.description} [{tag_list}]: appt={result.apportionment}, "
            f"gl={result.gl}, diff={result.diff}"
        )

    return comparison


def overall_status(comparison: Mapping[str, ComparisonResult]) -> CheckStatus:
    """MATCH iff every category matches."""
    if all(result.match for result in comparison.values()):
        return CheckStatus.MATCH
    return CheckStatus.MISMATCH


__all__ = [
    'DEFAULT_TOLERANCE',
    'compare_values',
    'resolve_tolerance',
    'category_apportionment',
    'compare_categories',
    'overall_status',
]
