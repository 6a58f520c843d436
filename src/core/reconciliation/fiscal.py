"""
Fiscal tax-year classification.

Tax years start on July 1: a payment made in March 2025 belongs to the
2024 tax year, one made in August 2025 to the 2025 tax year.
"""

from dataclasses import dataclass

from src.utils.date_utils import DateLike, parse_date


FISCAL_YEAR_START_MONTH = 7


@dataclass(frozen=True)
class TaxYearStatus:
    """The four tax years relevant to a reference date."""
    next_tax: int
    current_tax: int
    prior_tax: int
    back_tax: int

    def to_dict(self) -> dict:
        return {
            'nextTax': self.next_tax,
            'currentTax': self.current_tax,
            'priorTax': self.prior_tax,
            'backTax': self.back_tax,
        }


def get_tax_year_status(reference_date: DateLike) -> TaxYearStatus:
    """
    Compute next/current/prior/back tax years for a reference date.

    Examples:
        >>> get_tax_year_status("2025-06-30").current_tax
        2024
        >>> get_tax_year_status("2025-07-01").current_tax
        2025
    """
    ts = parse_date(reference_date)
    current = ts.year if ts.month >= FISCAL_YEAR_START_MONTH else ts.year - 1
    return TaxYearStatus(
        next_tax=current + 1,
        current_tax=current,
        prior_tax=current - 1,
        back_tax=current - 2,
    )
