"""
Tests for the July-1 fiscal tax-year classifier.
"""

from datetime import date

import pytest

from src.core.reconciliation.fiscal import TaxYearStatus, get_tax_year_status


class TestGetTaxYearStatus:
    """Tests for get_tax_year_status."""

    @pytest.mark.parametrize("month", range(1, 7))
    def test_first_half_belongs_to_previous_tax_year(self, month):
        status = get_tax_year_status(date(2025, month, 15))
        assert status.current_tax == 2024

    @pytest.mark.parametrize("month", range(7, 13))
    def test_second_half_belongs_to_calendar_year(self, month):
        status = get_tax_year_status(date(2025, month, 15))
        assert status.current_tax == 2025

    @pytest.mark.parametrize("month", range(1, 13))
    def test_offsets(self, month):
        status = get_tax_year_status(date(2025, month, 1))
        assert status.prior_tax == status.current_tax - 1
        assert status.back_tax == status.current_tax - 2
        assert status.next_tax == status.current_tax + 1

    def test_boundary(self):
        assert get_tax_year_status("2025-06-30").current_tax == 2024
        assert get_tax_year_status("2025-07-01").current_tax == 2025

    def test_end_of_day_datetime_reference(self, window):
        # Windows are classified on their inclusive end
        assert get_tax_year_status(window.query_to) == TaxYearStatus(2025, 2024, 2023, 2022)

    def test_to_dict(self):
        assert get_tax_year_status("2025-08-01").to_dict() == {
            'nextTax': 2026,
            'currentTax': 2025,
            'priorTax': 2024,
            'backTax': 2023,
        }
