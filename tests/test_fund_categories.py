"""
Tests for the fund category catalog.

The catalog is data: these tests pin its content and its invariants
(disjoint tag sets, one GL fund key per category, stable order).
"""

import pytest

from src.core.catalog import (
    FUND_CATEGORIES,
    MISC_UNIT_CODE_TAGS,
    TAX_BUCKETS,
    FundCategory,
    get_category,
    list_categories,
    to_dicts,
    validate_catalog,
)


class TestCatalogContent:
    """The six categories and their correspondences."""

    def test_order(self):
        assert [c.label for c in FUND_CATEGORIES] == [
            'currentTax', 'priorTax', 'backTax', 'miscReceipts', 'mtgTaxCert', 'mtgTax',
        ]

    @pytest.mark.parametrize("label,tags,fund_key", [
        ('currentTax', {'CTax', 'CTaxFee', 'CTaxPen'}, 'Current Tax'),
        ('priorTax', {'PTax', 'PTaxFee', 'PTaxPen'}, 'Prior Tax'),
        ('backTax', {'BTax', 'BTaxFee', 'BTaxPen'}, 'Back Tax'),
        ('miscReceipts', {'ABT', 'JT4MILL', 'MV', 'MVTS', 'FLOOD', 'INTEREST', '', 'undefined'}, 'MISC'),
        ('mtgTaxCert', {'MtgTaxCert'}, 'MtgTaxFee'),
        ('mtgTax', {'MtgTax'}, 'MtgTax'),
    ])
    def test_category(self, label, tags, fund_key):
        category = get_category(label)
        assert category.apportionment_tags == frozenset(tags)
        assert category.gl_fund_key == fund_key

    def test_no_percentage_tolerance_configured(self):
        assert all(c.tolerance_percent is None for c in FUND_CATEGORIES)

    def test_tax_buckets_match_categories(self):
        for bucket in TAX_BUCKETS.values():
            owners = [c for c in FUND_CATEGORIES if bucket.tax_tag in c.apportionment_tags]
            assert len(owners) == 1
            owner = owners[0]
            assert {bucket.tax_tag, bucket.penalty_tag, bucket.fee_tag} == owner.apportionment_tags
            assert bucket.gl_fund_key == owner.gl_fund_key

    def test_misc_unit_tags_belong_to_misc(self):
        misc = get_category('miscReceipts')
        assert set(MISC_UNIT_CODE_TAGS.values()) <= misc.apportionment_tags


class TestCatalogHelpers:
    """Tests for lookup, copy and serialization helpers."""

    def test_get_category_unknown(self):
        assert get_category('nope') is None

    def test_list_categories_is_a_copy(self):
        categories = list_categories()
        categories.pop()
        assert len(FUND_CATEGORIES) == 6

    def test_to_dicts_sorted_tags(self):
        first = to_dicts()[0]
        assert first['label'] == 'currentTax'
        assert first['apportionment_tags'] == ['CTax', 'CTaxFee', 'CTaxPen']


class TestCatalogValidation:
    """Tests for validate_catalog and FundCategory checks."""

    def test_overlapping_tags_rejected(self):
        categories = [
            FundCategory('a', 'A', frozenset({'X', 'Y'}), 'FA'),
            FundCategory('b', 'B', frozenset({'Y'}), 'FB'),
        ]
        with pytest.raises(ValueError, match="claimed by both"):
            validate_catalog(categories)

    def test_duplicate_label_rejected(self):
        categories = [
            FundCategory('a', 'A', frozenset({'X'}), 'FA'),
            FundCategory('a', 'A2', frozenset({'Y'}), 'FB'),
        ]
        with pytest.raises(ValueError, match="Duplicate"):
            validate_catalog(categories)

    def test_missing_fund_key_rejected(self):
        with pytest.raises(ValueError):
            FundCategory('a', 'A', frozenset({'X'}), '')

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError):
            FundCategory('a', 'A', frozenset({'X'}), 'FA', tolerance_percent=-1)

    def test_tags_coerced_to_frozenset(self):
        category = FundCategory('a', 'A', {'X'}, 'FA')
        assert isinstance(category.apportionment_tags, frozenset)
