"""
Fund category catalog for the apportionment check.

Purpose
- Single declarative table mapping each revenue category to the apportionment
  tags that make it up and to the general-ledger fund (by altKey) it posts to
- Iterated in a fixed order so reports are deterministic
- Also holds the two smaller correspondence tables the aggregator needs:
  tax-year bucket → tags/fund key, and misc unit code → tag

Notes
- Add or audit categories here; the comparator never branches on labels.
- Tag sets must stay pairwise disjoint: a tag counted in two categories would
  hide a mismatch in one of them.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, FrozenSet, List, Optional


@dataclass(frozen=True)
class FundCategory:
    """One reconciled revenue category."""
    label: str  # e.g., currentTax
    description: str  # e.g., Current Tax
    apportionment_tags: FrozenSet[str]  # e.g., {CTax, CTaxFee, CTaxPen}
    gl_fund_key: str  # cmnfunds altKey, e.g., "Current Tax"
    # Percentage tolerance; None means the absolute default applies
    tolerance_percent: Optional[float] = None

    def __post_init__(self):
        if not self.gl_fund_key:
            raise ValueError(f"Category {self.label} has no GL fund key")
        if self.tolerance_percent is not None and self.tolerance_percent < 0:
            raise ValueError(
                f"Tolerance percent must be non-negative, got {self.tolerance_percent}"
            )
        if not isinstance(self.apportionment_tags, frozenset):
            object.__setattr__(self, 'apportionment_tags', frozenset(self.apportionment_tags))


@dataclass(frozen=True)
class TaxBucket:
    """Apportionment tags and GL fund key for one tax-year bucket."""
    name: str  # current | prior | back
    tax_tag: str
    penalty_tag: str
    fee_tag: str
    gl_fund_key: str


FUND_CATEGORIES: List[FundCategory] = [
    FundCategory(
        label="currentTax",
        description="Current Tax",
        apportionment_tags=frozenset({"CTax", "CTaxFee", "CTaxPen"}),
        gl_fund_key="Current Tax",
    ),
    FundCategory(
        label="priorTax",
        description="Prior Tax",
        apportionment_tags=frozenset({"PTax", "PTaxFee", "PTaxPen"}),
        gl_fund_key="Prior Tax",
    ),
    FundCategory(
        label="backTax",
        description="Back Tax",
        apportionment_tags=frozenset({"BTax", "BTaxFee", "BTaxPen"}),
        gl_fund_key="Back Tax",
    ),
    FundCategory(
        label="miscReceipts",
        description="Misc Receipts",
        # "" collects unclassified units; "undefined" is what older tenants stored for them
        apportionment_tags=frozenset({"ABT", "JT4MILL", "MV", "MVTS", "FLOOD", "INTEREST", "", "undefined"}),
        gl_fund_key="MISC",
    ),
    FundCategory(
        label="mtgTaxCert",
        description="MtgTaxCert",
        apportionment_tags=frozenset({"MtgTaxCert"}),
        gl_fund_key="MtgTaxFee",
    ),
    FundCategory(
        label="mtgTax",
        description="MtgTax",
        apportionment_tags=frozenset({"MtgTax"}),
        gl_fund_key="MtgTax",
    ),
]


TAX_BUCKETS: Dict[str, TaxBucket] = {
    "current": TaxBucket("current", "CTax", "CTaxPen", "CTaxFee", "Current Tax"),
    "prior": TaxBucket("prior", "PTax", "PTaxPen", "PTaxFee", "Prior Tax"),
    "back": TaxBucket("back", "BTax", "BTaxPen", "BTaxFee", "Back Tax"),
}


MISC_UNIT_CODE_TAGS: Dict[str, str] = {
    "1": "ABT",
    "2": "MV",
    "3": "MVTS",
    "4": "JT4MILL",
    "5": "INTEREST",
    "6": "FLOOD",
}

UNCLASSIFIED_TAG = ""

MISC_GL_FUND_KEY = "MISC"


def list_categories() -> List[FundCategory]:
    """All categories in report order."""
    return FUND_CATEGORIES.copy()


def get_category(label: str) -> Optional[FundCategory]:
    """Retrieve a category by label (returns None if not found)."""
    for cat in FUND_CATEGORIES:
        if cat.label == label:
            return cat
    return None


def validate_catalog(categories: List[FundCategory]) -> None:
    """
    Check catalog invariants.

    Raises:
        ValueError: On duplicate labels or on a tag claimed by two categories
    """
    seen_labels = set()
    tag_owner: Dict[str, str] = {}
    for cat in categories:
        if cat.label in seen_labels:
            raise ValueError(f"Duplicate category label: {cat.label}")
        seen_labels.add(cat.label)
        for tag in cat.apportionment_tags:
            if tag in tag_owner:
                raise ValueError(
                    f"Tag '{tag}' is claimed by both {tag_owner[tag]} and {cat.label}"
                )
            tag_owner[tag] = cat.label


def to_dicts(categories: Optional[List[FundCategory]] = None) -> List[Dict[str, Any]]:
    """Serialize categories to plain dictionaries (tags sorted)."""
    categories = categories if categories is not None else FUND_CATEGORIES
    result: List[Dict[str, Any]] = []
    for cat in categories:
        d = asdict(cat)
        d["apportionment_tags"] = sorted(cat.apportionment_tags)
        result.append(d)
    return result


validate_catalog(FUND_CATEGORIES)
