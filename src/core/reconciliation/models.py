"""
Result models for the apportionment check.

Key Models:
    - CheckStatus: Per-tenant outcome (PENDING, RUNNING, MATCH, MISMATCH, ERROR)
    - DomainTotals: Read-only apportionment/GL totals produced by one domain
    - ComparisonResult: Per-category verdict
    - CrossCheckFinding: Diagnostic GL cross-check line
    - TenantCheckResult: Everything known about one tenant's check
    - RunSummary / RunResult: Run-level aggregate and the reporting contract

Serialized keys are camelCase: the result object is consumed as-is by the
results file, the email report and the webhook.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


class CheckStatus(str, Enum):
    """
    Lifecycle of one tenant check.

    PENDING → RUNNING → MATCH | MISMATCH | ERROR
    """
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    ERROR = "ERROR"


@dataclass(frozen=True)
class TenantConfig:
    """Per-tenant payment configuration."""
    no_prior_tax: bool = False


@dataclass(frozen=True)
class FundInfo:
    """A GL fund resolved from its altKey."""
    fund_id: Any
    description: str


@dataclass(frozen=True)
class DomainTotals:
    """
    Apportionment-tag totals and GL-fund-key totals from one source domain.

    Both mappings are read-only; combine domains with combine_domain_totals().
    """
    apportionment_totals: Mapping[str, float] = field(default_factory=dict)
    gl_totals: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'apportionment_totals', MappingProxyType(dict(self.apportionment_totals)))
        object.__setattr__(self, 'gl_totals', MappingProxyType(dict(self.gl_totals)))


@dataclass(frozen=True)
class ComparisonResult:
    """
    Verdict for one category.

    Amounts are rounded to cents for display; `match` was decided on the
    unrounded values.
    """
    apportionment: float
    gl: float
    diff: float
    match: bool
    tolerance: float = 0.01

    def to_dict(self) -> Dict[str, Any]:
        return {
            'apportionment': self.apportionment,
            'gl': self.gl,
            'diff': self.diff,
            'match': self.match,
        }


@dataclass(frozen=True)
class CrossCheckFinding:
    """Computed GL total vs. net ledger postings for one category's fund."""
    category: str
    fund_id: str
    computed: float
    actual: float
    diff: float
    match: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'fundId': self.fund_id,
            'computed': self.computed,
            'actual': self.actual,
            'diff': self.diff,
            'match': self.match,
        }


@dataclass
class TenantCheckResult:
    """
    Outcome of checking one tenant.

    Created PENDING; populated on success or marked ERROR. A retry produces a
    brand-new instance that replaces this one.
    """
    tenant_id: str
    status: CheckStatus = CheckStatus.PENDING
    comparison: Optional[Dict[str, ComparisonResult]] = None
    error: Optional[str] = None
    cross_check: List[CrossCheckFinding] = field(default_factory=list)

    @property
    def mismatched_categories(self) -> List[str]:
        if not self.comparison:
            return []
        return [label for label, result in self.comparison.items() if not result.match]

    @property
    def cross_check_drift(self) -> List[CrossCheckFinding]:
        return [f for f in self.cross_check if not f.match]

    def mark_error(self, message: str) -> None:
        self.status = CheckStatus.ERROR
        self.error = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tenantId': self.tenant_id,
            'status': self.status.value,
            'comparison': (
                {label: result.to_dict() for label, result in self.comparison.items()}
                if self.comparison is not None else None
            ),
            'error': self.error,
            'crossCheck': [f.to_dict() for f in self.cross_check],
        }


@dataclass(frozen=True)
class RunSummary:
    """Counts per outcome for a whole run."""
    total: int
    matched: int
    mismatched: int
    errors: int
    date_range: Dict[str, Any]
    timestamp: str
    duration_ms: int

    @property
    def all_matched(self) -> bool:
        return self.mismatched == 0 and self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'matched': self.matched,
            'mismatched': self.mismatched,
            'errors': self.errors,
            'dateRange': dict(self.date_range),
            'timestamp': self.timestamp,
            'durationMs': self.duration_ms,
        }


@dataclass(frozen=True)
class RunResult:
    """The reporting contract: summary plus one result per requested tenant."""
    summary: RunSummary
    results: List[TenantCheckResult]

    def results_with_status(self, status: CheckStatus) -> List[TenantCheckResult]:
        return [r for r in self.results if r.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary.to_dict(),
            'results': [r.to_dict() for r in self.results],
        }


__all__ = [
    'CheckStatus',
    'TenantConfig',
    'FundInfo',
    'DomainTotals',
    'ComparisonResult',
    'CrossCheckFinding',
    'TenantCheckResult',
    'RunSummary',
    'RunResult',
]
