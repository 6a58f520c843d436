"""
Reconciliation Package

Apportionment vs General Ledger reconciliation engine.

Includes:
- get_tax_year_status: July-1 fiscal classifier
- merge_tax_records / classify_tax_totals: Merge & classify of tax sources
- compare_categories: Catalog-driven, tolerance-aware comparison
- cross_check_gl: Diagnostic re-derivation from ledger postings
- check_tenant: One tenant end to end
- SummaryBuilder: Run-level summary
"""

from src.core.reconciliation.classify import (
    classify_tax_totals,
    combine_domain_totals,
    merge_tax_records,
)
from src.core.reconciliation.comparator import compare_categories, compare_values, overall_status
from src.core.reconciliation.cross_check import cross_check_gl
from src.core.reconciliation.fiscal import TaxYearStatus, get_tax_year_status
from src.core.reconciliation.models import (
    CheckStatus,
    ComparisonResult,
    CrossCheckFinding,
    DomainTotals,
    RunResult,
    RunSummary,
    TenantCheckResult,
)
from src.core.reconciliation.summary_builder import SummaryBuilder, build_run_result
from src.core.reconciliation.tenant_check import check_tenant

__all__ = [
    'CheckStatus',
    'ComparisonResult',
    'CrossCheckFinding',
    'DomainTotals',
    'RunResult',
    'RunSummary',
    'TenantCheckResult',
    'TaxYearStatus',
    'get_tax_year_status',
    'merge_tax_records',
    'classify_tax_totals',
    'combine_domain_totals',
    'compare_values',
    'compare_categories',
    'overall_status',
    'cross_check_gl',
    'check_tenant',
    'SummaryBuilder',
    'build_run_result',
]
