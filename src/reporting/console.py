"""Console summary of a run."""

from typing import List

from src.core.reconciliation.models import CheckStatus, RunResult


RULE = '=' * 60


def format_console_summary(result: RunResult) -> str:
    """
    Render the end-of-run summary block.

    Mismatched tenants list their failing categories, errored tenants their
    message, and tenants with GL cross-check drift are flagged separately.
    """
    summary = result.summary
    lines: List[str] = [
        RULE,
        'SUMMARY',
        RULE,
        f"Date Range: {summary.date_range.get('fromDate')} to {summary.date_range.get('toDate')}",
        f"Total: {summary.total} | Matched: {summary.matched} | "
        f"Mismatched: {summary.mismatched} | Errors: {summary.errors}",
    ]

    matched = result.results_with_status(CheckStatus.MATCH)
    if matched:
        lines.append('')
        lines.append('✓ Matched:')
        lines.extend(f"  - {r.tenant_id}" for r in matched)

    mismatched = result.results_with_status(CheckStatus.MISMATCH)
    if mismatched:
        lines.append('')
        lines.append('✗ Mismatched:')
        for r in mismatched:
            lines.append(f"  - {r.tenant_id}")
            for label in r.mismatched_categories:
                c = r.comparison[label]
                lines.append(f"      {label}: appt={c.apportionment}, gl={c.gl}, diff={c.diff}")

    errors = result.results_with_status(CheckStatus.ERROR)
    if errors:
        lines.append('')
        lines.append('⚠ Errors:')
        lines.extend(f"  - {r.tenant_id}: {r.error}" for r in errors)

    drifting = [r for r in result.results if r.cross_check_drift]
    if drifting:
        lines.append('')
        lines.append('⚠ GL cross-check drift:')
        for r in drifting:
            for finding in r.cross_check_drift:
                lines.append(
                    f"  - {r.tenant_id} {finding.category}: computed={finding.computed}, "
                    f"actual={finding.actual}, diff={finding.diff}"
                )

    lines.append(RULE)
    return '\n'.join(lines)
