"""
HTML email report.

The report is a single table (tenant → status → detail). Mismatch detail lists
the failing categories as ``label: apportionment vs gl``; error detail is the
error message cut to ERROR_DETAIL_LENGTH characters. Delivery failures are
logged and never raised.
"""

import html
import logging
import smtplib
from datetime import date
from email.message import EmailMessage
from typing import Callable, Optional

from src.core.config import EmailSettings
from src.core.reconciliation.models import CheckStatus, RunResult, TenantCheckResult


logger = logging.getLogger(__name__)


ERROR_DETAIL_LENGTH = 80

_STATUS_CLASS = {
    CheckStatus.MATCH: 'match',
    CheckStatus.MISMATCH: 'mismatch',
}

_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; background: #f5f5f5; }
    .container { max-width: 800px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }
    h1 { color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px; }
    table { width: 100%; border-collapse: collapse; margin: 15px 0; }
    th, td { padding: 8px 12px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background: #f8f9fa; }
    .match { color: #2e7d32; }
    .mismatch { color: #c62828; }
    .error { color: #e65100; }
"""


def detail_for(result: TenantCheckResult) -> str:
    if result.status == CheckStatus.MISMATCH and result.comparison:
        return ', '.join(
            f"{label}: {result.comparison[label].apportionment} vs {result.comparison[label].gl}"
            for label in result.mismatched_categories
        )
    if result.error:
        return result.error[:ERROR_DETAIL_LENGTH]
    return ''


def render_email_html(result: RunResult) -> str:
    """HTML body of the report."""
    summary = result.summary
    all_good = summary.all_matched
    status_color = '#2e7d32' if all_good else '#c62828'

    rows = []
    for r in result.results:
        css = _STATUS_CLASS.get(r.status, 'error')
        rows.append(
            f"<tr><td>{html.escape(r.tenant_id)}</td><td class=\"{css}\">{r.status.value}</td>"
            f"<td>{html.escape(detail_for(r))}</td></tr>"
        )

    return f"""<!DOCTYPE html>
<html>
<head>
  <style>{_STYLE}  </style>
</head>
<body>
  <div class="container">
    <h1>Apportionment Verification Report</h1>
    <p><strong>Date Range:</strong> {summary.date_range.get('fromDate')} to {summary.date_range.get('toDate')}</p>
    <p><strong>Status:</strong> <span style="color:{status_color}">{'All Matched' if all_good else 'Issues Found'}</span></p>
    <p>Total: {summary.total} | Matched: {summary.matched} | Mismatched: {summary.mismatched} | Errors: {summary.errors}</p>
    <table>
      <tr><th>Tenant</th><th>Status</th><th>Details</th></tr>
      {''.join(rows)}
    </table>
    <p style="font-size:12px;color:#666;">Generated: {summary.timestamp}</p>
  </div>
</body>
</html>"""


def build_email_message(result: RunResult, settings: EmailSettings,
                        today: Optional[date] = None) -> EmailMessage:
    """Subject is prefixed ✓ when every tenant matched, ✗ otherwise."""
    today = today or date.today()
    icon = '✓' if result.summary.all_matched else '✗'

    message = EmailMessage()
    message['Subject'] = f"{icon} {settings.subject.format(date=today.isoformat())}"
    message['From'] = settings.sender
    message['To'] = settings.recipient
    message.set_content('This report requires an HTML-capable mail client.')
    message.add_alternative(render_email_html(result), subtype='html')
    return message


def send_email_report(result: RunResult, settings: EmailSettings,
                      smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP) -> bool:
    """
    Send the HTML report.

    Returns:
        True if the message was handed to the SMTP server
    """
    logger.info("Sending email report...")
    try:
        message = build_email_message(result, settings)
        with smtp_factory(settings.host, settings.port, timeout=30) as smtp:
            smtp.ehlo()
            if smtp.has_extn('starttls'):
                smtp.starttls()
                smtp.ehlo()
            if settings.user:
                smtp.login(settings.user, settings.password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"✗ Email failed: {e}")
        return False

    logger.info("✓ Email sent")
    return True
