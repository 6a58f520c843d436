"""
Reporters for a finished apportionment run.

Every reporter takes the same RunResult:
    - console: human-readable summary
    - results_file: JSON file, always written
    - email_report: optional HTML email over SMTP
    - webhook: optional POST for automation (n8n)
"""

from .console import format_console_summary
from .email_report import render_email_html, send_email_report
from .results_file import results_filename, write_results_file
from .webhook import build_webhook_payload, send_to_webhook

__all__ = [
    'format_console_summary',
    'render_email_html',
    'send_email_report',
    'results_filename',
    'write_results_file',
    'build_webhook_payload',
    'send_to_webhook',
]
