#!/usr/bin/env python3
"""
Apportionment Verification Script

Compares tax apportionment totals against General Ledger totals in MongoDB,
for one tenant, a comma-separated list of tenants, or every tenant of the
roster. Read-only.

Usage:
    python scripts/run_apportionment_check.py --client acme
    python scripts/run_apportionment_check.py --clients "acme,globex,initech"
    python scripts/run_apportionment_check.py --clients all
    python scripts/run_apportionment_check.py --month -1      (previous month)
    python scripts/run_apportionment_check.py --email         (send email report)
    python scripts/run_apportionment_check.py --json          (output JSON for automation)

Output:
    apportionment-results-<timestamp>.json in the output directory (always).

Exit codes:
    0 - run completed (whatever the per-tenant outcomes)
    1 - MongoDB unreachable at startup
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

# Ensure project modules are importable
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.core.config import load_settings, resolve_tenants
from src.core.logging_config import setup_logging
from src.core.runners.mongo_runner import DataSourceConnectionError, MongoDataSource
from src.orchestrators.workflow import run_apportionment_check
from src.reporting import (
    format_console_summary,
    send_email_report,
    send_to_webhook,
    write_results_file,
)
from src.utils.date_utils import month_date_range


logger = logging.getLogger("run_apportionment_check")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Verify apportionment totals against the General Ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Single tenant, current month
    python scripts/run_apportionment_check.py --client acme

    # Every tenant of the roster, previous month, with notifications
    python scripts/run_apportionment_check.py --clients all --month -1 --email \\
        --webhook https://n8n.example.com/webhook/apportionment
        """,
    )

    parser.add_argument(
        "--client",
        dest="client",
        help="Single tenant identifier (e.g., acme)",
    )

    parser.add_argument(
        "--clients",
        dest="clients",
        help='Comma-separated tenant identifiers, or "all" for the roster',
    )

    parser.add_argument(
        "--month",
        dest="month",
        type=int,
        default=0,
        help="Month offset: 0 = current month, -1 = previous month, ...",
    )

    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Echo the result object as JSON on stdout",
    )

    parser.add_argument(
        "--email",
        dest="email",
        action="store_true",
        help="Send the HTML email report (also enabled by SEND_EMAIL=true)",
    )

    parser.add_argument(
        "--webhook",
        dest="webhook",
        help="Webhook URL (default: N8N_WEBHOOK_URL)",
    )

    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        help="Directory for the results file (default: RESULTS_DIR or current directory)",
    )

    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=["json", "text"],
        help="Log format (default: LOG_FORMAT or json)",
    )

    parser.add_argument(
        "-v", "--verbose",
        dest="verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, data_source_factory=MongoDataSource) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = load_settings()

    log_format = args.log_format or settings.log_format
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format_as_json=log_format != "text",
    )

    tenants = resolve_tenants(args.client, args.clients, settings.roster_path)
    window = month_date_range(args.month)

    logger.info("=" * 60)
    logger.info("APPORTIONMENT VERIFICATION")
    logger.info(f"Tenants: {', '.join(tenants)}")
    logger.info(f"Date Range: {window.from_date} to {window.to_date}")
    logger.info("Mode: Read-only MongoDB queries")
    logger.info("=" * 60)

    data_source = data_source_factory(settings.mongodb_uri, settings.db_prefix)
    try:
        data_source.connect()
    except DataSourceConnectionError as e:
        logger.error(str(e))
        return 1

    try:
        result = run_apportionment_check(data_source, tenants, window)
    finally:
        data_source.close()

    print(format_console_summary(result))

    output_dir = Path(args.output_dir) if args.output_dir else settings.results_dir
    output_file = write_results_file(result, output_dir)
    print(f"\nResults saved to: {output_file}")

    if args.json_output:
        print("\n--- JSON OUTPUT ---")
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))

    email_settings = settings.email
    if args.email:
        email_settings = replace(email_settings, enabled=True)
    if email_settings.enabled:
        send_email_report(result, email_settings)

    send_to_webhook(result, args.webhook or settings.webhook_url)

    return 0


if __name__ == "__main__":
    sys.exit(main())
