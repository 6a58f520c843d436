"""
Centralized logging configuration for the apportionment checker.

This module sets up structured JSON logging with consistent formatting
across the application. All log messages include:
- timestamp
- level
- logger name
- message
- service identifier
- tenant context (when attached with enrich())
"""

import logging
import sys
from typing import Any

from pythonjsonlogger.json import JsonFormatter


SERVICE_NAME = 'apportionment-recon'


class CustomJsonFormatter(JsonFormatter):
    """
    Custom JSON formatter that adds standard fields to all log records.
    """

    def add_fields(self, log_record, record, message_dict):
        """
        Add custom fields to the log record.

        Args:
            log_record: Dictionary that will be logged as JSON
            record: Original LogRecord object
            message_dict: Dictionary of extra fields
        """
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['name'] = record.name
        log_record['service'] = SERVICE_NAME

        if 'message' not in log_record:
            log_record['message'] = record.getMessage()


def setup_logging(level=logging.INFO, format_as_json=True, stream=None):
    """
    Configure application-wide logging.

    Args:
        level: Logging level (default: INFO)
        format_as_json: If True, use JSON formatting; if False, use standard formatting
        stream: Output stream (default: stderr, so stdout stays clean for --json)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)

    if format_as_json:
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.debug("Logging configuration initialized", extra={
        "format": "json" if format_as_json else "standard",
        "level": logging.getLevelName(level)
    })


def enrich(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """Return a LoggerAdapter that injects static context (e.g. tenant_id) into each record."""
    return logging.LoggerAdapter(logger, extra=context)
