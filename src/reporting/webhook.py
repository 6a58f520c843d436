"""
Webhook delivery (n8n).

The payload is the run result tagged with ``type`` and ``timestamp``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from src.core.reconciliation.models import RunResult


logger = logging.getLogger(__name__)


WEBHOOK_TYPE = 'apportionment-check'
WEBHOOK_TIMEOUT = 30


def build_webhook_payload(result: RunResult, moment: Optional[datetime] = None) -> Dict[str, Any]:
    moment = moment or datetime.now(timezone.utc)
    timestamp = moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
    return {'type': WEBHOOK_TYPE, 'timestamp': timestamp, **result.to_dict()}


def send_to_webhook(result: RunResult, url: Optional[str], session=None) -> Optional[int]:
    """
    POST the result to the webhook.

    Args:
        result: Finished run
        url: Webhook URL; nothing is sent when empty
        session: requests.Session (or the requests module) to post with

    Returns:
        HTTP status code, or None if nothing was delivered
    """
    if not url:
        return None

    logger.info(f"Sending to webhook: {url}")
    poster = session or requests
    try:
        response = poster.post(url, json=build_webhook_payload(result), timeout=WEBHOOK_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"✗ Webhook failed: {e}")
        return None

    if response.status_code >= 300:
        logger.warning(f"✗ Webhook response: {response.status_code}")
    else:
        logger.info(f"✓ Webhook response: {response.status_code}")
    return response.status_code
