# config.py
"""
Apportionment check configuration.

Settings come from environment variables; the tenant roster used for
``--clients all`` is a YAML file shipped in ``src/core/roster/``
(override with TENANT_ROSTER_PATH).

Environment Variables:
    MONGODB_URI        - MongoDB connection string
    TENANT_DB_PREFIX   - Prefix of the per-tenant database name
    N8N_WEBHOOK_URL    - Optional webhook URL for n8n integration
    SEND_EMAIL         - Set to "true" to enable email reports
    SMTP_HOST          - SMTP server hostname
    SMTP_PORT          - SMTP server port
    SMTP_USER          - SMTP username
    SMTP_PASS          - SMTP password
    EMAIL_FROM         - Sender email address
    EMAIL_TO           - Recipient email address
    RESULTS_DIR        - Directory for the results file
    TENANT_ROSTER_PATH - Tenant roster YAML
    LOG_FORMAT         - "json" (default) or "text"
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Mapping, Optional

import yaml

from src.core.runners.mongo_runner import DEFAULT_DB_PREFIX

logger = logging.getLogger(__name__)


DEFAULT_MONGODB_URI = 'mongodb://localhost:27017'
DEFAULT_ROSTER_PATH = Path(__file__).resolve().parent / 'roster' / 'tenants.yaml'
ALL_TENANTS = 'all'


@dataclass(frozen=True)
class EmailSettings:
    """SMTP delivery settings for the HTML report."""
    enabled: bool = False
    host: str = 'localhost'
    port: int = 587
    user: str = ''
    password: str = ''
    sender: str = 'alerts@example.com'
    recipient: str = 'admin@example.com'
    subject: str = 'Apportionment Verification Report - {date}'


@dataclass(frozen=True)
class Settings:
    """Run settings resolved from the environment."""
    mongodb_uri: str = DEFAULT_MONGODB_URI
    db_prefix: str = DEFAULT_DB_PREFIX
    webhook_url: Optional[str] = None
    email: EmailSettings = EmailSettings()
    results_dir: Path = Path('.')
    roster_path: Path = DEFAULT_ROSTER_PATH
    log_format: str = 'json'


def _env_flag(value: Optional[str]) -> bool:
    return (value or '').strip().lower() == 'true'


def _env_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        logger.warning(f"Invalid integer value '{value}', using {default}")
        return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)
    """
    env = os.environ if environ is None else environ

    email = EmailSettings(
        enabled=_env_flag(env.get('SEND_EMAIL')),
        host=env.get('SMTP_HOST') or 'localhost',
        port=_env_int(env.get('SMTP_PORT'), 587),
        user=env.get('SMTP_USER') or '',
        password=env.get('SMTP_PASS') or '',
        sender=env.get('EMAIL_FROM') or 'alerts@example.com',
        recipient=env.get('EMAIL_TO') or 'admin@example.com',
    )

    return Settings(
        mongodb_uri=env.get('MONGODB_URI') or DEFAULT_MONGODB_URI,
        db_prefix=env.get('TENANT_DB_PREFIX') or DEFAULT_DB_PREFIX,
        webhook_url=env.get('N8N_WEBHOOK_URL') or None,
        email=email,
        results_dir=Path(env.get('RESULTS_DIR') or '.'),
        roster_path=Path(env.get('TENANT_ROSTER_PATH') or DEFAULT_ROSTER_PATH),
        log_format=(env.get('LOG_FORMAT') or 'json').strip().lower(),
    )


@lru_cache(maxsize=8)
def load_tenant_roster(path: Path = DEFAULT_ROSTER_PATH) -> tuple:
    """
    Load the tenant roster from YAML.

    Expected format:
        tenants:
          - acme
          - globex

    Returns:
        Tuple of normalized (trimmed, lower-case) tenant ids, duplicates removed

    Raises:
        FileNotFoundError: If the roster file does not exist
        ValueError: If the YAML is malformed or the list is empty
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Tenant roster not found: {path}")

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML from {path}: {e}") from e

    raw = data.get('tenants') if isinstance(data, dict) else None
    if not isinstance(raw, list):
        raise ValueError(f"Missing 'tenants' list in {path}")

    tenants = normalize_tenant_ids(str(t) for t in raw if t is not None)
    if not tenants:
        raise ValueError(f"Tenant roster {path} is empty")

    logger.info(f"Loaded {len(tenants)} tenants from {path}")
    return tuple(tenants)


def normalize_tenant_ids(values) -> List[str]:
    """Trim, lower-case, drop empties and duplicates (first occurrence wins)."""
    seen = []
    for value in values:
        tenant_id = value.strip().lower()
        if tenant_id and tenant_id not in seen:
            seen.append(tenant_id)
    return seen


def resolve_tenants(client: Optional[str] = None, clients: Optional[str] = None,
                    roster_path: Path = DEFAULT_ROSTER_PATH) -> List[str]:
    """
    Resolve the tenant selector.

    ``client`` wins over ``clients``; ``clients`` is a comma-separated list or
    "all". No selector at all means the whole roster.
    """
    if client:
        return normalize_tenant_ids([client])

    if clients and clients.strip().lower() != ALL_TENANTS:
        return normalize_tenant_ids(clients.split(','))

    return list(load_tenant_roster(Path(roster_path)))


__all__ = [
    'ALL_TENANTS',
    'DEFAULT_ROSTER_PATH',
    'EmailSettings',
    'Settings',
    'load_settings',
    'load_tenant_roster',
    'normalize_tenant_ids',
    'resolve_tenants',
]
