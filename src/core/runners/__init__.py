"""
Runners Package

Read-only data source access for the apportionment checks (MongoDB backend).
"""

from src.core.runners.mongo_runner import (
    MongoDataSource,
    TenantDatabase,
    DataSourceConnectionError,
    DataSourceQueryError,
    DEFAULT_DB_PREFIX,
)

__all__ = [
    'MongoDataSource',
    'TenantDatabase',
    'DataSourceConnectionError',
    'DataSourceQueryError',
    'DEFAULT_DB_PREFIX',
]
