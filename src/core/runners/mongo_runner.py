# mongo_runner.py
"""
Read-only MongoDB access for the apportionment checks.

One MongoClient is opened per run and shared by every tenant. Each tenant has
its own physical database, selected by naming convention
(``<prefix><tenant_id>``, e.g. ``app-backend-acme``). Aggregation results are
returned as pandas DataFrames with the ``_id`` group keys flattened into columns,
so the aggregators work on the same tabular shape whatever the pipeline.
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


DEFAULT_DB_PREFIX = 'app-backend-'


class DataSourceConnectionError(Exception):
    """Exception raised when the data source cannot be reached at startup."""
    pass


class DataSourceQueryError(Exception):
    """Exception raised when a query against a tenant database fails."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection


def _flatten_group_id(docs: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Turn aggregation output into a DataFrame.

    A compound ``_id`` ({"taxYear": 2024, "schoolDistrict": 1}) is spread into
    top-level columns; a scalar ``_id`` is kept as the ``_id`` column.
    """
    rows = []
    for doc in docs:
        row = dict(doc)
        group_id = row.get('_id')
        if isinstance(group_id, dict):
            row.pop('_id')
            for key, value in group_id.items():
                row[key] = value
        rows.append(row)
    return pd.DataFrame(rows)


class TenantDatabase:
    """
    Read-only view over one tenant's database.
    """

    def __init__(self, database, tenant_id: str):
        self.database = database
        self.tenant_id = tenant_id

    def aggregate(self, collection: str, pipeline: List[Dict[str, Any]]) -> pd.DataFrame:
        """
        Run an aggregation pipeline and return its groups as a DataFrame.

        Raises:
            DataSourceQueryError: If the query fails
        """
        try:
            logger.debug(
                f"[{self.tenant_id}] Aggregating {collection}",
                extra={'tenant_id': self.tenant_id, 'collection': collection, 'stages': len(pipeline)}
            )
            docs = list(self.database[collection].aggregate(pipeline))
        except PyMongoError as e:
            error_msg = f"[{self.tenant_id}] Aggregation on {collection} failed: {e}"
            logger.error(error_msg)
            raise DataSourceQueryError(error_msg, collection=collection) from e

        df = _flatten_group_id(docs)
        logger.debug(f"[{self.tenant_id}] {collection}: {len(df)} groups returned")
        return df

    def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Fetch a single document (or None)."""
        try:
            return self.database[collection].find_one(query)
        except PyMongoError as e:
            error_msg = f"[{self.tenant_id}] find_one on {collection} failed: {e}"
            logger.error(error_msg)
            raise DataSourceQueryError(error_msg, collection=collection) from e

    def find(self, collection: str, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch all matching documents."""
        try:
            return list(self.database[collection].find(query))
        except PyMongoError as e:
            error_msg = f"[{self.tenant_id}] find on {collection} failed: {e}"
            logger.error(error_msg)
            raise DataSourceQueryError(error_msg, collection=collection) from e


class MongoDataSource:
    """
    Owns the shared MongoClient for a run.

    Example:
        >>> source = MongoDataSource("mongodb://localhost:27017")
        >>> source.connect()
        >>> db = source.tenant("acme")
        >>> source.close()
    """

    def __init__(self, uri: str, db_prefix: str = DEFAULT_DB_PREFIX,
                 server_selection_timeout_ms: int = 10000, client_factory=MongoClient):
        self.uri = uri
        self.db_prefix = db_prefix
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self.client = None

    def connect(self) -> None:
        """
        Open the client and verify the server answers.

        Raises:
            DataSourceConnectionError: If the server cannot be reached
        """
        try:
            self.client = self._client_factory(
                self.uri, serverSelectionTimeoutMS=self.server_selection_timeout_ms
            )
            self.client.admin.command('ping')
            logger.info("MongoDB connected")
        except PyMongoError as e:
            error_msg = f"MongoDB connection failed: {e}"
            logger.error(error_msg)
            self.close()
            raise DataSourceConnectionError(error_msg) from e

    def database_name(self, tenant_id: str) -> str:
        return f"{self.db_prefix}{tenant_id}"

    def tenant(self, tenant_id: str) -> TenantDatabase:
        """Database handle for one tenant."""
        if self.client is None:
            raise DataSourceConnectionError("Data source is not connected")
        return TenantDatabase(self.client[self.database_name(tenant_id)], tenant_id)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
