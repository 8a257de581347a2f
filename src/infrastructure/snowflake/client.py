"""
Snowflake database connection management.

Provides connection factory and context manager for Snowflake operations.
Includes mock mode with in-memory storage for local development.

Using the repository pattern means most code never touches this module
directly - it goes through the repositories, which handle the translation
between domain models and documents.
"""

import json
import logging
import re
from contextlib import contextmanager
from typing import Generator, Optional

from .repositories.documents import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _load_private_key(key_path: str):
    """
    Load private key from file for key-pair authentication.

    Snowflake requires the private key as DER bytes, not a file path.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(
            key_file.read(),
            password=None,
            backend=default_backend()
        )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If private_key_path is set, uses key-pair auth
    - Otherwise, uses password auth

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    import snowflake.connector

    conn = None
    try:
        connect_params = {
            'account': config.account,
            'user': config.user,
            'database': config.database,
            'schema': config.schema,
            'warehouse': config.warehouse,
            'role': config.role,
            'client_session_keep_alive': True,
        }

        if config.private_key_path:
            logger.info("Using key-pair authentication for Snowflake")
            connect_params['private_key'] = _load_private_key(config.private_key_path)
        elif config.password:
            logger.info("Using password authentication for Snowflake")
            connect_params['password'] = config.password
        else:
            raise SnowflakeConnectionError(
                "Either password or private_key_path must be provided"
            )

        try:
            conn = snowflake.connector.connect(**connect_params)
        except snowflake.connector.errors.DatabaseError as e:
            logger.error(
                "Snowflake connection failed",
                extra={"error": str(e), "account": config.account}
            )
            raise SnowflakeConnectionError(f"Database connection failed: {e}")

        logger.debug(
            "Established Snowflake connection",
            extra={
                "account": config.account,
                "database": config.database,
                "schema": config.schema,
            }
        )

        yield conn

    finally:
        if conn:
            try:
                conn.close()
                logger.debug("Closed Snowflake connection")
            except Exception as e:
                logger.warning(
                    "Error closing Snowflake connection",
                    extra={"error": str(e)}
                )


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

_TABLE_RE = re.compile(r"\b(?:FROM|INTO|EXISTS)\s+(\w+)", re.IGNORECASE)
_FIELD_FILTER_RE = re.compile(r"WHERE\s+body:(\w+)::string\s*=\s*%s", re.IGNORECASE)


class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support the
    statements DocumentTable issues (MERGE, SELECT by id or by field,
    SELECT all, DELETE, CREATE TABLE) by pattern matching.
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query.strip()[:100], "params": params}
        )

        query_upper = query.upper().strip()
        self._results = []
        self._rowcount = 0

        match = _TABLE_RE.search(query)
        if not match:
            return self
        table = match.group(1).lower()

        if query_upper.startswith('CREATE TABLE'):
            self._storage.setdefault(table, {})

        elif query_upper.startswith('MERGE INTO'):
            # (doc_id, body, updated_at, doc_id, body, updated_at)
            doc_id, body_json = params[0], params[1]
            self._storage.setdefault(table, {})[doc_id] = body_json
            self._rowcount = 1

        elif query_upper.startswith('SELECT'):
            self._handle_select(query, table, params)

        elif query_upper.startswith('DELETE'):
            rows = self._storage.get(table, {})
            if params and params[0] in rows:
                del rows[params[0]]
                self._rowcount = 1

        return self

    def _handle_select(self, query: str, table: str, params: Optional[tuple]) -> None:
        rows = self._storage.get(table, {})

        if 'WHERE DOC_ID' in query.upper():
            body = rows.get(params[0])
            self._results = [(body,)] if body is not None else []
            return

        field_filter = _FIELD_FILTER_RE.search(query)
        if field_filter:
            field = field_filter.group(1)
            self._results = [
                (body,) for body in rows.values()
                if json.loads(body).get(field) == params[0]
            ]
            return

        self._results = [(body,) for body in rows.values()]

    def fetchone(self):
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        return self._results

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores documents in memory as {table: {doc_id: body_json}}, keeping
    bodies as JSON text like the real connector returns them.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        self._storage: dict[str, dict[str, str]] = {
            'users': {},
            'videos': {},
            'usage_limits': {},
        }

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, always auto-commits)."""
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        logger.debug("Mock connection close")

    # Helper methods for testing
    def _count(self, table: str) -> int:
        return len(self._storage.get(table, {}))

    def _clear(self) -> None:
        """Clear all mock storage (for test cleanup)."""
        for table in self._storage.values():
            table.clear()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Create Snowflake connection based on configuration.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, return a fresh mock connection

    Yields:
        SnowflakeConnection implementation (real or mock)
    """
    if mock_mode:
        conn = MockSnowflakeConnection()
        try:
            yield conn
        finally:
            conn.close()
    else:
        if config is None:
            raise ValueError("config is required when not in mock mode")

        with get_snowflake_connection(config) as conn:
            yield conn
