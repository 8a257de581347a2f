"""
Document tables on Snowflake.

Members and videos are nested records (subscriber lists, comments,
warnings), so each one is stored as a single JSON document in a VARIANT
column rather than spread across join tables:

    CREATE TABLE users (doc_id STRING PRIMARY KEY, body VARIANT, updated_at TIMESTAMP_TZ)

DocumentTable owns all SQL for that shape. Repositories translate between
documents and domain models on top of it.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

DOCUMENT_TABLES = ("users", "videos", "usage_limits")

SCHEMA_STATEMENTS = [
    f"""
    CREATE TABLE IF NOT EXISTS {table} (
        doc_id STRING NOT NULL PRIMARY KEY,
        body VARIANT NOT NULL,
        updated_at TIMESTAMP_TZ NOT NULL
    )
    """
    for table in DOCUMENT_TABLES
]

_FIELD_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "LAHAT"
    schema: str = "APP"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


def _load_body(raw: Any) -> dict:
    # the connector hands VARIANT columns back as JSON text
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return dict(raw)


class DocumentTable:
    """
    Key/value access to one document table.

    Writes commit immediately; each call is its own unit of work.
    """

    def __init__(self, connection: SnowflakeConnection, table: str) -> None:
        if table not in DOCUMENT_TABLES:
            raise ValueError(f"Unknown document table: {table}")
        self._conn = connection
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def get(self, doc_id: str) -> Optional[dict]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(
                f"SELECT body FROM {self._table} WHERE doc_id = %s",
                (doc_id,),
            )
            row = cursor.fetchone()
            return _load_body(row[0]) if row else None
        finally:
            cursor.close()

    def find_by(self, field: str, value: str) -> list[dict]:
        """Documents whose top-level string `field` equals `value`."""
        if not _FIELD_RE.match(field):
            raise ValueError(f"Invalid document field: {field}")

        cursor = self._conn.cursor()

        try:
            cursor.execute(
                f"SELECT body FROM {self._table} WHERE body:{field}::string = %s",
                (value,),
            )
            return [_load_body(row[0]) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def all(self) -> list[dict]:
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"SELECT body FROM {self._table} ORDER BY updated_at")
            return [_load_body(row[0]) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def put(self, doc_id: str, body: dict) -> None:
        """Insert or replace a document. Idempotent."""
        body_json = json.dumps(body)
        now = datetime.now(timezone.utc)
        cursor = self._conn.cursor()

        try:
            cursor.execute(f"""
                MERGE INTO {self._table} AS target
                USING (SELECT %s AS doc_id) AS source
                ON target.doc_id = source.doc_id
                WHEN MATCHED THEN UPDATE SET
                    body = PARSE_JSON(%s),
                    updated_at = %s
                WHEN NOT MATCHED THEN INSERT (doc_id, body, updated_at)
                VALUES (%s, PARSE_JSON(%s), %s)
            """, (doc_id, body_json, now, doc_id, body_json, now))

            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to save document",
                extra={"table": self._table, "doc_id": doc_id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def delete(self, doc_id: str) -> bool:
        cursor = self._conn.cursor()

        try:
            cursor.execute(
                f"DELETE FROM {self._table} WHERE doc_id = %s",
                (doc_id,),
            )
            self._conn.commit()
            return cursor.rowcount > 0
        finally:
            cursor.close()


def create_schema(connection: SnowflakeConnection) -> None:
    """Create every document table that doesn't exist yet."""
    cursor = connection.cursor()

    try:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
        connection.commit()
    finally:
        cursor.close()

    logger.info("Document tables ready", extra={"tables": list(DOCUMENT_TABLES)})
