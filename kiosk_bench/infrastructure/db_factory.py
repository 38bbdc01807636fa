"""
Database connection factory for the Kiosk Ingest Benchmark.

The consumer writes through one dedicated psycopg connection for its whole run;
there is a single writer, so no pool is involved. Connection acquisition is
retried for transient failures using tenacity; statements never are.
"""

from __future__ import annotations

from importlib.resources import files
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Optional, Union

import psycopg
from psycopg import Connection
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from kiosk_bench.config import get_settings
from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)

# Package data, resolved from the installed package.
SCHEMA_PATH: Traversable = files("kiosk_bench.db") / "init.sql"


def build_dsn(dsn_override: Optional[str] = None) -> str:
    """Return the override if given, else DATABASE_URL from settings."""
    return dsn_override or get_settings().database_url


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn_override: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    The connection is not in autocommit mode: callers commit per batch.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    conn = psycopg.connect(build_dsn(dsn_override))
    log.info("Database connected")
    return conn


def apply_schema(conn: Connection, schema_path: Union[Path, Traversable] = SCHEMA_PATH) -> None:
    """Run the DDL script that creates the `kiosk_events` table (idempotent)."""
    ddl = schema_path.read_text(encoding="utf-8")
    with conn.cursor() as cur:
        cur.execute(ddl)
    conn.commit()
    log.info("Schema applied", extra={"schema": str(schema_path)})


__all__ = [
    "SCHEMA_PATH",
    "apply_schema",
    "build_dsn",
    "get_sync_connection",
]
