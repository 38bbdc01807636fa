"""
Bulk persistence of one batch as a single multi-row INSERT.

The statement binds 10 parameters per row in buffer order and runs in its own
transaction: the whole batch is committed or none of it is. There is no retry
and no idempotency key, so a redelivered message becomes a duplicate row.
"""

from __future__ import annotations

import time
from functools import lru_cache
from typing import Any, List, Sequence

import psycopg
from psycopg import sql

from kiosk_bench.domain.models import INSERT_COLUMNS, RowRecord
from kiosk_bench.errors import PersistenceError
from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_TABLE = "kiosk_events"
# PostgreSQL caps a statement at 65535 bind parameters.
MAX_BIND_PARAMS = 65_535
MAX_BATCH_ROWS = MAX_BIND_PARAMS // len(INSERT_COLUMNS)


@lru_cache(maxsize=8)
def build_insert_statement(table: str, rows: int) -> sql.Composed:
    """Compose `INSERT INTO <table> (<cols>) VALUES (%s, ...), ...` for `rows` rows."""
    if rows <= 0:
        raise ValueError("rows must be positive")
    if rows > MAX_BATCH_ROWS:
        raise ValueError(f"rows={rows} exceeds the {MAX_BATCH_ROWS}-row bind parameter limit")
    row_placeholder = sql.SQL("({})").format(
        sql.SQL(", ").join(sql.Placeholder() for _ in INSERT_COLUMNS)
    )
    return sql.SQL("INSERT INTO {table} ({cols}) VALUES {values}").format(
        table=sql.Identifier(table),
        cols=sql.SQL(", ").join(sql.Identifier(col) for col in INSERT_COLUMNS),
        values=sql.SQL(", ").join([row_placeholder] * rows),
    )


def flatten_params(batch: Sequence[RowRecord]) -> List[Any]:
    params: List[Any] = []
    for row in batch:
        params.extend(row.as_params())
    return params


class BulkPersister:
    """
    Writes batches through one dedicated psycopg connection.

    Parameters
    ----------
    connection : psycopg.Connection
        Open, non-autocommit connection owned by the consumer run.
    table : str
        Destination table name.
    """

    def __init__(self, connection: psycopg.Connection, table: str = DEFAULT_TABLE) -> None:
        self.connection = connection
        self.table = table
        self.last_insert_seconds = 0.0

    def persist(self, batch: Sequence[RowRecord]) -> int:
        """
        Insert `batch` with one statement and commit.

        Raises
        ------
        PersistenceError
            If the statement or the commit fails. The transaction is rolled back
            and nothing from the batch is stored.
        """
        if not batch:
            return 0
        statement = build_insert_statement(self.table, len(batch))
        params = flatten_params(batch)

        start = time.perf_counter()
        try:
            with self.connection.cursor() as cur:
                cur.execute(statement, params)
            self.connection.commit()
        except psycopg.Error as exc:
            self._rollback()
            raise PersistenceError(
                f"Bulk insert of {len(batch)} rows into {self.table} failed: {exc}",
                batch_size=len(batch),
                reason=type(exc).__name__,
            ) from exc
        self.last_insert_seconds = time.perf_counter() - start
        return len(batch)

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        except psycopg.Error as exc:
            log.warning(f"Rollback after failed insert also failed: {exc}")


__all__ = [
    "BulkPersister",
    "DEFAULT_TABLE",
    "MAX_BATCH_ROWS",
    "build_insert_statement",
    "flatten_params",
]
