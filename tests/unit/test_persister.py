from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import psycopg
import pytest

from kiosk_bench.consumer.persister import (
    MAX_BATCH_ROWS,
    BulkPersister,
    build_insert_statement,
    flatten_params,
)
from kiosk_bench.domain.models import INSERT_COLUMNS, RowRecord
from kiosk_bench.errors import PersistenceError

TS = datetime(2025, 1, 1, tzinfo=timezone.utc)
BATCH_ROWS = 4


def _row(n: int) -> RowRecord:
    return RowRecord(
        mall_id=1,
        kiosk_id=n,
        event_type=f"python-visit-{n}",
        event_ts=TS,
        amount_cents=1000 + n,
        total_items=5,
        payment_method=1,
        status=0,
        created_at=TS,
        updated_at=TS,
    )


class _FakeCursor:
    def __init__(self, conn: "_FakeConnection") -> None:
        self._conn = conn

    def execute(self, statement: Any, params: Optional[list] = None) -> None:
        if self._conn.fail_with is not None:
            raise self._conn.fail_with
        self._conn.executed.append((statement, list(params or [])))

    def __enter__(self) -> "_FakeCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        return False


class _FakeConnection:
    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.fail_with = fail_with
        self.executed: list[tuple[Any, list]] = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self) -> _FakeCursor:
        return _FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


def test_persist_issues_one_statement_with_ten_params_per_row() -> None:
    conn = _FakeConnection()
    batch = [_row(n) for n in range(BATCH_ROWS)]

    written = BulkPersister(conn).persist(batch)

    assert written == BATCH_ROWS
    assert len(conn.executed) == 1
    statement, params = conn.executed[0]
    assert statement is build_insert_statement("kiosk_events", BATCH_ROWS)
    assert len(params) == BATCH_ROWS * len(INSERT_COLUMNS)
    assert params[1::len(INSERT_COLUMNS)] == [0, 1, 2, 3]
    assert params[2::len(INSERT_COLUMNS)] == [f"python-visit-{n}" for n in range(BATCH_ROWS)]
    assert conn.commits == 1


def test_flatten_params_keeps_buffer_order() -> None:
    batch = [_row(7), _row(2), _row(5)]
    params = flatten_params(batch)
    assert params == [value for row in batch for value in row.as_params()]


def test_empty_batch_is_a_no_op() -> None:
    conn = _FakeConnection()
    assert BulkPersister(conn).persist([]) == 0
    assert conn.executed == []
    assert conn.commits == 0


def test_failed_insert_rolls_back_and_raises_persistence_error() -> None:
    conn = _FakeConnection(fail_with=psycopg.OperationalError("server closed the connection"))

    with pytest.raises(PersistenceError) as info:
        BulkPersister(conn).persist([_row(1), _row(2)])

    assert info.value.batch_size == 2
    assert info.value.reason == "OperationalError"
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_insert_statement_rejects_oversized_batches() -> None:
    with pytest.raises(ValueError):
        build_insert_statement("kiosk_events", MAX_BATCH_ROWS + 1)
    with pytest.raises(ValueError):
        build_insert_statement("kiosk_events", 0)


def test_insert_statement_is_cached_per_row_count() -> None:
    assert build_insert_statement("kiosk_events", 10) is build_insert_statement("kiosk_events", 10)
    assert build_insert_statement("kiosk_events", 10) is not build_insert_statement(
        "kiosk_events", 11
    )
