from __future__ import annotations

from typing import Any, List

from kiosk_bench.domain.models import INSERT_COLUMNS
from kiosk_bench.infrastructure.db_factory import SCHEMA_PATH, apply_schema


class _Cursor:
    def __init__(self, executed: List[Any]) -> None:
        self._executed = executed

    def execute(self, statement: Any, params: Any = None) -> None:
        self._executed.append(statement)

    def __enter__(self) -> "_Cursor":
        return self

    def __exit__(self, *exc) -> bool:
        return False


class _Connection:
    def __init__(self) -> None:
        self.executed: List[Any] = []
        self.commits = 0

    def cursor(self) -> _Cursor:
        return _Cursor(self.executed)

    def commit(self) -> None:
        self.commits += 1


def test_schema_is_packaged_with_every_insert_column() -> None:
    ddl = SCHEMA_PATH.read_text(encoding="utf-8")

    assert "CREATE TABLE IF NOT EXISTS public.kiosk_events" in ddl
    for column in INSERT_COLUMNS:
        assert column in ddl


def test_apply_schema_runs_the_packaged_ddl_and_commits() -> None:
    conn = _Connection()

    apply_schema(conn)

    assert conn.executed == [SCHEMA_PATH.read_text(encoding="utf-8")]
    assert conn.commits == 1
