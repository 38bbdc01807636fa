from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kiosk_bench.consumer.accumulator import BatchAccumulator, BatchState, FlushReason
from kiosk_bench.domain.models import RowRecord
from kiosk_bench.errors import BatchFullError, BenchmarkError

SIZE = 3
WINDOW = 1.0
TS = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _row(n: int = 0) -> RowRecord:
    return RowRecord(
        mall_id=1,
        kiosk_id=n,
        event_type="python-visit",
        event_ts=TS,
        created_at=TS,
        updated_at=TS,
    )


class _Sink:
    def __init__(self) -> None:
        self.batches: list[list[int]] = []

    def __call__(self, batch: list[RowRecord]) -> None:
        self.batches.append([row.kiosk_id for row in batch])


def test_empty_buffer_never_flushes_on_time_alone(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    clock.advance(WINDOW * 10)
    assert acc.due() is None
    assert acc.flush(_Sink()) == 0


def test_size_trigger_fires_at_threshold(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    for n in range(SIZE - 1):
        acc.add(_row(n))
        assert acc.due() is None
    acc.add(_row(SIZE))
    assert acc.due() is FlushReason.SIZE


def test_size_trigger_wins_when_both_are_satisfied(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    for n in range(SIZE):
        acc.add(_row(n))
    clock.advance(WINDOW * 2)
    assert acc.due() is FlushReason.SIZE


def test_full_buffer_refuses_another_record(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    for n in range(SIZE):
        acc.add(_row(n))
    with pytest.raises(BatchFullError):
        acc.add(_row(99))
    assert len(acc) == SIZE
    assert issubclass(BatchFullError, BenchmarkError)


def test_time_trigger_fires_once_per_window(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    sink = _Sink()
    acc.add(_row(1))
    clock.advance(WINDOW / 2)
    assert acc.due() is None
    clock.advance(WINDOW / 2)
    assert acc.due() is FlushReason.TIME

    assert acc.flush(sink) == 1
    for _ in range(5):
        clock.advance(WINDOW)
        assert acc.due() is None
    assert sink.batches == [[1]]


def test_flush_preserves_order_and_restarts_the_window(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    sink = _Sink()
    for n in (5, 3, 9):
        acc.add(_row(n))
    clock.advance(0.4)
    acc.flush(sink)

    assert sink.batches == [[5, 3, 9]]
    assert len(acc) == 0
    assert acc.elapsed_since_flush == 0.0


def test_failed_flush_keeps_rows_buffered(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    acc.add(_row(1))
    acc.add(_row(2))

    def failing(batch: list[RowRecord]) -> None:
        raise RuntimeError("insert failed")

    with pytest.raises(RuntimeError):
        acc.flush(failing)
    assert len(acc) == 2
    assert acc.state is BatchState.ACCUMULATING


def test_state_is_flushing_while_persisting(clock) -> None:
    acc = BatchAccumulator(SIZE, WINDOW, clock=clock)
    acc.add(_row(1))
    observed: list[BatchState] = []

    acc.flush(lambda batch: observed.append(acc.state))

    assert observed == [BatchState.FLUSHING]
    assert acc.state is BatchState.ACCUMULATING


@pytest.mark.parametrize(("size", "window"), [(0, 1.0), (10, 0.0)])
def test_thresholds_must_be_positive(size: int, window: float) -> None:
    with pytest.raises(ValueError):
        BatchAccumulator(size, window)
