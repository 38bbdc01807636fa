"""
Consumer-side batch coalescing with a dual size/time trigger.

A batch is flushed when it holds `size_threshold` rows, or when
`time_threshold` seconds have passed since the last flush and it is not empty.
The size trigger wins when both hold. An empty buffer never flushes.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, List, Optional

from kiosk_bench.domain.models import RowRecord
from kiosk_bench.errors import BatchFullError
from kiosk_bench.utils.clock import Clock, SystemClock


class BatchState(str, enum.Enum):
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


class FlushReason(str, enum.Enum):
    SIZE = "size"
    TIME = "time"
    SHUTDOWN = "shutdown"


class BatchAccumulator:
    """
    Ordered row buffer owned by the single consuming loop.

    No locking: only the loop thread adds, evaluates and flushes.
    """

    def __init__(
        self,
        size_threshold: int,
        time_threshold: float,
        clock: Optional[Clock] = None,
    ) -> None:
        if size_threshold <= 0:
            raise ValueError("size_threshold must be positive")
        if time_threshold <= 0:
            raise ValueError("time_threshold must be positive")
        self.size_threshold = size_threshold
        self.time_threshold = time_threshold
        self._clock = clock or SystemClock()
        self._buffer: List[RowRecord] = []
        self._last_flush = self._clock.monotonic()
        self.state = BatchState.ACCUMULATING

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def elapsed_since_flush(self) -> float:
        return self._clock.monotonic() - self._last_flush

    def add(self, record: RowRecord) -> None:
        if len(self._buffer) >= self.size_threshold:
            raise BatchFullError(
                f"Batch is full ({self.size_threshold} rows); flush before adding"
            )
        self._buffer.append(record)

    def due(self) -> Optional[FlushReason]:
        """Which trigger, if any, currently asks for a flush."""
        if len(self._buffer) >= self.size_threshold:
            return FlushReason.SIZE
        if self._buffer and self.elapsed_since_flush >= self.time_threshold:
            return FlushReason.TIME
        return None

    def flush(self, persist: Callable[[List[RowRecord]], Any]) -> int:
        """
        Hand the buffered rows to `persist` and clear the buffer.

        The buffer is only cleared (and the time window restarted) when
        `persist` returns; if it raises, the rows stay buffered and the error
        propagates.

        Returns
        -------
        int
            Number of rows flushed (0 for an empty buffer, without calling `persist`).
        """
        if not self._buffer:
            return 0
        self.state = BatchState.FLUSHING
        try:
            persist(self._buffer)
            flushed = len(self._buffer)
            self._buffer = []
            self._last_flush = self._clock.monotonic()
            return flushed
        finally:
            self.state = BatchState.ACCUMULATING


__all__ = ["BatchAccumulator", "BatchState", "FlushReason"]
