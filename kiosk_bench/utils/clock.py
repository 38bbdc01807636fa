"""
Injectable clock for pacing and batching decisions.

The emitter's cycle pacing and the accumulator's time trigger read time and
sleep through a `Clock` so tests can drive them with a virtual clock instead of
real multi-second waits.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Time source used by the emitter and the consumer loop."""

    def monotonic(self) -> float:
        """Seconds from an arbitrary, never-decreasing origin."""
        ...

    def now(self) -> datetime:
        """Current wall-clock time (timezone-aware, UTC)."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the caller for `seconds`."""
        ...


class SystemClock:
    """Real time, backed by `time.perf_counter` and `time.sleep`."""

    def monotonic(self) -> float:
        return time.perf_counter()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


__all__ = ["Clock", "SystemClock"]
