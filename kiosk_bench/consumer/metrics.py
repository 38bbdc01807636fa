"""
Rolling throughput reporting for the consumer.

Purely observational: the flush path feeds it row counts, it logs a rate every
`interval` seconds and never influences control flow.
"""

from __future__ import annotations

from typing import Optional

from kiosk_bench.utils.clock import Clock, SystemClock
from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)


class MetricsReporter:
    def __init__(self, clock: Optional[Clock] = None, interval: float = 5.0) -> None:
        self._clock = clock or SystemClock()
        self.interval = interval
        self.total_processed = 0
        self.flushes = 0
        self._last_report_at = self._clock.monotonic()
        self._last_reported = 0

    def record_flush(self, batch_size: int, insert_seconds: float = 0.0) -> Optional[float]:
        """
        Account one successful flush; log and return the rate when a report is due.
        """
        self.total_processed += batch_size
        self.flushes += 1

        elapsed = self._clock.monotonic() - self._last_report_at
        if elapsed < self.interval:
            return None

        rate = (self.total_processed - self._last_reported) / elapsed
        insert_ms = round(insert_seconds * 1000, 2)
        log.info(
            f"Performance: {rate:,.2f} msgs/sec | Batch: {batch_size} | "
            f"Insert: {insert_ms}ms | Total: {self.total_processed:,}",
            extra={
                "rate": round(rate, 2),
                "batch_size": batch_size,
                "insert_ms": insert_ms,
                "total_processed": self.total_processed,
            },
        )
        self._last_report_at = self._clock.monotonic()
        self._last_reported = self.total_processed
        return rate


__all__ = ["MetricsReporter"]
