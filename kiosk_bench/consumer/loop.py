"""
Single-threaded poll -> decode -> batch -> bulk insert loop.

Each iteration performs one bounded poll, decodes at most one record, then
evaluates the flush trigger. The loop runs until the shutdown controller is
set, then forces one flush of whatever is still buffered.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from kiosk_bench.consumer.abstract import Subscriber
from kiosk_bench.consumer.accumulator import BatchAccumulator, FlushReason
from kiosk_bench.consumer.metrics import MetricsReporter
from kiosk_bench.consumer.persister import BulkPersister
from kiosk_bench.consumer.shutdown import ShutdownController
from kiosk_bench.domain.serializer import EventSerializer
from kiosk_bench.errors import DecodeError, PersistenceError
from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ConsumerStats:
    messages: int = 0
    decode_errors: int = 0
    flushes: Counter = field(default_factory=Counter)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "messages": self.messages,
            "decode_errors": self.decode_errors,
            "flushes": dict(self.flushes),
        }


class ConsumerLoop:
    """
    Wires the consumer components together.

    Parameters
    ----------
    subscriber : Subscriber
        Inbound transport, already subscribed.
    persister : BulkPersister
        Anything with a `persist(batch)` method.
    accumulator : BatchAccumulator
        Size/time triggered buffer.
    poll_timeout : float
        Seconds to wait in each poll.
    """

    def __init__(
        self,
        subscriber: Subscriber,
        persister: BulkPersister,
        accumulator: BatchAccumulator,
        serializer: Optional[EventSerializer] = None,
        metrics: Optional[MetricsReporter] = None,
        shutdown: Optional[ShutdownController] = None,
        poll_timeout: float = 0.05,
    ) -> None:
        self.subscriber = subscriber
        self.persister = persister
        self.accumulator = accumulator
        self.serializer = serializer or EventSerializer()
        self.metrics = metrics or MetricsReporter()
        self.shutdown = shutdown or ShutdownController()
        self.poll_timeout = poll_timeout
        self.stats = ConsumerStats()

    def run_once(self) -> Optional[FlushReason]:
        """One poll, at most one decode, one trigger evaluation. Returns the flush reason, if any."""
        raw = self.subscriber.poll(self.poll_timeout)
        if raw is not None:
            self.stats.messages += 1
            try:
                self.accumulator.add(self.serializer.decode(raw))
            except DecodeError as exc:
                self.stats.decode_errors += 1
                log.error(f"Dropping malformed message: {exc}", extra={"error": str(exc)})

        reason = self.accumulator.due()
        if reason is not None:
            self.flush(reason)
        return reason

    def flush(self, reason: FlushReason) -> int:
        """Persist the current batch and account it. Persistence errors propagate."""
        batch_size = len(self.accumulator)
        start = time.perf_counter()
        try:
            flushed = self.accumulator.flush(self.persister.persist)
        except PersistenceError as exc:
            log.error(
                f"Batch flush failed ({reason.value}): {exc}",
                extra={"reason": reason.value, "batch_size": batch_size, "error": exc.reason},
            )
            raise
        if flushed:
            self.stats.flushes[reason.value] += 1
            self.metrics.record_flush(flushed, time.perf_counter() - start)
        return flushed

    def run(self) -> ConsumerStats:
        """
        Loop until shutdown is requested, then flush the remainder once.
        """
        log.info("Starting Kafka consumer loop")
        while not self.shutdown.requested:
            self.run_once()

        if len(self.accumulator):
            self.flush(FlushReason.SHUTDOWN)
        log.info(
            f"Final stats: {self.metrics.total_processed:,} messages processed",
            extra={"total_processed": self.metrics.total_processed, **self.stats.as_dict()},
        )
        return self.stats


__all__ = ["ConsumerLoop", "ConsumerStats"]
