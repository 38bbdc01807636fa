"""
Phased emission of synthetic kiosk events.

Phase 1 pushes a large burst as fast as the transport accepts it. Phase 2 runs
a fixed number of smaller cycles paced start-to-start to a wall-clock interval.
Each phase ends with a bounded flush; a flush timeout is logged, never fatal.

Delivery callbacks run on transport threads. They only log and append the
outcome to a queue; the driver thread drains that queue into the run counters,
so nothing a callback touches is shared mutable state.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from kiosk_bench.domain.models import SyntheticEvent
from kiosk_bench.domain.sequence import ENTITY_CHUNK_SIZE, SequenceAllocator
from kiosk_bench.domain.serializer import EventSerializer
from kiosk_bench.errors import BackpressureError
from kiosk_bench.producer.abstract import BackpressurePolicy, Publisher
from kiosk_bench.producer.policies import DropAndContinuePolicy
from kiosk_bench.utils.clock import Clock, SystemClock
from kiosk_bench.utils.logging import get_logger
from kiosk_bench.utils.profiler import profile_block

log = get_logger(__name__)

PROGRESS_EVERY = ENTITY_CHUNK_SIZE


@dataclass
class EmitterStats:
    """Counters for one producer run. Owned by the driver thread."""

    allocated: int = 0
    accepted: int = 0
    delivered: int = 0
    failed: int = 0
    dropped: int = 0
    backpressure_events: int = 0
    flush_timeouts: int = 0
    phases: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "allocated": self.allocated,
            "accepted": self.accepted,
            "delivered": self.delivered,
            "failed": self.failed,
            "dropped": self.dropped,
            "backpressure_events": self.backpressure_events,
            "flush_timeouts": self.flush_timeouts,
            "phases": list(self.phases),
        }


class PhasedEmitter:
    """
    Drives a producer run over a `Publisher`.

    Parameters
    ----------
    publisher : Publisher
        Outbound transport.
    topic : str
        Destination topic.
    policy : BackpressurePolicy | None
        What to do with a refused message; defaults to drop-and-continue.
    backpressure_delay : float
        Fixed sleep in seconds after a full-buffer refusal.
    initial_flush_timeout, cycle_flush_timeout : float
        Bounded waits at the end of phase 1 and of each phase 2 cycle.
    """

    def __init__(
        self,
        publisher: Publisher,
        topic: str,
        allocator: Optional[SequenceAllocator] = None,
        serializer: Optional[EventSerializer] = None,
        policy: Optional[BackpressurePolicy] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        backpressure_delay: float = 0.01,
        initial_flush_timeout: float = 60.0,
        cycle_flush_timeout: float = 30.0,
    ) -> None:
        self.publisher = publisher
        self.topic = topic
        self.allocator = allocator or SequenceAllocator()
        self.serializer = serializer or EventSerializer()
        self.policy = policy or DropAndContinuePolicy()
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.backpressure_delay = backpressure_delay
        self.initial_flush_timeout = initial_flush_timeout
        self.cycle_flush_timeout = cycle_flush_timeout
        self.stats = EmitterStats()
        self._acks: Deque[Optional[str]] = deque()

    # --------------------------- delivery outcomes

    def _on_ack(self, error: Optional[str]) -> None:
        if error is not None:
            log.error(f"Delivery error: {error}", extra={"topic": self.topic})
        self._acks.append(error)

    def _drain_acks(self) -> None:
        while self._acks:
            if self._acks.popleft() is None:
                self.stats.delivered += 1
            else:
                self.stats.failed += 1

    # --------------------------- single message

    def _backoff(self) -> None:
        self.stats.backpressure_events += 1
        self.clock.sleep(self.backpressure_delay)

    def emit_one(self) -> bool:
        """
        Allocate, build, serialize and submit one event.

        Returns
        -------
        bool
            True if the transport accepted the message, False if the backpressure
            policy gave it up. Transport errors other than backpressure propagate.
        """
        seq = self.allocator.allocate()
        self.stats.allocated = self.allocator.allocated
        event = SyntheticEvent.for_sequence(seq, self.clock.now(), self.rng)
        key = self.serializer.key_for(event)
        value = self.serializer.serialize(event)

        def submit() -> None:
            self.publisher.publish(self.topic, key, value, self._on_ack)

        try:
            submit()
            accepted = True
        except BackpressureError:
            self._backoff()
            accepted = self.policy.handle(submit, self._backoff)
            if not accepted:
                self.stats.dropped += 1
                log.debug("Dropped refused event", extra={"seq": seq, "policy": self.policy.name})

        if accepted:
            self.stats.accepted += 1
        self._drain_acks()

        if seq % PROGRESS_EVERY == 0:
            log.info(f"Produced {seq:,} messages", extra={"seq": seq})
        return accepted

    def emit(self, count: int) -> int:
        """Emit until `count` messages were accepted. Returns sequences allocated on the way."""
        before = self.allocator.allocated
        accepted = 0
        while accepted < count:
            if self.emit_one():
                accepted += 1
        return self.allocator.allocated - before

    # --------------------------- phases

    def flush(self, timeout: float, label: str) -> int:
        remaining = self.publisher.flush(timeout)
        self._drain_acks()
        if remaining > 0:
            self.stats.flush_timeouts += 1
            log.warning(
                f"[{label}] Flush timed out after {timeout:.0f}s; {remaining:,} messages outstanding",
                extra={"phase": label, "remaining": remaining, "timeout": timeout},
            )
        return remaining

    def _run_phase(self, label: str, count: int, flush_timeout: float) -> None:
        with profile_block(label) as profile:
            allocated = self.emit(count)
            remaining = self.flush(flush_timeout, label)
            profile.extra.update({"messages": count, "allocated": allocated, "remaining": remaining})
        self.stats.phases.append(profile.as_dict())

    def run_burst(self, initial_count: int) -> None:
        log.info(
            f"Starting Phase 1: Producing {initial_count:,} messages to topic: {self.topic}",
            extra={"phase": "phase-1", "messages": initial_count},
        )
        self._run_phase("phase-1", initial_count, self.initial_flush_timeout)
        log.info(f"Finished Phase 1: {initial_count:,} messages produced")

    def run_cycles(self, cycles: int, cycle_size: int, cycle_interval: float) -> None:
        log.info(
            f"Starting Phase 2: {cycle_size:,} messages every {cycle_interval:.0f}s "
            f"for {cycles} cycles",
            extra={"phase": "phase-2", "cycles": cycles, "messages": cycle_size},
        )
        for cycle in range(cycles):
            cycle_start = self.clock.monotonic()
            log.info(f"Starting batch {cycle + 1}/{cycles}")

            self._run_phase(f"cycle-{cycle + 1}", cycle_size, self.cycle_flush_timeout)

            elapsed = self.clock.monotonic() - cycle_start
            log.info(f"Completed batch {cycle + 1}/{cycles}", extra={"elapsed": round(elapsed, 3)})

            wait_time = max(0.0, cycle_interval - elapsed)
            if wait_time > 0 and cycle < cycles - 1:
                log.info(f"Waiting {wait_time:.1f} seconds until next batch")
                self.clock.sleep(wait_time)

    def run(
        self,
        initial_count: int,
        cycles: int,
        cycle_size: int,
        cycle_interval: float,
    ) -> EmitterStats:
        """
        Run both phases and return the run counters.

        Allocation is monotonic across phases: phase 2 continues numbering
        where phase 1 stopped.
        """
        self.run_burst(initial_count)
        self.run_cycles(cycles, cycle_size, cycle_interval)
        log.info(
            f"All batches completed. Total messages: {self.allocator.current:,}",
            extra=self.stats.as_dict() | {"phases": len(self.stats.phases)},
        )
        return self.stats


__all__ = ["EmitterStats", "PhasedEmitter", "PROGRESS_EVERY"]
