"""
Sequence allocation for the producer.

Every emitted event consumes one number from a process-wide counter. Numbers
are never reused, including when the transport refuses the event.
"""

from __future__ import annotations

import threading

ENTITY_CHUNK_SIZE = 100_000


def derive_entity_id(seq: int) -> int:
    """Partition sequence numbers into consecutive chunks of ENTITY_CHUNK_SIZE per entity."""
    if seq < 0:
        raise ValueError(f"Sequence numbers are non-negative, got {seq}")
    return seq // ENTITY_CHUNK_SIZE


class SequenceAllocator:
    """
    Monotonic counter shared by every phase of a producer run.

    The lock keeps `allocate()` atomic; delivery callbacks run on transport
    threads and must not touch this object.
    """

    def __init__(self, start: int = 0) -> None:
        self._start = start
        self._value = start
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def current(self) -> int:
        """Last number handed out (or the start value when nothing was allocated)."""
        return self._value

    @property
    def allocated(self) -> int:
        return self._value - self._start


__all__ = ["ENTITY_CHUNK_SIZE", "SequenceAllocator", "derive_entity_id"]
