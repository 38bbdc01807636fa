"""
Exception hierarchy for the Kiosk Ingest Benchmark.

Transport and storage adapters translate library-specific failures into these
types so the emitter and the consumer loop can decide what is retryable
(backpressure), what is isolated (decode) and what aborts the run.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for all benchmark errors."""


class BackpressureError(BenchmarkError):
    """The outbound transport's local buffer is full; retry after a short delay."""


class TransportError(BenchmarkError):
    """Unrecoverable transport failure. Aborts the run."""


class DecodeError(BenchmarkError):
    """An inbound payload could not be turned into a row."""


class BatchFullError(BenchmarkError):
    """A record was added to a batch that already holds its size threshold."""


class PersistenceError(BenchmarkError):
    """A bulk insert was rejected by the store."""

    def __init__(self, message: str, batch_size: int, reason: str | None = None) -> None:
        super().__init__(message)
        self.batch_size = batch_size
        self.reason = reason


__all__ = [
    "BenchmarkError",
    "BackpressureError",
    "TransportError",
    "DecodeError",
    "BatchFullError",
    "PersistenceError",
]
