"""
Consumer package for the Kiosk Ingest Benchmark.

Re-exports the batching, persistence, reporting and shutdown pieces of the
ingestion loop.
"""

from kiosk_bench.consumer.abstract import Subscriber
from kiosk_bench.consumer.accumulator import BatchAccumulator, BatchState, FlushReason
from kiosk_bench.consumer.loop import ConsumerLoop, ConsumerStats
from kiosk_bench.consumer.metrics import MetricsReporter
from kiosk_bench.consumer.persister import BulkPersister, build_insert_statement
from kiosk_bench.consumer.shutdown import ShutdownController, released

__all__ = [
    "BatchAccumulator",
    "BatchState",
    "BulkPersister",
    "ConsumerLoop",
    "ConsumerStats",
    "FlushReason",
    "MetricsReporter",
    "ShutdownController",
    "Subscriber",
    "build_insert_statement",
    "released",
]
