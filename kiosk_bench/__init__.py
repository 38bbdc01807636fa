"""
Kiosk Ingest Benchmark - two-sided Kafka -> PostgreSQL load and ingestion benchmark.

The producer emits synthetic kiosk events in phases:

- An initial burst, as fast as the transport accepts it
- Periodic smaller bursts paced to a fixed wall-clock interval

The consumer reads the topic, coalesces records into batches on a size-or-time
trigger and writes each batch with a single multi-row INSERT, logging a rolling
throughput rate. Delivery is at-least-once: offsets auto-commit independently of
the inserts, so a crash can replay messages into duplicate rows.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from kiosk_bench.config import Settings, get_settings
from kiosk_bench.consumer import BatchAccumulator, BulkPersister, ConsumerLoop, MetricsReporter
from kiosk_bench.consumer import ShutdownController
from kiosk_bench.domain import EventSerializer, SequenceAllocator, SyntheticEvent, derive_entity_id
from kiosk_bench.orchestrator import run_consumer, run_producer
from kiosk_bench.producer import PhasedEmitter, available_policies, resolve_policy
from kiosk_bench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "run_consumer",
    "run_producer",
    # Producer
    "PhasedEmitter",
    "SequenceAllocator",
    "SyntheticEvent",
    "available_policies",
    "derive_entity_id",
    "resolve_policy",
    # Consumer
    "BatchAccumulator",
    "BulkPersister",
    "ConsumerLoop",
    "EventSerializer",
    "MetricsReporter",
    "ShutdownController",
    # Logging
    "configure_logging",
    "get_logger",
]
