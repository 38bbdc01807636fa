"""
Infrastructure package for the Kiosk Ingest Benchmark.

Centralizes I/O concerns: PostgreSQL connections and Kafka clients. Keep this
layer focused on construction, tuning and error translation, decoupled from the
emitter and consumer loop logic.
"""

from kiosk_bench.infrastructure.db_factory import apply_schema, build_dsn, get_sync_connection
from kiosk_bench.infrastructure.kafka_factory import (
    KafkaPublisher,
    KafkaSubscriber,
    build_publisher,
    build_subscriber,
)

__all__ = [
    "KafkaPublisher",
    "KafkaSubscriber",
    "apply_schema",
    "build_dsn",
    "build_publisher",
    "build_subscriber",
    "get_sync_connection",
]
