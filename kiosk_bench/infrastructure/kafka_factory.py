"""
Kafka client construction and adapters (confluent-kafka).

`KafkaPublisher` and `KafkaSubscriber` adapt librdkafka's producer and consumer
to the narrow `Publisher` / `Subscriber` interfaces used by the emitter and the
consumer loop, translating library errors into the benchmark's own:

- ``BufferError`` from ``produce`` (local queue full) -> ``BackpressureError``
- ``KafkaException`` / message-level errors -> ``TransportError``
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from confluent_kafka import Consumer, KafkaError, KafkaException, Producer

from kiosk_bench.config import Settings, get_settings
from kiosk_bench.errors import BackpressureError, TransportError
from kiosk_bench.producer.abstract import AckCallback
from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)


def producer_config(settings: Settings) -> Dict[str, Any]:
    """Throughput-oriented producer tuning: leader acks, short linger, large lz4 batches."""
    return {
        "bootstrap.servers": settings.bootstrap_servers,
        "acks": "1",
        "linger.ms": 5,
        "batch.size": 64 * 1024,
        "compression.type": "lz4",
        "queue.buffering.max.messages": 1_000_000,
        "queue.buffering.max.kbytes": 1_048_576,
    }


def consumer_config(settings: Settings) -> Dict[str, Any]:
    """Auto-committing consumer; offsets advance every second regardless of inserts."""
    return {
        "bootstrap.servers": settings.bootstrap_servers,
        "group.id": settings.group_id,
        "auto.offset.reset": "earliest",
        "enable.auto.commit": True,
        "auto.commit.interval.ms": 1000,
    }


class KafkaPublisher:
    def __init__(self, producer: Producer) -> None:
        self._producer = producer

    def publish(self, topic: str, key: str, value: bytes, on_ack: AckCallback) -> None:
        def _delivery(err: Optional[KafkaError], msg: Any) -> None:
            del msg
            on_ack(None if err is None else str(err))

        try:
            self._producer.produce(
                topic, key=key.encode("utf-8"), value=value, on_delivery=_delivery
            )
        except BufferError as exc:
            raise BackpressureError(str(exc)) from exc
        except KafkaException as exc:
            raise TransportError(str(exc)) from exc
        # Serve delivery callbacks without blocking.
        self._producer.poll(0)

    def flush(self, timeout: float) -> int:
        try:
            return self._producer.flush(timeout)
        except KafkaException as exc:
            raise TransportError(str(exc)) from exc


class KafkaSubscriber:
    def __init__(self, consumer: Consumer) -> None:
        self._consumer = consumer

    def subscribe(self, topic: str) -> None:
        self._consumer.subscribe([topic])

    def poll(self, timeout: float) -> Optional[bytes]:
        try:
            msg = self._consumer.poll(timeout)
        except KafkaException as exc:
            raise TransportError(str(exc)) from exc
        if msg is None:
            return None
        err = msg.error()
        if err is not None:
            if err.code() == KafkaError._PARTITION_EOF:
                return None
            raise TransportError(str(err))
        return msg.value()

    def close(self) -> None:
        self._consumer.close()


def build_publisher(settings: Optional[Settings] = None) -> KafkaPublisher:
    settings = settings or get_settings()
    log.info(
        "Initialising Kafka producer",
        extra={"bootstrap_servers": settings.bootstrap_servers, "topic": settings.topic},
    )
    return KafkaPublisher(Producer(producer_config(settings)))


def build_subscriber(settings: Optional[Settings] = None) -> KafkaSubscriber:
    settings = settings or get_settings()
    log.info(
        "Configuring Kafka consumer",
        extra={
            "bootstrap_servers": settings.bootstrap_servers,
            "group_id": settings.group_id,
            "topic": settings.topic,
            "batch_size": settings.batch_size,
            "database": settings.masked_database_url(),
        },
    )
    subscriber = KafkaSubscriber(Consumer(consumer_config(settings)))
    subscriber.subscribe(settings.topic)
    log.info("Kafka consumer initialized", extra={"topic": settings.topic})
    return subscriber


__all__ = [
    "KafkaPublisher",
    "KafkaSubscriber",
    "build_publisher",
    "build_subscriber",
    "consumer_config",
    "producer_config",
]
