"""
Orchestrator for producer and consumer runs: wiring, profiling and result persistence.

Usage (example from CLI):
    from kiosk_bench.orchestrator import run_producer

    summary = run_producer(persist=True)
    print(summary["stats"]["delivered"])

Outputs are saved to `results/` by default:
- `results/<role>-latest.json` (last run)
- `results/<role>-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import contextlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from kiosk_bench.config import Settings, get_settings
from kiosk_bench.consumer.abstract import Subscriber
from kiosk_bench.consumer.accumulator import BatchAccumulator
from kiosk_bench.consumer.loop import ConsumerLoop
from kiosk_bench.consumer.metrics import MetricsReporter
from kiosk_bench.consumer.persister import BulkPersister
from kiosk_bench.consumer.shutdown import ShutdownController, released
from kiosk_bench.domain.serializer import EventSerializer
from kiosk_bench.errors import BenchmarkError
from kiosk_bench.infrastructure.db_factory import get_sync_connection
from kiosk_bench.infrastructure.kafka_factory import build_publisher, build_subscriber
from kiosk_bench.producer.abstract import Publisher
from kiosk_bench.producer.emitter import PhasedEmitter
from kiosk_bench.producer.policies import resolve_policy
from kiosk_bench.utils.clock import Clock, SystemClock
from kiosk_bench.utils.logging import get_logger
from kiosk_bench.utils.profiler import profile_block

log = get_logger(__name__)


def _persist_results(payload: dict, results_dir: Path, role: str) -> Path:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / f"{role}-latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"{role}-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, default=str)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})
    return latest_path


def run_producer(
    settings: Optional[Settings] = None,
    publisher: Optional[Publisher] = None,
    clock: Optional[Clock] = None,
    results_dir: Path | str = "results",
    persist: bool = True,
) -> Dict[str, Any]:
    """
    Run both emission phases and return the run summary.

    Parameters
    ----------
    settings : Settings | None
        Effective configuration. Defaults to `get_settings()`.
    publisher : Publisher | None
        Outbound transport; a Kafka producer is built from settings when omitted.
    clock : Clock | None
        Time source for pacing and backoff.
    results_dir : Path | str
        Directory to store JSON artifacts.
    persist : bool
        Whether to write results to disk.

    Raises
    ------
    TransportError
        On an unrecoverable transport failure; the run is aborted.
    """
    settings = settings or get_settings()
    publisher = publisher or build_publisher(settings)
    policy = resolve_policy(settings.backpressure_policy)

    emitter = PhasedEmitter(
        publisher,
        settings.topic,
        policy=policy,
        clock=clock or SystemClock(),
        backpressure_delay=settings.backpressure_delay_ms / 1000.0,
        initial_flush_timeout=settings.initial_flush_timeout_seconds,
        cycle_flush_timeout=settings.cycle_flush_timeout_seconds,
    )
    log.info(
        f"[PRODUCER START] policy={policy.name}",
        extra={
            "topic": settings.topic,
            "initial_messages": settings.initial_messages,
            "cycle_messages": settings.cycle_messages,
            "cycle_count": settings.cycle_count,
        },
    )
    with profile_block("producer") as profile:
        stats = emitter.run(
            initial_count=settings.initial_messages,
            cycles=settings.cycle_count,
            cycle_size=settings.cycle_messages,
            cycle_interval=settings.cycle_interval_seconds,
        )

    payload = {
        "role": "producer",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "topic": settings.topic,
        "policy": policy.name,
        "stats": stats.as_dict(),
        "profile": profile.as_dict(),
    }
    if persist:
        _persist_results(payload, Path(results_dir), "producer")
    log.info("[PRODUCER COMPLETE]", extra={"delivered": stats.delivered, "dropped": stats.dropped})
    return payload


def run_consumer(
    settings: Optional[Settings] = None,
    subscriber: Optional[Subscriber] = None,
    connection: Any = None,
    shutdown: Optional[ShutdownController] = None,
    clock: Optional[Clock] = None,
    install_signals: bool = True,
    results_dir: Path | str = "results",
    persist: bool = False,
) -> Dict[str, Any]:
    """
    Consume until a shutdown is requested, then flush once and release resources.

    The database connection and the Kafka consumer are both closed on the way
    out, also when the loop fails; close errors are logged as warnings.
    Errors from the loop itself (persistence, transport) propagate after
    teardown.
    """
    settings = settings or get_settings()
    shutdown = shutdown or ShutdownController()
    clock = clock or SystemClock()

    with contextlib.ExitStack() as stack:
        if connection is None:
            connection = get_sync_connection(settings.database_url)
        conn = stack.enter_context(released("database", connection))
        if subscriber is None:
            subscriber = build_subscriber(settings)
        inbound = stack.enter_context(released("Kafka consumer", subscriber))
        if install_signals:
            stack.enter_context(shutdown.installed())

        metrics = MetricsReporter(clock=clock, interval=settings.report_interval_seconds)
        loop = ConsumerLoop(
            inbound,
            BulkPersister(conn),
            BatchAccumulator(settings.batch_size, settings.flush_interval_seconds, clock=clock),
            serializer=EventSerializer(settings.origin_tag, clock=clock),
            metrics=metrics,
            shutdown=shutdown,
            poll_timeout=settings.poll_timeout_seconds,
        )
        with profile_block("consumer") as profile:
            try:
                stats = loop.run()
            except BenchmarkError:
                log.exception(
                    "Error in consumer loop",
                    extra={"total_processed": metrics.total_processed},
                )
                raise

    log.info("Consumer closed.")
    payload = {
        "role": "consumer",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "topic": settings.topic,
        "total_processed": metrics.total_processed,
        "stats": stats.as_dict(),
        "profile": profile.as_dict(),
    }
    if persist:
        _persist_results(payload, Path(results_dir), "consumer")
    return payload


__all__ = ["run_consumer", "run_producer"]
