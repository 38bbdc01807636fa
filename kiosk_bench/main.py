from __future__ import annotations

import sys
from typing import Any, Optional

import typer
from pydantic import ValidationError

from kiosk_bench.config import Settings, get_settings
from kiosk_bench.errors import BenchmarkError
from kiosk_bench.infrastructure.db_factory import apply_schema, get_sync_connection
from kiosk_bench.orchestrator import run_consumer, run_producer
from kiosk_bench.producer.policies import available_policies
from kiosk_bench.reporter import print_consumer_summary, print_producer_summary
from kiosk_bench.utils.logging import configure_logging

app = typer.Typer(help="Kiosk Ingest Benchmark CLI.")


def _configure(settings: Settings, role: Optional[str] = None) -> None:
    configure_logging(level=settings.log_level, json_logs=settings.log_json, role=role)


def _with_overrides(settings: Settings, **overrides: Any) -> Settings:
    """Re-validate settings with the CLI options that were actually given."""
    given = {key: value for key, value in overrides.items() if value is not None}
    if not given:
        return settings
    try:
        return Settings.model_validate(settings.model_dump() | given)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"KAFKA={settings.bootstrap_servers} topic={settings.topic} group={settings.group_id} | "
        f"DB={settings.masked_database_url()}"
    )
    typer.echo(
        f"producer: initial={settings.initial_messages} cycles={settings.cycle_count}"
        f"x{settings.cycle_messages} every {settings.cycle_interval_seconds:.0f}s "
        f"policy={settings.backpressure_policy} (available: {', '.join(available_policies())})"
    )
    typer.echo(
        f"consumer: batch={settings.batch_size} flush={settings.flush_interval_ms}ms "
        f"poll={settings.poll_timeout_ms}ms origin_tag={settings.origin_tag}"
    )


@app.command()
def produce(
    initial: Optional[int] = typer.Option(
        None, "--initial", "-i", help="Messages in the initial burst (default from settings)."
    ),
    cycles: Optional[int] = typer.Option(
        None, "--cycles", "-c", help="Number of periodic cycles (default from settings)."
    ),
    cycle_size: Optional[int] = typer.Option(
        None, "--cycle-size", help="Messages per periodic cycle (default from settings)."
    ),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Seconds between cycle starts (default from settings)."
    ),
    policy: Optional[str] = typer.Option(
        None,
        "--policy",
        "-p",
        help="Backpressure policy (drop-and-continue, resend-same).",
    ),
    persist: bool = typer.Option(True, "--persist/--no-persist", help="Write results JSON."),
) -> None:
    """
    Produce the initial burst and the paced cycles, then print a summary.
    """
    settings = _with_overrides(
        get_settings(),
        initial_messages=initial,
        cycle_count=cycles,
        cycle_messages=cycle_size,
        cycle_interval_seconds=interval,
        backpressure_policy=policy,
    )
    _configure(settings, role="producer")
    summary = run_producer(settings=settings, persist=persist)
    print_producer_summary(summary)


@app.command()
def consume(
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Rows per bulk insert (default from settings)."
    ),
    persist: bool = typer.Option(False, "--persist/--no-persist", help="Write results JSON."),
) -> None:
    """
    Consume until SIGINT/SIGTERM, writing batches to PostgreSQL.
    """
    settings = _with_overrides(get_settings(), batch_size=batch_size)
    _configure(settings, role="consumer")
    summary = run_consumer(settings=settings, persist=persist)
    print_consumer_summary(summary)


@app.command("init-db")
def init_db() -> None:
    """
    Create the kiosk_events table if it does not exist.
    """
    settings = get_settings()
    _configure(settings)
    conn = get_sync_connection(settings.database_url)
    try:
        apply_schema(conn)
    finally:
        conn.close()
    typer.echo("Schema ready.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except BenchmarkError as exc:
        typer.echo(f"Benchmark failed: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
