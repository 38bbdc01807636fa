from __future__ import annotations

import os
from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def get_container_resources() -> Dict[str, Optional[str]]:
    """
    Get container resource constraints.

    Reads from environment variables or cgroup v2 files when running in a container.
    Returns dict with 'cpus' and 'memory' keys.
    """
    resources: Dict[str, Optional[str]] = {
        "cpus": os.environ.get("BENCHMARK_CPU_LIMIT"),
        "memory": os.environ.get("BENCHMARK_MEMORY_LIMIT"),
    }

    if resources["cpus"] is None:
        try:
            with open("/sys/fs/cgroup/cpu.max", "r") as f:
                parts = f.read().strip().split()
            if len(parts) == 2 and parts[0] != "max":
                resources["cpus"] = f"{int(parts[0]) / int(parts[1]):.1f}"
        except (FileNotFoundError, PermissionError, ValueError):
            pass

    if resources["memory"] is None:
        try:
            with open("/sys/fs/cgroup/memory.max", "r") as f:
                content = f.read().strip()
            if content != "max":
                mem_bytes = int(content)
                if mem_bytes >= 1024**3:
                    resources["memory"] = f"{mem_bytes / 1024**3:.1f}GB"
                else:
                    resources["memory"] = f"{mem_bytes / 1024**2:.0f}MB"
        except (FileNotFoundError, PermissionError, ValueError):
            pass

    return resources


def _title(base: str) -> str:
    resources = get_container_resources()
    parts = []
    if resources["cpus"]:
        parts.append(f"CPU: {resources['cpus']} cores")
    if resources["memory"]:
        parts.append(f"Memory: {resources['memory']}")
    if parts:
        return f"{base}\n[dim]Container Resources: {' │ '.join(parts)}[/dim]"
    return base


def _mb(value: Optional[int]) -> str:
    return f"{(value or 0) / (1024 * 1024):.2f}"


def print_producer_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render the producer run as two tables: per-phase timings and delivery counters.
    """
    console = console or Console()
    stats = summary.get("stats", {})

    phases = Table(title=_title("Kiosk Producer Phases"), box=box.ROUNDED)
    phases.add_column("Phase", style="cyan", no_wrap=True)
    phases.add_column("Messages", justify="right", style="magenta")
    phases.add_column("Allocated", justify="right", style="blue")
    phases.add_column("Duration (s)", justify="right", style="green")
    phases.add_column("Throughput (msgs/s)", justify="right", style="bold green")
    phases.add_column("Peak Memory (MB)", justify="right", style="yellow")
    phases.add_column("CPU %", justify="right", style="red")

    for phase in stats.get("phases", []):
        extra = phase.get("extra", {})
        duration = phase.get("duration_seconds") or 0.0
        messages = extra.get("messages", 0)
        throughput = messages / duration if duration > 0 else 0.0
        phases.add_row(
            phase.get("label", "?"),
            f"{messages:,}",
            f"{extra.get('allocated', 0):,}",
            f"{duration:.1f}",
            f"{throughput:,.2f}",
            _mb(phase.get("peak_rss_bytes")),
            f"{phase.get('cpu_percent') or 0.0:.1f}",
        )
    console.print(phases)

    totals = Table(title=f"Delivery ({summary.get('policy', '?')})", box=box.ROUNDED)
    totals.add_column("Counter", style="cyan")
    totals.add_column("Value", justify="right", style="magenta")
    for name in ("allocated", "accepted", "delivered", "failed", "dropped",
                 "backpressure_events", "flush_timeouts"):
        totals.add_row(name, f"{stats.get(name, 0):,}")
    console.print(totals)


def print_consumer_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Render the consumer run's final counters."""
    console = console or Console()
    stats = summary.get("stats", {})
    profile = summary.get("profile", {})
    duration = profile.get("duration_seconds") or 0.0
    total = summary.get("total_processed", 0)

    table = Table(title=_title("Kiosk Consumer Results"), box=box.ROUNDED)
    table.add_column("Counter", style="cyan")
    table.add_column("Value", justify="right", style="magenta")
    table.add_row("messages", f"{stats.get('messages', 0):,}")
    table.add_row("total_processed", f"{total:,}")
    table.add_row("decode_errors", f"{stats.get('decode_errors', 0):,}")
    for reason, count in sorted(stats.get("flushes", {}).items()):
        table.add_row(f"flushes[{reason}]", f"{count:,}")
    table.add_row("duration (s)", f"{duration:.1f}")
    table.add_row("avg rate (msgs/s)", f"{(total / duration if duration > 0 else 0.0):,.2f}")
    table.add_row("peak memory (MB)", _mb(profile.get("peak_rss_bytes")))
    console.print(table)


__all__ = ["get_container_resources", "print_consumer_summary", "print_producer_summary"]
