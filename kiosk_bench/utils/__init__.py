"""
Utilities package for the Kiosk Ingest Benchmark.

Exports shared helpers for logging, profiling and time. Keep this package
lightweight and free of domain-specific logic.
"""

from kiosk_bench.utils.clock import Clock, SystemClock
from kiosk_bench.utils.logging import configure_logging, get_logger
from kiosk_bench.utils.profiler import ProfileStats, profile_block

__all__ = [
    "Clock",
    "SystemClock",
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
