"""
Producer package for the Kiosk Ingest Benchmark.

Re-exports the publisher interface, the backpressure policies and the phased
emitter so callers can import from `kiosk_bench.producer` directly.
"""

from kiosk_bench.producer.abstract import AckCallback, BackpressurePolicy, Publisher
from kiosk_bench.producer.emitter import EmitterStats, PhasedEmitter
from kiosk_bench.producer.policies import (
    DropAndContinuePolicy,
    ResendSamePolicy,
    available_policies,
    resolve_policy,
)

__all__ = [
    "AckCallback",
    "BackpressurePolicy",
    "Publisher",
    "EmitterStats",
    "PhasedEmitter",
    "DropAndContinuePolicy",
    "ResendSamePolicy",
    "available_policies",
    "resolve_policy",
]
