"""
Backpressure policies for the phased emitter.

When the transport's local buffer is full the emitter backs off for a fixed
delay and then asks the active policy what to do with the refused message:

- ``drop-and-continue``: give the message up. Its sequence number stays
  consumed and the next iteration allocates a fresh event, so the target volume
  is still reached but allocated sequences exceed delivered messages by the
  number of drops.
- ``resend-same``: keep resubmitting the identical payload (same sequence
  number) until the transport accepts it.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from kiosk_bench.errors import BackpressureError
from kiosk_bench.producer.abstract import BackpressurePolicy


class DropAndContinuePolicy:
    name: str = "drop-and-continue"
    description: str = "Discard the refused event; the next iteration sends a new one."

    def handle(self, submit: Callable[[], None], backoff: Callable[[], None]) -> bool:
        del submit, backoff
        return False


class ResendSamePolicy:
    name: str = "resend-same"
    description: str = "Resubmit the identical payload until the transport accepts it."

    def handle(self, submit: Callable[[], None], backoff: Callable[[], None]) -> bool:
        while True:
            try:
                submit()
                return True
            except BackpressureError:
                backoff()


def _policy_factories() -> Dict[str, Callable[[], BackpressurePolicy]]:
    """Registry of available policies."""
    return {
        DropAndContinuePolicy.name: DropAndContinuePolicy,
        ResendSamePolicy.name: ResendSamePolicy,
    }


def available_policies() -> List[str]:
    return sorted(_policy_factories().keys())


def resolve_policy(name: str) -> BackpressurePolicy:
    factories = _policy_factories()
    if name not in factories:
        raise ValueError(f"Unknown backpressure policy '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


__all__ = [
    "DropAndContinuePolicy",
    "ResendSamePolicy",
    "available_policies",
    "resolve_policy",
]
