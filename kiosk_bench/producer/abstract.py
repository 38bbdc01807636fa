"""
Outbound transport interfaces for the producer.

The emitter only needs to submit a keyed record asynchronously and to wait for
outstanding sends; `KafkaPublisher` in `kiosk_bench.infrastructure` is the
production implementation, tests use in-memory fakes.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

# Called once per message with None on success or the transport's error reason.
AckCallback = Callable[[Optional[str]], None]


@runtime_checkable
class Publisher(Protocol):
    """
    Asynchronous, keyed publisher.

    `publish` must not block on delivery. It raises
    `kiosk_bench.errors.BackpressureError` when the local send buffer is full
    and `kiosk_bench.errors.TransportError` on unrecoverable failures.
    """

    def publish(self, topic: str, key: str, value: bytes, on_ack: AckCallback) -> None:
        ...

    def flush(self, timeout: float) -> int:
        """
        Wait up to `timeout` seconds for outstanding sends.

        Returns
        -------
        int
            Number of messages still undelivered when the wait ended.
        """
        ...


@runtime_checkable
class BackpressurePolicy(Protocol):
    """
    Decides what happens to a message the transport refused.

    `handle` receives `submit` (re-sends the refused message, raising
    BackpressureError again if still refused) and `backoff` (records the event
    and sleeps the fixed delay). It returns True if the message was eventually
    accepted and False if it was given up.
    """

    name: str
    description: str

    def handle(self, submit: Callable[[], None], backoff: Callable[[], None]) -> bool:
        ...


__all__ = ["AckCallback", "BackpressurePolicy", "Publisher"]
