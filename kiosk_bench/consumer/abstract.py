"""
Inbound transport interface for the consumer loop.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Subscriber(Protocol):
    """
    A subscribed, auto-committing stream reader.

    Offsets are committed by the transport on its own interval, independently
    of whether the rows reached the database. A crash between a bulk insert and
    the next commit replays those messages: delivery is at-least-once.
    """

    def poll(self, timeout: float) -> Optional[bytes]:
        """Return the next payload, or None if nothing arrived within `timeout` seconds."""
        ...

    def close(self) -> None:
        ...


__all__ = ["Subscriber"]
