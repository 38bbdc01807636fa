"""
Cooperative shutdown for the consumer loop.

A termination signal only sets a flag. The loop checks it once per iteration,
so an in-flight poll, decode or insert always completes first.
"""

from __future__ import annotations

import contextlib
import signal
from types import FrameType
from typing import Any, Dict, Generator, Iterable, Optional

from kiosk_bench.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownController:
    def __init__(self) -> None:
        self._requested = False
        self.reason: Optional[str] = None

    @property
    def requested(self) -> bool:
        return self._requested

    def request(self, reason: str = "requested") -> None:
        if not self._requested:
            log.info(f"Received {reason}. Shutting down...", extra={"reason": reason})
        self._requested = True
        self.reason = self.reason or reason

    def _handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        del frame
        self.request(signal.Signals(signum).name)

    @contextlib.contextmanager
    def installed(
        self, signals: Iterable[signal.Signals] = DEFAULT_SIGNALS
    ) -> Generator["ShutdownController", None, None]:
        """Route `signals` to this controller for the duration of the block."""
        previous: Dict[signal.Signals, Any] = {}
        for sig in signals:
            previous[sig] = signal.signal(sig, self._handle_signal)
        try:
            yield self
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)


@contextlib.contextmanager
def released(name: str, resource: Any) -> Generator[Any, None, None]:
    """
    Yield `resource` and close it on exit.

    A failing `close()` is logged as a warning and never replaces the error (or
    the clean exit) of the block.
    """
    try:
        yield resource
    finally:
        try:
            resource.close()
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Error closing {name}: {exc}", extra={"resource": name})


__all__ = ["DEFAULT_SIGNALS", "ShutdownController", "released"]
