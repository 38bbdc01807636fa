from __future__ import annotations

import logging
import signal

import pytest

from kiosk_bench.consumer.shutdown import ShutdownController, released


class _Closable:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.closed = 0

    def close(self) -> None:
        self.closed += 1
        if self.error is not None:
            raise self.error


def test_request_sets_the_flag_and_keeps_the_first_reason() -> None:
    controller = ShutdownController()
    assert controller.requested is False

    controller.request("SIGTERM")
    controller.request("SIGINT")

    assert controller.requested is True
    assert controller.reason == "SIGTERM"


def test_installed_routes_signals_and_restores_previous_handlers() -> None:
    controller = ShutdownController()
    previous = signal.getsignal(signal.SIGTERM)

    with controller.installed(signals=(signal.SIGTERM,)):
        signal.raise_signal(signal.SIGTERM)
        assert controller.requested is True
        assert controller.reason == "SIGTERM"

    assert signal.getsignal(signal.SIGTERM) == previous


def test_released_closes_the_resource_on_clean_exit() -> None:
    resource = _Closable()
    with released("thing", resource) as handle:
        assert handle is resource
    assert resource.closed == 1


def test_released_closes_the_resource_when_the_block_fails() -> None:
    resource = _Closable()
    with pytest.raises(RuntimeError, match="loop failed"):
        with released("thing", resource):
            raise RuntimeError("loop failed")
    assert resource.closed == 1


def test_close_errors_are_logged_as_warnings_not_raised(caplog) -> None:
    resource = _Closable(error=OSError("socket already closed"))

    with caplog.at_level(logging.WARNING, logger="kiosk_bench.consumer.shutdown"):
        with released("Kafka consumer", resource):
            pass

    assert resource.closed == 1
    assert caplog.records[-1].levelno == logging.WARNING
    assert "Error closing Kafka consumer: socket already closed" in caplog.records[-1].getMessage()
