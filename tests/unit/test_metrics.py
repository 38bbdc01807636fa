from __future__ import annotations

import logging

import pytest

from kiosk_bench.consumer.metrics import MetricsReporter

INTERVAL = 5.0


def test_no_report_before_the_interval(clock) -> None:
    metrics = MetricsReporter(clock=clock, interval=INTERVAL)
    clock.advance(INTERVAL - 0.1)

    assert metrics.record_flush(1000) is None
    assert metrics.total_processed == 1000
    assert metrics.flushes == 1


def test_rate_covers_rows_since_the_last_report(clock, caplog) -> None:
    metrics = MetricsReporter(clock=clock, interval=INTERVAL)
    metrics.record_flush(1000)
    clock.advance(INTERVAL)

    with caplog.at_level(logging.INFO, logger="kiosk_bench.consumer.metrics"):
        rate = metrics.record_flush(1500, insert_seconds=0.0123)

    assert rate == pytest.approx(2500 / INTERVAL)
    message = caplog.records[-1].getMessage()
    assert message.startswith("Performance: 500.00 msgs/sec")
    assert "Batch: 1500" in message
    assert "Insert: 12.3ms" in message
    assert "Total: 2,500" in message

    # anchors reset: the next window only counts new rows
    clock.advance(INTERVAL * 2)
    assert metrics.record_flush(1000) == pytest.approx(1000 / (INTERVAL * 2))
    assert metrics.total_processed == 3500
