from __future__ import annotations

import pytest
from typer.testing import CliRunner

from kiosk_bench import main as cli
from kiosk_bench.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "postgresql://bench:s3cret@db:5432/bench")
    monkeypatch.setattr(cli, "_configure", lambda settings, role=None: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_info_masks_the_database_password() -> None:
    result = runner.invoke(cli.app, ["info"])

    assert result.exit_code == 0
    assert "postgresql://bench:***@db:5432/bench" in result.output
    assert "s3cret" not in result.output
    assert "drop-and-continue, resend-same" in result.output


def test_produce_applies_cli_overrides(monkeypatch) -> None:
    seen = {}

    def fake_run_producer(settings, persist):
        seen["settings"] = settings
        seen["persist"] = persist
        return {"policy": settings.backpressure_policy, "stats": {"phases": []}}

    monkeypatch.setattr(cli, "run_producer", fake_run_producer)

    result = runner.invoke(
        cli.app, ["produce", "-i", "10", "-c", "2", "--cycle-size", "3", "-p", "resend-same", "--no-persist"]
    )

    assert result.exit_code == 0, result.output
    settings = seen["settings"]
    assert (settings.initial_messages, settings.cycle_count, settings.cycle_messages) == (10, 2, 3)
    assert settings.backpressure_policy == "resend-same"
    assert seen["persist"] is False


def test_produce_rejects_an_unknown_policy(monkeypatch) -> None:
    monkeypatch.setattr(cli, "run_producer", lambda **kwargs: pytest.fail("should not run"))

    result = runner.invoke(cli.app, ["produce", "-p", "block-forever"])

    assert result.exit_code == 2


def test_consume_rejects_a_batch_too_large_for_one_statement(monkeypatch) -> None:
    monkeypatch.setattr(cli, "run_consumer", lambda **kwargs: pytest.fail("should not run"))

    result = runner.invoke(cli.app, ["consume", "-b", "10000"])

    assert result.exit_code == 2
