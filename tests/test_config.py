"""Tests for configuration loading."""

import pytest

from chainheart.config import Config


def test_from_env_requires_db_url(monkeypatch):
    monkeypatch.delenv("DB_URL", raising=False)

    with pytest.raises(ValueError, match="DB_URL"):
        Config.from_env()


def test_from_env_reads_settings(monkeypatch):
    monkeypatch.setenv("DB_URL", "sqlite:///ledger.db")
    monkeypatch.setenv("NOTIFIER", "WEBHOOK")
    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "https://relay.example.org")
    monkeypatch.setenv("NOTIFY_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("NOTIFY_MAX_RETRIES", "0")
    monkeypatch.setenv("SMTP_USE_TLS", "no")

    config = Config.from_env()
    config.validate()

    assert config.db_url == "sqlite:///ledger.db"
    assert config.notifier == "webhook"
    assert config.notify_timeout_seconds == 2.5
    assert config.notify_max_retries == 0
    assert config.smtp_use_tls is False
    assert config.get_smtp_params()["use_tls"] is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"notifier": "pigeon"},
        {"notifier": "webhook"},
        {"notify_timeout_seconds": 0},
        {"notify_max_retries": -1},
        {"upload_dir": ""},
    ],
)
def test_validate_rejects_bad_values(overrides):
    with pytest.raises(ValueError):
        Config(db_url="sqlite://", **overrides).validate()
