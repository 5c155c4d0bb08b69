"""Tests for configuration validation"""
import pytest

from questlog import config


def test_defaults_are_valid():
    config.validate_config()


@pytest.mark.parametrize("attr,value", [
    ("LOG_LEVEL", "VERBOSE"),
    ("MAX_ACTIVITY_DURATION_MINUTES", 0),
    ("MAX_ACTIVITY_DURATION_MINUTES", 1441),
    ("EXP_REVERSAL_WARNING_THRESHOLD", 0.0),
    ("SENTRY_TRACES_SAMPLE_RATE", 1.5),
])
def test_out_of_range_values_rejected(monkeypatch, attr, value):
    monkeypatch.setattr(config, attr, value)

    with pytest.raises(ValueError):
        config.validate_config()


def test_sentry_requires_dsn(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_SENTRY", True)
    monkeypatch.setattr(config, "SENTRY_DSN", "")

    with pytest.raises(ValueError) as exc_info:
        config.validate_config()

    assert "SENTRY_DSN" in str(exc_info.value)


def test_sentry_with_dsn_is_valid(monkeypatch):
    monkeypatch.setattr(config, "ENABLE_SENTRY", True)
    monkeypatch.setattr(config, "SENTRY_DSN", "https://key@example.ingest.sentry.io/1")

    config.validate_config()
