"""
Tests for Sentry filtering and metric recording helpers
"""
import functools
import logging
import pytest
from unittest.mock import MagicMock, patch

import sentry_sdk
from sentry_sdk.transport import Transport

from questlog import config
from questlog.exceptions import (
    InconsistentStateError,
    PersistenceError,
    RollbackFailedError,
    ValidationError,
)
from questlog.observability import metrics, sentry_config
from questlog.observability.sentry_config import _before_send, capture_fatal_error


class TestBeforeSend:
    def _hint(self, error):
        return {"exc_info": (type(error), error, None)}

    def test_drops_recoverable_errors(self):
        error = ValidationError("bad duration", field="duration_minutes", value=-1)
        assert _before_send({"event_id": "1"}, self._hint(error)) is None

    def test_keeps_unrecoverable_errors(self):
        error = RollbackFailedError("rollback failed", repository="users")
        event = {"event_id": "2"}
        assert _before_send(event, self._hint(error)) is event

    def test_keeps_foreign_exceptions(self):
        error = RuntimeError("boom")
        event = {"event_id": "3"}
        assert _before_send(event, self._hint(error)) is event

    def test_drops_questlog_log_records(self):
        record = logging.makeLogRecord({"msg": "PersistenceError: save failed", "recoverable": True})
        cause = RuntimeError("disk full")
        hint = {"log_record": record, "exc_info": (RuntimeError, cause, None)}

        assert _before_send({"event_id": "4"}, hint) is None

    def test_keeps_events_without_exception(self):
        event = {"message": "log line"}
        assert _before_send(event, {}) is event


@patch("questlog.observability.sentry_config.sentry_sdk")
def test_capture_fatal_error_tags_scope(mock_sdk):
    scope = MagicMock()
    mock_sdk.new_scope.return_value.__enter__.return_value = scope
    mock_sdk.capture_exception.return_value = "event-123"
    error = RollbackFailedError("rollback failed", repository="users", operation="delete_activity")

    event_id = capture_fatal_error(error, {"activity_id": "a1"})

    assert event_id == "event-123"
    scope.set_tag.assert_any_call("error_kind", "RollbackFailedError")
    scope.set_tag.assert_any_call("operation", "delete_activity")
    scope.set_context.assert_any_call("details", {"activity_id": "a1"})
    mock_sdk.capture_exception.assert_called_once_with(error)


class TestMetricHelpers:
    def test_records_when_enabled(self, monkeypatch):
        monkeypatch.setattr(metrics.config, "ENABLE_METRICS", True)
        counter = MagicMock()
        monkeypatch.setattr(metrics, "rollbacks_total", counter)

        metrics.record_rollback("restored")

        counter.labels.assert_called_once_with(outcome="restored")
        counter.labels.return_value.inc.assert_called_once()

    def test_noop_when_disabled(self, monkeypatch):
        monkeypatch.setattr(metrics.config, "ENABLE_METRICS", False)
        counter = MagicMock()
        monkeypatch.setattr(metrics, "stat_sanitizations_total", counter)

        metrics.record_sanitization("nan")

        counter.labels.assert_not_called()

    def test_level_change_ignores_zero(self, monkeypatch):
        monkeypatch.setattr(metrics.config, "ENABLE_METRICS", True)
        counter = MagicMock()
        monkeypatch.setattr(metrics, "level_changes_total", counter)

        metrics.record_level_change(0, "up")
        metrics.record_level_change(2, "down")

        counter.labels.assert_called_once_with(direction="down")
        counter.labels.return_value.inc.assert_called_once_with(2)


# ============================================================================
# Sentry pipeline with a real client
# ============================================================================

class CapturingTransport(Transport):
    """Keeps events in memory instead of sending them"""

    def __init__(self):
        super().__init__()
        self.events = []

    def capture_envelope(self, envelope):
        event = envelope.get_event()
        if event is not None:
            self.events.append(event)


@pytest.fixture
def sentry_events(monkeypatch):
    transport = CapturingTransport()
    monkeypatch.setattr(config, "ENABLE_SENTRY", True)
    monkeypatch.setattr(config, "SENTRY_DSN", "https://public@example.ingest.sentry.io/1")
    monkeypatch.setattr(
        sentry_config.sentry_sdk, "init", functools.partial(sentry_sdk.init, transport=transport)
    )

    sentry_config.init_sentry()
    yield transport.events

    sentry_sdk.get_client().close()
    sentry_sdk.get_global_scope().set_client(None)


def test_recoverable_error_is_not_sent(sentry_events):
    PersistenceError(
        "Failed to delete activity; changes were rolled back",
        repository="activities",
        cause=RuntimeError("disk full"),
    )
    InconsistentStateError("Activity a1 has a data inconsistency")

    assert sentry_events == []


def test_fatal_error_is_sent_once(sentry_events):
    error = RollbackFailedError(
        "Rollback failed, data may be inconsistent",
        repository="users",
        cause=RuntimeError("disk full"),
    )

    capture_fatal_error(error, {"activity_id": "a1"})

    assert len(sentry_events) == 1
    assert sentry_events[0]["exception"]["values"][-1]["type"] == "RollbackFailedError"
    assert sentry_events[0]["tags"]["error_kind"] == "RollbackFailedError"


def test_plain_error_logs_are_still_sent(sentry_events):
    logging.getLogger("questlog.services.activity_service").error("Unexpected failure")

    assert len(sentry_events) == 1
    assert sentry_events[0]["level"] == "error"
