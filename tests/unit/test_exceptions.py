"""Unit tests for custom exception hierarchy"""
import logging
import pytest
from datetime import datetime

from questlog.exceptions import (
    InconsistentStateError,
    PersistenceError,
    QuestlogError,
    RecordNotFoundError,
    RollbackFailedError,
    ValidationError,
    wrap_repository_exception,
)


class TestQuestlogError:
    """Test base exception class"""

    def test_basic_exception(self):
        error = QuestlogError("Test error")
        assert error.message == "Test error"
        assert error.user_message == "An error occurred. Please try again."
        assert error.request_id is not None
        assert error.recoverable is True
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_context(self):
        error = QuestlogError(
            message="Failed to save user data",
            user_id="hunter-1",
            operation="delete_activity",
            context={"activity_id": "activity_123"},
            user_message="Could not delete your activity"
        )
        assert error.user_id == "hunter-1"
        assert error.operation == "delete_activity"
        assert error.context["activity_id"] == "activity_123"
        assert error.user_message == "Could not delete your activity"

    def test_to_dict(self):
        error = QuestlogError(message="Test error", user_id="hunter-1")
        error_dict = error.to_dict()
        assert error_dict["error"] == "QuestlogError"
        assert error_dict["message"] == "Test error"
        assert error_dict["recoverable"] is True
        assert "request_id" in error_dict
        assert "timestamp" in error_dict

    def test_logs_on_creation(self, caplog):
        with caplog.at_level(logging.ERROR, logger="questlog.exceptions"):
            QuestlogError("Something broke")

        assert "QuestlogError: Something broke" in caplog.text


class TestDomainErrors:
    """Test validation and state errors"""

    def test_validation_error(self):
        error = ValidationError(message="Must be positive", field="duration_minutes", value=-5)
        assert error.field == "duration_minutes"
        assert error.value == -5
        assert error.kind == "ValidationError"
        assert "Invalid duration_minutes" in error.user_message

    def test_validation_error_logs_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="questlog.exceptions"):
            ValidationError("Bad input")

        assert caplog.records[-1].levelno == logging.WARNING

    def test_record_not_found(self):
        error = RecordNotFoundError(message="Activity not found", record_type="Activity", record_id="a1")
        assert error.record_type == "Activity"
        assert error.record_id == "a1"
        assert error.user_message == "Activity not found."

    def test_inconsistent_state(self):
        error = InconsistentStateError("Timestamp in the future")
        assert "data inconsistency" in error.user_message
        assert error.recoverable is True


class TestPersistenceErrors:
    """Test persistence and rollback errors"""

    def test_persistence_error(self):
        error = PersistenceError("Save failed", repository="users", context={"attempt": 1})
        assert error.repository == "users"
        assert error.context == {"attempt": 1, "repository": "users"}
        assert error.recoverable is True

    def test_rollback_failed_is_fatal(self):
        error = RollbackFailedError("Rollback failed", repository="users")
        assert isinstance(error, PersistenceError)
        assert error.recoverable is False
        assert error.log_level == logging.CRITICAL
        assert error.user_message.startswith("Your data may be inconsistent")
        assert error.to_dict()["recoverable"] is False


class TestWrapRepositoryException:
    """Test repository exception wrapping"""

    def test_wraps_generic_exception(self):
        original = RuntimeError("disk full")
        error = wrap_repository_exception(original, operation="update_user", repository="users")

        assert isinstance(error, PersistenceError)
        assert error.cause is original
        assert error.operation == "update_user"
        assert "disk full" in error.message

    def test_passes_through_questlog_errors(self):
        original = RecordNotFoundError("missing")

        assert wrap_repository_exception(original, operation="find") is original
