"""
Standardized exception hierarchy for questlog
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class QuestlogError(Exception):
    """
    Base exception for all questlog errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise QuestlogError(
            message="Failed to save user data",
            user_id="hunter-1",
            operation="delete_activity",
            context={"activity_id": "activity_123"}
        )
    """

    # Whether the caller can fix the problem (new input, retry) without manual repair
    recoverable: bool = True
    log_level: int = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause,
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for callers that report errors as data"""
        return {
            "error": self.kind,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(QuestlogError):
    """
    Raised when input to an engine function is malformed

    Examples:
    - Negative activity duration
    - Negative EXP gain or reversal amount
    - Level below 1

    Example:
        raise ValidationError(
            message="Duration must be non-negative",
            field="duration_minutes",
            value=-5
        )
    """

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(
            message=message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Domain State Errors
# ==========================================

class RecordNotFoundError(QuestlogError):
    """Referenced activity or user does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        kwargs.setdefault("user_message", f"{record_type or 'Record'} not found.")
        super().__init__(
            message=message,
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class InconsistentStateError(QuestlogError):
    """
    Stored data passed structural checks but violates a domain invariant

    Examples:
    - Activity timestamp in the future
    - NaN in stored stat gains
    - Negative stored EXP

    The operation is aborted before anything is mutated.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault(
            "user_message",
            "This entry has a data inconsistency and cannot be safely changed."
        )
        super().__init__(message=message, **kwargs)


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(QuestlogError):
    """A repository call failed"""

    def __init__(self, message: str, repository: Optional[str] = None, **kwargs):
        self.repository = repository
        kwargs.setdefault(
            "user_message",
            "We couldn't save your changes. Nothing was lost - please try again."
        )
        context = kwargs.pop("context", None) or {}
        context.setdefault("repository", repository)
        super().__init__(message=message, context=context, **kwargs)


class RollbackFailedError(PersistenceError):
    """
    Restoring the original user snapshot failed after a partial write

    No automatic recovery is attempted; the message must reach the user verbatim.
    """

    recoverable = False
    log_level = logging.CRITICAL

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault(
            "user_message",
            "Your data may be inconsistent. The change was only partially saved "
            "and could not be undone automatically."
        )
        super().__init__(message=message, **kwargs)


# ==========================================
# Helper Functions
# ==========================================

def wrap_repository_exception(
    error: Exception,
    operation: str,
    repository: Optional[str] = None,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> QuestlogError:
    """
    Wrap exceptions escaping a repository into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        repository: Repository name for context
        user_id: User ID if applicable
        context: Additional context

    Returns:
        The error itself when it is already a QuestlogError, otherwise a PersistenceError

    Example:
        try:
            await user_repository.update_user(user)
        except Exception as e:
            raise wrap_repository_exception(e, operation="update_user", repository="users")
    """
    if isinstance(error, QuestlogError):
        return error

    return PersistenceError(
        message=f"{operation} failed: {str(error)}",
        repository=repository,
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
