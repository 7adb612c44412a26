"""
Domain exceptions for the Todozen notification service.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class TodozenError(Exception):
    """Base exception for all Todozen errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(TodozenError):
    """Base exception for storage operations."""

    pass


class ReminderNotFoundError(StorageError):
    """Reminder not found in storage."""

    def __init__(self, reminder_id: str):
        super().__init__(
            f"Reminder not found: {reminder_id}",
            code="REMINDER_NOT_FOUND",
            details={"reminder_id": reminder_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Recurrence Exceptions
class RecurrenceError(TodozenError):
    """Base exception for recurrence expansion."""

    pass


class InvalidRuleError(RecurrenceError):
    """Recurrence rule string could not be parsed or expanded."""

    def __init__(self, rule: str, reason: str):
        super().__init__(
            f"Invalid recurrence rule '{rule}': {reason}",
            code="INVALID_RULE",
            details={"rule": rule, "reason": reason},
        )


# Delivery Exceptions
class DeliveryError(TodozenError):
    """Base exception for notification delivery."""

    pass


class LocalDeliveryError(DeliveryError):
    """In-process notification surface rejected the notification."""

    def __init__(self, reason: str):
        super().__init__(
            f"Local notification failed: {reason}",
            code="LOCAL_DELIVERY_FAILED",
            details={"reason": reason},
        )


class PushDeliveryError(DeliveryError):
    """Push provider rejected or failed to accept a message."""

    def __init__(self, endpoint_url: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"Push delivery failed: {reason}",
            code="PUSH_DELIVERY_FAILED",
            details={
                "endpoint": endpoint_url,
                "reason": reason,
                "status_code": status_code,
            },
        )
        self.endpoint_url = endpoint_url
        self.status_code = status_code


class PushGoneError(PushDeliveryError):
    """Push provider reports the endpoint as permanently gone (404/410)."""

    def __init__(self, endpoint_url: str, status_code: int = 410):
        super().__init__(
            endpoint_url,
            f"endpoint gone (HTTP {status_code})",
            status_code=status_code,
        )
        self.code = "PUSH_ENDPOINT_GONE"


# Validation Exceptions
class ValidationError(TodozenError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class ConfigurationError(TodozenError):
    """Configuration error."""

    pass
