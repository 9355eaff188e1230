"""
Application exceptions.

Services raise these; the API layer translates them to HTTP responses
in hookrelay.api.exception_handlers.
"""

from typing import Any


class HookRelayError(Exception):
    """
    Base exception for all application errors.

    Carries an HTTP status so the API layer can render it without
    knowing every subclass.
    """

    status_code: int = 500

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        """
        Initialize the error.

        Args:
            message: Human-readable error message (safe to return to callers)
            code: Machine-readable error code
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        content: dict[str, Any] = {
            "error": True,
            "message": self.message,
            "status_code": self.status_code,
        }
        if self.details:
            content["details"] = self.details
        return content


class ClientInputError(HookRelayError):
    """Malformed body or missing required field."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else None
        super().__init__(message, "CLIENT_INPUT_ERROR", details)
        self.field = field


class AuthenticationError(HookRelayError):
    """Missing, invalid or expired credential."""

    status_code = 401

    def __init__(self, reason: str = "Invalid or expired token"):
        # The reason is for logs only; callers always see a generic message.
        super().__init__("Invalid or expired token", "AUTHENTICATION_ERROR")
        self.reason = reason


class WebhookNotFoundError(HookRelayError):
    """
    Webhook does not exist or is owned by someone else.

    Both cases share one message so a caller cannot discover other
    owners' webhook ids.
    """

    status_code = 404

    def __init__(self, webhook_id: str):
        super().__init__("Webhook not found", "WEBHOOK_NOT_FOUND")
        self.webhook_id = webhook_id


class PersistenceError(HookRelayError):
    """Storage unavailable or a query failed."""

    status_code = 500

    def __init__(self, operation: str, cause: Exception | None = None):
        super().__init__("Internal server error", "PERSISTENCE_ERROR")
        self.operation = operation
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.cause!s}" if self.cause else f"{self.operation} failed"


class ForwardError(HookRelayError):
    """
    Forward target unreachable, timed out or answered non-2xx.

    Only ever logged; the original sender has already been acknowledged.
    """

    def __init__(self, webhook_id: str, target_url: str, reason: str):
        super().__init__(f"Forward of {webhook_id} to {target_url} failed: {reason}", "FORWARD_ERROR")
        self.webhook_id = webhook_id
        self.target_url = target_url
        self.reason = reason


class EmailAlreadyRegisteredError(HookRelayError):
    """Login for an email that already belongs to an account."""

    status_code = 409

    def __init__(self):
        super().__init__("Email already registered", "EMAIL_ALREADY_REGISTERED")
