"""
Error taxonomy for the settings service.

Every error carries a machine-checkable ``error_type`` and HTTP ``status_code``
next to a human-readable message. Errors that already belong to this taxonomy
are "classified" and propagate through the service layer unchanged.
"""

from typing import Any, Dict, Optional


class SettingsError(Exception):
    """Base exception for all classified errors."""

    error_type: str = "InternalServerError"
    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        help: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.help = help
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for an API response body."""
        return {
            "type": self.error_type,
            "message": self.message,
            "help": self.help,
            "context": self.context or None,
        }


class NotFoundError(SettingsError):
    """Raised for unknown keys, structurally hidden keys and unreadable artifacts."""

    error_type = "NotFoundError"
    status_code = 404
    default_message = "Resource not found"


class NoPermissionError(SettingsError):
    """Raised when the caller is not allowed to perform an action."""

    error_type = "NoPermissionError"
    status_code = 403
    default_message = "You do not have permission to perform this request"


class BadRequestError(SettingsError):
    """Raised for structural prohibitions and malformed request shapes."""

    error_type = "BadRequestError"
    status_code = 400
    default_message = "The request could not be understood."


class ValidationError(SettingsError):
    """Raised when a document fails schema validation."""

    error_type = "ValidationError"
    status_code = 422
    default_message = "The request failed validation."


class InternalServerError(SettingsError):
    """Raised for classified infrastructure failures."""

    error_type = "InternalServerError"
    status_code = 500


def is_settings_error(err: BaseException) -> bool:
    """Check whether an error already carries a classification."""
    return isinstance(err, SettingsError)
