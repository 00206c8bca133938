"""Error Hierarchy — typed, categorized exceptions for all UserHub failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by the exception filter
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with UserHubError base: the exception filter classifies on it
    - ErrorContext as dataclass: request metadata travels with the error, not the logger
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    LIFECYCLE = "lifecycle"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request metadata attached to an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    path: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class UserHubError(Exception):
    """Base exception for all UserHub errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "path": self.context.path,
                    "user_id": self.context.user_id,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class PayloadParseError(UserHubError):
    """Request body could not be decoded for its declared content type."""
    def __init__(self, content_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed {content_type} request body",
            "MALFORMED_PAYLOAD", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.content_type = content_type


class PayloadTooLargeError(UserHubError):
    """Request body exceeds the configured limit."""
    def __init__(self, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"Request body exceeds the {limit} byte limit",
            "PAYLOAD_TOO_LARGE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 413,
        )
        self.limit = limit


class ResourceNotFoundError(UserHubError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class DuplicateEmailError(UserHubError):
    """Another user already owns the email address."""
    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            f"A user with email '{email}' already exists",
            "EMAIL_ALREADY_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.email = email


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageNotConnectedError(UserHubError):
    """Storage used before connect() or after disconnect()."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage is not connected (operation: {operation})",
            "STORAGE_UNAVAILABLE", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ConfigurationError(UserHubError):
    """Requested configuration section does not exist."""
    def __init__(self, section: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unknown configuration section '{section}'",
            "CONFIG_SECTION_MISSING", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.section = section


class AppAlreadyInitializedError(UserHubError):
    """initialize() called on an App that already left the CONSTRUCTED state."""
    def __init__(self, state: str, context: ErrorContext | None = None):
        super().__init__(
            f"App cannot be initialized twice (current state: {state})",
            "APP_ALREADY_INITIALIZED", ErrorCategory.LIFECYCLE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.state = state
