"""Error Hierarchy - typed, categorized exceptions for every coordination failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation and authorization errors are terminal and never retried
    - Upstream errors are the only errors raised by collaborator adapters
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with DisasterHubError base, caught by one FastAPI handler
    - ErrorContext carries ids for structured logging, not for clients
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    PARSE = "parse"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    disaster_id: str | None = None
    report_id: str | None = None
    provider: str | None = None
    debug_info: dict[str, Any] | None = None


class DisasterHubError(Exception):
    """Base exception for all coordination errors."""

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
                    "disaster_id": self.context.disaster_id,
                    "report_id": self.context.report_id,
                },
            }
        }


# --- Domain Errors (400-level) ---------------------------------------------

class ValidationError(DisasterHubError):
    """A required field is missing or unusable."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthorizationError(DisasterHubError):
    """Non-privileged actor attempted a privileged write."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Only admins can {action}.",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, context, 403,
        )
        self.action = action


class ResourceNotFoundError(DisasterHubError):
    """Requested record does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ParseError(DisasterHubError):
    """Geometry or structured text could not be decoded.

    Always absorbed by the component that raises it; never reaches a client.
    """
    def __init__(self, message: str, payload_kind: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PARSE_ERROR", ErrorCategory.PARSE,
            ErrorSeverity.WARNING, context, 422,
        )
        self.payload_kind = payload_kind


# --- Infrastructure Errors (500-level) -------------------------------------

class DatabaseError(DisasterHubError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class UpstreamError(DisasterHubError):
    """A collaborator (geocoder, LLM, social search, places, image host) failed."""
    def __init__(
        self,
        provider: str,
        message: str,
        error_type: str = "unknown",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.provider = provider
        super().__init__(
            f"{provider} error ({error_type}): {message}",
            "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 502,
        )
        self.provider = provider
        self.error_type = error_type
