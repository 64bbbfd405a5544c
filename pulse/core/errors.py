"""Error Hierarchy — typed, categorized exceptions for all Pulse failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - ValidationError / InvalidTransitionError leave request state unchanged
    - StorageError is fatal to a submission attempt; MatchError and DispatchError are not
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy rooted at PulseError: one FastAPI handler catches all
    - MatchError / DispatchError carry WARNING severity: the shell logs and continues
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    MATCHING = "matching"
    EXTERNAL_API = "external_api"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    donor_id: str | None = None
    status: str | None = None
    debug_info: dict[str, Any] | None = None


class PulseError(Exception):
    """Base exception for all Pulse errors."""

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

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

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
                    "request_id": self.context.request_id,
                    "donor_id": self.context.donor_id,
                    "status": self.context.status,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(PulseError):
    """Required data missing or malformed before a lifecycle transition."""
    def __init__(
        self, message: str, fields: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.fields = fields or []


class InvalidTransitionError(PulseError):
    """Lifecycle transition not allowed from the current state."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot move request from '{current}' to '{target}'",
            "INVALID_TRANSITION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.target = target


class ResourceNotFoundError(PulseError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(PulseError):
    """Proof upload or record persistence failed. Aborts the current submission."""
    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
        code: str = "STORAGE_ERROR",
    ):
        super().__init__(
            f"Storage {operation} failed: {message}",
            code, ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class DatabaseError(StorageError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(message, operation, context, code="DATABASE_ERROR")


class MatchError(PulseError):
    """Spatial index query failed. Non-fatal: request still advances with no matches."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Donor matching failed: {message}",
            "MATCH_ERROR", ErrorCategory.MATCHING,
            ErrorSeverity.WARNING, context, 500,
        )


class DispatchError(PulseError):
    """Outbound message channel unreachable. Non-fatal and retryable by re-dispatch."""
    def __init__(
        self, message: str, recipient: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Alert dispatch failed: {message}",
            "DISPATCH_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )
        self.recipient = recipient
