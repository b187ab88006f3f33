"""Error Hierarchy — typed, categorized exceptions for every GECK failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request-level errors (400/404/409) never crash the process; they resolve one request
    - to_response() produces the REST envelope {success: false, error, code}
    - StorageFailureError passes the backend message through unmodified

Design Decisions:
    - Single hierarchy with GeckError base: route runner and FastAPI handler catch all
      (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - No retry metadata: the core never retries, transient failures surface immediately
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource: str | None = None
    collection: str | None = None
    record_id: str | None = None
    route: str | None = None
    debug_info: dict[str, Any] | None = None


class GeckError(Exception):
    """Base exception for all GECK errors."""

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
        """Convert to the standard REST error envelope."""
        return {"success": False, "error": self.message, "code": self.code}

    def log_extra(self) -> dict:
        """Fields surfaced by the JSON log formatter."""
        return {
            "error_code": self.code,
            "collection": self.context.collection,
            "record_id": self.context.record_id,
            "route": self.context.route,
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class ValidationFailureError(GeckError):
    """Payload rejected before any storage call."""
    def __init__(
        self, message: str = "Validation failure.", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_FAILURE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class RecordNotFoundError(GeckError):
    """Operation targets an identity that does not exist."""
    def __init__(
        self, collection: str, record_id: object, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.collection = collection
        ctx.record_id = str(record_id)
        super().__init__(
            f"{collection} '{record_id}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )
        self.collection = collection
        self.record_id = str(record_id)


class IdentityConflictError(GeckError):
    """Forced id already taken on create, or re-key target already occupied."""
    def __init__(
        self, collection: str, record_id: object, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.collection = collection
        ctx.record_id = str(record_id)
        super().__init__(
            f"That id is in use: {collection} '{record_id}'",
            "IDENTITY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.collection = collection
        self.record_id = str(record_id)


class DuplicateAssociationError(GeckError):
    """Many-to-many pivot row already exists for the (owner, relation) pair."""
    def __init__(
        self, pivot: str, owner_id: object, relation_id: object,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.collection = pivot
        super().__init__(
            f"{pivot} already exists for ({owner_id}, {relation_id}).",
            "DUPLICATE_ASSOCIATION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.pivot = pivot
        self.owner_id = str(owner_id)
        self.relation_id = str(relation_id)


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageFailureError(GeckError):
    """Opaque backend failure, message passed through unmodified."""
    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "STORAGE_FAILURE", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation

    @classmethod
    def from_exception(
        cls, exc: BaseException, operation: str, context: ErrorContext | None = None,
    ) -> "StorageFailureError":
        error = cls(str(exc) or type(exc).__name__, operation, context)
        error.__cause__ = exc
        return error


class RequestTimeoutError(GeckError):
    """Storage call did not resolve the request within its deadline."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Request did not complete within {timeout_seconds:g}s",
            "REQUEST_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 504,
        )
        self.timeout_seconds = timeout_seconds


class CompletionAlreadyResolvedError(GeckError):
    """A request's completion channel was resolved a second time."""
    def __init__(self, label: str, context: ErrorContext | None = None):
        super().__init__(
            f"Completion '{label}' is already resolved",
            "COMPLETION_ALREADY_RESOLVED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


# ─── Startup Errors ─────────────────────────────────────────────

class DefinitionError(GeckError):
    """Resource definition or route table is invalid."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DEFINITION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class UnknownDriverError(DefinitionError):
    """No driver registered under the requested name."""
    def __init__(self, name: str, known: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Unknown storage driver '{name}' (registered: {', '.join(known) or 'none'})",
            context,
        )
        self.name = name
