"""Error Hierarchy - typed failures for canvas, project and AI operations.

Invariants:
    - Each subclass fixes its code, category, severity and HTTP status as
      class attributes; instances only carry the message and context
    - to_response() is the REST envelope; to_notification() is a canvas toast
    - context.user_message, when set, replaces the internal message in both
    - Callers raise before mutating graph state, so a raised error leaves
      the canvas as it was
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATA_INTEGRITY = "data_integrity"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    QUOTA = "quota"


@dataclass
class ErrorContext:
    """Ids and hints attached to an error for logs and clients."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    canvas_id: str | None = None
    project_id: str | None = None
    node_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class MindCanvasError(Exception):
    """Root of every error the API turns into a structured response."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def display_message(self) -> str:
        return self.context.user_message or self.message

    def to_response(self) -> dict:
        ctx = self.context
        return {
            "error": {
                "code": self.code,
                "message": self.display_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": ctx.timestamp.isoformat(),
                "context": {
                    "canvas_id": ctx.canvas_id,
                    "project_id": ctx.project_id,
                    "node_id": ctx.node_id,
                    "retry_after_ms": ctx.retry_after_ms,
                },
            }
        }

    def to_notification(self) -> dict:
        return {
            "type": "error",
            "code": self.code,
            "message": self.display_message,
            "severity": self.severity.value,
            "recoverable": self.severity is not ErrorSeverity.CRITICAL,
        }


# --- canvas and project rules (4xx) ---------------------------------------

class GenerationError(MindCanvasError):
    """Generation produced nothing usable (empty result or no root node)."""
    code = "GENERATION_FAILED"
    category = ErrorCategory.VALIDATION
    http_status = 422


class GenerationUnavailableError(GenerationError):
    """The AI service could not be reached; the canvas is unchanged."""
    http_status = 502


class EnrichmentError(MindCanvasError):
    """Deep-dive fetch failed; only the side panel is affected."""
    code = "ENRICHMENT_FAILED"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.WARNING
    http_status = 502


class ProjectIntegrityError(MindCanvasError):
    """Saved project is malformed or has edges to missing node ids."""
    code = "PROJECT_INTEGRITY"
    category = ErrorCategory.DATA_INTEGRITY
    http_status = 422

    def __init__(
        self, message: str, dangling_edges: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message, context)
        self.dangling_edges = dangling_edges or []


class InteractionError(MindCanvasError):
    """Gesture not allowed in the current canvas mode."""
    code = "ILLEGAL_TRANSITION"
    category = ErrorCategory.CONFLICT
    severity = ErrorSeverity.WARNING
    http_status = 409


class EmptyExportError(MindCanvasError):
    """Laid-out graph has zero width or height."""
    code = "EXPORT_EMPTY"
    category = ErrorCategory.BUSINESS_RULE
    severity = ErrorSeverity.INFO
    http_status = 204

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Graph has no area to export", context)


class ExportInProgressError(MindCanvasError):
    code = "EXPORT_BUSY"
    category = ErrorCategory.CONFLICT
    severity = ErrorSeverity.INFO
    http_status = 409

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("An export is already running for this canvas", context)


class ResourceNotFoundError(MindCanvasError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"{resource_type} '{resource_id}' not found", context)
        self.resource_type = resource_type
        self.resource_id = resource_id


# --- storage, rendering and upstream failures (5xx) -----------------------

class PersistenceError(MindCanvasError):
    """Project store rejected a list, load, save or delete."""
    code = "PERSISTENCE_ERROR"
    category = ErrorCategory.DATABASE
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Project {operation} failed: {message}", context)
        self.operation = operation


class QuotaExceededError(PersistenceError):
    code = "QUOTA_EXCEEDED"
    category = ErrorCategory.QUOTA
    http_status = 507

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message, "save", context)


class ExportError(MindCanvasError):
    """Rasterization failed; no partial file is produced."""
    code = "EXPORT_FAILED"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(f"Export failed: {message}", context)


class DatabaseError(MindCanvasError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation


class AnthropicAPIError(MindCanvasError):
    """Anthropic call failed after the retry policy gave up."""
    code = "ANTHROPIC_API_ERROR"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        context = context or ErrorContext()
        context.retry_after_ms = retry_after_ms
        super().__init__(f"Anthropic API error ({api_error_type}): {message}", context)
        self.api_error_type = api_error_type
