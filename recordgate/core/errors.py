"""Error Hierarchy — typed, categorized exceptions for all record gateway failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Misuse errors (schema, key, binding) are raised synchronously and never caught by the gateway
    - Driver failures surface as DatabaseError, chained to the original SQLAlchemy exception
    - to_dict() produces the structured envelope stored in a record's error log

Design Decisions:
    - Single hierarchy with RecordGateError base: callers catch one type (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    SCHEMA = "schema"
    UNSUPPORTED = "unsupported"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    table_name: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class RecordGateError(Exception):
    """Base exception for all record gateway errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a structured error envelope."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "table_name": self.context.table_name,
            "operation": self.context.operation,
        }


# ─── Schema / Key Errors ────────────────────────────────────────

class SchemaLookupError(RecordGateError):
    """Driver reported no columns for a table."""
    def __init__(self, table_name: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(table_name=table_name, operation="columns")
        super().__init__(
            f"No columns found for {table_name} table",
            "SCHEMA_LOOKUP_FAILED", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, ctx,
        )
        self.table_name = table_name


class KeySpecError(RecordGateError):
    """Primary key specification is empty or repeats a column."""
    def __init__(self, table_name: str, keys: list, context: ErrorContext | None = None):
        ctx = context or ErrorContext(table_name=table_name)
        super().__init__(
            f"Invalid primary key specification for {table_name}: {keys!r}",
            "INVALID_KEY_SPEC", ErrorCategory.SCHEMA,
            ErrorSeverity.ERROR, ctx,
        )
        self.keys = keys


class MultiKeyScalarError(RecordGateError):
    """A single scalar key value was given for a composite-key table."""
    def __init__(self, table_name: str, key_count: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext(table_name=table_name)
        super().__init__(
            f"Table {table_name} has {key_count} primary keys specified, "
            "only one primary key value provided.",
            "MULTI_KEY_SCALAR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx,
        )
        self.key_count = key_count


class UnknownFieldError(RecordGateError):
    """A field name does not exist as a column of the table."""
    def __init__(self, table_name: str, field_name: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(table_name=table_name)
        super().__init__(
            f"Missing field in database: {table_name}.{field_name}",
            "UNKNOWN_FIELD", ErrorCategory.SCHEMA,
            ErrorSeverity.ERROR, ctx,
        )
        self.field_name = field_name


class NullPrimaryKeyError(RecordGateError):
    """A resolved primary key component is null."""
    def __init__(self, table_name: str, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(table_name=table_name)
        super().__init__(
            f"Null primary key not allowed: {table_name}.{key}",
            "NULL_PRIMARY_KEY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx,
        )
        self.key = key


# ─── Binding / Capability Errors ────────────────────────────────

class InvalidSourceTypeError(RecordGateError):
    """bind() received something that is neither a mapping nor an object."""
    def __init__(self, record_type: str, source_type: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(operation="bind")
        super().__init__(
            f"{record_type}.bind(*{source_type}*)",
            "INVALID_SOURCE_TYPE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx,
        )
        self.source_type = source_type


class UnsupportedOperationError(RecordGateError):
    """Operation needs a column the table does not have."""
    def __init__(
        self, table_name: str, operation: str, column: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext(table_name=table_name, operation=operation)
        super().__init__(
            f"{table_name} does not support {operation} (no '{column}' column).",
            "UNSUPPORTED_OPERATION", ErrorCategory.UNSUPPORTED,
            ErrorSeverity.ERROR, ctx,
        )
        self.operation = operation
        self.column = column


class TableNotRegisteredError(RecordGateError):
    """No factory registered for the requested table type."""
    def __init__(self, type_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Table type '{type_name}' is not registered",
            "TABLE_NOT_REGISTERED", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context,
        )
        self.type_name = type_name


# ─── Infrastructure Errors ──────────────────────────────────────

class DatabaseError(RecordGateError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(operation=operation)
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx,
        )
        self.operation = operation
