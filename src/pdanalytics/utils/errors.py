"""
Error handling framework for pdanalytics.

This module provides:
- Hierarchical exception classes
- Error context preservation
- Structured error responses
- Sync-specific error conditions (disabled, unregistered table, protocol,
  transport and persistence failures)
"""

from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from contextlib import contextmanager

from .logging import get_logger


logger = get_logger("pdanalytics.errors")


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    SYSTEM = "system"
    NETWORK = "network"
    DATABASE = "database"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    PROTOCOL = "protocol"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: Optional[str] = None
    operation: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class PdAnalyticsError(Exception):
    """Base exception for all pdanalytics errors."""

    code: str = "PDANALYTICS_ERROR"
    default_message: str = "An error occurred in pdanalytics"
    severity: ErrorSeverity = ErrorSeverity.ERROR
    category: ErrorCategory = ErrorCategory.UNKNOWN
    is_retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message or self.default_message
        self.context = context or ErrorContext()
        self.cause = cause
        super().__init__(self.message)

    def get_suggestions(self) -> List[str]:
        """Get error resolution suggestions."""
        return []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "category": self.category.value,
                "is_retryable": self.is_retryable,
                "suggestions": self.get_suggestions(),
                "context": {
                    "timestamp": self.context.timestamp.isoformat(),
                    "component": self.context.component,
                    "operation": self.context.operation,
                    "metadata": self.context.metadata,
                }
            }
        }


# Configuration Errors

class ConfigurationError(PdAnalyticsError):
    """Configuration errors."""
    code = "CONFIG_ERROR"
    default_message = "Configuration error"
    category = ErrorCategory.CONFIGURATION

    def get_suggestions(self) -> List[str]:
        return [
            "Check your configuration file syntax",
            "Ensure all required configuration values are set",
        ]


class SyncDisabledError(ConfigurationError):
    """Data sharing is switched off on this instance; peers may retry later."""
    code = "SYNC_DISABLED"
    default_message = "data sharing is disabled on this instance"
    severity = ErrorSeverity.WARNING


class SyncNotInitializedError(ConfigurationError):
    """The sync coordinator has not been initialized yet."""
    code = "SYNC_NOT_INITIALIZED"
    default_message = "syncer not initialized"


class TableNotRegisteredError(ConfigurationError):
    """No syncer is bound to the requested table; retrying will not help."""
    code = "TABLE_NOT_REGISTERED"
    severity = ErrorSeverity.WARNING

    def __init__(self, table: str, **kwargs):
        self.table = table
        super().__init__(f"syncer not found for {table}", **kwargs)


class RegistryFrozenError(ConfigurationError):
    """Raised when tables or sources are registered after startup."""
    code = "REGISTRY_FROZEN"
    default_message = "sync registry can only be changed during initialization"


# Network Errors

class NetworkError(PdAnalyticsError):
    """Transport or decoding failure while talking to a peer."""
    code = "NETWORK_ERROR"
    default_message = "Network error occurred"
    category = ErrorCategory.NETWORK
    is_retryable = True


class SyncFetchError(NetworkError):
    """A page could not be fetched within the retry budget."""
    code = "SYNC_FETCH_ERROR"
    default_message = "failed to fetch sync page"
    is_retryable = False


# Protocol Errors

class SyncProtocolError(PdAnalyticsError):
    """The peer answered with success == false."""
    code = "SYNC_PROTOCOL_ERROR"
    default_message = "sync error"
    category = ErrorCategory.PROTOCOL


# Database Errors

class DatabaseError(PdAnalyticsError):
    """Database-related errors."""
    code = "DATABASE_ERROR"
    default_message = "Database error occurred"
    category = ErrorCategory.DATABASE


class PersistenceError(DatabaseError):
    """Synced records could not be written to the local store."""
    code = "PERSISTENCE_ERROR"
    default_message = "error while appending synced data"


class CursorResolutionError(DatabaseError):
    """The last persisted entry of a table could not be read."""
    code = "CURSOR_RESOLUTION_ERROR"
    default_message = "error in fetching sync history"


# Validation Errors

class ValidationError(PdAnalyticsError):
    """Input validation errors."""
    code = "VALIDATION_ERROR"
    default_message = "Validation error"
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.WARNING

    def __init__(self, field: str, value: Any, constraint: str, **kwargs):
        self.field = field
        self.value = value
        self.constraint = constraint
        message = f"Validation failed for field '{field}': {constraint}"
        super().__init__(message, **kwargs)


@contextmanager
def error_context(component: str, operation: str, **metadata):
    """
    Attach component/operation context to errors raised inside the block.

    Non-pdanalytics exceptions are wrapped in PdAnalyticsError.
    """
    context = ErrorContext(component=component, operation=operation, metadata=metadata)
    try:
        yield context
    except PdAnalyticsError as e:
        e.context.component = e.context.component or component
        e.context.operation = e.context.operation or operation
        e.context.metadata.update(metadata)
        raise
    except Exception as e:
        logger.error(
            "unexpected_error_in_context",
            component=component,
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise PdAnalyticsError(message=str(e), context=context, cause=e) from e


__all__ = [
    'PdAnalyticsError',
    'ErrorContext',
    'ErrorSeverity',
    'ErrorCategory',
    'ConfigurationError',
    'SyncDisabledError',
    'SyncNotInitializedError',
    'TableNotRegisteredError',
    'RegistryFrozenError',
    'NetworkError',
    'SyncFetchError',
    'SyncProtocolError',
    'DatabaseError',
    'PersistenceError',
    'CursorResolutionError',
    'ValidationError',
    'error_context',
]
