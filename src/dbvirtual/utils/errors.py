"""
Error Handling Module for the Virtual Model Overlay
Defines custom exceptions and error handling utilities
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    RESOLUTION = "resolution"
    DATA_ACCESS = "data_access"
    METADATA = "metadata"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Additional context for errors"""
    correlation_id: Optional[str] = None
    data_source_id: Optional[str] = None
    object_id: Optional[str] = None
    operation: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "data_source_id": self.data_source_id,
            "object_id": self.object_id,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class VirtualModelError(Exception):
    """Base exception for the virtual model overlay"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        recoverable: bool = True,
        suggestions: Optional[List[str]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ResolutionError(VirtualModelError):
    """A virtual counterpart or real entity could not be located"""

    def __init__(
        self,
        message: str,
        object_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        context = context or ErrorContext()
        if object_id and not context.object_id:
            context.object_id = object_id

        suggestions = ["Refresh the data source metadata"]
        if object_id:
            suggestions.append(f"Check that '{object_id}' still exists in the data source")

        super().__init__(
            message=message,
            category=ErrorCategory.RESOLUTION,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=suggestions,
            original_error=original_error
        )
        self.object_id = object_id


class DataAccessError(VirtualModelError):
    """Reading a result set failed"""

    def __init__(
        self,
        message: str,
        column_name: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Check that the result set is still open"]
        if column_name:
            suggestions.append(f"Verify the value handler of column '{column_name}'")

        super().__init__(
            message=message,
            category=ErrorCategory.DATA_ACCESS,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=True,
            suggestions=suggestions,
            original_error=original_error
        )
        self.column_name = column_name


class MetadataAccessError(VirtualModelError):
    """Fetching real constraints, associations or references failed"""

    def __init__(
        self,
        message: str,
        entity_name: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Verify the data source connection is alive"]
        if entity_name:
            suggestions.append(f"Check read permissions on '{entity_name}'")

        super().__init__(
            message=message,
            category=ErrorCategory.METADATA,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=True,
            suggestions=suggestions,
            original_error=original_error
        )
        self.entity_name = entity_name


class ConfigurationError(VirtualModelError):
    """Configuration errors"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Review configuration settings"]
        if config_key:
            suggestions.append(f"Check configuration for key: {config_key}")

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.config_key = config_key


def wrap_error(
    error: Exception,
    error_class: Type[VirtualModelError],
    message: Optional[str] = None,
    **kwargs: Any
) -> VirtualModelError:
    """
    Convert a collaborator exception into an overlay error

    Errors that already belong to the overlay hierarchy are returned unchanged.
    """
    if isinstance(error, VirtualModelError):
        return error
    text = f"{message}: {error}" if message else str(error)
    return error_class(text, original_error=error, **kwargs)
