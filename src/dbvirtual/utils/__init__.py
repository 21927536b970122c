"""
Utilities Package for the Virtual Model Overlay
"""
from .logging import (
    setup_logging,
    setup_logging_from_config,
    get_logger,
    set_correlation_id,
    get_correlation_id,
    clear_context,
    log_context,
    log_operation,
)

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    VirtualModelError,
    ResolutionError,
    DataAccessError,
    MetadataAccessError,
    ConfigurationError,
    wrap_error,
)

__all__ = [
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_context",
    "log_context",
    "log_operation",
    # Errors
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "VirtualModelError",
    "ResolutionError",
    "DataAccessError",
    "MetadataAccessError",
    "ConfigurationError",
    "wrap_error",
]
