"""
Error handling for the probe.

Components:
- ErrorHandler: categorised log-and-continue handling with callbacks
- ErrorContext / ErrorSeverity: error classification
"""

from .error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    get_error_handler,
)

__all__ = [
    "ErrorContext",
    "ErrorHandler",
    "ErrorInfo",
    "ErrorSeverity",
    "get_error_handler",
]
