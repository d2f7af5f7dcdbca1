"""
Log-and-continue error handling for the probe.

Every failure the probe observes goes through ``ErrorHandler.handle_error``.
The error is logged at the level its severity maps to, counted under the
part of the connection it came from and passed to the callbacks registered
for that part. Nothing is re-raised.

Usage:
    handler = get_error_handler()
    handler.register_handler(on_bad_frame, ErrorContext.PAYLOAD)

    await handler.handle_error(exc, ErrorContext.PAYLOAD, frame=raw[:100])
"""

import inspect
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ErrorContext(Enum):
    """Where on the connection an error happened."""

    CONNECTION = "connection"  # connection could not be established
    TRANSPORT = "transport"  # open session failed
    PAYLOAD = "payload"  # inbound frame could not be decoded
    CLOSE = "close"  # peer closed with an error code


class ErrorSeverity(Enum):
    """How loudly an error is logged; values are logging levels."""

    MEDIUM = logging.WARNING
    HIGH = logging.ERROR


@dataclass
class ErrorInfo:
    """One handled error."""

    error: BaseException
    context: ErrorContext
    severity: ErrorSeverity
    operation: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


ErrorCallback = Callable[[ErrorInfo], Any]


class ErrorHandler:
    """
    Logs, counts and fans out errors to callbacks.

    Callbacks may be plain functions or coroutine functions. A failing
    callback is logged and does not keep the others from running.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.counts: Counter = Counter()
        self._callbacks: Dict[Optional[ErrorContext], List[ErrorCallback]] = defaultdict(list)

    def register_handler(
        self, handler: ErrorCallback, context: Optional[ErrorContext] = None
    ) -> None:
        """Call ``handler`` for errors in ``context``, or for all errors if None."""
        self._callbacks[context].append(handler)

    async def handle_error(
        self,
        error: BaseException,
        context: ErrorContext,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        operation: Optional[str] = None,
        **metadata,
    ) -> ErrorInfo:
        """
        Record one error.

        Args:
            error: The exception that occurred
            context: Part of the connection the error belongs to
            severity: Decides the log level
            operation: Name of the failing step, defaults to the context name
            **metadata: Extra details kept on the returned ErrorInfo

        Returns:
            ErrorInfo: The record handed to the callbacks
        """
        info = ErrorInfo(
            error=error,
            context=context,
            severity=severity,
            operation=operation or context.value,
            metadata=metadata,
        )
        self.counts[context] += 1
        self.logger.log(
            severity.value, f"Error in {context.value} ({info.operation}): {error!r}"
        )

        for callback in self._callbacks[context] + self._callbacks[None]:
            try:
                result = callback(info)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"Error in error handler: {e}")

        return info


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """The process-wide handler used when a client is given none."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler
