"""
Unit tests for the error handler module.

Covers logging by severity, per-context counting and callback fan-out.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from cbsim_probe.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    get_error_handler,
)


class TestClassification:
    """Test the error classification enums."""

    def test_contexts(self):
        assert [context.value for context in ErrorContext] == [
            "connection",
            "transport",
            "payload",
            "close",
        ]

    def test_severities_are_log_levels(self):
        assert ErrorSeverity.MEDIUM.value == logging.WARNING
        assert ErrorSeverity.HIGH.value == logging.ERROR


class TestErrorHandler:
    """Test ErrorHandler behaviour."""

    @pytest.fixture
    def mock_logger(self):
        return MagicMock(spec=logging.Logger)

    @pytest.fixture
    def error_handler(self, mock_logger):
        return ErrorHandler(mock_logger)

    def test_default_logger(self):
        handler = ErrorHandler()
        assert isinstance(handler.logger, logging.Logger)

    @pytest.mark.asyncio
    async def test_logs_at_severity_level(self, error_handler, mock_logger):
        await error_handler.handle_error(
            ConnectionRefusedError("refused"),
            ErrorContext.CONNECTION,
            severity=ErrorSeverity.HIGH,
            operation="websocket_connection",
        )

        level, text = mock_logger.log.call_args[0]
        assert level == logging.ERROR
        assert "Error in connection (websocket_connection)" in text
        assert "refused" in text

    @pytest.mark.asyncio
    async def test_defaults(self, error_handler, mock_logger):
        info = await error_handler.handle_error(RuntimeError("boom"), ErrorContext.TRANSPORT)

        level, text = mock_logger.log.call_args[0]
        assert level == logging.WARNING
        assert "Error in transport (transport)" in text
        assert info.severity == ErrorSeverity.MEDIUM
        assert info.operation == "transport"

    @pytest.mark.asyncio
    async def test_returns_error_info_with_metadata(self, error_handler):
        error = ValueError("bad frame")

        info = await error_handler.handle_error(
            error, ErrorContext.PAYLOAD, operation="message_parse", frame="{not json"
        )

        assert isinstance(info, ErrorInfo)
        assert info.error is error
        assert info.context == ErrorContext.PAYLOAD
        assert info.metadata == {"frame": "{not json"}

    @pytest.mark.asyncio
    async def test_counts_per_context(self, error_handler):
        await error_handler.handle_error(ValueError("a"), ErrorContext.PAYLOAD)
        await error_handler.handle_error(ValueError("b"), ErrorContext.PAYLOAD)
        await error_handler.handle_error(OSError("c"), ErrorContext.CLOSE)

        assert error_handler.counts[ErrorContext.PAYLOAD] == 2
        assert error_handler.counts[ErrorContext.CLOSE] == 1
        assert error_handler.counts[ErrorContext.CONNECTION] == 0

    @pytest.mark.asyncio
    async def test_context_and_global_callbacks(self, error_handler):
        on_close = MagicMock()
        on_payload = MagicMock()
        on_any = AsyncMock()
        error_handler.register_handler(on_close, ErrorContext.CLOSE)
        error_handler.register_handler(on_payload, ErrorContext.PAYLOAD)
        error_handler.register_handler(on_any)

        await error_handler.handle_error(OSError("gone"), ErrorContext.CLOSE)

        on_close.assert_called_once()
        on_any.assert_awaited_once()
        on_payload.assert_not_called()
        assert on_close.call_args[0][0].context == ErrorContext.CLOSE

    @pytest.mark.asyncio
    async def test_failing_callback_is_isolated(self, error_handler, mock_logger):
        def broken(error_info):
            raise RuntimeError("callback failure")

        second = MagicMock()
        error_handler.register_handler(broken)
        error_handler.register_handler(second)

        await error_handler.handle_error(ValueError("x"), ErrorContext.PAYLOAD)

        second.assert_called_once()
        mock_logger.error.assert_called_with("Error in error handler: callback failure")


def test_get_error_handler_is_shared():
    assert get_error_handler() is get_error_handler()
    assert isinstance(get_error_handler(), ErrorHandler)
