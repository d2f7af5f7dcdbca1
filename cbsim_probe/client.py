"""
WebSocket probe for the control box simulator frontend socket.

The probe opens one connection, asks for the entity list and for all data as
soon as the connection is open, logs every frame the simulator pushes back and
shuts down after a fixed lifetime. Failures of any kind are logged and
swallowed; the run always ends with exit status 0.

Usage:
    client = ProbeClient("ws://localhost:7071/ws", lifetime=5.0)
    exit_code = await client.run()
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosedError

from cbsim_probe.config.constants import (
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_LIFETIME,
    DEFAULT_OPEN_TIMEOUT,
    DEFAULT_URL,
    MAX_FRAME_PREVIEW,
)
from cbsim_probe.config.models import ProbeConfig
from cbsim_probe.handlers.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorInfo,
    ErrorSeverity,
    get_error_handler,
)
from cbsim_probe.models.cbsim_api import (
    PROBE_REQUESTS,
    MessageParseError,
    build_request,
    decode_frame,
    describe_type,
    is_qr_code,
    type_tag,
)

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0

Frame = Union[str, bytes]


class ConnectionState(Enum):
    """Observable connection states."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ProbeClient:
    """
    One-shot WebSocket probe.

    Transport events are dispatched to the ``on_open``, ``on_message``,
    ``on_error`` and ``on_close`` coroutines. Subclasses may override them;
    extra callables can be attached per event with ``register_handler``.
    The shutdown timer starts with ``run()`` and always fires.
    """

    EVENTS = ("open", "message", "error", "close", "qr_code")

    def __init__(
        self,
        url: str = DEFAULT_URL,
        lifetime: float = DEFAULT_LIFETIME,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.url = url
        self.lifetime = lifetime
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.error_handler = error_handler or get_error_handler()

        self.websocket: Optional[Any] = None
        self.state = ConnectionState.CONNECTING

        # What happened during the run
        self.sent: List[str] = []
        self.received: List[str] = []
        self.qr_codes: List[Any] = []
        self.errors: List[ErrorInfo] = []

        self._handlers: Dict[str, List[Callable]] = {event: [] for event in self.EVENTS}
        self._session_task: Optional[asyncio.Task] = None
        self._shutdown_task: Optional[asyncio.Task] = None
        self._shutdown_started = False
        self._deadline: Optional[float] = None

    @classmethod
    def from_config(
        cls, config: ProbeConfig, error_handler: Optional[ErrorHandler] = None
    ) -> "ProbeClient":
        return cls(
            url=config.url,
            lifetime=config.lifetime,
            open_timeout=config.open_timeout,
            close_timeout=config.close_timeout,
            error_handler=error_handler,
        )

    def register_handler(self, event: str, handler: Callable) -> None:
        """
        Attach a callable (sync or async) to a transport event.

        Args:
            event: One of ``open``, ``message``, ``error``, ``close`` or ``qr_code``
            handler: Called after the built-in handling of the event
        """
        if event not in self._handlers:
            raise ValueError(f"Unknown event {event!r}, expected one of {self.EVENTS}")
        self._handlers[event].append(handler)

    async def run(self) -> int:
        """
        Run the probe until the shutdown timer fires.

        Returns:
            int: The process exit status, always 0
        """
        self.state = ConnectionState.CONNECTING
        self._deadline = asyncio.get_running_loop().time() + self.lifetime
        self._shutdown_task = asyncio.create_task(self._shutdown_at_deadline())
        self._session_task = asyncio.create_task(self.connect(self.url))
        return await self._shutdown_task

    async def connect(self, url: str) -> None:
        """Open the connection and pump frames until the transport closes."""
        logger.info(f"Connecting to WebSocket server at {url}...")

        try:
            self.websocket = await websockets.connect(
                url,
                open_timeout=self.open_timeout,
                close_timeout=self.close_timeout,
            )
        except Exception as e:
            self.state = ConnectionState.CLOSED
            await self.on_error(e, context=ErrorContext.CONNECTION)
            await self.on_close()
            return

        self.state = ConnectionState.OPEN
        await self.on_open()
        await self._receive_loop()

    async def _receive_loop(self) -> None:
        try:
            async for frame in self.websocket:
                await self.on_message(frame)
        except ConnectionClosedError as e:
            self.state = ConnectionState.CLOSED
            await self.on_error(e, context=ErrorContext.CLOSE)
        except Exception as e:
            self.state = ConnectionState.CLOSED
            await self.on_error(e, context=ErrorContext.TRANSPORT)

        self.state = ConnectionState.CLOSED
        await self.on_close(
            getattr(self.websocket, "close_code", None),
            getattr(self.websocket, "close_reason", None),
        )

    async def on_open(self) -> None:
        """Send the probe requests back-to-back without waiting for replies."""
        logger.info("Connected to WebSocket server")

        for message_type in PROBE_REQUESTS:
            request = build_request(message_type)
            logger.info(f"Sending {describe_type(message_type)} request: {request}")
            try:
                await self.websocket.send(request)
            except Exception as e:
                await self.on_error(e, context=ErrorContext.TRANSPORT)
                break
            self.sent.append(request)

        await self._dispatch("open")

    async def on_message(self, frame: Frame) -> None:
        """Log a frame; QR code messages additionally get their text logged."""
        raw = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
        self.received.append(raw)
        logger.info(f"Received: {raw}")

        try:
            payload = decode_frame(raw)
        except MessageParseError as e:
            logger.info(f"Error parsing message: {e}")
            error_info = await self.error_handler.handle_error(
                e,
                context=ErrorContext.PAYLOAD,
                severity=ErrorSeverity.MEDIUM,
                operation="message_parse",
                frame=raw[:MAX_FRAME_PREVIEW],
            )
            self.errors.append(error_info)
            return

        logger.debug(f"Message type: {describe_type(type_tag(payload))}")

        if is_qr_code(payload):
            text = payload.get("Text")
            self.qr_codes.append(text)
            logger.info(f"QR Code received: {text}")
            await self._dispatch("qr_code", text)

        await self._dispatch("message", payload)

    async def on_error(
        self, error: BaseException, context: ErrorContext = ErrorContext.TRANSPORT
    ) -> None:
        """Log a transport error. No retry, the shutdown timer still runs."""
        logger.info(f"WebSocket error: {error!r}")
        severity = (
            ErrorSeverity.HIGH
            if context == ErrorContext.CONNECTION
            else ErrorSeverity.MEDIUM
        )
        error_info = await self.error_handler.handle_error(
            error,
            context=context,
            severity=severity,
            operation=f"websocket_{context.value}",
            url=self.url,
        )
        self.errors.append(error_info)
        await self._dispatch("error", error)

    async def on_close(
        self, code: Optional[int] = None, reason: Optional[str] = None
    ) -> None:
        if code is None:
            logger.info("WebSocket connection closed")
        else:
            logger.info(f"WebSocket connection closed (code={code}, reason={reason!r})")
        await self._dispatch("close", code, reason)

    async def shutdown(self) -> int:
        """
        Close the connection and stop the session, whatever state it is in.

        An open connection gets a close handshake bounded by the time left
        before the deadline; a pending connect is cancelled straight away.
        Only the first call has any effect.

        Returns:
            int: The process exit status, always 0
        """
        if self._shutdown_started:
            return EXIT_SUCCESS
        self._shutdown_started = True

        logger.info(f"Shutting down probe (state: {self.state.value})")

        if self.state == ConnectionState.OPEN:
            try:
                await asyncio.wait_for(self._close_connection(), timeout=self._time_left())
            except asyncio.TimeoutError:
                logger.debug("Close handshake did not finish before the deadline")

        await self._cancel_session()
        self._abort_transport()

        self.state = ConnectionState.CLOSED
        logger.info(
            "Probe finished: sent {sent}, received {received}, "
            "QR codes {qr_codes}, errors {errors}".format(**self.get_stats())
        )
        return EXIT_SUCCESS

    async def _shutdown_at_deadline(self) -> int:
        # Start closing an open connection early enough to finish by the deadline
        await asyncio.sleep(max(0.0, self._time_left() - self._close_grace()))
        if self.state != ConnectionState.OPEN:
            await asyncio.sleep(self._time_left())
        exit_code = await self.shutdown()
        await asyncio.sleep(self._time_left())
        return exit_code

    async def _close_connection(self) -> None:
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug(f"Error while closing connection: {e!r}")
        if self._session_task is not None:
            # Lets the receive loop report the close
            await asyncio.wait([self._session_task])

    async def _cancel_session(self) -> None:
        task = self._session_task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _abort_transport(self) -> None:
        transport = getattr(self.websocket, "transport", None)
        if transport is not None and not transport.is_closing():
            transport.abort()

    def _close_grace(self) -> float:
        return min(self.close_timeout, self.lifetime / 2)

    def _time_left(self) -> float:
        """Seconds until the deadline; ``close_timeout`` outside ``run()``."""
        if self._deadline is None:
            return self.close_timeout
        return max(0.0, self._deadline - asyncio.get_running_loop().time())

    async def _dispatch(self, event: str, *args) -> None:
        for handler in self._handlers[event]:
            await self._safe_call_handler(handler, *args)

    async def _safe_call_handler(self, handler: Callable, *args) -> None:
        """Safely call an event handler, catching exceptions."""
        try:
            if asyncio.iscoroutinefunction(handler):
                await handler(*args)
            else:
                handler(*args)
        except Exception as e:
            logger.error(f"Error in event handler: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Summary of the run so far."""
        return {
            "url": self.url,
            "state": self.state.value,
            "sent": len(self.sent),
            "received": len(self.received),
            "qr_codes": len(self.qr_codes),
            "errors": len(self.errors),
        }


async def run_probe(
    config: Optional[ProbeConfig] = None, error_handler: Optional[ErrorHandler] = None
) -> int:
    """Run one probe with the given settings and return its exit status."""
    client = ProbeClient.from_config(config or ProbeConfig(), error_handler)
    return await client.run()
