"""
Mock control box frontend socket.

A small stand-in for the control box simulator's ``/ws`` endpoint, so the
probe can be exercised without the simulator or any EEBUS devices. It follows
the simulator's behaviour:

- on connect it pushes the QR code followed by the "all data" burst
  (limits and failsafe settings for LPC and LPP)
- ``GetEntityList`` is answered with the entity list
- ``GetAllData`` repeats the burst
- ``Set*`` requests update the held values; limit changes are echoed back
- every inbound frame, decodable or not, is acknowledged

Usage:
    async with MockControlBox(port=0) as server:
        client = ProbeClient(server.url, lifetime=1.0)
        await client.run()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, List, Optional

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from cbsim_probe.config.constants import DEFAULT_HOST, DEFAULT_MOCK_QR_TEXT, DEFAULT_PATH
from cbsim_probe.config.models import MockServerConfig
from cbsim_probe.models.cbsim_api import (
    EntityDescription,
    LoadLimit,
    Message,
    MessageParseError,
    MessageType,
    describe_type,
    parse_message,
)

logger = logging.getLogger(__name__)


def _default_entities() -> List[EntityDescription]:
    return [
        EntityDescription(
            name="d:_i:Demo_EVSE-0001:[1]",
            ski="f7ac1b4d9e2c3a5b6d7e8f9a0b1c2d3e4f5a6b7c",
            use_cases=["LPC", "LPP"],
        )
    ]


@dataclass
class ControlBoxState:
    """Values the control box holds for its remote entities."""

    consumption_limit: LoadLimit = field(
        default_factory=lambda: LoadLimit(duration=0, is_active=False, value=4200.0)
    )
    production_limit: LoadLimit = field(
        default_factory=lambda: LoadLimit(duration=0, is_active=False, value=5000.0)
    )
    consumption_failsafe_value: float = 4200.0
    consumption_failsafe_duration: float = 7200.0
    production_failsafe_value: float = 5000.0
    production_failsafe_duration: float = 7200.0
    entities: List[EntityDescription] = field(default_factory=_default_entities)


class MockControlBox:
    """WebSocket server imitating the control box simulator's frontend socket."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = 0,
        path: str = DEFAULT_PATH,
        qr_text: str = DEFAULT_MOCK_QR_TEXT,
        state: Optional[ControlBoxState] = None,
    ):
        self.host = host
        self.port = port
        self.path = path
        self.qr_text = qr_text
        self.state = state or ControlBoxState()

        self.received: List[str] = []
        self.connections = 0
        self._server: Optional[Any] = None

    @classmethod
    def from_config(cls, config: MockServerConfig) -> "MockControlBox":
        return cls(host=config.host, port=config.port, qr_text=config.qr_text)

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}{self.path}"

    async def start(self) -> int:
        """Start listening. Returns the bound port (useful with port 0)."""
        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            process_request=self._check_path,
        )
        sockets = list(self._server.sockets)
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info(f"Mock control box listening on {self.url}")
        return self.port

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Mock control box stopped")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Future()
        finally:
            await self.stop()

    async def __aenter__(self) -> "MockControlBox":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _check_path(self, connection, request):
        if request.path != self.path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")
        return None

    async def _handle_client(self, websocket) -> None:
        self.connections += 1
        logger.info("Client Connected")

        try:
            await self.send_data(websocket)

            async for frame in websocket:
                raw = frame if isinstance(frame, str) else frame.decode("utf-8", errors="replace")
                self.received.append(raw)
                logger.info(f"Frontend sent: {raw}")
                await self.handle_request(websocket, raw)
                await self._send(websocket, Message(type=MessageType.ACKNOWLEDGE))
        except ConnectionClosed as e:
            logger.info(f"WebSocket read error: {e}")

    async def handle_request(self, websocket, raw: str) -> None:
        """Apply one frontend request. Undecodable frames count as type 0."""
        try:
            message = parse_message(raw)
        except MessageParseError:
            message = None
        if message is None:
            message = Message(type=MessageType.TEXT)

        state = self.state
        tag = message.type

        if tag == MessageType.GET_ENTITY_LIST:
            await self._send(
                websocket,
                Message(type=MessageType.GET_ENTITY_LIST, entity_list=state.entities),
            )
        elif tag == MessageType.GET_ALL_DATA:
            await self.send_data(websocket)
        elif tag == MessageType.SET_CONSUMPTION_LIMIT:
            state.consumption_limit = message.limit
            await self._send_limit(websocket, MessageType.GET_CONSUMPTION_LIMIT, "LPC", state.consumption_limit)
        elif tag == MessageType.SET_PRODUCTION_LIMIT:
            state.production_limit = message.limit
            await self._send_limit(websocket, MessageType.GET_PRODUCTION_LIMIT, "LPP", state.production_limit)
        elif tag == MessageType.SET_CONSUMPTION_FAILSAFE_VALUE:
            state.consumption_failsafe_value = message.value
        elif tag == MessageType.SET_CONSUMPTION_FAILSAFE_DURATION:
            state.consumption_failsafe_duration = message.value
        elif tag == MessageType.SET_PRODUCTION_FAILSAFE_VALUE:
            state.production_failsafe_value = message.value
        elif tag == MessageType.SET_PRODUCTION_FAILSAFE_DURATION:
            state.production_failsafe_duration = message.value
        elif tag in (
            MessageType.STOP_CONSUMPTION_HEARTBEAT,
            MessageType.START_CONSUMPTION_HEARTBEAT,
        ):
            logger.warning(f"{describe_type(tag)} is not supported by the mock control box")

    async def send_data(self, websocket) -> None:
        """Push the QR code and the current limits and failsafe settings."""
        state = self.state
        logger.info(f"Sending QR code: {self.qr_text}")
        await self._send(websocket, Message(type=MessageType.QR_CODE, text=self.qr_text))

        await self._send_limit(websocket, MessageType.GET_CONSUMPTION_LIMIT, "LPC", state.consumption_limit)
        await self._send_limit(websocket, MessageType.GET_PRODUCTION_LIMIT, "LPP", state.production_limit)

        for tag, use_case, value in (
            (MessageType.GET_CONSUMPTION_FAILSAFE_VALUE, "LPC", state.consumption_failsafe_value),
            (MessageType.GET_CONSUMPTION_FAILSAFE_DURATION, "LPC", state.consumption_failsafe_duration),
            (MessageType.GET_PRODUCTION_FAILSAFE_VALUE, "LPP", state.production_failsafe_value),
            (MessageType.GET_PRODUCTION_FAILSAFE_DURATION, "LPP", state.production_failsafe_duration),
        ):
            await self._send(websocket, Message(type=tag, use_case=use_case, value=value))

    async def _send_limit(self, websocket, tag: MessageType, use_case: str, limit: LoadLimit) -> None:
        await self._send(websocket, Message(type=tag, use_case=use_case, limit=limit))

    async def _send(self, websocket, message: Message) -> None:
        await websocket.send(message.to_wire())
