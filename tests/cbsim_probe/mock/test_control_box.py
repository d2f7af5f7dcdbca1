"""
Tests for the mock control box server.
"""

import asyncio
import json

import pytest
import pytest_asyncio
import websockets
from websockets.exceptions import InvalidStatus

from cbsim_probe.config.models import MockServerConfig
from cbsim_probe.mock.control_box import ControlBoxState, MockControlBox
from cbsim_probe.models.cbsim_api import MessageType

DATA_BURST = [
    MessageType.GET_CONSUMPTION_LIMIT,
    MessageType.GET_PRODUCTION_LIMIT,
    MessageType.GET_CONSUMPTION_FAILSAFE_VALUE,
    MessageType.GET_CONSUMPTION_FAILSAFE_DURATION,
    MessageType.GET_PRODUCTION_FAILSAFE_VALUE,
    MessageType.GET_PRODUCTION_FAILSAFE_DURATION,
]


async def recv_json(websocket):
    return json.loads(await asyncio.wait_for(websocket.recv(), timeout=2))


async def recv_many(websocket, count):
    return [await recv_json(websocket) for _ in range(count)]


@pytest_asyncio.fixture
async def control_box():
    async with MockControlBox(host="127.0.0.1", port=0, qr_text="ABC123") as server:
        yield server


@pytest_asyncio.fixture
async def frontend(control_box):
    """A connected frontend with the greeting burst already consumed."""
    async with websockets.connect(control_box.url) as websocket:
        await recv_many(websocket, 1 + len(DATA_BURST))
        yield websocket


pytestmark = pytest.mark.integration


class TestMockControlBox:
    """Test the simulator-like behaviour of the mock."""

    @pytest.mark.asyncio
    async def test_binds_ephemeral_port(self, control_box):
        assert control_box.port != 0
        assert control_box.url == f"ws://127.0.0.1:{control_box.port}/ws"

    @pytest.mark.asyncio
    async def test_greets_with_qr_code_and_data(self, control_box):
        async with websockets.connect(control_box.url) as websocket:
            messages = await recv_many(websocket, 1 + len(DATA_BURST))

        assert messages[0]["Type"] == MessageType.QR_CODE
        assert messages[0]["Text"] == "ABC123"
        assert [message["Type"] for message in messages[1:]] == DATA_BURST
        assert messages[1]["UseCase"] == "LPC"
        assert messages[1]["Limit"]["Value"] == 4200.0
        assert messages[2]["UseCase"] == "LPP"
        assert control_box.connections == 1

    @pytest.mark.asyncio
    async def test_entity_list_request(self, control_box, frontend):
        await frontend.send(json.dumps({"Type": 4}))

        entity_list, ack = await recv_many(frontend, 2)

        assert entity_list["Type"] == MessageType.GET_ENTITY_LIST
        assert entity_list["EntityList"][0]["UseCases"] == ["LPC", "LPP"]
        assert ack["Type"] == MessageType.ACKNOWLEDGE
        assert control_box.received == ['{"Type": 4}']

    @pytest.mark.asyncio
    async def test_all_data_request(self, frontend):
        await frontend.send(json.dumps({"Type": 5}))

        messages = await recv_many(frontend, 1 + len(DATA_BURST) + 1)

        assert messages[0]["Type"] == MessageType.QR_CODE
        assert messages[-1]["Type"] == MessageType.ACKNOWLEDGE

    @pytest.mark.asyncio
    async def test_undecodable_frame_is_acknowledged(self, control_box, frontend):
        await frontend.send("garbage")

        ack = await recv_json(frontend)

        assert ack["Type"] == MessageType.ACKNOWLEDGE
        assert control_box.received == ["garbage"]

    @pytest.mark.asyncio
    async def test_set_consumption_limit_is_echoed(self, control_box, frontend):
        request = {
            "Type": 6,
            "Limit": {"IsActive": True, "Duration": 600, "Value": 3000},
        }
        await frontend.send(json.dumps(request))

        echo, ack = await recv_many(frontend, 2)

        assert echo["Type"] == MessageType.GET_CONSUMPTION_LIMIT
        assert echo["UseCase"] == "LPC"
        assert echo["Limit"]["IsActive"] is True
        assert echo["Limit"]["Duration"] == 600
        assert ack["Type"] == MessageType.ACKNOWLEDGE
        assert control_box.state.consumption_limit.value == 3000.0

    @pytest.mark.asyncio
    async def test_set_failsafe_values(self, control_box, frontend):
        await frontend.send(json.dumps({"Type": 10, "Value": 1234}))
        await frontend.send(json.dumps({"Type": 16, "Value": 900}))

        acks = await recv_many(frontend, 2)

        assert [ack["Type"] for ack in acks] == [2, 2]
        assert control_box.state.consumption_failsafe_value == 1234.0
        assert control_box.state.production_failsafe_duration == 900.0

    @pytest.mark.asyncio
    async def test_unknown_path_is_rejected(self, control_box):
        with pytest.raises(InvalidStatus) as exc_info:
            async with websockets.connect(f"ws://127.0.0.1:{control_box.port}/other"):
                pass

        assert exc_info.value.response.status_code == 404


class TestConstruction:
    """Test construction helpers."""

    def test_from_config(self):
        server = MockControlBox.from_config(
            MockServerConfig(host="127.0.0.1", port=7072, qr_text="QR")
        )

        assert server.url == "ws://127.0.0.1:7072/ws"
        assert server.qr_text == "QR"
        assert isinstance(server.state, ControlBoxState)

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        await MockControlBox().stop()
