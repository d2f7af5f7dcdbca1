"""
Pydantic models for the control box simulator frontend protocol.

The simulator's web frontend talks to it over a single WebSocket carrying JSON
text frames. Every frame is one flat message object whose integer ``Type``
field selects its meaning; the remaining fields are filled in depending on
the type:

- ``Text``: display text (``QRCode`` carries the SHIP pairing string)
- ``Limit``: a load limit (``Get*Limit`` / ``Set*Limit``)
- ``Value``: a failsafe value or duration in seconds
- ``EntityList``: remote entities and their use cases (``GetEntityList``)
- ``UseCase``: the use case a value belongs to (``LPC`` or ``LPP``)

The simulator always serialises every field, using zero values for the ones
that do not apply. Requests from the frontend usually carry ``Type`` only.
"""

import enum
import json
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class MessageType(enum.IntEnum):
    """Message type tags understood by the control box simulator."""

    TEXT = 0
    QR_CODE = 1
    ACKNOWLEDGE = 2
    ENTITY_LIST_CHANGED = 3
    GET_ENTITY_LIST = 4
    GET_ALL_DATA = 5
    SET_CONSUMPTION_LIMIT = 6
    GET_CONSUMPTION_LIMIT = 7
    SET_PRODUCTION_LIMIT = 8
    GET_PRODUCTION_LIMIT = 9
    SET_CONSUMPTION_FAILSAFE_VALUE = 10
    GET_CONSUMPTION_FAILSAFE_VALUE = 11
    SET_CONSUMPTION_FAILSAFE_DURATION = 12
    GET_CONSUMPTION_FAILSAFE_DURATION = 13
    SET_PRODUCTION_FAILSAFE_VALUE = 14
    GET_PRODUCTION_FAILSAFE_VALUE = 15
    SET_PRODUCTION_FAILSAFE_DURATION = 16
    GET_PRODUCTION_FAILSAFE_DURATION = 17
    GET_CONSUMPTION_NOMINAL_MAX = 18
    GET_PRODUCTION_NOMINAL_MAX = 19
    GET_CONSUMPTION_HEARTBEAT = 20
    STOP_CONSUMPTION_HEARTBEAT = 21
    START_CONSUMPTION_HEARTBEAT = 22
    GET_PRODUCTION_HEARTBEAT = 23
    STOP_PRODUCTION_HEARTBEAT = 24
    START_PRODUCTION_HEARTBEAT = 25


# Requests the probe sends once the connection is open, in order
PROBE_REQUESTS = (MessageType.GET_ENTITY_LIST, MessageType.GET_ALL_DATA)


class MessageParseError(ValueError):
    """Raised when an inbound frame cannot be decoded as JSON."""

    def __init__(self, raw: str, cause: Exception):
        super().__init__(f"Could not decode frame as JSON: {cause}")
        self.raw = raw
        self.cause = cause


class LoadLimit(BaseModel):
    """A consumption or production load limit."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    duration: int = Field(0, alias="Duration", description="Duration in seconds")
    is_changeable: bool = Field(False, alias="IsChangeable")
    is_active: bool = Field(False, alias="IsActive")
    value: float = Field(0.0, alias="Value", description="Limit in watts")


class EntityDescription(BaseModel):
    """A remote entity known to the control box."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field("", alias="Name", description="Entity address")
    ski: str = Field("", alias="SKI", description="Subject key identifier of the device")
    use_cases: List[str] = Field(default_factory=list, alias="UseCases")


class Message(BaseModel):
    """One frame of the frontend protocol."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: int = Field(..., alias="Type")
    text: str = Field("", alias="Text")
    limit: LoadLimit = Field(default_factory=LoadLimit, alias="Limit")
    value: float = Field(0.0, alias="Value")
    entity_list: Optional[List[EntityDescription]] = Field(None, alias="EntityList")
    use_case: str = Field("", alias="UseCase")

    @property
    def message_type(self) -> Optional[MessageType]:
        """The known type tag, or None for tags outside the protocol."""
        try:
            return MessageType(self.type)
        except ValueError:
            return None

    def to_wire(self) -> str:
        """Serialise with every field, the way the simulator does."""
        return json.dumps(self.model_dump(by_alias=True))


def describe_type(tag: Any) -> str:
    """Human-readable name of a type tag."""
    if isinstance(tag, int) and not isinstance(tag, bool):
        try:
            return MessageType(tag).name
        except ValueError:
            pass
    return f"Unknown({tag!r})"


def build_request(message_type: Union[MessageType, int]) -> str:
    """Build the JSON text of a request carrying only a type tag."""
    return json.dumps({"Type": int(message_type)})


def decode_frame(raw: str) -> Any:
    """
    Decode an inbound frame as JSON.

    Raises:
        MessageParseError: if the frame is not valid JSON or is nested too
            deeply for the decoder
    """
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise MessageParseError(raw, e) from e


def as_message(payload: Any) -> Optional[Message]:
    """Read a decoded payload as a Message, or None if it does not fit."""
    if not isinstance(payload, dict):
        return None
    try:
        return Message.model_validate(payload)
    except ValidationError:
        return None


def parse_message(raw: str) -> Optional[Message]:
    """Decode a frame and read it as a Message (None if it does not fit)."""
    return as_message(decode_frame(raw))


def type_tag(payload: Any) -> Any:
    """The raw ``Type`` value of a decoded payload, if it is an object."""
    if isinstance(payload, dict):
        return payload.get("Type")
    return None


def is_qr_code(payload: Any) -> bool:
    """True if a decoded payload is a QR code message (``Type == 1``)."""
    tag = type_tag(payload)
    if isinstance(tag, bool) or not isinstance(tag, (int, float)):
        return False
    return tag == MessageType.QR_CODE
