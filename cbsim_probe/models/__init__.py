"""
Data models for the control box simulator frontend protocol.

- cbsim_api: message type tags and pydantic models of the JSON frames
"""

from .cbsim_api import (
    PROBE_REQUESTS,
    EntityDescription,
    LoadLimit,
    Message,
    MessageParseError,
    MessageType,
    as_message,
    build_request,
    decode_frame,
    describe_type,
    is_qr_code,
    parse_message,
    type_tag,
)

__all__ = [
    "PROBE_REQUESTS",
    "EntityDescription",
    "LoadLimit",
    "Message",
    "MessageParseError",
    "MessageType",
    "as_message",
    "build_request",
    "decode_frame",
    "describe_type",
    "is_qr_code",
    "parse_message",
    "type_tag",
]
