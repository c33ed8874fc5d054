"""Pydantic message schemas for the ``/ws`` channel.

Inbound frames are validated into a discriminated union keyed by ``type``
so the handlers never see loosely-typed dictionaries. Outbound frames are
models as well; :func:`dump` turns one into the JSON text sent on the wire.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .constants import DEFAULT_ROOM_ID

# -----------------------------
# Inbound (client -> relay)
# -----------------------------


class _Inbound(BaseModel):
    model_config = ConfigDict(extra="ignore")


def as_text(value: Any) -> str:
    """Render a JSON scalar as text, e.g. ``true`` rather than ``True``."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    return str(value)


def normalize_room_id(value: Any) -> str:
    """Room ids are opaque; anything falsy falls back to the default room."""
    return as_text(value) if value else DEFAULT_ROOM_ID


class JoinMessage(_Inbound):
    type: Literal["join"]
    room: str = DEFAULT_ROOM_ID
    device_id: str = Field(default="", alias="deviceId")

    @field_validator("room", mode="before")
    @classmethod
    def _coerce_room(cls, value: Any) -> str:
        return normalize_room_id(value)

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> str:
        return as_text(value) if value else ""


class RequestStateMessage(_Inbound):
    type: Literal["request_state"]


class SyncStateMessage(_Inbound):
    type: Literal["syncState"]
    # Opaque to the relay, but it has to be a JSON object.
    state: Dict[str, Any]


class ChatMessage(_Inbound):
    type: Literal["chat"]
    text: str = ""
    time: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return as_text(value) if value else ""

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> Optional[str]:
        return as_text(value) if value else None


InboundMessage = Annotated[
    Union[JoinMessage, RequestStateMessage, SyncStateMessage, ChatMessage],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: Union[str, bytes]) -> InboundMessage:
    """Parse one text frame.

    Raises ``pydantic.ValidationError`` for malformed JSON, unknown message
    types and payloads that do not match their type's shape.
    """
    return _inbound_adapter.validate_json(raw)


# -----------------------------
# Outbound (relay -> client)
# -----------------------------


class RoleAssigned(BaseModel):
    type: Literal["role"] = "role"
    index: int


class StateSnapshot(BaseModel):
    type: Literal["syncState"] = "syncState"
    state: Dict[str, Any]


class ChatBroadcast(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["chat"] = "chat"
    from_: str = Field(alias="from")
    text: str
    time: str


OutboundMessage = Union[RoleAssigned, StateSnapshot, ChatBroadcast]


def dump(message: OutboundMessage) -> str:
    return message.model_dump_json(by_alias=True)


def server_time() -> str:
    """Local wall-clock time used when a chat message carries none."""
    return datetime.now().strftime("%H:%M:%S")


__all__ = [
    "as_text",
    "normalize_room_id",
    "JoinMessage",
    "RequestStateMessage",
    "SyncStateMessage",
    "ChatMessage",
    "InboundMessage",
    "parse_inbound",
    "RoleAssigned",
    "StateSnapshot",
    "ChatBroadcast",
    "OutboundMessage",
    "dump",
    "server_time",
]
