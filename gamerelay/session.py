from __future__ import annotations

from typing import Any, Optional

from fastapi.websockets import WebSocketState

from .constants import FIRST_SPECTATOR_ORDINAL, PLAYER_LABELS, SLOT_COUNT, SPECTATOR_LABEL


class Role:
    """Role held by a session inside its room.

    ``index`` mirrors the value sent in ``role`` frames: ``0``/``1`` for the
    player slots, ``2`` and up for spectators, ``None`` before joining.
    """

    __slots__ = ("index",)

    def __init__(self, index: Optional[int] = None):
        self.index = index

    @classmethod
    def player(cls, slot: int) -> "Role":
        if not 0 <= slot < SLOT_COUNT:
            raise ValueError(f"invalid player slot {slot}")
        return cls(slot)

    @classmethod
    def spectator(cls, ordinal: int) -> "Role":
        if ordinal < FIRST_SPECTATOR_ORDINAL:
            raise ValueError(f"invalid spectator ordinal {ordinal}")
        return cls(ordinal)

    @property
    def is_player(self) -> bool:
        return self.index is not None and self.index < SLOT_COUNT

    @property
    def is_spectator(self) -> bool:
        return self.index is not None and self.index >= FIRST_SPECTATOR_ORDINAL

    @property
    def label(self) -> str:
        """Origin label used on chat messages."""
        if self.is_player:
            return PLAYER_LABELS[self.index]
        return f"{SPECTATOR_LABEL} {self.index}"

    def __repr__(self) -> str:
        if self.index is None:
            return "Role.unassigned"
        if self.is_player:
            return f"Role.player({self.index})"
        return f"Role.spectator({self.index})"


class Session:
    """One live connection on the ``/ws`` endpoint.

    *channel* is anything with an async ``send_text`` and the Starlette
    ``client_state``/``application_state`` attributes, in practice a
    :class:`fastapi.WebSocket`.
    """

    def __init__(self, channel: Any, device_id: str = ""):
        self.channel = channel
        self.device_id = device_id
        self.room_id: Optional[str] = None
        self.role = Role()

    @property
    def is_open(self) -> bool:
        return (
            getattr(self.channel, "client_state", None) == WebSocketState.CONNECTED
            and getattr(self.channel, "application_state", None) == WebSocketState.CONNECTED
        )

    @property
    def slot(self) -> Optional[int]:
        return self.role.index if self.role.is_player else None

    async def send_text(self, data: str) -> None:
        await self.channel.send_text(data)

    def __repr__(self) -> str:
        return f"<Session device={self.device_id!r} room={self.room_id!r} {self.role!r}>"


__all__ = ["Role", "Session"]
