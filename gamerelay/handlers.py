"""Inbound message handling and disconnection for ``/ws`` sessions.

Everything here is framework-agnostic: the router hands over a
:class:`~gamerelay.session.Session` and raw frames, and these functions
drive the in-memory rooms owned by a :class:`~gamerelay.registry.RoomRegistry`.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from pydantic import ValidationError

from .broadcast import broadcast, send
from .lease import start_lease
from .registry import RoomRegistry
from .roles import assign_role
from .room import Room
from .schemas import (
    ChatBroadcast,
    ChatMessage,
    InboundMessage,
    JoinMessage,
    RequestStateMessage,
    StateSnapshot,
    SyncStateMessage,
    parse_inbound,
    server_time,
)
from .session import Session

logger = logging.getLogger(__name__)


async def handle_ws_message(registry: RoomRegistry, session: Session, raw: Union[str, bytes]) -> None:
    """Validate one frame from *session* and dispatch it. Bad frames are dropped."""
    try:
        msg = parse_inbound(raw)
    except ValidationError as exc:
        logger.debug("dropping frame from %r: %d validation error(s)", session, exc.error_count())
        return
    await dispatch(registry, session, msg)


async def dispatch(registry: RoomRegistry, session: Session, msg: InboundMessage) -> None:
    if isinstance(msg, JoinMessage):
        await handle_join(registry, session, msg)
    elif isinstance(msg, RequestStateMessage):
        await handle_request_state(registry, session)
    elif isinstance(msg, SyncStateMessage):
        await handle_sync_state(registry, session, msg)
    elif isinstance(msg, ChatMessage):
        await handle_chat(registry, session, msg)


# ---------------------------------------------------------------------------
# Join
# ---------------------------------------------------------------------------


async def handle_join(registry: RoomRegistry, session: Session, msg: JoinMessage) -> Optional[int]:
    if session.room_id is not None:
        # Room scope is fixed by the first join on a connection.
        logger.debug("ignoring repeated join from %r", session)
        return None

    room = registry.get_or_create(msg.room)
    registry.cancel_delete(room.room_id)
    session.room_id = room.room_id
    session.device_id = msg.device_id
    async with room.lock:
        return await assign_role(room, session)


# ---------------------------------------------------------------------------
# State sync & chat
# ---------------------------------------------------------------------------


def _room_of(registry: RoomRegistry, session: Session) -> Optional[Room]:
    room = registry.get(session.room_id)
    if room is None:
        logger.debug("%r has not joined a room", session)
    return room


async def handle_request_state(registry: RoomRegistry, session: Session) -> None:
    room = _room_of(registry, session)
    if room is None:
        return
    async with room.lock:
        if room.state is not None:
            await send(session, StateSnapshot(state=room.state))


async def handle_sync_state(registry: RoomRegistry, session: Session, msg: SyncStateMessage) -> None:
    room = _room_of(registry, session)
    if room is None:
        return
    async with room.lock:
        if not session.role.is_player:
            logger.debug("room=%s ignoring syncState from non-player %r", room.room_id, session)
            return
        room.update_state(msg.state)
        await broadcast(room, StateSnapshot(state=room.state))


async def handle_chat(registry: RoomRegistry, session: Session, msg: ChatMessage) -> None:
    room = _room_of(registry, session)
    if room is None:
        return
    async with room.lock:
        await broadcast(
            room,
            ChatBroadcast(
                from_=session.role.label,
                text=msg.text,
                time=msg.time or server_time(),
            ),
        )


# ---------------------------------------------------------------------------
# Disconnect
# ---------------------------------------------------------------------------


async def handle_disconnect(registry: RoomRegistry, session: Session) -> None:
    """Release whatever *session* held in its room once its channel is gone."""
    room = registry.get(session.room_id)
    if room is None:
        return

    async with room.lock:
        slot = session.slot
        if slot is not None:
            if room.slots[slot] is session:
                start_lease(room, slot)
        else:
            # Queued device ids are skipped lazily at promotion time.
            room.spectators.discard(session)

        peers = room.occupant_count()
        logger.info("closed: room=%s peers=%d", room.room_id, peers)
        if peers == 0:
            registry.schedule_delete(room.room_id)
        else:
            registry.cancel_delete(room.room_id)


__all__ = [
    "handle_ws_message",
    "dispatch",
    "handle_join",
    "handle_request_state",
    "handle_sync_state",
    "handle_chat",
    "handle_disconnect",
]
