"""Role assignment for connections joining a room.

A joining device is tried, in order, against:

1. a vacated slot whose reclaim token matches its device id and whose
   lease is still running (reconnect),
2. any empty slot not protected by someone else's running lease,
3. the spectator audience, queued for promotion by device id.
"""
from __future__ import annotations

import logging
from typing import Optional

from .broadcast import send
from .constants import SLOT_COUNT
from .lease import now_ms
from .room import Room
from .schemas import RoleAssigned, StateSnapshot
from .session import Session

logger = logging.getLogger(__name__)


def find_reclaimable_slot(room: Room, device_id: str, now: Optional[int] = None) -> Optional[int]:
    now = now_ms() if now is None else now
    for slot in range(SLOT_COUNT):
        if room.slots[slot] is not None:
            continue
        token = room.player_token[slot]
        if token and token == device_id and room.leases[slot].allows_reclaim(now):
            return slot
    return None


def find_free_slot(room: Room, now: Optional[int] = None) -> Optional[int]:
    now = now_ms() if now is None else now
    for slot in range(SLOT_COUNT):
        if room.slots[slot] is None and room.leases[slot].allows_fresh_seat(now):
            return slot
    return None


async def assign_role(room: Room, session: Session) -> int:
    """Seat or seat-as-spectator *session* in *room* and acknowledge it.

    Must be called with ``room.lock`` held. Returns the role index sent to
    the client.
    """
    now = now_ms()
    slot = find_reclaimable_slot(room, session.device_id, now)
    if slot is not None:
        room.seat(slot, session)
        logger.info("room=%s rejoin with token %r -> slot %d", room.room_id, session.device_id, slot)
    else:
        slot = find_free_slot(room, now)
        if slot is not None:
            room.seat(slot, session)
            logger.info("room=%s new seat %r -> slot %d", room.room_id, session.device_id, slot)

    if slot is not None:
        index = slot
    else:
        index = room.add_spectator(session)
        logger.info(
            "room=%s spectator %r joined as %d (queue size %d)",
            room.room_id,
            session.device_id,
            index,
            len(room.spectators.queue),
        )

    await send(session, RoleAssigned(index=index))
    if room.state is not None:
        await send(session, StateSnapshot(state=room.state))
    return index


__all__ = ["find_reclaimable_slot", "find_free_slot", "assign_role"]
