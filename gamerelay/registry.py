"""Owner of the room-id -> Room table.

Rooms are created on first join and dropped after staying empty for
``ROOM_TTL_SECONDS``. The table is only changed by synchronous code in this
module, so the event loop already serialises every mutation.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterator, Optional

from .constants import ROLE_LEASE_MS, ROOM_TTL_SECONDS
from .room import Room
from .schemas import normalize_room_id

logger = logging.getLogger(__name__)


class RoomRegistry:
    def __init__(self, lease_ms: int = ROLE_LEASE_MS, cleanup_delay: float = ROOM_TTL_SECONDS):
        self.lease_ms = lease_ms
        self.cleanup_delay = cleanup_delay
        self.rooms: Dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self.rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self.rooms.values()))

    def __contains__(self, room_id: object) -> bool:
        return room_id in self.rooms

    def get(self, room_id: Optional[str]) -> Optional[Room]:
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    def get_or_create(self, room_id: object) -> Room:
        rid = normalize_room_id(room_id)
        room = self.rooms.get(rid)
        if room is None:
            room = Room(rid, lease_ms=self.lease_ms)
            self.rooms[rid] = room
            logger.info("room %s created", rid)
        return room

    # -------------------- Delayed deletion -------------------- #

    def schedule_delete(self, room_id: str) -> None:
        """(Re)arm the deletion timer of *room_id*."""
        room = self.rooms.get(room_id)
        if room is None:
            return
        self.cancel_delete(room_id)
        room.cleanup_task = asyncio.create_task(
            self._prune_after_delay(room, self.cleanup_delay),
            name=f"cleanup:{room_id}",
        )

    def cancel_delete(self, room_id: str) -> None:
        room = self.rooms.get(room_id)
        if room is None or room.cleanup_task is None:
            return
        if not room.cleanup_task.done():
            room.cleanup_task.cancel()
        room.cleanup_task = None

    async def _prune_after_delay(self, room: Room, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        if room.cleanup_task is not asyncio.current_task():
            return
        room.cleanup_task = None
        # Someone may have joined between the timer firing and now.
        if self.rooms.get(room.room_id) is not room or not room.is_empty():
            return
        self.rooms.pop(room.room_id, None)
        room.cancel_timers()
        logger.info("room %s cleaned", room.room_id)

    def shutdown(self) -> None:
        """Cancel every pending timer and forget all rooms."""
        for room in self:
            room.cancel_timers()
        self.rooms.clear()


__all__ = ["RoomRegistry"]
