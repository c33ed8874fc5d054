"""Reclaim leases for vacated player slots.

When a player drops, its slot stays reserved for the same device for
``ROLE_LEASE_MS``. If nobody reclaims it in time the slot goes to the
longest-waiting live spectator, or is opened to anyone when there is none.
"""
from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict

from .broadcast import send
from .schemas import RoleAssigned, StateSnapshot

if TYPE_CHECKING:
    from .room import Room

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class LeaseKind(str, Enum):
    UNSET = "unset"  # never leased, or reclaim rights were discarded
    OCCUPIED = "occupied"  # slot is currently held
    EXPIRES_AT = "expires_at"  # slot vacated, reclaim window open


class Lease(BaseModel):
    """Reclaim state of one player slot."""

    model_config = ConfigDict(frozen=True)

    kind: LeaseKind = LeaseKind.UNSET
    expires_at: int = 0

    @classmethod
    def unset(cls) -> "Lease":
        return cls()

    @classmethod
    def occupied(cls) -> "Lease":
        return cls(kind=LeaseKind.OCCUPIED)

    @classmethod
    def expiring(cls, at_ms: int) -> "Lease":
        return cls(kind=LeaseKind.EXPIRES_AT, expires_at=at_ms)

    @property
    def pending(self) -> bool:
        return self.kind is LeaseKind.EXPIRES_AT

    def allows_reclaim(self, now: Optional[int] = None) -> bool:
        """True unless a reclaim window existed and has already closed."""
        if not self.pending:
            return True
        return (now_ms() if now is None else now) < self.expires_at

    def allows_fresh_seat(self, now: Optional[int] = None) -> bool:
        """True unless a reclaim window is still protecting the slot."""
        if not self.pending:
            return True
        return (now_ms() if now is None else now) >= self.expires_at


def cancel_lease_task(room: "Room", slot: int) -> None:
    task = room.lease_tasks[slot]
    room.lease_tasks[slot] = None
    if task is not None and not task.done():
        task.cancel()


def start_lease(room: "Room", slot: int) -> None:
    """Vacate *slot* and open a reclaim window for its last device.

    Must be called with ``room.lock`` held.
    """
    room.slots[slot] = None
    cancel_lease_task(room, slot)
    room.leases[slot] = Lease.expiring(now_ms() + room.lease_ms)
    room.lease_tasks[slot] = asyncio.create_task(
        _expire_after(room, slot, room.lease_ms / 1000),
        name=f"lease:{room.room_id}:{slot}",
    )
    logger.info("room=%s slot=%d vacated, lease for %r started", room.room_id, slot, room.player_token[slot])


async def _expire_after(room: "Room", slot: int, delay: float) -> None:
    try:
        await asyncio.sleep(delay)
    except asyncio.CancelledError:
        return
    await on_expire(room, slot, asyncio.current_task())


async def on_expire(room: "Room", slot: int, task: Optional[asyncio.Task] = None) -> None:
    """Hand an unreclaimed slot to the next live spectator or release it.

    *task* is the lease task that fired; if the room has since moved on to
    another lease (or none) for this slot the call is a no-op.
    """
    async with room.lock:
        if task is not None and room.lease_tasks[slot] is not task:
            return
        # Detach first so seating below does not cancel the running task.
        room.lease_tasks[slot] = None
        if room.slots[slot] is not None or not room.leases[slot].pending:
            return

        promoted = room.spectators.promote_next()
        if promoted is not None:
            room.seat(slot, promoted)
            logger.info("room=%s slot=%d lease expired, promoted spectator %r", room.room_id, slot, promoted.device_id)
            await send(promoted, RoleAssigned(index=slot))
            if room.state is not None:
                await send(promoted, StateSnapshot(state=room.state))
            return

        room.player_token[slot] = ""
        room.leases[slot] = Lease.unset()
        logger.info("room=%s slot=%d lease expired, no spectator to promote", room.room_id, slot)


__all__ = [
    "now_ms",
    "LeaseKind",
    "Lease",
    "cancel_lease_task",
    "start_lease",
    "on_expire",
]
