from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from .constants import ROLE_LEASE_MS, SLOT_COUNT
from .lease import Lease, cancel_lease_task, now_ms
from .session import Role, Session
from .spectators import SpectatorQueue

# NOTE: ``Room`` only holds state and the small helpers that keep slots and roles consistent.
# The join/lease/disconnect flows that drive it live in ``roles``,
# ``lease`` and ``handlers``.


class Room:
    """Runtime state and live connections for one named game room."""

    def __init__(self, room_id: str, lease_ms: int = ROLE_LEASE_MS):
        self.room_id = room_id
        self.lease_ms = lease_ms
        # Player positions and the device that last legitimately held each one
        self.slots: List[Optional[Session]] = [None] * SLOT_COUNT
        self.player_token: List[str] = [""] * SLOT_COUNT
        self.leases: List[Lease] = [Lease.unset() for _ in range(SLOT_COUNT)]
        self.lease_tasks: List[Optional[asyncio.Task]] = [None] * SLOT_COUNT
        self.spectators = SpectatorQueue()
        # Last full snapshot pushed by a player; opaque to the relay
        self.state: Optional[Dict[str, Any]] = None
        self.last_updated: int = now_ms()

        # Task created when the room becomes empty; used to prune after a delay
        self.cleanup_task: Optional[asyncio.Task] = None

        # Serialises every handler and timer touching this room
        self.lock = asyncio.Lock()

    # -------------------- Membership -------------------- #

    def members(self) -> List[Session]:
        """Occupied player slots followed by every spectator."""
        players = [s for s in self.slots if s is not None]
        return players + list(self.spectators)

    def occupant_count(self) -> int:
        return sum(1 for s in self.slots if s is not None) + len(self.spectators)

    def is_empty(self) -> bool:
        return self.occupant_count() == 0

    def seat(self, slot: int, session: Session) -> None:
        """Put *session* into player *slot* and make its device the token holder."""
        cancel_lease_task(self, slot)
        self.slots[slot] = session
        session.role = Role.player(slot)
        self.player_token[slot] = session.device_id
        self.leases[slot] = Lease.occupied()

    def add_spectator(self, session: Session) -> int:
        """Add *session* to the audience and return its spectator ordinal."""
        self.spectators.add(session)
        session.role = Role.spectator(SLOT_COUNT + len(self.spectators) - 1)
        return session.role.index

    # -------------------- Snapshot -------------------- #

    def update_state(self, state: Dict[str, Any]) -> None:
        self.state = state
        self.last_updated = now_ms()

    def cancel_timers(self) -> None:
        for slot in range(SLOT_COUNT):
            cancel_lease_task(self, slot)
        if self.cleanup_task is not None and not self.cleanup_task.done():
            self.cleanup_task.cancel()
        self.cleanup_task = None

    def __repr__(self) -> str:
        return f"<Room {self.room_id!r} occupants={self.occupant_count()}>"


__all__ = ["Room"]
