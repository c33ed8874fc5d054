"""Best-effort delivery of outbound frames to sessions and whole rooms.

Every send is bounded by ``SEND_TIMEOUT_SECONDS`` and room broadcasts go
to all peers concurrently, so one stalled socket can neither starve the
other recipients nor hold the room lock indefinitely.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from .constants import SEND_TIMEOUT_SECONDS
from .schemas import OutboundMessage, dump
from .session import Session

if TYPE_CHECKING:
    from .room import Room

logger = logging.getLogger(__name__)


async def _deliver(session: Optional[Session], payload: str) -> bool:
    if session is None or not session.is_open:
        return False
    try:
        await asyncio.wait_for(session.send_text(payload), timeout=SEND_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.debug("send to %r timed out after %.1fs", session, SEND_TIMEOUT_SECONDS)
        return False
    except Exception as exc:
        # A peer going away mid-send must not affect anyone else.
        logger.debug("send to %r failed: %s", session, exc)
        return False
    return True


async def send(session: Optional[Session], message: OutboundMessage) -> bool:
    """Unicast *message*; returns whether it was handed to the channel."""
    return await _deliver(session, dump(message))


async def broadcast(room: "Room", message: OutboundMessage) -> int:
    """Send *message* to every member of *room* and return the delivery count."""
    payload = dump(message)
    results = await asyncio.gather(
        *(_deliver(peer, payload) for peer in room.members()),
        return_exceptions=True,
    )
    return sum(1 for ok in results if ok is True)


__all__ = ["send", "broadcast"]
