from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Optional, Set

from .session import Session


class SpectatorQueue:
    """Spectating sessions plus the first-come order used for promotion.

    Membership (``sessions``) and promotion order (``queue``) are tracked
    separately. Leaving only removes the session; its device id stays
    queued and is skipped the next time :meth:`promote_next` reaches it.
    """

    def __init__(self) -> None:
        self.sessions: Set[Session] = set()
        self.queue: Deque[str] = deque()

    def __len__(self) -> int:
        return len(self.sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self.sessions))

    def __contains__(self, session: object) -> bool:
        return session in self.sessions

    def add(self, session: Session) -> None:
        """Register *session* as a spectator and queue its device once."""
        self.sessions.add(session)
        if session.device_id and session.device_id not in self.queue:
            self.queue.append(session.device_id)

    def discard(self, session: Session) -> None:
        self.sessions.discard(session)

    def promote_next(self) -> Optional[Session]:
        """Pop queued device ids until one belongs to a live spectator.

        The matching session is removed from the spectator set and returned;
        ids with no live session are dropped. ``None`` once the queue is
        exhausted.
        """
        while self.queue:
            device_id = self.queue.popleft()
            for candidate in list(self.sessions):
                if candidate.is_open and candidate.device_id == device_id:
                    self.sessions.discard(candidate)
                    return candidate
        return None


__all__ = ["SpectatorQueue"]
