"""In-memory box registry: box texts plus which connections view which box."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Set
from uuid import uuid4

from .store import BoxStore

SendCallable = Callable[[dict], Awaitable[None]]
Clock = Callable[[], float]

logger = logging.getLogger(__name__)


def _always_open() -> bool:
    return True


@dataclass(slots=True, eq=False)
class BoxConnection:
    """Transport handle for one client. Compared and hashed by identity."""

    connection_id: str
    send: SendCallable
    is_open: Callable[[], bool] = field(default=_always_open)


@dataclass(frozen=True, slots=True)
class Membership:
    """Snapshot of a box's viewers taken while the registry lock was held."""

    box_id: str
    members: tuple[BoxConnection, ...]

    @property
    def count(self) -> int:
        return len(self.members)


class BoxRegistry:
    """Own box texts and room membership behind a single lock.

    ``_rooms`` maps box id to its viewers and ``_locations`` maps each viewer
    back to its box. Both are only changed together, under ``_lock``.
    """

    def __init__(self, store: Optional[BoxStore] = None, clock: Clock = time.time) -> None:
        self._store = store if store is not None else BoxStore()
        self._clock = clock
        self._rooms: Dict[str, Set[BoxConnection]] = {}
        self._locations: Dict[BoxConnection, str] = {}
        self._lock = asyncio.Lock()

    async def join(
        self, box_id: str, connection: BoxConnection
    ) -> tuple[Membership, Optional[Membership]]:
        """Add a connection to a box's room.

        Returns the joined room's snapshot and, when the connection was moved out
        of another box, that box's snapshot after the move.
        """

        async with self._lock:
            departed = None
            previous = self._locations.get(connection)
            if previous is not None and previous != box_id:
                departed = self._detach(connection)
            self._rooms.setdefault(box_id, set()).add(connection)
            self._locations[connection] = box_id
            return self._snapshot(box_id), departed

    async def locate(self, connection: BoxConnection) -> Optional[str]:
        async with self._lock:
            return self._locations.get(connection)

    async def leave(self, connection: BoxConnection) -> Optional[Membership]:
        """Remove a connection from whichever room holds it, dropping empty rooms."""

        async with self._lock:
            return self._detach(connection)

    async def set_text(self, box_id: str, text: str) -> None:
        async with self._lock:
            self._store.set(box_id, text, self._clock())

    async def apply_text(self, connection: BoxConnection, text: str) -> Optional[Membership]:
        """Store text sent by a connection for its current box.

        Returns None without touching anything if the connection is not in a
        room or the box record no longer exists.
        """

        async with self._lock:
            box_id = self._locations.get(connection)
            if box_id is None or box_id not in self._store:
                return None
            self._store.set(box_id, text, self._clock())
            return self._snapshot(box_id)

    async def evict_stale(self, now: float, max_age: float) -> list[str]:
        """Delete boxes last updated strictly before ``now - max_age``."""

        cutoff = now - max_age
        async with self._lock:
            stale = [box_id for box_id, box in self._store.items() if box.last_updated < cutoff]
            for box_id in stale:
                self._store.delete(box_id)
        if stale:
            logger.info("Evicted %d stale boxes", len(stale))
        return stale

    async def ensure_box(self, box_id: str) -> bool:
        """Create an empty box if none exists. Returns True when created."""

        async with self._lock:
            if box_id in self._store:
                return False
            self._store.set(box_id, "", self._clock())
            return True

    async def create_box(self) -> str:
        box_id = str(uuid4())
        await self.ensure_box(box_id)
        return box_id

    async def get_text(self, box_id: str) -> Optional[str]:
        async with self._lock:
            box = self._store.get(box_id)
            return box.text if box is not None else None

    def member_count(self, box_id: str) -> int:
        return len(self._rooms.get(box_id, ()))

    def has_room(self, box_id: str) -> bool:
        return box_id in self._rooms

    def _detach(self, connection: BoxConnection) -> Optional[Membership]:
        box_id = self._locations.pop(connection, None)
        if box_id is None:
            return None
        members = self._rooms.get(box_id)
        if members is not None:
            members.discard(connection)
            if not members:
                self._rooms.pop(box_id, None)
        return self._snapshot(box_id)

    def _snapshot(self, box_id: str) -> Membership:
        return Membership(box_id=box_id, members=tuple(self._rooms.get(box_id, ())))


registry = BoxRegistry()
