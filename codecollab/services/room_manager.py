# codecollab/services/room_manager.py

from __future__ import annotations

import asyncio
import time
import weakref
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Tuple

from codecollab.core.errors import NotAMember, RoomAlreadyExists, RoomNotFound
from codecollab.core.logging import get_logger
from codecollab.models.models import RoomSummary
from codecollab.services.connection_manager import Session
from codecollab.services.samples import sample_for

logger = get_logger(__name__)

# ============================================================================
# ROOM
# ============================================================================

class Room:
    """
    One collaborative room: the authoritative code buffer plus its members.

    The buffer follows last-writer-wins. Every accepted code change replaces
    ``code`` wholesale; concurrent editors overwrite each other and no merge
    is attempted.

    Attributes:
        id: Caller-supplied room identifier
        code: Current shared buffer
        language_id: Runner language the buffer was seeded with
        members: Maps connection_id -> Session
        typing: Maps connection_id -> (display_name, monotonic expiry)
    """

    def __init__(
        self,
        room_id: str,
        code: str = "",
        language_id: int = 71,
        typing_timeout: float = 1.0,
    ) -> None:
        self.id = room_id
        self.code = code
        self.language_id = language_id
        self.typing_timeout = typing_timeout
        self.members: Dict[str, Session] = {}
        self.typing: Dict[str, Tuple[str, float]] = {}
        self.created_at = datetime.now(timezone.utc)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def is_member(self, session: Session) -> bool:
        return self.members.get(session.connection_id) is session

    def add_member(self, session: Session) -> None:
        self.members[session.connection_id] = session

    def remove_member(self, session: Session) -> bool:
        if not self.is_member(session):
            return False
        del self.members[session.connection_id]
        self.typing.pop(session.connection_id, None)
        return True

    def other_members(self, exclude_connection_id: Optional[str] = None) -> List[Session]:
        return [s for cid, s in self.members.items() if cid != exclude_connection_id]

    def apply_code_change(self, session: Session, new_code: str) -> None:
        """Replace the buffer with ``new_code`` if ``session`` is a member."""
        if not self.is_member(session):
            raise NotAMember(self.id, session.connection_id)
        self.code = new_code

    def mark_typing(self, session: Session, now: Optional[float] = None) -> None:
        if not self.is_member(session):
            raise NotAMember(self.id, session.connection_id)
        now = time.monotonic() if now is None else now
        self.typing[session.connection_id] = (session.display_name, now + self.typing_timeout)

    def clear_typing(self, session: Session) -> bool:
        return self.typing.pop(session.connection_id, None) is not None

    def typing_names(self, now: Optional[float] = None) -> List[str]:
        """Names of members currently typing. Expired entries are pruned."""
        now = time.monotonic() if now is None else now
        expired = [cid for cid, (_, expires_at) in self.typing.items() if expires_at <= now]
        for cid in expired:
            del self.typing[cid]
        return [name for name, _ in self.typing.values()]

    def to_summary(self) -> RoomSummary:
        return RoomSummary(
            id=self.id,
            language_id=self.language_id,
            member_count=self.member_count,
            members=[s.display_name for s in self.members.values()],
            typing=self.typing_names(),
            code_length=len(self.code),
            created_at=self.created_at.isoformat(),
        )


# ============================================================================
# ROOM REGISTRY
# ============================================================================

class RoomRegistry:
    """
    In-memory registry of live rooms.

    Rooms only exist while they have members: the last leave destroys the
    room, and its id can then be claimed again with a new create.

    Mutations of one room must run under ``lock(room_id)``. Locks are kept
    per room key so unrelated rooms never wait on each other. They live in a
    WeakValueDictionary: a lock stays registered exactly as long as someone
    holds or waits on it, so every caller for a key sees the same lock.

    Usage:
        registry = RoomRegistry()
        async with registry.lock("room-x"):
            room = registry.create_room("room-x", session)
    """

    def __init__(self, default_language_id: int = 71, typing_timeout: float = 1.0) -> None:
        self.rooms: Dict[str, Room] = {}
        self.default_language_id = default_language_id
        self.typing_timeout = typing_timeout
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __contains__(self, room_id: object) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self.rooms.values()))

    def lock(self, room_id: str) -> asyncio.Lock:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[room_id] = lock
        return lock

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def list_rooms(self) -> List[Room]:
        return list(self.rooms.values())

    def ensure_absent(self, room_id: str) -> None:
        if room_id in self.rooms:
            raise RoomAlreadyExists(room_id)

    def ensure_exists(self, room_id: str) -> None:
        if room_id not in self.rooms:
            raise RoomNotFound(room_id)

    def create_room(
        self,
        room_id: str,
        session: Session,
        language_id: Optional[int] = None,
    ) -> Room:
        """
        Register a new room with ``session`` as its first member.

        Raises:
            RoomAlreadyExists: ``room_id`` is already registered
        """
        self.ensure_absent(room_id)
        self._detach(session)

        language_id = self.default_language_id if language_id is None else language_id
        room = Room(
            room_id,
            code=sample_for(language_id),
            language_id=language_id,
            typing_timeout=self.typing_timeout,
        )
        room.add_member(session)
        session.room_id = room_id
        self.rooms[room_id] = room

        logger.info("✓ Room %s created by %s", room_id, session.connection_id)
        return room

    def join_room(self, room_id: str, session: Session) -> Room:
        """
        Attach ``session`` to an existing room. Joining the room the session is
        already in is a no-op.

        Raises:
            RoomNotFound: ``room_id`` is not registered
        """
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        if room.is_member(session):
            return room

        self._detach(session)
        room.add_member(session)
        session.room_id = room_id

        logger.info("→ %s joined %s (%d members)", session.connection_id, room_id, room.member_count)
        return room

    def leave_room(self, room_id: str, session: Session) -> Optional[Room]:
        """
        Remove ``session`` from ``room_id``. Idempotent.

        Returns:
            The room the session left, or None when it was not a member.
            The returned room may already be destroyed.
        """
        room = self.rooms.get(room_id)
        if room is None or not room.remove_member(session):
            if session.room_id == room_id:
                session.room_id = None
            return None

        session.room_id = None
        logger.info("← %s left %s (%d members)", session.connection_id, room_id, room.member_count)

        if room.is_empty:
            del self.rooms[room_id]
            logger.info("✗ Room %s destroyed (empty)", room_id)
        return room

    def remove_session_everywhere(self, session: Session) -> Optional[Room]:
        if session.room_id is None:
            return None
        return self.leave_room(session.room_id, session)

    def _detach(self, session: Session) -> None:
        if session.room_id is not None:
            self.leave_room(session.room_id, session)
