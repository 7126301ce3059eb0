# codecollab/services/connection_manager.py

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from codecollab.core.logging import get_logger

logger = get_logger(__name__)

Sender = Callable[[str, Any], Awaitable[None]]
Closer = Callable[[], Awaitable[None]]

DEFAULT_DISPLAY_NAME = "Guest"

# ============================================================================
# SESSION
# ============================================================================

class Session:
    """
    Server-side binding of one live connection.

    Outbound events go through ``outbox``, a bounded FIFO drained by a single
    writer task, so a connection sees events in the order they were enqueued
    and a slow socket never blocks the room that produced the event.

    Attributes:
        connection_id: Transport-assigned id, unique while the connection lives
        display_name: Name shown to other members, not unique
        room_id: Room the session is in, or None
    """

    def __init__(
        self,
        connection_id: str,
        sender: Optional[Sender] = None,
        closer: Optional[Closer] = None,
        outbox_max_size: int = 1000,
        display_name: str = DEFAULT_DISPLAY_NAME,
    ) -> None:
        self.connection_id = connection_id
        self.display_name = display_name
        self.room_id: Optional[str] = None
        self.closed = False
        self.outbox: asyncio.Queue[Tuple[str, Any]] = asyncio.Queue(maxsize=outbox_max_size)
        self._sender = sender
        self._closer = closer
        self._writer: Optional[asyncio.Task] = None
        self._hang_up_task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"Session({self.connection_id!r}, name={self.display_name!r}, room={self.room_id!r})"

    def rename(self, name: Optional[str]) -> None:
        if name and name.strip():
            self.display_name = name.strip()

    def enqueue(self, event: str, payload: Any) -> bool:
        """
        Queue an event for this connection without blocking.

        Returns:
            False when the session is closed or its outbox overflowed. An
            overflow closes the session.
        """
        if self.closed:
            return False
        try:
            self.outbox.put_nowait((event, payload))
        except asyncio.QueueFull:
            logger.warning("Outbox full for %s - dropping slow connection", self.connection_id)
            self.close()
            return False
        return True

    def drain_pending(self) -> List[Tuple[str, Any]]:
        """Pop every queued event without sending it."""
        pending = []
        while not self.outbox.empty():
            pending.append(self.outbox.get_nowait())
        return pending

    def start(self) -> None:
        """Start the writer task. Sessions without a sender keep events queued."""
        if self._sender is None or self._writer is not None:
            return
        self._writer = asyncio.create_task(self._write_loop(), name=f"session-writer-{self.connection_id}")

    async def _write_loop(self) -> None:
        while True:
            event, payload = await self.outbox.get()
            try:
                await self._sender(event, payload)
            except Exception as e:
                logger.error("Send error on %s (%s): %s", self.connection_id, event, e)
                self.close()
                return

    def close(self, hang_up: bool = True) -> None:
        if self.closed:
            return
        self.closed = True

        writer = self._writer
        if writer is not None and not writer.done() and writer is not asyncio.current_task():
            writer.cancel()

        # Ask the transport to hang up; its disconnect path cleans up membership
        if hang_up and self._closer is not None:
            closer = self._closer
            self._closer = None
            try:
                self._hang_up_task = asyncio.get_running_loop().create_task(self._hang_up(closer))
            except RuntimeError:
                logger.debug("No running loop to close %s", self.connection_id)

    async def _hang_up(self, closer: Closer) -> None:
        try:
            await closer()
        except Exception as e:
            logger.debug("Close failed for %s: %s", self.connection_id, e)


# ============================================================================
# SESSION MANAGER
# ============================================================================

class SessionManager:
    """
    Tracks every live connection by its connection id.

    Sessions are created on transport connect and removed on disconnect. Room
    membership is owned by the RoomRegistry; disconnect cleanup is driven by
    the event dispatcher so that the room is left under its lock first.
    """

    def __init__(self, outbox_max_size: int = 1000) -> None:
        self.sessions: Dict[str, Session] = {}
        self.outbox_max_size = outbox_max_size

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self.sessions

    def connect(
        self,
        connection_id: str,
        sender: Optional[Sender] = None,
        closer: Optional[Closer] = None,
    ) -> Session:
        existing = self.sessions.get(connection_id)
        if existing is not None and not existing.closed:
            logger.warning("Connection %s registered twice - reusing session", connection_id)
            return existing

        session = Session(
            connection_id,
            sender=sender,
            closer=closer,
            outbox_max_size=self.outbox_max_size,
        )
        self.sessions[connection_id] = session
        session.start()

        logger.info("✓ Connection %s opened. Total: %d", connection_id, len(self.sessions))
        return session

    def get(self, connection_id: str) -> Optional[Session]:
        return self.sessions.get(connection_id)

    def disconnect(self, session: Session) -> None:
        if self.sessions.get(session.connection_id) is session:
            del self.sessions[session.connection_id]
            logger.info("✗ Connection %s closed. Total: %d", session.connection_id, len(self.sessions))
        session.close(hang_up=False)

    def close_all(self) -> None:
        for session in list(self.sessions.values()):
            session.close(hang_up=False)
        self.sessions.clear()
