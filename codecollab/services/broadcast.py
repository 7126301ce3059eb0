# codecollab/services/broadcast.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from codecollab.core.logging import get_logger
from codecollab.services.connection_manager import Session, SessionManager
from codecollab.services.room_manager import RoomRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class Outbound:
    """One event addressed to a set of connections."""

    targets: Tuple[str, ...]
    event: str
    payload: Any


class BroadcastRouter:
    """
    Fans events out to the sessions of a room.

    Delivery only enqueues onto each session's outbox, it never awaits the
    network. Callers deliver while still holding the room lock, which makes
    the lock the single ordering point for everything a room emits.
    """

    def __init__(self, registry: RoomRegistry, sessions: SessionManager) -> None:
        self.registry = registry
        self.sessions = sessions

    def broadcast(
        self,
        room_id: str,
        event: str,
        payload: Any,
        exclude_connection_id: Optional[str] = None,
    ) -> Outbound:
        """Address ``event`` to every member of ``room_id`` except the excluded one."""
        room = self.registry.get_room(room_id)
        if room is None:
            return Outbound((), event, payload)
        targets = tuple(s.connection_id for s in room.other_members(exclude_connection_id))
        return Outbound(targets, event, payload)

    @staticmethod
    def reply(session: Session, event: str, payload: Any) -> Outbound:
        return Outbound((session.connection_id,), event, payload)

    def deliver(self, outbounds: Iterable[Outbound]) -> int:
        """
        Enqueue each outbound event for its targets.

        Sessions that are gone or closed are skipped; the rest still receive
        the event.

        Returns:
            Number of successful enqueues
        """
        delivered = 0
        for outbound in outbounds:
            for connection_id in outbound.targets:
                session = self.sessions.get(connection_id)
                if session is None or session.closed:
                    logger.debug("[routing] Skipped %s for gone connection %s", outbound.event, connection_id)
                    continue
                if session.enqueue(outbound.event, outbound.payload):
                    delivered += 1
        return delivered
