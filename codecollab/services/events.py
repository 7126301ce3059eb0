# codecollab/services/events.py

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from codecollab.core.config import Settings, settings as default_settings
from codecollab.core.errors import (
    InvalidPayload,
    NotAMember,
    RoomAlreadyExists,
    RoomNotFound,
)
from codecollab.core.logging import get_logger
from codecollab.models.models import (
    ChatMessage,
    ChatMessagePayload,
    CodeChangePayload,
    RoomRequest,
    StopTypingPayload,
    TypingPayload,
)
from codecollab.services.broadcast import BroadcastRouter, Outbound
from codecollab.services.connection_manager import Session, SessionManager
from codecollab.services.room_manager import Room, RoomRegistry

logger = get_logger(__name__)

# Client -> server events, in the order the dispatch table lists them
EVENT_NAMES: Tuple[str, ...] = (
    "createRoom",
    "joinRoom",
    "leaveRoom",
    "codeChange",
    "chatMessage",
    "typing",
    "stopTyping",
)

Handler = Callable[[Session, Any], List[Outbound]]


@dataclass(frozen=True)
class Route:
    model: Type[BaseModel]
    handler: Handler
    # Event answered with the error message when the request fails
    error_event: Optional[str] = None
    # Raises for a doomed request before the session leaves its current room
    precheck: Optional[Callable[[str], None]] = None


class EventDispatcher:
    """
    Routes client events to their handlers.

    Every handler takes ``(session, payload)`` and returns the outbound events
    it produced. The dispatcher parses the payload, holds the target room's
    lock while the handler runs, and delivers the outbound events before the
    lock is released.

    Error handling:
        RoomAlreadyExists / RoomNotFound: reported to the origin (joinError)
        InvalidPayload: reported on createRoom/joinRoom, dropped elsewhere
        NotAMember: dropped, so stale sessions learn nothing about the room

    Usage:
        dispatcher = EventDispatcher(registry, sessions, router)
        await dispatcher.dispatch(session, "joinRoom", "room-x")
    """

    def __init__(
        self,
        registry: RoomRegistry,
        sessions: SessionManager,
        router: BroadcastRouter,
        settings: Settings = default_settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.router = router
        self.settings = settings
        self.clock = clock
        self.stats: Counter = Counter()

        self.routes: Dict[str, Route] = {
            "createRoom": Route(RoomRequest, self.on_create_room, "joinError", registry.ensure_absent),
            "joinRoom": Route(RoomRequest, self.on_join_room, "joinError", registry.ensure_exists),
            "leaveRoom": Route(RoomRequest, self.on_leave_room),
            "codeChange": Route(CodeChangePayload, self.on_code_change),
            "chatMessage": Route(ChatMessagePayload, self.on_chat_message),
            "typing": Route(TypingPayload, self.on_typing),
            "stopTyping": Route(StopTypingPayload, self.on_stop_typing),
        }

    @property
    def events(self) -> Tuple[str, ...]:
        return tuple(self.routes)

    # ------------------------------------------------------------------
    # Entry points used by the transports
    # ------------------------------------------------------------------

    async def dispatch(self, session: Session, event: str, payload: Any) -> bool:
        """
        Handle one inbound event to completion.

        Returns:
            False when the event is unknown or the session is already closed
        """
        route = self.routes.get(event)
        if route is None:
            logger.warning("Unknown event %r from %s", event, session.connection_id)
            return False
        if session.closed:
            logger.debug("Dropping %s from closed connection %s", event, session.connection_id)
            return False

        self.stats["events"] += 1
        self.stats[event] += 1

        try:
            request = self._parse(route.model, event, payload)

            if route.precheck is not None and session.room_id not in (None, request.room):
                route.precheck(request.room)
                await self._leave_current(session)

            async with self.registry.lock(request.room):
                self.router.deliver(route.handler(session, request))

        except (RoomAlreadyExists, RoomNotFound) as e:
            logger.info("%s rejected for %s: %s", event, session.connection_id, e.message)
            self.router.deliver([self.router.reply(session, route.error_event or "error", e.message)])

        except InvalidPayload as e:
            if route.error_event is not None:
                self.router.deliver([self.router.reply(session, route.error_event, e.message)])
            else:
                logger.warning("Dropped %s from %s: %s", event, session.connection_id, e.message)

        except NotAMember as e:
            logger.debug("Dropped %s: %s", event, e.message)

        return True

    async def disconnect(self, session: Session) -> None:
        """Transport hung up: leave the current room, then forget the session."""
        await self._leave_current(session)
        self.sessions.disconnect(session)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_create_room(self, session: Session, request: RoomRequest) -> List[Outbound]:
        room = self.registry.create_room(request.room, session, request.language_id)
        session.rename(request.username)
        return [self.router.reply(session, "roomCreated", room.id)]

    def on_join_room(self, session: Session, request: RoomRequest) -> List[Outbound]:
        room = self.registry.get_room(request.room)
        rejoin = room is not None and room.is_member(session)
        room = self.registry.join_room(request.room, session)
        session.rename(request.username)

        # Code is read under the room lock, so it is the current buffer
        outbound = [self.router.reply(session, "roomJoined", {"roomId": room.id, "code": room.code})]
        if not rejoin:
            outbound.append(
                self.router.broadcast(room.id, "userJoined", session.display_name, session.connection_id)
            )
        return outbound

    def on_leave_room(self, session: Session, request: RoomRequest) -> List[Outbound]:
        return self._leave(session, request.room)

    def on_code_change(self, session: Session, payload: CodeChangePayload) -> List[Outbound]:
        room = self._member_room(session, payload.room)
        if len(payload.code) > self.settings.MAX_CODE_LENGTH:
            raise InvalidPayload(f"Code exceeds {self.settings.MAX_CODE_LENGTH} characters")

        room.apply_code_change(session, payload.code)
        self.stats["code_changes"] += 1
        return [self.router.broadcast(room.id, "codeUpdate", payload.code, session.connection_id)]

    def on_chat_message(self, session: Session, payload: ChatMessagePayload) -> List[Outbound]:
        room = self._member_room(session, payload.room)
        if not payload.message.strip():
            raise InvalidPayload("Message must not be empty")
        if len(payload.message) > self.settings.MAX_CHAT_LENGTH:
            raise InvalidPayload(f"Message exceeds {self.settings.MAX_CHAT_LENGTH} characters")

        session.rename(payload.sender)
        message = ChatMessage(
            message=payload.message,
            timestamp=payload.timestamp or datetime.now(timezone.utc).isoformat(),
            id=session.connection_id,
            sender=session.display_name,
        )
        self.stats["chat_messages"] += 1
        return [
            self.router.broadcast(room.id, "newChatMessage", message.model_dump(), session.connection_id)
        ]

    def on_typing(self, session: Session, payload: TypingPayload) -> List[Outbound]:
        room = self._member_room(session, payload.room)
        session.rename(payload.username)
        room.mark_typing(session, now=self.clock())
        body = {"userId": session.connection_id, "username": session.display_name}
        return [self.router.broadcast(room.id, "userTyping", body, session.connection_id)]

    def on_stop_typing(self, session: Session, payload: StopTypingPayload) -> List[Outbound]:
        room = self._member_room(session, payload.room)
        room.clear_typing(session)
        body = {"userId": session.connection_id}
        return [self.router.broadcast(room.id, "userStoppedTyping", body, session.connection_id)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse(self, model: Type[BaseModel], event: str, payload: Any) -> Any:
        # Room events accept a bare room id string as well as an object
        if model is RoomRequest and isinstance(payload, str):
            payload = {"roomId": payload}
        try:
            request = model.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayload(f"Invalid {event} payload: {e.errors()[0]['msg']}") from e

        if len(request.room) > self.settings.MAX_ROOM_ID_LENGTH:
            raise InvalidPayload(f"Room id exceeds {self.settings.MAX_ROOM_ID_LENGTH} characters")
        return request

    def _member_room(self, session: Session, room_id: str) -> Room:
        room = self.registry.get_room(room_id)
        if room is None or not room.is_member(session):
            raise NotAMember(room_id, session.connection_id)
        return room

    def _leave(self, session: Session, room_id: str) -> List[Outbound]:
        room = self.registry.leave_room(room_id, session)
        if room is None:
            return []
        return [self.router.broadcast(room_id, "userLeft", session.display_name, session.connection_id)]

    async def _leave_current(self, session: Session) -> None:
        room_id = session.room_id
        if room_id is None:
            return
        async with self.registry.lock(room_id):
            # The session may have moved while we waited for the lock
            if session.room_id == room_id:
                self.router.deliver(self._leave(session, room_id))
