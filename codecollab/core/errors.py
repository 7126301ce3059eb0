# codecollab/core/errors.py

from __future__ import annotations


class CollabError(Exception):
    """Base class for errors raised while handling a room event."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RoomAlreadyExists(CollabError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room {room_id} already exists")
        self.room_id = room_id


class RoomNotFound(CollabError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class NotAMember(CollabError):
    """Raised for updates from a session that is not in the target room. Never surfaced."""

    def __init__(self, room_id: str, connection_id: str) -> None:
        super().__init__(f"Connection {connection_id} is not a member of room {room_id}")
        self.room_id = room_id
        self.connection_id = connection_id


class InvalidPayload(CollabError):
    pass
