# codecollab/api/websocket.py

from __future__ import annotations

import json
import uuid
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from codecollab.core import state
from codecollab.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Plain WebSocket transport for the room protocol.

    Protocol:
    =========

    Every frame in either direction is a JSON object:
        {"event": "<name>", "data": <payload>}

    On connect the server sends:
        {"event": "connected", "data": {"id": "<connection id>"}}
    Clients use the id to recognise their own chat messages.

    Client -> Server Events:
    ------------------------
        createRoom   "room-x" or {"roomId": "room-x", "username": "alice", "languageId": 71}
        joinRoom     "room-x" or {"roomId": "room-x", "username": "bob"}
        leaveRoom    "room-x"
        codeChange   {"room": "room-x", "code": "print(1)"}
        chatMessage  {"room": "room-x", "message": "hi", "timestamp": "...", "sender": "bob"}
        typing       {"room": "room-x", "username": "bob"}
        stopTyping   {"room": "room-x"}

    Server -> Client Events:
    ------------------------
        roomCreated, roomJoined, joinError, codeUpdate, newChatMessage,
        userJoined, userLeft, userTyping, userStoppedTyping

    Error:
        {"event": "error", "data": "..."} for binary frames, invalid JSON or
        unknown events

    Lifecycle:
    ==========
    1. Connection accepted, session created with a fresh connection id
    2. Events are dispatched in arrival order
    3. On disconnect the session leaves its room (others get userLeft)
    """
    await websocket.accept()

    async def send(event: str, payload: Any) -> None:
        await websocket.send_json({"event": event, "data": payload})

    async def close() -> None:
        await websocket.close()

    session = state.sessions.connect(uuid.uuid4().hex, sender=send, closer=close)
    session.enqueue("connected", {"id": session.connection_id})

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            data = frame.get("text")
            if data is None:
                session.enqueue("error", "Binary frames are not supported")
                continue

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                session.enqueue("error", "Invalid JSON")
                continue

            if not isinstance(message, dict):
                session.enqueue("error", "Frame must be a JSON object")
                continue

            event = message.get("event")
            logger.debug(f"Websocket input: Event: {event}, Message: {message}")

            if event not in state.dispatcher.events:
                session.enqueue("error", f"Unknown event: {event}")
                continue

            await state.dispatcher.dispatch(session, event, message.get("data"))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
    finally:
        await state.dispatcher.disconnect(session)
