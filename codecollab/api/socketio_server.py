# codecollab/api/socketio_server.py

from __future__ import annotations

from typing import Any, List, Union

import socketio

from codecollab.core import state
from codecollab.core.logging import get_logger
from codecollab.services.events import EVENT_NAMES

logger = get_logger(__name__)


def create_socketio_server(cors_allowed_origins: Union[str, List[str]] = "*") -> socketio.AsyncServer:
    """
    Socket.IO transport for the browser client (socket.io-client).

    Each dispatcher event is registered as a Socket.IO event of the same name.
    Outbound events are emitted to the originating ``sid`` only; room fan-out
    is done by the BroadcastRouter, not by Socket.IO rooms.
    """
    if cors_allowed_origins == ["*"]:
        cors_allowed_origins = "*"

    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_allowed_origins,
        ping_timeout=25,
        ping_interval=20,
    )

    @sio.event
    async def connect(sid, environ, auth=None):
        async def send(event: str, payload: Any) -> None:
            await sio.emit(event, payload, to=sid)

        async def close() -> None:
            await sio.disconnect(sid)

        state.sessions.connect(sid, sender=send, closer=close)

    @sio.event
    async def disconnect(sid, reason=None):
        session = state.sessions.get(sid)
        if session is not None:
            await state.dispatcher.disconnect(session)

    for event in EVENT_NAMES:
        sio.on(event, _make_handler(event))

    return sio


def _make_handler(event: str):
    async def handler(sid, data=None):
        session = state.sessions.get(sid)
        if session is None:
            logger.warning("Event %s from unknown sid %s", event, sid)
            return
        await state.dispatcher.dispatch(session, event, data)

    handler.__name__ = f"on_{event}"
    return handler
