# codecollab/core/state.py
from __future__ import annotations

from datetime import datetime, timezone

from codecollab.core.config import settings
from codecollab.services.broadcast import BroadcastRouter
from codecollab.services.connection_manager import SessionManager
from codecollab.services.events import EventDispatcher
from codecollab.services.room_manager import RoomRegistry
from codecollab.services.runner import RunnerClient

# App-wide service instances. The services themselves take their collaborators
# as arguments; this module only wires one set of them for the running app.
registry: RoomRegistry
sessions: SessionManager
router: BroadcastRouter
dispatcher: EventDispatcher
runner: RunnerClient

# Metrics
app_start_time: datetime


def reset() -> None:
    """(Re)build the service graph from the current settings."""
    global registry, sessions, router, dispatcher, runner, app_start_time

    registry = RoomRegistry(
        default_language_id=settings.DEFAULT_LANGUAGE_ID,
        typing_timeout=settings.TYPING_TIMEOUT_SECONDS,
    )
    sessions = SessionManager(outbox_max_size=settings.OUTBOX_MAX_SIZE)
    router = BroadcastRouter(registry, sessions)
    dispatcher = EventDispatcher(registry, sessions, router, settings)
    runner = RunnerClient(
        settings.RUNNER_URL,
        api_key=settings.RUNNER_API_KEY,
        timeout=settings.RUNNER_TIMEOUT_SECONDS,
    )
    app_start_time = datetime.now(timezone.utc)


reset()
