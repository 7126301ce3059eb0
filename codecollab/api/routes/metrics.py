# codecollab/api/routes/metrics.py
from fastapi import APIRouter
from datetime import datetime, timezone

from codecollab.core import state

router = APIRouter()

@router.get("/metrics")
async def get_metrics():
    """
    Usage metrics endpoint.

    Returns:
        dict: Event statistics since startup plus current capacity:
            - total events and events per second
            - per-kind counters (code changes, chat messages)
            - live connections, rooms, members across rooms

    Example Response:
        {
            "total_events": 1520,
            "events_per_second": 0.42,
            "code_changes": 1300,
            "chat_messages": 40,
            "concurrent_connections": 12,
            "active_rooms": 4,
            "room_members": 11
        }
    """
    stats = state.dispatcher.stats
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()

    total_events = stats["events"]
    if uptime_seconds > 0:
        events_per_second = total_events / uptime_seconds
    else:
        events_per_second = 0

    rooms = state.registry.list_rooms()

    return {
        # Statistics
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "total_events": total_events,
        "events_per_second": round(events_per_second, 2),
        "code_changes": stats["code_changes"],
        "chat_messages": stats["chat_messages"],
        "events_by_name": {name: stats[name] for name in state.dispatcher.events},

        # Capacity
        "concurrent_connections": len(state.sessions),
        "active_rooms": len(rooms),
        "room_members": sum(room.member_count for room in rooms),
    }
