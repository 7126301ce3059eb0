import asyncio
from typing import Any, List, Tuple

from codecollab.services.broadcast import BroadcastRouter, Outbound
from codecollab.services.connection_manager import SessionManager
from codecollab.services.room_manager import RoomRegistry


def _router() -> Tuple[BroadcastRouter, RoomRegistry, SessionManager]:
    registry = RoomRegistry()
    sessions = SessionManager(outbox_max_size=3)
    return BroadcastRouter(registry, sessions), registry, sessions


def test_broadcast_excludes_origin() -> None:
    router, registry, sessions = _router()
    alice, bob, carol = (sessions.connect(cid) for cid in ("alice", "bob", "carol"))
    registry.create_room("room-x", alice)
    registry.join_room("room-x", bob)
    registry.join_room("room-x", carol)

    outbound = router.broadcast("room-x", "codeUpdate", "x = 1", exclude_connection_id="alice")

    assert sorted(outbound.targets) == ["bob", "carol"]
    assert router.deliver([outbound]) == 2
    assert alice.drain_pending() == []
    assert bob.drain_pending() == [("codeUpdate", "x = 1")]


def test_broadcast_to_missing_room_has_no_targets() -> None:
    router, _, _ = _router()
    assert router.broadcast("room-missing", "codeUpdate", "x").targets == ()


def test_deliver_skips_gone_and_closed_sessions() -> None:
    router, _, sessions = _router()
    alive = sessions.connect("alive")
    closed = sessions.connect("closed")
    closed.close()

    delivered = router.deliver([Outbound(("gone", "closed", "alive"), "userLeft", "Bob")])

    assert delivered == 1
    assert alive.drain_pending() == [("userLeft", "Bob")]


def test_outbox_overflow_closes_slow_session() -> None:
    router, _, sessions = _router()
    slow = sessions.connect("slow")

    delivered = router.deliver([Outbound(("slow",), "codeUpdate", str(i)) for i in range(5)])

    assert delivered == 3
    assert slow.closed


def test_writer_sends_in_enqueue_order_and_stops_on_failure() -> None:
    sent: List[Tuple[str, Any]] = []
    hung_up: List[bool] = []

    async def send(event: str, payload: Any) -> None:
        if payload == "boom":
            raise ConnectionResetError("peer went away")
        sent.append((event, payload))

    async def close() -> None:
        hung_up.append(True)

    async def scenario() -> None:
        sessions = SessionManager()
        session = sessions.connect("sid-1", sender=send, closer=close)
        for i in range(3):
            session.enqueue("codeUpdate", str(i))
        session.enqueue("codeUpdate", "boom")
        session.enqueue("codeUpdate", "never sent")
        for _ in range(20):
            await asyncio.sleep(0)
        assert session.closed

    asyncio.run(scenario())

    assert sent == [("codeUpdate", "0"), ("codeUpdate", "1"), ("codeUpdate", "2")]
    assert hung_up == [True]


def test_disconnect_does_not_hang_up_again() -> None:
    hung_up: List[bool] = []

    async def send(event: str, payload: Any) -> None:
        pass

    async def close() -> None:
        hung_up.append(True)

    async def scenario() -> None:
        sessions = SessionManager()
        session = sessions.connect("sid-1", sender=send, closer=close)
        sessions.disconnect(session)
        await asyncio.sleep(0)
        assert "sid-1" not in sessions
        assert session.closed

    asyncio.run(scenario())

    assert hung_up == []


def test_overflow_hang_up_runs_on_a_kept_task() -> None:
    hung_up: List[bool] = []

    async def close() -> None:
        await asyncio.sleep(0)
        hung_up.append(True)

    async def scenario() -> None:
        sessions = SessionManager(outbox_max_size=1)
        # No sender, so nothing drains the outbox
        session = sessions.connect("slow", closer=close)
        session.enqueue("codeUpdate", "1")
        assert not session.enqueue("codeUpdate", "2")

        task = session._hang_up_task
        assert task is not None
        await task
        assert task.done() and task.exception() is None
        assert session._hang_up_task is task

    asyncio.run(scenario())

    assert hung_up == [True]
