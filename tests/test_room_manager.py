import pytest

from codecollab.core.errors import NotAMember, RoomAlreadyExists, RoomNotFound
from codecollab.services.connection_manager import Session
from codecollab.services.room_manager import Room, RoomRegistry
from codecollab.services.samples import JAVASCRIPT, PYTHON, sample_for


def test_create_room_seeds_default_sample_and_first_member() -> None:
    registry = RoomRegistry()
    alice = Session("alice")

    room = registry.create_room("room-x", alice)

    assert "room-x" in registry
    assert room.code == sample_for(PYTHON)
    assert room.language_id == PYTHON
    assert room.is_member(alice)
    assert alice.room_id == "room-x"


def test_create_room_with_language() -> None:
    registry = RoomRegistry()
    room = registry.create_room("room-js", Session("alice"), language_id=JAVASCRIPT)
    assert room.code == sample_for(JAVASCRIPT)


def test_unknown_language_seeds_empty_buffer() -> None:
    registry = RoomRegistry()
    room = registry.create_room("room-go", Session("alice"), language_id=60)
    assert room.code == ""


def test_duplicate_create_is_rejected_without_overwrite() -> None:
    registry = RoomRegistry()
    alice, bob = Session("alice"), Session("bob")
    room = registry.create_room("room-x", alice)
    room.apply_code_change(alice, "print(1)")

    with pytest.raises(RoomAlreadyExists):
        registry.create_room("room-x", bob)

    assert registry.get_room("room-x") is room
    assert room.code == "print(1)"
    assert bob.room_id is None


def test_join_missing_room_raises() -> None:
    registry = RoomRegistry()
    with pytest.raises(RoomNotFound):
        registry.join_room("room-missing", Session("carol"))
    assert len(registry) == 0


def test_join_returns_room_with_current_code() -> None:
    registry = RoomRegistry()
    alice, bob = Session("alice"), Session("bob")
    registry.create_room("room-x", alice).apply_code_change(alice, "x = 2")

    room = registry.join_room("room-x", bob)

    assert room.code == "x = 2"
    assert room.member_count == 2


def test_join_moves_session_out_of_previous_room() -> None:
    registry = RoomRegistry()
    alice, bob, carol = Session("alice"), Session("bob"), Session("carol")
    registry.create_room("room-a", alice)
    registry.join_room("room-a", bob)
    registry.create_room("room-b", carol)

    registry.join_room("room-b", bob)

    assert not registry.get_room("room-a").is_member(bob)
    assert registry.get_room("room-b").is_member(bob)
    assert bob.room_id == "room-b"


def test_leave_is_idempotent_and_destroys_empty_room() -> None:
    registry = RoomRegistry()
    alice, bob = Session("alice"), Session("bob")
    registry.create_room("room-x", alice)
    registry.join_room("room-x", bob)

    assert registry.leave_room("room-x", bob) is not None
    assert registry.leave_room("room-x", bob) is None
    assert "room-x" in registry

    registry.leave_room("room-x", alice)
    assert "room-x" not in registry
    with pytest.raises(RoomNotFound):
        registry.join_room("room-x", bob)


def test_remove_session_everywhere() -> None:
    registry = RoomRegistry()
    alice = Session("alice")
    registry.create_room("room-x", alice)

    left = registry.remove_session_everywhere(alice)

    assert left is not None and left.id == "room-x"
    assert alice.room_id is None
    assert registry.remove_session_everywhere(alice) is None


def test_code_change_from_non_member_raises() -> None:
    room = Room("room-x", code="original")
    with pytest.raises(NotAMember):
        room.apply_code_change(Session("mallory"), "pwned")
    assert room.code == "original"


def test_member_check_is_by_identity() -> None:
    room = Room("room-x")
    room.add_member(Session("sid-1"))
    # A new connection reusing an id is not the member
    assert not room.is_member(Session("sid-1"))


def test_typing_entries_expire() -> None:
    room = Room("room-x", typing_timeout=1.0)
    bob = Session("bob", display_name="Bob")
    room.add_member(bob)

    room.mark_typing(bob, now=10.0)

    assert room.typing_names(now=10.5) == ["Bob"]
    assert room.typing_names(now=11.0) == []
    assert room.typing == {}


def test_leaving_clears_typing() -> None:
    room = Room("room-x")
    bob = Session("bob", display_name="Bob")
    room.add_member(bob)
    room.mark_typing(bob, now=0.0)

    room.remove_member(bob)

    assert room.typing_names(now=0.1) == []


def test_other_members_excludes_sender() -> None:
    room = Room("room-x")
    alice, bob = Session("alice"), Session("bob")
    room.add_member(alice)
    room.add_member(bob)

    assert room.other_members("alice") == [bob]
    assert len(room.other_members()) == 2


def test_lock_is_shared_per_key() -> None:
    registry = RoomRegistry()
    lock = registry.lock("room-x")
    assert registry.lock("room-x") is lock
    assert registry.lock("room-y") is not lock
