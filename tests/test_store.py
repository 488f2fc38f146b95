"""Room and message store."""

from datetime import timedelta

from hall.crud import crud_message, crud_room
from hall.models.chat_room import ChatRoom


def test_get_or_create_room_is_idempotent(db) -> None:
    first = crud_room.get_or_create_room(db, "northern-lights")
    second = crud_room.get_or_create_room(db, "northern-lights")

    assert first.id == second.id
    assert db.query(ChatRoom).count() == 1


def test_distinct_passwords_get_distinct_rooms(db) -> None:
    one = crud_room.get_or_create_room(db, "password-one")
    two = crud_room.get_or_create_room(db, "password-two")

    assert one.id != two.id
    assert crud_room.get_room(db, one.id).password == "password-one"


def test_create_message_assigns_id_and_timestamp(db) -> None:
    room = crud_room.get_or_create_room(db, "northern-lights")

    message = crud_message.create_message(db, room_id=room.id, username="Astrid", content="Skål!")

    assert message.id is not None
    assert message.created_at is not None
    assert message.type == "text"
    assert message.file_public_id is None


def test_messages_are_listed_oldest_first(db) -> None:
    room = crud_room.get_or_create_room(db, "northern-lights")
    late = crud_message.create_message(db, room_id=room.id, username="Astrid", content="second")
    early = crud_message.create_message(db, room_id=room.id, username="Bjorn", content="first")
    early.created_at = late.created_at - timedelta(seconds=5)
    db.commit()

    contents = [m.content for m in crud_message.get_room_messages(db, room.id)]

    assert contents == ["first", "second"]


def test_messages_of_unknown_room_are_empty(db) -> None:
    assert crud_message.get_room_messages(db, 9999) == []


def test_delete_room_messages_keeps_room_and_other_rooms(db) -> None:
    room = crud_room.get_or_create_room(db, "northern-lights")
    other = crud_room.get_or_create_room(db, "southern-cross")
    for content in ("a", "b", "c"):
        crud_message.create_message(db, room_id=room.id, username="Astrid", content=content)
    crud_message.create_message(db, room_id=other.id, username="Bjorn", content="stay")

    deleted = crud_message.delete_room_messages(db, room.id)

    assert deleted == 3
    assert crud_message.get_message_count(db, room.id) == 0
    assert crud_message.get_message_count(db, other.id) == 1
    assert crud_room.get_or_create_room(db, "northern-lights").id == room.id
