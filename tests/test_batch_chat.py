"""
Tests for batch chat permissions, reactions, edits and read receipts.
"""
import pytest

from alumnihive.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from alumnihive.db.models.batch_chat import DELETED_PLACEHOLDER, BatchChatReaction
from alumnihive.db.models.message import MessageType
from alumnihive.db.models.user import Role
from alumnihive.services import batch_chat_service
from alumnihive.services.batch_service import add_user_to_batch, create_or_find_batch


@pytest.fixture
def batch(db, alumni):
    batch, _ = create_or_find_batch(db, "IIT Bombay", 2020)
    add_user_to_batch(db, batch, alumni)
    db.commit()
    return batch


def test_only_members_can_post(db, batch, alumni, make_user):
    outsider = make_user(Role.ALUMNI, "a9")

    message = batch_chat_service.send_message(db, batch.id, alumni.id, "Welcome everyone")
    assert message.content == "Welcome everyone"

    with pytest.raises(PermissionDeniedError) as exc_info:
        batch_chat_service.send_message(db, batch.id, outsider.id, "let me in")
    assert exc_info.value.status_code == 403


def test_file_message_requires_file(db, batch, alumni):
    with pytest.raises(ValidationError) as exc_info:
        batch_chat_service.send_message(db, batch.id, alumni.id, "", MessageType.FILE)
    assert exc_info.value.message == "File is required"


def test_students_can_read_outside_alumni_cannot(db, batch, alumni, student, make_user):
    outsider = make_user(Role.ALUMNI, "a9")
    batch_chat_service.send_message(db, batch.id, alumni.id, "hi")

    messages, total = batch_chat_service.get_messages(db, batch.id, student.id)
    assert total == 1

    with pytest.raises(PermissionDeniedError):
        batch_chat_service.get_messages(db, batch.id, outsider.id)


def test_reading_records_receipt_once(db, batch, alumni, student):
    message = batch_chat_service.send_message(db, batch.id, alumni.id, "hi")

    batch_chat_service.get_messages(db, batch.id, student.id)
    batch_chat_service.get_messages(db, batch.id, student.id)
    db.refresh(message)

    assert [r.user_id for r in message.read_by] == [student.id]
    assert batch_chat_service.serialize_chat_message(message, viewer_id=student.id)["isReadByMe"] is True


def test_reaction_last_write_wins(db, batch, alumni):
    message = batch_chat_service.send_message(db, batch.id, alumni.id, "hi")

    batch_chat_service.add_reaction(db, message.id, alumni.id, "👍")
    message = batch_chat_service.add_reaction(db, message.id, alumni.id, "🎉")

    assert [(r.user_id, r.emoji) for r in message.reactions] == [(alumni.id, "🎉")]

    message = batch_chat_service.remove_reaction(db, message.id, alumni.id)
    assert message.reactions == []


def test_concurrent_first_reaction_updates_existing_row(db, batch, alumni, monkeypatch):
    message = batch_chat_service.send_message(db, batch.id, alumni.id, "hi")
    # Row written by a competing request after this one looked for it
    db.add(BatchChatReaction(message_id=message.id, user_id=alumni.id, emoji="👍"))
    db.commit()
    monkeypatch.setattr(batch_chat_service, "_find_reaction", lambda message, user_id: None)

    message = batch_chat_service.add_reaction(db, message.id, alumni.id, "🎉")

    assert [(r.user_id, r.emoji) for r in message.reactions] == [(alumni.id, "🎉")]
    assert db.query(BatchChatReaction).count() == 1


def test_edit_and_delete_are_owner_only(db, batch, alumni, make_user):
    classmate = make_user(Role.ALUMNI, "a2")
    add_user_to_batch(db, batch, classmate)
    db.commit()
    message = batch_chat_service.send_message(db, batch.id, alumni.id, "draft")

    with pytest.raises(PermissionDeniedError):
        batch_chat_service.edit_message(db, message.id, classmate.id, "hijack")
    with pytest.raises(PermissionDeniedError):
        batch_chat_service.delete_message(db, message.id, classmate.id)

    edited = batch_chat_service.edit_message(db, message.id, alumni.id, "final")
    assert edited.content == "final"
    assert edited.is_edited is True

    deleted = batch_chat_service.delete_message(db, message.id, alumni.id)
    assert deleted.is_deleted is True
    assert deleted.content == DELETED_PLACEHOLDER

    with pytest.raises(ValidationError) as exc_info:
        batch_chat_service.edit_message(db, message.id, alumni.id, "resurrect")
    assert exc_info.value.message == "Cannot edit a deleted message"


def test_reply_to_missing_message(db, batch, alumni):
    with pytest.raises(NotFoundError) as exc_info:
        batch_chat_service.reply_to_message(db, 9999, alumni.id, "hello?")
    assert exc_info.value.message == "Original message not found"


def test_chat_endpoints(client, db, batch, alumni, student):
    sent = client.post(f"/api/batches/{batch.id}/chat/messages", json={"userId": alumni.id, "content": "Hello batch"})
    assert sent.status_code == 201
    message_id = sent.json()["data"]["id"]

    reply = client.post(
        f"/api/batches/{batch.id}/chat/messages/{message_id}/replies",
        json={"userId": alumni.id, "content": "me again"},
    )
    assert reply.status_code == 201
    assert len(reply.json()["data"]["replies"]) == 1

    listing = client.get(f"/api/batches/{batch.id}/chat/messages", params={"userId": student.id})
    assert listing.status_code == 200
    assert listing.json()["messages"][0]["isReadByMe"] is True

    denied = client.post(f"/api/batches/{batch.id}/chat/messages", json={"userId": student.id, "content": "hi"})
    assert denied.status_code == 403
    assert denied.json()["error"] == "Access denied. Only batch members can send messages."

    details = client.get(f"/api/batches/{batch.id}/chat/details", params={"userId": alumni.id}).json()
    assert details["stats"]["totalMessages"] == 1

    deleted = client.delete(f"/api/batches/{batch.id}/chat/messages/{message_id}", params={"userId": alumni.id})
    assert deleted.json()["data"]["content"] == DELETED_PLACEHOLDER
