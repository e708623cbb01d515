"""Tests for MessageService."""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.core.errors import NotFound, PermissionDenied, ValidationError
from app.core.visibility import is_visible_to
from app.models.conversation_participant import ConversationParticipant
from app.models.message import Message
from app.models.mixins import utcnow
from app.schemas.message import Attachment
from app.services.message_service import MessageService


@pytest.fixture
def alice(make_user):
    return make_user(name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user(name="Bob")


def _ids(messages):
    return [m.id for m in messages]


def test_send_message_stores_clean_state(db, alice, bob):
    message = MessageService(db).send_message(alice.id, bob.id, "  hello  ")

    assert message.content == "hello"
    assert message.kind == "text"
    assert message.read is False
    assert message.deleted_for_sender is False
    assert message.deleted_for_receiver is False
    assert message.deleted_for_all is False


def test_send_message_creates_participants_once(db, alice, bob):
    svc = MessageService(db)
    svc.send_message(alice.id, bob.id, "one")
    svc.send_message(bob.id, alice.id, "two")

    rows = db.query(ConversationParticipant).all()
    assert sorted((r.user_id, r.other_user_id) for r in rows) == sorted(
        [(alice.id, bob.id), (bob.id, alice.id)]
    )
    assert len({r.conversation_id for r in rows}) == 1


def test_send_attachment_message(db, alice, bob):
    message = MessageService(db).send_message(
        alice.id,
        bob.id,
        "",
        kind="image",
        attachment=Attachment(url="https://cdn.example.com/a.png", name="a.png", size=42),
    )
    assert message.kind == "image"
    assert message.attachment_url == "https://cdn.example.com/a.png"
    assert message.attachment_size == 42


@pytest.mark.parametrize(
    "content, kind",
    [
        ("   ", "text"),
        ("hi", "video"),
        ("", "file"),
    ],
)
def test_send_message_rejects_invalid_input(db, alice, bob, content, kind):
    with pytest.raises(ValidationError):
        MessageService(db).send_message(alice.id, bob.id, content, kind=kind)
    assert db.query(Message).count() == 0


def test_send_message_to_self_is_rejected(db, alice):
    with pytest.raises(ValidationError):
        MessageService(db).send_message(alice.id, alice.id, "me")


def test_send_message_to_unknown_user(db, alice):
    with pytest.raises(NotFound):
        MessageService(db).send_message(alice.id, uuid4(), "anyone there?")
    assert db.query(ConversationParticipant).count() == 0


def test_receiver_delete_for_self_keeps_sender_view(db, alice, bob):
    """The receiver hides a message; the sender still sees it."""
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")

    assert svc.delete_message(message.id, bob.id, "self") is True

    db.refresh(message)
    assert message.deleted_for_receiver is True
    assert message.deleted_for_sender is False
    assert message.deleted_for_all is False
    assert message.id in _ids(svc.list_messages_for_user(alice.id))
    assert message.id not in _ids(svc.list_messages_for_user(bob.id))


def test_sender_delete_for_self_keeps_receiver_view(db, alice, bob):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")

    svc.delete_message(message.id, alice.id, "self")

    db.refresh(message)
    assert message.deleted_for_sender is True
    assert message.deleted_for_receiver is False
    assert message.id not in _ids(svc.list_messages_for_user(alice.id))
    assert message.id in _ids(svc.list_messages_for_user(bob.id))


def test_receiver_cannot_delete_for_all(db, alice, bob):
    """Deleting for everyone is reserved to the sender; nothing changes."""
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")

    with pytest.raises(PermissionDenied):
        svc.delete_message(message.id, bob.id, "all")

    db.refresh(message)
    assert message.deleted_for_all is False
    assert message.deleted_for_receiver is False
    assert is_visible_to(message, bob.id)


def test_sender_delete_for_all_hides_for_both(db, alice, bob):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "oops")

    svc.delete_message(message.id, alice.id, "all")

    db.refresh(message)
    assert message.deleted_for_all is True
    assert svc.list_messages_for_user(alice.id) == []
    assert svc.list_messages_for_user(bob.id) == []
    assert svc.list_conversation(alice.id, bob.id) == []


def test_outsider_cannot_delete(db, alice, bob, make_user):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "private")
    with pytest.raises(PermissionDenied):
        svc.delete_message(message.id, make_user().id, "self")


def test_repeated_delete_is_a_no_op(db, alice, bob):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")
    svc.delete_message(message.id, bob.id, "self")

    assert svc.delete_message(message.id, bob.id, "self") is True

    db.refresh(message)
    assert message.deleted_for_receiver is True


def test_delete_after_delete_for_all_keeps_flags(db, alice, bob):
    """A later per-party delete never clears deleted_for_all."""
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")
    svc.delete_message(message.id, alice.id, "all")
    svc.delete_message(message.id, bob.id, "self")

    db.refresh(message)
    assert message.deleted_for_all is True
    assert message.deleted_for_receiver is True


def test_delete_unknown_message(db, alice):
    with pytest.raises(NotFound):
        MessageService(db).delete_message(uuid4(), alice.id, "self")


def test_delete_with_unknown_scope(db, alice, bob):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "hi")
    with pytest.raises(ValidationError):
        svc.delete_message(message.id, alice.id, "everyone")


def test_list_conversation_includes_messages_visible_to_either_party(db, alice, bob):
    """The shared log keeps a message while at least one party can see it."""
    svc = MessageService(db)
    kept_for_bob = svc.send_message(alice.id, bob.id, "1")
    gone_for_both = svc.send_message(alice.id, bob.id, "2")
    gone_for_all = svc.send_message(bob.id, alice.id, "3")
    untouched = svc.send_message(bob.id, alice.id, "4")

    svc.delete_message(kept_for_bob.id, alice.id, "self")
    svc.delete_message(gone_for_both.id, alice.id, "self")
    svc.delete_message(gone_for_both.id, bob.id, "self")
    svc.delete_message(gone_for_all.id, bob.id, "all")

    log = _ids(svc.list_conversation(alice.id, bob.id))
    assert set(log) == {kept_for_bob.id, untouched.id}
    assert set(_ids(svc.list_conversation(bob.id, alice.id))) == set(log)


def test_list_conversation_excludes_other_pairs(db, alice, bob, make_user):
    svc = MessageService(db)
    carol = make_user()
    ours = svc.send_message(alice.id, bob.id, "ours")
    svc.send_message(alice.id, carol.id, "not ours")

    assert _ids(svc.list_conversation(alice.id, bob.id)) == [ours.id]


def test_list_messages_for_user_oldest_first(db, alice, bob, make_user):
    svc = MessageService(db)
    carol = make_user()
    first = svc.send_message(alice.id, bob.id, "first")
    second = svc.send_message(carol.id, alice.id, "second")
    db.query(Message).filter(Message.id == first.id).update(
        {Message.created_at: utcnow() - timedelta(minutes=5)}
    )
    db.commit()

    assert _ids(svc.list_messages_for_user(alice.id)) == [first.id, second.id]


def test_mark_read(db, alice, bob):
    """Only messages from sender to receiver are marked, and only once."""
    svc = MessageService(db)
    incoming = svc.send_message(alice.id, bob.id, "hi")
    svc.send_message(alice.id, bob.id, "there")
    outgoing = svc.send_message(bob.id, alice.id, "hello")

    assert svc.mark_read(alice.id, bob.id) == 2
    assert svc.mark_read(alice.id, bob.id) == 0

    db.refresh(incoming)
    db.refresh(outgoing)
    assert incoming.read is True
    assert outgoing.read is False


def test_mark_read_skips_messages_deleted_for_all(db, alice, bob):
    svc = MessageService(db)
    message = svc.send_message(alice.id, bob.id, "retracted")
    svc.delete_message(message.id, alice.id, "all")

    assert svc.mark_read(alice.id, bob.id) == 0
    db.refresh(message)
    assert message.read is False


def test_count_unread(db, alice, bob):
    svc = MessageService(db)
    svc.send_message(alice.id, bob.id, "1")
    hidden = svc.send_message(alice.id, bob.id, "2")
    svc.send_message(bob.id, alice.id, "3")
    svc.delete_message(hidden.id, bob.id, "self")

    assert svc.count_unread(bob.id) == 1
    assert svc.count_unread(alice.id) == 1

    svc.mark_read(alice.id, bob.id)
    assert svc.count_unread(bob.id) == 0


def test_purge_fully_deleted(db, alice, bob):
    """Only messages nobody can see are physically removed."""
    svc = MessageService(db)
    for_all = svc.send_message(alice.id, bob.id, "a")
    for_both = svc.send_message(alice.id, bob.id, "b")
    for_one = svc.send_message(alice.id, bob.id, "c")
    svc.delete_message(for_all.id, alice.id, "all")
    svc.delete_message(for_both.id, alice.id, "self")
    svc.delete_message(for_both.id, bob.id, "self")
    svc.delete_message(for_one.id, bob.id, "self")

    assert svc.purge_fully_deleted() == 2

    remaining = _ids(db.query(Message).all())
    assert remaining == [for_one.id]


def test_listings_break_timestamp_ties_by_id(db, alice, bob):
    """Messages sharing a timestamp come back in a stable id order."""
    svc = MessageService(db)
    sent = [svc.send_message(alice.id, bob.id, str(n)) for n in range(4)]
    same_time = utcnow() - timedelta(minutes=1)
    db.query(Message).update(
        {Message.created_at: same_time}, synchronize_session="fetch"
    )
    db.commit()

    expected = sorted(m.id for m in sent)
    assert _ids(svc.list_messages_for_user(alice.id)) == expected
    assert _ids(svc.list_conversation(alice.id, bob.id)) == expected
    assert _ids(svc.list_thread_for_user(bob.id, alice.id)) == expected
