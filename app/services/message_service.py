"""Direct messages: send, per-viewer listing, read state and soft deletion."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, false, or_
from sqlalchemy.orm import Session

from app.core.errors import NotFound, PermissionDenied, ValidationError
from app.core.visibility import (
    DeleteScope,
    deletion_flag_for,
    visible_to_clause,
)
from app.models.conversation_participant import ConversationParticipant
from app.models.message import MESSAGE_KINDS, Message
from app.models.mixins import utcnow
from app.models.user import User
from app.schemas.message import Attachment
from app.services.conversation_participant_service import (
    ConversationParticipantService,
)

logger = logging.getLogger(__name__)

DELETE_SCOPES = ("self", "all")


def _between(user_a: UUID, user_b: UUID):
    return or_(
        and_(Message.sender_id == user_a, Message.receiver_id == user_b),
        and_(Message.sender_id == user_b, Message.receiver_id == user_a),
    )


class MessageService:
    def __init__(
        self,
        db: Session,
        *,
        participants: Optional[ConversationParticipantService] = None,
    ) -> None:
        self.db = db
        self.participants = participants or ConversationParticipantService(db)

    def get_message(self, message_id: UUID) -> Optional[Message]:
        return self.db.query(Message).filter(Message.id == message_id).first()

    def send_message(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
        kind: str = "text",
        attachment: Optional[Attachment] = None,
    ) -> Message:
        """
        Store a new message with every deletion flag cleared and read=False.

        The pair's participant rows are created in the same transaction if
        this is their first exchange.
        """
        if sender_id == receiver_id:
            raise ValidationError("Cannot send a message to yourself")
        if kind not in MESSAGE_KINDS:
            raise ValidationError(
                f"Unknown message kind {kind!r}",
                details={"allowed": list(MESSAGE_KINDS)},
            )
        content = (content or "").strip()
        if kind == "text" and not content:
            raise ValidationError("Message content cannot be empty")
        if kind != "text" and attachment is None:
            raise ValidationError(f"A {kind} message needs an attachment")

        found = {
            row.id
            for row in self.db.query(User.id)
            .filter(User.id.in_([sender_id, receiver_id]))
            .all()
        }
        for user_id in (sender_id, receiver_id):
            if user_id not in found:
                raise NotFound("User not found", details={"user_id": str(user_id)})

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            kind=kind,
            attachment_url=attachment.url if attachment else None,
            attachment_name=attachment.name if attachment else None,
            attachment_size=attachment.size if attachment else None,
            read=False,
            deleted_for_sender=False,
            deleted_for_receiver=False,
            deleted_for_all=False,
            created_at=utcnow(),
        )
        try:
            self.participants.ensure(sender_id, receiver_id)
            self.db.add(message)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(message)
        return message

    def list_messages_for_user(self, user_id: UUID) -> List[Message]:
        """Every message visible to the user, across all counterparties, oldest first."""
        return (
            self.db.query(Message)
            .filter(visible_to_clause(Message, user_id))
            .order_by(Message.created_at.asc(), Message.id)
            .all()
        )

    def list_conversation(self, user_a: UUID, user_b: UUID) -> List[Message]:
        """
        The shared log of a two-party thread, oldest first.

        A message is included when it is visible to either party, so the
        result is broader than what each party may see; callers must still
        filter with is_visible_to() for the requesting user before display.
        """
        return (
            self.db.query(Message)
            .filter(
                _between(user_a, user_b),
                or_(
                    visible_to_clause(Message, user_a),
                    visible_to_clause(Message, user_b),
                ),
            )
            .order_by(Message.created_at.asc(), Message.id)
            .all()
        )

    def list_thread_for_user(self, user_id: UUID, other_user_id: UUID) -> List[Message]:
        """
        The thread as user_id should see it: only messages visible to them,
        and only those newer than the point where they hid the conversation.
        """
        query = (
            self.db.query(Message)
            .outerjoin(
                ConversationParticipant,
                and_(
                    ConversationParticipant.user_id == user_id,
                    ConversationParticipant.other_user_id == other_user_id,
                ),
            )
            .filter(
                _between(user_id, other_user_id),
                visible_to_clause(Message, user_id),
                or_(
                    ConversationParticipant.hidden_since.is_(None),
                    Message.created_at > ConversationParticipant.hidden_since,
                ),
            )
        )
        return query.order_by(Message.created_at.asc(), Message.id).all()

    def mark_read(self, sender_id: UUID, receiver_id: UUID) -> int:
        """Mark every message from sender to receiver read, except deleted-for-all ones."""
        updated = (
            self.db.query(Message)
            .filter(
                Message.sender_id == sender_id,
                Message.receiver_id == receiver_id,
                Message.deleted_for_all == false(),
                Message.read == false(),
            )
            .update({Message.read: True}, synchronize_session="fetch")
        )
        self.db.commit()
        return updated

    def count_unread(self, user_id: UUID) -> int:
        """
        Unread messages received by the user that the user can still see,
        ignoring those that predate the user hiding the conversation.
        """
        return (
            self.db.query(Message)
            .outerjoin(
                ConversationParticipant,
                and_(
                    ConversationParticipant.user_id == user_id,
                    ConversationParticipant.other_user_id == Message.sender_id,
                ),
            )
            .filter(
                Message.receiver_id == user_id,
                Message.read == false(),
                visible_to_clause(Message, user_id),
                or_(
                    ConversationParticipant.hidden_since.is_(None),
                    Message.created_at > ConversationParticipant.hidden_since,
                ),
            )
            .count()
        )

    def delete_message(
        self, message_id: UUID, actor_id: UUID, scope: DeleteScope
    ) -> bool:
        """
        Hide a message for the actor ("self") or, for its sender, for everyone
        ("all").

        Only the flag belonging to the actor is written. Flags are never
        cleared, and setting one that is already set succeeds without a write.
        """
        if scope not in DELETE_SCOPES:
            raise ValidationError(
                f"Unknown delete scope {scope!r}",
                details={"allowed": list(DELETE_SCOPES)},
            )
        message = self.get_message(message_id)
        if message is None:
            raise NotFound(
                "Message not found", details={"message_id": str(message_id)}
            )

        flag = deletion_flag_for(message, actor_id, scope)
        if flag is None:
            logger.warning(
                "User %s may not delete message %s with scope %s",
                actor_id,
                message_id,
                scope,
            )
            if scope == "all":
                raise PermissionDenied(
                    "Only the sender can delete a message for everyone",
                    details={"message_id": str(message_id)},
                )
            raise PermissionDenied(
                "Only a participant can delete this message",
                details={"message_id": str(message_id)},
            )

        if message.mark_deleted(flag):
            self.db.commit()
            logger.info(
                "Message %s deleted by %s (%s)", message_id, actor_id, flag.name
            )
        return True

    def purge_fully_deleted(self) -> int:
        """
        Physically remove messages nobody can see any more: deleted for all,
        or deleted by both parties. Maintenance only; deletion requests never
        call this.
        """
        removed = (
            self.db.query(Message)
            .filter(
                or_(
                    Message.deleted_for_all.is_(True),
                    and_(
                        Message.deleted_for_sender.is_(True),
                        Message.deleted_for_receiver.is_(True),
                    ),
                )
            )
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        logger.info("Purged %d fully deleted messages", removed)
        return removed
