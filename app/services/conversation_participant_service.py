"""Per-user conversation index: lazily created pair rows and the hidden_since marker."""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.conversation_id import canonical_conversation_id
from app.core.visibility import visible_to_clause
from app.models.conversation_participant import ConversationParticipant
from app.models.message import Message
from app.models.mixins import utcnow
from app.schemas.message import ConversationSummary, MessageRead
from app.utils.db.dialect import upsert_insert

logger = logging.getLogger(__name__)


class ConversationParticipantService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_participant(
        self, user_id: UUID, other_user_id: UUID
    ) -> Optional[ConversationParticipant]:
        conversation_id = canonical_conversation_id(user_id, other_user_id)
        return (
            self.db.query(ConversationParticipant)
            .filter(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
            .first()
        )

    def ensure(self, user_a: UUID, user_b: UUID) -> str:
        """
        Create both participant rows for the pair if they are missing.

        Conflict-ignoring insert, so it is a no-op when the rows exist and safe
        against a concurrent first message. Flushes but does not commit; the
        caller owns the transaction. Returns the conversation id.
        """
        conversation_id = canonical_conversation_id(user_a, user_b)
        now = utcnow()
        stmt = upsert_insert(self.db, ConversationParticipant).values(
            [
                {
                    "id": uuid.uuid4(),
                    "conversation_id": conversation_id,
                    "user_id": user_a,
                    "other_user_id": user_b,
                    "created_at": now,
                    "updated_at": now,
                },
                {
                    "id": uuid.uuid4(),
                    "conversation_id": conversation_id,
                    "user_id": user_b,
                    "other_user_id": user_a,
                    "created_at": now,
                    "updated_at": now,
                },
            ]
        )
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[
                ConversationParticipant.conversation_id,
                ConversationParticipant.user_id,
            ]
        )
        self.db.execute(stmt)
        return conversation_id

    def hide(self, user_id: UUID, other_user_id: UUID) -> bool:
        """
        Hide the conversation for user_id from now on.

        Only the caller's participant row changes; message rows and the other
        participant's row are untouched. Returns whether a row matched.
        """
        conversation_id = canonical_conversation_id(user_id, other_user_id)
        now = utcnow()
        matched = (
            self.db.query(ConversationParticipant)
            .filter(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
            .update(
                {
                    ConversationParticipant.hidden_since: now,
                    ConversationParticipant.updated_at: now,
                },
                synchronize_session="fetch",
            )
        )
        self.db.commit()
        if matched:
            logger.info("Conversation %s hidden for %s", conversation_id, user_id)
        return bool(matched)

    def list_conversations(self, user_id: UUID) -> List[ConversationSummary]:
        """
        The user's conversations, most recent activity first.

        Each entry carries the latest message visible to the user. A hidden
        conversation is listed again only once it has a visible message newer
        than its hidden_since marker.
        """
        participants: Dict[UUID, ConversationParticipant] = {
            p.other_user_id: p
            for p in self.db.query(ConversationParticipant)
            .filter(ConversationParticipant.user_id == user_id)
            .all()
        }
        if not participants:
            return []

        messages = (
            self.db.query(Message)
            .outerjoin(
                ConversationParticipant,
                and_(
                    ConversationParticipant.user_id == user_id,
                    or_(
                        ConversationParticipant.other_user_id == Message.sender_id,
                        ConversationParticipant.other_user_id == Message.receiver_id,
                    ),
                ),
            )
            .filter(
                visible_to_clause(Message, user_id),
                or_(
                    ConversationParticipant.hidden_since.is_(None),
                    Message.created_at > ConversationParticipant.hidden_since,
                ),
            )
            .order_by(Message.created_at.desc(), Message.id.desc())
            .all()
        )

        latest: Dict[UUID, Message] = {}
        unread: Dict[UUID, int] = {}
        for message in messages:
            other_id = (
                message.receiver_id if message.sender_id == user_id else message.sender_id
            )
            latest.setdefault(other_id, message)
            if message.receiver_id == user_id and not message.read:
                unread[other_id] = unread.get(other_id, 0) + 1

        summaries = []
        for other_id, message in latest.items():
            participant = participants.get(other_id)
            summaries.append(
                ConversationSummary(
                    conversation_id=canonical_conversation_id(user_id, other_id),
                    other_user_id=other_id,
                    last_message=MessageRead.model_validate(message),
                    unread_count=unread.get(other_id, 0),
                    hidden_since=participant.hidden_since if participant else None,
                )
            )
        return summaries
