"""One row per (conversation, user) recording when that user hid the conversation."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
)

from app.db import Base
from app.models.mixins import TimestampMixin


class ConversationParticipant(Base, TimestampMixin):
    """
    Conversation-level visibility for one participant.

    hidden_since is independent of the message deletion flags: hiding a
    conversation filters what the user is shown, it does not delete messages.
    """

    __tablename__ = "conversation_participants"

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "user_id", name="uq_conversation_participants_user"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(String(80), nullable=False, index=True)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    other_user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    hidden_since = Column(DateTime(timezone=True), nullable=True)
