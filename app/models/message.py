"""
Direct message between two users.

Deletion never removes the row: each party hides it for themselves through
their own flag, and the sender can hide it for everyone. Flags only move from
false to true.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import validates

from app.core.visibility import FLAG_COLUMNS, MessageDeletion
from app.db import Base
from app.models.mixins import utcnow

MESSAGE_KINDS = ("text", "image", "file")


class Message(Base):
    __tablename__ = "messages"

    __table_args__ = (
        Index(
            "ix_messages_sender_receiver_created",
            "sender_id",
            "receiver_id",
            "created_at",
        ),
        Index("ix_messages_receiver_created", "receiver_id", "created_at"),
        CheckConstraint(
            "kind IN ('text', 'image', 'file')", name="ck_messages_kind"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content = Column(Text, nullable=False, default="")
    kind = Column(String(16), nullable=False, default="text")
    attachment_url = Column(Text, nullable=True)
    attachment_name = Column(String(512), nullable=True)
    attachment_size = Column(Integer, nullable=True)
    read = Column(Boolean, nullable=False, default=False)

    deleted_for_sender = Column(Boolean, nullable=False, default=False)
    deleted_for_receiver = Column(Boolean, nullable=False, default=False)
    deleted_for_all = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @validates("deleted_for_sender", "deleted_for_receiver", "deleted_for_all")
    def _validate_monotonic(self, key, value):
        if getattr(self, key) and not value:
            raise ValueError(f"{key} cannot be cleared once set")
        return bool(value)

    @property
    def deletion(self) -> MessageDeletion:
        """Current deletion state as a combined flag."""
        state = MessageDeletion.VISIBLE
        for flag, column in FLAG_COLUMNS.items():
            if getattr(self, column):
                state |= flag
        return state

    def mark_deleted(self, flag: MessageDeletion) -> bool:
        """Add a deletion flag. Returns False when it was already set."""
        column = FLAG_COLUMNS[flag]
        if getattr(self, column):
            return False
        setattr(self, column, True)
        return True
