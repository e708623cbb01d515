"""Pydantic schemas for direct messages and conversations."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """File or image reference carried by a non-text message."""

    url: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=512)
    size: Optional[int] = Field(None, ge=0)


class MessageCreate(BaseModel):
    receiver_id: UUID
    content: str = ""
    kind: str = "text"
    attachment: Optional[Attachment] = None


class MessageRead(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    kind: str
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_size: Optional[int] = None
    read: bool
    deleted_for_sender: bool
    deleted_for_receiver: bool
    deleted_for_all: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageDeleteResult(BaseModel):
    deleted: bool
    scope: Literal["self", "all"]


class ConversationIdRead(BaseModel):
    conversation_id: str


class ConversationSummary(BaseModel):
    """One entry of a user's conversation list."""

    conversation_id: str
    other_user_id: UUID
    last_message: MessageRead
    unread_count: int
    hidden_since: Optional[datetime] = None
