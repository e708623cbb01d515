"""Conversations API: conversation list, threads, read state and hiding."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.conversation_id import canonical_conversation_id
from app.core.errors import DomainError
from app.db import get_db
from app.models.user import User
from app.routers.utils.dependencies import get_current_user
from app.schemas.message import ConversationIdRead, MessageRead
from app.services.conversation_participant_service import (
    ConversationParticipantService,
)
from app.services.message_service import MessageService

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=dict)
def list_conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """The current user's conversations, most recent activity first."""
    summaries = ConversationParticipantService(db).list_conversations(current_user.id)
    return {"items": summaries}


@router.get("/{other_user_id}", response_model=dict)
def get_thread(
    other_user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """The thread with another user, as the current user should see it."""
    try:
        messages = MessageService(db).list_thread_for_user(current_user.id, other_user_id)
    except DomainError as e:
        raise e.to_http_exception() from e
    return {"items": [MessageRead.model_validate(m) for m in messages]}


@router.get("/{other_user_id}/log", response_model=dict)
def get_message_log(
    other_user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Shared two-party log: messages visible to either party.

    Clients render only the entries visible to their own user.
    """
    messages = MessageService(db).list_conversation(current_user.id, other_user_id)
    return {"items": [MessageRead.model_validate(m) for m in messages]}


@router.get("/{other_user_id}/id", response_model=ConversationIdRead)
def get_conversation_id(
    other_user_id: UUID,
    current_user: User = Depends(get_current_user),
) -> ConversationIdRead:
    try:
        conversation_id = canonical_conversation_id(current_user.id, other_user_id)
    except DomainError as e:
        raise e.to_http_exception() from e
    return ConversationIdRead(conversation_id=conversation_id)


@router.post("/{other_user_id}/read", response_model=dict)
def mark_conversation_read(
    other_user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Mark every message the other user sent to the current user as read."""
    updated = MessageService(db).mark_read(other_user_id, current_user.id)
    return {"updated": updated}


@router.delete("/{other_user_id}", response_model=dict)
def hide_conversation(
    other_user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Hide the conversation for the current user; messages are left untouched."""
    try:
        hidden = ConversationParticipantService(db).hide(current_user.id, other_user_id)
    except DomainError as e:
        raise e.to_http_exception() from e
    return {"hidden": hidden}
