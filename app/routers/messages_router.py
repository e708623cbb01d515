"""Messages API: send, list, unread count and per-party deletion."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.errors import DomainError
from app.db import get_db
from app.models.user import User
from app.routers.utils.dependencies import get_current_user
from app.schemas.message import MessageCreate, MessageDeleteResult, MessageRead
from app.services.message_service import MessageService

router = APIRouter(
    prefix="/messages",
    tags=["messages"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=MessageRead, status_code=201)
def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageRead:
    try:
        message = MessageService(db).send_message(
            current_user.id,
            data.receiver_id,
            data.content,
            kind=data.kind,
            attachment=data.attachment,
        )
    except DomainError as e:
        raise e.to_http_exception() from e
    return MessageRead.model_validate(message)


@router.get("", response_model=dict)
def list_messages(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Every message the current user can see, oldest first."""
    messages = MessageService(db).list_messages_for_user(current_user.id)
    return {"items": [MessageRead.model_validate(m) for m in messages]}


@router.get("/unread-count", response_model=dict)
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"unread": MessageService(db).count_unread(current_user.id)}


@router.delete("/{message_id}", response_model=MessageDeleteResult)
def delete_message(
    message_id: UUID,
    scope: Literal["self", "all"] = Query("self"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageDeleteResult:
    """Hide a message for yourself, or for everyone if you sent it."""
    try:
        deleted = MessageService(db).delete_message(message_id, current_user.id, scope)
    except DomainError as e:
        raise e.to_http_exception() from e
    return MessageDeleteResult(deleted=deleted, scope=scope)
