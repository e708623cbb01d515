"""
Per-viewer message visibility.

A message carries three independent deletion flags. They form a one-way
lattice: flags are only ever added, never removed, so no state leads back to
VISIBLE. FOR_ALL overrides the per-party flags for every viewer.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Literal
from uuid import UUID

from sqlalchemy import and_, false, or_

if TYPE_CHECKING:
    from app.models.message import Message

DeleteScope = Literal["self", "all"]


class MessageDeletion(enum.Flag):
    VISIBLE = 0
    FOR_SENDER = enum.auto()
    FOR_RECEIVER = enum.auto()
    FOR_ALL = enum.auto()


# Column on the messages table that stores each flag.
FLAG_COLUMNS = {
    MessageDeletion.FOR_SENDER: "deleted_for_sender",
    MessageDeletion.FOR_RECEIVER: "deleted_for_receiver",
    MessageDeletion.FOR_ALL: "deleted_for_all",
}


def deletion_flag_for(message: "Message", actor_id: UUID, scope: DeleteScope):
    """
    Return the single flag the actor is allowed to set, or None.

    Only the sender may delete for everyone; "self" maps to the actor's own
    side of the message.
    """
    if scope == "all":
        return MessageDeletion.FOR_ALL if actor_id == message.sender_id else None
    if actor_id == message.sender_id:
        return MessageDeletion.FOR_SENDER
    if actor_id == message.receiver_id:
        return MessageDeletion.FOR_RECEIVER
    return None


def is_visible_to(message: "Message", viewer_id: UUID) -> bool:
    state = message.deletion
    if MessageDeletion.FOR_ALL in state:
        return False
    if viewer_id == message.sender_id:
        return MessageDeletion.FOR_SENDER not in state
    if viewer_id == message.receiver_id:
        return MessageDeletion.FOR_RECEIVER not in state
    return False


def visible_to_clause(model, viewer_id: UUID):
    """SQL expression equivalent of is_visible_to for query filtering."""
    return and_(
        model.deleted_for_all == false(),
        or_(
            and_(model.sender_id == viewer_id, model.deleted_for_sender == false()),
            and_(
                model.receiver_id == viewer_id,
                model.deleted_for_receiver == false(),
            ),
        ),
    )
