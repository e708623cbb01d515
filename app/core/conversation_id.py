"""Canonical conversation id for an unordered pair of users."""

from __future__ import annotations

from uuid import UUID

from app.core.errors import ValidationError

CONVERSATION_ID_SEPARATOR = ":"


def _normalize(user_id: UUID | str) -> UUID:
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except ValueError as e:
        raise ValidationError(
            "User id is not a valid UUID", details={"user_id": str(user_id)}
        ) from e


def canonical_conversation_id(user_a: UUID | str, user_b: UUID | str) -> str:
    """
    Build the deterministic id shared by both participants of a conversation.

    Both ids are parsed as UUIDs and joined smaller first in their canonical
    lowercase form, so canonical_conversation_id(a, b) ==
    canonical_conversation_id(b, a) however either id was written.
    """
    a, b = _normalize(user_a), _normalize(user_b)
    if a == b:
        raise ValidationError(
            "A conversation needs two distinct participants",
            details={"user_id": str(a)},
        )
    first, second = (a, b) if a < b else (b, a)
    return f"{first}{CONVERSATION_ID_SEPARATOR}{second}"
