"""Pydantic schemas for provider ratings."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt


class RatingSubmit(BaseModel):
    """
    Request schema for rating a provider.

    The value range is enforced by RatingService so that out-of-range values
    surface as the same ValidationError whether they come over HTTP or not.
    """

    value: StrictInt
    review_text: str | None = Field(None, max_length=4000)


class RatingRead(BaseModel):
    id: UUID
    user_id: UUID
    provider_id: UUID
    value: int
    review_text: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
