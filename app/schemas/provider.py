"""Pydantic schemas for providers and their rating aggregate."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ProviderCreate(BaseModel):
    """Request schema for registering the current user as a provider."""

    business_name: str = Field(..., min_length=1, max_length=256)
    is_published: bool = True


class RatingAggregate(BaseModel):
    """Derived rating statistics for one provider."""

    average_rating: Decimal
    review_count: int
    total_rating_points: int


class ProviderRead(BaseModel):
    id: UUID
    user_id: UUID
    business_name: str
    is_published: bool
    average_rating: Decimal
    review_count: int
    total_rating_points: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
