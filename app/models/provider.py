"""Provider model carrying the denormalized rating aggregate."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin


class Provider(Base, TimestampMixin):
    """
    A service provider that users can rate.

    average_rating, review_count and total_rating_points are a cache of the
    provider's ratings; only RatingAggregateService writes them.
    """

    __tablename__ = "providers"

    __table_args__ = (
        Index(
            "ix_providers_rating_published",
            "is_published",
            "average_rating",
            "review_count",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    business_name = Column(String(256), nullable=False)
    is_published = Column(Boolean, nullable=False, default=True)

    average_rating = Column(Numeric(3, 1), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    total_rating_points = Column(Integer, nullable=False, default=0)

    user = relationship("User")
    ratings = relationship(
        "Rating",
        back_populates="provider",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
