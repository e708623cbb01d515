"""Rating model: at most one row per (user, provider)."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin

MIN_RATING = 1
MAX_RATING = 5


class Rating(Base, TimestampMixin):
    __tablename__ = "ratings"

    __table_args__ = (
        UniqueConstraint("user_id", "provider_id", name="uq_ratings_user_provider"),
        CheckConstraint(
            f"value >= {MIN_RATING} AND value <= {MAX_RATING}",
            name="ck_ratings_value_range",
        ),
        Index("ix_ratings_provider_value", "provider_id", "value"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id = Column(
        Uuid, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False
    )
    value = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)

    provider = relationship("Provider", back_populates="ratings")
    user = relationship("User")
