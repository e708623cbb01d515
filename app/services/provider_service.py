"""Provider CRUD and rating-ordered listings."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConstraintViolation, NotFound
from app.models.provider import Provider
from app.models.user import User
from app.schemas.provider import ProviderCreate


class ProviderService:
    """Manages provider records. The rating aggregate columns are read-only here."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_provider(self, provider_id: UUID) -> Optional[Provider]:
        return self.db.query(Provider).filter(Provider.id == provider_id).first()

    def create_provider(self, user_id: UUID, data: ProviderCreate) -> Provider:
        """Register a user as a provider with an empty rating aggregate."""
        if self.db.query(User.id).filter(User.id == user_id).first() is None:
            raise NotFound("User not found", details={"user_id": str(user_id)})
        provider = Provider(
            user_id=user_id,
            business_name=data.business_name,
            is_published=data.is_published,
        )
        self.db.add(provider)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation("User is already a provider") from e
        self.db.refresh(provider)
        return provider

    def get_top_rated(self, limit: int = 10) -> List[Provider]:
        """Published providers with at least one rating, best average first."""
        return (
            self.db.query(Provider)
            .filter(Provider.is_published.is_(True), Provider.review_count > 0)
            .order_by(
                Provider.average_rating.desc(),
                Provider.review_count.desc(),
            )
            .limit(limit)
            .all()
        )
