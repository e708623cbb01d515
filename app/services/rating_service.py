"""Rating submission, lookup and deletion; every write recomputes the provider aggregate."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    ConstraintViolation,
    NotFound,
    PermissionDenied,
    StoreUnavailable,
    ValidationError,
)
from app.models.mixins import utcnow
from app.models.provider import Provider
from app.models.rating import MAX_RATING, MIN_RATING, Rating
from app.models.user import User
from app.services.rating_aggregate_service import RatingAggregateService
from app.utils.db.dialect import upsert_insert

logger = logging.getLogger(__name__)


def _validate_value(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            "Rating value must be an integer", details={"value": repr(value)}
        )
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(
            f"Rating value must be between {MIN_RATING} and {MAX_RATING}",
            details={"value": value},
        )
    return value


def _clean_review(review_text: Optional[str]) -> Optional[str]:
    if review_text is None:
        return None
    return review_text.strip() or None


class RatingService:
    """
    One rating per (user, provider).

    A resubmission updates the existing row in place. Each write locks the
    provider row first, so concurrent writes for the same provider serialize
    and each recompute sees the ratings committed before it.
    """

    def __init__(
        self,
        db: Session,
        *,
        aggregates: Optional[RatingAggregateService] = None,
    ) -> None:
        self.db = db
        self.aggregates = aggregates or RatingAggregateService(db)

    def get_rating(self, rating_id: UUID) -> Optional[Rating]:
        return self.db.query(Rating).filter(Rating.id == rating_id).first()

    def get_user_rating(self, user_id: UUID, provider_id: UUID) -> Optional[Rating]:
        """The user's rating of the provider, if any."""
        return (
            self.db.query(Rating)
            .filter(Rating.user_id == user_id, Rating.provider_id == provider_id)
            .first()
        )

    def get_provider_ratings_query(self, provider_id: UUID):
        """Select statement for a provider's ratings, newest first. Used by paginated endpoints."""
        return (
            select(Rating)
            .where(Rating.provider_id == provider_id)
            .order_by(Rating.created_at.desc(), Rating.id)
        )

    def get_provider_ratings(
        self,
        provider_id: UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Rating]:
        """Ratings of a provider, newest first."""
        stmt = self.get_provider_ratings_query(provider_id).offset(skip).limit(limit)
        return list(self.db.scalars(stmt))

    def submit_rating(
        self,
        user_id: UUID,
        provider_id: UUID,
        value: int,
        review_text: Optional[str] = None,
    ) -> Rating:
        """
        Insert or update the user's rating of the provider and recompute the
        provider's aggregate in the same transaction.
        """
        value = _validate_value(value)
        review_text = _clean_review(review_text)

        try:
            self._lock_provider(provider_id)
            if self.db.query(User.id).filter(User.id == user_id).first() is None:
                raise NotFound("User not found", details={"user_id": str(user_id)})

            now = utcnow()
            stmt = upsert_insert(self.db, Rating).values(
                user_id=user_id,
                provider_id=provider_id,
                value=value,
                review_text=review_text,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[Rating.user_id, Rating.provider_id],
                set_={
                    "value": stmt.excluded.value,
                    "review_text": stmt.excluded.review_text,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            self.db.execute(stmt)

            self.aggregates.recompute(provider_id)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation(
                "Rating could not be stored",
                details={"provider_id": str(provider_id)},
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Rating write failed for provider %s: %s", provider_id, e)
            raise StoreUnavailable(
                "Rating could not be stored",
                details={"provider_id": str(provider_id)},
            ) from e
        except Exception:
            self.db.rollback()
            raise

        rating = self.get_user_rating(user_id, provider_id)
        self.db.refresh(rating)
        logger.info(
            "Rating %s saved: user=%s provider=%s value=%d",
            rating.id,
            user_id,
            provider_id,
            value,
        )
        return rating

    def delete_rating(self, rating_id: UUID, requester_id: UUID) -> bool:
        """
        Delete a rating owned by the requester and recompute the provider's
        aggregate in the same transaction. Returns whether a row was removed.
        """
        rating = self.get_rating(rating_id)
        if rating is None:
            raise NotFound("Rating not found", details={"rating_id": str(rating_id)})
        if rating.user_id != requester_id:
            logger.warning(
                "User %s attempted to delete rating %s owned by %s",
                requester_id,
                rating_id,
                rating.user_id,
            )
            raise PermissionDenied(
                "Only the author can delete this rating",
                details={"rating_id": str(rating_id)},
            )

        provider_id = rating.provider_id
        try:
            self._lock_provider(provider_id)
            removed = (
                self.db.query(Rating)
                .filter(Rating.id == rating_id, Rating.user_id == requester_id)
                .delete(synchronize_session="fetch")
            )
            if removed:
                self.aggregates.recompute(provider_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Rating delete failed for provider %s: %s", provider_id, e)
            raise StoreUnavailable(
                "Rating could not be deleted",
                details={"rating_id": str(rating_id)},
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info("Rating %s deleted by %s", rating_id, requester_id)
        return bool(removed)

    def _lock_provider(self, provider_id: UUID) -> Provider:
        provider = (
            self.db.query(Provider)
            .filter(Provider.id == provider_id)
            .with_for_update()
            .first()
        )
        if provider is None:
            raise NotFound(
                "Provider not found", details={"provider_id": str(provider_id)}
            )
        return provider
