"""
Recomputes a provider's rating statistics from its rating rows.

The aggregate on the provider row is a cache of a deterministic function of
the ratings table: it is always rebuilt from a full scan of the provider's
current ratings, never adjusted incrementally. recompute() runs inside the
caller's transaction so the aggregate commits or rolls back together with the
rating write that triggered it.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.mixins import utcnow
from app.models.provider import Provider
from app.models.rating import Rating
from app.schemas.provider import RatingAggregate

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def average_from(total_points: int, review_count: int) -> Decimal:
    """Average rounded half-up to one decimal place; 0 when there are no ratings."""
    if review_count == 0:
        return Decimal("0.0")
    return (Decimal(total_points) / Decimal(review_count)).quantize(
        ONE_DECIMAL, rounding=ROUND_HALF_UP
    )


class RatingAggregateService:
    def __init__(self, db: Session, *, strict: Optional[bool] = None) -> None:
        self.db = db
        if strict is None:
            strict = get_settings().strict_rating_aggregates
        self.strict = strict

    def compute(self, provider_id: UUID) -> RatingAggregate:
        """Read count and sum over every current rating of the provider."""
        count, total = (
            self.db.query(
                func.count(Rating.id),
                func.coalesce(func.sum(Rating.value), 0),
            )
            .filter(Rating.provider_id == provider_id)
            .one()
        )
        count, total = int(count), int(total)
        return RatingAggregate(
            average_rating=average_from(total, count),
            review_count=count,
            total_rating_points=total,
        )

    def recompute(self, provider_id: UUID) -> Optional[RatingAggregate]:
        """
        Rebuild and store the aggregate for one provider.

        Runs in a savepoint of the current transaction and does not commit.
        In best-effort mode a store error rolls back only the savepoint, is
        logged, and None is returned so the triggering write can still commit;
        in strict mode the error propagates to the caller.
        """
        try:
            with self.db.begin_nested():
                aggregate = self.compute(provider_id)
                self.db.query(Provider).filter(Provider.id == provider_id).update(
                    {
                        Provider.average_rating: aggregate.average_rating,
                        Provider.review_count: aggregate.review_count,
                        Provider.total_rating_points: aggregate.total_rating_points,
                        Provider.updated_at: utcnow(),
                    },
                    synchronize_session="fetch",
                )
        except SQLAlchemyError:
            if self.strict:
                raise
            logger.exception(
                "Rating aggregate recompute failed for provider %s; "
                "aggregate left stale",
                provider_id,
            )
            return None

        logger.debug(
            "Recomputed provider %s rating: avg=%s count=%d points=%d",
            provider_id,
            aggregate.average_rating,
            aggregate.review_count,
            aggregate.total_rating_points,
        )
        return aggregate

    def recompute_all(self) -> int:
        """Rebuild the aggregate of every provider and commit. Returns the count."""
        provider_ids = [row.id for row in self.db.query(Provider.id).all()]
        for provider_id in provider_ids:
            self.recompute(provider_id)
        self.db.commit()
        logger.info("Recomputed rating aggregates for %d providers", len(provider_ids))
        return len(provider_ids)
