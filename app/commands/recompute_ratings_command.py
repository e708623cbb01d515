"""Command to rebuild provider rating aggregates from the ratings table."""

from __future__ import annotations

import argparse
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.services.provider_service import ProviderService
from app.services.rating_aggregate_service import RatingAggregateService


class RecomputeRatingsCommand:
    """
    Rebuild rating aggregates, for one provider or for all of them.

    Used to repair aggregates left stale by a best-effort recompute failure.
    Always runs in strict mode so a failure here is reported, not swallowed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.aggregates = RatingAggregateService(db, strict=True)
        self.logger = logging.getLogger(__name__)

    def execute(self, provider_id: Optional[UUID] = None) -> int:
        """
        Returns:
            int: number of providers recomputed
        """
        if provider_id is None:
            return self.aggregates.recompute_all()

        if ProviderService(self.db).get_provider(provider_id) is None:
            raise NotFound(
                "Provider not found", details={"provider_id": str(provider_id)}
            )
        aggregate = self.aggregates.recompute(provider_id)
        self.db.commit()
        self.logger.info("Recomputed provider %s: %s", provider_id, aggregate)
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    from app.db import SessionLocal

    parser = argparse.ArgumentParser(description=RecomputeRatingsCommand.__doc__)
    parser.add_argument("--provider-id", type=UUID, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        count = RecomputeRatingsCommand(db).execute(args.provider_id)
    finally:
        db.close()
    print(f"Recomputed {count} provider(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
