"""Tests for RecomputeRatingsCommand."""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.commands.recompute_ratings_command import RecomputeRatingsCommand
from app.core.errors import NotFound
from app.models.rating import Rating


def test_recompute_single_provider(db, setup_rating, setup_provider):
    assert RecomputeRatingsCommand(db).execute(setup_provider.id) == 1

    db.refresh(setup_provider)
    assert setup_provider.review_count == 1
    assert setup_provider.average_rating == Decimal("4.0")


def test_recompute_all_providers(db, make_provider, make_user):
    providers = [make_provider() for _ in range(2)]
    for provider in providers:
        db.add(Rating(user_id=make_user().id, provider_id=provider.id, value=3))
    db.commit()

    assert RecomputeRatingsCommand(db).execute() == 2

    for provider in providers:
        db.refresh(provider)
        assert provider.total_rating_points == 3


def test_recompute_unknown_provider(db):
    with pytest.raises(NotFound):
        RecomputeRatingsCommand(db).execute(uuid4())
