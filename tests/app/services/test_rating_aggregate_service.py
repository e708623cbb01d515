"""Tests for RatingAggregateService."""

import logging
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import StoreUnavailable
from app.models.provider import Provider
from app.models.rating import Rating
from app.services.rating_aggregate_service import (
    RatingAggregateService,
    average_from,
)
from app.services.rating_service import RatingService


def _fail_compute(self, provider_id):
    raise OperationalError("SELECT count(ratings.id)", {}, Exception("store down"))


@pytest.mark.parametrize(
    "total, count, expected",
    [
        (0, 0, "0.0"),
        (9, 2, "4.5"),
        (4, 3, "1.3"),
        (14, 3, "4.7"),
        (9, 4, "2.3"),  # 2.25 rounds half-up
        (5, 1, "5.0"),
    ],
)
def test_average_from(total, count, expected):
    assert average_from(total, count) == Decimal(expected)


def test_compute_without_ratings(db, setup_provider):
    aggregate = RatingAggregateService(db).compute(setup_provider.id)
    assert aggregate.review_count == 0
    assert aggregate.total_rating_points == 0
    assert aggregate.average_rating == Decimal("0.0")


def test_recompute_stores_aggregate(db, setup_rating, setup_provider):
    """recompute writes the scan result onto the provider row."""
    aggregate = RatingAggregateService(db).recompute(setup_provider.id)
    db.commit()

    assert aggregate.review_count == 1
    db.refresh(setup_provider)
    assert setup_provider.review_count == 1
    assert setup_provider.total_rating_points == 4
    assert setup_provider.average_rating == Decimal("4.0")


def test_recompute_is_idempotent(db, setup_rating, setup_provider):
    svc = RatingAggregateService(db)
    first = svc.recompute(setup_provider.id)
    second = svc.recompute(setup_provider.id)
    db.commit()
    assert first == second


def test_recompute_repairs_drifted_aggregate(db, setup_rating, setup_provider):
    db.query(Provider).filter(Provider.id == setup_provider.id).update(
        {Provider.review_count: 99, Provider.total_rating_points: 3}
    )
    db.commit()

    RatingAggregateService(db).recompute(setup_provider.id)
    db.commit()

    db.refresh(setup_provider)
    assert setup_provider.review_count == 1
    assert setup_provider.total_rating_points == 4


def test_best_effort_failure_keeps_rating_write(
    db, monkeypatch, caplog, setup_user, setup_provider
):
    """A failed recompute is logged and the rating still commits."""
    monkeypatch.setattr(RatingAggregateService, "compute", _fail_compute)
    svc = RatingService(db, aggregates=RatingAggregateService(db, strict=False))

    with caplog.at_level(logging.ERROR):
        rating = svc.submit_rating(setup_user.id, setup_provider.id, 5)

    assert rating.value == 5
    assert db.query(Rating).count() == 1
    db.refresh(setup_provider)
    assert setup_provider.review_count == 0
    assert any(
        "aggregate left stale" in record.getMessage() for record in caplog.records
    )


def test_stale_aggregate_is_fixed_by_next_write(
    db, monkeypatch, make_user, setup_provider
):
    svc = RatingService(db, aggregates=RatingAggregateService(db, strict=False))
    with monkeypatch.context() as m:
        m.setattr(RatingAggregateService, "compute", _fail_compute)
        svc.submit_rating(make_user().id, setup_provider.id, 5)

    svc.submit_rating(make_user().id, setup_provider.id, 3)

    db.refresh(setup_provider)
    assert setup_provider.review_count == 2
    assert setup_provider.total_rating_points == 8
    assert setup_provider.average_rating == Decimal("4.0")


def test_strict_failure_rolls_back_rating_write(
    db, monkeypatch, setup_user, setup_provider
):
    """In strict mode the aggregate error propagates and nothing is stored."""
    monkeypatch.setattr(RatingAggregateService, "compute", _fail_compute)
    svc = RatingService(db, aggregates=RatingAggregateService(db, strict=True))

    with pytest.raises(StoreUnavailable) as exc_info:
        svc.submit_rating(setup_user.id, setup_provider.id, 5)

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.to_http_exception().status_code == 503
    assert db.query(Rating).count() == 0


def test_mode_defaults_from_settings(db, monkeypatch):
    monkeypatch.setenv("RATING_AGGREGATE_MODE", "strict")
    assert RatingAggregateService(db).strict is True

    monkeypatch.setenv("RATING_AGGREGATE_MODE", "best_effort")
    assert RatingAggregateService(db).strict is False


def test_recompute_all(db, make_provider, make_user):
    providers = [make_provider() for _ in range(3)]
    for provider in providers:
        db.add(Rating(user_id=make_user().id, provider_id=provider.id, value=2))
    db.commit()

    assert RatingAggregateService(db).recompute_all() == 3

    for provider in providers:
        db.refresh(provider)
        assert provider.review_count == 1
        assert provider.average_rating == Decimal("2.0")
