"""Providers API: provider records, their ratings and rating aggregates."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DomainError, StoreUnavailable
from app.db import get_db
from app.models.provider import Provider
from app.models.user import User
from app.routers.utils.dependencies import get_current_user, get_provider_by_id
from app.schemas.provider import ProviderCreate, ProviderRead, RatingAggregate
from app.schemas.rating import RatingRead, RatingSubmit
from app.services.provider_service import ProviderService
from app.services.rating_aggregate_service import RatingAggregateService
from app.services.rating_service import RatingService

router = APIRouter(
    prefix="/providers",
    tags=["providers"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=ProviderRead, status_code=201)
def create_provider(
    data: ProviderCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProviderRead:
    """Register the current user as a provider."""
    try:
        provider = ProviderService(db).create_provider(current_user.id, data)
    except DomainError as e:
        raise e.to_http_exception() from e
    return ProviderRead.model_validate(provider)


@router.get("/top-rated", response_model=dict)
def list_top_rated_providers(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> dict:
    """Published providers ordered by average rating, then review count."""
    providers = ProviderService(db).get_top_rated(limit=limit)
    return {"items": [ProviderRead.model_validate(p) for p in providers]}


@router.get("/{provider_id}", response_model=ProviderRead)
def get_provider(provider: Provider = Depends(get_provider_by_id)) -> ProviderRead:
    return ProviderRead.model_validate(provider)


@router.get("/{provider_id}/ratings", response_model=Page[RatingRead])
def list_provider_ratings(
    provider: Provider = Depends(get_provider_by_id),
    params: Params = Depends(),
    db: Session = Depends(get_db),
) -> Page[RatingRead]:
    """List a provider's ratings with pagination, newest first."""
    query = RatingService(db).get_provider_ratings_query(provider.id)
    return paginate(db, query, params=params)


@router.put("/{provider_id}/ratings", response_model=RatingRead)
def submit_rating(
    data: RatingSubmit,
    current_user: User = Depends(get_current_user),
    provider: Provider = Depends(get_provider_by_id),
    db: Session = Depends(get_db),
) -> RatingRead:
    """Create or replace the current user's rating of the provider."""
    try:
        rating = RatingService(db).submit_rating(
            current_user.id, provider.id, data.value, data.review_text
        )
    except DomainError as e:
        raise e.to_http_exception() from e
    return RatingRead.model_validate(rating)


@router.get("/{provider_id}/ratings/me", response_model=RatingRead)
def get_my_rating(
    current_user: User = Depends(get_current_user),
    provider: Provider = Depends(get_provider_by_id),
    db: Session = Depends(get_db),
) -> RatingRead:
    """The current user's rating of the provider."""
    rating = RatingService(db).get_user_rating(current_user.id, provider.id)
    if rating is None:
        raise HTTPException(status_code=404, detail="Rating not found")
    return RatingRead.model_validate(rating)


@router.post("/{provider_id}/ratings/recompute", response_model=RatingAggregate)
def recompute_provider_rating(
    provider: Provider = Depends(get_provider_by_id),
    db: Session = Depends(get_db),
) -> RatingAggregate:
    """Rebuild the provider's rating aggregate from its ratings."""
    try:
        aggregate = RatingAggregateService(db, strict=True).recompute(provider.id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        error = StoreUnavailable(
            "Rating aggregate could not be recomputed",
            details={"provider_id": str(provider.id)},
        )
        raise error.to_http_exception() from e
    return aggregate
