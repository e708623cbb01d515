"""Ratings API: deletion by the rating's author."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import DomainError
from app.db import get_db
from app.models.user import User
from app.routers.utils.dependencies import get_current_user
from app.services.rating_service import RatingService

router = APIRouter(
    prefix="/ratings",
    tags=["ratings"],
    responses={404: {"description": "Not found"}},
)


@router.delete("/{rating_id}", status_code=204)
def delete_rating(
    rating_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    """Delete the current user's rating and refresh the provider aggregate."""
    try:
        RatingService(db).delete_rating(rating_id, current_user.id)
    except DomainError as e:
        raise e.to_http_exception() from e
