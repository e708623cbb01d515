"""Users API: minimal registration and lookup."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import DomainError
from app.db import get_db
from app.models.user import User
from app.routers.utils.dependencies import get_user_by_id
from app.schemas.user import UserCreate, UserRead
from app.services.user_service import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
) -> UserRead:
    try:
        user = UserService(db).create_user(data)
    except DomainError as e:
        raise e.to_http_exception() from e
    return UserRead.model_validate(user)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user: User = Depends(get_user_by_id)) -> UserRead:
    return UserRead.model_validate(user)
