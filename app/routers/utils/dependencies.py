from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.provider import Provider
from app.models.user import User
from app.services.provider_service import ProviderService
from app.services.user_service import UserService


def get_current_user(
    x_user_id: UUID = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency resolving the acting user from the X-User-Id header."""
    user = UserService(db).get_user(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def get_user_by_id(
    user_id: UUID,
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency to get a user by ID."""
    user = UserService(db).get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_provider_by_id(
    provider_id: UUID,
    db: Session = Depends(get_db),
) -> Provider:
    """FastAPI dependency to get a provider by ID."""
    provider = ProviderService(db).get_provider(provider_id)
    if provider is None:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider
