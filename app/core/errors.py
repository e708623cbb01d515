"""
Domain errors raised by the rating and messaging services.

Routers convert them to HTTP responses with ``to_http_exception``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for typed failures returned to callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationError(DomainError):
    """Out-of-range rating value or otherwise malformed input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PermissionDenied(DomainError):
    """The actor does not own the record it tried to change."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class ConstraintViolation(DomainError):
    """A uniqueness or integrity constraint rejected the write."""

    status_code = status.HTTP_409_CONFLICT


class StoreUnavailable(DomainError):
    """The store failed the operation; nothing was written."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
