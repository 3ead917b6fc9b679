"""Shared API dependencies for authentication, pagination and database access."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from orbit_social.core.security import decode_access_token
from orbit_social.core.settings import settings
from orbit_social.db.session import get_db
from orbit_social.models import User

# auto_error is off so that a missing header maps to 401 (not 403) and so that
# optional-auth routes can fall back to an anonymous viewer.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(credentials: HTTPAuthorizationCredentials | None, db: Session) -> User | None:
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(credentials: CredentialsDep, db: SessionDep) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user is
            unknown or deactivated.
    """
    if credentials is None:
        raise _unauthorized()
    user = _resolve_user(credentials, db)
    if user is None:
        raise _unauthorized("Could not validate credentials")
    if not user.is_active:
        raise _unauthorized()
    return user


def get_optional_user(credentials: CredentialsDep, db: SessionDep) -> User | None:
    """Return the authenticated user, or None for anonymous callers.

    Invalid tokens and deactivated accounts are treated as anonymous.
    """
    user = _resolve_user(credentials, db)
    if user is None or not user.is_active:
        return None
    return user


def require_admin(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Allow only ADMIN accounts through."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Admin access required",
        )
    return current_user


@dataclass(frozen=True)
class PageParams:
    """1-based page number and page size."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int | None = Query(None, ge=1, description="Items per page"),
) -> PageParams:
    """Parse and clamp pagination query parameters."""
    size = settings.default_page_size if limit is None else min(limit, settings.max_page_size)
    return PageParams(page=page, limit=size)


# Type aliases for route signatures
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
AdminUserDep = Annotated[User, Depends(require_admin)]
PageDep = Annotated[PageParams, Depends(get_page_params)]
