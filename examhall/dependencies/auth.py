"""Authentication dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DbSession

from examhall.database import get_db
from examhall.models.db.user import User
from examhall.services.auth_service import (
    extend_session,
    get_active_session,
    get_user_by_id,
    verify_token,
)

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None, db: DbSession
) -> User:
    """Resolve bearer credentials to an active user or raise 401."""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    # Check if login session is still active
    jti = payload.get("jti")
    if jti:
        session = get_active_session(db, jti)
        if session is None:
            raise _unauthorized("Session expired or invalidated")
        # Extend session on activity
        extend_session(db, session)

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    user = get_user_by_id(db, int(user_id))
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("User is inactive")

    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    return _resolve_user(credentials, db)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User | None:
    """Get the current user if authenticated, otherwise None."""
    try:
        return _resolve_user(credentials, db)
    except HTTPException:
        return None
