"""Authentication service for user management and JWT handling."""
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session as DbSession

from examhall.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    SECRET_KEY,
    SESSION_EXTEND_MINUTES,
)
from examhall.models.db.user import Session, User


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def create_access_token(user_id: int, jti: str | None = None) -> tuple[str, str]:
    """Create a JWT access token.

    Returns:
        Tuple of (token, jti)
    """
    if jti is None:
        jti = str(uuid.uuid4())

    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "jti": jti,
    }
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt, jti


def verify_token(token: str) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded token payload or None if invalid.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def issue_token(db: DbSession, user_id: int) -> tuple[str, int]:
    """Create a token and its login session.

    Returns:
        Tuple of (token, lifetime in seconds)
    """
    token, jti = create_access_token(user_id)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    create_session(db, user_id, jti, expires_at)
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60


def get_user_by_username(db: DbSession, username: str) -> User | None:
    """Get user by username."""
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def get_user_by_email(db: DbSession, email: str) -> User | None:
    """Get user by email."""
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def get_user_by_id(db: DbSession, user_id: int) -> User | None:
    """Get user by ID."""
    return db.get(User, user_id)


def authenticate(db: DbSession, login: str, password: str) -> User | None:
    """Find user by username or email and check the password."""
    user = get_user_by_username(db, login) or get_user_by_email(db, login)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def create_user(
    db: DbSession,
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> User:
    """Create a new user."""
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        full_name=full_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_session(
    db: DbSession, user_id: int, token_jti: str, expires_at: datetime
) -> Session:
    """Create a new login session for user."""
    session = Session(
        user_id=user_id,
        token_jti=token_jti,
        expires_at=expires_at,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_active_session(db: DbSession, token_jti: str) -> Session | None:
    """Get an active login session by token JTI."""
    now = datetime.now(timezone.utc)
    return db.execute(
        select(Session).where(
            Session.token_jti == token_jti,
            Session.is_active.is_(True),
            Session.expires_at > now,
        )
    ).scalar_one_or_none()


def extend_session(db: DbSession, session: Session) -> Session:
    """Extend session expiration and update last activity."""
    now = datetime.now(timezone.utc)
    session.last_activity = now
    session.expires_at = now + timedelta(minutes=SESSION_EXTEND_MINUTES)
    db.commit()
    db.refresh(session)
    return session


def invalidate_session(db: DbSession, token_jti: str) -> None:
    """Invalidate a login session by token JTI."""
    db.execute(
        update(Session).where(Session.token_jti == token_jti).values(is_active=False)
    )
    db.commit()


def cleanup_expired_sessions(db: DbSession) -> int:
    """Remove expired login sessions from database."""
    now = datetime.now(timezone.utc)
    result = db.execute(delete(Session).where(Session.expires_at < now))
    db.commit()
    return result.rowcount
