from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clientdesk.core.config import settings
from clientdesk.core.errors import ApiError
from clientdesk.core.security import create_jwt, decode_jwt, hash_password, verify_password
from clientdesk.models.user import ROLE_ADMIN, User
from clientdesk.schemas.auth import UserLogin, UserRegister

_LOG = logging.getLogger("clientdesk.auth")

DEV_USER_ID = uuid.UUID(int=0)


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def create_access_token(user: User) -> str:
    return create_jwt(
        {"sub": str(user.id), "email": user.email, "role": user.role},
        settings.JWT_SECRET,
        timedelta(minutes=settings.JWT_TTL_MINUTES),
    )


def dev_bypass_user() -> User:
    """Synthetic admin used when the development bypass is switched on. Never persisted."""
    now = datetime.now(timezone.utc)
    return User(
        id=DEV_USER_ID,
        username="dev-user",
        email="dev@example.com",
        password_hash="",
        role=ROLE_ADMIN,
        is_active=True,
        created_at=now,
        updated_at=now,
    )


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def _access_denied() -> ApiError:
    return ApiError(401, "Access denied", "Invalid token or user not active")


def authenticate_token(db: Session, token: str | None) -> User:
    if not token:
        raise ApiError(401, "Access denied", "No token provided")
    try:
        claims = decode_jwt(token, settings.JWT_SECRET)
    except ExpiredSignatureError as exc:
        raise ApiError(401, "Token expired", "Please login again") from exc
    except JWTError as exc:
        raise ApiError(403, "Invalid token", "Token verification failed") from exc

    try:
        user_id = uuid.UUID(str(claims.get("sub") or "").strip())
    except ValueError as exc:
        raise _access_denied() from exc
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise _access_denied()
    return user


def register_user(db: Session, payload: UserRegister) -> User:
    existing = (
        db.query(User)
        .filter(or_(func.lower(User.email) == payload.email, User.username == payload.username))
        .first()
    )
    if existing is not None:
        field = "email" if normalize_email(existing.email) == payload.email else "username"
        raise ApiError(409, "User already exists", f"User with this {field} already exists")

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ApiError(409, "User already exists", "User with this email or username already exists") from exc
    db.refresh(user)
    _LOG.info("user registered id=%s role=%s", user.id, user.role)
    return user


def _invalid_credentials() -> ApiError:
    return ApiError(401, "Invalid credentials", "Email or password is incorrect")


def login_user(db: Session, payload: UserLogin) -> User:
    user = get_user_by_email(db, payload.email)
    if user is None:
        raise _invalid_credentials()
    if not user.is_active:
        raise ApiError(401, "Account disabled", "Your account has been disabled")
    if not verify_password(payload.password, user.password_hash):
        _LOG.warning("failed login for user id=%s", user.id)
        raise _invalid_credentials()

    user.last_login = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
