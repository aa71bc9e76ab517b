import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

JWT_ALGORITHM = "HS256"

_LOG = logging.getLogger("clientdesk.security")
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """False for a missing or unrecognised stored hash instead of raising."""
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        _LOG.warning("stored password hash has an unknown format")
        return False


def create_jwt(claims: dict, secret: str, expires_delta: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    body = {**claims, "iat": int(issued_at.timestamp()), "exp": int((issued_at + expires_delta).timestamp())}
    return jwt.encode(body, secret, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str, secret: str) -> dict:
    # tokens without an expiry are never accepted
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM], options={"require_exp": True, "require_iat": True})
