from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clientdesk.core.config import settings
from clientdesk.core.errors import ApiError
from clientdesk.db.session import get_db
from clientdesk.models.user import User
from clientdesk.services.access import authorize
from clientdesk.services.auth import authenticate_token, dev_bypass_user
from clientdesk.services.rate_limit import RateLimitPolicy, auth_policy, general_policy, get_rate_limiter
from clientdesk.services.sanitizer import read_sanitized_body, sanitize_mapping
from clientdesk.services.validation import validate_payload

_LOG = logging.getLogger("clientdesk.deps")

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SanitizedInput:
    query: dict[str, Any] = field(default_factory=dict)
    path: dict[str, Any] = field(default_factory=dict)
    body: Any = None


def client_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        forwarded = str(request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


def _enforce(policy: RateLimitPolicy, request: Request) -> None:
    ip = client_ip(request)
    result = get_rate_limiter().hit(f"{policy.name}:{ip}", limit=policy.limit, window_seconds=policy.window_seconds)
    if result.allowed:
        return
    _LOG.warning("rate limit %s exceeded ip=%s count=%s", policy.name, ip, result.current_value)
    raise ApiError(
        429,
        policy.error,
        policy.message,
        headers={"Retry-After": str(result.retry_after_seconds)},
        extra={"retryAfter": result.retry_after_seconds},
    )


def general_rate_limit(request: Request) -> None:
    _enforce(general_policy(), request)


def auth_rate_limit(request: Request) -> None:
    _enforce(auth_policy(), request)


async def sanitize_request(request: Request) -> SanitizedInput:
    body = None
    if request.method in {"POST", "PUT", "PATCH"}:
        body = await read_sanitized_body(request)
    return SanitizedInput(
        query=sanitize_mapping(request.query_params),
        path=sanitize_mapping(request.path_params),
        body=body,
    )


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if settings.auth_bypass_active:
        user = dev_bypass_user()
    else:
        user = authenticate_token(db, creds.credentials if creds else None)
    request.state.user = user
    return user


def require_roles(*roles: str):
    allowed = frozenset(roles)

    def _inner(user: User = Depends(get_current_user)) -> User:
        decision = authorize(user, allowed)
        if not decision.allowed:
            raise ApiError(decision.status_code, decision.error or "Forbidden", decision.message)
        return user

    return _inner


def validated_body(schema):
    def _inner(inp: SanitizedInput = Depends(sanitize_request)):
        return validate_payload(schema, inp.body if inp.body is not None else {})

    return _inner
