from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    status_code: int = 200
    error: str | None = None
    message: str | None = None


ALLOW = AccessDecision(allowed=True)


def authorize(principal: Any, allowed_roles: Iterable[str]) -> AccessDecision:
    if principal is None:
        return AccessDecision(False, 401, "Access denied", "Authentication required")
    role = str(getattr(principal, "role", "") or "")
    if role not in set(allowed_roles):
        return AccessDecision(False, 403, "Forbidden", "Insufficient permissions")
    return ALLOW
