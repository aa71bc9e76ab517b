from __future__ import annotations

from datetime import date, datetime
from typing import Any

from clientdesk.models.client import Client
from clientdesk.models.user import User


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def to_public_view(user: User) -> dict[str, Any]:
    """Outbound representation of an account; the password hash and reset fields never leave."""
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "isActive": bool(user.is_active),
        "lastLogin": _iso(user.last_login),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def client_to_dict(row: Client) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "code": row.code,
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "address": row.address,
        "telephone": row.telephone,
        "status": row.status,
        "birthDate": _iso(row.birth_date),
        "pincode": row.pincode,
        "createdAt": _iso(row.created_at),
        "updatedAt": _iso(row.updated_at),
    }
