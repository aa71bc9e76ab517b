from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clientdesk.core.errors import ApiError
from clientdesk.models.client import Client
from clientdesk.schemas.clients import ClientCreate, ClientUpdate

_LOG = logging.getLogger("clientdesk.clients")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

EMAIL_CONFLICT = "Client with this email already exists"
CODE_CONFLICT = "Client with this code already exists"


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _bad_pagination() -> ApiError:
    return ApiError(
        400,
        "Invalid pagination parameters. Page must be >= 1, limit must be between 1 and 100",
    )


def _parse_int(raw: Any, default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise _bad_pagination() from None


def parse_page_request(query: dict[str, Any]) -> PageRequest:
    page = _parse_int(query.get("page"), DEFAULT_PAGE)
    limit = _parse_int(query.get("limit"), DEFAULT_LIMIT)
    if page < 1 or limit < 1 or limit > MAX_LIMIT:
        raise _bad_pagination()
    return PageRequest(page=page, limit=limit)


def parse_client_id(raw: Any) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw or "").strip())
    except ValueError as exc:
        raise ApiError(400, "Invalid client ID format") from exc


def _not_found() -> ApiError:
    return ApiError(404, "Client not found")


def list_clients(db: Session, page: PageRequest) -> tuple[list[Client], dict[str, int]]:
    total = db.query(func.count(Client.id)).scalar() or 0
    rows = (
        db.query(Client)
        .order_by(Client.created_at.desc(), Client.code.desc())
        .offset(page.offset)
        .limit(page.limit)
        .all()
    )
    pagination = {
        "page": page.page,
        "limit": page.limit,
        "total": int(total),
        "pages": math.ceil(total / page.limit),
    }
    return rows, pagination


def get_client_or_404(db: Session, client_id: uuid.UUID) -> Client:
    row = db.get(Client, client_id)
    if row is None:
        raise _not_found()
    return row


def _check_unique(db: Session, *, email: str | None, code: int | None, exclude_id: uuid.UUID | None = None) -> None:
    # Best effort only: the unique indexes settle races at commit time.
    if email is not None:
        q = db.query(Client.id).filter(Client.email == email)
        if exclude_id is not None:
            q = q.filter(Client.id != exclude_id)
        if q.first() is not None:
            raise ApiError(409, EMAIL_CONFLICT)
    if code is not None:
        q = db.query(Client.id).filter(Client.code == code)
        if exclude_id is not None:
            q = q.filter(Client.id != exclude_id)
        if q.first() is not None:
            raise ApiError(409, CODE_CONFLICT)


def _conflict_message(detail: str) -> str:
    # SQLite names the column (clients.code), PostgreSQL the index (ix_clients_code)
    text = detail.lower()
    if "clients.code" in text or "ix_clients_code" in text:
        return CODE_CONFLICT
    return EMAIL_CONFLICT


def _commit_or_409(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        _LOG.warning("unique constraint violated on clients: %s", exc.orig)
        raise ApiError(409, _conflict_message(str(exc.orig))) from exc


def create_client(db: Session, payload: ClientCreate) -> Client:
    _check_unique(db, email=payload.email, code=payload.code)
    row = Client(**payload.model_dump())
    db.add(row)
    _commit_or_409(db)
    db.refresh(row)
    _LOG.info("client created id=%s code=%s", row.id, row.code)
    return row


def update_client(db: Session, client_id: uuid.UUID, payload: ClientUpdate) -> Client:
    row = get_client_or_404(db, client_id)
    changes = payload.changes()
    _check_unique(db, email=changes.get("email"), code=changes.get("code"), exclude_id=row.id)
    for key, value in changes.items():
        setattr(row, key, value)
    row.touch()
    db.add(row)
    _commit_or_409(db)
    db.refresh(row)
    _LOG.info("client updated id=%s fields=%s", row.id, ",".join(sorted(changes)))
    return row


def delete_client(db: Session, client_id: uuid.UUID) -> None:
    row = get_client_or_404(db, client_id)
    db.delete(row)
    db.commit()
    _LOG.info("client deleted id=%s", client_id)
