from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clientdesk.models.client import CODE_MAX

PHONE_RE = re.compile(r"^[+]?[0-9\s\-\(\)]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PINCODE_RE = r"^\d{6}$"

ClientStatus = Literal["active", "inactive"]


def normalize_email(value: str) -> str:
    email = str(value or "").strip().lower()
    if not EMAIL_RE.fullmatch(email):
        raise ValueError("must be a valid email")
    return email


class _ClientRules(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    @field_validator("phone", "address", "telephone", "birth_date", mode="before", check_fields=False)
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("code", mode="before", check_fields=False)
    @classmethod
    def reject_bool_code(cls, value):
        # bool is an int subclass; true must not become code 1
        if isinstance(value, bool):
            raise ValueError("must be a number")
        return value

    @field_validator("email", check_fields=False)
    @classmethod
    def validate_email(cls, value):
        if value is None:
            return value
        return normalize_email(value)

    @field_validator("phone", "telephone", check_fields=False)
    @classmethod
    def validate_phone(cls, value):
        if value is None:
            return value
        if not PHONE_RE.fullmatch(value):
            raise ValueError("must be a valid phone number")
        return value

    @field_validator("birth_date", check_fields=False)
    @classmethod
    def validate_birth_date(cls, value):
        if value is None:
            return value
        if value > datetime.now(timezone.utc).date():
            raise ValueError("must not be in the future")
        return value


class ClientCreate(_ClientRules):
    code: int = Field(gt=0, le=CODE_MAX)
    name: str = Field(min_length=2, max_length=100)
    email: str
    phone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    address: Optional[str] = Field(default=None, max_length=200)
    telephone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    status: ClientStatus = "active"
    birth_date: Optional[date] = Field(default=None, alias="birthDate")
    pincode: str = Field(pattern=PINCODE_RE)


class ClientUpdate(_ClientRules):
    code: Optional[int] = Field(default=None, gt=0, le=CODE_MAX)
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    address: Optional[str] = Field(default=None, max_length=200)
    telephone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    status: Optional[ClientStatus] = None
    birth_date: Optional[date] = Field(default=None, alias="birthDate")
    pincode: Optional[str] = Field(default=None, pattern=PINCODE_RE)

    @field_validator("code", "name", "email", "status", "pincode", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
