from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clientdesk.schemas.clients import normalize_email


class UserRegister(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str = Field(min_length=3, max_length=30)
    email: str
    password: str = Field(min_length=6)
    role: Literal["user", "admin"] = "user"

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class UserLogin(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)
