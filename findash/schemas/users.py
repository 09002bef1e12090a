from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from findash.core.security import MIN_PASSWORD_LENGTH, is_valid_email, is_valid_password
from findash.schemas.common import CamelModel, Pagination


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not is_valid_email(value):
        raise ValueError("Invalid email format")
    return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not is_valid_password(v):
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return v


class User(CamelModel):
    id: int
    name: str
    email: str
    role: Literal["admin", "user"]
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: User


class ProfileUpdate(BaseModel):
    """Only the fields sent by the client are applied."""

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_email(v)

    @model_validator(mode="after")
    def reject_null_required(self) -> "ProfileUpdate":
        for name in ("name", "email"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class UserList(CamelModel):
    users: list[User]
    pagination: Pagination
