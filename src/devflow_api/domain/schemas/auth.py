from __future__ import annotations

from pydantic import EmailStr, Field, SecretStr, field_validator

from devflow_api.domain.schemas.common import BaseSchema, TimestampedSchema


class _Credentials(BaseSchema):
    email: EmailStr
    password: SecretStr

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, email: str) -> str:
        return email.strip().lower()


class UserCreate(_Credentials):
    password: SecretStr = Field(..., min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)
    image: str | None = Field(default=None, max_length=2048, description="Avatar URL.")


class UserLogin(_Credentials):
    pass


class UserRead(TimestampedSchema):
    id: str
    email: EmailStr
    full_name: str | None = None
    image: str | None = None
    is_active: bool = True


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class SessionUser(BaseSchema):
    """The authenticated caller as seen by the action pipeline."""

    id: str
    email: EmailStr
    full_name: str | None = None
    image: str | None = None


__all__ = [
    "SessionUser",
    "TokenResponse",
    "UserCreate",
    "UserLogin",
    "UserRead",
]
