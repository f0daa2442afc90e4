"""Password hashing and bearer access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, cast

import jwt
from passlib.context import CryptContext

from devflow_api.config.settings import Settings

ACCESS_TOKEN_TYPE = "access"

_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return cast(str, _password_context.hash(password))


def verify_password(password: str, password_hash: str) -> bool:
    return bool(_password_context.verify(password, password_hash))


def password_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash uses outdated parameters."""

    return bool(_password_context.needs_update(password_hash))


def create_access_token(
    *,
    subject: str,
    settings: Settings,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign an access token for ``subject`` (a user id)."""

    issued_at = datetime.now(tz=timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_exp_minutes)
    payload: dict[str, Any] = {
        "sub": subject,
        "typ": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify an access token and return its claims.

    Raises ``jwt.InvalidTokenError`` (or a subclass) when the token is
    malformed, tampered with, expired, missing ``sub``/``exp`` or is not an
    access token.
    """

    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("typ") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return cast(dict[str, Any], payload)


__all__ = [
    "ACCESS_TOKEN_TYPE",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "password_needs_rehash",
    "verify_password",
]
