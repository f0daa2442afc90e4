from __future__ import annotations

from datetime import timedelta

import jwt
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.config.settings import Settings, get_settings
from devflow_api.core.logging import get_logger
from devflow_api.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    password_needs_rehash,
    verify_password,
)
from devflow_api.db.repositories.users import UserRepository
from devflow_api.domain.schemas.auth import (
    SessionUser,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserRead,
)

logger = get_logger(__name__)


class AuthService:
    """Credential registration, login and access-token resolution."""

    def __init__(
        self,
        *,
        session: AsyncSession,
        user_repository: UserRepository,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._users = user_repository
        self._settings = settings or get_settings()

    async def register_user(self, payload: UserCreate) -> UserRead:
        """Register a user account with hashed credentials."""
        if await self._users.email_taken(payload.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already in use",
            )

        password_hash = hash_password(payload.password.get_secret_value())
        entity = await self._users.create(
            email=payload.email,
            password_hash=password_hash,
            full_name=payload.full_name,
            image=payload.image,
        )
        await self._session.commit()
        logger.info("user_registered", user_id=entity.id)
        return UserRead.model_validate(entity)

    async def authenticate(self, credentials: UserLogin) -> TokenResponse:
        """Validate credentials and issue an access token."""
        user = await self._users.get_by_email(credentials.email)
        if user is None or not verify_password(
            credentials.password.get_secret_value(), user.password_hash
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User disabled")

        expires_delta = timedelta(minutes=self._settings.access_token_exp_minutes)
        if password_needs_rehash(user.password_hash):
            await self._users.update_password_hash(
                user, hash_password(credentials.password.get_secret_value())
            )
            await self._session.commit()

        access_token = create_access_token(
            subject=user.id,
            settings=self._settings,
            email=user.email,
            expires_delta=expires_delta,
        )
        return TokenResponse(
            access_token=access_token,
            expires_in=int(expires_delta.total_seconds()),
        )

    async def parse_access_token(self, token: str) -> SessionUser:
        """Parse a JWT access token into a session user."""
        try:
            payload = decode_access_token(token, self._settings)
        except jwt.InvalidTokenError as exc:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
            ) from exc

        user_id = payload.get("sub")
        if not isinstance(user_id, str):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

        user = await self._users.get_active(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

        return SessionUser(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            image=user.image,
        )


class TokenIdentityProvider:
    """Identity provider backed by an optional bearer token.

    Resolution failures yield ``None``; the action pipeline turns that into
    an authorization error.
    """

    def __init__(self, auth_service: AuthService, token: str | None) -> None:
        self._auth_service = auth_service
        self._token = token
        self._resolved = False
        self._user: SessionUser | None = None

    async def current_user(self) -> SessionUser | None:
        if self._resolved:
            return self._user
        self._resolved = True
        if not self._token:
            return None
        try:
            self._user = await self._auth_service.parse_access_token(self._token)
        except HTTPException as exc:
            logger.info("identity_rejected", reason=exc.detail)
            self._user = None
        return self._user


__all__ = ["AuthService", "TokenIdentityProvider"]
