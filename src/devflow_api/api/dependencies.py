from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.db.repositories.users import UserRepository
from devflow_api.db.session import get_session
from devflow_api.domain.schemas.auth import SessionUser
from devflow_api.services.auth import AuthService, TokenIdentityProvider
from devflow_api.services.questions import QuestionService
from devflow_api.services.tags import TagService

AsyncSessionDependency = Annotated[AsyncSession, Depends(get_session)]

bearer_scheme = HTTPBearer(
    auto_error=False,
    scheme_name="JWTBearer",
    description="Paste a JWT access token obtained from `/api/v1/auth/login`.",
)

TokenDependency = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_auth_service(session: AsyncSessionDependency) -> AuthService:
    return AuthService(session=session, user_repository=UserRepository(session))


AuthServiceDependency = Annotated[AuthService, Depends(get_auth_service)]


def get_identity_provider(
    token: TokenDependency,
    auth_service: AuthServiceDependency,
) -> TokenIdentityProvider:
    credentials = token.credentials if token else None
    return TokenIdentityProvider(auth_service, credentials)


IdentityDependency = Annotated[TokenIdentityProvider, Depends(get_identity_provider)]


def get_question_service(
    session: AsyncSessionDependency,
    identity: IdentityDependency,
) -> QuestionService:
    return QuestionService(session, identity)


def get_tag_service(session: AsyncSessionDependency) -> TagService:
    return TagService(session)


async def get_current_session_user(
    token: TokenDependency,
    auth_service: AuthServiceDependency,
) -> SessionUser:
    if token and token.credentials:
        return await auth_service.parse_access_token(token.credentials)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")


__all__ = [
    "AsyncSessionDependency",
    "AuthServiceDependency",
    "IdentityDependency",
    "TokenDependency",
    "get_auth_service",
    "get_current_session_user",
    "get_identity_provider",
    "get_question_service",
    "get_tag_service",
]
