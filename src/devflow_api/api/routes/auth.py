from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from devflow_api.api.dependencies import AuthServiceDependency, get_current_session_user
from devflow_api.domain.schemas.auth import (
    SessionUser,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserRead,
)
from devflow_api.domain.schemas.common import SuccessResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


CurrentUserDependency = Annotated[SessionUser, Depends(get_current_session_user)]


@router.post(
    "/register",
    response_model=SuccessResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    payload: UserCreate,
    auth_service: AuthServiceDependency,
) -> SuccessResponse[UserRead]:
    """Create an account that can author questions."""
    return SuccessResponse[UserRead](data=await auth_service.register_user(payload))


@router.post("/login", response_model=SuccessResponse[TokenResponse])
async def login_user(
    payload: UserLogin,
    auth_service: AuthServiceDependency,
) -> SuccessResponse[TokenResponse]:
    """Exchange email and password for a bearer token."""
    return SuccessResponse[TokenResponse](data=await auth_service.authenticate(payload))


@router.get("/me", response_model=SuccessResponse[SessionUser])
async def get_me(user: CurrentUserDependency) -> SuccessResponse[SessionUser]:
    return SuccessResponse[SessionUser](data=user)
