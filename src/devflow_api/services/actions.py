"""Gate every operation passes through before any business logic runs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, overload

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.core.errors import (
    ActionError,
    UnauthorizedError,
    ValidationError,
    persistence_error,
)
from devflow_api.core.logging import get_logger
from devflow_api.domain.schemas.auth import SessionUser
from devflow_api.domain.schemas.common import FieldErrors

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
ParamsT = TypeVar("ParamsT")

FORM_ERRORS_KEY = "form"


class IdentityProvider(Protocol):
    """Resolves the caller of the current request."""

    async def current_user(self) -> SessionUser | None: ...


class StaticIdentityProvider:
    """Identity provider returning a fixed user, or nobody."""

    def __init__(self, user: SessionUser | None = None) -> None:
        self._user = user

    async def current_user(self) -> SessionUser | None:
        return self._user


@dataclass(frozen=True, slots=True)
class ActionContext(Generic[ParamsT]):
    params: ParamsT
    user: SessionUser | None
    session: AsyncSession

    def require_user(self) -> SessionUser:
        if self.user is None:
            raise UnauthorizedError()
        return self.user


def field_errors(exc: PydanticValidationError) -> FieldErrors:
    """Group pydantic errors by top-level field name."""

    grouped: FieldErrors = {}
    for error in exc.errors():
        location = error.get("loc") or ()
        field = str(location[0]) if location else FORM_ERRORS_KEY
        grouped.setdefault(field, []).append(error["msg"])
    return grouped


class ActionPipeline:
    """Validate input, authorize the caller and make sure the session is connected."""

    def __init__(self, session: AsyncSession, identity: IdentityProvider | None = None) -> None:
        self._session = session
        self._identity = identity

    @overload
    async def run(
        self,
        params: Mapping[str, Any] | None,
        *,
        schema: type[SchemaT],
        authorize: bool = False,
        operation: str | None = None,
    ) -> ActionContext[SchemaT] | ActionError: ...

    @overload
    async def run(
        self,
        params: Mapping[str, Any] | None,
        *,
        schema: None = None,
        authorize: bool = False,
        operation: str | None = None,
    ) -> ActionContext[Mapping[str, Any]] | ActionError: ...

    async def run(
        self,
        params: Mapping[str, Any] | None,
        *,
        schema: type[BaseModel] | None = None,
        authorize: bool = False,
        operation: str | None = None,
    ) -> ActionContext[Any] | ActionError:
        raw: Mapping[str, Any] = params or {}
        validated: Any = raw
        if schema is not None:
            try:
                validated = schema.model_validate(raw)
            except PydanticValidationError as exc:
                return ValidationError(field_errors(exc))

        user: SessionUser | None = None
        if authorize:
            try:
                user = await self._identity.current_user() if self._identity else None
            except Exception as exc:
                logger.error("identity_lookup_failed", operation=operation, exc_info=exc)
                return persistence_error(exc)
            if user is None:
                return UnauthorizedError()

        try:
            await self._session.connection()
        except Exception as exc:
            logger.error("session_connect_failed", operation=operation, exc_info=exc)
            return persistence_error(exc)

        return ActionContext(params=validated, user=user, session=self._session)


__all__ = [
    "ActionContext",
    "ActionPipeline",
    "IdentityProvider",
    "StaticIdentityProvider",
    "field_errors",
]
