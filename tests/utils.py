from __future__ import annotations

from typing import Any

from httpx import AsyncClient

from devflow_api.db.repositories.users import UserRepository
from devflow_api.domain.schemas.auth import SessionUser
from devflow_api.domain.schemas.common import SuccessResponse
from devflow_api.domain.schemas.questions import QuestionRead
from devflow_api.services.actions import StaticIdentityProvider
from devflow_api.services.questions import QuestionService

DEFAULT_PASSWORD = "Secret123!"


async def create_user(
    session_maker,
    email: str = "author@example.com",
    full_name: str | None = "Author",
) -> SessionUser:
    async with session_maker() as session:
        entity = await UserRepository(session).create(
            email=email,
            password_hash="hash",
            full_name=full_name,
        )
        await session.commit()
        return SessionUser(
            id=entity.id,
            email=entity.email,
            full_name=entity.full_name,
            image=entity.image,
        )


async def create_question(
    session_maker,
    user: SessionUser,
    *,
    title: str = "How do I reverse a list?",
    content: str = "Looking for the idiomatic way.",
    tags: list[str] | None = None,
) -> QuestionRead:
    async with session_maker() as session:
        service = QuestionService(session, StaticIdentityProvider(user))
        result = await service.create_question(
            {"title": title, "content": content, "tags": tags or ["python"]}
        )
    assert isinstance(result, SuccessResponse), result
    return result.data


async def register_and_login(
    client: AsyncClient,
    email: str,
    *,
    password: str = DEFAULT_PASSWORD,
    full_name: str | None = None,
) -> dict[str, Any]:
    """Register an account over HTTP and return bearer headers for it."""
    register = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "full_name": full_name},
    )
    assert register.status_code == 201, register.text
    login = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['data']['access_token']}"}


__all__ = ["DEFAULT_PASSWORD", "create_question", "create_user", "register_and_login"]
