from __future__ import annotations

import pytest

from devflow_api.core.errors import (
    PersistenceError,
    PersistenceTimeoutError,
    UnauthorizedError,
    ValidationError,
)
from devflow_api.domain.schemas.auth import SessionUser
from devflow_api.domain.schemas.questions import QuestionCreate
from devflow_api.services.actions import ActionContext, ActionPipeline, StaticIdentityProvider

pytestmark = pytest.mark.asyncio

USER = SessionUser(id="user-1", email="pipeline@example.com", full_name="Pipe")


async def test_pipeline_returns_field_errors(session_maker) -> None:
    async with session_maker() as session:
        pipeline = ActionPipeline(session, StaticIdentityProvider(USER))
        outcome = await pipeline.run({"title": "", "tags": []}, schema=QuestionCreate)

    assert isinstance(outcome, ValidationError)
    assert outcome.status_code == 400
    assert outcome.details is not None
    assert set(outcome.details) == {"title", "content", "tags"}


async def test_pipeline_validates_before_authorizing(session_maker) -> None:
    async with session_maker() as session:
        pipeline = ActionPipeline(session, StaticIdentityProvider(None))
        outcome = await pipeline.run({}, schema=QuestionCreate, authorize=True)

    assert isinstance(outcome, ValidationError)


async def test_pipeline_rejects_anonymous_caller(session_maker) -> None:
    params = {"title": "T", "content": "C", "tags": ["python"]}
    async with session_maker() as session:
        without_provider = await ActionPipeline(session).run(
            params, schema=QuestionCreate, authorize=True
        )
        anonymous = await ActionPipeline(session, StaticIdentityProvider()).run(
            params, schema=QuestionCreate, authorize=True
        )

    assert isinstance(without_provider, UnauthorizedError)
    assert isinstance(anonymous, UnauthorizedError)
    assert anonymous.status_code == 401


async def test_pipeline_returns_context(session_maker) -> None:
    async with session_maker() as session:
        pipeline = ActionPipeline(session, StaticIdentityProvider(USER))
        outcome = await pipeline.run(
            {"title": " Title ", "content": "Body", "tags": [" python "]},
            schema=QuestionCreate,
            authorize=True,
        )

        assert isinstance(outcome, ActionContext)
        assert outcome.user == USER
        assert outcome.session is session
        assert outcome.params.title == "Title"
        assert outcome.params.tags == ["python"]
        assert outcome.require_user() == USER


async def test_pipeline_without_schema_passes_raw_params(session_maker) -> None:
    async with session_maker() as session:
        outcome = await ActionPipeline(session).run(None)

        assert isinstance(outcome, ActionContext)
        assert outcome.params == {}
        assert outcome.user is None
        with pytest.raises(UnauthorizedError):
            outcome.require_user()


async def test_pipeline_reports_unreachable_database(unreachable_session_maker) -> None:
    async with unreachable_session_maker() as session:
        outcome = await ActionPipeline(session, StaticIdentityProvider(USER)).run(
            {"title": "T", "content": "C", "tags": ["python"]},
            schema=QuestionCreate,
            authorize=True,
            operation="create_question",
        )

    assert isinstance(outcome, PersistenceError)
    assert outcome.status_code == 503
    assert outcome.message == "Service Unavailable"


class _FailingIdentity:
    def __init__(self, error: Exception) -> None:
        self._error = error

    async def current_user(self) -> SessionUser | None:
        raise self._error


async def test_pipeline_reports_identity_lookup_failures(session_maker) -> None:
    params = {"title": "T", "content": "C", "tags": ["python"]}
    async with session_maker() as session:
        offline = await ActionPipeline(
            session, _FailingIdentity(ConnectionError("user store offline"))
        ).run(params, schema=QuestionCreate, authorize=True)
        slow = await ActionPipeline(session, _FailingIdentity(TimeoutError())).run(
            params, schema=QuestionCreate, authorize=True
        )

    assert isinstance(offline, PersistenceError)
    assert offline.status_code == 503
    assert isinstance(slow, PersistenceTimeoutError)
    assert slow.status_code == 504
