from __future__ import annotations

import pytest
from sqlalchemy import select

from devflow_api.core.errors import ConflictError, ValidationError
from devflow_api.db.models import Tag
from devflow_api.db.repositories.tags import TagRepository, escape_like
from devflow_api.services.tags import TagService, validate_tag_names
from tests.utils import create_question, create_user

def test_validate_tag_names_strips_and_rejects() -> None:
    assert validate_tag_names([" go ", "Rust"]) == ["go", "Rust"]

    with pytest.raises(ConflictError) as conflict:
        validate_tag_names(["Rust", "rust"])
    assert conflict.value.details == {"tags": ["Tag 'rust' is listed more than once"]}

    with pytest.raises(ValidationError):
        validate_tag_names(["   "])

    with pytest.raises(ValidationError) as too_long:
        validate_tag_names(["x" * 15])
    assert not isinstance(too_long.value, ConflictError)

def test_escape_like() -> None:
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

@pytest.mark.asyncio
async def test_upsert_increment_and_decrement(session_maker) -> None:
    async with session_maker() as session:
        repository = TagRepository(session)
        first = await repository.upsert_increment(" Docker ")
        second = await repository.upsert_increment("docker")
        await repository.decrement([first])
        await session.commit()

    assert first == second
    async with session_maker() as session:
        tag = (await session.execute(select(Tag))).scalar_one()
        assert tag.name == "Docker"
        assert tag.normalized_name == "docker"
        assert tag.question_count == 1

@pytest.mark.asyncio
async def test_tag_service_list_search_and_popular(session_maker) -> None:
    user = await create_user(session_maker)
    await create_question(session_maker, user, tags=["cardio", "neuro"])
    await create_question(session_maker, user, title="Second", tags=["cardio"])
    async with session_maker() as session:
        repository = TagRepository(session)
        unused_id = await repository.upsert_increment("unused")
        await repository.decrement([unused_id])
        await session.commit()

    async with session_maker() as session:
        service = TagService(session)

        listed = await service.list_tags()
        assert [tag.name for tag in listed] == ["cardio", "neuro", "unused"]

        filtered = await service.list_tags(["NEURO"])
        assert [tag.name for tag in filtered] == ["neuro"]

        total, results = await service.search_tags("CAR")
        assert total == 1
        assert results[0].name == "cardio"

        popular = await service.popular_tags(limit=5)
        assert [(tag.name, tag.question_count) for tag in popular] == [
            ("cardio", 2),
            ("neuro", 1),
        ]
