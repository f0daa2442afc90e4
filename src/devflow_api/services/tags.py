from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.core.errors import ConflictError, ValidationError
from devflow_api.core.logging import get_logger
from devflow_api.db.models import Question, QuestionTag, normalize_tag_name
from devflow_api.db.repositories.tags import TagRepository
from devflow_api.domain.schemas.tags import MAX_TAG_NAME_LENGTH, TagRead

logger = get_logger(__name__)

JoinPair = tuple[str, int]


@dataclass(frozen=True, slots=True)
class TagReconciliation:
    """Outcome of applying a desired tag set to a question."""

    tag_ids: list[int]
    inserted: list[JoinPair] = field(default_factory=list)
    deleted: list[JoinPair] = field(default_factory=list)
    count_deltas: dict[int, int] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.deleted)


def validate_tag_names(names: Sequence[str]) -> list[str]:
    """Strip names and reject empty, oversized or repeated ones."""

    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in names:
        name = raw.strip()
        if not name:
            raise ValidationError({"tags": ["Tag names cannot be empty"]})
        if len(name) >= MAX_TAG_NAME_LENGTH:
            raise ValidationError(
                {"tags": [f"Tag '{name}' must be shorter than {MAX_TAG_NAME_LENGTH} characters"]}
            )
        key = normalize_tag_name(name)
        if key in seen:
            raise ConflictError({"tags": [f"Tag '{name}' is listed more than once"]})
        seen.add(key)
        cleaned.append(name)
    return cleaned


class TagReconciler:
    """Bring a question's tags in line with a desired list of names.

    Works inside the caller's transaction: rows are flushed, never committed.
    The question must have ``tag_links`` (and each link's ``tag``) loaded.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._tags = TagRepository(session)

    async def reconcile(
        self, question: Question, desired_tag_names: Sequence[str]
    ) -> TagReconciliation:
        desired = validate_tag_names(desired_tag_names)
        desired_keys = {normalize_tag_name(name) for name in desired}
        current = {link.tag.normalized_name: link for link in question.tag_links}

        to_add = [name for name in desired if normalize_tag_name(name) not in current]
        to_remove = [link for key, link in current.items() if key not in desired_keys]

        count_deltas: dict[int, int] = {}
        deleted: list[JoinPair] = []
        for link in to_remove:
            count_deltas[link.tag_id] = -1
            deleted.append((question.id, link.tag_id))
            question.tag_links.remove(link)
        await self._tags.decrement(tag_id for _, tag_id in deleted)

        next_position = max((link.position for link in question.tag_links), default=-1) + 1
        inserted: list[JoinPair] = []
        for name in to_add:
            tag_id = await self._tags.upsert_increment(name)
            count_deltas[tag_id] = 1
            question.tag_links.append(QuestionTag(tag_id=tag_id, position=next_position))
            next_position += 1
            inserted.append((question.id, tag_id))

        await self._session.flush()

        ordered = sorted(question.tag_links, key=lambda link: link.position)
        result = TagReconciliation(
            tag_ids=[link.tag_id for link in ordered],
            inserted=inserted,
            deleted=deleted,
            count_deltas=count_deltas,
        )
        logger.debug(
            "tags_reconciled",
            question_id=question.id,
            added=[tag_id for _, tag_id in inserted],
            removed=[tag_id for _, tag_id in deleted],
        )
        return result


class TagService:
    """Read access to the tag catalogue."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._repository = TagRepository(session)

    async def list_tags(self, tag_names: list[str] | None = None) -> list[TagRead]:
        """List tags, optionally filtering by specific names (case-insensitive)."""
        tags = (
            await self._repository.list_all()
            if tag_names is None
            else await self._repository.list_by_names(tag_names)
        )
        return [TagRead.model_validate(tag) for tag in tags]

    async def search_tags(self, query: str, limit: int = 20) -> tuple[int, list[TagRead]]:
        """Search tags by substring and return total hits plus the bounded result set."""
        total, tags = await self._repository.search(query=query, limit=limit)
        return total, [TagRead.model_validate(tag) for tag in tags]

    async def popular_tags(self, limit: int = 10) -> list[TagRead]:
        """Return tags in use, most used first."""
        tags = await self._repository.popular(limit=limit)
        return [TagRead.model_validate(tag) for tag in tags]


__all__ = [
    "TagReconciler",
    "TagReconciliation",
    "TagService",
    "validate_tag_names",
]
