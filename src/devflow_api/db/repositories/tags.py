from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.db.models import Tag, normalize_tag_name, utcnow

_UPSERT_INSERTS: dict[str, Callable[[Any], Any]] = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches as a literal substring."""

    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TagRepository:
    """Data access for tags and their usage counters."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_by_names(self, names: Iterable[str]) -> list[Tag]:
        normalized = {normalize_tag_name(name) for name in names if name.strip()}
        if not normalized:
            return []

        stmt: Select[tuple[Tag]] = (
            select(Tag).where(Tag.normalized_name.in_(normalized)).order_by(Tag.name.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[Tag]:
        stmt: Select[tuple[Tag]] = select(Tag).order_by(Tag.name.asc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, query: str, limit: int = 20) -> tuple[int, list[Tag]]:
        pattern = f"%{escape_like(query.strip())}%"
        stmt = (
            select(Tag)
            .where(Tag.name.ilike(pattern, escape="\\"))
            .order_by(Tag.question_count.desc(), Tag.name.asc())
        )
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = await self._session.scalar(count_stmt) or 0
        stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return total, list(result.scalars().all())

    async def popular(self, limit: int = 10) -> list[Tag]:
        stmt: Select[tuple[Tag]] = (
            select(Tag)
            .where(Tag.question_count > 0)
            .order_by(Tag.question_count.desc(), Tag.name.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert_increment(self, name: str) -> int:
        """Insert the tag with a count of one, or bump the existing row's count.

        A single ``INSERT ... ON CONFLICT DO UPDATE`` keyed on the normalized
        name, so concurrent writers introducing the same tag converge on one
        row and no increment is lost.
        """
        display_name = name.strip()
        insert = self._upsert_insert()
        stmt = (
            insert(Tag)
            .values(
                name=display_name,
                normalized_name=normalize_tag_name(display_name),
                question_count=1,
            )
            .on_conflict_do_update(
                index_elements=["normalized_name"],
                set_={
                    "question_count": Tag.question_count + 1,
                    "updated_at": utcnow(),
                },
            )
            .returning(Tag.id)
        )
        tag_id = await self._session.scalar(stmt)
        if tag_id is None:  # pragma: no cover - RETURNING always yields a row
            raise RuntimeError(f"Upsert of tag {display_name!r} returned no id")
        return int(tag_id)

    async def decrement(self, tag_ids: Iterable[int]) -> None:
        ids = list(tag_ids)
        if not ids:
            return
        await self._session.execute(
            update(Tag)
            .where(Tag.id.in_(ids))
            .values(question_count=Tag.question_count - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

    def _upsert_insert(self) -> Callable[[Any], Any]:
        dialect = self._session.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect]
        except KeyError as exc:
            raise NotImplementedError(f"Tag upsert is not supported on {dialect!r}") from exc


__all__ = ["TagRepository", "escape_like"]
