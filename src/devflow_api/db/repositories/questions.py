from __future__ import annotations

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from devflow_api.db.models import Question, QuestionTag
from devflow_api.db.repositories.tags import escape_like
from devflow_api.domain.enums import QuestionFilter


def _with_relations(stmt: Select[tuple[Question]]) -> Select[tuple[Question]]:
    return stmt.options(
        selectinload(Question.tag_links).joinedload(QuestionTag.tag),
        joinedload(Question.author),
    )


class QuestionRepository:
    """Data access operations for questions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, *, title: str, content: str, author_id: str) -> Question:
        entity = Question(title=title, content=content, author_id=author_id)
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity, attribute_names=["tag_links"])
        return entity

    async def get_by_id(self, question_id: str) -> Question | None:
        """Load a question with tags and author, overwriting stale identity-map state."""
        stmt = (
            _with_relations(select(Question))
            .where(Question.id == question_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def update_content(self, entity: Question, *, title: str, content: str) -> bool:
        changed = False
        if entity.title != title:
            entity.title = title
            changed = True
        if entity.content != content:
            entity.content = content
            changed = True
        if changed:
            await self._session.flush()
        return changed

    async def search(
        self,
        *,
        query: str | None,
        question_filter: QuestionFilter,
        skip: int,
        limit: int,
    ) -> tuple[int, list[Question]]:
        stmt: Select[tuple[Question]] = select(Question)

        if query:
            like_term = f"%{escape_like(query)}%"
            stmt = stmt.where(
                or_(
                    Question.title.ilike(like_term, escape="\\"),
                    Question.content.ilike(like_term, escape="\\"),
                )
            )

        if question_filter is QuestionFilter.UNANSWERED:
            stmt = stmt.where(Question.answers == 0)

        if question_filter is QuestionFilter.POPULAR:
            stmt = stmt.order_by(Question.upvotes.desc(), Question.created_at.desc())
        else:
            stmt = stmt.order_by(Question.created_at.desc())

        total_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = await self._session.scalar(total_stmt) or 0

        stmt = _with_relations(stmt).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return total, list(result.unique().scalars().all())


__all__ = ["QuestionRepository"]
