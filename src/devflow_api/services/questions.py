from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy.ext.asyncio import AsyncSession

from devflow_api.core.errors import ActionError, ForbiddenError, NotFoundError, handle_error
from devflow_api.core.logging import get_logger
from devflow_api.db.models import Question, utcnow
from devflow_api.db.repositories.questions import QuestionRepository
from devflow_api.domain.enums import QuestionAction, QuestionFilter
from devflow_api.domain.schemas.common import ErrorResponse, SuccessResponse
from devflow_api.domain.schemas.questions import (
    AuthorSummary,
    QuestionCreate,
    QuestionEdit,
    QuestionLookup,
    QuestionRead,
    QuestionSearch,
    QuestionsPage,
)
from devflow_api.domain.schemas.tags import TagRead
from devflow_api.services.actions import ActionContext, ActionPipeline, IdentityProvider
from devflow_api.services.tags import TagReconciler

logger = get_logger(__name__)

Params = Mapping[str, Any] | None
QuestionResponse = SuccessResponse[QuestionRead] | ErrorResponse
QuestionsPageResponse = SuccessResponse[QuestionsPage] | ErrorResponse


def to_question_read(entity: Question) -> QuestionRead:
    """Map a question loaded with its tags and author to the public schema."""
    author = entity.author
    return QuestionRead(
        id=entity.id,
        title=entity.title,
        content=entity.content,
        author=AuthorSummary(id=author.id, name=author.full_name, image=author.image),
        tags=[TagRead.model_validate(link.tag) for link in entity.tag_links],
        views=entity.views,
        answers=entity.answers,
        upvotes=entity.upvotes,
        downvotes=entity.downvotes,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )


class QuestionService:
    """Create, edit, fetch and search questions.

    Every public method returns a response envelope; failures are logged and
    converted, never raised. Mutations commit on success and roll back on any
    error before returning.
    """

    def __init__(self, session: AsyncSession, identity: IdentityProvider | None = None):
        self._session = session
        self._pipeline = ActionPipeline(session, identity)
        self._questions = QuestionRepository(session)
        self._reconciler = TagReconciler(session)

    async def create_question(self, params: Params) -> QuestionResponse:
        """Create a question owned by the caller and attach its tags atomically."""
        context = await self._gate(QuestionAction.CREATE, params, operation="create_question")
        if isinstance(context, ActionError):
            return handle_error(context, operation="create_question")
        payload = cast(QuestionCreate, context.params)
        author = context.require_user()

        try:
            entity = await self._questions.create(
                title=payload.title,
                content=payload.content,
                author_id=author.id,
            )
            reconciliation = await self._reconciler.reconcile(entity, payload.tags)
            await self._session.commit()
        except Exception as exc:
            await self._session.rollback()
            return handle_error(exc, operation="create_question")

        logger.info(
            "question_created",
            question_id=entity.id,
            author_id=author.id,
            tag_ids=reconciliation.tag_ids,
        )
        return await self._load(entity.id, operation="create_question")

    async def edit_question(self, params: Params) -> QuestionResponse:
        """Update a question's title, content and tags. Only the author may edit."""
        context = await self._gate(QuestionAction.EDIT, params, operation="edit_question")
        if isinstance(context, ActionError):
            return handle_error(context, operation="edit_question")
        payload = cast(QuestionEdit, context.params)
        editor = context.require_user()

        try:
            entity = await self._questions.get_by_id(payload.question_id)
            if entity is None:
                raise NotFoundError("Question")
            if entity.author_id != editor.id:
                raise ForbiddenError()

            content_changed = await self._questions.update_content(
                entity, title=payload.title, content=payload.content
            )
            reconciliation = await self._reconciler.reconcile(entity, payload.tags)
            if reconciliation.changed and not content_changed:
                entity.updated_at = utcnow()
            await self._session.commit()
        except Exception as exc:
            await self._session.rollback()
            return handle_error(exc, operation="edit_question")

        logger.info(
            "question_edited",
            question_id=payload.question_id,
            content_changed=content_changed,
            count_deltas=reconciliation.count_deltas,
        )
        return await self._load(payload.question_id, operation="edit_question")

    async def get_question(self, params: Params) -> QuestionResponse:
        context = await self._gate(QuestionAction.GET, params, operation="get_question")
        if isinstance(context, ActionError):
            return handle_error(context, operation="get_question")
        payload = cast(QuestionLookup, context.params)
        return await self._load(payload.question_id, operation="get_question")

    async def search_questions(self, params: Params) -> QuestionsPageResponse:
        """Return one page of questions matching the query, filter and sort order."""
        context = await self._gate(QuestionAction.SEARCH, params, operation="search_questions")
        if isinstance(context, ActionError):
            return handle_error(context, operation="search_questions")
        payload = cast(QuestionSearch, context.params)

        question_filter = QuestionFilter.parse(payload.filter)
        if question_filter is QuestionFilter.RECOMMENDED:
            # Recommendations are not implemented yet; the filter is accepted and yields nothing.
            return SuccessResponse[QuestionsPage](data=QuestionsPage(questions=[], is_next=False))

        try:
            total, entities = await self._questions.search(
                query=payload.query,
                question_filter=question_filter,
                skip=payload.skip,
                limit=payload.page_size,
            )
        except Exception as exc:
            return handle_error(exc, operation="search_questions")

        page = QuestionsPage(
            questions=[to_question_read(entity) for entity in entities],
            is_next=total > payload.skip + len(entities),
        )
        return SuccessResponse[QuestionsPage](data=page)

    async def _gate(
        self, action: QuestionAction, params: Params, *, operation: str
    ) -> ActionContext[Any] | ActionError:
        return await self._pipeline.run(
            params,
            schema=action.schema,
            authorize=action.requires_identity,
            operation=operation,
        )

    async def _load(self, question_id: str, *, operation: str) -> QuestionResponse:
        try:
            entity = await self._questions.get_by_id(question_id)
            if entity is None:
                raise NotFoundError("Question")
            return SuccessResponse[QuestionRead](data=to_question_read(entity))
        except Exception as exc:
            return handle_error(exc, operation=operation)


__all__ = ["QuestionService", "to_question_read"]
