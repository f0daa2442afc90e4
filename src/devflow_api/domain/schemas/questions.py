from __future__ import annotations

from typing import Annotated, Mapping

from pydantic import Field, StringConstraints, field_validator

from devflow_api.domain.enums import QuestionAction
from devflow_api.domain.schemas.common import BaseSchema, TimestampedSchema
from devflow_api.domain.schemas.tags import TagName, TagRead

MAX_TAGS_PER_QUESTION = 3
MAX_PAGE_SIZE = 100

TitleStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

ContentStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class QuestionCreate(BaseSchema):
    title: TitleStr
    content: ContentStr
    tags: list[TagName] = Field(..., min_length=1, max_length=MAX_TAGS_PER_QUESTION)

    @field_validator("tags")
    @classmethod
    def _reject_duplicate_tags(cls, tags: list[str]) -> list[str]:
        seen: set[str] = set()
        for tag in tags:
            key = tag.casefold()
            if key in seen:
                raise ValueError(f"Tag '{tag}' is listed more than once")
            seen.add(key)
        return tags


class QuestionEdit(QuestionCreate):
    question_id: str = Field(..., min_length=1)


class QuestionLookup(BaseSchema):
    question_id: str = Field(..., min_length=1)


class QuestionSearch(BaseSchema):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    query: str | None = None
    filter: str | None = None

    @field_validator("query", "filter")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size


ACTION_SCHEMAS: Mapping[QuestionAction, type[BaseSchema]] = {
    QuestionAction.CREATE: QuestionCreate,
    QuestionAction.EDIT: QuestionEdit,
    QuestionAction.GET: QuestionLookup,
    QuestionAction.SEARCH: QuestionSearch,
}


class AuthorSummary(BaseSchema):
    id: str
    name: str | None = None
    image: str | None = None


class QuestionRead(TimestampedSchema):
    id: str = Field(..., description="Question identifier.")
    title: str
    content: str
    author: AuthorSummary
    tags: list[TagRead] = Field(default_factory=list)
    views: int = 0
    answers: int = 0
    upvotes: int = 0
    downvotes: int = 0


class QuestionsPage(BaseSchema):
    questions: list[QuestionRead] = Field(default_factory=list)
    is_next: bool = False


__all__ = [
    "ACTION_SCHEMAS",
    "AuthorSummary",
    "MAX_PAGE_SIZE",
    "MAX_TAGS_PER_QUESTION",
    "QuestionCreate",
    "QuestionEdit",
    "QuestionLookup",
    "QuestionRead",
    "QuestionSearch",
    "QuestionsPage",
]
