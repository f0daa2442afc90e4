from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devflow_api.domain.schemas.common import BaseSchema


class QuestionAction(str, Enum):
    """Closed set of question operations, each with its own input schema."""

    CREATE = "create"
    EDIT = "edit"
    GET = "get"
    SEARCH = "search"

    @property
    def schema(self) -> type[BaseSchema]:
        """Input model validated by the action pipeline for this operation."""
        from devflow_api.domain.schemas.questions import ACTION_SCHEMAS

        return ACTION_SCHEMAS[self]

    @property
    def requires_identity(self) -> bool:
        return self is not QuestionAction.SEARCH


class QuestionFilter(str, Enum):
    NEWEST = "newest"
    UNANSWERED = "unanswered"
    POPULAR = "popular"
    RECOMMENDED = "recommended"

    @classmethod
    def parse(cls, value: str | None) -> QuestionFilter:
        """Map a free-form filter value to a known filter, defaulting to newest."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.NEWEST


__all__ = ["QuestionAction", "QuestionFilter"]
