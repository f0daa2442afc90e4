from __future__ import annotations

from typing import Annotated

from pydantic import Field, StringConstraints

from devflow_api.domain.schemas.common import BaseSchema, TimestampedSchema

# Tag names must be strictly shorter than this.
MAX_TAG_NAME_LENGTH = 15

TagName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_TAG_NAME_LENGTH - 1),
]


class TagRead(TimestampedSchema):
    id: int = Field(..., description="Tag identifier.")
    name: str = Field(..., description="Display name, as first written.")
    question_count: int = Field(0, description="Number of questions using the tag.")


class TagSearchResponse(BaseSchema):
    items: list[TagRead]
    total: int


__all__ = ["MAX_TAG_NAME_LENGTH", "TagName", "TagRead", "TagSearchResponse"]
