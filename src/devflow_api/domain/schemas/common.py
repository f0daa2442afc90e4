"""Shared model configuration and the response envelope every operation returns."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

FieldErrors = dict[str, list[str]]


class BaseSchema(BaseModel):
    """Immutable model readable from ORM rows; unknown input keys are dropped."""

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        populate_by_name=True,
        extra="ignore",
    )


class TimestampedSchema(BaseSchema):
    created_at: datetime = Field(..., description="When the row was created.")
    updated_at: datetime = Field(..., description="When the row last changed.")


class SuccessResponse(BaseSchema, Generic[T]):
    success: Literal[True] = True
    data: T


class ErrorBody(BaseSchema):
    message: str
    details: FieldErrors | None = None


class ErrorResponse(BaseSchema):
    success: Literal[False] = False
    error: ErrorBody
    status_code: int = Field(500, exclude=True, description="HTTP status for this failure.")


__all__ = [
    "BaseSchema",
    "ErrorBody",
    "ErrorResponse",
    "FieldErrors",
    "SuccessResponse",
    "TimestampedSchema",
]
