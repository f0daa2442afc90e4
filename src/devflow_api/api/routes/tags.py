from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from devflow_api.api.dependencies import get_tag_service
from devflow_api.domain.schemas.common import SuccessResponse
from devflow_api.domain.schemas.tags import TagRead, TagSearchResponse
from devflow_api.services.tags import TagService

router = APIRouter(prefix="/tags", tags=["Tags"])


TagServiceDependency = Annotated[TagService, Depends(get_tag_service)]
TagList = SuccessResponse[list[TagRead]]


@router.get("", response_model=TagList)
async def list_tags(
    service: TagServiceDependency,
    names: Annotated[list[str] | None, Query(description="Match these names, any case.")] = None,
) -> TagList:
    """Return every tag, or only the named ones, including unused tags."""
    return TagList(data=await service.list_tags(names))


@router.get("/search", response_model=SuccessResponse[TagSearchResponse])
async def search_tags(
    service: TagServiceDependency,
    query: Annotated[str, Query(min_length=1, max_length=64)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> SuccessResponse[TagSearchResponse]:
    """Case-insensitive substring search, most used first."""
    total, tags = await service.search_tags(query, limit)
    return SuccessResponse[TagSearchResponse](data=TagSearchResponse(items=tags, total=total))


@router.get("/popular", response_model=TagList)
async def popular_tags(
    service: TagServiceDependency,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> TagList:
    """Tags attached to at least one question, ranked by usage."""
    return TagList(data=await service.popular_tags(limit))
