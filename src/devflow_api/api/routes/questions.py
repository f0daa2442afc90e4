from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse

from devflow_api.api.dependencies import get_question_service
from devflow_api.api.responses import envelope_response
from devflow_api.services.questions import QuestionService

router = APIRouter(prefix="/questions", tags=["Questions"])


QuestionServiceDependency = Annotated[QuestionService, Depends(get_question_service)]
RawBody = Annotated[dict[str, Any], Body()]
OptionalQuery = Annotated[str | None, Query()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_question(payload: RawBody, service: QuestionServiceDependency) -> JSONResponse:
    """Create a question owned by the authenticated user."""
    result = await service.create_question(payload)
    return envelope_response(result, success_status=status.HTTP_201_CREATED)


@router.get("")
async def list_questions(
    service: QuestionServiceDependency,
    page: OptionalQuery = None,
    page_size: OptionalQuery = None,
    query: OptionalQuery = None,
    question_filter: Annotated[str | None, Query(alias="filter")] = None,
) -> JSONResponse:
    """Search questions with optional text query, filter and pagination."""
    params = {
        "page": page,
        "page_size": page_size,
        "query": query,
        "filter": question_filter,
    }
    result = await service.search_questions(
        {key: value for key, value in params.items() if value is not None}
    )
    return envelope_response(result)


@router.get("/{question_id}")
async def get_question(question_id: str, service: QuestionServiceDependency) -> JSONResponse:
    """Return a single question with its tags and author."""
    result = await service.get_question({"question_id": question_id})
    return envelope_response(result)


@router.put("/{question_id}")
async def edit_question(
    question_id: str,
    payload: RawBody,
    service: QuestionServiceDependency,
) -> JSONResponse:
    """Replace a question's title, content and tags. Only the author may edit."""
    result = await service.edit_question({**payload, "question_id": question_id})
    return envelope_response(result)
