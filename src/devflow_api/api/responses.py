from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from starlette import status as http_status

from devflow_api.domain.schemas.common import ErrorResponse, SuccessResponse


def envelope_response(
    result: SuccessResponse[Any] | ErrorResponse,
    *,
    success_status: int = http_status.HTTP_200_OK,
) -> JSONResponse:
    """Render a service envelope, using the failure's status code when it failed."""

    status_code = result.status_code if isinstance(result, ErrorResponse) else success_status
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


__all__ = ["envelope_response"]
