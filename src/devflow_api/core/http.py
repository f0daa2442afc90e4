from __future__ import annotations

from typing import Any, Mapping

import httpx

from devflow_api.config.settings import get_settings
from devflow_api.core.errors import RequestError, RequestTimeoutError, handle_error
from devflow_api.core.logging import get_logger
from devflow_api.domain.schemas.common import ErrorResponse, SuccessResponse

logger = get_logger(__name__)

DEFAULT_HEADERS: Mapping[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


async def fetch_json(
    url: str,
    *,
    method: str = "GET",
    timeout: float | None = None,
    headers: Mapping[str, str] | None = None,
    client: httpx.AsyncClient | None = None,
    **kwargs: Any,
) -> SuccessResponse[Any] | ErrorResponse:
    """Perform a JSON request and wrap the outcome in the response envelope.

    The request is abandoned after ``timeout`` seconds (the configured
    default when omitted). Failures are logged and returned, never raised.
    """

    if timeout is None:
        timeout = get_settings().http_timeout_seconds
    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}

    owns_client = client is None
    http = client or httpx.AsyncClient()
    try:
        response = await http.request(
            method,
            url,
            headers=merged_headers,
            timeout=timeout,
            **kwargs,
        )
        if not response.is_success:
            raise RequestError(response.status_code, f"HTTP error: {response.status_code}")
        return SuccessResponse[Any](data=response.json())
    except httpx.TimeoutException:
        logger.warning("request_timed_out", url=url, timeout=timeout)
        return handle_error(RequestTimeoutError(url), operation="fetch_json")
    except RequestError as exc:
        logger.error("request_failed", url=url, status=exc.status_code)
        return handle_error(exc, operation="fetch_json")
    except (httpx.HTTPError, ValueError) as exc:
        return handle_error(exc, operation="fetch_json")
    finally:
        if owns_client:
            await http.aclose()


__all__ = ["DEFAULT_HEADERS", "fetch_json"]
