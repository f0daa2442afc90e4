from __future__ import annotations

import httpx
import pytest

from devflow_api.core.http import fetch_json
from devflow_api.domain.schemas.common import ErrorResponse, SuccessResponse

pytestmark = pytest.mark.asyncio


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_fetch_json_wraps_payload_and_merges_headers() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={"items": [1, 2]})

    async with _client(handler) as client:
        result = await fetch_json(
            "https://api.example.com/items",
            headers={"X-Trace": "abc"},
            client=client,
        )

    assert isinstance(result, SuccessResponse)
    assert result.data == {"items": [1, 2]}
    assert seen["accept"] == "application/json"
    assert seen["x-trace"] == "abc"


async def test_fetch_json_reports_http_status() -> None:
    async with _client(lambda request: httpx.Response(503, text="down")) as client:
        result = await fetch_json("https://api.example.com/items", client=client)

    assert isinstance(result, ErrorResponse)
    assert result.status_code == 503
    assert result.error.message == "HTTP error: 503"


async def test_fetch_json_reports_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        result = await fetch_json("https://api.example.com/slow", timeout=0.1, client=client)

    assert isinstance(result, ErrorResponse)
    assert result.status_code == 504
    assert result.error.message == "Request to https://api.example.com/slow timed out"


async def test_fetch_json_hides_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        result = await fetch_json("https://api.example.com/items", method="POST", client=client)

    assert isinstance(result, ErrorResponse)
    assert result.status_code == 500
    assert result.error.message == "Internal Server Error"
