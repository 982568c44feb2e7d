"""Unit tests for the SignalLiteClient."""

import json

import httpx
import pytest

from strategy_engine.domain.exceptions import AuthenticationError, GatewayError
from strategy_engine.infrastructure.signal_lite import SignalLiteClient


def _client(handler) -> SignalLiteClient:
    return SignalLiteClient(
        base_url="https://signals.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_list_passes_paging_and_author_filter():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"signals": [{"id": "s1"}], "total": 1})

    client = _client(handler)
    signals = await client.list("tok", limit=20, offset=40, author_email="a@x.io")

    assert signals == [{"id": "s1"}]
    [request] = requests
    assert request.url.path == "/signals"
    assert request.url.params["limit"] == "20"
    assert request.url.params["offset"] == "40"
    assert request.url.params["authorEmail"] == "a@x.io"
    assert request.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_list_omits_unset_params():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"signals": []})

    assert await _client(handler).list("tok") == []
    assert not requests[0].url.params


@pytest.mark.asyncio
async def test_update_patches_camel_case_fields():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "s1", "status": "converted"})

    updated = await _client(handler).update("s1", {"status": "converted", "projectId": "p1"}, "tok")

    assert updated["status"] == "converted"
    [request] = requests
    assert request.method == "PATCH"
    assert request.url.path == "/signals/s1"
    assert json.loads(request.content) == {"status": "converted", "projectId": "p1"}


@pytest.mark.asyncio
async def test_missing_token_never_reaches_the_service():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    client = _client(handler)
    with pytest.raises(AuthenticationError):
        await client.update("s1", {"title": "x"}, None)
    with pytest.raises(AuthenticationError):
        await client.delete("s1", "")

    assert requests == []


@pytest.mark.asyncio
async def test_error_body_becomes_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": "Not your signal"})

    with pytest.raises(GatewayError) as exc_info:
        await _client(handler).delete("s1", "tok")

    error = exc_info.value
    assert error.status_code == 403
    assert error.entity_kind == "signal"
    assert error.entity_id == "s1"
    assert "Not your signal" in str(error)


@pytest.mark.asyncio
async def test_transport_error_becomes_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GatewayError, match="ReadTimeout"):
        await _client(handler).list("tok")
