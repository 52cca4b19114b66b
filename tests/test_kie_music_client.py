"""Tests for the Kie.ai client against httpx.MockTransport."""

import json

import httpx
import pytest

from tracksync.services.providers.kie_music import KieMusicClient, UpstreamError, extract_task_id


def make_client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return KieMusicClient("secret", "https://kie.test/", http_client=http), http


@pytest.mark.asyncio
async def test_submit_posts_to_route_path():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"code": 200, "data": {"taskId": "abc"}})

    client, http = make_client(handler)
    async with http:
        result = await client.submit("add-vocals", {"prompt": "hi"})

    assert result["data"]["taskId"] == "abc"
    assert seen == {
        "method": "POST",
        "url": "https://kie.test/api/v1/generate/add-vocals",
        "auth": "Bearer secret",
        "body": {"prompt": "hi"},
    }


@pytest.mark.asyncio
async def test_query_status_sends_task_id():
    def handler(request):
        assert request.url.path == "/api/v1/generate/record-info"
        assert request.url.params["taskId"] == "abc"
        return httpx.Response(200, json={"data": {"status": "PENDING"}})

    client, http = make_client(handler)
    async with http:
        assert await client.query_status("abc") == {"data": {"status": "PENDING"}}


@pytest.mark.asyncio
async def test_unknown_route_rejected():
    client, http = make_client(lambda request: httpx.Response(200, json={}))
    async with http:
        with pytest.raises(ValueError):
            await client.submit("remix", {})


@pytest.mark.asyncio
async def test_http_error_status_carries_payload():
    client, http = make_client(lambda request: httpx.Response(401, json={"msg": "bad key"}))
    async with http:
        with pytest.raises(UpstreamError) as exc:
            await client.query_status("abc")

    assert exc.value.status_code == 401
    assert exc.value.payload == {"msg": "bad key"}


@pytest.mark.asyncio
async def test_transport_error_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, http = make_client(handler)
    async with http:
        with pytest.raises(UpstreamError) as exc:
            await client.query_status("abc")

    assert exc.value.status_code is None


@pytest.mark.asyncio
async def test_non_object_body_rejected():
    client, http = make_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    async with http:
        with pytest.raises(UpstreamError) as exc:
            await client.query_status("abc")

    assert exc.value.payload == "<html>maintenance</html>"


@pytest.mark.asyncio
async def test_injected_client_left_open():
    client, http = make_client(lambda request: httpx.Response(200, json={}))
    await client.aclose()
    assert not http.is_closed
    await http.aclose()


@pytest.mark.parametrize(
    "response, expected",
    [
        ({"data": {"taskId": "a1"}}, "a1"),
        ({"taskId": "b2"}, "b2"),
        ({"data": {"taskId": None}, "taskId": 99}, "99"),
        ({"code": 400, "msg": "bad"}, None),
        ("nope", None),
    ],
)
def test_extract_task_id(response, expected):
    assert extract_task_id(response) == expected
