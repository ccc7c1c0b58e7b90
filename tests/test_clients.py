"""
Tests for the GoBiz API client.

These tests use httpx.MockTransport to mock HTTP requests,
validating client behavior without making real API calls.
"""

import httpx
import pytest

from gobiz_bridge.gobiz_client import (
    DownstreamRejectedError,
    DownstreamUnreachableError,
    GoBizClient,
    GoBizError,
    build_headers,
)

BASE_URL = "https://gobiz.test"


@pytest.fixture
def api(mock_gobiz):
    return mock_gobiz


@pytest.fixture
def client(api) -> GoBizClient:
    return GoBizClient(BASE_URL, client_id="test-client", transport=api.transport)


class TestGoBizClient:
    """Test GoBiz client requests and error mapping."""

    @pytest.mark.asyncio
    async def test_request_login_payload(self, api, client):
        await client.request_login("m@example.com", build_headers("dev-1"))

        [request] = api.requests_to("/goid/login/request")
        assert request.method == "POST"
        assert api.body(request) == {
            "email": "m@example.com",
            "login_type": "password",
            "client_id": "test-client",
        }
        assert request.headers["X-Uniqueid"] == "dev-1"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_exchange_password_payload(self, api, client):
        data = await client.exchange_password("m@example.com", "pw", build_headers("dev-1"))

        assert data["access_token"] == "access-1"
        [request] = api.requests_to("/goid/token")
        assert api.body(request) == {
            "client_id": "test-client",
            "grant_type": "password",
            "data": {"email": "m@example.com", "password": "pw", "user_type": "merchant"},
        }

    @pytest.mark.asyncio
    async def test_exchange_refresh_token_payload(self, api, client):
        await client.exchange_refresh_token("ref-1", build_headers("dev-1"))

        [request] = api.requests_to("/goid/token")
        assert api.body(request) == {
            "grant_type": "refresh_token",
            "refresh_token": "ref-1",
            "client_id": "test-client",
        }

    @pytest.mark.asyncio
    async def test_send_uses_given_headers_and_method(self, api, client):
        api.set_default("/custom", (200, {"ok": True}))

        data = await client.send("post", "/custom", build_headers("dev-1", "tok"), {"a": 1})

        assert data == {"ok": True}
        [request] = api.requests_to("/custom")
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer tok"
        assert str(request.url) == f"{BASE_URL}/custom"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_rejected(self, api, client):
        api.queue("/goid/token", (401, {"errors": [{"code": "unauthorized"}]}))

        with pytest.raises(DownstreamRejectedError) as exc_info:
            await client.exchange_refresh_token("ref", build_headers("dev"))

        error = exc_info.value
        assert error.status_code == 401
        assert "unauthorized" in error.response_body
        assert isinstance(error, GoBizError)

    @pytest.mark.asyncio
    async def test_server_error_raises_rejected(self, api, client):
        api.queue("/journals/search", (503, {"message": "maintenance"}))

        with pytest.raises(DownstreamRejectedError) as exc_info:
            await client.send("POST", "/journals/search", build_headers("dev", "tok"), {})
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_error_raises_unreachable(self, api, client):
        api.queue("/goid/login/request", httpx.ConnectError("connection refused"))

        with pytest.raises(DownstreamUnreachableError):
            await client.request_login("m@example.com", build_headers("dev"))

    @pytest.mark.asyncio
    async def test_timeout_raises_unreachable(self, api, client):
        api.queue("/goid/login/request", httpx.ReadTimeout("too slow"))

        with pytest.raises(DownstreamUnreachableError, match="timed out"):
            await client.request_login("m@example.com", build_headers("dev"))

    @pytest.mark.asyncio
    async def test_invalid_json_raises_rejected(self, api, client):
        api.set_default("/odd", lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(DownstreamRejectedError) as exc_info:
            await client.send("POST", "/odd", build_headers("dev", "tok"))
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [b"null", b"[]", b'["unexpected"]', b'"text"', b"42"])
    async def test_non_object_json_raises_rejected(self, api, client, content):
        api.set_default("/odd", lambda request: httpx.Response(200, content=content))

        with pytest.raises(DownstreamRejectedError) as exc_info:
            await client.send("POST", "/odd", build_headers("dev", "tok"))
        assert exc_info.value.status_code == 200
        assert "Unexpected response shape" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_empty_body_returns_empty_dict(self, api, client):
        api.set_default("/empty", lambda request: httpx.Response(204))

        assert await client.send("POST", "/empty", build_headers("dev", "tok")) == {}

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, api):
        async with GoBizClient(BASE_URL, transport=api.transport) as client:
            await client.request_login("m@example.com", build_headers("dev"))
        assert client._client.is_closed

    def test_base_url_trailing_slash_stripped(self, api):
        client = GoBizClient(f"{BASE_URL}/", transport=api.transport)
        assert client.base_url == BASE_URL
