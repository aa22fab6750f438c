"""Tests for ProcessManagerClient authenticated requests"""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from process_manager_mcp.client import ProcessManagerClient
from process_manager_mcp.consts import SCIM_BASE_URL, USER_AGENT
from process_manager_mcp.exceptions import ApiError, AuthError, ConfigError

from .conftest import SITE_BASE, make_response


@pytest.fixture
def mock_auth():
    auth = Mock()
    auth.ensure_site_token = AsyncMock(return_value="site-token")
    auth.ensure_search_token = AsyncMock(return_value="search-token")
    auth.require_scim_key = Mock(return_value="scim-key")
    return auth


@pytest.fixture
def client(config, mock_auth, mock_http_client):
    return ProcessManagerClient(
        config=config, auth_manager=mock_auth, http_client=mock_http_client
    )


class TestApiRequest:
    @pytest.mark.asyncio
    async def test_get_with_bearer(self, client, mock_http_client):
        mock_http_client.request.return_value = make_response(json={"ok": True})

        result = await client.api_request("/Api/v1/Processes/abc")

        assert result == {"ok": True}
        args, kwargs = mock_http_client.request.call_args
        assert args == ("GET", f"{SITE_BASE}/Api/v1/Processes/abc")
        assert kwargs["headers"]["Authorization"] == "Bearer site-token"
        assert kwargs["json"] is None

    @pytest.mark.asyncio
    async def test_post_with_body_and_headers(self, client, mock_http_client):
        mock_http_client.request.return_value = make_response(
            json={"permalinkUrl": "x"}, method="POST"
        )

        await client.api_request(
            "/generate", method="POST", headers={"X-Trace": "1"}, body={"a": 1}
        )

        args, kwargs = mock_http_client.request.call_args
        assert args[0] == "POST"
        assert kwargs["json"] == {"a": 1}
        assert kwargs["headers"]["X-Trace"] == "1"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.parametrize("status_code", [400, 401, 404, 500])
    @pytest.mark.asyncio
    async def test_non_success_raises_api_error(
        self, client, mock_http_client, status_code
    ):
        mock_http_client.request.return_value = make_response(
            status_code, text="nope"
        )

        with pytest.raises(ApiError) as exc_info:
            await client.api_request("/Api/v1/Processes/abc")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.body == "nope"

    @pytest.mark.asyncio
    async def test_non_json_body_raises_api_error(self, client, mock_http_client):
        mock_http_client.request.return_value = make_response(200, text="<html>")

        with pytest.raises(ApiError):
            await client.api_request("/Api/v1/Processes/abc")

    @pytest.mark.asyncio
    async def test_auth_failure_propagates(self, client, mock_auth, mock_http_client):
        mock_auth.ensure_site_token.side_effect = AuthError("denied", tier="site")

        with pytest.raises(AuthError):
            await client.api_request("/Api/v1/Processes/abc")
        mock_http_client.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, client, mock_http_client):
        mock_http_client.request.side_effect = httpx.ConnectError("Connection failed")

        with pytest.raises(httpx.ConnectError):
            await client.api_request("/Api/v1/Processes/abc")


class TestSearchRequest:
    @pytest.mark.asyncio
    async def test_uses_search_token_and_search_base(self, client, mock_http_client):
        mock_http_client.get.return_value = make_response(json={"response": []})

        await client.search_request("SearchCriteria=x")

        args, kwargs = mock_http_client.get.call_args
        assert args[0] == "https://prd-aus-sch.promapp.io/fullsearch?SearchCriteria=x"
        assert kwargs["headers"]["Authorization"] == "Bearer search-token"

    @pytest.mark.asyncio
    async def test_failure_raises_api_error(self, client, mock_http_client):
        mock_http_client.get.return_value = make_response(502, text="bad gateway")

        with pytest.raises(ApiError) as exc_info:
            await client.search_request("SearchCriteria=x")
        assert exc_info.value.status_code == 502


class TestScimRequest:
    @pytest.mark.asyncio
    async def test_uses_static_key(self, client, mock_http_client, mock_auth):
        mock_http_client.get.return_value = make_response(json={"totalResults": 0})

        await client.scim_request("/users?filter=x")

        args, kwargs = mock_http_client.get.call_args
        assert args[0] == f"{SCIM_BASE_URL}/users?filter=x"
        assert kwargs["headers"]["Authorization"] == "Bearer scim-key"
        mock_auth.ensure_site_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_key_fails_before_request(
        self, client, mock_auth, mock_http_client
    ):
        mock_auth.require_scim_key.side_effect = ConfigError("no key")

        with pytest.raises(ConfigError):
            await client.scim_request("/users")
        mock_http_client.get.assert_not_called()


def test_default_http_client_headers(config):
    """A client built without an http_client sets the user agent and timeout"""
    client = ProcessManagerClient(config=config)

    assert client.http_client.headers["User-Agent"] == USER_AGENT
    assert client.http_client.timeout.read == config.timeout_seconds
    assert client.auth.config is config
