"""Process Manager client: authenticated API calls."""

import logging
from functools import cache
from typing import Any

import httpx

from .auth import AuthManager
from .config import Config, get_config
from .consts import SCIM_BASE_URL, SEARCH_PATH, USER_AGENT
from .exceptions import ApiError

logger = logging.getLogger("process-manager-mcp.client")


class ProcessManagerClient:
    """Process Manager API client with authentication.

    Responsibilities:
    - Attach the right credential tier to each request
    - Turn non-success responses into ApiError
    """

    def __init__(
        self,
        config: Config | None = None,
        auth_manager: AuthManager | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize ProcessManagerClient.

        Args:
            config: Config instance. If None, uses get_config().
            auth_manager: Token manager. If None, creates AuthManager.
            http_client: HTTP client. If None, creates a new one.
        """
        self.config = config or get_config()

        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
        )

        self.auth = auth_manager or AuthManager(self.config, self.http_client)

        logger.info(f"Process Manager client created for {self.config.site_base_url}")

    async def api_request(
        self,
        path: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Make an authenticated request against the site API.

        Args:
            path: Path below the site base URL, including any query string.
            method: HTTP method.
            headers: Extra headers, applied over the defaults.
            body: JSON-serializable request body.

        Returns:
            Parsed JSON data.

        Raises:
            AuthError: If the site token cannot be obtained.
            ApiError: For non-success responses.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        token = await self.auth.ensure_site_token()
        request_headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            **(headers or {}),
        }
        url = f"{self.config.site_base_url}{path}"

        logger.debug(f"{method} {url}")
        response = await self.http_client.request(
            method, url, headers=request_headers, json=body
        )
        return self._parse(response, "API request")

    async def search_request(self, query_string: str) -> Any:
        """Run a full-text search with the search token.

        Args:
            query_string: Encoded query string, without the leading '?'.

        Raises:
            AuthError: If the search token cannot be obtained.
            ApiError: For non-success responses.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        token = await self.auth.ensure_search_token()
        url = f"{self.config.search_base_url}{SEARCH_PATH}?{query_string}"

        logger.debug(f"GET {url}")
        response = await self.http_client.get(
            url, headers={"Authorization": f"Bearer {token}"}
        )
        return self._parse(response, "Search request")

    async def scim_request(self, path: str) -> Any:
        """Query the SCIM directory with the static SCIM key.

        Raises:
            ConfigError: If no SCIM API key is configured.
            ApiError: For non-success responses.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        scim_key = self.auth.require_scim_key()
        url = f"{SCIM_BASE_URL}{path}"

        logger.debug(f"GET {url}")
        response = await self.http_client.get(
            url, headers={"Authorization": f"Bearer {scim_key}"}
        )
        return self._parse(response, "SCIM request")

    @staticmethod
    def _parse(response: httpx.Response, label: str) -> Any:
        if not response.is_success:
            logger.warning(f"{label} failed: {response.status_code} {response.url}")
            raise ApiError(
                f"{label} failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                status_code=response.status_code,
                body=response.text,
                context={"url": str(response.url)},
            )
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"{label} returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
                context={"url": str(response.url)},
            ) from e

    async def aclose(self) -> None:
        await self.http_client.aclose()


@cache
def get_client() -> ProcessManagerClient:
    """Get a cached ProcessManagerClient instance with default configuration.

    Raises:
        No exceptions raised directly.
        May propagate exceptions from Config() initialization via get_config().
    """
    return ProcessManagerClient()
