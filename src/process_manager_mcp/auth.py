"""Authentication management for the site and search token tiers."""

import logging
from datetime import UTC, datetime, timedelta

import httpx
from pydantic import ValidationError

from .config import Config
from .consts import (
    SEARCH_SUCCESS_STATUS,
    SEARCH_TOKEN_CACHE_SECONDS,
    SEARCH_TOKEN_PATH,
    SITE_TOKEN_DURATION_SECONDS,
    SITE_TOKEN_EXPIRY_FACTOR,
    SITE_TOKEN_PATH,
)
from .exceptions import AuthError, ConfigError
from .models import CachedToken, SearchTokenResponse, SiteTokenResponse

logger = logging.getLogger("process-manager-mcp.auth")


def utcnow() -> datetime:
    return datetime.now(UTC)


class AuthManager:
    """Authentication token manager.

    Responsibilities:
    - Obtain the site token with an OAuth2 password grant
    - Derive the search token from a valid site token
    - Cache each tier independently until its expiry
    - Hand out the static SCIM key when configured

    A failed exchange never touches the cached entry of its tier, and a
    failed forced refresh is raised rather than falling back to the cache.
    """

    def __init__(self, config: Config, http_client: httpx.AsyncClient):
        """Initialize AuthManager.

        Args:
            config: Config instance with credentials and region.
            http_client: HTTP client (for token requests only)
        """
        self.config = config
        self.http_client = http_client
        self._site_token: CachedToken | None = None
        self._search_token: CachedToken | None = None

    async def ensure_site_token(self, force_refresh: bool = False) -> str:
        """Get a valid site token, exchanging credentials if needed.

        Args:
            force_refresh: Skip the cache and always perform the exchange.

        Returns:
            Valid bearer token string.

        Raises:
            AuthError: If the password grant fails or the response is malformed.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        cached = self._site_token
        if not force_refresh and cached is not None and cached.is_valid(utcnow()):
            logger.debug("Using cached site token")
            return cached.token

        url = f"{self.config.site_base_url}{SITE_TOKEN_PATH}"
        logger.debug(f"Requesting site token from {url}")

        response = await self.http_client.post(
            url,
            data={
                "grant_type": "password",
                "username": self.config.username,
                "password": self.config.password,
                "duration": str(SITE_TOKEN_DURATION_SECONDS),
            },
        )

        if not response.is_success:
            logger.error(f"Site authentication failed: {response.status_code}")
            raise AuthError(
                f"Site authentication failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                tier="site",
                status_code=response.status_code,
                body=response.text,
                suggestions=[
                    "Verify PM_USERNAME and PM_PASSWORD",
                    "Check PM_REGION and PM_SITE_NAME point at your site",
                ],
            )

        try:
            token_data = SiteTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Site token response missing access_token or expires_in")
            raise AuthError(
                "Site authentication returned an unexpected response",
                tier="site",
                status_code=response.status_code,
                body=response.text,
                errors=[str(e)],
            ) from e

        lifetime = timedelta(seconds=token_data.expires_in * SITE_TOKEN_EXPIRY_FACTOR)
        self._site_token = CachedToken(
            token=token_data.access_token, expires_at=utcnow() + lifetime
        )
        logger.info("Site token refreshed successfully")
        return self._site_token.token

    async def ensure_search_token(self, force_refresh: bool = False) -> str:
        """Get a valid search token, deriving it from the site token if needed.

        Args:
            force_refresh: Skip the search-token cache and always exchange.
                The site token is still taken from its own cache when valid.

        Returns:
            Valid bearer token string for the search service.

        Raises:
            AuthError: If either exchange fails, or the search service
                reports a non-success status.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        cached = self._search_token
        if not force_refresh and cached is not None and cached.is_valid(utcnow()):
            logger.debug("Using cached search token")
            return cached.token

        site_token = await self.ensure_site_token()

        url = f"{self.config.site_base_url}{SEARCH_TOKEN_PATH}"
        logger.debug(f"Requesting search token from {url}")
        response = await self.http_client.get(
            url, headers={"Authorization": f"Bearer {site_token}"}
        )

        if not response.is_success:
            logger.error(f"Search authentication failed: {response.status_code}")
            raise AuthError(
                f"Search authentication failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                tier="search",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_data = SearchTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthError(
                "Search authentication returned an unexpected response",
                tier="search",
                status_code=response.status_code,
                body=response.text,
                errors=[str(e)],
            ) from e

        if token_data.status != SEARCH_SUCCESS_STATUS or not token_data.message:
            logger.error(f"Search authentication status: {token_data.status}")
            raise AuthError(
                f"Search authentication failed: {token_data.status}",
                tier="search",
                reason="non-success status",
                body=response.text,
            )

        self._search_token = CachedToken(
            token=token_data.message,
            expires_at=utcnow() + timedelta(seconds=SEARCH_TOKEN_CACHE_SECONDS),
        )
        logger.info("Search token refreshed successfully")
        return self._search_token.token

    def require_scim_key(self) -> str:
        """Return the configured SCIM API key.

        Raises:
            ConfigError: If no SCIM API key was configured.
        """
        if not self.config.scim_api_key:
            raise ConfigError(
                "SCIM API key not configured. User lookup is unavailable.",
                suggestions=["Set PM_SCIM_API_KEY and restart the server"],
            )
        return self.config.scim_api_key
