"""User directory lookups over SCIM."""

import logging
from urllib.parse import quote

from pydantic import ValidationError

from .client import ProcessManagerClient
from .consts import SCIM_USERS_PATH
from .exceptions import ApiError
from .models import ScimListResponse, ScimUser

logger = logging.getLogger("process-manager-mcp.users")


def user_filter_path(email: str) -> str:
    """SCIM users path filtering on an exact user name."""
    expression = quote(f'userName eq "{email}"', safe="")
    return f"{SCIM_USERS_PATH}?filter={expression}"


class UserService:
    def __init__(self, client: ProcessManagerClient):
        self.client = client

    async def lookup_user(self, email: str) -> ScimUser | None:
        """Find a user by email address.

        Returns:
            The first matching user, or None when the directory has no match.

        Raises:
            ConfigError: If no SCIM API key is configured.
            ApiError: For failed requests or unexpected payloads.
        """
        logger.info("Looking up user by email")
        data = await self.client.scim_request(user_filter_path(email))

        try:
            result = ScimListResponse.model_validate(data)
        except ValidationError as e:
            raise ApiError(
                "SCIM returned an unexpected response shape", errors=[str(e)]
            ) from e

        if result.total_results == 0 or not result.resources:
            logger.info("No SCIM user matched")
            return None
        return result.resources[0]
