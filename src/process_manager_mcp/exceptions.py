"""Process Manager MCP custom exceptions.

Exception Design Principles:
1. Use these custom exceptions only when additional useful context can be provided
2. Handle exceptions as late as possible (preserve details until domain context is available)
3. Split on domain of actionable information:
   - Recoverable by user reconfiguration outside session (ConfigError)
   - Credential exchange failures, tiered by token (AuthError)
   - Unexpected responses from authenticated calls (ApiError)
   - Potentially recoverable by LLM action in-session (ArgumentError)
"""


class ProcessManagerMCPError(Exception):
    """Base exception for all Process Manager MCP errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    All custom exceptions in this package inherit from this base class.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] | None = None,  # detailed list of errors (if available)
        suggestions: list[str] | None = None,  # remedial actions
        context: dict | None = None,  # additional detailed context
    ):
        """Initialize ProcessManagerMCPError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(ProcessManagerMCPError):
    """Application configuration errors - recoverable by user reconfiguration.

    Missing required settings are fatal at startup. Missing optional settings
    (the SCIM API key) make the dependent capability unavailable and surface
    as a tool error.
    """

    pass


class AuthError(ProcessManagerMCPError):
    """A credential exchange failed.

    `tier` names the token that could not be obtained ("site" or "search").
    HTTP-level failures carry `status_code` and `body`; a search-token
    response with a non-success status field carries `reason` instead.
    """

    def __init__(
        self,
        message: str,
        *,
        tier: str,
        status_code: int | None = None,
        body: str | None = None,
        reason: str | None = None,
        **kwargs,
    ):
        context = {"tier": tier, **kwargs.pop("context", {})}
        if status_code is not None:
            context["status_code"] = status_code
        if reason is not None:
            context["reason"] = reason
        super().__init__(message, context=context, **kwargs)
        self.tier = tier
        self.status_code = status_code
        self.body = body
        self.reason = reason


class ApiError(ProcessManagerMCPError):
    """An authenticated request returned a non-success status or an
    unexpected payload shape."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if status_code is not None:
            context = {**context, "status_code": status_code}
        super().__init__(message, context=context, **kwargs)
        self.status_code = status_code
        self.body = body


class ArgumentError(ProcessManagerMCPError):
    """Malformed or missing tool arguments - recoverable by LLM action.

    Raised before any network call is made, with suggestions listing the
    accepted values where there is a closed set.
    """

    pass
