"""Process Manager MCP Server Package

A Model Context Protocol (MCP) server exposing Process Manager search,
process, group hierarchy and SCIM user APIs as tools for AI agents.
"""

from .auth import AuthManager
from .client import ProcessManagerClient, get_client
from .config import Config, Region, get_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    ApiError,
    ArgumentError,
    AuthError,
    ConfigError,
    ProcessManagerMCPError,
)
from .tools import ToolDispatcher, get_dispatcher

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "get_client",
    "get_dispatcher",
    "Config",
    "Region",
    "AuthManager",
    "ProcessManagerClient",
    "ToolDispatcher",
    "ProcessManagerMCPError",
    "ConfigError",
    "AuthError",
    "ApiError",
    "ArgumentError",
]
