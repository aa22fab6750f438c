"""Configuration management and regional endpoint registry."""

import logging
from enum import StrEnum
from functools import cache
from typing import NamedTuple

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Region(StrEnum):
    """Process Manager hosting regions."""

    DEMO = "demo"
    US = "us"
    CA = "ca"
    EU = "eu"
    AU = "au"
    AE = "ae"


class RegionalEndpoints(NamedTuple):
    """Base URLs for one region."""

    site_url: str
    search_url: str


REGIONAL_ENDPOINTS: dict[Region, RegionalEndpoints] = {
    Region.DEMO: RegionalEndpoints(
        "https://demo.promapp.com", "https://dmo-wus-sch.promapp.io"
    ),
    Region.US: RegionalEndpoints(
        "https://us.promapp.com", "https://prd-wus-sch.promapp.io"
    ),
    Region.CA: RegionalEndpoints(
        "https://ca.promapp.com", "https://prd-cac-sch.promapp.io"
    ),
    Region.EU: RegionalEndpoints(
        "https://eu.promapp.com", "https://prd-neu-sch.promapp.io"
    ),
    Region.AU: RegionalEndpoints(
        "https://au.promapp.com", "https://prd-aus-sch.promapp.io"
    ),
    Region.AE: RegionalEndpoints(
        "https://ae.promapp.com", "https://prd-ane-sch.promapp.io"
    ),
}


def get_regional_endpoints(region: Region | str) -> RegionalEndpoints:
    """Look up the endpoint pair for a region.

    Raises:
        ValueError: If the region is not one of the known regions.
    """
    return REGIONAL_ENDPOINTS[Region(region)]


class Config(BaseSettings):
    """Configuration with computed API endpoints."""

    model_config = SettingsConfigDict(
        env_prefix="PM_", case_sensitive=False, extra="ignore", frozen=True
    )
    region: Region = Field(default=Region.AU, description="Hosting region")
    site_name: str = Field(..., min_length=1, description="Process Manager site name")
    username: str = Field(..., min_length=1, description="Site username")
    password: str = Field(
        ..., min_length=1, repr=False, description="Site password"
    )
    scim_api_key: str | None = Field(
        default=None, repr=False, description="Optional SCIM API key"
    )
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )

    @computed_field
    @property
    def site_base_url(self) -> str:
        """Base URL for site API calls, including the site name."""
        site_url = get_regional_endpoints(self.region).site_url
        return f"{site_url}/{self.site_name}"

    @computed_field
    @property
    def search_base_url(self) -> str:
        """Base URL for the regional search service."""
        return get_regional_endpoints(self.region).search_url


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application.

    Logs go to stderr; stdout carries the MCP stdio transport.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("process-manager-mcp")
