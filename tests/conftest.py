"""Pytest configuration and shared fixtures"""

import os
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from process_manager_mcp.client import ProcessManagerClient
from process_manager_mcp.config import Config

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

SITE_BASE = "https://au.promapp.com/acme"


def make_response(
    status_code: int = 200,
    json=None,
    text: str | None = None,
    method: str = "GET",
    url: str = SITE_BASE,
) -> httpx.Response:
    """Build a real httpx.Response bound to a request"""
    request = httpx.Request(method, url)
    if json is not None:
        return httpx.Response(status_code, json=json, request=request)
    return httpx.Response(status_code, text=text or "", request=request)


def process_payload(**overrides) -> dict:
    """A process detail response with two activities and three tasks"""
    process = {
        "Id": 42,
        "UniqueId": "proc-1",
        "Name": "Employee Onboarding",
        "State": "Published",
        "Owner": "Jane Owner",
        "Expert": "Sam Expert",
        "Group": "HR",
        "Objective": "Get new starters productive",
        "Background": "Applies to all permanent staff",
        "ProcessRevisionEditId": 7,
        "ProcessProcedures": {
            "Activity": [
                {
                    "Id": 1,
                    "UniqueId": "act-1",
                    "Number": "1.0",
                    "Text": "Prepare workstation",
                    "Ownerships": {
                        "Role": [{"Name": "IT Support"}],
                        "Tag": [{"Name": "Day 1"}],
                    },
                    "ChildProcessProcedures": {
                        "Task": [
                            {
                                "Id": 11,
                                "Number": "1.1",
                                "Text": "Enter new starter details in the HR system",
                            },
                            {"Id": 12, "Number": "1.2", "Text": "Greet the new starter"},
                        ]
                    },
                    "RiskControls": {
                        "RiskControl": [
                            {
                                "Title": "Access review",
                                "Portfolios": {"Portfolio": [{"Name": "Security"}]},
                            }
                        ]
                    },
                },
                {
                    "Id": 2,
                    "UniqueId": "act-2",
                    "Number": "2.0",
                    "Text": "Manager approves equipment request",
                    "ChildProcessProcedures": {
                        "Task": [
                            {
                                "Id": 21,
                                "Number": "2.1",
                                "Text": "Send approval email and update the tracking spreadsheet",
                            }
                        ]
                    },
                },
            ]
        },
    }
    process.update(overrides)
    return {"processJson": process}


@pytest.fixture
def config():
    """Config with all credentials set"""
    return Config(
        region="au",
        site_name="acme",
        username="user@acme.com",
        password="secret",
        scim_api_key="scim-key",
        log_level="DEBUG",
    )


@pytest.fixture
def mock_http_client():
    """Mock httpx AsyncClient"""
    http_client = Mock(spec=httpx.AsyncClient)
    http_client.get = AsyncMock()
    http_client.post = AsyncMock()
    http_client.request = AsyncMock()
    return http_client


@pytest.fixture
def mock_client(config):
    """ProcessManagerClient with request methods replaced by AsyncMocks"""
    client = ProcessManagerClient(
        config=config, auth_manager=Mock(), http_client=Mock(spec=httpx.AsyncClient)
    )
    client.api_request = AsyncMock()
    client.search_request = AsyncMock()
    client.scim_request = AsyncMock()
    return client


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears PM_* environment variables."""
    pm_vars = {key: value for key, value in os.environ.items() if key.startswith("PM_")}

    for key in pm_vars:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key, value in pm_vars.items():
            os.environ[key] = value
