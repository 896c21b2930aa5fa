"""
Shared pytest fixtures and configuration for pagerduty_adapter tests.

This module provides request builders, sample datasource payloads and httpx
clients backed by a MockTransport that records every request it receives.
"""

from collections.abc import Callable
from dataclasses import replace
from typing import Any

import httpx
import pytest

from pagerduty_adapter import (
    API_HOST,
    AttributeConfig,
    DatasourceAuth,
    DatasourceConfig,
    EntityConfig,
    GetPageRequest,
    PageRequest,
)
from tests.helpers.fake_api import TEST_TOKEN, AsyncRecordingHandler, RecordingHandler


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")


@pytest.fixture
def sample_teams() -> list[dict[str, Any]]:
    """Two team records as PagerDuty returns them."""
    return [
        {
            "id": "PQ9K7I8",
            "type": "team",
            "summary": "Engineering",
            "name": "Engineering",
            "description": "All engineering",
            "parent": None,
        },
        {
            "id": "PLBSSOX",
            "type": "team",
            "summary": "Support",
            "name": "Support",
            "description": None,
            "parent": {"id": "PQ9K7I8", "type": "team_reference"},
        },
    ]


@pytest.fixture
def valid_request() -> GetPageRequest:
    """A GetPage request that passes every validation check."""
    return GetPageRequest(
        address=API_HOST,
        entity=EntityConfig(
            external_id="teams",
            attributes=(AttributeConfig("id"), AttributeConfig("name")),
        ),
        page_size=10,
        cursor="",
        ordered=False,
        auth=DatasourceAuth(http_authorization=TEST_TOKEN),
        config=DatasourceConfig(request_timeout_seconds=30),
    )


@pytest.fixture
def make_request(valid_request) -> Callable[..., GetPageRequest]:
    """Returns a builder overriding fields of the valid request."""

    def _make(**overrides: Any) -> GetPageRequest:
        return replace(valid_request, **overrides)

    return _make


@pytest.fixture
def page_request() -> PageRequest:
    return PageRequest(
        base_url=API_HOST,
        entity_external_id="teams",
        page_size=10,
        cursor="",
        token=TEST_TOKEN,
    )


@pytest.fixture
def mock_http():
    """
    Builds a blocking httpx client served by a RecordingHandler.

    Usage:
        handler, client = mock_http(httpx.Response(200, json={...}))
    """
    clients: list[httpx.Client] = []

    def _build(*responses) -> tuple[RecordingHandler, httpx.Client]:
        handler = RecordingHandler(*responses)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return handler, client

    yield _build

    for client in clients:
        client.close()


@pytest.fixture
def mock_async_http():
    """Async counterpart of mock_http. Clients are left to the test to close."""

    def _build(*responses) -> tuple[AsyncRecordingHandler, httpx.AsyncClient]:
        handler = AsyncRecordingHandler(*responses)
        return handler, httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _build
