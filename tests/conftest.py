# ABOUTME: Pytest fixtures and configuration for Service Fabric client tests
# ABOUTME: Provides a scripted in-memory transport and shared client fixtures

import json
import os
from typing import Any, Iterator

import pytest

from servicefabric_client.utils.client import ServiceFabricClient

ENDPOINT = "http://sf.example.com:19080"


class ScriptedTransport:
    """
    In-memory transport replaying queued responses in order.

    Each queued entry is either a (status, body) tuple or an exception
    instance to raise. Every call is recorded as (method, url).
    """

    def __init__(self, *responses: tuple[int, str] | BaseException) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    def queue(self, *responses: tuple[int, str] | BaseException) -> None:
        self._responses.extend(responses)

    def perform(self, method: str, url: str) -> tuple[int, str]:
        self.calls.append((method, url))
        if not self._responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def urls(self) -> list[str]:
        return [url for _, url in self.calls]


def page(items: list[dict[str, Any]], token: str | None = None, items_key: str = "Items") -> str:
    """Serialize one paged response body."""
    return json.dumps({"ContinuationToken": token, items_key: items})


@pytest.fixture
def transport() -> ScriptedTransport:
    """Create an empty scripted transport; tests queue their responses."""
    return ScriptedTransport()


@pytest.fixture
def client(transport: ScriptedTransport) -> Iterator[ServiceFabricClient]:
    """Create a client wired to the scripted transport."""
    with ServiceFabricClient(ENDPOINT, transport=transport) as c:
        yield c


@pytest.fixture
def sample_application() -> dict[str, Any]:
    """Raw JSON for one application."""
    return {
        "Id": "samples~CalculatorApp",
        "Name": "fabric:/samples/CalculatorApp",
        "TypeName": "CalculatorApp",
        "TypeVersion": "1.0",
        "Status": "Ready",
        "HealthState": "Ok",
        "Parameters": [
            {"Key": "CalculatorService_InstanceCount", "Value": "-1"},
            {"Key": "Environment", "Value": "prod"},
        ],
    }


@pytest.fixture
def sample_service() -> dict[str, Any]:
    """Raw JSON for one service."""
    return {
        "Id": "samples~CalculatorApp~CalculatorService",
        "ServiceKind": "Stateless",
        "Name": "fabric:/samples/CalculatorApp/CalculatorService",
        "TypeName": "CalculatorServiceType",
        "ManifestVersion": "1.0",
        "HealthState": "Ok",
        "ServiceStatus": "Active",
        "IsServiceGroup": False,
    }


# Integration test fixtures


@pytest.fixture
def servicefabric_endpoint() -> str | None:
    """Get the live cluster endpoint from the environment."""
    return os.environ.get("SERVICEFABRIC_ENDPOINT")
