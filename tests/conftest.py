import functools
import json
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest

from hubspot_mcp.core import service as service_module
from hubspot_mcp.core.client import HubspotClient

pytest_plugins = ["pytest_asyncio"]

Route = Union[Tuple[int, object], Callable[[httpx.Request], httpx.Response]]


# Set asyncio default fixture loop scope to function
def pytest_configure(config):
    config.option.asyncio_default_fixture_loop_scope = "function"


class FakeHubspot:
    """
    In-process stand-in for the HubSpot REST API.

    Routes are keyed by (method, path). The connectivity probe
    (GET /crm/v3/objects/contacts?limit=1) always succeeds and is not recorded.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, body=None, status: int = 200):
        self.routes[(method.upper(), path)] = (status, body if body is not None else {})

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]):
        self.routes[(method.upper(), path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        if (
            request.method == "GET"
            and request.url.path == "/crm/v3/objects/contacts"
            and dict(request.url.params) == {"limit": "1"}
        ):
            return httpx.Response(200, json={"results": []})

        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        if callable(route):
            return route(request)
        status, body = route
        if status == 204:
            return httpx.Response(204)
        return httpx.Response(status, json=body)

    def calls(self, method: str = None, path: str = None) -> List[httpx.Request]:
        return [
            request
            for request in self.requests
            if (method is None or request.method == method)
            and (path is None or request.url.path == path)
        ]

    def last_json(self, method: str = None, path: str = None):
        return json.loads(self.calls(method, path)[-1].content)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from a real token and the working directory's database"""
    monkeypatch.setenv("HUBSPOT_ACCESS_TOKEN", "")
    monkeypatch.setenv("ANALYTICS_ENABLED", "false")
    monkeypatch.setenv("ANALYTICS_DB_PATH", str(tmp_path / "analytics.db"))


@pytest.fixture
def hubspot(monkeypatch):
    """Route every HubspotClient created by a tool call to a FakeHubspot"""
    fake = FakeHubspot()
    monkeypatch.setenv("HUBSPOT_ACCESS_TOKEN", "test-token")
    monkeypatch.setattr(
        service_module,
        "HubspotClient",
        functools.partial(HubspotClient, transport=httpx.MockTransport(fake.handler)),
    )
    return fake


@pytest.fixture
def registry():
    from hubspot_mcp.bcps import build_registry

    return build_registry()
