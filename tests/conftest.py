import json

import httpx
import pytest
from starlette.testclient import TestClient

from claude_app.client import MCPClient
from claude_app.config import AppSettings
from claude_app.server import create_app
from graph_mcp.auth import GraphClient
from graph_mcp.config import Settings
from graph_mcp.helpers import AuthenticationError
from graph_mcp.permissions import PermissionGate
from graph_mcp.server import create_server
from graph_mcp.service import GraphService

GRAPH = "https://graph.microsoft.com"
MCP_URL = "http://mcp.test"


class FakeAuth:
    """Stands in for AuthManager; counts token requests."""

    def __init__(self, token="test-token", error=None):
        self.token = token
        self.error = error
        self.calls = 0

    async def get_token(self):
        self.calls += 1
        if self.error:
            raise AuthenticationError(self.error, "bad secret")
        return self.token


class Recorder:
    """MockTransport handler that records requests and replies by URL path.

    A route maps to a (status, body) pair, a callable, or a list of either
    consumed one per request (for paged responses).
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = request.url.path
        if key not in self.routes:
            return httpx.Response(404, json={"error": {"message": f"no route {key}"}})
        reply = self.routes[key]
        if isinstance(reply, list):
            reply = reply.pop(0)
        if callable(reply):
            return reply(request)
        status, body = reply
        return httpx.Response(status, json=body)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def graph_client(auth, recorder):
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return GraphClient(auth, timeout=5.0, http_client=http)


@pytest.fixture
def service(graph_client):
    return GraphService(graph_client, PermissionGate())


@pytest.fixture
def graph_app(service):
    mcp = create_server(Settings(), service=service)
    return TestClient(mcp.streamable_http_app())


@pytest.fixture
def mcp_recorder():
    return Recorder()


@pytest.fixture
def mcp_client(mcp_recorder):
    http = httpx.AsyncClient(transport=httpx.MockTransport(mcp_recorder))
    return MCPClient(MCP_URL, "tester", api_key="k", http_client=http)


@pytest.fixture
def claude_app(mcp_client):
    mcp = create_app(AppSettings(mcp_server_url=MCP_URL), client=mcp_client)
    return TestClient(mcp.streamable_http_app())


def sent_json(request: httpx.Request):
    return json.loads(request.content)
