import pytest

from graph_mcp.config import VERSION, Settings
from graph_mcp.server import create_server

USER = {"X-User-ID": "alice"}


def test_health(graph_app):
    response = graph_app.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": VERSION}


def test_forwards_request(graph_app, recorder):
    recorder.routes["/beta/users"] = (200, {"value": [{"id": "u1"}]})
    response = graph_app.post("/api/graph", json={"endpoint": "users"}, headers=USER)

    assert response.status_code == 200
    assert response.json() == {"value": [{"id": "u1"}]}
    assert recorder.requests[0].url.path == "/beta/users"


def test_repairs_single_quoted_body(graph_app, recorder):
    recorder.routes["/v1.0/groups"] = (200, {"value": []})
    response = graph_app.post(
        "/api/graph",
        content="{'endpoint': '/groups', 'version': 'v1.0'}",
        headers={**USER, "Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json() == {"value": []}


def test_irreparable_body_is_400(graph_app, recorder):
    response = graph_app.post("/api/graph", content="{'endpoint': ", headers=USER)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON"
    assert recorder.requests == []


def test_missing_user_header_is_401(graph_app, recorder):
    response = graph_app.post("/api/graph", json={"endpoint": "/users"})
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"
    assert recorder.requests == []


def test_missing_endpoint_is_400(graph_app):
    response = graph_app.post("/api/graph", json={"method": "GET"}, headers=USER)
    assert response.status_code == 400
    assert response.json() == {
        "error": "Bad Request",
        "message": 'Missing required fields. "endpoint" is required.',
    }


@pytest.mark.parametrize("field, value", [("method", "DELETE"), ("version", "v2.0")])
def test_invalid_method_or_version_makes_no_outbound_call(graph_app, recorder, auth, field, value):
    response = graph_app.post("/api/graph", json={"endpoint": "/users", field: value}, headers=USER)
    assert response.status_code == 400
    assert recorder.requests == []
    assert auth.calls == 0


def test_permission_denied_is_403(graph_app, recorder, auth):
    response = graph_app.post(
        "/api/graph",
        json={"endpoint": "/groups", "method": "POST", "body": {"displayName": "x"}},
        headers=USER,
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Missing required permission: Group.ReadWrite.All"
    assert recorder.requests == []
    assert auth.calls == 0


def test_upstream_error_is_500(graph_app, recorder):
    recorder.routes["/beta/users/x"] = (404, {"error": {"message": "gone"}})
    response = graph_app.post("/api/graph", json={"endpoint": "/users/x"}, headers=USER)
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Graph API Error"
    assert "(404)" in body["message"]


def test_paginated_response(graph_app, recorder):
    recorder.routes["/beta/users"] = [
        (200, {"value": [1, 2, 3], "@odata.nextLink": "https://graph.microsoft.com/beta/users?$skiptoken=b"}),
        (200, {"value": [4, 5]}),
    ]
    response = graph_app.post(
        "/api/graph", json={"endpoint": "/users", "allData": True}, headers=USER
    )
    assert response.json() == {"value": [1, 2, 3, 4, 5], "@odata.count": 5}


@pytest.mark.asyncio
async def test_graph_query_tool_is_registered(service):
    mcp = create_server(Settings(), service=service)
    tools = await mcp.list_tools()
    assert [tool.name for tool in tools] == ["graph_query"]
