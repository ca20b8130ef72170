import json

import pytest

from claude_app.fallback import with_fallback
from claude_app.tools import TOOL_SCHEMA, generate_tool_response, process_tool_call
from conftest import sent_json
from graph_mcp.errors import Result, upstream_error


def tool_call(arguments, name="query_graph_api"):
    return {"id": "call_1", "function": {"name": name, "arguments": arguments}}


def test_schema_names_the_tool():
    assert TOOL_SCHEMA["function"]["name"] == "query_graph_api"
    assert TOOL_SCHEMA["function"]["parameters"]["required"] == ["entity_type", "query_type"]


@pytest.mark.asyncio
async def test_list_users_with_defaults(mcp_client, mcp_recorder):
    mcp_recorder.routes["/api/graph"] = (200, {"value": [{"id": "1"}]})
    result = await process_tool_call(
        tool_call(json.dumps({"entity_type": "users", "query_type": "list", "search": "ann"})),
        mcp_client,
    )
    assert result == {"value": [{"id": "1"}]}
    options = sent_json(mcp_recorder.requests[0])
    assert options["endpoint"] == "/users"
    assert options["queryParams"] == {
        "$top": 5,
        "$select": "id,displayName,mail,jobTitle,department",
        "$search": '"ann"',
    }


@pytest.mark.asyncio
async def test_count_query(mcp_client, mcp_recorder):
    mcp_recorder.routes["/api/graph"] = (200, {"value": [{}, {}, {}]})
    result = await process_tool_call(
        tool_call({"entity_type": "groups", "query_type": "count", "limit": 50}), mcp_client
    )
    assert result == {"count": 3, "message": "Found 3 groups"}
    assert sent_json(mcp_recorder.requests[0])["queryParams"]["$top"] == 50


@pytest.mark.asyncio
async def test_other_entities_use_generic_query(mcp_client, mcp_recorder):
    mcp_recorder.routes["/api/graph"] = (200, {"value": []})
    await process_tool_call(tool_call("{'entity_type': 'sites', 'query_type': 'get'}"), mcp_client)
    options = sent_json(mcp_recorder.requests[0])
    assert options["endpoint"] == "/sites"
    assert options["queryParams"] == {"$top": 5}


@pytest.mark.asyncio
@pytest.mark.parametrize("call, message", [
    ({}, "Invalid tool call format"),
    ({"function": {"arguments": "{}"}}, "Invalid tool call format"),
    (tool_call("{}", name="send_mail"), "Unknown function: send_mail"),
])
async def test_malformed_calls(mcp_client, mcp_recorder, call, message):
    assert await process_tool_call(call, mcp_client) == {"error": message}
    assert mcp_recorder.requests == []


@pytest.mark.asyncio
async def test_invalid_arguments(mcp_client, mcp_recorder):
    result = await process_tool_call(tool_call({"entity_type": "printers", "query_type": "list"}), mcp_client)
    assert "entity_type must be one of" in result["error"]
    assert mcp_recorder.requests == []


@pytest.mark.asyncio
async def test_upstream_error_is_reported(mcp_client, mcp_recorder):
    mcp_recorder.routes["/api/graph"] = (403, {"error": "Forbidden", "message": "Missing required permission: X"})
    result = await process_tool_call(tool_call({"entity_type": "users", "query_type": "list"}), mcp_client)
    assert result == {"error": "MCP Server Error: Missing required permission: X"}


def test_generate_tool_response():
    assert generate_tool_response({"id": "c1"}, "done") == {"tool_call_id": "c1", "output": "done"}
    response = generate_tool_response({"id": "c2"}, {"count": 1})
    assert json.loads(response["output"]) == {"count": 1}


@pytest.mark.asyncio
async def test_with_fallback_passes_success_through():
    async def ok():
        return Result.success({"value": ["real"]})

    assert (await with_fallback(["sample"])(ok)()).value == {"value": ["real"]}


@pytest.mark.asyncio
async def test_with_fallback_replaces_failure():
    async def broken():
        return Result.failure(upstream_error("down"))

    result = await with_fallback([{"id": "s"}])(broken)()
    assert result.ok
    assert result.value == {"value": [{"id": "s"}], "_source": "fallback", "_error": "down"}


@pytest.mark.asyncio
async def test_search_requests_eventual_consistency(mcp_client, mcp_recorder):
    mcp_recorder.routes["/api/graph"] = (200, {"value": []})
    await process_tool_call(
        tool_call({"entity_type": "users", "query_type": "search", "search": "john"}), mcp_client
    )
    await process_tool_call(
        tool_call({"entity_type": "teams", "query_type": "search", "search": "ops"}), mcp_client
    )
    await process_tool_call(tool_call({"entity_type": "groups", "query_type": "list"}), mcp_client)

    users, teams, groups = (sent_json(r) for r in mcp_recorder.requests)
    assert users["queryParams"]["$search"] == '"john"'
    assert users["consistencyLevel"] == "eventual"
    assert teams["endpoint"] == "/teams"
    assert teams["consistencyLevel"] == "eventual"
    assert "consistencyLevel" not in groups
