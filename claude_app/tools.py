"""Claude tool-calling protocol for the ``query_graph_api`` function."""

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from graph_mcp.errors import Result, validation_error
from graph_mcp.sanitize import parse_body

from .client import MCPClient, list_descriptor
from .models import QueryGraphApiInput

logger = logging.getLogger("claude_app")

TOOL_NAME = "query_graph_api"

TOOL_SCHEMA = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Query Microsoft Graph API for organizational data",
        "parameters": {
            "type": "object",
            "properties": {
                "entity_type": {
                    "type": "string",
                    "enum": ["users", "groups", "sites", "teams"],
                    "description": "The type of entity to query",
                },
                "query_type": {
                    "type": "string",
                    "enum": ["list", "search", "get", "count"],
                    "description": "The type of query to perform",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return",
                    "default": 5,
                },
                "filter": {
                    "type": "string",
                    "description": "OData filter expression",
                    "default": "",
                },
                "select": {
                    "type": "string",
                    "description": "Comma-separated list of properties to include",
                    "default": "",
                },
                "search": {
                    "type": "string",
                    "description": "Search term for finding specific entities",
                    "default": "",
                },
            },
            "required": ["entity_type", "query_type"],
        },
    },
}

DEFAULT_SELECT = {
    "users": "id,displayName,mail,jobTitle,department",
    "groups": "id,displayName,description,visibility",
}


def build_tool_query_params(args: QueryGraphApiInput) -> Dict[str, Any]:
    query_params: Dict[str, Any] = {"$top": args.limit or 5}
    select = args.select or DEFAULT_SELECT.get(args.entity_type)
    if select:
        query_params["$select"] = select
    if args.filter:
        query_params["$filter"] = args.filter
    if args.search:
        # OData wants the search term quoted
        query_params["$search"] = f'"{args.search}"'
    return query_params


async def handle_graph_api_query(args: QueryGraphApiInput, client: MCPClient) -> Result[Any]:
    """Execute one ``query_graph_api`` call and shape the result for its query type."""
    query_params = build_tool_query_params(args)
    logger.info("Handling Graph API query: %s %s", args.entity_type, args.query_type)

    if args.entity_type == "users":
        result = await client.get_users(query_params)
    elif args.entity_type == "groups":
        result = await client.get_groups(query_params)
    else:
        descriptor = list_descriptor(f"/{args.entity_type}", query_params)
        result = await client.graph_query(descriptor)

    if not result.ok:
        return result

    data = result.value
    if args.query_type == "count" and isinstance(data, dict) and "value" in data:
        count = len(data["value"])
        return Result.success({
            "count": count,
            "message": f"Found {count} {args.entity_type}",
        })
    return Result.success(data)


def parse_tool_arguments(raw: Any) -> Result[QueryGraphApiInput]:
    if isinstance(raw, str):
        parsed = parse_body(raw)
        if not parsed.ok:
            return parsed
        raw = parsed.value
    try:
        return Result.success(QueryGraphApiInput.model_validate(raw or {}))
    except ValidationError as e:
        return Result.failure(validation_error(f"Invalid tool arguments: {e}"))


async def process_tool_call(tool_call: Any, client: MCPClient) -> Dict[str, Any]:
    """Run a Claude tool call of the form ``{id, function: {name, arguments}}``.

    Returns the tool result, or ``{"error": ...}`` when the call is malformed,
    names an unknown function, or the Graph request fails.
    """
    function = tool_call.get("function") if isinstance(tool_call, dict) else None
    if not isinstance(function, dict) or not function.get("name"):
        return {"error": "Invalid tool call format"}

    name = function["name"]
    if name != TOOL_NAME:
        return {"error": f"Unknown function: {name}"}

    args = parse_tool_arguments(function.get("arguments"))
    if not args.ok:
        return {"error": args.error.message}

    result = await handle_graph_api_query(args.value, client)
    if not result.ok:
        logger.error("Tool call %s failed: %s", name, result.error.message)
        return {"error": result.error.message}
    return result.value


def generate_tool_response(tool_call: Dict[str, Any], result: Any) -> Dict[str, Any]:
    return {
        "tool_call_id": tool_call.get("id"),
        "output": result if isinstance(result, str) else json.dumps(result, indent=2),
    }
