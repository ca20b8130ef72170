"""
Claude App - HTTP routes and MCP tool bridging Claude to the Graph MCP server.

Every JSON body passes through the lenient JSON repair step, so Python-style
dict literals sent by clients are accepted.
"""

import json
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from graph_mcp.errors import GraphError, Result
from graph_mcp.helpers import format_error_text
from graph_mcp.sanitize import PARSE_HELP, parse_body

from .client import MCPClient
from .config import AppSettings
from .contexts import register_context_routes
from .messages import process_messages
from .models import MessagesInput, QueryGraphApiInput
from .tools import TOOL_SCHEMA, generate_tool_response, handle_graph_api_query, process_tool_call

logger = logging.getLogger("claude_app")

LIST_OPTION_KEYS = ("allData", "version")


def error_response(error: GraphError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def result_response(result: Result[Any]) -> JSONResponse:
    if not result.ok:
        return error_response(result.error)
    return JSONResponse(result.value)


async def read_json(request: Request) -> Result[Any]:
    """Read the request body, repairing single-quoted JSON when needed."""
    raw = await request.body()
    parsed = parse_body(raw)
    if not parsed.ok:
        logger.error("JSON parse error on %s: %s", request.url.path, parsed.error.message)
    return parsed


def list_options(request: Request) -> Dict[str, Any]:
    """Split a query string into Graph ``queryParams`` and list options."""
    query_params = {
        key: value for key, value in request.query_params.items()
        if key not in LIST_OPTION_KEYS
    }
    return {
        "query_params": query_params,
        "all_data": request.query_params.get("allData", "").lower() == "true",
        "version": request.query_params.get("version", "beta"),
    }


def build_client(settings: AppSettings) -> MCPClient:
    return MCPClient(
        settings.mcp_server_url,
        settings.user_id,
        api_key=settings.api_key,
        timeout=settings.timeout,
    )


def create_app(settings: AppSettings, client: Optional[MCPClient] = None) -> FastMCP:
    """Build the Claude app with its routes bound to ``client``."""
    if client is None:
        client = build_client(settings)

    mcp = FastMCP("Claude_Graph_App", port=settings.port)

    # =========================================================================
    # Graph passthrough routes
    # =========================================================================

    @mcp.custom_route("/api/graph-query", methods=["POST"])
    async def graph_query(request: Request) -> JSONResponse:
        body = await read_json(request)
        if not body.ok:
            return error_response(body.error)
        logger.info("Received graph-query request: %s", json.dumps(body.value, default=str))
        return result_response(await client.graph_query(body.value))

    @mcp.custom_route("/api/users", methods=["GET"])
    async def list_users(request: Request) -> JSONResponse:
        return result_response(await client.get_users(**list_options(request)))

    @mcp.custom_route("/api/groups", methods=["GET"])
    async def list_groups(request: Request) -> JSONResponse:
        return result_response(await client.get_groups(**list_options(request)))

    @mcp.custom_route("/api/users", methods=["POST"])
    async def create_user(request: Request) -> JSONResponse:
        body = await read_json(request)
        if not body.ok:
            return error_response(body.error)
        return result_response(await client.create_user(body.value))

    @mcp.custom_route("/api/users/{user_id}", methods=["PATCH"])
    async def update_user(request: Request) -> JSONResponse:
        body = await read_json(request)
        if not body.ok:
            return error_response(body.error)
        return result_response(
            await client.update_user(request.path_params["user_id"], body.value)
        )

    # =========================================================================
    # Claude-facing routes
    # =========================================================================

    @mcp.custom_route("/api/messages", methods=["POST"])
    async def messages(request: Request) -> JSONResponse:
        body = await read_json(request)
        if not body.ok:
            return error_response(body.error)
        try:
            payload = MessagesInput.model_validate(body.value)
        except ValidationError:
            return JSONResponse(
                {
                    "error": "Invalid message format",
                    "help": 'Request should include a "messages" array',
                },
                status_code=400,
            )
        response = await process_messages(payload.messages, client)
        return JSONResponse({
            "message": "Messages received successfully",
            "messageCount": len(payload.messages),
            "response": response,
        })

    @mcp.custom_route("/api/tools", methods=["POST"])
    async def tool_call(request: Request) -> JSONResponse:
        body = await read_json(request)
        if not body.ok:
            return error_response(body.error)
        result = await process_tool_call(body.value, client)
        call = body.value if isinstance(body.value, dict) else {}
        return JSONResponse(generate_tool_response(call, result))

    @mcp.custom_route("/api/tools/schema", methods=["GET"])
    async def tool_schema(request: Request) -> JSONResponse:
        return JSONResponse({"tools": [TOOL_SCHEMA]})

    @mcp.custom_route("/api/debug", methods=["POST"])
    async def debug(request: Request) -> JSONResponse:
        raw = (await request.body()).decode("utf-8", errors="replace")
        parsed = parse_body(raw)
        if not parsed.ok:
            return JSONResponse(
                {**parsed.error.to_dict(), "help": PARSE_HELP, "rawBody": raw},
                status_code=400,
            )
        return JSONResponse({
            "message": "JSON received and parsed successfully",
            "receivedData": parsed.value,
            "rawBody": raw,
        })

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "message": "Claude MCP integration is running"})

    register_context_routes(mcp, client)

    # =========================================================================
    # MCP tool
    # =========================================================================

    @mcp.tool(
        name="query_graph_api",
        annotations={
            "title": "Query Organizational Data",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True,
        },
    )
    async def query_graph_api(params: QueryGraphApiInput) -> str:
        """Query Microsoft Graph API for organizational data.

        Lists, searches or counts users, groups, sites or teams with optional
        OData filter, select and search terms.

        Returns:
            str: JSON result, or an error description.
        """
        result = await handle_graph_api_query(params, client)
        if not result.ok:
            return format_error_text(result.error)
        return json.dumps(result.value, indent=2)

    return mcp


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Run the Claude app (streamable HTTP by default, or stdio)."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = AppSettings.from_env()
    for i, arg in enumerate(sys.argv):
        if arg == "--port" and i + 1 < len(sys.argv):
            settings = replace(settings, port=int(sys.argv[i + 1]))

    app = create_app(settings)
    if "--stdio" in sys.argv:
        app.run()
    else:
        logger.info("Claude MCP integration server running on port %d", settings.port)
        logger.info("MCP server: %s (user %s)", settings.mcp_server_url, settings.user_id)
        app.run(transport="streamable-http")


if __name__ == "__main__":
    main()
