"""
Graph MCP Server - HTTP routes, MCP tool and server lifecycle.

Exposes Microsoft Graph through a permission-gated proxy:

    POST /api/graph    forward a Graph request descriptor
    GET  /health       liveness probe
    graph_query        the same forwarder as an MCP tool
"""

import json
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from .auth import AuthManager, GraphClient
from .config import VERSION, Settings
from .errors import GraphError
from .helpers import format_error_text
from .models import GraphRequest
from .permissions import PermissionGate
from .sanitize import parse_body
from .service import GraphService

logger = logging.getLogger("graph_mcp")

TOOL_USER_ID = "mcp-tool"


def error_response(error: GraphError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def build_service(settings: Settings) -> GraphService:
    """Wire the auth manager, Graph client and permission gate for ``settings``."""
    graph = GraphClient(
        AuthManager.from_settings(settings),
        timeout=settings.timeout,
        graph_root_url=settings.graph_root_url,
    )
    return GraphService(graph, PermissionGate(granted=settings.granted_permissions))


def create_server(
    settings: Settings, service: Optional[GraphService] = None
) -> FastMCP:
    """Build the FastMCP server with its REST routes bound to ``service``."""
    if service is None:
        service = build_service(settings)

    mcp = FastMCP("Graph_MCP", port=settings.port)

    # =========================================================================
    # REST routes
    # =========================================================================

    @mcp.custom_route("/api/graph", methods=["POST"])
    async def api_graph(request: Request) -> JSONResponse:
        raw = await request.body()
        parsed = parse_body(raw)
        if not parsed.ok:
            logger.warning("Rejected /api/graph body: %s", parsed.error.message)
            return error_response(parsed.error)
        logger.debug("Parsed /api/graph body: %s", json.dumps(parsed.value, default=str))

        result = await service.handle(parsed.value, request.headers.get("x-user-id"))
        if not result.ok:
            return error_response(result.error)
        return JSONResponse(result.value)

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "version": VERSION})

    # =========================================================================
    # MCP tool
    # =========================================================================

    @mcp.tool(
        name="graph_query",
        annotations={
            "title": "Query Microsoft Graph",
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True,
        },
    )
    async def graph_query(params: GraphRequest) -> str:
        """Send a request to Microsoft Graph through the permission-gated proxy.

        Supports GET/POST/PUT/PATCH against the beta or v1.0 API, OData query
        parameters, and optional collection of every page (allData).

        Returns:
            str: The Graph JSON response, or an error description.
        """
        result = await service.handle(params.model_dump(by_alias=True), TOOL_USER_ID)
        if not result.ok:
            return format_error_text(result.error)
        return json.dumps(result.value, indent=2)

    return mcp


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Run the Graph MCP server (streamable HTTP by default, or stdio)."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = Settings.from_env()
    for i, arg in enumerate(sys.argv):
        if arg == "--port" and i + 1 < len(sys.argv):
            settings = replace(settings, port=int(sys.argv[i + 1]))

    mcp = create_server(settings)
    if "--stdio" in sys.argv:
        mcp.run()
    else:
        logger.info("MCP Server running on port %d", settings.port)
        mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
