"""MCP-style context endpoints answering free-text organizational questions."""

import json
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from graph_mcp.sanitize import parse_body

from .client import MCPClient
from .fallback import SAMPLE_GROUPS, SAMPLE_USERS, is_fallback, with_fallback

logger = logging.getLogger("claude_app")

CONTEXT_TYPE = "ms_graph_api"
CONTEXT_TTL = timedelta(hours=1)
FALLBACK_NOTICE = " (Note: Using sample data as I couldn't connect to the actual Graph API)"

_LIMIT_PATTERNS = (
    re.compile(r"top\s+(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s+user", re.IGNORECASE),
)


def _expires_at() -> str:
    return (datetime.now(timezone.utc) + CONTEXT_TTL).isoformat().replace("+00:00", "Z")


def _context_status(context_id: str) -> dict:
    return {
        "context_id": context_id,
        "context_type": CONTEXT_TYPE,
        "status": "ready",
        "expires_at": _expires_at(),
    }


def extract_limit(query: str, default: int = 5) -> int:
    for pattern in _LIMIT_PATTERNS:
        match = pattern.search(query)
        if match:
            return int(match.group(1))
    return default


def department_filter(query: str) -> Optional[str]:
    for department in ("marketing", "sales", "engineering"):
        if department in query:
            return f"department eq '{department.title()}'"
    return None


def format_mcp_response(result: Any, query: str) -> str:
    """Render a Graph result as a short natural-language answer."""
    if not result:
        return "I couldn't retrieve any data from the Microsoft Graph API."
    if not isinstance(result, dict):
        return f"Here's the data I found: {json.dumps(result, indent=2)}"
    if result.get("error"):
        return f"Error retrieving data: {result['error']}"
    if result.get("message"):
        return result["message"]

    items = result.get("value")
    if isinstance(items, list):
        if not items:
            return "No results found for your query."
        notice = FALLBACK_NOTICE if is_fallback(result) else ""

        if items[0].get("mail"):
            lines = [f"I found {len(items)} user(s) in the organization{notice}:", ""]
            for index, user in enumerate(items, 1):
                line = f"{index}. {user.get('displayName')}"
                if user.get("jobTitle"):
                    line += f" - {user['jobTitle']}"
                if user.get("department"):
                    line += f", {user['department']} Department"
                if user.get("mail"):
                    line += f" ({user['mail']})"
                lines.append(line)
            return "\n".join(lines) + "\n"

        lines = [f"I found {len(items)} group(s){notice}:", ""]
        for index, group in enumerate(items, 1):
            line = f"{index}. {group.get('displayName')}"
            if group.get("description"):
                line += f": {group['description']}"
            lines.append(line)
        return "\n".join(lines) + "\n"

    return f"Here's the data I found: {json.dumps(result, indent=2)}"


async def answer_query(query: str, client: MCPClient) -> Any:
    """Route a free-text ``query`` to users, groups, or a help message."""
    if any(word in query for word in ("user", "people", "employee")):
        logger.info("Detected user query, fetching users")
        query_params = {
            "$top": extract_limit(query),
            "$select": "displayName,mail,jobTitle,department",
        }
        dept = department_filter(query)
        if dept:
            query_params["$filter"] = dept
        result = await with_fallback(SAMPLE_USERS)(client.get_users)(query_params)
        return result.value

    if any(word in query for word in ("group", "team", "department")):
        logger.info("Detected group query, fetching groups")
        result = await with_fallback(SAMPLE_GROUPS)(client.get_groups)(
            {"$top": 10, "$select": "displayName,description"}
        )
        return result.value

    return {
        "message": "I'm not sure what organizational data you're looking for. "
                   "You can ask about users or groups."
    }


def register_context_routes(mcp: FastMCP, client: MCPClient, prefix: str = "/adapter"):
    """Attach the context endpoints under ``prefix`` to ``mcp``."""

    @mcp.custom_route(prefix, methods=["GET"])
    async def server_info(request: Request) -> JSONResponse:
        return JSONResponse({
            "name": "Graph API MCP Server",
            "description": "MCP server for Microsoft Graph API access",
            "vendor": "Custom Integration",
            "version": "1.0.0",
            "protocol_version": "0.1.0",
            "status": "healthy",
        })

    @mcp.custom_route(f"{prefix}/context_types", methods=["GET"])
    async def context_types(request: Request) -> JSONResponse:
        return JSONResponse({
            "context_types": [{
                "name": CONTEXT_TYPE,
                "description": "Microsoft Graph API connector",
                "auth_requirement": "none",
            }]
        })

    @mcp.custom_route(f"{prefix}/context_types/{CONTEXT_TYPE}", methods=["GET"])
    async def context_type_detail(request: Request) -> JSONResponse:
        return JSONResponse({
            "name": CONTEXT_TYPE,
            "description": "Access Microsoft Graph API for organizational data",
            "auth_requirement": "none",
            "parameters": {
                "required": [],
                "optional": ["endpoint", "query_type", "limit", "filter"],
            },
            "capabilities": {
                "users": {"description": "Get information about users in the organization"},
                "groups": {"description": "Get information about groups in the organization"},
            },
        })

    @mcp.custom_route(f"{prefix}/contexts", methods=["POST"])
    async def create_context(request: Request) -> JSONResponse:
        return JSONResponse(_context_status(f"ctx_{uuid.uuid4().hex[:13]}"))

    @mcp.custom_route(f"{prefix}/contexts/{{context_id}}", methods=["GET"])
    async def context_status(request: Request) -> JSONResponse:
        return JSONResponse(_context_status(request.path_params["context_id"]))

    @mcp.custom_route(f"{prefix}/contexts/{{context_id}}/query", methods=["POST"])
    async def context_query(request: Request) -> JSONResponse:
        parsed = parse_body(await request.body())
        if not parsed.ok:
            return JSONResponse(parsed.error.to_dict(), status_code=400)
        body = parsed.value if isinstance(parsed.value, dict) else {}
        query = body.get("query")
        if not query or not isinstance(query, str):
            return JSONResponse(
                {"error": "Invalid request", "message": "Query parameter is required"},
                status_code=400,
            )
        normalized = query.lower()
        result = await answer_query(normalized, client)
        return JSONResponse({"answer": format_mcp_response(result, normalized)})
