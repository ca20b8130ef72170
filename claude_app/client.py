"""HTTP client for the Graph MCP server's ``/api/graph`` endpoint."""

import logging
from typing import Any, Dict, Optional

import httpx

from graph_mcp.errors import GraphError, Result
from graph_mcp.helpers import error_payload

logger = logging.getLogger("claude_app")


def mcp_server_error(message: str, upstream_status: Optional[int] = None) -> GraphError:
    return GraphError(
        "MCP Server Error", message, 500, upstream_status=upstream_status
    )


def list_descriptor(
    endpoint: str,
    query_params: Optional[Dict[str, Any]] = None,
    all_data: bool = False,
    version: str = "beta",
) -> Dict[str, Any]:
    """Build a GET descriptor for a directory collection.

    Graph only accepts ``$search`` on directory objects with eventual consistency,
    so the descriptor opts in whenever a search term is present.
    """
    descriptor: Dict[str, Any] = {
        "endpoint": endpoint,
        "method": "GET",
        "queryParams": query_params or {},
        "allData": all_data,
        "version": version,
    }
    if descriptor["queryParams"].get("$search"):
        descriptor["consistencyLevel"] = "eventual"
    return descriptor


class MCPClient:
    """Async client that sends Graph request descriptors to the MCP server."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        api_key: str = "",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.api_key = api_key
        self.timeout = timeout
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def make_graph_request(self, options: Dict[str, Any]) -> Result[Any]:
        """POST ``options`` to ``/api/graph`` and return the decoded response."""
        client = await self._get_client()
        headers = {
            "Content-Type": "application/json",
            "X-User-ID": self.user_id,
            "X-API-Key": self.api_key or "",
        }
        try:
            response = await client.post(
                f"{self.base_url}/api/graph", json=options, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("Error connecting to MCP server: %s", e)
            return Result.failure(
                mcp_server_error(f"Could not reach MCP server: {type(e).__name__}: {e}")
            )

        if response.is_error:
            payload = error_payload(response)
            detail = (
                payload.get("message") if isinstance(payload, dict) else None
            ) or response.reason_phrase
            logger.error("MCP server returned %d: %s", response.status_code, detail)
            return Result.failure(
                mcp_server_error(f"MCP Server Error: {detail}", response.status_code)
            )
        return Result.success(response.json())

    async def graph_query(self, options: Dict[str, Any]) -> Result[Any]:
        return await self.make_graph_request(options)

    async def get_users(
        self,
        query_params: Optional[Dict[str, Any]] = None,
        all_data: bool = False,
        version: str = "beta",
    ) -> Result[Any]:
        return await self.make_graph_request(list_descriptor(
            "/users", query_params, all_data=all_data, version=version
        ))

    async def get_groups(
        self,
        query_params: Optional[Dict[str, Any]] = None,
        all_data: bool = False,
        version: str = "beta",
    ) -> Result[Any]:
        return await self.make_graph_request(list_descriptor(
            "/groups", query_params, all_data=all_data, version=version
        ))

    async def create_user(self, user_data: Dict[str, Any]) -> Result[Any]:
        return await self.make_graph_request({
            "endpoint": "/users",
            "method": "POST",
            "body": user_data,
            "version": "beta",
        })

    async def update_user(self, user_id: str, user_data: Dict[str, Any]) -> Result[Any]:
        return await self.make_graph_request({
            "endpoint": f"/users/{user_id}",
            "method": "PATCH",
            "body": user_data,
            "version": "beta",
        })
