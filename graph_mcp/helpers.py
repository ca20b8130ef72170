"""Query-string building and error formatting helpers."""

import json
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from .errors import GraphError, upstream_error


class AuthenticationError(RuntimeError):
    """Raised when the identity provider refuses the client-credential exchange."""

    def __init__(self, error: str, description: str = ""):
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


def encode_query_value(value: Any) -> str:
    """Render one query value the way Graph expects before percent-encoding."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    elif isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"))
    elif value is None:
        value = ""
    return quote(str(value), safe="")


def build_query_string(params: Mapping[str, Any]) -> str:
    """Serialize ``params`` into ``k=v&k2=v2`` with keys and values percent-encoded."""
    return "&".join(
        f"{quote(str(key), safe='')}={encode_query_value(value)}"
        for key, value in params.items()
    )


def error_payload(response: httpx.Response) -> Any:
    """Decode an error body as JSON, falling back to the raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase


def handle_graph_error(e: Exception) -> GraphError:
    """Turn an exception raised during a Graph call into a ``GraphError``."""
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        payload = error_payload(e.response)
        detail = json.dumps(payload) if not isinstance(payload, str) else payload
        if status == 429:
            retry_after = e.response.headers.get("Retry-After", "60")
            detail = f"{detail} (rate limited, retry after {retry_after} seconds)"
        return upstream_error(
            f"Graph API error ({status}): {detail}",
            upstream_status=status,
            details=payload,
        )
    if isinstance(e, AuthenticationError):
        return upstream_error(
            f"Token acquisition failed: {e}",
            details={"error": e.error, "error_description": e.description},
        )
    if isinstance(e, httpx.TimeoutException):
        return upstream_error(
            "Request timed out. The Graph API may be slow. Please retry."
        )
    if isinstance(e, httpx.HTTPError):
        return upstream_error(f"Could not reach Graph API: {type(e).__name__}: {e}")
    return upstream_error(f"{type(e).__name__}: {e}")


def format_error_text(error: GraphError) -> str:
    """Format a ``GraphError`` for MCP tool output."""
    return f"Error {error.status_code} ({error.error}): {error.message}"
