"""Sample data served when the Graph MCP server cannot be reached."""

import copy
import functools
import logging
from typing import Any, Awaitable, Callable, Dict

from graph_mcp.errors import Result

logger = logging.getLogger("claude_app")

FALLBACK_SOURCE = "fallback"

SAMPLE_USERS = [
    {"id": "user1", "displayName": "John Doe", "mail": "john.doe@example.com", "jobTitle": "Software Engineer", "department": "Engineering"},
    {"id": "user2", "displayName": "Jane Smith", "mail": "jane.smith@example.com", "jobTitle": "Product Manager", "department": "Product"},
    {"id": "user3", "displayName": "Robert Johnson", "mail": "robert.johnson@example.com", "jobTitle": "UX Designer", "department": "Design"},
    {"id": "user4", "displayName": "Emily Davis", "mail": "emily.davis@example.com", "jobTitle": "Marketing Specialist", "department": "Marketing"},
    {"id": "user5", "displayName": "Michael Wilson", "mail": "michael.wilson@example.com", "jobTitle": "Sales Representative", "department": "Sales"},
]

SAMPLE_GROUPS = [
    {"id": "group1", "displayName": "Engineering Team", "description": "Software development team"},
    {"id": "group2", "displayName": "Marketing Team", "description": "Marketing and communications team"},
    {"id": "group3", "displayName": "Sales Team", "description": "Sales and customer relations team"},
    {"id": "group4", "displayName": "Product Team", "description": "Product management team"},
    {"id": "group5", "displayName": "Design Team", "description": "UX/UI design team"},
]


def is_fallback(data: Any) -> bool:
    return isinstance(data, dict) and data.get("_source") == FALLBACK_SOURCE


def with_fallback(sample: list) -> Callable:
    """Decorate a Graph call so failures return ``sample`` instead of an error.

    The replacement payload is Graph-shaped (``{"value": [...]}``) and marked
    with ``_source: "fallback"`` plus the original error message.
    """

    def decorator(func: Callable[..., Awaitable[Result[Any]]]):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Result[Any]:
            result = await func(*args, **kwargs)
            if result.ok:
                return result
            logger.warning(
                "%s failed, serving sample data: %s",
                getattr(func, "__name__", "graph call"), result.error.message,
            )
            payload: Dict[str, Any] = {
                "value": copy.deepcopy(sample),
                "_source": FALLBACK_SOURCE,
                "_error": result.error.message,
            }
            return Result.success(payload)

        return wrapper

    return decorator
