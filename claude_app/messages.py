"""Keyword-based extraction of Graph queries from chat messages.

This is fixed keyword matching, not language understanding: a message is
classified as a users or groups query by the words it contains, and a few
parameters ($top, $select, $filter) are picked out the same way.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from graph_mcp.errors import Result, validation_error

from .client import MCPClient
from .fallback import SAMPLE_GROUPS, SAMPLE_USERS, with_fallback
from .models import ChatMessage

logger = logging.getLogger("claude_app")

USER_PATTERNS = [
    "users", "employees", "people", "staff", "team members",
    "user", "employee", "person", "staff member",
]

GROUP_PATTERNS = [
    "groups", "teams", "departments", "organizations",
    "group", "team", "department", "organization",
]

# checked in order; the first action with a matching keyword wins
ACTION_PATTERNS = {
    "list": ["list", "show", "get", "display", "find", "search", "who"],
    "top": ["top", "first", "most", "highest", "largest", "best"],
    "count": ["count", "how many", "total number", "number of"],
}

COMMON_FIELDS = {
    "users": ["id", "displayName", "mail", "jobTitle"],
    "groups": ["id", "displayName", "description"],
}

FIELD_MAPPING = {
    "users": {
        "name": "displayName",
        "email": "mail",
        "role": "jobTitle",
        "title": "jobTitle",
        "position": "jobTitle",
        "department": "department",
        "phone": "mobilePhone",
        "manager": "manager",
    },
    "groups": {
        "name": "displayName",
        "description": "description",
        "members": "members",
        "owners": "owners",
    },
}

DEFAULT_TOP = 10
TOP_WITHOUT_NUMBER = 5

_TOP_PATTERN = re.compile(r"\b(top|first)\s+(\d+)\b", re.IGNORECASE)
_TOP_WORD = re.compile(r"\b(top|first)\b", re.IGNORECASE)


def extract_number_parameter(message: str, param_type: str) -> Optional[int]:
    """Pull a ``top N`` / ``first N`` count out of ``message``."""
    if param_type != "top":
        return None
    match = _TOP_PATTERN.search(message)
    if match:
        return int(match.group(2))
    if _TOP_WORD.search(message):
        return TOP_WITHOUT_NUMBER
    return None


def extract_select_fields(message: str, entity_type: str) -> str:
    """Return a ``$select`` list for the fields mentioned in ``message``."""
    requested: List[str] = [
        field for term, field in FIELD_MAPPING.get(entity_type, {}).items()
        if term in message
    ]
    if not requested:
        return ",".join(COMMON_FIELDS[entity_type])

    if "id" not in requested:
        requested.insert(0, "id")
    if entity_type == "users" and "displayName" not in requested:
        requested.append("displayName")
    return ",".join(dict.fromkeys(requested))


def extract_filter_condition(message: str, entity_type: str) -> Optional[str]:
    if entity_type != "users":
        return None
    if "marketing" in message:
        return "department eq 'Marketing'"
    if "sales" in message:
        return "department eq 'Sales'"
    if "engineering" in message or "developers" in message:
        return "department eq 'Engineering'"
    if "manager" in message:
        return "jobTitle eq 'Manager'"
    if "developer" in message:
        return "jobTitle eq 'Developer'"
    return None


def extract_graph_query(message: str) -> Optional[Dict[str, Any]]:
    """Classify ``message`` and extract query parameters, or ``None`` if unrelated."""
    normalized = message.lower()

    if any(p in normalized for p in USER_PATTERNS):
        entity_type = "users"
    elif any(p in normalized for p in GROUP_PATTERNS):
        entity_type = "groups"
    else:
        return None

    action = "list"
    for action_type, patterns in ACTION_PATTERNS.items():
        if any(p in normalized for p in patterns):
            action = action_type
            break

    return {
        "entityType": entity_type,
        "action": action,
        "params": {
            "top": extract_number_parameter(normalized, "top"),
            "select": extract_select_fields(normalized, entity_type),
            "filter": extract_filter_condition(normalized, entity_type),
        },
        "originalText": message,
    }


def build_query_params(params: Dict[str, Any]) -> Dict[str, Any]:
    query_params: Dict[str, Any] = {"$top": params.get("top") or DEFAULT_TOP}
    if params.get("select"):
        query_params["$select"] = params["select"]
    if params.get("filter"):
        query_params["$filter"] = params["filter"]
    return query_params


async def execute_graph_query(query: Dict[str, Any], client: MCPClient) -> Result[Any]:
    """Run an extracted query against the MCP server.

    Failed calls are answered with sample data marked ``_source: "fallback"``.
    """
    entity_type = query["entityType"]
    query_params = build_query_params(query["params"])
    logger.info("Executing Graph query for %s, action: %s", entity_type, query["action"])

    if entity_type == "users":
        result = await with_fallback(SAMPLE_USERS)(client.get_users)(query_params)
    elif entity_type == "groups":
        result = await with_fallback(SAMPLE_GROUPS)(client.get_groups)(query_params)
    else:
        return Result.failure(validation_error(f"Unsupported entity type: {entity_type}"))

    return Result.success({
        "data": result.value,
        "query": {
            "entityType": entity_type,
            "action": query["action"],
            "queryParams": query_params,
        },
    })


async def process_messages(messages: List[ChatMessage], client: MCPClient) -> Dict[str, Any]:
    """Answer the latest user message with Graph data."""
    logger.info("Processing %d messages", len(messages))
    user_messages = [m for m in messages if m.role == "user"]
    if not user_messages:
        return {"error": "No user messages found"}

    latest = user_messages[-1].text
    query = extract_graph_query(latest)
    if query is None:
        return {"message": "No Graph API query detected in the message"}

    result = await execute_graph_query(query, client)
    if not result.ok:
        return {"error": result.error.message}
    return {"query": query, "result": result.value}
