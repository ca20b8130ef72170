"""Pydantic input models for the Claude app."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENTITY_TYPES = ("users", "groups", "sites", "teams")
QUERY_TYPES = ("list", "search", "get", "count")


class ChatMessage(BaseModel):
    """One message in a Claude conversation."""
    model_config = ConfigDict(extra="ignore")

    role: str = Field(..., description="'user' or 'assistant'")
    content: Any = Field(default="", description="Message text or content blocks")

    @property
    def text(self) -> str:
        """Flatten string or ``[{type: "text", text: ...}]`` content into text."""
        if isinstance(self.content, str):
            return self.content
        if isinstance(self.content, list):
            return " ".join(
                block.get("text") or ""
                for block in self.content
                if isinstance(block, dict) and block.get("type") == "text"
            )
        return str(self.content or "")


class MessagesInput(BaseModel):
    """Body of ``POST /api/messages``."""
    model_config = ConfigDict(extra="ignore")

    messages: List[ChatMessage] = Field(..., description="Conversation so far")


class QueryGraphApiInput(BaseModel):
    """Arguments of the ``query_graph_api`` tool."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    entity_type: str = Field(..., description="The type of entity to query: 'users', 'groups', 'sites' or 'teams'")
    query_type: str = Field(..., description="The type of query: 'list', 'search', 'get' or 'count'")
    limit: Optional[int] = Field(default=5, description="Maximum number of results to return", ge=1, le=999)
    filter: Optional[str] = Field(default="", description="OData filter expression")
    select: Optional[str] = Field(default="", description="Comma-separated list of properties to include")
    search: Optional[str] = Field(default="", description="Search term for finding specific entities")

    @field_validator("entity_type")
    @classmethod
    def validate_entity_type(cls, v: str) -> str:
        if v.lower() not in ENTITY_TYPES:
            raise ValueError(f"entity_type must be one of: {', '.join(ENTITY_TYPES)}")
        return v.lower()

    @field_validator("query_type")
    @classmethod
    def validate_query_type(cls, v: str) -> str:
        if v.lower() not in QUERY_TYPES:
            raise ValueError(f"query_type must be one of: {', '.join(QUERY_TYPES)}")
        return v.lower()
