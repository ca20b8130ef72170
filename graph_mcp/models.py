"""Pydantic input models for the Graph MCP server."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import Result, validation_error

VALID_METHODS = ("GET", "POST", "PUT", "PATCH")
VALID_VERSIONS = ("beta", "v1.0")
WRITE_METHODS = ("POST", "PUT", "PATCH")


class GraphRequest(BaseModel):
    """Declarative description of one Microsoft Graph call."""
    model_config = ConfigDict(
        str_strip_whitespace=True, extra="forbid", populate_by_name=True
    )

    endpoint: str = Field(
        ...,
        description="Graph resource path, e.g. '/users' or 'groups/{id}/members'",
        min_length=1,
    )
    method: str = Field(default="GET", description="'GET', 'POST', 'PUT' or 'PATCH'")
    version: str = Field(default="beta", description="Graph API version: 'beta' or 'v1.0'")
    headers: Dict[str, str] = Field(
        default_factory=dict, description="Extra request headers sent to Graph"
    )
    body: Optional[Any] = Field(
        default=None, description="JSON body for POST/PUT/PATCH requests"
    )
    query_params: Dict[str, Any] = Field(
        default_factory=dict,
        alias="queryParams",
        description="OData query parameters such as $top, $select, $filter",
    )
    all_data: bool = Field(
        default=False,
        alias="allData",
        description="Follow @odata.nextLink and return every page combined",
    )
    consistency_level: Optional[str] = Field(
        default=None,
        alias="consistencyLevel",
        description="Sent as the consistencyLevel query parameter, e.g. 'eventual'",
    )

    @field_validator("endpoint")
    @classmethod
    def normalize_endpoint(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v: Any) -> str:
        method = "GET" if v is None else str(v).upper()
        if method not in VALID_METHODS:
            raise ValueError(
                f"Invalid HTTP method: {method}. "
                f"Supported methods: {', '.join(VALID_METHODS)}"
            )
        return method

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: Any) -> str:
        version = "beta" if v is None else str(v)
        if version not in VALID_VERSIONS:
            raise ValueError(
                f"Invalid API version: {version}. "
                f"Supported versions: {', '.join(VALID_VERSIONS)}"
            )
        return version

    @field_validator("headers", "query_params", mode="before")
    @classmethod
    def default_mapping(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("all_data", mode="before")
    @classmethod
    def default_all_data(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def is_write(self) -> bool:
        return self.method in WRITE_METHODS


def _describe(e: ValidationError) -> str:
    messages = []
    for err in e.errors():
        msg = err["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(msg if msg.startswith("Invalid") else f"{loc}: {msg}")
    return "; ".join(messages)


def parse_graph_request(payload: Any) -> Result[GraphRequest]:
    """Validate a decoded request body into a ``GraphRequest``."""
    if not isinstance(payload, dict) or not payload.get("endpoint"):
        return Result.failure(
            validation_error('Missing required fields. "endpoint" is required.')
        )
    try:
        return Result.success(GraphRequest.model_validate(payload))
    except ValidationError as e:
        return Result.failure(validation_error(_describe(e), details=e.errors()))
