"""Error taxonomy and result values shared by the Graph MCP server."""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class GraphError:
    """A failure that ends up as a structured ``{error, message}`` response."""

    error: str
    message: str
    status_code: int = 500
    upstream_status: Optional[int] = None
    details: Any = None

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


def validation_error(message: str, details: Any = None) -> GraphError:
    return GraphError("Bad Request", message, 400, details=details)


def parse_error(message: str, details: Any = None) -> GraphError:
    return GraphError("Invalid JSON", message, 400, details=details)


def unauthorized_error(message: str) -> GraphError:
    return GraphError("Unauthorized", message, 401)


def permission_denied(permission: str) -> GraphError:
    return GraphError(
        "Forbidden", f"Missing required permission: {permission}", 403,
        details={"required_permission": permission},
    )


def upstream_error(
    message: str, upstream_status: Optional[int] = None, details: Any = None
) -> GraphError:
    return GraphError(
        "Graph API Error", message, 500,
        upstream_status=upstream_status, details=details,
    )


@dataclass
class Result(Generic[T]):
    """Either a value or a GraphError, returned instead of raising."""

    value: Optional[T] = None
    error: Optional[GraphError] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: GraphError) -> "Result[T]":
        return cls(error=error)
