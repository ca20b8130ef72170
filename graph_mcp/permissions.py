"""Static permission gate for proxied Graph requests.

There is no authorization backend: each process is configured with a fixed
set of granted Graph permissions, and every request is checked against the
permission its endpoint/method pair requires.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from .errors import GraphError, permission_denied
from .models import WRITE_METHODS

CATCH_ALL_PERMISSION = "Directory.ReadWrite.All"

DEFAULT_GRANTED = frozenset({
    "User.Read.All",
    "Group.Read.All",
    "Sites.Read.All",
})

# (endpoint prefix, method class) -> permission
DEFAULT_RULES: Tuple[Tuple[str, str, str], ...] = (
    ("/users", "read", "User.Read.All"),
    ("/users", "write", "User.ReadWrite.All"),
    ("/groups", "read", "Group.Read.All"),
    ("/groups", "write", "Group.ReadWrite.All"),
)


def method_class(method: str) -> str:
    method = (method or "GET").upper()
    if method == "GET":
        return "read"
    if method in WRITE_METHODS:
        return "write"
    return "other"


@dataclass(frozen=True)
class PermissionGate:
    """Maps endpoints to required permissions and checks a granted set."""

    granted: FrozenSet[str] = DEFAULT_GRANTED
    rules: Tuple[Tuple[str, str, str], ...] = field(default=DEFAULT_RULES)
    catch_all: str = CATCH_ALL_PERMISSION

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "PermissionGate":
        return cls(granted=frozenset(n.strip() for n in names if n.strip()))

    def permission_for(self, endpoint: str, method: str) -> str:
        """Return the permission required for ``method`` on ``endpoint``."""
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        kind = method_class(method)
        for prefix, rule_kind, permission in self.rules:
            if endpoint.startswith(prefix) and kind == rule_kind:
                return permission
        return self.catch_all

    def has_permission(self, permission: str) -> bool:
        return permission in self.granted

    def check(self, endpoint: str, method: str) -> Optional[GraphError]:
        """Return ``None`` when allowed, otherwise a 403 ``GraphError``."""
        required = self.permission_for(endpoint, method)
        if self.has_permission(required):
            return None
        return permission_denied(required)
