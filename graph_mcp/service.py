"""Request pipeline: validate, authorize, forward."""

import logging
from typing import Any, Optional

from .auth import GraphClient
from .errors import Result, unauthorized_error
from .models import parse_graph_request
from .permissions import PermissionGate

logger = logging.getLogger("graph_mcp")


class GraphService:
    """Runs one proxied Graph call for a user.

    Validation and the permission check both happen before any outbound
    call is made, so a rejected request never touches the identity provider
    or Graph.
    """

    def __init__(self, graph: GraphClient, gate: PermissionGate):
        self.graph = graph
        self.gate = gate

    async def handle(self, payload: Any, user_id: Optional[str]) -> Result[Any]:
        if not user_id:
            return Result.failure(
                unauthorized_error("Missing user identity. Send the X-User-ID header.")
            )

        parsed = parse_graph_request(payload)
        if not parsed.ok:
            return parsed
        request = parsed.value

        denied = self.gate.check(request.endpoint, request.method)
        if denied is not None:
            logger.warning(
                "User %s denied %s %s: %s",
                user_id, request.method, request.endpoint, denied.message,
            )
            return Result.failure(denied)

        logger.info(
            "User %s -> %s %s (%s)",
            user_id, request.method, request.endpoint, request.version,
        )
        return await self.graph.query(request)

    async def close(self):
        await self.graph.close()
