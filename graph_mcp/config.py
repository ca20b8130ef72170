"""Environment-driven configuration for the Graph MCP server."""

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet

from dotenv import load_dotenv

from .permissions import DEFAULT_GRANTED

VERSION = "1.0.0"
GRAPH_ROOT_URL = "https://graph.microsoft.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PORT = 3000

logger = logging.getLogger("graph_mcp")


@dataclass(frozen=True)
class Settings:
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    granted_permissions: FrozenSet[str] = field(default=DEFAULT_GRANTED)
    timeout: float = DEFAULT_TIMEOUT
    port: int = DEFAULT_PORT
    graph_root_url: str = GRAPH_ROOT_URL

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    @property
    def has_credentials(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from ``AZURE_*`` and ``GRAPH_*`` environment variables."""
        if load_env_file:
            load_dotenv()

        permissions = os.environ.get("GRAPH_MCP_PERMISSIONS", "")
        granted = (
            frozenset(p.strip() for p in permissions.split(",") if p.strip())
            or DEFAULT_GRANTED
        )
        settings = cls(
            tenant_id=os.environ.get("AZURE_TENANT_ID", ""),
            client_id=os.environ.get("AZURE_CLIENT_ID", ""),
            client_secret=os.environ.get("AZURE_CLIENT_SECRET", ""),
            granted_permissions=granted,
            timeout=float(os.environ.get("GRAPH_TIMEOUT", DEFAULT_TIMEOUT)),
            port=int(os.environ.get("PORT", DEFAULT_PORT)),
        )
        if not settings.has_credentials:
            logger.warning(
                "AZURE_TENANT_ID, AZURE_CLIENT_ID and AZURE_CLIENT_SECRET must be set. "
                "The server will start but all Graph calls will fail until configured."
            )
        return settings
