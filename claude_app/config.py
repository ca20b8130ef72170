"""Environment-driven configuration for the Claude app."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_MCP_SERVER_URL = "http://localhost:3000"
DEFAULT_USER_ID = "default-user"
DEFAULT_PORT = 4000


@dataclass(frozen=True)
class AppSettings:
    mcp_server_url: str = DEFAULT_MCP_SERVER_URL
    user_id: str = DEFAULT_USER_ID
    api_key: str = ""
    port: int = DEFAULT_PORT
    timeout: float = 30.0

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "AppSettings":
        if load_env_file:
            load_dotenv()
        return cls(
            mcp_server_url=os.environ.get("MCP_SERVER_URL", DEFAULT_MCP_SERVER_URL).rstrip("/"),
            user_id=(
                os.environ.get("MCP_USER_ID")
                or os.environ.get("USER_ID")
                or DEFAULT_USER_ID
            ),
            api_key=os.environ.get("API_KEY", ""),
            port=int(os.environ.get("PORT", DEFAULT_PORT)),
            timeout=float(os.environ.get("MCP_TIMEOUT", 30.0)),
        )
