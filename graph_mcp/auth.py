"""Client-credential authentication and Microsoft Graph request forwarding."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import msal

from .config import Settings
from .errors import Result
from .helpers import AuthenticationError, build_query_string, handle_graph_error
from .models import GraphRequest

GRAPH_DEFAULT_SCOPE = ["https://graph.microsoft.com/.default"]
NEXT_LINK = "@odata.nextLink"

logger = logging.getLogger("graph_mcp")


# =============================================================================
# Authentication Manager
# =============================================================================

class AuthManager:
    """Acquires app-only Graph tokens with the client-credential flow."""

    def __init__(self, client_id: str, client_secret: str, tenant_id: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.tenant_id = tenant_id
        self.authority = f"https://login.microsoftonline.com/{tenant_id}"
        self._app: Optional[msal.ConfidentialClientApplication] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthManager":
        return cls(settings.client_id, settings.client_secret, settings.tenant_id)

    @property
    def app(self) -> msal.ConfidentialClientApplication:
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                client_id=self.client_id,
                client_credential=self.client_secret,
                authority=self.authority,
            )
        return self._app

    async def get_token(self) -> str:
        """Get an access token for Graph, raising ``AuthenticationError`` on failure."""
        if not (self.client_id and self.client_secret and self.tenant_id):
            raise AuthenticationError(
                "missing_credentials",
                "AZURE_TENANT_ID, AZURE_CLIENT_ID and AZURE_CLIENT_SECRET must be set",
            )
        # msal is synchronous; keep the event loop free while it talks to AAD
        result = await asyncio.to_thread(
            self.app.acquire_token_for_client, scopes=GRAPH_DEFAULT_SCOPE
        )
        if result and "access_token" in result:
            return result["access_token"]
        result = result or {}
        raise AuthenticationError(
            result.get("error", "unknown_error"),
            result.get("error_description", ""),
        )


# =============================================================================
# Microsoft Graph API Client
# =============================================================================

class GraphClient:
    """Async HTTP client that forwards ``GraphRequest`` descriptors to Graph."""

    def __init__(
        self,
        auth_manager: AuthManager,
        timeout: float = 30.0,
        graph_root_url: str = "https://graph.microsoft.com",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.auth = auth_manager
        self.timeout = timeout
        self.graph_root_url = graph_root_url.rstrip("/")
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def build_url(self, request: GraphRequest) -> str:
        params: Dict[str, Any] = dict(request.query_params)
        if request.consistency_level:
            params["consistencyLevel"] = request.consistency_level
        query = build_query_string(params)
        url = f"{self.graph_root_url}/{request.version}{request.endpoint}"
        return f"{url}?{query}" if query else url

    def build_headers(self, request: GraphRequest, token: str) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        headers.update(
            (name, value) for name, value in request.headers.items()
            if name.lower() != "authorization"
        )
        headers["Authorization"] = f"Bearer {token}"
        if request.is_write and request.body is not None:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def build_content(request: GraphRequest) -> Optional[str]:
        if not request.is_write or request.body is None:
            return None
        if isinstance(request.body, str):
            return request.body
        return json.dumps(request.body)

    async def _fetch(
        self, method: str, url: str, headers: Dict[str, str], content: Optional[str]
    ) -> Any:
        client = await self._get_client()
        logger.info("Graph request: %s %s", method, url)
        response = await client.request(
            method, url, headers=headers, content=content, timeout=self.timeout
        )
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return {"status": "success"}
        return response.json()

    async def _collect_pages(
        self, first_page: dict, headers: Dict[str, str]
    ) -> Dict[str, Any]:
        items: List[Any] = list(first_page["value"])
        next_link = first_page.get(NEXT_LINK)
        while next_link:
            page = await self._fetch("GET", next_link, headers, None)
            items.extend(page.get("value", []))
            next_link = page.get(NEXT_LINK)
        logger.info("Collected %d items across pages", len(items))
        return {"value": items, "@odata.count": len(items)}

    async def query(self, request: GraphRequest) -> Result[Any]:
        """Forward ``request`` to Graph, following pagination when ``all_data`` is set.

        Returns:
            Result: the decoded Graph body (or ``{"value", "@odata.count"}`` for
            combined pages) on success; an upstream ``GraphError`` otherwise.
            A failure on any page fails the whole call.
        """
        try:
            token = await self.auth.get_token()
            headers = self.build_headers(request, token)
            result = await self._fetch(
                request.method,
                self.build_url(request),
                headers,
                self.build_content(request),
            )
            if (
                request.all_data
                and isinstance(result, dict)
                and isinstance(result.get("value"), list)
                and result.get(NEXT_LINK)
            ):
                result = await self._collect_pages(result, headers)
            return Result.success(result)
        except Exception as e:
            error = handle_graph_error(e)
            logger.error("Error in Graph API request: %s", error.message)
            return Result.failure(error)
