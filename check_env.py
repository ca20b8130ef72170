"""
Graph MCP - Environment Check
==============================
Validates the Claude app configuration and probes the Graph MCP server.

Usage:
    python check_env.py            # check config, /health and a test query
    python check_env.py --token    # also try the client-credential exchange

Environment variables:
    MCP_SERVER_URL   - Graph MCP server base URL (default http://localhost:3000)
    MCP_USER_ID      - User ID sent as X-User-ID (default 'default-user')
    PORT             - Claude app port (default 4000)
    API_KEY          - Optional API key forwarded to the MCP server
    AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET - for --token
"""

import json
import os
import sys

import httpx
import msal
from dotenv import load_dotenv

REQUIRED_VARS = [
    ("MCP_SERVER_URL", "http://localhost:3000"),
    ("MCP_USER_ID", "default-user"),
    ("PORT", "4000"),
]


def check_variables() -> bool:
    print("Checking required environment variables:")
    ok = True
    for name, default in REQUIRED_VARS:
        value = os.environ.get(name, default)
        if not value:
            print(f"  ❌ {name} is not set")
            ok = False
        else:
            print(f"  ✅ {name}: {value}")

    if not os.environ.get("API_KEY"):
        print("  ⚠️ API_KEY is not set - this is optional but recommended for production")
    else:
        print("  ✅ API_KEY is set")
    return ok


def check_mcp_server(mcp_url: str) -> bool:
    print(f"\nAttempting to connect to MCP server at: {mcp_url}")
    try:
        response = httpx.get(f"{mcp_url}/health", timeout=5.0)
    except httpx.HTTPError as e:
        print(f"❌ Failed to connect to MCP server: {e}")
        print("Please make sure your MCP server is running at the specified URL.")
        print("If it runs on a different port or URL, set MCP_SERVER_URL.")
        if isinstance(e, httpx.ConnectError):
            print("\nPossible solution:")
            print("  python graph_mcp_server.py")
        return False

    if response.is_success:
        print("✅ MCP server is running!")
        print(f"Response: {json.dumps(response.json(), indent=2)}")
        return True
    print(f"❌ MCP server returned status {response.status_code}")
    print(f"Response: {response.text}")
    return False


def check_graph_query(mcp_url: str, user_id: str) -> bool:
    print("\nAttempting to make a test Graph API query...")
    try:
        response = httpx.post(
            f"{mcp_url}/api/graph",
            headers={"X-User-ID": user_id},
            json={"endpoint": "/users", "method": "GET", "queryParams": {"$top": 1}},
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        print(f"❌ Failed to make Graph API query: {e}")
        return False

    if response.is_success:
        data = response.json()
        print("✅ Graph API query successful!")
        if isinstance(data, dict) and data.get("value"):
            print(f"Sample data: {json.dumps(data['value'][0], indent=2)}")
        else:
            print("No data returned, but request was successful")
        return True

    print(f"❌ Graph API query returned status {response.status_code}")
    print(f"Response: {response.text}")
    try:
        error = response.json().get("error")
    except ValueError:
        error = None
    if error in ("Unauthorized", "Graph API Error"):
        print("\nPossible authentication issue:")
        print("  1. Check AZURE_TENANT_ID / AZURE_CLIENT_ID / AZURE_CLIENT_SECRET on the MCP server")
        print("  2. Make sure the app registration has the required Graph application permissions")
        print("  3. Verify that the user ID you're using has appropriate permissions")
    return False


def check_token() -> bool:
    tenant_id = os.environ.get("AZURE_TENANT_ID", "")
    client_id = os.environ.get("AZURE_CLIENT_ID", "")
    client_secret = os.environ.get("AZURE_CLIENT_SECRET", "")
    print("\nAttempting client-credential token exchange...")
    if not (tenant_id and client_id and client_secret):
        print("❌ AZURE_TENANT_ID, AZURE_CLIENT_ID and AZURE_CLIENT_SECRET must be set")
        return False

    app = msal.ConfidentialClientApplication(
        client_id=client_id,
        client_credential=client_secret,
        authority=f"https://login.microsoftonline.com/{tenant_id}",
    )
    result = app.acquire_token_for_client(scopes=["https://graph.microsoft.com/.default"])
    if "access_token" in result:
        print(f"✅ Token acquired (expires in {result.get('expires_in', '?')} seconds)")
        return True
    print(f"❌ Token request failed: {result.get('error', 'unknown')}")
    print(f"   Description: {result.get('error_description', 'N/A')}")
    return False


def main():
    load_dotenv()
    print("=" * 60)
    print("ENVIRONMENT CONFIGURATION CHECK")
    print("=" * 60)

    mcp_url = os.environ.get("MCP_SERVER_URL", "http://localhost:3000").rstrip("/")
    user_id = os.environ.get("MCP_USER_ID", "default-user")

    ok = check_variables()
    if "--token" in sys.argv:
        ok = check_token() and ok
    if check_mcp_server(mcp_url):
        ok = check_graph_query(mcp_url, user_id) and ok
    else:
        ok = False

    print()
    print("=" * 60)
    if ok:
        print("✅ Configuration check passed")
    else:
        print("❌ Configuration check completed with errors")
        print("Please fix the issues above and try again")
    print("=" * 60)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
