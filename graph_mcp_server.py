"""
Graph MCP Server - Entry Point
===============================
Thin wrapper that imports and runs the proxy server from the graph_mcp package.
See graph_mcp/server.py for the full implementation.

Usage:
    python graph_mcp_server.py                # streamable HTTP on $PORT (default 3000)
    python graph_mcp_server.py --port 5000    # HTTP on a given port
    python graph_mcp_server.py --stdio        # stdio transport (for Claude Desktop)
"""

from graph_mcp.server import main

if __name__ == "__main__":
    main()
