"""
Claude App - Entry Point
=========================
Thin wrapper that imports and runs the Claude app from the claude_app package.
See claude_app/server.py for the full implementation.

Usage:
    python claude_app_server.py               # streamable HTTP on $PORT (default 4000)
    python claude_app_server.py --port 4000   # HTTP on a given port
    python claude_app_server.py --stdio       # stdio transport (for Claude Desktop)
"""

from claude_app.server import main

if __name__ == "__main__":
    main()
