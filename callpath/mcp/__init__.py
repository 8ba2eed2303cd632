"""
MCP server for Callpath.

Exposes shortest call path analysis to LLMs via the Model Context Protocol.

Tools:
    - callpath_paths: Shortest paths from entry points to targets
    - callpath_entries: Entry points under the synthetic root
    - callpath_targets: Targets reachable via explicit calls
    - callpath_shortest: Shortest path between two methods
    - callpath_stats: Call graph statistics

Usage:
    Run: callpath-mcp
"""

import asyncio

from callpath.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
