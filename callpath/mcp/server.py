"""MCP server implementation for Callpath."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from callpath.core.config import AnalysisConfig, load_config
from callpath.core.exceptions import CallPathError, NodeNotFoundError
from callpath.core.graph import CallGraph, GraphDocument, load_graph
from callpath.core.graph.analysis import SYNTHETIC_ROOT, find_reachable_targets, with_synthetic_root
from callpath.core.graph.pathfinding import shortest_path
from callpath.core.graph.traversal import direct_callees
from callpath.core.pipeline import analyze
from callpath.core.targets import TargetMatcher

logger = logging.getLogger(__name__)

server = Server("callpath")

_GRAPH_PROPERTY = {
    "type": "string",
    "description": "Path to the call graph JSON document",
}
_ROOT_PROPERTY = {
    "type": "string",
    "description": "Synthetic root node (optional; defaults to the document's root)",
}
_TARGETS_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Target method signatures (optional; defaults to the config file)",
}


def _load(arguments: dict[str, Any]) -> tuple[GraphDocument, AnalysisConfig]:
    """Load the graph document and the workspace config, applying overrides."""
    document = load_graph(Path(arguments["graph"]))
    config = load_config(Path.cwd()).with_overrides(
        root=arguments.get("root"),
        targets=arguments.get("targets") or None,
    )
    return document, config


def _rooted(document: GraphDocument, config: AnalysisConfig) -> tuple[CallGraph, str]:
    root = config.root or document.root
    if root is None:
        return with_synthetic_root(document.graph), SYNTHETIC_ROOT
    if root not in document.graph:
        raise NodeNotFoundError(f"Root '{root}' is not in the call graph")
    return document.graph, root


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="callpath_paths",
            description=(
                "Find the shortest explicit call path from every entry point to every "
                "reachable target method. Returns paths as ordered call chains."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "graph": _GRAPH_PROPERTY,
                    "root": _ROOT_PROPERTY,
                    "targets": _TARGETS_PROPERTY,
                },
                "required": ["graph"],
            },
        ),
        Tool(
            name="callpath_entries",
            description="List the entry points called directly by the synthetic root.",
            inputSchema={
                "type": "object",
                "properties": {"graph": _GRAPH_PROPERTY, "root": _ROOT_PROPERTY},
                "required": ["graph"],
            },
        ),
        Tool(
            name="callpath_targets",
            description="List target methods reachable from the entry points via explicit calls.",
            inputSchema={
                "type": "object",
                "properties": {
                    "graph": _GRAPH_PROPERTY,
                    "root": _ROOT_PROPERTY,
                    "targets": _TARGETS_PROPERTY,
                },
                "required": ["graph"],
            },
        ),
        Tool(
            name="callpath_shortest",
            description="Find the shortest explicit call path between two methods.",
            inputSchema={
                "type": "object",
                "properties": {
                    "graph": _GRAPH_PROPERTY,
                    "source": {"type": "string", "description": "Method to start from"},
                    "target": {"type": "string", "description": "Method to reach"},
                },
                "required": ["graph", "source", "target"],
            },
        ),
        Tool(
            name="callpath_stats",
            description="Get node and edge counts of a call graph document.",
            inputSchema={
                "type": "object",
                "properties": {"graph": _GRAPH_PROPERTY},
                "required": ["graph"],
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "callpath_paths":
            result = _handle_paths(arguments)
        elif name == "callpath_entries":
            result = _handle_entries(arguments)
        elif name == "callpath_targets":
            result = _handle_targets(arguments)
        elif name == "callpath_shortest":
            result = _handle_shortest(arguments)
        elif name == "callpath_stats":
            result = _handle_stats(arguments)
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except (CallPathError, KeyError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_paths(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle callpath_paths tool."""
    document, config = _load(arguments)
    graph, root = _rooted(document, config)
    matcher = TargetMatcher(config.targets, document.superclasses)
    if not matcher:
        return {"error": "No targets given", "results": []}

    result = analyze(graph, root, matcher, config)
    return {
        "root": root,
        "results": [
            {
                "target": str(target),
                "paths": [p.to_dict() for p in r.paths],
                "failures": [str(f) for f in r.failures],
            }
            for target, r in result.results.items()
        ],
        "methods_on_paths": sorted(str(n) for n in result.methods_on_paths()),
    }


def _handle_entries(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle callpath_entries tool."""
    document, config = _load(arguments)
    graph, root = _rooted(document, config)
    return {"root": root, "entries": sorted(str(n) for n in direct_callees(graph, root))}


def _handle_targets(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle callpath_targets tool."""
    document, config = _load(arguments)
    graph, root = _rooted(document, config)
    matcher = TargetMatcher(config.targets, document.superclasses)
    found = find_reachable_targets(graph, direct_callees(graph, root), matcher, config.max_visits)
    return {"root": root, "targets": sorted(str(n) for n in found)}


def _handle_shortest(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle callpath_shortest tool."""
    document, config = _load(arguments)
    source, target = arguments["source"], arguments["target"]
    for node in (source, target):
        if node not in document.graph:
            return {"error": f"No node named '{node}'"}
    path = shortest_path(document.graph, source, target, max_visits=config.max_visits)
    return {"path": path.to_dict() if path else None}


def _handle_stats(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle callpath_stats tool."""
    document = load_graph(Path(arguments["graph"]))
    graph = document.graph
    return {
        "nodes": graph.num_nodes,
        "edges": graph.num_edges,
        "explicit_edges": sum(1 for e in graph if e.explicit),
        "root": document.root,
    }


async def serve() -> None:
    """Run the MCP server."""
    # stdout carries JSON-RPC, so logs go to stderr
    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s", stream=sys.stderr)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
