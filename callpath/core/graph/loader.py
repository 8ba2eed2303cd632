"""Load a CallGraph from a JSON call graph document."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from callpath.core.exceptions import GraphLoadError
from callpath.core.graph.base import CallGraph
from callpath.core.models import Edge

logger = logging.getLogger(__name__)


@dataclass
class GraphDocument:
    """A call graph plus the metadata exported alongside it."""

    graph: CallGraph
    root: str | None = None
    superclasses: dict[str, str] = field(default_factory=dict)
    source: Path | None = None


def load_graph(path: Path) -> GraphDocument:
    """Read a call graph document from ``path``. O(V + E)."""
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise GraphLoadError(f"Invalid JSON in call graph {path}: {e}") from e
    except OSError as e:
        raise GraphLoadError(f"Cannot read call graph {path}: {e}") from e

    document = parse_graph(data, origin=str(path))
    document.source = path
    logger.info("Loaded %r from %s", document.graph, path)
    return document


def parse_graph(data: Any, origin: str = "<data>") -> GraphDocument:
    """Build a GraphDocument from already-decoded JSON data."""
    if not isinstance(data, dict):
        raise GraphLoadError(f"{origin}: top level must be an object")

    edges = data.get("edges", [])
    if not isinstance(edges, list):
        raise GraphLoadError(f"{origin}: 'edges' must be a list")

    nodes = data.get("nodes", [])
    if not isinstance(nodes, list):
        raise GraphLoadError(f"{origin}: 'nodes' must be a list")

    graph = CallGraph()
    for node in nodes:
        if not isinstance(node, str):
            raise GraphLoadError(f"{origin}: node {node!r} must be a string")
        graph.add_node(node)
    for position, entry in enumerate(edges):
        graph.add_edge(_parse_edge(entry, position, origin))

    root = data.get("root")
    if root is not None and not isinstance(root, str):
        raise GraphLoadError(f"{origin}: 'root' must be a string")

    superclasses = data.get("classes", {})
    if not isinstance(superclasses, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in superclasses.items()
    ):
        raise GraphLoadError(f"{origin}: 'classes' must map class names to superclass names")

    return GraphDocument(graph=graph, root=root, superclasses=dict(superclasses))


def _parse_edge(entry: Any, position: int, origin: str) -> Edge:
    if not isinstance(entry, dict):
        raise GraphLoadError(f"{origin}: edge #{position} must be an object")
    try:
        source = entry["source"]
        target = entry["target"]
    except KeyError as e:
        raise GraphLoadError(f"{origin}: edge #{position} is missing {e.args[0]!r}") from e
    if not isinstance(source, str) or not isinstance(target, str):
        raise GraphLoadError(f"{origin}: edge #{position} endpoints must be strings")

    explicit = entry.get("explicit", True)
    if not isinstance(explicit, bool):
        raise GraphLoadError(f"{origin}: edge #{position} 'explicit' must be a boolean")

    return Edge(
        source=source,
        target=target,
        explicit=explicit,
        call_line=entry.get("line"),
        kind=entry.get("kind"),
    )


def dump_graph(graph: CallGraph, root: str | None = None) -> dict[str, Any]:
    """Inverse of parse_graph for the edges of ``graph``."""
    isolated = [str(n) for n in graph.nodes if not graph.in_degree(n) and not graph.out_degree(n)]
    result: dict[str, Any] = {"edges": [edge.to_dict() for edge in graph]}
    if isolated:
        result["nodes"] = isolated
    if root is not None:
        result["root"] = root
    return result
