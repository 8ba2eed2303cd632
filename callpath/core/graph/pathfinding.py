"""Path reconstruction from a shortest-path tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

from callpath.core.graph.dijkstra import compute_shortest_paths
from callpath.core.graph.models import Path

if TYPE_CHECKING:
    from callpath.core.graph.base import CallGraph
    from callpath.core.graph.dijkstra import ShortestPathState
    from callpath.core.models import Edge, Node


def path_to(state: ShortestPathState, target: Node) -> list[Edge] | None:
    """Edges of the shortest path from the source to ``target``.

    Returns None when ``target`` is unreachable, and an empty list when
    ``target`` is the source. O(path length).
    """
    if not state.has_path_to(target):
        return None

    edges: list[Edge] = []
    edge = state.predecessor(target)
    while edge is not None:
        edges.append(edge)
        edge = state.predecessor(edge.source)
    edges.reverse()
    return edges


def node_path(edges: list[Edge]) -> list[Node]:
    """Callables along an edge path, first source to last target."""
    if not edges:
        return []
    return [edges[0].source] + [edge.target for edge in edges]


def shortest_path(
    graph: CallGraph,
    source: Node,
    target: Node,
    max_visits: int | None = None,
) -> Path | None:
    """Shortest explicit call path between two nodes of ``graph``."""
    state = compute_shortest_paths(graph, source, max_visits=max_visits)
    edges = path_to(state, target)
    if edges is None:
        return None
    return Path(entry=source, target=target, edges=edges)
