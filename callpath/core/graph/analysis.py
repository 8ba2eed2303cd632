"""Graph analysis: entry detection, target discovery, synthetic roots."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from callpath.core.graph.base import CallGraph
from callpath.core.graph.traversal import forward_closure
from callpath.core.models import Edge, Node

logger = logging.getLogger(__name__)

SYNTHETIC_ROOT = "<callpath: void syntheticMain()>"


def find_entries(subgraph: CallGraph, root: Node) -> set[Node]:
    """Nodes called directly by ``root`` within ``subgraph``. O(E).

    The root aggregates every externally triggered entry point and is not
    a real code location, so its direct successors are the path sources.
    """
    return {edge.target for edge in subgraph if edge.source == root and edge.target != root}


def find_reachable_targets(
    graph: CallGraph,
    roots: Iterable[Node],
    is_target: Callable[[Node], bool],
    max_visits: int | None = None,
) -> set[Node]:
    """Nodes explicitly reachable from ``roots`` that satisfy ``is_target``."""
    targets = {node for node in forward_closure(graph, roots, max_visits) if is_target(node)}
    logger.debug("Found %d reachable targets", len(targets))
    return targets


def get_entry_points(graph: CallGraph) -> list[Node]:
    """Nodes with no callers (in-degree = 0). O(V)."""
    return [node for node in graph.nodes if graph.in_degree(node) == 0]


def with_synthetic_root(
    graph: CallGraph,
    entries: Iterable[Node] | None = None,
    root: Node = SYNTHETIC_ROOT,
) -> CallGraph:
    """Copy of ``graph`` with ``root`` calling every entry explicitly.

    Entries default to the nodes without callers. Used when the call graph
    producer did not emit an aggregated root of its own.
    """
    if entries is None:
        entries = get_entry_points(graph)
    rooted = CallGraph(graph.edges)
    for node in graph.nodes:
        rooted.add_node(node)
    for entry in entries:
        rooted.add_edge(Edge(root, entry, explicit=True))
    return rooted
