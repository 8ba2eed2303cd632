"""Breadth-first traversals that carve subgraphs out of a call graph.

Forward traversal follows explicit edges only: an ambiguous call is not
proof that its target is reachable. Backward traversal follows every
edge so that no potential path into the target is lost; the explicit
flag is consulted later, during shortest-path relaxation.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable

from callpath.core.graph.base import CallGraph
from callpath.core.graph.budget import VisitBudget
from callpath.core.models import Node

logger = logging.getLogger(__name__)


def direct_callees(graph: CallGraph, node: Node) -> set[Node]:
    """Targets of the explicit edges out of ``node``. O(out-degree)."""
    return {edge.target for edge in graph.edges_out_of(node) if edge.explicit}


def forward_closure(
    graph: CallGraph,
    roots: Iterable[Node],
    max_visits: int | None = None,
) -> set[Node]:
    """Every node reachable from ``roots`` via explicit edges, roots included.

    BFS. O(V + E) in the reachable part of the graph.
    """
    budget = VisitBudget(max_visits, "forward closure")
    visited: set[Node] = set()
    queue: deque[Node] = deque()
    for root in roots:
        if root not in visited:
            visited.add(root)
            queue.append(root)

    while queue:
        current = queue.popleft()
        budget.charge(current)
        for edge in graph.edges_out_of(current):
            if edge.explicit and edge.target not in visited:
                visited.add(edge.target)
                queue.append(edge.target)

    logger.debug("Forward closure reached %d nodes", len(visited))
    return visited


def backward_induced_subgraph(
    graph: CallGraph,
    target: Node,
    exclude: Callable[[Node], bool] | None = None,
    max_visits: int | None = None,
) -> CallGraph:
    """Subgraph of every edge lying on some walk into ``target``.

    BFS over incoming edges of all kinds. Edges whose source satisfies
    ``exclude`` are neither added nor followed. The target is always a
    node of the result, even when nothing calls it.
    """
    budget = VisitBudget(max_visits, "backward subgraph")
    subgraph = CallGraph()
    subgraph.add_node(target)
    visited: set[Node] = {target}
    queue: deque[Node] = deque([target])

    while queue:
        current = queue.popleft()
        budget.charge(current)
        for edge in graph.edges_into(current):
            if exclude is not None and exclude(edge.source):
                continue
            subgraph.add_edge(edge)
            if edge.source not in visited:
                visited.add(edge.source)
                queue.append(edge.source)

    logger.debug("Backward subgraph of %s: %r", target, subgraph)
    return subgraph
