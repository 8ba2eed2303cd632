"""Single-source shortest call paths with Dijkstra's algorithm.

Every explicit edge weighs one hop, so the distances equal BFS levels.
Dijkstra over an indexed heap keeps the engine open to non-uniform
weights (call-site ambiguity, risk scores) behind the same interface.
Non-explicit edges are never relaxed: an unconfirmed call cannot be part
of a claimed shortest path.

Runs in O(E log V) over the subgraph. The resulting state answers
distance and predecessor queries in O(1).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator

from callpath.core.exceptions import InconsistentStateError, NodeNotFoundError
from callpath.core.graph.base import CallGraph
from callpath.core.graph.budget import VisitBudget
from callpath.core.graph.pqueue import IndexMinPQ
from callpath.core.models import Edge, Node

logger = logging.getLogger(__name__)

INFINITY = math.inf

_EDGE_WEIGHT = 1


class VertexIndex:
    """Bijection between nodes and dense integers ``[0, V)``.

    Numbers are handed out in insertion order; only uniqueness matters.
    """

    __slots__ = ("_index", "_nodes")

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._index: dict[Node, int] = {}
        self._nodes: list[Node] = []
        for node in nodes:
            self.add(node)

    @classmethod
    def from_graph(cls, graph: CallGraph, *extra: Node) -> VertexIndex:
        """Index every node of ``graph`` plus any ``extra`` nodes."""
        index = cls(graph.nodes)
        for node in extra:
            index.add(node)
        return index

    def add(self, node: Node) -> int:
        """Index of ``node``, assigning the next free one if new."""
        existing = self._index.get(node)
        if existing is not None:
            return existing
        position = len(self._nodes)
        self._index[node] = position
        self._nodes.append(node)
        return position

    def index_of(self, node: Node) -> int:
        try:
            return self._index[node]
        except KeyError:
            raise NodeNotFoundError(f"Node {node!r} is not indexed") from None

    def node_at(self, index: int) -> Node:
        return self._nodes[index]

    def __contains__(self, node: object) -> bool:
        return node in self._index

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)


class ShortestPathState:
    """Distances and predecessor edges from one source.

    Predecessor edges form a tree rooted at the source covering every
    node with a finite distance.
    """

    __slots__ = ("source", "vertices", "_dist", "_edge_to")

    def __init__(self, source: Node, vertices: VertexIndex) -> None:
        self.source = source
        self.vertices = vertices
        self._dist: list[float] = [INFINITY] * len(vertices)
        self._edge_to: list[Edge | None] = [None] * len(vertices)
        self._dist[vertices.index_of(source)] = 0

    def distance_to(self, node: Node) -> float:
        """Hop count from the source, or INFINITY when unreachable."""
        if node not in self.vertices:
            return INFINITY
        return self._dist[self.vertices.index_of(node)]

    def has_path_to(self, node: Node) -> bool:
        return self.distance_to(node) < INFINITY

    def predecessor(self, node: Node) -> Edge | None:
        """Last edge on the shortest path to ``node``; None for the source."""
        if node not in self.vertices:
            return None
        return self._edge_to[self.vertices.index_of(node)]

    def reachable(self) -> list[Node]:
        """Nodes with a finite distance, in index order."""
        return [node for i, node in enumerate(self.vertices) if self._dist[i] < INFINITY]

    def __repr__(self) -> str:
        return (
            f"ShortestPathState(source={self.source!r}, "
            f"vertices={len(self.vertices)}, reachable={len(self.reachable())})"
        )


def compute_shortest_paths(
    subgraph: CallGraph,
    source: Node,
    max_visits: int | None = None,
    check: bool = True,
) -> ShortestPathState:
    """Shortest explicit-edge paths from ``source`` to every node of ``subgraph``.

    With ``check`` the optimality conditions are verified afterwards and
    any violation raises InconsistentStateError instead of returning a
    possibly wrong tree.
    """
    vertices = VertexIndex.from_graph(subgraph, source)
    state = ShortestPathState(source, vertices)
    dist = state._dist
    edge_to = state._edge_to
    budget = VisitBudget(max_visits, "shortest-path search")

    pq = IndexMinPQ(len(vertices))
    source_index = vertices.index_of(source)
    pq.insert(source_index, dist[source_index])

    while not pq.is_empty():
        v = pq.delete_min()
        node = vertices.node_at(v)
        budget.charge(node)
        for edge in subgraph.edges_out_of(node):
            if not edge.explicit:
                continue
            w = vertices.index_of(edge.target)
            candidate = dist[v] + _EDGE_WEIGHT
            if candidate < dist[w]:
                dist[w] = candidate
                edge_to[w] = edge
                if pq.contains(w):
                    pq.decrease_key(w, candidate)
                else:
                    pq.insert(w, candidate)

    logger.debug("Shortest paths from %s: %d vertices visited", source, budget.visited)
    if check:
        check_optimality(subgraph, state)
    return state


def check_optimality(subgraph: CallGraph, state: ShortestPathState) -> None:
    """Verify the shortest-path tree against ``subgraph``.

    Conditions: the source has distance 0 and no predecessor; a node has a
    predecessor exactly when its distance is finite; no explicit edge can
    be relaxed further; every tree edge is tight.
    """
    source = state.source
    if state.distance_to(source) != 0 or state.predecessor(source) is not None:
        raise InconsistentStateError(
            f"Source {source!r} must have distance 0 and no predecessor", node=source
        )

    for node in state.vertices:
        if node == source:
            continue
        finite = state.distance_to(node) < INFINITY
        has_edge = state.predecessor(node) is not None
        if finite != has_edge:
            raise InconsistentStateError(
                f"Distance and predecessor of {node!r} disagree", node=node
            )

    for edge in subgraph:
        if not edge.explicit:
            continue
        if state.distance_to(edge.source) + _EDGE_WEIGHT < state.distance_to(edge.target):
            raise InconsistentStateError(f"Edge {edge} not relaxed", node=edge.target, edge=edge)

    for node in state.vertices:
        edge = state.predecessor(node)
        if edge is None:
            continue
        if edge.target != node:
            raise InconsistentStateError(
                f"Predecessor edge {edge} does not end at {node!r}", node=node, edge=edge
            )
        if state.distance_to(edge.source) + _EDGE_WEIGHT != state.distance_to(node):
            raise InconsistentStateError(
                f"Edge {edge} on shortest path not tight", node=node, edge=edge
            )
