"""Core CallGraph class with adjacency list representation."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from callpath.core.models import Edge, Node


class CallGraph:
    """Directed multigraph of call relationships.

    Uses adjacency lists for O(1) neighbor lookup. Parallel edges between
    the same pair of nodes are kept as given.
    """

    __slots__ = ("_out", "_in", "_edges")

    def __init__(self, edges: Iterable[Edge] = ()) -> None:
        self._out: dict[Node, list[Edge]] = {}
        self._in: dict[Node, list[Edge]] = {}
        self._edges: list[Edge] = []
        for edge in edges:
            self.add_edge(edge)

    def add_node(self, node: Node) -> None:
        """Add a node, possibly without any edges. O(1)."""
        if node not in self._out:
            self._out[node] = []
        if node not in self._in:
            self._in[node] = []

    def add_edge(self, edge: Edge) -> None:
        """Add a call edge. O(1)."""
        self.add_node(edge.source)
        self.add_node(edge.target)
        self._edges.append(edge)
        self._out[edge.source].append(edge)
        self._in[edge.target].append(edge)

    def edges_out_of(self, node: Node) -> list[Edge]:
        """Edges leaving ``node``. O(1)."""
        return self._out.get(node, [])

    def edges_into(self, node: Node) -> list[Edge]:
        """Edges entering ``node``. O(1)."""
        return self._in.get(node, [])

    def out_degree(self, node: Node) -> int:
        """Number of outgoing edges. O(1)."""
        return len(self._out.get(node, []))

    def in_degree(self, node: Node) -> int:
        """Number of incoming edges. O(1)."""
        return len(self._in.get(node, []))

    @property
    def nodes(self) -> list[Node]:
        """All nodes in insertion order."""
        return list(self._out)

    @property
    def edges(self) -> list[Edge]:
        return self._edges

    @property
    def num_nodes(self) -> int:
        return len(self._out)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def __contains__(self, node: object) -> bool:
        return node in self._out

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        return f"CallGraph(nodes={self.num_nodes}, edges={self.num_edges})"
