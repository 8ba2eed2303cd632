"""
Call graph data structures and algorithms.

This module provides in-memory graph operations for shortest call paths:

Data Structures:
    - CallGraph: Multigraph adjacency lists with O(1) in/out edge lookups
    - IndexMinPQ: Indexed binary heap with decrease-key
    - Path: An entry-to-target sequence of call edges

Algorithms:
    - traversal: BFS forward closure (explicit edges), backward induced subgraph
    - analysis: Entry detection, reachable targets, synthetic roots
    - dijkstra: Unit-weight Dijkstra with optimality checking
    - pathfinding: Path reconstruction from the shortest-path tree

Loading:
    - load_graph(): Read a JSON call graph document
"""

from callpath.core.graph.base import CallGraph
from callpath.core.graph.dijkstra import ShortestPathState, VertexIndex, compute_shortest_paths
from callpath.core.graph.loader import GraphDocument, load_graph, parse_graph
from callpath.core.graph.models import Path
from callpath.core.graph.pathfinding import path_to
from callpath.core.graph.pqueue import IndexMinPQ

__all__ = [
    "CallGraph",
    "GraphDocument",
    "IndexMinPQ",
    "Path",
    "ShortestPathState",
    "VertexIndex",
    "compute_shortest_paths",
    "load_graph",
    "parse_graph",
    "path_to",
]
