"""Data models for graph operations."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from callpath.core.models import Edge, Node


@dataclass
class Path:
    """A shortest call path from an entry to a target."""

    entry: Node
    target: Node
    edges: list[Edge]

    @property
    def nodes(self) -> list[Node]:
        """Callables along the path, entry first."""
        if not self.edges:
            return [self.entry]
        return [self.edges[0].source] + [edge.target for edge in self.edges]

    @property
    def length(self) -> int:
        """Number of hops."""
        return len(self.edges)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "entry": str(self.entry),
            "target": str(self.target),
            "length": self.length,
            "nodes": [str(n) for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def __len__(self) -> int:
        return len(self.edges)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self.edges)

    def __repr__(self) -> str:
        names = " -> ".join(str(n) for n in self.nodes)
        return f"Path({names})"
