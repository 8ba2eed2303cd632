"""Data models for Callpath."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

# Opaque identifier of a callable unit; in practice a method signature string.
Node = Hashable


@dataclass(frozen=True)
class Edge:
    """A call relationship between two callables.

    ``explicit`` is False for calls whose target cannot be statically
    confirmed (reflection, ambiguous dispatch, framework callbacks).
    """

    source: Node
    target: Node
    explicit: bool = True
    # Context fields carried through from the call graph producer
    call_line: int | None = None
    kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "source": str(self.source),
            "target": str(self.target),
            "explicit": self.explicit,
            "line": self.call_line,
            "kind": self.kind,
        }

    def __str__(self) -> str:
        arrow = "->" if self.explicit else "~>"
        return f"{self.source} {arrow} {self.target}"
