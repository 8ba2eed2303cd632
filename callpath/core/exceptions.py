"""Callpath custom exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from callpath.core.models import Edge


class CallPathError(Exception):
    """Base exception for Callpath errors."""


class QueueError(CallPathError):
    """Indexed priority queue used outside its contract."""

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index


class DuplicateIndexError(QueueError):
    """Index is already in the queue."""


class IndexNotPresentError(QueueError):
    """Index is not in the queue."""


class KeyNotDecreasingError(QueueError):
    """decrease_key called with a key that does not decrease."""


class QueueEmptyError(QueueError):
    """delete_min on an empty queue."""


class InconsistentStateError(CallPathError):
    """Shortest-path optimality conditions do not hold."""

    def __init__(self, message: str, node: Any = None, edge: Edge | None = None) -> None:
        super().__init__(message)
        self.node = node
        self.edge = edge


class BudgetExceededError(CallPathError):
    """Traversal visited more nodes than the caller allowed."""

    def __init__(self, message: str, limit: int, node: Any = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.node = node


class NodeNotFoundError(CallPathError):
    """Node not found in the call graph."""


class GraphLoadError(CallPathError):
    """Error reading a call graph document."""


class ConfigError(CallPathError):
    """Invalid analysis configuration."""
