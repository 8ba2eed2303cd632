"""Visit budget for bounding a single traversal."""

from __future__ import annotations

from callpath.core.exceptions import BudgetExceededError
from callpath.core.models import Node


class VisitBudget:
    """Counts node visits and fails once ``limit`` is exceeded.

    A limit of None never fails. One budget is created per traversal.
    """

    __slots__ = ("limit", "visited", "_label")

    def __init__(self, limit: int | None, label: str = "traversal") -> None:
        if limit is not None and limit < 0:
            raise ValueError(f"Visit limit must be non-negative, got {limit}")
        self.limit = limit
        self.visited = 0
        self._label = label

    def charge(self, node: Node = None) -> None:
        """Record a visit to ``node``. Raises BudgetExceededError past the limit."""
        self.visited += 1
        if self.limit is not None and self.visited > self.limit:
            where = f" at {node}" if node is not None else ""
            raise BudgetExceededError(
                f"{self._label} exceeded visit budget of {self.limit} nodes{where}",
                self.limit,
                node=node,
            )

    def __repr__(self) -> str:
        return f"VisitBudget(limit={self.limit}, visited={self.visited})"
