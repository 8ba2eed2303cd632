"""
Core module: data models, exceptions, configuration and the analysis pipeline.

Models (models.py):
    - Edge: A call relationship, explicit or ambiguous
    - Node: Any hashable callable identifier

Exceptions (exceptions.py):
    - CallPathError: Base exception for all callpath errors
    - QueueError and subclasses: Indexed priority queue contract violations
    - InconsistentStateError: Shortest-path tree failed its optimality check
    - BudgetExceededError: Traversal exceeded its visit budget
    - GraphLoadError / ConfigError: Bad input documents

Configuration (config.py):
    - AnalysisConfig, loaded from callpath.json or .callpath/config.json
"""

from callpath.core.config import AnalysisConfig, load_config
from callpath.core.exceptions import (
    BudgetExceededError,
    CallPathError,
    ConfigError,
    DuplicateIndexError,
    GraphLoadError,
    InconsistentStateError,
    IndexNotPresentError,
    KeyNotDecreasingError,
    NodeNotFoundError,
    QueueEmptyError,
    QueueError,
)
from callpath.core.models import Edge, Node

__all__ = [
    # Models
    "Edge",
    "Node",
    # Config
    "AnalysisConfig",
    "load_config",
    # Exceptions
    "CallPathError",
    "QueueError",
    "DuplicateIndexError",
    "IndexNotPresentError",
    "KeyNotDecreasingError",
    "QueueEmptyError",
    "InconsistentStateError",
    "BudgetExceededError",
    "NodeNotFoundError",
    "GraphLoadError",
    "ConfigError",
]
