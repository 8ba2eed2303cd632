"""End-to-end shortest call path analysis.

entry points -> reachable targets -> per target: backward subgraph ->
entries -> per entry: Dijkstra + path reconstruction.

Each (entry, target) computation owns its own vertex index, state and
queue, and only reads the call graph, so targets can be processed on a
thread pool without locking. A failure in one computation is recorded
and never affects the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from callpath.core.config import AnalysisConfig
from callpath.core.exceptions import BudgetExceededError, InconsistentStateError, QueueError
from callpath.core.graph.analysis import find_entries, find_reachable_targets
from callpath.core.graph.base import CallGraph
from callpath.core.graph.dijkstra import compute_shortest_paths
from callpath.core.graph.models import Path
from callpath.core.graph.pathfinding import path_to
from callpath.core.graph.traversal import backward_induced_subgraph, direct_callees
from callpath.core.models import Node

logger = logging.getLogger(__name__)

# Errors that abort a single computation but not the whole analysis.
RECOVERABLE_ERRORS = (BudgetExceededError, InconsistentStateError, QueueError)


@dataclass
class Failure:
    """A computation that was aborted."""

    target: Node
    entry: Node | None
    error: Exception

    def __str__(self) -> str:
        where = f"{self.entry} -> {self.target}" if self.entry is not None else str(self.target)
        return f"{where}: {self.error}"


@dataclass
class TargetResult:
    """Everything found for one target."""

    target: Node
    entries: list[Node] = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)
    unreachable: list[Node] = field(default_factory=list)
    failures: list[Failure] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Outcome of analyze()."""

    root: Node
    entry_points: list[Node] = field(default_factory=list)
    targets: list[Node] = field(default_factory=list)
    results: dict[Node, TargetResult] = field(default_factory=dict)

    @property
    def paths(self) -> list[Path]:
        return [path for r in self.results.values() for path in r.paths]

    @property
    def failures(self) -> list[Failure]:
        return [failure for r in self.results.values() for failure in r.failures]

    def paths_to(self, target: Node) -> list[Path]:
        result = self.results.get(target)
        return list(result.paths) if result else []

    def methods_on_paths(self) -> set[Node]:
        """Every callable lying on some found path."""
        return {node for path in self.paths for node in path.nodes}


def _sorted(nodes: set[Node]) -> list[Node]:
    return sorted(nodes, key=str)


def paths_for_target(
    graph: CallGraph,
    root: Node,
    target: Node,
    max_visits: int | None = None,
    check: bool = True,
) -> TargetResult:
    """Shortest paths from every entry of ``target``'s backward subgraph."""
    result = TargetResult(target=target)
    try:
        subgraph = backward_induced_subgraph(graph, target, max_visits=max_visits)
    except BudgetExceededError as e:
        logger.warning("Skipping target %s: %s", target, e)
        result.failures.append(Failure(target=target, entry=None, error=e))
        return result

    result.entries = _sorted(find_entries(subgraph, root))
    for entry in result.entries:
        try:
            state = compute_shortest_paths(subgraph, entry, max_visits=max_visits, check=check)
        except RECOVERABLE_ERRORS as e:
            logger.warning("Shortest path %s -> %s aborted: %s", entry, target, e)
            result.failures.append(Failure(target=target, entry=entry, error=e))
            continue

        edges = path_to(state, target)
        if edges is None:
            logger.debug("No explicit path %s -> %s", entry, target)
            result.unreachable.append(entry)
        else:
            result.paths.append(Path(entry=entry, target=target, edges=edges))

    return result


def analyze(
    graph: CallGraph,
    root: Node,
    is_target: Callable[[Node], bool],
    config: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Find the shortest call paths from ``root``'s entries to every target."""
    config = config or AnalysisConfig()
    result = AnalysisResult(root=root)

    result.entry_points = _sorted(direct_callees(graph, root))
    logger.info("Found %d entry points under %s", len(result.entry_points), root)

    result.targets = _sorted(
        find_reachable_targets(graph, result.entry_points, is_target, config.max_visits)
    )
    logger.info("Found %d reachable targets", len(result.targets))

    def run(target: Node) -> TargetResult:
        return paths_for_target(
            graph, root, target, max_visits=config.max_visits, check=config.check_invariants
        )

    if config.workers > 1 and len(result.targets) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            target_results = list(executor.map(run, result.targets))
    else:
        target_results = [run(target) for target in result.targets]

    for target_result in target_results:
        result.results[target_result.target] = target_result

    logger.info("Found %d paths (%d failures)", len(result.paths), len(result.failures))
    return result
