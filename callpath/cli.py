"""CLI entry point for Callpath."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from callpath.core.config import AnalysisConfig, load_config
from callpath.core.exceptions import CallPathError, NodeNotFoundError
from callpath.core.graph import CallGraph, GraphDocument, load_graph
from callpath.core.graph.analysis import SYNTHETIC_ROOT, find_reachable_targets, with_synthetic_root
from callpath.core.graph.loader import dump_graph
from callpath.core.graph.models import Path as CallPath
from callpath.core.graph.pathfinding import shortest_path
from callpath.core.graph.traversal import backward_induced_subgraph, direct_callees
from callpath.core.models import Edge
from callpath.core.pipeline import AnalysisResult, analyze
from callpath.core.targets import TargetMatcher

app = typer.Typer(
    name="callpath",
    help="Shortest call paths from entry points to sensitive callables.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("callpath")

_state: dict[str, Path | None] = {"config": None}

GraphArg = Annotated[Path, typer.Argument(help="Call graph JSON document")]
RootOpt = Annotated[
    str | None, typer.Option("--root", "-r", help="Synthetic root node (overrides document)")
]
TargetOpt = Annotated[
    list[str] | None, typer.Option("--target", "-t", help="Target signature (repeatable)")
]
JsonOpt = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file (default: auto-detect)")
    ] = None,
) -> None:
    """Configure logging and remember the config file for subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    _state["config"] = config


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


def _get_config(**overrides: object) -> AnalysisConfig:
    config = load_config(Path(".").resolve(), _state["config"])
    return config.with_overrides(**overrides)


def _resolve_root(document: GraphDocument, config: AnalysisConfig) -> tuple[CallGraph, str]:
    """Pick the synthetic root, adding one over uncalled nodes if none is given."""
    root = config.root or document.root
    if root is None:
        logger.warning("No root given; rooting the graph at every node without callers")
        return with_synthetic_root(document.graph), SYNTHETIC_ROOT
    if root not in document.graph:
        raise NodeNotFoundError(f"Root '{root}' is not in the call graph")
    return document.graph, root


def _matcher(document: GraphDocument, config: AnalysisConfig) -> TargetMatcher:
    matcher = TargetMatcher(config.targets, document.superclasses)
    if not matcher:
        raise typer.BadParameter("No targets given; use --target or the config file")
    return matcher


def format_edge(edge: Edge) -> str:
    """Format an edge's call context as an annotation string."""
    annotations = []
    if not edge.explicit:
        annotations.append("ambiguous")
    if edge.kind:
        annotations.append(edge.kind.lower())
    if edge.call_line is not None:
        annotations.append(f"line {edge.call_line}")
    if annotations:
        return f" [yellow]\\[{', '.join(annotations)}][/]"
    return ""


def _name(node: object) -> str:
    """Node text safe for rich markup (signatures contain brackets)."""
    return escape(str(node))


def print_path(path: CallPath) -> None:
    console.print(f"  [bold cyan]{_name(path.entry)}[/] [dim]({path.length} hops)[/]")
    for edge in path.edges:
        console.print(f"    └─ [cyan]{_name(edge.target)}[/]{format_edge(edge)}")


def print_result(result: AnalysisResult) -> None:
    console.print(f"[bold]Root:[/] {_name(result.root)}")
    console.print(f"Entry points: {len(result.entry_points)}")
    console.print(f"Targets: {len(result.targets)}")

    for target in result.targets:
        target_result = result.results[target]
        console.print(f"\n[bold yellow]▶ {_name(target)}[/]")
        if not target_result.paths:
            console.print("  [dim]No explicit path found[/]")
        for path in target_result.paths:
            print_path(path)
        for failure in target_result.failures:
            console.print(f"  [red]Failed:[/] {_name(failure)}")

    console.print(
        f"\n[dim]Paths: {len(result.paths)} | "
        f"Methods on paths: {len(result.methods_on_paths())} | "
        f"Failures: {len(result.failures)}[/]"
    )


def result_to_dict(result: AnalysisResult) -> dict[str, object]:
    return {
        "root": str(result.root),
        "entry_points": [str(n) for n in result.entry_points],
        "targets": [
            {
                "target": str(target),
                "entries": [str(n) for n in r.entries],
                "paths": [p.to_dict() for p in r.paths],
                "unreachable_from": [str(n) for n in r.unreachable],
                "failures": [
                    {"entry": None if f.entry is None else str(f.entry), "error": str(f.error)}
                    for f in r.failures
                ],
            }
            for target, r in result.results.items()
        ],
        "methods_on_paths": sorted(str(n) for n in result.methods_on_paths()),
    }


@app.command()
def paths(
    graph_file: GraphArg,
    root: RootOpt = None,
    target: TargetOpt = None,
    max_visits: Annotated[
        int | None, typer.Option("--max-visits", help="Visit budget per traversal")
    ] = None,
    workers: Annotated[int | None, typer.Option("--workers", "-w", help="Parallel targets")] = None,
    check: Annotated[
        bool | None, typer.Option("--check/--no-check", help="Verify shortest-path trees")
    ] = None,
    output_json: JsonOpt = False,
) -> None:
    """Find the shortest call path from every entry to every reachable target."""
    try:
        config = _get_config(
            root=root,
            targets=target or None,
            max_visits=max_visits,
            workers=workers,
            check_invariants=check,
        )
        document = load_graph(graph_file)
        graph, root_node = _resolve_root(document, config)
        result = analyze(graph, root_node, _matcher(document, config), config)
    except CallPathError as e:
        raise _fail(str(e)) from e

    if output_json:
        print(json.dumps(result_to_dict(result)))
    else:
        print_result(result)


@app.command()
def entries(graph_file: GraphArg, root: RootOpt = None, output_json: JsonOpt = False) -> None:
    """Show the entry points called directly by the root."""
    try:
        config = _get_config(root=root)
        graph, root_node = _resolve_root(load_graph(graph_file), config)
    except CallPathError as e:
        raise _fail(str(e)) from e

    found = sorted(direct_callees(graph, root_node), key=str)
    if output_json:
        print(json.dumps({"root": root_node, "entries": [str(n) for n in found]}))
        return
    if not found:
        console.print(f"No entry points under '[cyan]{_name(root_node)}[/cyan]'")
        return
    for node in found:
        console.print(f"[cyan]{_name(node)}[/cyan]")


@app.command()
def targets(
    graph_file: GraphArg,
    root: RootOpt = None,
    target: TargetOpt = None,
    output_json: JsonOpt = False,
) -> None:
    """Show the target callables reachable from the entry points."""
    try:
        config = _get_config(root=root, targets=target or None)
        document = load_graph(graph_file)
        graph, root_node = _resolve_root(document, config)
        found = find_reachable_targets(
            graph, direct_callees(graph, root_node), _matcher(document, config), config.max_visits
        )
    except CallPathError as e:
        raise _fail(str(e)) from e

    names = sorted(str(n) for n in found)
    if output_json:
        print(json.dumps({"root": root_node, "targets": names}))
        return
    if not names:
        console.print("No reachable targets")
        return
    for name in names:
        console.print(f"[yellow]{_name(name)}[/yellow]")


@app.command()
def subgraph(
    graph_file: GraphArg,
    target: Annotated[str, typer.Argument(help="Node to extract callers of")],
    output_json: JsonOpt = False,
) -> None:
    """Show every call edge lying on some path into a node."""
    try:
        graph = load_graph(graph_file).graph
        if target not in graph:
            raise NodeNotFoundError(f"Node '{target}' is not in the call graph")
        result = backward_induced_subgraph(graph, target, max_visits=_get_config().max_visits)
    except CallPathError as e:
        raise _fail(str(e)) from e

    if output_json:
        print(json.dumps(dump_graph(result)))
        return
    console.print(f"\n[bold]Callers of [cyan]{_name(target)}[/cyan][/]")
    if not result.num_edges:
        console.print("  [dim]No callers found[/]")
    for edge in result:
        console.print(
            f"  [cyan]{_name(edge.source)}[/] → {_name(edge.target)}{format_edge(edge)}"
        )
    console.print(f"\n[dim]Nodes: {result.num_nodes} | Edges: {result.num_edges}[/]")


@app.command()
def shortest(
    graph_file: GraphArg,
    source: Annotated[str, typer.Argument(help="Node to start from")],
    target: Annotated[str, typer.Argument(help="Node to reach")],
    output_json: JsonOpt = False,
) -> None:
    """Show the shortest explicit call path between two nodes."""
    try:
        graph = load_graph(graph_file).graph
        for node in (source, target):
            if node not in graph:
                raise NodeNotFoundError(f"Node '{node}' is not in the call graph")
        path = shortest_path(graph, source, target, max_visits=_get_config().max_visits)
    except CallPathError as e:
        raise _fail(str(e)) from e

    if output_json:
        print(json.dumps({"path": path.to_dict() if path else None}))
        return
    if path is None:
        console.print(
            f"No explicit path from '[cyan]{_name(source)}[/cyan]' to '[cyan]{_name(target)}[/cyan]'"
        )
        return
    print_path(path)


@app.command()
def stats(graph_file: GraphArg, output_json: JsonOpt = False) -> None:
    """Show call graph statistics."""
    try:
        document = load_graph(graph_file)
    except CallPathError as e:
        raise _fail(str(e)) from e

    graph = document.graph
    result = {
        "nodes": graph.num_nodes,
        "edges": graph.num_edges,
        "explicit_edges": sum(1 for e in graph if e.explicit),
        "root": document.root,
    }
    if output_json:
        print(json.dumps(result))
    else:
        console.print(f"Nodes: {result['nodes']}")
        console.print(f"Edges: {result['edges']} ({result['explicit_edges']} explicit)")
        if result["root"]:
            console.print(f"Root: {_name(result['root'])}")


if __name__ == "__main__":
    app()
