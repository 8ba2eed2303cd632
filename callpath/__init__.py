"""
Callpath: shortest call paths from entry points to sensitive callables.

Callpath consumes a call graph produced by an external analysis toolkit
and answers one question: for every target callable reachable from the
externally triggered entry points, what is the shortest explicit call
chain that gets there?

Usage:
    from callpath.core.graph import load_graph
    from callpath.core.pipeline import analyze
    from callpath.core.targets import signature_predicate

    document = load_graph(Path("callgraph.json"))
    result = analyze(document.graph, document.root, signature_predicate(["..."]))
"""

__version__ = "0.1.0"
