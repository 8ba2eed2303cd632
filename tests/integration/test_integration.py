"""Integration tests for loading, the analysis pipeline and the front ends."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from callpath.cli import app
from callpath.core.config import AnalysisConfig, load_config
from callpath.core.exceptions import DuplicateIndexError, InconsistentStateError
from callpath.core.graph import load_graph, parse_graph
from callpath.core.graph.analysis import SYNTHETIC_ROOT, with_synthetic_root
from callpath.core.graph.loader import dump_graph
from callpath.core.models import Edge
from callpath.core.pipeline import analyze, paths_for_target
from callpath.core.targets import signature_predicate

ROOT = "<dummyMainClass: void dummyMainMethod(java.lang.String[])>"
ON_CREATE = "<com.example.Main: void onCreate(android.os.Bundle)>"
ON_CLICK = "<com.example.Main: void onClick(android.view.View)>"
ON_RESUME = "<com.example.Other: void onResume()>"
HELPER = "<com.example.Util: void notifyAll(java.lang.String)>"
RELAY = "<com.example.Util: void relay(java.lang.String)>"
LOG = "<android.util.Log: int d(java.lang.String,java.lang.String)>"
SEND_SUB = "void sendTextMessage(java.lang.String,java.lang.String)"
SEND = f"<android.telephony.SmsManager: {SEND_SUB}>"
MY_SEND = f"<com.example.MySms: {SEND_SUB}>"
REFLECTIVE = "<com.example.Util: void viaReflection()>"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def document_data() -> dict:
    """An app where two lifecycle callbacks can reach sendTextMessage.

    onCreate -> notifyAll -> relay -> send          (3 hops)
    onClick  -> send                               (1 hop)
    onClick  -> MySms.send (subclass of SmsManager)
    onResume ~> viaReflection -> send              (ambiguous first hop)
    """
    return {
        "root": ROOT,
        "edges": [
            {"source": ROOT, "target": ON_CREATE},
            {"source": ROOT, "target": ON_CLICK},
            {"source": ROOT, "target": ON_RESUME},
            {"source": ON_CREATE, "target": HELPER, "line": 12},
            {"source": HELPER, "target": RELAY, "line": 30},
            {"source": RELAY, "target": SEND, "line": 41, "kind": "VIRTUAL"},
            {"source": ON_CREATE, "target": LOG, "line": 13},
            {"source": ON_CLICK, "target": SEND, "line": 55},
            {"source": ON_CLICK, "target": MY_SEND, "line": 56},
            {"source": ON_RESUME, "target": REFLECTIVE, "explicit": False},
            {"source": REFLECTIVE, "target": SEND},
        ],
        "classes": {"com.example.MySms": "android.telephony.SmsManager"},
    }


@pytest.fixture
def graph_file(temp_dir: Path, document_data: dict) -> Path:
    path = temp_dir / "callgraph.json"
    path.write_text(json.dumps(document_data))
    return path


class TestLoader:
    """Tests for the call graph document loader."""

    def test_load_graph(self, graph_file: Path) -> None:
        document = load_graph(graph_file)

        assert document.root == ROOT
        assert document.source == graph_file
        assert document.graph.num_edges == 11
        assert document.superclasses == {"com.example.MySms": "android.telephony.SmsManager"}

    def test_edge_fields(self, graph_file: Path) -> None:
        graph = load_graph(graph_file).graph
        (edge,) = graph.edges_into(RELAY)
        assert edge == Edge(HELPER, RELAY, explicit=True, call_line=30)

        (ambiguous,) = graph.edges_into(REFLECTIVE)
        assert ambiguous.explicit is False

    def test_isolated_nodes(self) -> None:
        document = parse_graph({"nodes": ["lonely"], "edges": []})
        assert "lonely" in document.graph
        assert document.root is None

    def test_dump_graph_roundtrip(self, document_data: dict) -> None:
        graph = parse_graph(document_data).graph
        graph.add_node("lonely")
        dumped = dump_graph(graph, root=ROOT)

        reloaded = parse_graph(dumped)
        assert reloaded.root == ROOT
        assert reloaded.graph.num_edges == graph.num_edges
        assert set(reloaded.graph.nodes) == set(graph.nodes)


class TestPipeline:
    """Tests for the end-to-end analysis."""

    def test_analyze(self, graph_file: Path) -> None:
        document = load_graph(graph_file)
        matcher = signature_predicate([SEND], document.superclasses)
        result = analyze(document.graph, ROOT, matcher)

        assert result.entry_points == sorted([ON_CREATE, ON_CLICK, ON_RESUME])
        assert result.targets == sorted([SEND, MY_SEND])

        send = result.results[SEND]
        assert send.entries == sorted([ON_CREATE, ON_CLICK, ON_RESUME])
        by_entry = {path.entry: path for path in send.paths}
        assert by_entry[ON_CLICK].nodes == [ON_CLICK, SEND]
        assert by_entry[ON_CREATE].nodes == [ON_CREATE, HELPER, RELAY, SEND]
        assert by_entry[ON_CREATE].length == 3
        # Only reachable through the reflective call
        assert send.unreachable == [ON_RESUME]

        assert [p.nodes for p in result.paths_to(MY_SEND)] == [[ON_CLICK, MY_SEND]]
        assert result.failures == []

    def test_methods_on_paths(self, graph_file: Path) -> None:
        document = load_graph(graph_file)
        result = analyze(document.graph, ROOT, signature_predicate([SEND]))
        assert result.methods_on_paths() == {ON_CREATE, HELPER, RELAY, ON_CLICK, SEND}
        assert LOG not in result.methods_on_paths()

    def test_no_targets(self, graph_file: Path) -> None:
        document = load_graph(graph_file)
        result = analyze(document.graph, ROOT, lambda node: False)
        assert result.targets == []
        assert result.paths == []

    def test_workers_give_same_result(self, graph_file: Path) -> None:
        document = load_graph(graph_file)
        matcher = signature_predicate([SEND], document.superclasses)

        serial = analyze(document.graph, ROOT, matcher)
        parallel = analyze(document.graph, ROOT, matcher, AnalysisConfig(workers=4))

        assert list(parallel.results) == list(serial.results)
        assert [p.nodes for p in parallel.paths] == [p.nodes for p in serial.paths]

    def test_budget_failure_is_recorded(self, graph_file: Path) -> None:
        document = load_graph(graph_file)
        result = paths_for_target(document.graph, ROOT, SEND, max_visits=3)

        assert result.paths == []
        assert len(result.failures) == 1
        assert result.failures[0].entry is None

    @pytest.mark.parametrize(
        "error",
        [
            InconsistentStateError("broken", node=ON_CREATE),
            DuplicateIndexError("index 0 is already in the queue", 0),
        ],
    )
    @pytest.mark.parametrize("workers", [1, 2])
    def test_failed_computation_is_isolated(
        self,
        graph_file: Path,
        monkeypatch: pytest.MonkeyPatch,
        error: Exception,
        workers: int,
    ) -> None:
        import callpath.core.pipeline as pipeline

        real = pipeline.compute_shortest_paths

        def flaky(subgraph, source, max_visits=None, check=True):  # type: ignore[no-untyped-def]
            if source == ON_CREATE:
                raise error
            return real(subgraph, source, max_visits=max_visits, check=check)

        monkeypatch.setattr(pipeline, "compute_shortest_paths", flaky)
        document = load_graph(graph_file)
        matcher = signature_predicate([SEND], document.superclasses)
        result = analyze(document.graph, ROOT, matcher, AnalysisConfig(workers=workers))

        send = result.results[SEND]
        assert [(f.entry, f.error) for f in send.failures] == [(ON_CREATE, error)]
        assert [p.entry for p in send.paths] == [ON_CLICK]
        assert [p.nodes for p in result.paths_to(MY_SEND)] == [[ON_CLICK, MY_SEND]]

    def test_synthetic_root(self) -> None:
        graph = with_synthetic_root(
            parse_graph({"edges": [{"source": "main", "target": "run"}]}).graph
        )
        result = analyze(graph, SYNTHETIC_ROOT, lambda node: node == "run")
        assert [p.nodes for p in result.paths] == [["main", "run"]]


class TestConfigFile:
    """Tests for workspace configuration files."""

    def test_load_from_workspace(self, temp_dir: Path) -> None:
        (temp_dir / "callpath.json").write_text(
            json.dumps({"targets": [SEND], "workers": 2, "max_visits": 100})
        )
        config = load_config(temp_dir)
        assert config.targets == [SEND]
        assert config.workers == 2
        assert config.max_visits == 100
        assert config.check_invariants is True

    def test_hidden_config_dir(self, temp_dir: Path) -> None:
        (temp_dir / ".callpath").mkdir()
        (temp_dir / ".callpath" / "config.json").write_text(json.dumps({"root": ROOT}))
        assert load_config(temp_dir).root == ROOT

    def test_overrides(self) -> None:
        config = AnalysisConfig(targets=["a"], workers=3)
        updated = config.with_overrides(targets=["b"], workers=None, check_invariants=False)
        assert updated.targets == ["b"]
        assert updated.workers == 3
        assert updated.check_invariants is False


class TestCli:
    """Tests for the command line interface."""

    @pytest.fixture
    def runner(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
        monkeypatch.chdir(temp_dir)
        return CliRunner()

    def test_paths_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["paths", str(graph_file), "--target", SEND, "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["root"] == ROOT
        (target,) = [t for t in data["targets"] if t["target"] == SEND]
        lengths = sorted(p["length"] for p in target["paths"])
        assert lengths == [1, 3]
        assert target["unreachable_from"] == [ON_RESUME]

    def test_paths_targets_from_config(self, runner: CliRunner, graph_file: Path) -> None:
        Path("callpath.json").write_text(json.dumps({"targets": [SEND]}))
        result = runner.invoke(app, ["paths", str(graph_file), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["targets"][0]["target"] == SEND

    def test_paths_text(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["paths", str(graph_file), "--target", SEND])
        assert result.exit_code == 0, result.output
        assert "hops" in result.output
        assert "Paths: 3" in result.output

    def test_paths_without_targets(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["paths", str(graph_file)])
        assert result.exit_code != 0

    def test_unknown_root(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["entries", str(graph_file), "--root", "nope"])
        assert result.exit_code == 1
        assert "not in the call graph" in result.output

    def test_entries_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["entries", str(graph_file), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["entries"] == sorted([ON_CREATE, ON_CLICK, ON_RESUME])

    def test_targets_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["targets", str(graph_file), "-t", SEND, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["targets"] == sorted([SEND, MY_SEND])

    def test_subgraph_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["subgraph", str(graph_file), RELAY, "--json"])
        assert result.exit_code == 0, result.output
        edges = {(e["source"], e["target"]) for e in json.loads(result.output)["edges"]}
        assert edges == {(HELPER, RELAY), (ON_CREATE, HELPER), (ROOT, ON_CREATE)}

    def test_shortest_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["shortest", str(graph_file), ON_CREATE, SEND, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["path"]["nodes"] == [ON_CREATE, HELPER, RELAY, SEND]

    def test_shortest_no_path(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["shortest", str(graph_file), ON_RESUME, SEND, "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"path": None}

    def test_stats_json(self, runner: CliRunner, graph_file: Path) -> None:
        result = runner.invoke(app, ["stats", str(graph_file), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "nodes": 10,
            "edges": 11,
            "explicit_edges": 10,
            "root": ROOT,
        }

    def test_missing_graph_file(self, runner: CliRunner, temp_dir: Path) -> None:
        result = runner.invoke(app, ["stats", str(temp_dir / "missing.json")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output


class TestMcpServer:
    """Tests for the MCP tool handlers."""

    def call(self, name: str, arguments: dict) -> dict:
        from callpath.mcp.server import call_tool

        (content,) = asyncio.run(call_tool(name, arguments))
        return json.loads(content.text)

    def test_list_tools(self) -> None:
        from callpath.mcp.server import list_tools

        names = {tool.name for tool in asyncio.run(list_tools())}
        assert names == {
            "callpath_paths",
            "callpath_entries",
            "callpath_targets",
            "callpath_shortest",
            "callpath_stats",
        }

    def test_paths(self, graph_file: Path, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(temp_dir)
        data = self.call("callpath_paths", {"graph": str(graph_file), "targets": [SEND]})
        assert sorted(data["methods_on_paths"]) == sorted(
            [ON_CREATE, HELPER, RELAY, ON_CLICK, SEND, MY_SEND]
        )

    def test_entries(self, graph_file: Path, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(temp_dir)
        data = self.call("callpath_entries", {"graph": str(graph_file)})
        assert data["entries"] == sorted([ON_CREATE, ON_CLICK, ON_RESUME])

    def test_stats(self, graph_file: Path) -> None:
        data = self.call("callpath_stats", {"graph": str(graph_file)})
        assert data["edges"] == 11

    def test_errors_become_json(self, temp_dir: Path) -> None:
        data = self.call("callpath_stats", {"graph": str(temp_dir / "missing.json")})
        assert "Cannot read" in data["error"]

    def test_unknown_tool(self) -> None:
        assert self.call("nope", {}) == {"error": "Unknown tool: nope"}

    def test_import_leaves_logging_alone(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import importlib
        import logging

        import callpath.mcp.server as server_module

        calls: list[dict] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        importlib.reload(server_module)
        assert calls == []

    def test_serve_logs_to_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import contextlib
        import logging
        import sys

        import callpath.mcp.server as server_module

        calls: list[dict] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        @contextlib.asynccontextmanager
        async def fake_stdio():  # type: ignore[no-untyped-def]
            yield None, None

        async def fake_run(*args: object) -> None:
            return None

        monkeypatch.setattr(server_module, "stdio_server", fake_stdio)
        monkeypatch.setattr(server_module.server, "run", fake_run)
        asyncio.run(server_module.serve())

        (kwargs,) = calls
        assert kwargs["stream"] is sys.stderr
