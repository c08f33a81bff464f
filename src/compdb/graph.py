# compdb/graph.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, TypedDict

from compdb.buildgraph import BuildGraph, RerootedBuildGraph, load_build_graph
from compdb.collector import CollectStats, collect_entries
from compdb.config import RuntimeConfig, config_from_env
from compdb.model import EntryTable
from compdb.publish import FileSink, default_output_path, render_entries
from compdb.utils import file_sha256
from compdb.validate import validate_compdb_file

try:
    from langgraph.graph import END, StateGraph
except Exception as e:  # pragma: no cover
    raise RuntimeError("LangGraph is required. Install 'langgraph'.") from e


# -----------------------------
# Stages (canonical)
# -----------------------------
STAGE_INIT = "init"
STAGE_LOAD_CONFIG = "load_config"
STAGE_LOAD_GRAPH = "load_graph"
STAGE_COLLECT_ENTRIES = "collect_entries"
STAGE_WRITE_COMPDB = "write_compdb"
STAGE_VALIDATE_COMPDB = "validate_compdb"
STAGE_LINK_COMPDB = "link_compdb"
STAGE_EMIT_RESULT = "emit_result"
STAGE_DONE = "done"
STAGE_DONE_DISABLED = "done_disabled"


class CompdbStageError(RuntimeError):
    def __init__(self, stage: str, inner: Exception):
        super().__init__(str(inner))
        self.stage = stage
        self.inner = inner


class CompdbState(TypedDict, total=False):
    environ: dict[str, str]
    config: RuntimeConfig
    stage: str

    # inputs: either an already-resolved graph or a description to load
    build_graph: BuildGraph
    graph_path: str
    source_root: str

    sink: FileSink

    entries: EntryTable
    stats: CollectStats

    output_path: str
    link_path: Optional[str]
    validated_entries: int

    result: dict[str, Any]


def node_load_config(state: CompdbState) -> CompdbState:
    stage = STAGE_LOAD_CONFIG
    try:
        state["config"] = config_from_env(state.get("environ"))
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def route_after_config(state: CompdbState) -> str:
    return "enabled" if state["config"].enabled else "disabled"


def node_load_graph(state: CompdbState) -> CompdbState:
    stage = STAGE_LOAD_GRAPH
    try:
        cfg = state["config"]
        source_root = state.get("source_root") or cfg.source_root
        injected = state.get("build_graph")
        if injected is not None:
            # Overrides apply to injected graphs too.
            if source_root:
                state["build_graph"] = RerootedBuildGraph(injected, source_root)
        else:
            graph_path = state.get("graph_path")
            if not graph_path:
                raise RuntimeError("No build graph: pass a resolved graph or a graph description path.")
            state["build_graph"] = load_build_graph(graph_path, source_root=source_root)
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def node_collect_entries(state: CompdbState) -> CompdbState:
    stage = STAGE_COLLECT_ENTRIES
    try:
        stats = CollectStats()
        state["entries"] = collect_entries(state["build_graph"], stats)
        state["stats"] = stats
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def node_write_compdb(state: CompdbState) -> CompdbState:
    stage = STAGE_WRITE_COMPDB
    try:
        cfg = state["config"]
        sink = state.get("sink")
        if sink is None:
            sink = FileSink(default_output_path(state["build_graph"].source_root()))

        # Rendered in full before anything touches the destination.
        data = render_entries(state["entries"].values(), debug=cfg.debug)
        out = sink.write_text(data)

        state["sink"] = sink
        state["output_path"] = str(out)
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def node_validate_compdb(state: CompdbState) -> CompdbState:
    stage = STAGE_VALIDATE_COMPDB
    try:
        n = validate_compdb_file(state["output_path"])
        expected = len(state["entries"])
        if n != expected:
            raise RuntimeError(f"{state['output_path']} has {n} entries, expected {expected}")
        state["validated_entries"] = n
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def node_link_compdb(state: CompdbState) -> CompdbState:
    stage = STAGE_LINK_COMPDB
    try:
        cfg = state["config"]
        link_path: Optional[str] = None
        if cfg.link_to:
            link_path = str(state["sink"].link_to(cfg.link_to))
        state["link_path"] = link_path
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def node_emit_result(state: CompdbState) -> CompdbState:
    stage = STAGE_EMIT_RESULT
    try:
        cfg = state["config"]
        if not cfg.enabled:
            state["result"] = {"ok": True, "stage": STAGE_DONE_DISABLED, "enabled": False}
            state["stage"] = stage
            return state

        stats = state["stats"]
        state["result"] = {
            "ok": True,
            "stage": STAGE_DONE,
            "enabled": True,
            "output_path": state["output_path"],
            "link_path": state.get("link_path"),
            "entries": state["validated_entries"],
            "modules_visited": stats.modules_visited,
            "compiled_modules": stats.compiled_modules,
            "duplicates_skipped": stats.duplicates_skipped,
            "sha256": file_sha256(Path(state["output_path"])),
        }
        state["stage"] = stage
        return state
    except Exception as e:
        raise CompdbStageError(stage, e) from e


def build_compdb_graph():
    g = StateGraph(CompdbState)

    g.add_node("load_config", node_load_config)
    g.add_node("load_graph", node_load_graph)
    g.add_node("collect_entries", node_collect_entries)
    g.add_node("write_compdb", node_write_compdb)
    g.add_node("validate_compdb", node_validate_compdb)
    g.add_node("link_compdb", node_link_compdb)
    g.add_node("emit_result", node_emit_result)

    g.set_entry_point("load_config")
    # Disabled runs skip the walk entirely: nothing is loaded or written.
    g.add_conditional_edges(
        "load_config",
        route_after_config,
        {"enabled": "load_graph", "disabled": "emit_result"},
    )
    g.add_edge("load_graph", "collect_entries")
    g.add_edge("collect_entries", "write_compdb")
    g.add_edge("write_compdb", "validate_compdb")
    g.add_edge("validate_compdb", "link_compdb")
    g.add_edge("link_compdb", "emit_result")
    g.add_edge("emit_result", END)

    return g.compile()


def run_compdb_graph(
        *,
        build_graph: BuildGraph | None = None,
        graph_path: str | None = None,
        source_root: str | None = None,
        sink: FileSink | None = None,
        environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Run the compdb pass once.

    The build graph is either injected (build_graph) or loaded from a JSON description
    (graph_path). environ defaults to os.environ and is read once, in load_config.
    source_root (else COMPDB_SOURCE_ROOT) replaces the graph's root for either kind of graph.
    """
    app = build_compdb_graph()
    state: CompdbState = {"stage": STAGE_INIT}
    if environ is not None:
        state["environ"] = dict(environ)
    if build_graph is not None:
        state["build_graph"] = build_graph
    if graph_path:
        state["graph_path"] = graph_path
    if source_root:
        state["source_root"] = source_root
    if sink is not None:
        state["sink"] = sink

    final_state = app.invoke(state)
    return final_state["result"]
