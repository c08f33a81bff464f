# compdb/main.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


def run(
        graph_path: Optional[str] = None,
        *,
        source_root: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Core entrypoint used by compdb.cli.

    compdb.graph owns the full workflow
    (config → load graph → collect → write → validate → link → emit result).
    """
    from compdb.graph import run_compdb_graph

    # Let CompdbStageError bubble up so the CLI can render stage-aware JSON.
    return run_compdb_graph(graph_path=graph_path, source_root=source_root, environ=environ)
