# compdb/collector.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from compdb.arguments import get_arguments
from compdb.buildgraph import BuildGraph, Module
from compdb.model import CompilationEntry, EntryTable

logger = logging.getLogger(__name__)


@dataclass
class CollectStats:
    modules_visited: int = 0
    compiled_modules: int = 0
    duplicates_skipped: int = 0


def _add_module_entries(
        module: Module,
        graph: BuildGraph,
        root_dir: str,
        table: EntryTable,
        stats: CollectStats,
) -> None:
    compiled = module.compiled
    if compiled is None or not compiled.srcs:
        return

    stats.compiled_modules += 1
    for src in compiled.srcs:
        if not src:
            logger.debug("Skipping empty source path in module %s", module.name)
            continue
        # First writer wins: later modules compiling the same file (other variants/arches) are ignored.
        if src in table:
            stats.duplicates_skipped += 1
            logger.debug("Skipping %s from module %s: entry already present", src, module.name)
            continue
        table[src] = CompilationEntry(
            directory=root_dir,
            arguments=get_arguments(src, graph, module),
            file=src,
            output=compiled.outputs.get(src),
        )


def collect_entries(graph: BuildGraph, stats: CollectStats | None = None) -> EntryTable:
    """
    Walk every module of the graph and build one entry per unique source path.
    Pass a CollectStats to get the walk counters back.
    """
    stats = stats if stats is not None else CollectStats()
    root_dir = graph.source_root()

    table: EntryTable = {}
    for module in graph.visit_all_modules():
        stats.modules_visited += 1
        _add_module_entries(module, graph, root_dir, table, stats)

    logger.info(
        "compdb: visited %d modules (%d compiled), %d entries, %d duplicate sources skipped",
        stats.modules_visited,
        stats.compiled_modules,
        len(table),
        stats.duplicates_skipped,
    )
    return table
