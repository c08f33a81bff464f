# compdb/arguments.py
from __future__ import annotations

import logging
from pathlib import PurePath

from compdb.buildgraph import BuildGraph, Module
from compdb.expand import expand_all_vars
from compdb.model import FlagSet, SourceKind

# The executable doesn't matter to database consumers, but something has to be there.
PLACEHOLDER_EXECUTABLE = "/bin/false"

logger = logging.getLogger(__name__)

KIND_BY_EXT = {
    ".S": SourceKind.ASM,
    ".s": SourceKind.ASM,
    ".asm": SourceKind.ASM,
    ".c": SourceKind.C,
    ".cpp": SourceKind.CPP,
    ".cc": SourceKind.CPP,
    ".mm": SourceKind.CPP,
}


def classify_source(src: str) -> SourceKind:
    # Case-sensitive on purpose: ".S" is preprocessed assembly, ".C" is not recognized.
    return KIND_BY_EXT.get(PurePath(src).suffix, SourceKind.UNKNOWN)


def get_arguments(src: str, graph: BuildGraph, module: Module) -> list[str]:
    """
    Reconstruct the compiler invocation for one source file of `module`.

    Order (fixed):
      placeholder, global, cflags, cppflags (C++) | conlyflags (C), system includes, src

    Unknown extensions are treated as assembly so no language-specific group is applied.
    """
    kind = classify_source(src)
    if kind is SourceKind.UNKNOWN:
        logger.warning(
            "Unknown file extension %r on file %s (module %s)", PurePath(src).suffix, src, module.name
        )
        kind = SourceKind.ASM

    flags: FlagSet = module.flags

    args = [PLACEHOLDER_EXECUTABLE]
    args.extend(expand_all_vars(graph, flags.global_flags))
    args.extend(expand_all_vars(graph, flags.cflags))
    if kind is SourceKind.CPP:
        args.extend(expand_all_vars(graph, flags.cppflags))
    elif kind is not SourceKind.ASM:
        args.extend(expand_all_vars(graph, flags.conlyflags))
    args.extend(expand_all_vars(graph, flags.system_include_flags))
    args.append(src)
    return args
