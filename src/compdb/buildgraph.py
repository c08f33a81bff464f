# compdb/buildgraph.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from pydantic import BaseModel, Field, ValidationError

from compdb.expand import MacroContext
from compdb.model import FlagSet


class GraphLoadError(RuntimeError):
    pass


class CompiledSources(BaseModel):
    # Ordered as the module lists them; order decides which module "owns" a shared source.
    srcs: list[str] = Field(default_factory=list)
    # Optional source -> object file mapping (feeds CompilationEntry.output)
    outputs: dict[str, str] = Field(default_factory=dict)


class Module(BaseModel):
    name: str
    flags: FlagSet = Field(default_factory=FlagSet)
    # None means the module does not compile anything (prebuilt, generated, phony, ...)
    compiled: CompiledSources | None = None


class BuildGraph(Protocol):
    """
    What the compdb pass needs from a resolved build graph.
    eval() raises compdb.expand.ExpansionError on unresolved or malformed references.
    """

    def visit_all_modules(self) -> Iterable[Module]: ...

    def eval(self, raw: str) -> str: ...

    def source_root(self) -> str: ...


class GraphDescription(BaseModel):
    source_root: str = "."
    variables: dict[str, str] = Field(default_factory=dict)
    modules: list[Module] = Field(default_factory=list)


class StaticBuildGraph:
    """
    In-memory build graph backed by a GraphDescription.

    Relative source roots are resolved against base_dir (the directory of the
    description file when loaded from disk).
    """

    def __init__(self, description: GraphDescription, *, base_dir: str | Path | None = None):
        self.description = description
        self._macros = MacroContext(description.variables)
        root = Path(description.source_root)
        if not root.is_absolute() and base_dir is not None:
            root = Path(base_dir) / root
        self._root = os.path.abspath(str(root))

    def visit_all_modules(self) -> Iterator[Module]:
        yield from self.description.modules

    def eval(self, raw: str) -> str:
        return self._macros.eval(raw)

    def source_root(self) -> str:
        return self._root


def load_build_graph(path: str | Path, *, source_root: str | None = None) -> StaticBuildGraph:
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise GraphLoadError(f"Build graph description not found: {p}")

    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise GraphLoadError(f"Invalid build graph JSON at {p}: {e}") from e

    if not isinstance(payload, dict):
        raise GraphLoadError(f"Build graph at {p} must be a JSON object")

    try:
        description = GraphDescription.model_validate(payload)
    except ValidationError as e:
        raise GraphLoadError(f"Build graph at {p} does not match the expected schema: {e}") from e

    if source_root:
        description = description.model_copy(update={"source_root": source_root})

    return StaticBuildGraph(description, base_dir=p.resolve().parent)


class RerootedBuildGraph:
    """Delegates to another BuildGraph but reports a different source root."""

    def __init__(self, inner: BuildGraph, source_root: str):
        self.inner = inner
        self._root = os.path.abspath(source_root)

    def visit_all_modules(self) -> Iterable[Module]:
        return self.inner.visit_all_modules()

    def eval(self, raw: str) -> str:
        return self.inner.eval(raw)

    def source_root(self) -> str:
        return self._root
