from __future__ import annotations

import pytest

from compdb.buildgraph import CompiledSources, Module
from compdb.expand import MacroContext
from compdb.model import FlagSet


class FakeGraph:
    def __init__(self, modules, variables=None, root="/src/root"):
        self.modules = list(modules)
        self.macros = MacroContext(variables or {})
        self.root = root
        self.root_calls = 0

    def visit_all_modules(self):
        return iter(self.modules)

    def eval(self, raw):
        return self.macros.eval(raw)

    def source_root(self):
        self.root_calls += 1
        return self.root


def make_module(name, srcs=None, outputs=None, **flags):
    compiled = None if srcs is None else CompiledSources(srcs=srcs, outputs=outputs or {})
    return Module(name=name, flags=FlagSet(**flags), compiled=compiled)


@pytest.fixture
def module_a():
    return make_module(
        "A",
        srcs=["a.c"],
        global_flags=["-Wall"],
        cflags=["-std=c11"],
        system_include_flags=["-I/inc"],
    )
