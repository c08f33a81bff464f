# compdb/expand.py
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:
    from compdb.buildgraph import BuildGraph

logger = logging.getLogger(__name__)


class ExpansionError(ValueError):
    def __init__(self, message: str, *, raw: str):
        super().__init__(message)
        self.raw = raw


# ${pkg.Var} allows dots; bare $var does not.
_BRACED_NAME_RE = re.compile(r"[A-Za-z0-9_.\-]+")
_BARE_NAME_RE = re.compile(r"[A-Za-z0-9_\-]+")


class MacroContext:
    """
    Ninja/Blueprint-style variable evaluation.

    Supported references:
      - $$       -> literal "$"
      - ${name}  -> value of name (dots allowed in name)
      - $name    -> value of name

    Values are evaluated recursively. Unknown names, a dangling "$", an unterminated
    "${" and reference cycles raise ExpansionError.
    """

    def __init__(self, variables: Mapping[str, str] | None = None):
        self.variables: dict[str, str] = dict(variables or {})

    def eval(self, raw: str) -> str:
        return self._eval(raw, raw=raw, active=())

    def _lookup(self, name: str, *, raw: str, active: tuple[str, ...]) -> str:
        if name in active:
            chain = " -> ".join(active + (name,))
            raise ExpansionError(f"Variable reference cycle: {chain}", raw=raw)
        if name not in self.variables:
            raise ExpansionError(f"Unknown variable {name!r} in {raw!r}", raw=raw)
        return self._eval(self.variables[name], raw=raw, active=active + (name,))

    def _eval(self, text: str, *, raw: str, active: tuple[str, ...]) -> str:
        out: list[str] = []
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            if ch != "$":
                out.append(ch)
                i += 1
                continue

            if i + 1 >= n:
                raise ExpansionError(f"Dangling '$' at end of {raw!r}", raw=raw)

            nxt = text[i + 1]
            if nxt == "$":
                out.append("$")
                i += 2
                continue

            if nxt == "{":
                end = text.find("}", i + 2)
                if end < 0:
                    raise ExpansionError(f"Unterminated '${{' in {raw!r}", raw=raw)
                name = text[i + 2 : end]
                if not _BRACED_NAME_RE.fullmatch(name):
                    raise ExpansionError(f"Malformed variable name {name!r} in {raw!r}", raw=raw)
                out.append(self._lookup(name, raw=raw, active=active))
                i = end + 1
                continue

            m = _BARE_NAME_RE.match(text, i + 1)
            if not m:
                raise ExpansionError(f"Malformed variable reference at offset {i} in {raw!r}", raw=raw)
            out.append(self._lookup(m.group(0), raw=raw, active=active))
            i = m.end()

        return "".join(out)


def eval_and_split(graph: "BuildGraph", raw: str) -> list[str]:
    """Evaluate one raw flag against the graph's macro context and split it on whitespace."""
    return graph.eval(raw).split()


def expand_all_vars(graph: "BuildGraph", args: Iterable[str]) -> list[str]:
    out: list[str] = []
    for arg in args:
        if not arg:
            continue
        try:
            out.extend(eval_and_split(graph, arg))
        except ExpansionError as e:
            # Keep the raw token verbatim; never abort the pass on a bad flag.
            logger.debug("Keeping unexpanded flag %r: %s", arg, e)
            out.append(arg)
    return out
