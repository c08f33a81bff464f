# compdb/publish.py
from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from compdb.model import CompilationEntry

COMPDB_FILENAME = "compile_commands.json"
COMPDB_OUTPUT_DIRECTORY = "out/development/ide/compdb"


class OutputIOError(RuntimeError):
    def __init__(self, message: str, *, path: str | Path):
        super().__init__(message)
        self.path = str(path)


class SerializationError(RuntimeError):
    pass


def default_output_path(source_root: str | Path) -> Path:
    return Path(source_root) / COMPDB_OUTPUT_DIRECTORY / COMPDB_FILENAME


def render_entries(entries: Iterable[CompilationEntry], *, debug: bool = False) -> str:
    """
    Render entries as the compile_commands.json array.
    Sorted by file so reruns over the same graph are byte-identical.
    """
    ordered = sorted(entries, key=lambda e: e.file)
    try:
        wire = [e.to_wire() for e in ordered]
        if debug:
            return json.dumps(wire, indent=1, ensure_ascii=False)
        return json.dumps(wire, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to marshal compilation database: {e}") from e


def parse_entries(text: str) -> list[CompilationEntry]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid compilation database JSON: {e}") from e
    if not isinstance(data, list):
        raise SerializationError("Compilation database must be a JSON array")
    try:
        return [CompilationEntry.model_validate(x) for x in data]
    except ValidationError as e:
        raise SerializationError(f"Invalid compilation database entry: {e}") from e


def _current_umask() -> int:
    # os.umask can only be read by setting it; restore immediately.
    mask = os.umask(0)
    os.umask(mask)
    return mask


@dataclass
class FileSink:
    output_path: Path

    def __post_init__(self):
        self.output_path = Path(self.output_path)

    def write_text(self, data: str) -> Path:
        """
        Write the database atomically: readers see either the previous file or the full new one.
        """
        out = self.output_path
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputIOError(f"Could not create directory {out.parent}: {e}", path=out.parent) from e

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=str(out.parent),
                    prefix=f".{out.name}.",
                    suffix=".tmp",
                    delete=False,
            ) as f:
                tmp_name = f.name
                f.write(data)
            # NamedTemporaryFile is 0600; publish with the mode a plain create would get.
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, out)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise OutputIOError(f"Could not create file {out}: {e}", path=out) from e
        return out

    def link_to(self, link_dir: str | Path) -> Path:
        """Replace <link_dir>/compile_commands.json with a symlink to the canonical output."""
        link_path = Path(link_dir) / COMPDB_FILENAME
        target = self.output_path.resolve()
        try:
            if link_path.is_symlink() or link_path.exists():
                link_path.unlink()
            os.symlink(target, link_path)
        except OSError as e:
            raise OutputIOError(f"Unable to symlink {target} to {link_path}: {e}", path=link_path) from e
        return link_path
