# compdb/validate.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

REQUIRED_KEYS = ("directory", "arguments", "file")


def _must_exist(path: str | Path, label: str) -> None:
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Missing artifact: {label} at {p}")
    if not p.is_file():
        raise RuntimeError(f"Artifact path is not a file: {label} at {p}")


def _load_json(path: str | Path, label: str) -> Any:
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise RuntimeError(f"Invalid JSON for {label} at {p}: {e}") from e


def validate_compdb_file(path: str | Path) -> int:
    """
    Check the written database: JSON array of entry objects, non-empty arguments,
    one entry per file. Returns the number of entries.
    """
    label = "compile_commands.json"
    _must_exist(path, label)
    data = _load_json(path, label)

    if not isinstance(data, list):
        raise RuntimeError(f"{label} at {path} must be a JSON array")

    seen: set[str] = set()
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise RuntimeError(f"{label}[{i}] at {path} must be an object")
        for k in REQUIRED_KEYS:
            if k not in item:
                raise RuntimeError(f"{label}[{i}] at {path} missing required key: {k}")

        if not isinstance(item["directory"], str) or not item["directory"]:
            raise RuntimeError(f"{label}[{i}].directory at {path} must be a non-empty string")

        args = item["arguments"]
        if not isinstance(args, list) or not args or not all(isinstance(a, str) for a in args):
            raise RuntimeError(f"{label}[{i}].arguments at {path} must be a non-empty list of strings")

        f = item["file"]
        if not isinstance(f, str) or not f:
            raise RuntimeError(f"{label}[{i}].file at {path} must be a non-empty string")
        if f in seen:
            raise RuntimeError(f"{label} at {path} has duplicate entries for file: {f}")
        seen.add(f)

        if "output" in item and not isinstance(item["output"], str):
            raise RuntimeError(f"{label}[{i}].output at {path} must be a string when present")

    return len(data)
