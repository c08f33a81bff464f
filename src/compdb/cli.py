# compdb/cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import __version__
from . import main as main_module


def _parse_dotenv_line(line: str) -> tuple[str, str] | None:
    """
    Minimal .env parser.
    Supports KEY=VALUE, "export KEY=VALUE", full-line and trailing comments,
    and '...' / "..." quoted values (backslash escapes inside double quotes).
    No ${...} expansion.
    """
    s = line.strip()
    if s.startswith("export "):
        s = s[len("export ") :].lstrip()
    if not s or s.startswith("#") or "=" not in s:
        return None

    key, val = (part.strip() for part in s.split("=", 1))
    if not key:
        return None
    if not val:
        return key, ""

    quote = val[0]
    if quote not in ("'", '"'):
        return key, val.split("#", 1)[0].strip()

    out: list[str] = []
    escaped = False
    for ch in val[1:]:
        if escaped:
            out.append(ch)
            escaped = False
        elif quote == '"' and ch == "\\":
            escaped = True
        elif ch == quote:
            break
        else:
            out.append(ch)
    return key, "".join(out)


def _load_dotenv_file(path: str, *, override: bool = False) -> bool:
    """
    Loads key/value pairs from a .env file into os.environ.
    Returns True if the file existed and was read.
    """
    p = Path(path)
    if not p.is_file():
        return False

    for raw_line in p.read_text(encoding="utf-8").splitlines():
        parsed = _parse_dotenv_line(raw_line)
        if not parsed:
            continue
        k, v = parsed
        if override or k not in os.environ:
            os.environ[k] = v
    return True


def _print_success(obj: dict[str, Any]) -> None:
    print(json.dumps(obj, separators=(",", ":")), file=sys.stdout)


def _print_failure(stage: str, err: Exception) -> None:
    out = {
        "ok": False,
        "stage": stage,
        "error_code": f"COMPDB_FAILED_{stage.upper()}",
        "error_message": str(err),
    }
    print(json.dumps(out, separators=(",", ":")), file=sys.stdout)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="compdb",
        description="Generate compile_commands.json from a resolved build graph.",
    )
    parser.add_argument(
        "--graph",
        metavar="PATH",
        help="Build graph description (JSON) to walk.",
    )
    parser.add_argument(
        "--source-root",
        dest="source_root",
        metavar="DIR",
        help="Override the graph's root source directory (also: COMPDB_SOURCE_ROOT).",
    )
    parser.add_argument(
        "--dotenv",
        nargs="?",
        const=".env",
        default=None,
        metavar="PATH",
        help="Optional: load env vars from a local .env file (default: ./.env).",
    )
    parser.add_argument(
        "--dotenv-override",
        action="store_true",
        help="Optional: allow .env values to override already-set environment variables.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"compdb {__version__}",
    )
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    # stdout carries the JSON result; diagnostics go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(bool(args.verbose))

    # Optional local convenience: load .env ONLY if explicitly requested.
    if args.dotenv:
        _load_dotenv_file(str(args.dotenv), override=bool(args.dotenv_override))

    try:
        result = main_module.run(args.graph, source_root=args.source_root)
        _print_success(result)
        return 0

    except Exception as e:  # noqa: BLE001 - top-level CLI error handler
        from compdb.graph import CompdbStageError

        if isinstance(e, CompdbStageError):
            logging.getLogger("compdb").error("%s failed: %s", e.stage, e)
            _print_failure(e.stage, e)
            return 1

        # Everything else: unknown stage
        _print_failure("unknown", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
