# compdb/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

# Environment variables that drive the pass.
ENV_GENERATE = "COMPDB_GENERATE"
ENV_DEBUG = "COMPDB_DEBUG"
ENV_LINK_TO = "COMPDB_LINK_TO"
ENV_SOURCE_ROOT = "COMPDB_SOURCE_ROOT"

_TRUE_VALUES = ("1", "y", "yes", "on", "true")


def _bool_from_env(environ: Mapping[str, str], name: str) -> bool:
    v = environ.get(name, "").strip().lower()
    return v in _TRUE_VALUES


def _str_from_env(environ: Mapping[str, str], name: str) -> str | None:
    v = environ.get(name, "").strip()
    return v or None


@dataclass(frozen=True)
class RuntimeConfig:
    enabled: bool
    debug: bool = False
    link_to: str | None = None
    source_root: str | None = None


def config_from_env(environ: Mapping[str, str] | None = None) -> RuntimeConfig:
    """Read the pass configuration once; later environment changes are not observed."""
    env = os.environ if environ is None else environ
    return RuntimeConfig(
        enabled=_bool_from_env(env, ENV_GENERATE),
        debug=_bool_from_env(env, ENV_DEBUG),
        link_to=_str_from_env(env, ENV_LINK_TO),
        source_root=_str_from_env(env, ENV_SOURCE_ROOT),
    )
