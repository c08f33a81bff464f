# compdb/model.py
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceKind(str, Enum):
    C = "c"
    CPP = "cpp"
    ASM = "asm"
    UNKNOWN = "unknown"


class FlagSet(BaseModel):
    """
    Per-module flag groups, in their raw (unexpanded) form.
    JSON graph descriptions may use the short aliases (global, c, cpp, conly, system_include).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    global_flags: list[str] = Field(default_factory=list, alias="global")
    cflags: list[str] = Field(default_factory=list, alias="c")
    cppflags: list[str] = Field(default_factory=list, alias="cpp")
    conlyflags: list[str] = Field(default_factory=list, alias="conly")
    system_include_flags: list[str] = Field(default_factory=list, alias="system_include")


class CompilationEntry(BaseModel):
    directory: str
    arguments: list[str]
    file: str = Field(min_length=1)
    output: str | None = None

    @field_validator("arguments")
    @classmethod
    def _arguments_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("arguments must contain at least the executable token")
        return v

    def to_wire(self) -> dict[str, Any]:
        # "output" is omitted when unknown
        return self.model_dump(mode="json", exclude_none=True)


# Keyed by CompilationEntry.file
EntryTable = dict[str, CompilationEntry]
