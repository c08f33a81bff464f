import logging

import pytest

from compdb.arguments import (
    PLACEHOLDER_EXECUTABLE,
    classify_source,
    get_arguments,
)
from compdb.model import SourceKind
from conftest import FakeGraph, make_module

FLAGS = dict(
    global_flags=["-Wall"],
    cflags=["-fPIC"],
    cppflags=["-std=c++17"],
    conlyflags=["-std=c11"],
    system_include_flags=["-isystem", "/sys/inc"],
)


@pytest.mark.parametrize(
    "src,kind",
    [
        ("a.c", SourceKind.C),
        ("dir/a.cpp", SourceKind.CPP),
        ("a.cc", SourceKind.CPP),
        ("a.mm", SourceKind.CPP),
        ("a.S", SourceKind.ASM),
        ("a.s", SourceKind.ASM),
        ("a.asm", SourceKind.ASM),
        ("a.C", SourceKind.UNKNOWN),
        ("foo.xyz", SourceKind.UNKNOWN),
        ("Makefile", SourceKind.UNKNOWN),
    ],
)
def test_classify_source(src, kind):
    assert classify_source(src) is kind


def test_c_source_scenario(module_a):
    args = get_arguments("a.c", FakeGraph([module_a]), module_a)
    assert args == ["/bin/false", "-Wall", "-std=c11", "-I/inc", "a.c"]


def test_c_source_gets_conly_flags():
    m = make_module("m", srcs=["x.c"], **FLAGS)
    assert get_arguments("x.c", FakeGraph([m]), m) == [
        PLACEHOLDER_EXECUTABLE, "-Wall", "-fPIC", "-std=c11", "-isystem", "/sys/inc", "x.c",
    ]


def test_cpp_source_gets_cpp_flags():
    m = make_module("m", srcs=["x.cc"], **FLAGS)
    assert get_arguments("x.cc", FakeGraph([m]), m) == [
        PLACEHOLDER_EXECUTABLE, "-Wall", "-fPIC", "-std=c++17", "-isystem", "/sys/inc", "x.cc",
    ]


def test_assembly_source_skips_language_flags():
    m = make_module("m", srcs=["x.S"], **FLAGS)
    assert get_arguments("x.S", FakeGraph([m]), m) == [
        PLACEHOLDER_EXECUTABLE, "-Wall", "-fPIC", "-isystem", "/sys/inc", "x.S",
    ]


def test_unknown_extension_is_treated_as_assembly(caplog):
    m = make_module("m", srcs=["foo.xyz"], **FLAGS)
    with caplog.at_level(logging.WARNING, logger="compdb.arguments"):
        args = get_arguments("foo.xyz", FakeGraph([m]), m)
    assert "Unknown file extension '.xyz' on file foo.xyz" in caplog.text
    assert "-std=c11" not in args
    assert "-std=c++17" not in args
    assert args[-1] == "foo.xyz"


def test_flags_are_expanded_per_group():
    m = make_module(
        "m",
        srcs=["x.c"],
        global_flags=["${common}", ""],
        cflags=["${undefined}"],
        system_include_flags=["-I${root}/inc"],
    )
    g = FakeGraph([m], variables={"common": "-DANDROID -fmessage-length=0", "root": "/top"})
    assert get_arguments("x.c", g, m) == [
        PLACEHOLDER_EXECUTABLE, "-DANDROID", "-fmessage-length=0", "${undefined}", "-I/top/inc", "x.c",
    ]


def test_no_argument_deduplication_within_entry():
    m = make_module("m", srcs=["x.c"], global_flags=["-Wall"], cflags=["-Wall"])
    assert get_arguments("x.c", FakeGraph([m]), m) == [PLACEHOLDER_EXECUTABLE, "-Wall", "-Wall", "x.c"]
