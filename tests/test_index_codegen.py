"""Tests for index source rendering."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from assetpack.bindata import AssetDescriptor
from assetpack.bindata import PackError
from assetpack.index_codegen import format_for_path
from assetpack.index_codegen import go_string
from assetpack.index_codegen import render_index
from assetpack.index_codegen import write_index


@pytest.fixture
def descriptors() -> list[AssetDescriptor]:
    return [
        AssetDescriptor(name="/a.txt.gz", source_path=Path("assets/a.txt"), offset=0, size=22),
        AssetDescriptor(name="/b.txt.gz", source_path=Path("assets/b.txt"), offset=22, size=25),
    ]


def test_go_index(descriptors: list[AssetDescriptor]) -> None:
    text = render_index(descriptors, datafile="./bindata", package="assets", total_size=47)

    assert text == (
        "// Code generated by gen-bindata; DO NOT EDIT.\n"
        "\n"
        "// datafile: ./bindata\n"
        "\n"
        "package assets\n"
        "\n"
        "var (\n"
        "\tBinData = map[string]struct{ offset, size int64 }{\n"
        '\t\t"/a.txt.gz": {0, 22},\n'
        '\t\t"/b.txt.gz": {22, 25},\n'
        "\t}\n"
        "\n"
        "\tBinDataSize int64 = 47\n"
        ")\n"
    )


def test_go_index_without_assets() -> None:
    text = render_index([], datafile="./bindata", package="main", total_size=0)

    assert "\tBinData = map[string]struct{ offset, size int64 }{\n\t}\n" in text
    assert "\tBinDataSize int64 = 0\n" in text


def test_go_names_are_escaped() -> None:
    descriptors = [AssetDescriptor(name='say "hi"\\.gz', source_path=Path("x"), offset=0, size=1)]
    text = render_index(descriptors, datafile="./bindata", package="main", total_size=1)

    assert '\t\t"say \\"hi\\"\\\\.gz": {0, 1},\n' in text


def test_go_rejects_invalid_package() -> None:
    with pytest.raises(PackError, match="invalid Go package name"):
        render_index([], datafile="./bindata", package="my-assets", total_size=0)


def test_python_index_is_importable(descriptors: list[AssetDescriptor]) -> None:
    text = render_index(
        descriptors,
        datafile="./bindata",
        package="assets",
        total_size=47,
        index_format="python",
    )
    assert text.startswith("# Code generated by gen-bindata; DO NOT EDIT.\n")

    namespace: dict[str, object] = {}
    exec(compile(text, "bindata.py", "exec"), namespace)
    assert namespace["PACKAGE"] == "assets"
    assert namespace["BIN_DATA"] == {"/a.txt.gz": (0, 22), "/b.txt.gz": (22, 25)}
    assert namespace["BIN_DATA_SIZE"] == 47


def test_unknown_format() -> None:
    with pytest.raises(PackError, match="unknown index format"):
        render_index([], datafile="./bindata", package="main", total_size=0, index_format="rust")


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("./bindata.go", "go"),
        ("gen/assets.py", "python"),
        ("bindata", "go"),
    ],
)
def test_format_for_path(path: str, expected: str) -> None:
    assert format_for_path(path) == expected


def test_write_index_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "gen" / "bindata.go"
    write_index(target, "package main\n")

    assert target.read_text(encoding="utf-8") == "package main\n"
    assert not (tmp_path / "gen" / "bindata.go.tmp").exists()


def test_write_index_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(PackError, match="cannot write"):
        write_index(blocker / "bindata.go", "package main\n")


def test_go_names_keep_undecodable_bytes() -> None:
    name = os.fsdecode(b"caf\xe9.txt.gz")
    assert go_string(name) == '"caf\\xe9.txt.gz"'
    assert go_string("café.txt.gz") == '"café.txt.gz"'


@pytest.mark.parametrize("keyword", ["func", "package", "type", "map"])
def test_go_rejects_keyword_package(keyword: str) -> None:
    with pytest.raises(PackError, match="invalid Go package name"):
        render_index([], datafile="./bindata", package=keyword, total_size=0)


def test_write_index_unencodable_text(tmp_path: Path) -> None:
    target = tmp_path / "bindata.go"

    with pytest.raises(PackError, match="cannot write"):
        write_index(target, "// datafile: " + os.fsdecode(b"\xff") + "\n")

    assert not target.exists()
    assert not (tmp_path / "bindata.go.tmp").exists()
