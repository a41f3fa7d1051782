#!/usr/bin/env python3

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from string import Template

from assetpack.bindata import AssetDescriptor
from assetpack.bindata import PackError


GENERATED_MARKER = "Code generated by gen-bindata; DO NOT EDIT."


@dataclass(frozen=True)
class IndexFormat:
    template: Template
    entry: Template
    quote: Callable[[str], str]


GO_KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer", "else",
        "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
        "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
    }
)


def go_string(value: str) -> str:
    """Quote a file-system derived name as a Go interpreted string literal.

    Bytes that were not valid UTF-8 reach us as surrogate escapes and are
    written back as \\xNN so the literal holds the original bytes.
    """
    parts = []
    for ch in value:
        code = ord(ch)
        if 0xDC80 <= code <= 0xDCFF:
            parts.append(f"\\x{code - 0xDC00:02x}")
        else:
            # JSON string escapes are a subset of Go's interpreted string literal escapes
            parts.append(json.dumps(ch, ensure_ascii=False)[1:-1])
    return '"' + "".join(parts) + '"'


GO_INDEX = IndexFormat(
    template=Template(
        f"// {GENERATED_MARKER}\n"
        "\n"
        "// datafile: $datafile\n"
        "\n"
        "package $package\n"
        "\n"
        "var (\n"
        "\tBinData = map[string]struct{ offset, size int64 }{\n"
        "$entries"
        "\t}\n"
        "\n"
        "\tBinDataSize int64 = $total\n"
        ")\n"
    ),
    entry=Template("\t\t$name: {$offset, $size},\n"),
    quote=go_string,
)

PYTHON_INDEX = IndexFormat(
    template=Template(
        f"# {GENERATED_MARKER}\n"
        "\n"
        "# datafile: $datafile\n"
        "\n"
        "PACKAGE = $package\n"
        "\n"
        "BIN_DATA: dict[str, tuple[int, int]] = {\n"
        "$entries"
        "}\n"
        "\n"
        "BIN_DATA_SIZE = $total\n"
    ),
    entry=Template("    $name: ($offset, $size),\n"),
    quote=repr,
)

INDEX_FORMATS: dict[str, IndexFormat] = {
    "go": GO_INDEX,
    "python": PYTHON_INDEX,
}


def format_for_path(path: Path | str) -> str:
    return "python" if Path(path).suffix == ".py" else "go"


def render_index(
    descriptors: list[AssetDescriptor],
    datafile: str,
    package: str,
    total_size: int,
    index_format: str = "go",
) -> str:
    """Render the index source mapping each asset name to its blob range.

    Entries follow discovery order; consumers look assets up by name.
    """
    fmt = INDEX_FORMATS.get(index_format)
    if fmt is None:
        raise PackError(f"unknown index format {index_format!r}")

    if index_format == "go":
        if not package.isidentifier() or package in GO_KEYWORDS:
            raise PackError(f"invalid Go package name {package!r}")
        package_text = package
    else:
        package_text = fmt.quote(package)

    entries = "".join(
        fmt.entry.substitute(name=fmt.quote(descriptor.name), offset=descriptor.offset, size=descriptor.size)
        for descriptor in descriptors
    )
    return fmt.template.substitute(
        datafile=datafile.replace("\n", " "),
        package=package_text,
        entries=entries,
        total=total_size,
    )


def write_index(path: Path, text: str) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except (OSError, UnicodeError) as exc:
        if tmp_path.exists():
            tmp_path.unlink()
        raise PackError(f"cannot write {path}: {exc}") from exc
