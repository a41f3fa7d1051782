#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from assetpack.bindata import PackError
from assetpack.bindata import build_bindata
from assetpack.bindata import default_worker_count
from assetpack.index_codegen import INDEX_FORMATS
from assetpack.index_codegen import format_for_path
from assetpack.index_codegen import render_index
from assetpack.index_codegen import write_index


DEFAULT_PREFIX = ""
DEFAULT_PACKAGE = "main"
DEFAULT_BLOB_OUT = "./bindata"
DEFAULT_INDEX_OUT = "./bindata.go"


def build_parser(default_workers: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gen-bindata",
        usage="%(prog)s [options] <directories>",
        description="Pack directories into one compressed blob and generate its index source",
        allow_abbrev=False,
    )
    parser.add_argument("directories", nargs="*", help="Directories to pack, in order")
    parser.add_argument("-prefix", "--prefix", default=DEFAULT_PREFIX, help="Optional path prefix to strip off asset names.")
    parser.add_argument("-pkg", "--pkg", default=DEFAULT_PACKAGE, help="Package name to use in the generated code.")
    parser.add_argument("-o", "--output", dest="outfile", default=DEFAULT_BLOB_OUT, help="Optional name of the output file to be generated.")
    parser.add_argument("-gofile", "--gofile", default=DEFAULT_INDEX_OUT, help="Optional name of the index source file to be generated.")
    parser.add_argument("--workers", type=int, default=default_workers, help=f"Compression worker threads (default: {default_workers})")
    parser.add_argument(
        "--format",
        dest="index_format",
        choices=sorted(INDEX_FORMATS),
        default=None,
        help="Index source language (default: python for .py outputs, go otherwise)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser(default_worker_count())
    args = parser.parse_args(argv)

    if not args.directories:
        parser.print_help(sys.stderr)
        return 1
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    index_format = args.index_format or format_for_path(args.gofile)
    blob_path = Path(args.outfile)
    index_path = Path(args.gofile)
    try:
        descriptors, blob_size = build_bindata(args.directories, args.prefix, blob_path, workers=args.workers)
        text = render_index(
            descriptors,
            datafile=args.outfile,
            package=args.pkg,
            total_size=blob_size,
            index_format=index_format,
        )
        write_index(index_path, text)
    except PackError as exc:
        raise SystemExit(f"error: {exc}") from exc

    raw_bytes = sum(descriptor.raw_size for descriptor in descriptors)
    print(f"generated index : {index_path}")
    print(f"generated blob  : {blob_path}")
    print(f"asset count     : {len(descriptors)}")
    print(f"blob bytes      : {blob_size}")
    print(f"raw bytes       : {raw_bytes}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
