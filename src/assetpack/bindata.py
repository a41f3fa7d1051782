#!/usr/bin/env python3

from __future__ import annotations

import gzip
import os
import posixpath
import sys
import tempfile
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from assetpack.progress import AssemblyProgress
from assetpack.progress import display_name


COMPRESSED_SUFFIX = ".gz"
GZIP_LEVEL = 9
COPY_CHUNK_BYTES = 1024 * 1024
MIB = 1024 * 1024
ARTIFACT_PREFIX = "asset_"


class PackError(RuntimeError):
    """Fatal failure of any packing phase."""


@dataclass
class AssetDescriptor:
    name: str
    source_path: Path
    artifact_path: Path | None = None
    offset: int = 0
    size: int = 0
    raw_size: int = 0


def default_worker_count() -> int:
    return max(1, min(8, (os.cpu_count() or 1)))


def asset_name(directory: Path | str, file_name: str, prefix: str) -> str:
    joined = posixpath.normpath(posixpath.join(Path(directory).as_posix(), file_name))
    if joined.startswith(prefix):
        joined = joined[len(prefix) :]
    return joined + COMPRESSED_SUFFIX


def collect_assets(directories: Iterable[Path | str], prefix: str = "") -> list[AssetDescriptor]:
    """List every regular file of each directory, in discovery order.

    Directories are visited in the order given and their entries sorted by
    file name. Subdirectories are not descended into.
    """
    descriptors: list[AssetDescriptor] = []
    sources_by_name: dict[str, Path] = {}
    for raw_directory in directories:
        directory = Path(raw_directory)
        try:
            entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            raise PackError(f"cannot list directory {directory}: {exc}") from exc

        for entry in entries:
            if not entry.is_file():
                continue
            name = asset_name(directory, entry.name, prefix)
            if name in sources_by_name:
                raise PackError(f"duplicate asset name {name!r}: {sources_by_name[name]} and {entry}")
            sources_by_name[name] = entry
            descriptors.append(AssetDescriptor(name=name, source_path=entry))

    return descriptors


def compress_asset(descriptor: AssetDescriptor, work_dir: Path) -> AssetDescriptor:
    raw_size = 0
    try:
        with descriptor.source_path.open("rb") as source, tempfile.NamedTemporaryFile(
            prefix=ARTIFACT_PREFIX,
            suffix=COMPRESSED_SUFFIX,
            dir=work_dir,
            delete=False,
        ) as sink:
            descriptor.artifact_path = Path(sink.name)
            # empty filename and zero mtime keep the gzip header reproducible
            with gzip.GzipFile(filename="", mode="wb", fileobj=sink, compresslevel=GZIP_LEVEL, mtime=0) as gz:
                while True:
                    chunk = source.read(COPY_CHUNK_BYTES)
                    if not chunk:
                        break
                    gz.write(chunk)
                    raw_size += len(chunk)
        descriptor.size = descriptor.artifact_path.stat().st_size
    except OSError as exc:
        raise PackError(f"cannot compress {descriptor.source_path}: {exc}") from exc

    descriptor.raw_size = raw_size
    print(f"{display_name(descriptor.name)}: {descriptor.size // MIB}/{raw_size // MIB} MiB", file=sys.stderr)
    return descriptor


def compress_assets(descriptors: list[AssetDescriptor], work_dir: Path, workers: int | None = None) -> None:
    """Compress every asset into ``work_dir`` and return once all have finished.

    The first failure cancels the units that have not started yet, including
    ones a worker picks up before the cancellation lands, and is re-raised
    after the in-flight ones complete.
    """
    if not descriptors:
        return

    aborted = threading.Event()

    def run_unit(descriptor: AssetDescriptor) -> AssetDescriptor | None:
        if aborted.is_set():
            return None
        try:
            return compress_asset(descriptor, work_dir)
        except Exception:
            aborted.set()
            raise

    worker_count = max(1, workers if workers is not None else default_worker_count())
    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        futures = [executor.submit(run_unit, descriptor) for descriptor in descriptors]
        for future in as_completed(futures):
            error = future.exception()
            if error is None:
                continue
            for pending in futures:
                pending.cancel()
            raise error


def assemble_blob(descriptors: list[AssetDescriptor], blob_path: Path) -> int:
    """Concatenate compressed artifacts into ``blob_path`` in discovery order.

    Assigns each descriptor its final offset and size, deletes the consumed
    artifact and returns the total number of bytes written.
    """
    for descriptor in descriptors:
        if descriptor.artifact_path is None:
            raise PackError(f"asset {descriptor.name!r} has not been compressed")

    print(f"Writing {blob_path}...", file=sys.stderr)
    offset = 0
    progress = AssemblyProgress(len(descriptors))
    try:
        blob_path.parent.mkdir(parents=True, exist_ok=True)
        with blob_path.open("wb") as out:
            for descriptor in descriptors:
                artifact_path = descriptor.artifact_path
                size = 0
                with artifact_path.open("rb") as artifact:
                    while True:
                        chunk = artifact.read(COPY_CHUNK_BYTES)
                        if not chunk:
                            break
                        out.write(chunk)
                        size += len(chunk)
                artifact_path.unlink()

                descriptor.artifact_path = None
                descriptor.offset = offset
                descriptor.size = size
                offset += size
                progress.advance(descriptor.name, size)
    except OSError as exc:
        raise PackError(f"cannot assemble {blob_path}: {exc}") from exc
    progress.finish()

    return offset


def verify_layout(descriptors: list[AssetDescriptor], blob_size: int) -> None:
    sizes = np.fromiter((descriptor.size for descriptor in descriptors), dtype=np.int64, count=len(descriptors))
    offsets = np.fromiter((descriptor.offset for descriptor in descriptors), dtype=np.int64, count=len(descriptors))
    expected = np.cumsum(sizes) - sizes

    mismatched = np.flatnonzero(offsets != expected)
    if mismatched.size:
        index = int(mismatched[0])
        raise PackError(
            f"asset {descriptors[index].name!r} starts at {int(offsets[index])}, expected {int(expected[index])}"
        )

    total = int(sizes.sum())
    if total != blob_size:
        raise PackError(f"asset sizes sum to {total} bytes but the blob holds {blob_size}")


def build_bindata(
    directories: Iterable[Path | str],
    prefix: str,
    blob_path: Path,
    workers: int | None = None,
) -> tuple[list[AssetDescriptor], int]:
    descriptors = collect_assets(directories, prefix)
    with tempfile.TemporaryDirectory(prefix="bindata_") as work_dir:
        compress_assets(descriptors, Path(work_dir), workers=workers)
        blob_size = assemble_blob(descriptors, blob_path)

    try:
        verify_layout(descriptors, blob_path.stat().st_size)
    except OSError as exc:
        raise PackError(f"cannot stat {blob_path}: {exc}") from exc
    return descriptors, blob_size
