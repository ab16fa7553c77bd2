"""Derive (source, destination) pairs from the source walk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from treebackup.config import RunConfig
from treebackup.errors import (
    PathContainmentError,
    PermissionDenied,
    SinkInsideSource,
    SinkUnavailable,
    SourceInsideSink,
    SourceNotFound,
)
from treebackup.models import CopyPair, Entry
from treebackup.utils.files import iter_entries

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BackupRoots:
    """Canonical (absolute, symlink-free) source and sink roots."""

    source: Path
    sink: Path


def canonicalize_roots(config: RunConfig) -> BackupRoots:
    """Validate both roots and resolve them, creating the sink if needed."""
    try:
        source = config.source_root.resolve(strict=True)
    except FileNotFoundError as exc:
        raise SourceNotFound(config.source_root) from exc
    except PermissionError as exc:
        raise PermissionDenied(config.source_root) from exc
    if not source.is_dir():
        raise SourceNotFound(config.source_root, "not a directory")
    try:
        with os.scandir(source):
            pass
    except PermissionError as exc:
        raise PermissionDenied(config.source_root) from exc

    # Either nesting lets a destination land on a path inside the source
    sink = config.sink_root.resolve()
    if sink.is_relative_to(source):
        raise SinkInsideSource(source, sink)
    if source.is_relative_to(sink):
        raise SourceInsideSink(source, sink)

    try:
        sink.mkdir(parents=True, exist_ok=True)
        sink = sink.resolve(strict=True)
    except OSError as exc:
        raise SinkUnavailable(config.sink_root, exc.strerror or str(exc)) from exc

    LOGGER.debug("Resolved roots: %s -> %s", source, sink)
    return BackupRoots(source=source, sink=sink)


def derive_pair(entry: Entry, roots: BackupRoots) -> CopyPair:
    try:
        relative = entry.path.relative_to(roots.source)
    except ValueError as exc:
        raise PathContainmentError(entry.path, roots.source) from exc
    if ".." in relative.parts or relative == Path("."):
        raise PathContainmentError(entry.path, roots.source)

    destination = roots.sink / relative
    if not destination.is_relative_to(roots.sink):
        raise PathContainmentError(destination, roots.sink)
    return CopyPair(source=entry.path, destination=destination, kind=entry.kind)


def iter_pairs(roots: BackupRoots, *, include_hidden: bool = False) -> Iterator[CopyPair]:
    """Yield a pair for every entry below the source root, in walk order."""
    for entry in iter_entries(roots.source, include_hidden=include_hidden):
        yield derive_pair(entry, roots)
