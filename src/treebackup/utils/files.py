"""Utility helpers for walking the source tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from treebackup.errors import PermissionDenied, SourceNotFound
from treebackup.models import Entry, EntryKind

LOGGER = logging.getLogger(__name__)


def is_hidden(name: str) -> bool:
    """Return True for dot-prefixed names."""
    return name.startswith(".")


def _scan_sorted(path: Path) -> list[os.DirEntry[str]]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda item: item.name)


def _classify(item: os.DirEntry[str]) -> EntryKind | None:
    # is_dir/is_file follow symlinks, so broken links fall through to None
    try:
        if item.is_dir():
            return EntryKind.DIRECTORY
        if item.is_file():
            return EntryKind.FILE
    except OSError as exc:
        LOGGER.debug("Cannot stat %s: %s", item.path, exc)
    return None


def iter_entries(source_root: Path, *, include_hidden: bool = False) -> Iterator[Entry]:
    """Yield every entry below ``source_root`` depth-first, parents before children.

    The root itself is not yielded. Hidden names are pruned together with
    their subtree unless ``include_hidden`` is set. Entries that cannot be
    read are logged and skipped; only a missing or unreadable root raises.
    Symlinked directories are yielded but never descended into.
    """
    root = Path(source_root)
    try:
        top = _scan_sorted(root)
    except FileNotFoundError as exc:
        raise SourceNotFound(root) from exc
    except NotADirectoryError as exc:
        raise SourceNotFound(root, "not a directory") from exc
    except PermissionError as exc:
        raise PermissionDenied(root) from exc

    stack = [iter(top)]
    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            continue
        if not include_hidden and is_hidden(item.name):
            LOGGER.debug("Skipping hidden entry %s", item.path)
            continue

        kind = _classify(item)
        if kind is None:
            LOGGER.debug("Skipping unreadable entry %s", item.path)
            continue

        yield Entry(path=Path(item.path), kind=kind)

        if kind is EntryKind.DIRECTORY and not item.is_symlink():
            try:
                stack.append(iter(_scan_sorted(Path(item.path))))
            except OSError as exc:
                LOGGER.debug("Cannot list %s: %s", item.path, exc)
