"""Core treebackup data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from treebackup.errors import PairError


class EntryKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(slots=True, frozen=True)
class Entry:
    """Filesystem node discovered under the source root."""

    path: Path
    kind: EntryKind


@dataclass(slots=True, frozen=True)
class CopyPair:
    """Source path paired with its destination under the sink root."""

    source: Path
    destination: Path
    kind: EntryKind

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(slots=True)
class RunResult:
    """Outcome of one backup run, collected across every pair."""

    directories_created: int = 0
    files_copied: int = 0
    bytes_copied: int = 0
    failures: list[PairError] = field(default_factory=list)
    cancelled: bool = False

    def record_directory(self) -> None:
        self.directories_created += 1

    def record_file(self, size: int) -> None:
        self.files_copied += 1
        self.bytes_copied += size

    def record_failure(self, error: PairError) -> None:
        self.failures.append(error)

    @property
    def succeeded(self) -> int:
        return self.directories_created + self.files_copied

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled
