"""Error taxonomy for backup runs.

Root errors (``SourceNotFound``, ``PermissionDenied``, ``SinkUnavailable``
and the ``OverlappingRoots`` pair) abort a run before any work starts.
``PairError`` subclasses describe a single failed pair and are collected
into the ``RunResult`` instead of being raised to the caller.
"""

from __future__ import annotations

from pathlib import Path

from treebackup.models import CopyPair


class BackupError(Exception):
    """Base class for every treebackup error."""

    @property
    def errno(self) -> int | None:
        cause = self.__cause__
        if isinstance(cause, OSError):
            return cause.errno
        return None


class SourceNotFound(BackupError):
    def __init__(self, path: Path, reason: str = "no such directory") -> None:
        super().__init__(f"Source not found: {path} ({reason})")
        self.path = path


class PermissionDenied(BackupError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Permission denied: {path}")
        self.path = path


class SinkUnavailable(BackupError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot use sink {path}: {reason}")
        self.path = path


class OverlappingRoots(BackupError):
    """Source and sink share a subtree, so a run could write into the source."""

    relation = "overlap"

    def __init__(self, source: Path, sink: Path) -> None:
        super().__init__(f"Sink {sink} and source {source} {self.relation}")
        self.source = source
        self.sink = sink


class SinkInsideSource(OverlappingRoots):
    relation = "overlap: the sink is inside the source"


class SourceInsideSink(OverlappingRoots):
    relation = "overlap: the source is inside the sink"


class PathContainmentError(BackupError):
    """Raised when a derived destination would fall outside the sink root."""

    def __init__(self, path: Path, root: Path) -> None:
        super().__init__(f"{path} is not contained in {root}")
        self.path = path
        self.root = root


class PairError(BackupError):
    """Failure of a single copy pair, wrapping the underlying OS error."""

    action = "process"

    def __init__(self, pair: CopyPair, cause: OSError) -> None:
        self.pair = pair
        self.cause = cause
        super().__init__(
            f"Could not {self.action} {pair.source} to {pair.destination}: {self.reason}"
        )

    @property
    def reason(self) -> str:
        return self.cause.strerror or str(self.cause)

    @property
    def errno(self) -> int | None:
        return self.cause.errno


class DestinationCreateFailed(PairError):
    action = "create directory for"


class CopyFailed(PairError):
    action = "copy"
