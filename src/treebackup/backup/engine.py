"""Parallel directory-creation and file-copy engine."""

from __future__ import annotations

import logging
import shutil
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Sequence

from treebackup.config import DEFAULT_WORKERS
from treebackup.errors import CopyFailed, DestinationCreateFailed, PairError
from treebackup.models import CopyPair, RunResult

LOGGER = logging.getLogger(__name__)

PairCallback = Callable[[CopyPair], None]


def create_directory(pair: CopyPair) -> int:
    """Create the destination directory and any missing parents."""
    try:
        pair.destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DestinationCreateFailed(pair, exc) from exc
    return 0


def copy_file(pair: CopyPair) -> int:
    """Copy file bytes to the destination, overwriting it. Returns bytes written."""
    LOGGER.debug("Copying %s to %s", pair.source, pair.destination)
    try:
        pair.destination.parent.mkdir(parents=True, exist_ok=True)
        # Replace a symlink in the sink instead of writing through it
        if pair.destination.is_symlink():
            pair.destination.unlink()
        shutil.copyfile(pair.source, pair.destination)
        return pair.destination.stat().st_size
    except OSError as exc:
        raise CopyFailed(pair, exc) from exc


class CopyEngine:
    """Executes copy pairs on a thread pool, collecting every failure.

    Directory pairs all complete before any file pair starts, so a file never
    races the creation of its parent. Failures never stop the remaining work;
    they are appended to ``RunResult.failures``. Setting ``stop`` cancels
    whatever has not started yet.
    """

    def __init__(
        self,
        *,
        workers: int = DEFAULT_WORKERS,
        on_pair_done: PairCallback | None = None,
        stop: threading.Event | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.workers = workers
        self.on_pair_done = on_pair_done
        self.stop = stop

    def execute(self, pairs: Iterable[CopyPair]) -> RunResult:
        directories: list[CopyPair] = []
        files: list[CopyPair] = []
        for pair in pairs:
            (directories if pair.is_dir else files).append(pair)

        result = RunResult()
        self._run_phase(directories, create_directory, result)
        self._run_phase(files, copy_file, result)
        LOGGER.info(
            "Backup finished: %d succeeded, %d failed", result.succeeded, result.failed
        )
        return result

    def _stopped(self) -> bool:
        return self.stop is not None and self.stop.is_set()

    def _run_phase(
        self,
        pairs: Sequence[CopyPair],
        action: Callable[[CopyPair], int],
        result: RunResult,
    ) -> None:
        if not pairs:
            return
        if self._stopped():
            result.cancelled = True
            return

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures: dict[Future[int], CopyPair] = {
                pool.submit(action, pair): pair for pair in pairs
            }
            try:
                for future in as_completed(futures):
                    if future.cancelled():
                        continue
                    self._collect(futures[future], future, result)
                    if self._stopped() and not result.cancelled:
                        result.cancelled = True
                        _cancel_pending(futures)
            except KeyboardInterrupt:
                # Let the pool finish only the copies already in flight
                _cancel_pending(futures)
                raise

    def _collect(self, pair: CopyPair, future: Future[int], result: RunResult) -> None:
        try:
            size = future.result()
        except PairError as exc:
            LOGGER.error(str(exc))
            result.record_failure(exc)
        else:
            if pair.is_dir:
                result.record_directory()
            else:
                result.record_file(size)

        if self.on_pair_done is not None:
            self.on_pair_done(pair)


def _cancel_pending(futures: Iterable[Future[int]]) -> None:
    for future in futures:
        future.cancel()
