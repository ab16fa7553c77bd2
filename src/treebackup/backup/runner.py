"""Top-level backup orchestration: roots -> pairs -> engine."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from treebackup.backup.engine import CopyEngine, PairCallback
from treebackup.backup.pairing import BackupRoots, canonicalize_roots, iter_pairs
from treebackup.config import DEFAULT_WORKERS, RunConfig
from treebackup.models import CopyPair, RunResult

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BackupPlan:
    roots: BackupRoots
    pairs: list[CopyPair] = field(default_factory=list)

    @property
    def directories(self) -> int:
        return sum(1 for pair in self.pairs if pair.is_dir)

    @property
    def files(self) -> int:
        return len(self.pairs) - self.directories


def build_plan(config: RunConfig) -> BackupPlan:
    """Resolve the roots and enumerate every pair for one run."""
    roots = canonicalize_roots(config)
    plan = BackupPlan(roots=roots)
    for pair in iter_pairs(roots, include_hidden=config.include_hidden):
        LOGGER.debug("pair: %s -> %s", pair.source, pair.destination)
        plan.pairs.append(pair)
    LOGGER.info(
        "Planned %d directories and %d files from %s",
        plan.directories,
        plan.files,
        roots.source,
    )
    return plan


def execute_plan(
    plan: BackupPlan,
    *,
    workers: int = DEFAULT_WORKERS,
    on_pair_done: PairCallback | None = None,
    stop: threading.Event | None = None,
) -> RunResult:
    engine = CopyEngine(workers=workers, on_pair_done=on_pair_done, stop=stop)
    return engine.execute(plan.pairs)


def run_backup(
    config: RunConfig,
    *,
    on_pair_done: PairCallback | None = None,
    stop: threading.Event | None = None,
) -> RunResult:
    """Mirror ``config.source_root`` into ``config.sink_root``.

    Root problems raise a ``BackupError`` before anything is written. Per-pair
    failures are returned in ``RunResult.failures``.
    """
    plan = build_plan(config)
    return execute_plan(plan, workers=config.workers, on_pair_done=on_pair_done, stop=stop)
