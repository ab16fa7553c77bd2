"""Run configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _default_workers() -> int:
    # Same sizing rule ThreadPoolExecutor uses for I/O bound work
    return min(32, (os.cpu_count() or 1) + 4)


DEFAULT_WORKERS = _default_workers()


@dataclass(slots=True, frozen=True)
class RunConfig:
    source_root: Path
    sink_root: Path
    include_hidden: bool = False
    workers: int = DEFAULT_WORKERS

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @classmethod
    def from_cli(
        cls,
        *,
        source: Path | None,
        sink: Path,
        cwd: Path,
        include_hidden: bool = False,
        workers: int = DEFAULT_WORKERS,
    ) -> RunConfig:
        """Build a config, defaulting the source to ``cwd``.

        The working directory is passed in rather than looked up here so a run
        only ever sees the directory captured at startup.
        """
        return cls(
            source_root=cls._resolve(source if source is not None else cwd, cwd),
            sink_root=cls._resolve(sink, cwd),
            include_hidden=include_hidden,
            workers=workers,
        )

    @staticmethod
    def _resolve(path: Path, base_dir: Path) -> Path:
        path = Path(path).expanduser()
        if path.is_absolute():
            return path
        return base_dir / path
