"""Command line interface for treebackup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from treebackup.backup.runner import build_plan, execute_plan
from treebackup.config import DEFAULT_WORKERS, RunConfig
from treebackup.errors import BackupError
from treebackup.models import RunResult


console = Console()
app = typer.Typer(help="treebackup - mirror a directory tree into a sink directory")

EXIT_INTERRUPTED = 130


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _human_bytes(n: int) -> str:
    if n >= 1 << 30:
        return f"{n / (1 << 30):.1f} GB"
    if n >= 1 << 20:
        return f"{n / (1 << 20):.1f} MB"
    if n >= 1 << 10:
        return f"{n / (1 << 10):.1f} KB"
    return f"{n} B"


def exit_code_for(outcome: RunResult | BackupError) -> int:
    """Map a run outcome to a process exit code.

    Failed runs exit with the OS errno of the first failure when one is
    known, so shell scripts can tell permission problems from missing files.
    """
    if isinstance(outcome, BackupError):
        return _errno_code(outcome.errno, fallback=2)
    if outcome.cancelled:
        return EXIT_INTERRUPTED
    if outcome.failures:
        return _errno_code(outcome.failures[0].errno, fallback=1)
    return 0


def _errno_code(errno: int | None, *, fallback: int) -> int:
    if errno is None or not 0 < errno < 256:
        return fallback
    return errno


def _report(result: RunResult) -> None:
    for failure in result.failures:
        console.print(f"[red]{escape(str(failure))}[/red]")

    console.print(
        f"Succeeded: {result.succeeded}, failed: {result.failed} "
        f"({result.directories_created} directories, {result.files_copied} files, "
        f"{_human_bytes(result.bytes_copied)})"
    )
    if result.cancelled:
        console.print("[yellow]Backup cancelled before all entries were processed.[/yellow]")
    elif result.failures:
        console.print(f"[yellow]Backup finished with {result.failed} error(s).[/yellow]")
    else:
        console.print("[green]Backup complete.[/green]")


@app.command()
def backup(
    sink: Path = typer.Option(..., "--sink", help="Destination directory"),
    source: Optional[Path] = typer.Option(
        None, "--source", help="Directory to back up (defaults to the current directory)"
    ),
    include_hidden: bool = typer.Option(
        False, "--include-hidden", help="Include dot-prefixed files and directories"
    ),
    workers: int = typer.Option(DEFAULT_WORKERS, "--workers", min=1, help="Parallel copy workers"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Copy every file and directory under SOURCE into SINK."""
    _setup_logging(verbose)
    config = RunConfig.from_cli(
        source=source,
        sink=sink,
        cwd=Path.cwd(),
        include_hidden=include_hidden,
        workers=workers,
    )

    try:
        plan = build_plan(config)
    except BackupError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=exit_code_for(exc)) from exc
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=EXIT_INTERRUPTED)

    console.print(
        f"Backing up [bold]{escape(str(plan.roots.source))}[/bold] "
        f"to [bold]{escape(str(plan.roots.sink))}[/bold]..."
    )
    if not plan.pairs:
        console.print("[yellow]Nothing to back up.[/yellow]")
        return

    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    try:
        with progress:
            task = progress.add_task("Copying", total=len(plan.pairs))
            result = execute_plan(
                plan,
                workers=config.workers,
                on_pair_done=lambda _pair: progress.advance(task),
            )
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=EXIT_INTERRUPTED)

    _report(result)
    code = exit_code_for(result)
    if code:
        raise typer.Exit(code=code)
