"""Tests for CLI commands."""

from __future__ import annotations

import errno
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from treebackup.cli import _human_bytes, _setup_logging, app, exit_code_for
from treebackup.errors import CopyFailed, SinkUnavailable, SourceNotFound
from treebackup.models import CopyPair, EntryKind, RunResult


runner = CliRunner()


def _failure(code: int | None) -> CopyFailed:
    pair = CopyPair(Path("/src/a.txt"), Path("/dst/a.txt"), EntryKind.FILE)
    return CopyFailed(pair, OSError(code, "boom") if code is not None else OSError("boom"))


@pytest.fixture
def source(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    (root / "sub").mkdir(parents=True)
    (root / ".hidden").mkdir()
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")
    (root / ".hidden" / "c.txt").write_text("c")
    return root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("treebackup.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("treebackup.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestHumanBytes:
    """Tests for _human_bytes helper."""

    def test_units(self) -> None:
        """Picks the largest fitting unit."""
        assert _human_bytes(12) == "12 B"
        assert _human_bytes(2048) == "2.0 KB"
        assert _human_bytes(3 << 20) == "3.0 MB"
        assert _human_bytes(5 << 30) == "5.0 GB"


class TestExitCodeFor:
    """Tests for exit code translation."""

    def test_success(self) -> None:
        """A clean run exits 0."""
        assert exit_code_for(RunResult(files_copied=2)) == 0

    def test_first_failure_errno(self) -> None:
        """The first failure's errno becomes the exit code."""
        result = RunResult(failures=[_failure(errno.EACCES), _failure(errno.ENOENT)])

        assert exit_code_for(result) == errno.EACCES

    def test_failure_without_errno(self) -> None:
        """Failures without an OS code exit 1."""
        assert exit_code_for(RunResult(failures=[_failure(None)])) == 1

    def test_cancelled(self) -> None:
        """Cancelled runs exit 130."""
        assert exit_code_for(RunResult(cancelled=True)) == 130

    def test_root_error_with_cause(self) -> None:
        """Root errors use the errno of their cause."""
        error = SinkUnavailable(Path("/dst"), "read-only")
        error.__cause__ = OSError(errno.EROFS, "Read-only file system")

        assert exit_code_for(error) == errno.EROFS

    def test_root_error_without_cause(self) -> None:
        """Root errors without an OS cause exit 2."""
        assert exit_code_for(SourceNotFound(Path("/missing"))) == 2


class TestBackupCommand:
    """Tests for the backup command."""

    def test_backup_success(self, source: Path, tmp_path: Path) -> None:
        """Copies visible entries and prints a summary."""
        sink = tmp_path / "dst"

        result = runner.invoke(app, ["--source", str(source), "--sink", str(sink)])

        assert result.exit_code == 0
        assert "Succeeded: 3, failed: 0" in result.stdout
        assert (sink / "sub" / "b.txt").read_text() == "b"
        assert not (sink / ".hidden").exists()

    def test_backup_include_hidden(self, source: Path, tmp_path: Path) -> None:
        """--include-hidden copies dot-prefixed entries too."""
        sink = tmp_path / "dst"

        result = runner.invoke(
            app, ["--source", str(source), "--sink", str(sink), "--include-hidden"]
        )

        assert result.exit_code == 0
        assert "Succeeded: 5, failed: 0" in result.stdout
        assert (sink / ".hidden" / "c.txt").read_text() == "c"

    def test_backup_defaults_to_cwd(
        self, source: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without --source the current directory is backed up."""
        monkeypatch.chdir(source)
        sink = tmp_path / "dst"

        result = runner.invoke(app, ["--sink", str(sink), "--workers", "2"])

        assert result.exit_code == 0
        assert (sink / "a.txt").exists()

    def test_backup_requires_sink(self, source: Path) -> None:
        """--sink is mandatory."""
        result = runner.invoke(app, ["--source", str(source)])

        assert result.exit_code == 2

    def test_backup_missing_source(self, tmp_path: Path) -> None:
        """A missing source is reported and exits non-zero."""
        result = runner.invoke(
            app, ["--source", str(tmp_path / "missing"), "--sink", str(tmp_path / "dst")]
        )

        assert result.exit_code == errno.ENOENT
        assert "Source not found" in result.stdout
        assert not (tmp_path / "dst").exists()

    def test_backup_empty_source(self, tmp_path: Path) -> None:
        """An empty source has nothing to copy."""
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(app, ["--source", str(empty), "--sink", str(tmp_path / "dst")])

        assert result.exit_code == 0
        assert "Nothing to back up" in result.stdout

    def test_backup_reports_failures(self, source: Path, tmp_path: Path) -> None:
        """Failed pairs are listed and the exit code carries the errno."""
        sink = tmp_path / "dst"
        denied = PermissionError(errno.EACCES, "Permission denied")

        with patch("treebackup.backup.engine.shutil.copyfile", side_effect=denied):
            result = runner.invoke(app, ["--source", str(source), "--sink", str(sink)])

        assert result.exit_code == errno.EACCES
        assert "Could not copy" in result.stdout
        assert "Succeeded: 1, failed: 2" in result.stdout

    def test_backup_interrupted(self, source: Path, tmp_path: Path) -> None:
        """Ctrl-C exits 130."""
        with patch("treebackup.cli.execute_plan", side_effect=KeyboardInterrupt):
            result = runner.invoke(
                app, ["--source", str(source), "--sink", str(tmp_path / "dst")]
            )

        assert result.exit_code == 130
        assert "Interrupted" in result.stdout

    def test_backup_interrupted_while_planning(self, source: Path, tmp_path: Path) -> None:
        """Ctrl-C during the walk also exits 130 without a traceback."""
        with patch("treebackup.cli.build_plan", side_effect=KeyboardInterrupt):
            result = runner.invoke(
                app, ["--source", str(source), "--sink", str(tmp_path / "dst")]
            )

        assert result.exit_code == 130
        assert "Interrupted" in result.stdout
        assert not isinstance(result.exception, KeyboardInterrupt)

    def test_backup_source_inside_sink(self, source: Path) -> None:
        """Backing up into the parent of the source is refused."""
        notes = source / "a.txt"

        result = runner.invoke(app, ["--source", str(source), "--sink", str(source.parent)])

        assert result.exit_code == 2
        assert "overlap" in result.stdout
        assert notes.read_text() == "a"

    def test_backup_rejects_zero_workers(self, source: Path, tmp_path: Path) -> None:
        """--workers must be positive."""
        result = runner.invoke(
            app, ["--source", str(source), "--sink", str(tmp_path / "dst"), "--workers", "0"]
        )

        assert result.exit_code == 2
