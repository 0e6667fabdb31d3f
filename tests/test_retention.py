"""Tests for count-based snapshot retention."""

import os
import time
from pathlib import Path
from typing import List

import pytest

from homelab_backup.backup.retention import PruneResult, RetentionPruner
from homelab_backup.exceptions import ConfigurationError


def make_snapshots(directory: Path, count: int, suffix: str = ".tar") -> List[Path]:
    """Create ``count`` files, oldest first, one minute apart."""
    base = time.time() - 3600
    paths = []
    for i in range(count):
        path = directory / f"nas-{i:03d}{suffix}"
        path.write_bytes(b"snapshot")
        os.utime(path, (base + i * 60, base + i * 60))
        paths.append(path)
    return paths


def surviving(directory: Path, pattern: str = "*.tar") -> set:
    return {p.name for p in directory.glob(pattern)}


class TestScan:
    """Tests for listing snapshot files."""

    def test_newest_first(self, tmp_path, logger):
        """Files are returned by modification time, newest first."""
        paths = make_snapshots(tmp_path, 4)
        scanned = RetentionPruner(logger).scan(tmp_path, "*.tar")
        assert scanned == list(reversed(paths))

    def test_only_matching_regular_files(self, tmp_path, logger):
        """Other extensions and directories are ignored."""
        make_snapshots(tmp_path, 2)
        (tmp_path / "notes.txt").write_text("keep me")
        (tmp_path / "folder.tar").mkdir()

        scanned = RetentionPruner(logger).scan(tmp_path, "*.tar")
        assert {p.name for p in scanned} == {"nas-000.tar", "nas-001.tar"}

    def test_missing_directory_is_empty(self, tmp_path, logger):
        assert RetentionPruner(logger).scan(tmp_path / "absent", "*.tar") == []

    def test_ties_are_ordered_deterministically(self, tmp_path, logger):
        """Equal mtimes always produce the same order."""
        stamp = time.time() - 100
        for name in ("b.tar", "a.tar", "c.tar"):
            path = tmp_path / name
            path.write_bytes(b"x")
            os.utime(path, (stamp, stamp))

        pruner = RetentionPruner(logger)
        first = pruner.scan(tmp_path, "*.tar")
        second = pruner.scan(tmp_path, "*.tar")
        assert first == second
        assert [p.name for p in first] == ["c.tar", "b.tar", "a.tar"]


class TestPrune:
    """Tests for RetentionPruner.prune."""

    @pytest.mark.parametrize("count,keep", [(0, 1), (1, 1), (3, 5), (5, 5), (6, 5), (10, 3), (10, 1)])
    def test_deletes_exactly_the_excess(self, tmp_path, logger, count, keep):
        """max(N - K, 0) files go, and the K newest always survive."""
        paths = make_snapshots(tmp_path, count)
        newest = {p.name for p in paths[-keep:]} if count else set()

        result = RetentionPruner(logger).prune(tmp_path, "*.tar", keep)

        assert len(result.deleted) == max(count - keep, 0)
        assert result.failed == []
        assert surviving(tmp_path) == newest
        assert {p.name for p in result.retained} == newest

    def test_no_op_when_within_limit(self, tmp_path, logger, log_stream):
        """Nothing is deleted and one informational message is logged."""
        make_snapshots(tmp_path, 2)

        result = RetentionPruner(logger).prune(tmp_path, "*.tar", 5)

        assert result.deleted == []
        assert surviving(tmp_path) == {"nas-000.tar", "nas-001.tar"}
        output = log_stream.getvalue()
        assert "No old backups to remove." in output
        assert "Deleting" not in output
        assert "[WARN]" not in output
        assert len(output.splitlines()) == 1
        assert output.rstrip().endswith("[INFO] No old backups to remove.")

    def test_idempotent(self, tmp_path, logger):
        """A second pass with the same keep changes nothing."""
        make_snapshots(tmp_path, 8)
        pruner = RetentionPruner(logger)

        pruner.prune(tmp_path, "*.tar", 3)
        after_first = surviving(tmp_path)
        second = pruner.prune(tmp_path, "*.tar", 3)

        assert surviving(tmp_path) == after_first
        assert second.deleted == []

    def test_non_matching_files_untouched(self, tmp_path, logger):
        make_snapshots(tmp_path, 4)
        make_snapshots(tmp_path, 4, suffix=".db")

        RetentionPruner(logger).prune(tmp_path, "*.tar", 1)

        assert len(surviving(tmp_path, "*.db")) == 4
        assert surviving(tmp_path) == {"nas-003.tar"}

    def test_deletion_failure_does_not_stop_the_loop(self, tmp_path, logger, log_stream, monkeypatch):
        """One file that cannot be removed is logged and the rest still go."""
        paths = make_snapshots(tmp_path, 5)
        stubborn = paths[1]
        real_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self == stubborn:
                raise PermissionError("permission denied")
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        result = RetentionPruner(logger).prune(tmp_path, "*.tar", 2)

        assert result.failed == [stubborn]
        assert set(result.deleted) == {paths[2], paths[0]}
        assert surviving(tmp_path) == {"nas-004.tar", "nas-003.tar", "nas-001.tar"}
        assert f"[WARN] Failed to delete {stubborn}" in log_stream.getvalue()

    def test_keep_below_one_rejected(self, tmp_path, logger):
        make_snapshots(tmp_path, 3)
        with pytest.raises(ConfigurationError):
            RetentionPruner(logger).prune(tmp_path, "*.tar", 0)
        assert len(surviving(tmp_path)) == 3


class TestPruneResult:
    """Tests for the PruneResult summary."""

    def test_to_dict(self):
        result = PruneResult(
            retained=[Path("/b/new.tar")],
            deleted=[Path("/b/old.tar")],
            failed=[Path("/b/locked.tar")],
        )
        assert result.candidates == 2
        assert result.to_dict() == {
            "retained": ["/b/new.tar"],
            "deleted": ["/b/old.tar"],
            "failed": ["/b/locked.tar"],
        }
