"""Count-based retention for snapshot files

Keeps the newest N files matching a pattern in a directory and deletes
the rest. Deletion is best effort: a file that cannot be removed is
logged and skipped so that pruning never fails a backup that already
succeeded.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from homelab_backup.exceptions import ConfigurationError
from homelab_backup.logger import Logger


@dataclass
class PruneResult:
    """Outcome of a prune pass"""
    retained: List[Path] = field(default_factory=list)
    deleted: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)

    @property
    def candidates(self) -> int:
        return len(self.deleted) + len(self.failed)

    def to_dict(self) -> dict:
        return {
            'retained': [str(p) for p in self.retained],
            'deleted': [str(p) for p in self.deleted],
            'failed': [str(p) for p in self.failed],
        }


class RetentionPruner:
    """Deletes all but the most recent matching files in a directory"""

    def __init__(self, logger: Logger):
        self.logger = logger

    def scan(self, directory: Path, pattern: str) -> List[Path]:
        """Matching regular files, newest first.

        Ties in modification time are ordered by name so repeated scans
        of an unchanged directory return the same list.
        """
        directory = Path(directory)
        if not directory.is_dir():
            return []

        entries = []
        for candidate in directory.glob(pattern):
            try:
                if not candidate.is_file():
                    continue
                entries.append((candidate.stat().st_mtime, candidate.name, candidate))
            except OSError as e:
                # Vanished or unreadable between glob and stat
                self.logger.warning(f"Skipping {candidate}: {e}")

        entries.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [path for _, _, path in entries]

    def prune(self, directory: Path, pattern: str, keep: int) -> PruneResult:
        """Keep only the ``keep`` most recent files matching ``pattern``

        Args:
            directory: Directory holding the snapshot files
            pattern: Glob pattern, e.g. "*.tar"
            keep: Number of files to retain (>= 1)

        Returns:
            PruneResult listing retained, deleted and failed paths

        Raises:
            ConfigurationError: If keep is lower than 1
        """
        if keep < 1:
            raise ConfigurationError(
                "INVALID_SETTING",
                f"Retention count must be at least 1, got {keep}",
                details={"keep": keep},
            )

        self.logger.debug(f"Checking for old backups to remove (keeping last {keep})...")

        files = self.scan(directory, pattern)
        result = PruneResult(retained=files[:keep])

        if len(files) <= keep:
            self.logger.info("No old backups to remove.")
            return result

        for old_file in files[keep:]:
            self.logger.info(f"Deleting old backup: {old_file}")
            try:
                old_file.unlink()
                result.deleted.append(old_file)
            except FileNotFoundError:
                # Already gone, which is the state we wanted
                result.deleted.append(old_file)
            except OSError as e:
                self.logger.warning(f"Failed to delete {old_file}: {e}")
                result.failed.append(old_file)

        self.logger.info(
            f"Retention complete: {len(result.deleted)} removed, "
            f"{len(result.failed)} failed, {len(result.retained)} kept"
        )
        return result

