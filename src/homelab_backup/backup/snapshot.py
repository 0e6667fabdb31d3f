"""TrueNAS configuration snapshots

Downloads the system configuration through the TrueNAS REST API
(``POST /api/v2.0/config/save``), stores it as a timestamped tar file and
caps the number of stored snapshots.
"""

import tarfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import httpx

from homelab_backup.backup.config import SnapshotRequest
from homelab_backup.backup.retention import RetentionPruner
from homelab_backup.exceptions import (
    BackupError,
    ConfigurationError,
    ExitCode,
    IntegrityError,
    TransportError,
)
from homelab_backup.logger import Logger

SNAPSHOT_PATTERN = "*.tar"
CHUNK_SIZE = 64 * 1024

USAGE_EXAMPLE = (
    "  export TRUENAS_HOST='192.168.1.50'",
    "  export TRUENAS_API_KEY='<api key from the TrueNAS web interface>'",
    "  export BACKUP_DIR='/mnt/backups/truenas'",
    "  export BACKUP_RETAIN=7",
)


class RemoteConfigSnapshotter:
    """Takes one configuration snapshot and applies retention"""

    def __init__(
        self,
        request: SnapshotRequest,
        logger: Logger,
        client: Optional[httpx.Client] = None,
        pruner: Optional[RetentionPruner] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.request = request
        self.logger = logger
        self._client = client
        self.pruner = pruner or RetentionPruner(logger)
        self._clock = clock

    def check_requirements(self) -> Path:
        """Validate settings and prepare the backup directory

        Returns:
            The backup directory

        Raises:
            ConfigurationError: If a setting is missing or the directory is unusable
        """
        missing = self.request.missing_settings()
        if missing:
            raise ConfigurationError(
                "MISSING_SETTING",
                "Environment variables TRUENAS_HOST, TRUENAS_API_KEY and BACKUP_DIR must be set.",
                details={"missing": missing},
            )

        backup_dir = self.request.backup_dir
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                "BACKUP_DIR_UNAVAILABLE",
                f"Failed to create or access backup directory: {backup_dir}",
                details={"error": str(e)},
            ) from e
        if not backup_dir.is_dir():
            raise ConfigurationError(
                "BACKUP_DIR_UNAVAILABLE",
                f"Failed to create or access backup directory: {backup_dir}",
            )
        return backup_dir

    def _new_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.request.timeout)

    def download(self, target: Path) -> int:
        """Stream the snapshot body into ``target``

        Returns:
            HTTP status code of the response

        Raises:
            TransportError: If the request could not be completed
        """
        client = self._client or self._new_client()
        try:
            with client.stream(
                "POST",
                self.request.url,
                headers=self.request.headers(),
                json={},
            ) as response:
                with open(target, 'wb') as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                return response.status_code
        except httpx.HTTPError as e:
            raise TransportError(
                "REQUEST_FAILED",
                f"Backup request failed ({type(e).__name__}: {e}).",
            ) from e
        except OSError as e:
            raise TransportError(
                "WRITE_FAILED",
                f"Failed to write backup file {target}: {e}",
            ) from e
        finally:
            if self._client is None:
                client.close()

    def _remove_partial(self, target: Path) -> None:
        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Failed to remove incomplete backup {target}: {e}")

    def validate(self, target: Path) -> None:
        """Check the stored snapshot; leaves the file in place on failure

        Raises:
            IntegrityError: If the file is missing or empty, or fails the archive check
        """
        if not target.is_file() or target.stat().st_size == 0:
            raise IntegrityError(
                "EMPTY_SNAPSHOT",
                "Backup file is empty or missing.",
                details={"path": str(target)},
            )

        if self.request.verify_archive:
            try:
                with tarfile.open(target, 'r:*') as tar:
                    members = tar.getmembers()
            except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
                raise IntegrityError(
                    "INVALID_SNAPSHOT",
                    f"Backup file is not a readable tar archive: {e}",
                    details={"path": str(target)},
                ) from e
            if not members:
                raise IntegrityError(
                    "EMPTY_ARCHIVE",
                    "Backup archive contains no files.",
                    details={"path": str(target)},
                )

    def snapshot(self) -> Path:
        """Download and validate one snapshot

        Returns:
            Path of the stored snapshot

        Raises:
            BackupError: ConfigurationError, TransportError or IntegrityError
        """
        self.check_requirements()
        target = self.request.snapshot_path(self._clock())

        self.logger.info(f"Starting TrueNAS configuration backup from {self.request.host}...")
        self.logger.info(f"Output file: {target}")

        try:
            status = self.download(target)
        except TransportError:
            self._remove_partial(target)
            raise

        if status != 200:
            self._remove_partial(target)
            raise TransportError(
                "REQUEST_FAILED",
                f"Backup request failed (HTTP {status}).",
                details={"status": status},
            )

        self.validate(target)

        self.logger.info("Backup completed successfully.")
        self.logger.info(f"Backup stored at: {target}")
        return target

    def run(self) -> ExitCode:
        """Run the workflow and map the outcome to a process exit code"""
        try:
            self.snapshot()
        except BackupError as e:
            self.logger.error(e.message)
            if e.code == "MISSING_SETTING":
                self.logger.info("Example:")
                for line in USAGE_EXAMPLE:
                    self.logger.info(line)
            return e.exit_code

        try:
            self.pruner.prune(self.request.backup_dir, SNAPSHOT_PATTERN, self.request.retain)
        except OSError as e:
            self.logger.warning(f"Retention check failed: {e}")

        self.logger.info("Backup and cleanup process finished.")
        return ExitCode.SUCCESS
