"""Proxmox host configuration backup

Uploads host configuration directories to a Proxmox Backup Server
repository by running proxmox-backup-client once. The client does all
encoding and transport; its exit status is the only success signal.
"""

import os
import shutil
import subprocess
from datetime import datetime
from typing import Callable, List, Optional

from homelab_backup.backup.config import BackupJobConfig
from homelab_backup.exceptions import BackupClientError, BackupError, ConfigurationError, ExitCode
from homelab_backup.logger import Logger


class ConfigBackupRunner:
    """Runs one backup of the configured source paths"""

    def __init__(
        self,
        config: BackupJobConfig,
        logger: Logger,
        which: Callable[[str], Optional[str]] = shutil.which,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.logger = logger
        self._which = which
        self._run = run
        self._clock = clock

    def check_requirements(self) -> str:
        """Validate prerequisites before anything is executed

        Returns:
            Resolved path of the backup client

        Raises:
            ConfigurationError: If the client is missing or a required setting is empty
        """
        client = self._which(self.config.client_binary)
        if not client:
            raise ConfigurationError(
                "CLIENT_NOT_FOUND",
                f"{self.config.client_binary} not found. Please install it.",
            )
        missing = self.config.missing_settings()
        if missing:
            raise ConfigurationError(
                "MISSING_SETTING",
                f"{missing[0]} environment variable not set.",
                details={"missing": missing},
            )
        return client

    def build_command(self, client: str, when: datetime) -> List[str]:
        return [
            client,
            "backup",
            *self.config.archive_specs(when),
            "--repository",
            self.config.repository,
            "--backup-id",
            self.config.backup_id,
        ]

    def _child_env(self) -> dict:
        env = dict(os.environ)
        env["PBS_REPOSITORY"] = self.config.repository
        env["PBS_PASSWORD"] = self.config.password.get_secret_value()
        return env

    def execute(self) -> None:
        """Run the backup, raising BackupError on any failure

        Raises:
            ConfigurationError: If a prerequisite is missing
            BackupClientError: If the client cannot be started or exits non-zero
        """
        client = self.check_requirements()

        when = self._clock()
        self.logger.info(f"Hostname: {self.config.hostname}")
        self.logger.info(f"Date: {when.strftime('%Y-%m-%d')}")
        self.logger.info(f"Repository: {self.config.repository}")
        self.logger.info(f"Backup ID: {self.config.backup_id}")

        command = self.build_command(client, when)
        self.logger.debug(f"Running: {' '.join(command)}")

        try:
            completed = self._run(command, env=self._child_env(), check=False)
        except OSError as e:
            raise BackupClientError(
                "CLIENT_FAILED",
                f"Backup failed: could not start {client}: {e}",
            ) from e

        if completed.returncode != 0:
            raise BackupClientError(
                "CLIENT_FAILED",
                f"Backup failed with exit status {completed.returncode}.",
                details={"returncode": completed.returncode},
            )

    def run(self) -> ExitCode:
        """Run the workflow and map the outcome to a process exit code"""
        self.logger.info("Starting Proxmox host configuration backup...")
        try:
            self.execute()
        except BackupError as e:
            self.logger.error(e.message)
            return e.exit_code

        self.logger.info("Backup completed successfully.")
        self.logger.info("Backup process finished.")
        return ExitCode.SUCCESS
