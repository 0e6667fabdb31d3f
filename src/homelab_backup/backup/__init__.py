"""Homelab Backup Workflows

Usage:
    from homelab_backup.backup import SnapshotRequest, RemoteConfigSnapshotter
    from homelab_backup.logger import create_logger

    logger = create_logger("backup-truenas-config")
    request = SnapshotRequest.from_env()
    exit_code = RemoteConfigSnapshotter(request, logger).run()
"""

from homelab_backup.backup.config import BackupJobConfig, SnapshotRequest
from homelab_backup.backup.retention import PruneResult, RetentionPruner
from homelab_backup.backup.runner import ConfigBackupRunner
from homelab_backup.backup.snapshot import RemoteConfigSnapshotter

__all__ = [
    "BackupJobConfig",
    "SnapshotRequest",
    "ConfigBackupRunner",
    "RemoteConfigSnapshotter",
    "RetentionPruner",
    "PruneResult",
]
