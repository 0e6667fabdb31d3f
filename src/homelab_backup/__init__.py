"""Homelab Backup - configuration backups for homelab infrastructure.

This package provides:
- backup: Proxmox host configuration upload, TrueNAS configuration
  snapshots and count-based retention
- logger: Console + file logging handed explicitly to each component
- config: Environment and .env loading with typed accessors
- exceptions: Structured errors mapped to process exit codes
"""

__version__ = "1.0.0"

from homelab_backup.backup import (
    BackupJobConfig,
    ConfigBackupRunner,
    PruneResult,
    RemoteConfigSnapshotter,
    RetentionPruner,
    SnapshotRequest,
)

from homelab_backup.exceptions import (
    BackupError,
    BackupClientError,
    ConfigurationError,
    ExitCode,
    IntegrityError,
    TransportError,
)

from homelab_backup.logger import (
    Logger,
    StructuredLogger,
    create_logger,
    get_logger,
)

__all__ = [
    "__version__",
    # Backup
    "BackupJobConfig",
    "ConfigBackupRunner",
    "PruneResult",
    "RemoteConfigSnapshotter",
    "RetentionPruner",
    "SnapshotRequest",
    # Exceptions
    "BackupError",
    "BackupClientError",
    "ConfigurationError",
    "ExitCode",
    "IntegrityError",
    "TransportError",
    # Logger
    "Logger",
    "StructuredLogger",
    "create_logger",
    "get_logger",
]
