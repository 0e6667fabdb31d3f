"""Common exceptions for homelab backup workflows.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from homelab_backup.exceptions import (
        BackupError,
        BackupClientError,
        ConfigurationError,
        TransportError,
        IntegrityError,
        ExitCode,
    )
"""

from homelab_backup.exceptions.base import (
    BackupError,
    BackupClientError,
    ConfigurationError,
    ExitCode,
    IntegrityError,
    TransportError,
)

__all__ = [
    "BackupError",
    "BackupClientError",
    "ConfigurationError",
    "ExitCode",
    "IntegrityError",
    "TransportError",
]
