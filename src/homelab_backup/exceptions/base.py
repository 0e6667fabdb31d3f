"""Base exception classes for homelab backup workflows.

All backup exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Workflow errors also carry the process exit code they map to.
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class ExitCode(IntEnum):
    """Process exit codes shared by every backup workflow."""

    SUCCESS = 0
    CONFIGURATION_ERROR = 1
    TRANSPORT_ERROR = 2
    INTEGRITY_ERROR = 3

    # Same status as a configuration error; the backup tool itself failed
    BACKUP_FAILED = 1


class BackupError(Exception):
    """Base exception for all backup errors.

    Attributes:
        code: Machine-readable error code (e.g., "MISSING_SETTING")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
        exit_code: Process exit code this error terminates the run with
    """

    exit_code: ExitCode = ExitCode.CONFIGURATION_ERROR

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with structured information.

        Args:
            code: Machine-readable error code (e.g., "MISSING_SETTING")
            message: Human-readable error message
            details: Optional additional context
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, details and exit_code keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "exit_code": int(self.exit_code),
        }


class ConfigurationError(BackupError):
    """Missing or invalid setting, or a missing external dependency.

    Raised before any side effect is attempted.
    """

    exit_code = ExitCode.CONFIGURATION_ERROR


class TransportError(BackupError):
    """The remote request failed or returned a non-success status.

    Any partially written artifact is removed.
    """

    exit_code = ExitCode.TRANSPORT_ERROR


class IntegrityError(BackupError):
    """The remote request succeeded but the payload is empty or unusable.

    The artifact is left on disk for inspection.
    """

    exit_code = ExitCode.INTEGRITY_ERROR


class BackupClientError(BackupError):
    """The external backup client could not be started or reported failure."""

    exit_code = ExitCode.BACKUP_FAILED
