"""Backup job configuration

Typed, immutable settings for both workflows, built once per process from
the environment. Secrets are held as SecretStr so they never show up in
reprs or log lines.
"""

import socket
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from homelab_backup.config.env_loader import EnvLoader, env_bool, env_float, env_int, env_str
from homelab_backup.exceptions import ConfigurationError

DEFAULT_SOURCE_PATHS: List[Tuple[str, str]] = [
    ("etc", "/etc"),
    ("crontabs", "/var/spool/cron"),
]

SNAPSHOT_ENDPOINT = "/api/v2.0/config/save"
SNAPSHOT_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
ARCHIVE_DATE_FORMAT = "%Y-%m-%d"


def _load_env(env: Optional[Mapping[str, str]], env_file: Optional[Path]) -> Mapping[str, str]:
    if env is not None:
        return env
    return EnvLoader(env_file).load()


def _as_configuration_error(exc: ValidationError, model: str) -> ConfigurationError:
    problems = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return ConfigurationError(
        "INVALID_SETTING",
        f"Invalid {model} settings: {'; '.join(problems)}",
        details={"errors": problems},
    )


def parse_source_paths(value: str) -> List[Tuple[str, str]]:
    """Parse ``label:path,label:path`` into an ordered list of pairs."""
    pairs: List[Tuple[str, str]] = []
    for pair in value.split(','):
        if not pair.strip():
            continue
        if ':' not in pair:
            raise ConfigurationError(
                "INVALID_SETTING",
                f"Backup path entry must be 'label:path', got {pair.strip()!r}",
            )
        label, path = pair.split(':', 1)
        pairs.append((label.strip(), path.strip()))
    return pairs


class BackupJobConfig(BaseModel):
    """Settings for uploading host configuration with the backup client."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(
        default="",
        description="Backup server repository (user@realm!token@host:datastore)"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Repository password or API token secret"
    )
    hostname: str = Field(
        default_factory=lambda: socket.gethostname(),
        description="Host identifier used in the backup id"
    )
    source_paths: List[Tuple[str, str]] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_PATHS),
        description="Ordered (label, path) pairs, one archive each"
    )
    backup_id_prefix: str = Field(
        default="proxmox-host-config",
        description="Fixed prefix of the backup id"
    )
    archive_extension: str = Field(
        default="pxar",
        description="Archive type understood by the backup client"
    )
    client_binary: str = Field(
        default="proxmox-backup-client",
        description="Backup client executable name or path"
    )

    @field_validator('source_paths')
    @classmethod
    def validate_source_paths(cls, v: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        """Labels and paths must both be present"""
        for label, path in v:
            if not label or not path:
                raise ValueError("Each source path needs a label and a path")
        return v

    @property
    def backup_id(self) -> str:
        return f"{self.backup_id_prefix}-{self.hostname}"

    def archive_specs(self, when: datetime) -> List[str]:
        """Build one ``label-<date>.ext:path`` argument per source path."""
        date = when.strftime(ARCHIVE_DATE_FORMAT)
        return [
            f"{label}-{date}.{self.archive_extension}:{path}"
            for label, path in self.source_paths
        ]

    def missing_settings(self) -> List[str]:
        """Names of required variables that are empty."""
        missing = []
        if not self.repository:
            missing.append("PBS_REPOSITORY")
        if not self.password.get_secret_value():
            missing.append("PBS_PASSWORD")
        return missing

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ) -> "BackupJobConfig":
        """Create configuration from environment variables

        Required values are not enforced here; the runner checks them so
        that a missing setting is reported with the other preconditions.

        Environment variables:
            PBS_REPOSITORY: Repository target
            PBS_PASSWORD: Repository credential
            PBS_BACKUP_ID_PREFIX: Backup id prefix (default: proxmox-host-config)
            PBS_CLIENT_BINARY: Client executable (default: proxmox-backup-client)
            PBS_BACKUP_PATHS: "label:path,label:path" (default: etc:/etc,crontabs:/var/spool/cron)
            PBS_HOSTNAME: Host identifier (default: machine hostname)
        """
        env = _load_env(env, env_file)

        paths_env = env_str(env, "PBS_BACKUP_PATHS")
        source_paths = parse_source_paths(paths_env) if paths_env else list(DEFAULT_SOURCE_PATHS)

        values = {
            "repository": env_str(env, "PBS_REPOSITORY"),
            "password": SecretStr(env.get("PBS_PASSWORD", "")),
            "source_paths": source_paths,
            "backup_id_prefix": env_str(env, "PBS_BACKUP_ID_PREFIX", "proxmox-host-config"),
            "client_binary": env_str(env, "PBS_CLIENT_BINARY", "proxmox-backup-client"),
        }
        hostname = env_str(env, "PBS_HOSTNAME")
        if hostname:
            values["hostname"] = hostname

        try:
            return cls(**values)
        except ValidationError as exc:
            raise _as_configuration_error(exc, "Proxmox backup") from exc


class SnapshotRequest(BaseModel):
    """Settings for downloading a configuration snapshot over the REST API."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(
        default="",
        description="Management host name or IP address"
    )
    port: int = Field(
        default=80,
        description="Management HTTP port",
        ge=1,
        le=65535
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key sent as a bearer token"
    )
    backup_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding the snapshot files"
    )
    retain: int = Field(
        default=30,
        description="Number of most recent snapshots to keep",
        ge=1
    )
    timeout: Optional[float] = Field(
        default=None,
        description="HTTP timeout in seconds; None blocks until the server answers",
        gt=0
    )
    verify_archive: bool = Field(
        default=False,
        description="Reject a downloaded snapshot that is not a readable tar archive"
    )

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{SNAPSHOT_ENDPOINT}"

    def headers(self) -> dict:
        return {
            "Accept": "*/*",
            "Authorization": f"Bearer {self.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    def snapshot_path(self, when: datetime) -> Path:
        """Path of the snapshot file for a run started at ``when``."""
        if self.backup_dir is None:
            raise ConfigurationError("MISSING_SETTING", "BACKUP_DIR is not set")
        return self.backup_dir / f"{self.host}-{when.strftime(SNAPSHOT_TIMESTAMP_FORMAT)}.tar"

    def missing_settings(self) -> List[str]:
        """Names of required variables that are empty."""
        missing = []
        if not self.host:
            missing.append("TRUENAS_HOST")
        if not self.api_key.get_secret_value():
            missing.append("TRUENAS_API_KEY")
        if self.backup_dir is None:
            missing.append("BACKUP_DIR")
        return missing

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ) -> "SnapshotRequest":
        """Create configuration from environment variables

        Environment variables:
            TRUENAS_HOST: Management host (required)
            TRUENAS_PORT: HTTP port (default: 80)
            TRUENAS_API_KEY: API key (required)
            BACKUP_DIR: Snapshot directory (required)
            BACKUP_RETAIN: Snapshots to keep (default: 30)
            TRUENAS_TIMEOUT: HTTP timeout in seconds (default: none)
            TRUENAS_VERIFY_ARCHIVE: Check the tar archive after download (default: false)
        """
        env = _load_env(env, env_file)

        backup_dir = env_str(env, "BACKUP_DIR")
        try:
            return cls(
                host=env_str(env, "TRUENAS_HOST"),
                port=env_int(env, "TRUENAS_PORT", 80),
                api_key=SecretStr(env.get("TRUENAS_API_KEY", "").strip()),
                backup_dir=Path(backup_dir) if backup_dir else None,
                retain=env_int(env, "BACKUP_RETAIN", 30),
                timeout=env_float(env, "TRUENAS_TIMEOUT"),
                verify_archive=env_bool(env, "TRUENAS_VERIFY_ARCHIVE", False),
            )
        except ValidationError as exc:
            raise _as_configuration_error(exc, "TrueNAS snapshot") from exc
