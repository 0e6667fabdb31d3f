"""
Homelab Backup Logger Module

Provides the logging interface handed to every backup component. Each run
builds one logger and passes it down explicitly.

Usage:
    from homelab_backup.logger import create_logger

    logger = create_logger(
        name="backup-truenas-config",
        log_file="/var/log/backup-truenas-config.log",
    )
    logger.info("Starting TrueNAS configuration backup")

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    {PREFIX}_LOG_FILE: File path for log output (overrides the default)
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is derived from the logger name
    (e.g., BACKUP_TRUENAS_CONFIG for "backup-truenas-config")
"""

import logging
import os
from typing import Mapping, Optional, TextIO

from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix.

    Examples:
        "backup-truenas-config" -> "BACKUP_TRUENAS_CONFIG"
        "backup-proxmox-host-config" -> "BACKUP_PROXMOX_HOST_CONFIG"
    """
    return name.upper().replace("-", "_")


def create_logger(
    name: str = "homelab-backup",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
    default_log_file: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> Logger:
    """Create a new logger instance with the specified configuration.

    Explicit arguments win. The environment ({PREFIX}_LOG_*) is consulted
    for anything left as None, and ``default_log_file`` is used when
    neither names a log file.

    Args:
        name: Logger name (e.g., "backup-truenas-config")
        level: Logging level (defaults to INFO or env var)
        log_file: File path for log output
        json_format: If True, output logs as JSON
        default_log_file: Log file used when nothing else names one
        env: Mapping to read settings from (default: os.environ)
        stream: Console stream (default: stdout)

    Returns:
        A configured Logger instance
    """
    env = os.environ if env is None else env
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = env.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = env.get(f"{env_prefix}_LOG_FILE") or default_log_file

    if json_format is None:
        json_format = env.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
        stream=stream,
    )


def get_logger(name: str = "homelab-backup") -> Logger:
    """Get a logger configured from environment variables only."""
    return create_logger(name=name)


__all__ = [
    "Logger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
]
