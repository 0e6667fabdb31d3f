"""Command line entry points for the backup workflows.

Usage:
    # Proxmox host configuration to a Proxmox Backup Server
    export PBS_REPOSITORY='backup@pbs!api@host:datastore'
    export PBS_PASSWORD='...'
    backup-proxmox-host-config

    # TrueNAS configuration snapshot with retention
    export TRUENAS_HOST='192.168.1.50'
    export TRUENAS_API_KEY='...'
    export BACKUP_DIR='/mnt/backups/truenas'
    backup-truenas-config

    # Settings may also come from a .env file
    backup-truenas-config --env-file /etc/homelab-backup/truenas.env

Exit codes:
    0 - Success
    1 - Missing or invalid configuration
    2 - Backup request failed
    3 - Backup file empty, missing or invalid

Scheduling is left to cron or a systemd timer, e.g.:
    0 0 * * * /usr/local/bin/backup-proxmox-host-config
"""

import argparse
import sys
from typing import List, Optional

from homelab_backup.backup import (
    BackupJobConfig,
    ConfigBackupRunner,
    RemoteConfigSnapshotter,
    SnapshotRequest,
)
from homelab_backup.config import EnvLoader
from homelab_backup.exceptions import ConfigurationError
from homelab_backup.logger import create_logger

PROXMOX_LOG_NAME = "backup-proxmox-host-config"
TRUENAS_LOG_NAME = "backup-truenas-config"
LOG_DIR = "/var/log"


def parse_args(description: str, log_name: str, argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Read settings from this .env file (default: ./.env if present)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help=f"Log file path (default: {LOG_DIR}/{log_name}.log)",
    )
    return parser.parse_args(argv)


def proxmox_main(argv: Optional[List[str]] = None) -> int:
    """Back up Proxmox host configuration with proxmox-backup-client."""
    args = parse_args("Back up Proxmox host configuration to a Proxmox Backup Server",
                      PROXMOX_LOG_NAME, argv)

    try:
        env = EnvLoader(args.env_file).load()
    except ConfigurationError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return int(e.exit_code)

    logger = create_logger(PROXMOX_LOG_NAME, log_file=args.log_file,
                           default_log_file=f"{LOG_DIR}/{PROXMOX_LOG_NAME}.log", env=env)
    try:
        try:
            config = BackupJobConfig.from_env(env)
        except ConfigurationError as e:
            logger.error(e.message)
            return int(e.exit_code)
        return int(ConfigBackupRunner(config, logger).run())
    finally:
        logger.close()


def truenas_main(argv: Optional[List[str]] = None) -> int:
    """Save TrueNAS configuration through the REST API and prune old copies."""
    args = parse_args("Save the TrueNAS system configuration and keep the newest N copies",
                      TRUENAS_LOG_NAME, argv)

    try:
        env = EnvLoader(args.env_file).load()
    except ConfigurationError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return int(e.exit_code)

    logger = create_logger(TRUENAS_LOG_NAME, log_file=args.log_file,
                           default_log_file=f"{LOG_DIR}/{TRUENAS_LOG_NAME}.log", env=env)
    try:
        try:
            request = SnapshotRequest.from_env(env)
        except ConfigurationError as e:
            logger.error(e.message)
            return int(e.exit_code)
        return int(RemoteConfigSnapshotter(request, logger).run())
    finally:
        logger.close()


def main_proxmox() -> None:
    sys.exit(proxmox_main())


def main_truenas() -> None:
    sys.exit(truenas_main())
