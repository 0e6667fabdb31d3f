"""Configuration Module for homelab backup workflows

Example:
    from homelab_backup.config import EnvLoader, env_int

    env = EnvLoader(".env").load()
    retain = env_int(env, "BACKUP_RETAIN", 30)
"""

from homelab_backup.config.env_loader import EnvLoader, env_bool, env_float, env_int, env_str

__all__ = [
    "EnvLoader",
    "env_bool",
    "env_float",
    "env_int",
    "env_str",
]
