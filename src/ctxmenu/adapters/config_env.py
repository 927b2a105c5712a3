"""Env configuration adapter producing a structured AppConfig."""

from __future__ import annotations

from pathlib import Path

from ..config import config as env_config
from ..core.config_model import AppConfig


def load_app_config() -> AppConfig:
    return AppConfig(
        debug=env_config.DEBUG,
        settings_path=env_config.SETTINGS_PATH,
        backup_dir=env_config.BACKUP_DIR,
        backup_limit=env_config.BACKUP_LIMIT,
        max_attempts=env_config.MAX_ATTEMPTS,
        retry_delay=env_config.RETRY_DELAY,
        reload_timeout=env_config.RELOAD_TIMEOUT,
        debounce=env_config.DEBOUNCE,
        poll_interval=env_config.POLL_INTERVAL,
        shell_path=Path(env_config.SHELL_PATH) if env_config.SHELL_PATH else None,
    )
