"""Process-level configuration for ctxmenu, read from the environment."""

import os
from pathlib import Path

from dotenv import load_dotenv

from .platform_utils import local_app_data

load_dotenv()

_DATA_DIR = local_app_data() / "Microsoft" / "PowerToys" / "ContextMenuEdit"


def _float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


class Config:
    """Environment-backed settings"""

    DATA_DIR = _DATA_DIR

    # Preference file written by the settings UI
    SETTINGS_PATH = Path(os.getenv("CTXMENU_SETTINGS_PATH", str(_DATA_DIR / "settings.json")))

    # Backups of the generated .nss file
    BACKUP_DIR = Path(os.getenv("CTXMENU_BACKUP_DIR", str(_DATA_DIR / "Backups")))
    BACKUP_LIMIT = _int("CTXMENU_BACKUP_LIMIT", 10)

    # Apply cycle
    MAX_ATTEMPTS = _int("CTXMENU_MAX_ATTEMPTS", 3)
    RETRY_DELAY = _float("CTXMENU_RETRY_DELAY", 0.5)
    RELOAD_TIMEOUT = _float("CTXMENU_RELOAD_TIMEOUT", 30.0)

    # Preference watcher
    DEBOUNCE = _float("CTXMENU_DEBOUNCE", 0.5)
    POLL_INTERVAL = _float("CTXMENU_POLL_INTERVAL", 1.0)

    # Explicit Nilesoft Shell install directory, checked first
    SHELL_PATH = os.getenv("CTXMENU_SHELL_PATH", "")

    DEBUG = os.getenv("DEBUG", "false").lower() == "true"


config = Config()
