"""Core configuration model (structured view)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    debug: bool
    settings_path: Path
    backup_dir: Path
    backup_limit: int
    max_attempts: int
    retry_delay: float
    reload_timeout: float
    debounce: float
    poll_interval: float
    shell_path: Path | None = None
