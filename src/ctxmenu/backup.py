"""Timestamped backups of the generated configuration file."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "powertoys_"
BACKUP_SUFFIX = ".nss"


class BackupManager:
    """Copies the current config aside and keeps the newest ``keep`` copies."""

    def __init__(
        self,
        backup_dir: Path,
        keep: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backup_dir = Path(backup_dir)
        self.keep = keep
        self._clock = clock

    def backups(self) -> list[Path]:
        """Existing backups, newest first (by modification time)."""
        if not self.backup_dir.is_dir():
            return []
        files = [p for p in self.backup_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}") if p.is_file()]
        return sorted(files, key=lambda p: p.stat().st_mtime, reverse=True)

    def backup(self, target: Path) -> Path | None:
        """Copy ``target`` into the backup directory; None when it does not exist."""
        target = Path(target)
        if not target.is_file():
            logger.debug(f"No existing config to back up at {target}")
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = self._clock().strftime("%Y%m%d_%H%M%S_%f")
        destination = self.backup_dir / f"{BACKUP_PREFIX}{stamp}{BACKUP_SUFFIX}"
        # copyfile, not copy2: the backup's mtime must be the backup time
        shutil.copyfile(target, destination)
        logger.info(f"Backed up {target} to {destination}")

        self.prune()
        return destination

    def prune(self) -> list[Path]:
        """Delete all but the newest ``keep`` backups; returns the deleted paths."""
        removed = []
        for stale in self.backups()[self.keep:]:
            try:
                stale.unlink()
                removed.append(stale)
            except OSError as e:
                logger.warning(f"Could not delete old backup {stale}: {e}")
        if removed:
            logger.debug(f"Pruned {len(removed)} old backups")
        return removed
