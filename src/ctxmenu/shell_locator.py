"""Nilesoft Shell locator.

Finds the Shell install, decides where ``powertoys.nss`` is written, and
drives ``shell.exe reload``. Installation itself is left to the user; the
locator only points at the download page.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import webbrowser
from pathlib import Path

from .core.errors import ShellNotInstalledError
from .platform_utils import known_folder, roaming_app_data, local_app_data

logger = logging.getLogger(__name__)

SHELL_EXE = "shell.exe"
SHELL_DIR_NAME = "Nilesoft Shell"
CONFIG_FILE_NAME = "powertoys.nss"
DOWNLOAD_URL = "https://nilesoft.org/download"


def default_install_candidates() -> list[Path]:
    """Well-known Nilesoft Shell install locations, most common first."""
    return [
        known_folder("ProgramFiles", "Program Files") / SHELL_DIR_NAME,
        known_folder("ProgramFiles(x86)", "Program Files (x86)") / SHELL_DIR_NAME,
        local_app_data() / SHELL_DIR_NAME,
        roaming_app_data() / SHELL_DIR_NAME,
    ]


def _is_writable(directory: Path) -> bool:
    """True when ``directory`` (or its nearest existing ancestor) accepts writes."""
    candidate = directory
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return candidate.is_dir() and os.access(candidate, os.W_OK)


def _format_version(info: dict) -> str:
    ms = info["FileVersionMS"]
    ls = info["FileVersionLS"]
    return f"{ms >> 16}.{ms & 0xFFFF}.{ls >> 16}.{ls & 0xFFFF}"


class NilesoftShell:
    """ShellEngine implementation for Nilesoft Shell."""

    def __init__(
        self,
        install_candidates: list[Path] | None = None,
        user_dir: Path | None = None,
        backup_dir: Path | None = None,
        search_path: bool = True,
    ):
        self._candidates = (
            list(install_candidates) if install_candidates is not None else default_install_candidates()
        )
        self._user_dir = user_dir or roaming_app_data() / SHELL_DIR_NAME
        self._backup_dir = backup_dir or (
            local_app_data() / "Microsoft" / "PowerToys" / "ContextMenuEdit" / "Backups"
        )
        self._search_path = search_path

    def find_install_directory(self) -> Path | None:
        for path in self._candidates:
            if (path / SHELL_EXE).is_file():
                logger.info(f"Found Shell installation at {path}")
                return path

        if self._search_path:
            found = shutil.which(SHELL_EXE)
            if found:
                logger.info(f"Found Shell in PATH at {Path(found).parent}")
                return Path(found).parent

        logger.info("Shell installation not found")
        return None

    def is_installed(self) -> bool:
        return self.find_install_directory() is not None

    def get_config_path(self) -> Path:
        """Per-user imports file when writable, else the install imports file."""
        user_path = self._user_dir / "imports" / CONFIG_FILE_NAME
        if _is_writable(user_path.parent):
            return user_path

        install_dir = self.find_install_directory()
        if install_dir is not None:
            install_path = install_dir / "imports" / CONFIG_FILE_NAME
            if _is_writable(install_path.parent):
                return install_path

        logger.warning(f"No writable config path found, using: {user_path}")
        return user_path

    def get_backup_directory(self) -> Path:
        return self._backup_dir

    def _require_exe(self) -> Path:
        install_dir = self.find_install_directory()
        if install_dir is None:
            raise ShellNotInstalledError("Nilesoft Shell is not installed")
        return install_dir / SHELL_EXE

    def reload(self, timeout: float | None = None) -> int:
        """Run ``shell.exe reload`` and return its exit code.

        Raises:
            ShellNotInstalledError: If no installation was found
            subprocess.TimeoutExpired: If the reload outlives ``timeout``
        """
        shell_exe = self._require_exe()
        logger.info("Reloading Shell configuration")

        kwargs = {}
        if hasattr(subprocess, "CREATE_NO_WINDOW"):
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW

        result = subprocess.run(
            [str(shell_exe), "reload"],
            capture_output=True,
            text=True,
            timeout=timeout,
            **kwargs,
        )
        if result.returncode == 0:
            logger.info("Shell configuration reloaded successfully")
            if result.stdout:
                logger.debug(f"Shell stdout: {result.stdout.strip()}")
        else:
            logger.error(f"Shell reload failed with exit code {result.returncode}")
            if result.stderr:
                logger.error(f"Shell stderr: {result.stderr.strip()}")
        return result.returncode

    def get_version(self) -> str:
        install_dir = self.find_install_directory()
        if install_dir is None:
            return "Not installed"

        shell_exe = install_dir / SHELL_EXE
        if not shell_exe.is_file():
            return "Invalid installation"

        try:
            import win32api

            info = win32api.GetFileVersionInfo(str(shell_exe), "\\")
            return _format_version(info)
        except ImportError:
            logger.warning("pywin32 not installed - Shell version unavailable")
            return "Unknown"
        except Exception as e:
            logger.error(f"Failed to get Shell version: {e}")
            return "Unknown"

    def request_install(self, open_browser: bool) -> None:
        logger.info(f"Nilesoft Shell must be installed manually from {DOWNLOAD_URL}")
        if open_browser:
            try:
                webbrowser.open(DOWNLOAD_URL)
            except webbrowser.Error as e:
                logger.warning(f"Could not open download page: {e}")
