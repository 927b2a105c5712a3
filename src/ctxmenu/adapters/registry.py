"""Registry reader adapter backed by ``winreg``.

Each reader is bound to one registry view so discovery can scan the same
logical tree through the default, 32-bit and 64-bit views.
"""

from __future__ import annotations

import logging

from ..platform_utils import IS_WINDOWS

logger = logging.getLogger(__name__)

VIEW_DEFAULT = "Default"
VIEW_32 = "Registry32"
VIEW_64 = "Registry64"

_HIVE_NAMES = {
    "HKEY_CLASSES_ROOT": "HKEY_CLASSES_ROOT",
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKEY_CURRENT_USER": "HKEY_CURRENT_USER",
    "HKCU": "HKEY_CURRENT_USER",
    "HKEY_LOCAL_MACHINE": "HKEY_LOCAL_MACHINE",
    "HKLM": "HKEY_LOCAL_MACHINE",
}


def split_hive(path: str) -> tuple[str | None, str]:
    """Split ``HIVE\\sub\\path`` into the canonical hive name and subpath."""
    hive, _, subpath = path.partition("\\")
    return _HIVE_NAMES.get(hive.upper()), subpath


class WinRegistryReader:
    """RegistryReader over the live Windows registry (read-only)."""

    def __init__(self, view: str = VIEW_DEFAULT):
        self.view = view

    def _access(self, winreg) -> int:
        access = winreg.KEY_READ
        if self.view == VIEW_32:
            access |= winreg.KEY_WOW64_32KEY
        elif self.view == VIEW_64:
            access |= winreg.KEY_WOW64_64KEY
        return access

    def open_subkey(self, path: str):
        import winreg

        hive_name, subpath = split_hive(path)
        if hive_name is None:
            logger.debug(f"Unsupported registry hive in {path}")
            return None
        try:
            return winreg.OpenKey(getattr(winreg, hive_name), subpath, 0, self._access(winreg))
        except FileNotFoundError:
            return None

    def subkey_names(self, handle) -> list[str]:
        import winreg

        names = []
        index = 0
        while True:
            try:
                names.append(winreg.EnumKey(handle, index))
            except OSError:
                break
            index += 1
        return names

    def get_value(self, handle, name: str, default=None):
        import winreg

        try:
            value, _ = winreg.QueryValueEx(handle, name)
        except FileNotFoundError:
            return default
        return value

    def close(self, handle) -> None:
        import winreg

        winreg.CloseKey(handle)


def default_readers() -> dict[str, WinRegistryReader]:
    """Readers for every registry view worth scanning on this machine."""
    if not IS_WINDOWS:
        logger.info("Registry discovery is only available on Windows")
        return {}
    return {view: WinRegistryReader(view) for view in (VIEW_DEFAULT, VIEW_32, VIEW_64)}
