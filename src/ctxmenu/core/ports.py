"""Core ports (interfaces) for context-menu editing.

These protocols define the boundaries between the core (generator,
discovery, orchestrator) and the Windows-specific pieces: the registry, the
Nilesoft Shell executable and desktop notifications. They are intentionally
small so tests can substitute in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RegistryReader(Protocol):
    """Read-only access to one view of a registry-like key tree."""

    def open_subkey(self, path: str) -> Any | None:
        """Open a key by full path (``HIVE\\sub\\path``); None when absent."""

    def subkey_names(self, handle: Any) -> list[str]:
        """Return the immediate child key names of an open key."""

    def get_value(self, handle: Any, name: str, default: Any = None) -> Any:
        """Return a named value (``""`` is the default value) or ``default``."""

    def close(self, handle: Any) -> None:
        """Release a handle returned by ``open_subkey``."""


@runtime_checkable
class ShellEngine(Protocol):
    """The external shell-extension engine consuming the generated file."""

    def find_install_directory(self) -> Path | None:
        """Locate the engine install directory."""

    def is_installed(self) -> bool:
        """True when an installation was found."""

    def get_config_path(self) -> Path:
        """Path of the generated configuration file."""

    def get_backup_directory(self) -> Path:
        """Directory backups of the configuration file are kept in."""

    def reload(self, timeout: float | None = None) -> int:
        """Ask the engine to reload its configuration; returns the exit code."""

    def get_version(self) -> str:
        """Human-readable engine version."""

    def request_install(self, open_browser: bool) -> None:
        """Point the user at the engine installer."""


@runtime_checkable
class UIFeedback(Protocol):
    """User-visible notifications."""

    def notify(self, title: str, message: str) -> None:
        """Display a notification."""
