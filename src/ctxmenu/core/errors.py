"""Error types raised by the context-menu core."""

from __future__ import annotations


class ContextMenuEditError(Exception):
    """Base class for context-menu editing failures."""


class ShellNotInstalledError(ContextMenuEditError):
    """Nilesoft Shell could not be located."""


class ConfigWriteError(ContextMenuEditError):
    """The generated configuration could not be written.

    Attributes:
        attempts: Number of write attempts made before giving up
        permission_denied: True when the failure needs elevation or the
            target is read-only
    """

    def __init__(self, message: str, attempts: int, permission_denied: bool = False):
        super().__init__(message)
        self.attempts = attempts
        self.permission_denied = permission_denied
