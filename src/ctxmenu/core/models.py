"""Settings and discovery models for context-menu editing.

All settings entities are frozen dataclasses holding tuples, so a loaded
``MenuSettings`` value can be handed to a background apply cycle as a
snapshot without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ContextScope(Enum):
    """Explorer surface a menu entry is placed on."""

    FILE = "file"
    FOLDER = "folder"
    BACKGROUND = "background"
    ALL = "all"

    @property
    def accepts_file_types(self) -> bool:
        """True when extension filters make sense for this scope."""
        return self in (ContextScope.FILE, ContextScope.ALL)

    @classmethod
    def parse(cls, value) -> "ContextScope":
        """Parse a persisted scope name (``*`` means every surface)."""
        if isinstance(value, ContextScope):
            return value
        text = str(value or "").strip().lower()
        if text in ("", "*"):
            return cls.ALL
        if text in ("directory", "dir"):
            return cls.FOLDER
        return cls(text)


@dataclass(frozen=True)
class MenuAction:
    """A new entry to inject into the context menu.

    Attributes:
        id: Stable identifier chosen by the settings UI
        title: Label shown in the menu
        command: Executable or script to launch
        arguments: Command-line arguments (``%1``, ``%V`` placeholders allowed)
        icon: Icon reference (path, optionally ``path,index``)
        working_directory: Directory the command starts in
        scope: Menu surface the entry appears on
        file_types: Extension filters, only honoured for file-applicable scopes
        requires_admin: Launch elevated
        extended_only: Only visible with Shift held
        enabled: Whether the entry is emitted at all
    """

    id: str = ""
    title: str = ""
    command: str = ""
    arguments: str = ""
    icon: str = ""
    working_directory: str = ""
    scope: ContextScope = ContextScope.ALL
    file_types: tuple[str, ...] = ()
    requires_admin: bool = False
    extended_only: bool = False
    enabled: bool = True

    @property
    def is_emittable(self) -> bool:
        return self.enabled and bool(self.title) and bool(self.command)


@dataclass(frozen=True)
class MenuModification:
    """Override fields of an existing entry matched by title (and command)."""

    target_title: str
    target_command: str = ""
    new_title: str = ""
    new_icon: str = ""
    new_command: str = ""
    new_arguments: str = ""
    visible: bool | None = None  # None leaves visibility untouched
    enabled: bool = True

    @property
    def has_overrides(self) -> bool:
        return bool(
            self.new_title
            or self.new_icon
            or self.new_command
            or self.new_arguments
            or self.visible is not None
        )


@dataclass(frozen=True)
class MenuRemoval:
    """Suppress an existing entry matched by title (and command, if given)."""

    target_title: str
    target_command: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class ExistingMenuItem:
    """A context-menu entry registered by some other application."""

    title: str
    command: str = ""
    icon: str = ""
    source_app: str = ""
    registry_location: str = ""
    detected_scope: ContextScope = ContextScope.ALL
    is_legacy: bool = True
    is_modified: bool = False
    is_hidden: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.title, self.command)


@dataclass(frozen=True)
class MenuSettings:
    """Snapshot of the user's context-menu preferences."""

    enabled: bool = True
    auto_install: bool = True
    auto_backup: bool = True
    show_notifications: bool = True
    actions: tuple[MenuAction, ...] = field(default_factory=tuple)
    modifications: tuple[MenuModification, ...] = field(default_factory=tuple)
    removals: tuple[MenuRemoval, ...] = field(default_factory=tuple)
