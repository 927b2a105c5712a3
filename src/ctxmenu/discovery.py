"""Discovery of context-menu entries registered by other applications.

The engine aggregates independent sources. Each source is a zero-argument
callable returning ``ExistingMenuItem`` values; a source that raises is
logged and skipped, so one unreadable registry tree never hides the rest.

Sources:
  Level 1: Registry command trees (``...\\shell``) per registry view
  Level 2: Registry COM handler trees (``...\\ShellEx\\ContextMenuHandlers``)
  Level 3: Previously generated Shell configuration (detection only)
  Level 4: Catalogue of well-known clutter entries
"""

from __future__ import annotations

import logging
import os
import re
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

from .core.models import ContextScope, ExistingMenuItem
from .core.ports import RegistryReader, ShellEngine
from .generator import GENERATED_MARKER

logger = logging.getLogger(__name__)

DiscoverySource = Callable[[], list[ExistingMenuItem]]

COMMAND_TREES: dict[str, ContextScope] = {
    r"HKEY_CLASSES_ROOT\*\shell": ContextScope.FILE,
    r"HKEY_CLASSES_ROOT\Directory\shell": ContextScope.FOLDER,
    r"HKEY_CLASSES_ROOT\Directory\Background\shell": ContextScope.BACKGROUND,
    r"HKEY_CLASSES_ROOT\AllFilesystemObjects\shell": ContextScope.ALL,
}

HANDLER_TREES: dict[str, ContextScope] = {
    r"HKEY_CLASSES_ROOT\*\ShellEx\ContextMenuHandlers": ContextScope.FILE,
    r"HKEY_CLASSES_ROOT\Directory\ShellEx\ContextMenuHandlers": ContextScope.FOLDER,
    r"HKEY_CLASSES_ROOT\Directory\Background\ShellEx\ContextMenuHandlers": ContextScope.BACKGROUND,
}

CLSID_ROOT = r"HKEY_CLASSES_ROOT\CLSID"

# Substring (lower-case) -> application name, first match wins
SOURCE_APP_RULES: list[tuple[tuple[str, ...], str]] = [
    (("adobe",), "Adobe"),
    (("winrar",), "WinRAR"),
    (("7-zip", "7z"), "7-Zip"),
    (("notepad++",), "Notepad++"),
    (("microsoft vs code", "code.exe"), "Visual Studio Code"),
    (("git-bash", "git\\cmd", "git-gui"), "Git"),
]

COMMON_CLUTTER: list[tuple[str, str, ContextScope]] = [
    ("Edit with Adobe Photoshop", "Adobe", ContextScope.FILE),
    ("Edit with Paint 3D", "Microsoft", ContextScope.FILE),
    ("Add to archive", "WinRAR", ContextScope.ALL),
    ("Extract files", "WinRAR", ContextScope.FILE),
    ("Extract Here", "WinRAR", ContextScope.FILE),
    ("Extract to folder", "WinRAR", ContextScope.FILE),
    ("Send to Mail Recipient", "Windows", ContextScope.FILE),
    ("Fax Recipient", "Windows", ContextScope.FILE),
    ("Share", "Windows", ContextScope.FILE),
    ("Cast to Device", "Windows", ContextScope.FILE),
]

_GUID_RE = re.compile(r"^\{[0-9A-Fa-f-]{36}\}$")


def extract_executable(command: str) -> str:
    """Return the executable token of a command line."""
    command = command.strip()
    if command.startswith('"'):
        end = command.find('"', 1)
        return command[1:end] if end != -1 else command[1:]
    return command.split(" ", 1)[0]


def detect_source_app(command: str) -> str:
    """Best-effort guess of the application that registered ``command``."""
    lowered = command.lower()
    for patterns, app in SOURCE_APP_RULES:
        if any(p in lowered for p in patterns):
            return app

    exe = extract_executable(command)
    try:
        if exe and os.path.isfile(exe):
            stem = Path(exe.replace("\\", os.sep)).stem
            if stem:
                return stem[0].upper() + stem[1:].lower()
    except (OSError, ValueError) as e:
        logger.debug(f"Could not inspect executable {exe!r}: {e}")
    return "Unknown"


@contextmanager
def _open_key(reader: RegistryReader, path: str) -> Iterator[Any]:
    """Open ``path`` for the duration of a block; yields None when missing."""
    handle = reader.open_subkey(path)
    try:
        yield handle
    finally:
        if handle is not None:
            reader.close(handle)


def resolve_com_handler_name(reader: RegistryReader, clsid: str) -> str:
    """Friendly name of a COM class, or a label with the truncated CLSID."""
    try:
        with _open_key(reader, f"{CLSID_ROOT}\\{clsid}") as key:
            if key is not None:
                name = reader.get_value(key, "", None)
                if name:
                    return str(name)
        return f"COM Handler ({clsid[:8]}...)"
    except Exception as e:
        logger.warning(f"Error resolving COM handler {clsid}: {e}")
        return "Unknown COM Handler"


def _read_title(reader: RegistryReader, key, key_name: str) -> str:
    title = reader.get_value(key, "", None)
    return str(title) if title else key_name


def _scan_child(
    reader: RegistryReader,
    tree: str,
    child: str,
    scope: ContextScope,
    view: str,
    is_handler: bool,
) -> ExistingMenuItem | None:
    with _open_key(reader, f"{tree}\\{child}") as key:
        if key is None:
            return None

        title = _read_title(reader, key, child)
        icon = str(reader.get_value(key, "Icon", "") or "")

        if is_handler:
            clsid = str(reader.get_value(key, "", "") or "")
            if not clsid and _GUID_RE.match(child):
                clsid = child
            if not clsid:
                return None
            command = clsid
            source_app = resolve_com_handler_name(reader, clsid)
        else:
            with _open_key(reader, f"{tree}\\{child}\\command") as command_key:
                if command_key is None:
                    return None
                command = str(reader.get_value(command_key, "", "") or "")
            if not command:
                return None
            source_app = detect_source_app(command)

    return ExistingMenuItem(
        title=title,
        command=command,
        icon=icon,
        source_app=source_app,
        registry_location=f"{tree}\\{child} ({view})",
        detected_scope=scope,
        is_legacy=True,
    )


def scan_registry_tree(
    reader: RegistryReader, view: str, tree: str, scope: ContextScope
) -> list[ExistingMenuItem]:
    """Scan the immediate children of one registry tree.

    A missing tree yields nothing; a child that cannot be read is skipped.
    """
    with _open_key(reader, tree) as parent:
        if parent is None:
            return []

        is_handler = "ShellEx" in tree
        items = []
        for child in reader.subkey_names(parent):
            try:
                item = _scan_child(reader, tree, child, scope, view, is_handler)
            except Exception as e:
                logger.warning(
                    f"Error reading registry subkey {tree}\\{child} ({view}): {e}"
                )
                continue
            if item is not None:
                items.append(item)
    return items


def scan_existing_config(engine: ShellEngine | None) -> list[ExistingMenuItem]:
    """Check whether a configuration we generated is already deployed.

    Detection only: the file is not parsed into modification records.
    """
    if engine is None or not engine.is_installed():
        return []

    config_path = engine.get_config_path()
    if not config_path.is_file():
        return []

    content = config_path.read_text(encoding="utf-8", errors="replace")
    if GENERATED_MARKER in content:
        logger.info(f"Found existing PowerToys Shell configuration at {config_path}")
    return []


def common_clutter_items() -> list[ExistingMenuItem]:
    """Well-known unwanted entries, offered whether or not they are present."""
    return [
        ExistingMenuItem(title=title, source_app=app, detected_scope=scope, is_legacy=True)
        for title, app, scope in COMMON_CLUTTER
    ]


def deduplicate(items: Iterable[ExistingMenuItem]) -> list[ExistingMenuItem]:
    """Drop repeated (title, command) pairs, keeping the first occurrence."""
    seen: set[tuple[str, str]] = set()
    unique = []
    for item in items:
        if item.key in seen:
            continue
        seen.add(item.key)
        unique.append(item)
    return unique


class DiscoveryEngine:
    """Aggregates discovery sources into a deduplicated item list."""

    def __init__(
        self,
        readers: dict[str, RegistryReader] | None = None,
        engine: ShellEngine | None = None,
        sources: list[tuple[str, DiscoverySource]] | None = None,
    ):
        self._sources = sources if sources is not None else self._default_sources(readers or {}, engine)

    @staticmethod
    def _default_sources(
        readers: dict[str, RegistryReader], engine: ShellEngine | None
    ) -> list[tuple[str, DiscoverySource]]:
        sources: list[tuple[str, DiscoverySource]] = []
        for view, reader in readers.items():
            for tree, scope in {**COMMAND_TREES, **HANDLER_TREES}.items():
                sources.append(
                    (f"{tree} ({view})", partial(scan_registry_tree, reader, view, tree, scope))
                )
        sources.append(("existing Shell config", partial(scan_existing_config, engine)))
        sources.append(("common clutter catalogue", common_clutter_items))
        return sources

    @property
    def source_names(self) -> list[str]:
        return [name for name, _ in self._sources]

    def discover_existing_items(self) -> list[ExistingMenuItem]:
        """Run every source and return the deduplicated result. Never raises."""
        items: list[ExistingMenuItem] = []
        for name, source in self._sources:
            try:
                found = source()
            except Exception as e:
                logger.warning(f"Could not scan {name}: {e}")
                continue
            logger.debug(f"Discovery source {name} returned {len(found)} items")
            items.extend(found)

        unique = deduplicate(items)
        logger.info(f"Discovered {len(unique)} existing context menu items")
        return unique
