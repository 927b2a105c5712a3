"""JSON persistence for ``MenuSettings``.

The settings UI owns the file; this module only needs to read it back into
an immutable snapshot. Parsing is tolerant: a corrupt file, or one that is
not a JSON object, loads as the default settings with a warning.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

from .core.models import (
    ContextScope,
    MenuAction,
    MenuModification,
    MenuRemoval,
    MenuSettings,
)

logger = logging.getLogger(__name__)


def _text(value) -> str:
    return "" if value is None else str(value)


_TRUE_WORDS = ("true", "1", "yes", "on", "show")


def _tri_state(value) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return bool(value)


def _flag(value, default: bool) -> bool:
    parsed = _tri_state(value)
    return default if parsed is None else parsed


def _file_types(value) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(";")
    elif not isinstance(value, (list, tuple)):
        logger.warning(f"Ignoring file_types of unexpected type: {value!r}")
        return ()
    return tuple(str(ext).strip() for ext in value if str(ext).strip())


def action_from_dict(data: dict) -> MenuAction:
    return MenuAction(
        id=_text(data.get("id")),
        title=_text(data.get("title")),
        command=_text(data.get("command")),
        arguments=_text(data.get("arguments")),
        icon=_text(data.get("icon")),
        working_directory=_text(data.get("working_directory")),
        scope=ContextScope.parse(data.get("scope")),
        file_types=_file_types(data.get("file_types")),
        requires_admin=_flag(data.get("requires_admin"), False),
        extended_only=_flag(data.get("extended_only"), False),
        enabled=_flag(data.get("enabled"), True),
    )


def modification_from_dict(data: dict) -> MenuModification:
    return MenuModification(
        target_title=_text(data.get("target_title")),
        target_command=_text(data.get("target_command")),
        new_title=_text(data.get("new_title")),
        new_icon=_text(data.get("new_icon")),
        new_command=_text(data.get("new_command")),
        new_arguments=_text(data.get("new_arguments")),
        visible=_tri_state(data.get("visible")),
        enabled=_flag(data.get("enabled"), True),
    )


def removal_from_dict(data: dict) -> MenuRemoval:
    return MenuRemoval(
        target_title=_text(data.get("target_title")),
        target_command=_text(data.get("target_command")),
        enabled=_flag(data.get("enabled"), True),
    )


def _parse_list(raw, parse, kind: str) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        logger.warning(f"Ignoring {kind} list of unexpected type: {raw!r}")
        return ()
    parsed = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning(f"Ignoring malformed {kind} #{index}: {entry!r}")
            continue
        try:
            parsed.append(parse(entry))
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid {kind} #{index}: {e}")
    return tuple(parsed)


def settings_from_dict(data: dict) -> MenuSettings:
    return MenuSettings(
        enabled=_flag(data.get("enabled"), True),
        auto_install=_flag(data.get("auto_install"), True),
        auto_backup=_flag(data.get("auto_backup"), True),
        show_notifications=_flag(data.get("show_notifications"), True),
        actions=_parse_list(data.get("actions"), action_from_dict, "action"),
        modifications=_parse_list(data.get("modifications"), modification_from_dict, "modification"),
        removals=_parse_list(data.get("removals"), removal_from_dict, "removal"),
    )


def settings_to_dict(settings: MenuSettings) -> dict:
    data = asdict(settings)
    for action in data["actions"]:
        action["scope"] = action["scope"].value
        action["file_types"] = list(action["file_types"])
    return data


class SettingsStore:
    """Loads and saves the preference file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> MenuSettings:
        if not self.path.exists():
            logger.info(f"No settings file at {self.path}, using defaults")
            return MenuSettings()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read settings from {self.path}, using defaults: {e}")
            return MenuSettings()

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} is not a JSON object, using defaults")
            return MenuSettings()

        try:
            return settings_from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed settings in {self.path}, using defaults: {e}")
            return MenuSettings()

    def save(self, settings: MenuSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings_to_dict(settings), indent=2), encoding="utf-8")
