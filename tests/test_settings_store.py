import json

import pytest

from ctxmenu.core.models import (
    ContextScope,
    MenuAction,
    MenuModification,
    MenuRemoval,
    MenuSettings,
)
from ctxmenu.settings_store import SettingsStore


def test_missing_file_loads_defaults(tmp_path):
    assert SettingsStore(tmp_path / "settings.json").load() == MenuSettings()


def test_corrupt_file_loads_defaults_with_warning(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings == MenuSettings()
    assert "using defaults" in caplog.text


def test_non_object_file_loads_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert SettingsStore(path).load() == MenuSettings()


def test_save_then_load(tmp_path):
    settings = MenuSettings(
        enabled=False,
        auto_install=False,
        actions=(
            MenuAction(
                id="ps",
                title="PowerShell Here",
                command="powershell.exe",
                scope=ContextScope.BACKGROUND,
                requires_admin=True,
            ),
            MenuAction(title="Hash", command="certutil.exe", file_types=(".iso", ".img")),
        ),
        modifications=(MenuModification(target_title="Open", new_title="Go", visible=False),),
        removals=(MenuRemoval(target_title="Share"),),
    )
    store = SettingsStore(tmp_path / "nested" / "settings.json")

    store.save(settings)

    assert store.load() == settings


def test_tolerant_field_parsing(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "actions": [
                    {"title": "Everywhere", "command": "a.exe", "scope": "*", "file_types": ".txt;.md"},
                    {"title": "Dir", "command": "b.exe", "scope": "Directory"},
                    {"title": "Bad", "command": "c.exe", "scope": "sideways"},
                    "not an object",
                ],
                "modifications": [
                    {"target_title": "Open", "visible": None},
                    {"target_title": "Pin", "visible": "true"},
                ],
            }
        ),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert [a.title for a in settings.actions] == ["Everywhere", "Dir"]
    assert settings.actions[0].scope is ContextScope.ALL
    assert settings.actions[0].file_types == (".txt", ".md")
    assert settings.actions[1].scope is ContextScope.FOLDER
    assert settings.modifications[0].visible is None
    assert settings.modifications[1].visible is True


@pytest.mark.parametrize(
    "payload",
    [
        {"actions": 5},
        {"removals": True},
        {"modifications": "Open"},
    ],
)
def test_wrong_typed_lists_are_ignored(tmp_path, caplog, payload):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.actions == ()
    assert settings.modifications == ()
    assert settings.removals == ()
    assert "unexpected type" in caplog.text


def test_wrong_typed_file_types_are_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"actions": [{"title": "a", "command": "b", "file_types": 5}]}),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert [a.title for a in settings.actions] == ["a"]
    assert settings.actions[0].file_types == ()


def test_string_flags_are_parsed(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "enabled": "false",
                "auto_backup": "0",
                "show_notifications": "no",
                "auto_install": "",
                "actions": [
                    {
                        "title": "a",
                        "command": "b",
                        "enabled": "false",
                        "requires_admin": "true",
                        "extended_only": "0",
                    }
                ],
                "removals": [{"target_title": "Share", "enabled": "False"}],
            }
        ),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert settings.enabled is False
    assert settings.auto_backup is False
    assert settings.show_notifications is False
    assert settings.auto_install is True
    assert settings.actions[0].enabled is False
    assert settings.actions[0].requires_admin is True
    assert settings.actions[0].extended_only is False
    assert settings.removals[0].enabled is False
