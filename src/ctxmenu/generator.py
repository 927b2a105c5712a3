"""Nilesoft Shell configuration generator.

Turns a ``MenuSettings`` snapshot into the text of ``powertoys.nss``. The
function is pure: the same settings always produce byte-identical output, so
regenerating on every preference change is cheap and diff-friendly.

Output layout:
    header comment
    import of the user's own customisation file
    modify { remove(...) }        -- enabled removals
    modify { item(find=...) {} }  -- enabled modifications with overrides
    item(where=<scope>) { ... }   -- one block per non-empty scope
"""

from __future__ import annotations

import logging
import os
import re

from .core.models import (
    ContextScope,
    MenuAction,
    MenuModification,
    MenuRemoval,
    MenuSettings,
)

logger = logging.getLogger(__name__)

GENERATED_MARKER = "// Generated by PowerToys ContextMenuEdit"
USER_IMPORT_FILE = "user-custom.nss"

CONFIG_HEADER = (
    "// PowerToys Context Menu Edit Configuration\n"
    f"{GENERATED_MARKER}\n"
    "// Generated automatically - do not edit manually\n"
    "// Changes will be overwritten when PowerToys settings are updated\n"
    "// Visit https://nilesoft.org/docs for advanced Shell configuration\n"
    "\n"
)

# Scope -> (block label, Shell selector). Blocks are emitted in this order.
SCOPE_SELECTORS: dict[ContextScope, tuple[str, str]] = {
    ContextScope.ALL: ("All contexts", "mode.extended"),
    ContextScope.FILE: ("Files only", "mode.file"),
    ContextScope.FOLDER: ("Folders only", "mode.directory"),
    ContextScope.BACKGROUND: ("Background only", "mode.back"),
}

_ENV_PLACEHOLDER = re.compile(r"%([^%\s]+)%")
_LINE_BREAKS = re.compile(r"\s*[\r\n]+\s*")

INDENT = "    "


def escape_string(value: str | None) -> str:
    """Quote a value as a Shell string literal.

    Backslashes are doubled and single quotes are backslash-escaped, so
    ``unescape_string`` recovers the input exactly.
    """
    if not value:
        return "''"
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def unescape_string(literal: str) -> str:
    """Inverse of ``escape_string``."""
    if len(literal) < 2 or literal[0] != "'" or literal[-1] != "'":
        raise ValueError(f"Not a quoted literal: {literal!r}")
    body = literal[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(body[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def escape_comment(value: str | None) -> str:
    """Make text safe to place after ``//`` on a single line."""
    if not value:
        return ""
    text = _LINE_BREAKS.sub(" ", value)
    # Stripping one sequence can expose another ("/*/" -> "/"), so loop.
    while "*/" in text or "/*" in text:
        text = text.replace("*/", "").replace("/*", "")
    return text.strip()


def expand_environment_path(path: str | None) -> str:
    """Expand ``%NAME%`` placeholders; unknown names are left as written."""
    if not path:
        return path or ""

    def _lookup(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    try:
        return _ENV_PLACEHOLDER.sub(_lookup, path)
    except Exception as e:
        logger.error(f"Failed to expand environment variables in path: {path} ({e})")
        return path


def normalize_extensions(file_types) -> list[str]:
    """Return extensions with a leading dot, dropping blanks."""
    extensions = []
    for ext in file_types:
        ext = ext.strip()
        if not ext:
            continue
        extensions.append(ext if ext.startswith(".") else "." + ext)
    return extensions


def _match_clause(title: str, command: str) -> str:
    clause = f"find=title.{escape_string(title)}"
    if command:
        clause += f" and cmd.{escape_string(command)}"
    return clause


def _render_removals(removals: list[MenuRemoval]) -> list[str]:
    lines = ["// Remove unwanted context menu items", "modify", "{"]
    for removal in removals:
        lines.append(f"{INDENT}// Remove: {escape_comment(removal.target_title)}")
        lines.append(
            f"{INDENT}remove({_match_clause(removal.target_title, removal.target_command)})"
        )
    lines.extend(["}", ""])
    return lines


def _render_modifications(modifications: list[MenuModification]) -> list[str]:
    lines = ["// Modify existing context menu items", "modify", "{"]
    inner = INDENT * 2
    for mod in modifications:
        lines.append(f"{INDENT}// Modify: {escape_comment(mod.target_title)}")
        lines.append(f"{INDENT}item({_match_clause(mod.target_title, mod.target_command)})")
        lines.append(f"{INDENT}{{")
        if mod.new_title:
            lines.append(f"{inner}title = {escape_string(mod.new_title)}")
        if mod.new_icon:
            lines.append(f"{inner}image = {escape_string(expand_environment_path(mod.new_icon))}")
        if mod.new_command:
            lines.append(f"{inner}cmd = {escape_string(expand_environment_path(mod.new_command))}")
        if mod.new_arguments:
            lines.append(f"{inner}args = {escape_string(mod.new_arguments)}")
        if mod.visible is not None:
            lines.append(f"{inner}vis = {'true' if mod.visible else 'false'}")
        lines.append(f"{INDENT}}}")
    lines.extend(["}", ""])
    return lines


def _render_action(action: MenuAction) -> list[str]:
    attr = INDENT + " " * 5
    lines = [
        f"{INDENT}// {escape_comment(action.title)}",
        f"{INDENT}item(title={escape_string(action.title)}",
        f"{attr}cmd={escape_string(expand_environment_path(action.command))}",
    ]
    if action.arguments:
        lines.append(f"{attr}args={escape_string(action.arguments)}")
    if action.icon:
        lines.append(f"{attr}image={escape_string(expand_environment_path(action.icon))}")
    if action.working_directory:
        lines.append(
            f"{attr}directory={escape_string(expand_environment_path(action.working_directory))}"
        )
    if action.requires_admin:
        lines.append(f"{attr}admin=true")
    if action.extended_only:
        lines.append(f"{attr}keys=shift")
    if action.scope.accepts_file_types:
        extensions = normalize_extensions(action.file_types)
        if extensions:
            lines.append(f"{attr}type={escape_string('|'.join(extensions))}")
    lines.append(f"{INDENT})")
    return lines


def _render_scope(scope: ContextScope, actions: list[MenuAction]) -> list[str]:
    label, selector = SCOPE_SELECTORS[scope]
    lines = [f"// {label}", f"item(where={selector})", "{"]
    for action in actions:
        lines.extend(_render_action(action))
    lines.extend(["}", ""])
    return lines


def generate_config(settings: MenuSettings) -> str:
    """Render the full configuration text for a settings snapshot.

    Raises:
        TypeError: If ``settings`` is None
    """
    if settings is None:
        raise TypeError("settings must not be None")

    lines = [
        "// Import user's custom configuration",
        f"import {escape_string(USER_IMPORT_FILE)}",
        "",
    ]

    removals = [r for r in settings.removals if r.enabled and r.target_title]
    if removals:
        lines.extend(_render_removals(removals))

    modifications = []
    for mod in settings.modifications:
        if not mod.enabled or not mod.target_title:
            continue
        if not mod.has_overrides:
            logger.debug(f"Skipping modification without overrides: {mod.target_title}")
            continue
        modifications.append(mod)
    if modifications:
        lines.extend(_render_modifications(modifications))

    buckets: dict[ContextScope, list[MenuAction]] = {scope: [] for scope in SCOPE_SELECTORS}
    for action in settings.actions:
        if action.is_emittable:
            buckets[action.scope].append(action)

    if any(buckets.values()):
        lines.append("// PowerToys custom context menu items")
        for scope, actions in buckets.items():
            if actions:
                lines.extend(_render_scope(scope, actions))

    return CONFIG_HEADER + "\n".join(lines) + "\n"
