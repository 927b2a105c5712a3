"""Platform detection and Windows folder helpers for ctxmenu"""

import os
import sys
from pathlib import Path

IS_WINDOWS = sys.platform == "win32"


def known_folder(env_name: str, fallback: str = "") -> Path:
    """Resolve a Windows known folder from its environment variable.

    Off Windows (or with the variable unset) the fallback below the user's
    home directory is used, so paths stay well-formed in tests and CI.
    """
    value = os.environ.get(env_name)
    if value:
        return Path(value)
    home = Path.home()
    return home / fallback if fallback else home


def local_app_data() -> Path:
    return known_folder("LOCALAPPDATA", "AppData/Local")


def roaming_app_data() -> Path:
    return known_folder("APPDATA", "AppData/Roaming")
