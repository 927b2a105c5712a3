from pathlib import Path

from ctxmenu.adapters import config_env
from ctxmenu.config import Config


def test_load_app_config_reads_environment_backed_config(monkeypatch):
    monkeypatch.setattr(config_env.env_config, "MAX_ATTEMPTS", 5)
    monkeypatch.setattr(config_env.env_config, "SHELL_PATH", "D:\\Tools\\Nilesoft Shell")

    app_config = config_env.load_app_config()

    assert app_config.max_attempts == 5
    assert app_config.shell_path == Path("D:\\Tools\\Nilesoft Shell")
    assert app_config.backup_limit == Config.BACKUP_LIMIT


def test_shell_path_is_optional(monkeypatch):
    monkeypatch.setattr(config_env.env_config, "SHELL_PATH", "")

    assert config_env.load_app_config().shell_path is None
