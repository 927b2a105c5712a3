import subprocess

import pytest

from ctxmenu import shell_locator
from ctxmenu.core.errors import ShellNotInstalledError
from ctxmenu.shell_locator import CONFIG_FILE_NAME, DOWNLOAD_URL, NilesoftShell


def _install(directory):
    directory.mkdir(parents=True)
    (directory / "shell.exe").write_bytes(b"MZ")
    return directory


def test_finds_first_candidate_with_shell_exe(tmp_path):
    found = _install(tmp_path / "LocalAppData" / "Nilesoft Shell")
    shell = NilesoftShell(
        install_candidates=[tmp_path / "ProgramFiles" / "Nilesoft Shell", found],
        search_path=False,
    )

    assert shell.find_install_directory() == found
    assert shell.is_installed()


def test_not_installed(tmp_path):
    shell = NilesoftShell(install_candidates=[tmp_path / "nowhere"], search_path=False)

    assert shell.find_install_directory() is None
    assert not shell.is_installed()
    assert shell.get_version() == "Not installed"


def test_search_path_fallback(tmp_path, monkeypatch):
    install = _install(tmp_path / "bin")
    monkeypatch.setattr(shell_locator.shutil, "which", lambda name: str(install / name))

    shell = NilesoftShell(install_candidates=[])

    assert shell.find_install_directory() == install


def test_config_path_prefers_user_imports(tmp_path):
    shell = NilesoftShell(
        install_candidates=[], user_dir=tmp_path / "Roaming" / "Nilesoft Shell", search_path=False
    )

    assert shell.get_config_path() == tmp_path / "Roaming" / "Nilesoft Shell" / "imports" / CONFIG_FILE_NAME


def test_config_path_falls_back_to_install_dir(tmp_path, monkeypatch):
    install = _install(tmp_path / "Program Files" / "Nilesoft Shell")
    user_dir = tmp_path / "Roaming" / "Nilesoft Shell"
    monkeypatch.setattr(shell_locator, "_is_writable", lambda directory: user_dir not in directory.parents)

    shell = NilesoftShell(install_candidates=[install], user_dir=user_dir, search_path=False)

    assert shell.get_config_path() == install / "imports" / CONFIG_FILE_NAME


def test_reload_requires_installation(tmp_path):
    shell = NilesoftShell(install_candidates=[], search_path=False)

    with pytest.raises(ShellNotInstalledError):
        shell.reload()


def test_reload_runs_shell_exe(tmp_path, monkeypatch):
    install = _install(tmp_path / "Nilesoft Shell")
    calls = []

    def fake_run(args, **kwargs):
        calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, 0, stdout="reloaded", stderr="")

    monkeypatch.setattr(shell_locator.subprocess, "run", fake_run)
    shell = NilesoftShell(install_candidates=[install], search_path=False)

    assert shell.reload(timeout=12) == 0
    args, kwargs = calls[0]
    assert args == [str(install / "shell.exe"), "reload"]
    assert kwargs["timeout"] == 12
    assert kwargs["capture_output"] is True


def test_reload_returns_failure_code(tmp_path, monkeypatch):
    install = _install(tmp_path / "Nilesoft Shell")
    monkeypatch.setattr(
        shell_locator.subprocess,
        "run",
        lambda args, **kwargs: subprocess.CompletedProcess(args, 3, stdout="", stderr="bad config"),
    )
    shell = NilesoftShell(install_candidates=[install], search_path=False)

    assert shell.reload() == 3


def test_request_install_opens_download_page(monkeypatch):
    opened = []
    monkeypatch.setattr(shell_locator.webbrowser, "open", lambda url: opened.append(url))
    shell = NilesoftShell(install_candidates=[], search_path=False)

    shell.request_install(open_browser=False)
    assert opened == []

    shell.request_install(open_browser=True)
    assert opened == [DOWNLOAD_URL]


def test_format_version():
    info = {"FileVersionMS": (1 << 16) | 9, "FileVersionLS": (18 << 16) | 0}

    assert shell_locator._format_version(info) == "1.9.18.0"
