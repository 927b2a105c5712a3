import time

from ctxmenu.watcher import SettingsWatcher


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_change_fires_once_after_debounce(tmp_path):
    path = tmp_path / "settings.json"
    clock = _Clock()
    calls = []
    watcher = SettingsWatcher(path, on_change=lambda: calls.append(clock.now), debounce=0.5, clock=clock)

    path.write_text("{}", encoding="utf-8")
    assert watcher.poll() is False

    clock.now = 0.2
    assert watcher.poll() is False

    clock.now = 0.6
    assert watcher.poll() is True

    clock.now = 2.0
    assert watcher.poll() is False
    assert calls == [0.6]


def test_burst_of_edits_is_coalesced(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{}", encoding="utf-8")
    clock = _Clock()
    calls = []
    watcher = SettingsWatcher(path, on_change=lambda: calls.append(clock.now), debounce=0.5, clock=clock)

    path.write_text('{"a": 1}', encoding="utf-8")
    watcher.poll()

    clock.now = 0.4
    path.write_text('{"a": 12}', encoding="utf-8")
    watcher.poll()

    clock.now = 0.8
    assert watcher.poll() is False

    clock.now = 1.0
    assert watcher.poll() is True
    assert calls == [1.0]


def test_deleting_the_file_counts_as_change(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{}", encoding="utf-8")
    clock = _Clock()
    calls = []
    watcher = SettingsWatcher(path, on_change=lambda: calls.append(True), debounce=0.1, clock=clock)

    path.unlink()
    watcher.poll()
    clock.now = 1.0
    watcher.poll()

    assert calls == [True]


def test_callback_errors_are_logged(tmp_path, caplog):
    path = tmp_path / "settings.json"
    clock = _Clock()

    def _boom():
        raise RuntimeError("handler failed")

    watcher = SettingsWatcher(path, on_change=_boom, debounce=0.0, clock=clock)
    path.write_text("{}", encoding="utf-8")
    watcher.poll()
    clock.now = 1.0

    assert watcher.poll() is True
    assert "Error in settings change handler" in caplog.text


def test_thread_start_and_stop(tmp_path):
    ticks = []
    watcher = SettingsWatcher(
        tmp_path / "settings.json",
        on_change=lambda: None,
        poll_interval=0.01,
        on_tick=lambda: ticks.append(True),
    )

    watcher.start()
    deadline = time.monotonic() + 2.0
    while not ticks and time.monotonic() < deadline:
        time.sleep(0.01)
    watcher.stop()

    assert ticks
    assert not watcher.is_running
