"""Preference file watcher.

Polls the settings file on a daemon thread and fires a callback once the
file has stopped changing for ``debounce`` seconds, so a burst of saves from
the settings UI produces a single reload. An optional ``on_tick`` hook runs
on every poll (used to notice a freshly installed Shell).
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

Signature = tuple[int, int] | None


def file_signature(path: Path) -> Signature:
    """(mtime_ns, size) of ``path``, or None when it does not exist."""
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


class SettingsWatcher:
    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        poll_interval: float = 1.0,
        debounce: float = 0.5,
        on_tick: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.path = Path(path)
        self._on_change = on_change
        self._on_tick = on_tick
        self._poll_interval = poll_interval
        self._debounce = debounce
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

        self._signature: Signature = file_signature(self.path)
        self._pending_since: float | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="SettingsWatcher", daemon=True)
        self._thread.start()
        logger.debug(f"Watching {self.path}")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll(self) -> bool:
        """Check the file once; returns True when the change callback fired."""
        now = self._clock()
        signature = file_signature(self.path)
        if signature != self._signature:
            self._signature = signature
            self._pending_since = now
            return False

        if self._pending_since is None or now - self._pending_since < self._debounce:
            return False

        self._pending_since = None
        self._fire(self._on_change, "settings change handler")
        return True

    def _fire(self, callback: Callable[[], None], name: str) -> None:
        try:
            callback()
        except Exception:
            logger.exception(f"Error in {name}")

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll()
            if self._on_tick is not None:
                self._fire(self._on_tick, "watcher tick")
            wait = self._poll_interval
            if self._pending_since is not None:
                wait = min(wait, self._debounce)
            self._stop.wait(wait)
