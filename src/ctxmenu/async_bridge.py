"""Background event loop for apply cycles.

The host settings application calls ``enable()``/``disable()`` from its UI
thread and the preference watcher fires from its own thread. Both need to
hand coroutines to the orchestrator, whose ``asyncio.Lock`` only serializes
work running on a single loop. This module keeps that loop alive in a
dedicated daemon thread.

Usage:
    bridge = get_async_bridge()  # Singleton, started on first use
    future = bridge.submit(orchestrator.apply(settings))
    result = future.result(timeout=60)
"""

import asyncio
import atexit
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class AsyncBridge:
    """Persistent asyncio event loop running in its own thread."""

    def __init__(self):
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()
        self._lock = threading.Lock()

    def _run_loop(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._started.set()

        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
            self._loop.close()
            self._loop = None

    def start(self) -> None:
        """Start the loop thread. No-op if already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return

            self._started.clear()
            self._thread = threading.Thread(
                target=self._run_loop,
                name="ctxmenu-apply-loop",
                daemon=True,
            )
            self._thread.start()

            self._started.wait(timeout=5.0)
            if not self._started.is_set():
                raise RuntimeError("Failed to start async bridge event loop")

    def stop(self) -> None:
        """Stop the loop and join its thread. Safe to call repeatedly."""
        with self._lock:
            if self._loop is not None:
                self._loop.call_soon_threadsafe(self._loop.stop)

            if self._thread is not None:
                self._thread.join(timeout=5.0)
                self._thread = None

            self._started.clear()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """Schedule ``coro`` on the loop from any thread.

        Raises:
            RuntimeError: If the bridge is not started
        """
        if self._loop is None:
            coro.close()
            raise RuntimeError("AsyncBridge not started. Call start() first.")

        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def submit_detached(self, coro: Coroutine[Any, Any, Any], name: str) -> Future:
        """Like ``submit`` but logs any exception nobody else will look at."""
        future = self.submit(coro)
        future.add_done_callback(lambda f: _log_failure(f, name))
        return future

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._loop is not None
            and self._loop.is_running()
        )

    def run_sync(self, coro: Coroutine[Any, Any, Any], timeout: float | None = None) -> Any:
        """Submit ``coro`` and block the calling thread for its result."""
        return self.submit(coro).result(timeout=timeout)


def _log_failure(future: Future, name: str) -> None:
    if future.cancelled():
        logger.debug(f"{name} cancelled")
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"{name} failed", exc_info=exc)


# Module-level singleton
_bridge_instance: AsyncBridge | None = None
_bridge_lock = threading.Lock()


def get_async_bridge() -> AsyncBridge:
    """Return the shared bridge, starting (or restarting) it as needed."""
    global _bridge_instance

    with _bridge_lock:
        if _bridge_instance is None:
            _bridge_instance = AsyncBridge()
            _bridge_instance.start()
            atexit.register(_cleanup_bridge)
        elif not _bridge_instance.is_running:
            _bridge_instance.start()

        return _bridge_instance


def _cleanup_bridge():
    global _bridge_instance
    if _bridge_instance is not None:
        try:
            _bridge_instance.stop()
        except Exception as e:
            logger.debug(f"Async bridge shutdown failed: {e}")
        _bridge_instance = None


def reset_async_bridge():
    """Stop and forget the shared bridge (for testing)."""
    global _bridge_instance

    with _bridge_lock:
        if _bridge_instance is not None:
            _bridge_instance.stop()
            _bridge_instance = None
