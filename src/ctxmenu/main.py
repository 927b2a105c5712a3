#!/usr/bin/env python3
"""ctxmenu: keep Nilesoft Shell's context menu in sync with PowerToys settings"""

import logging
import signal
import threading
from concurrent.futures import Future

from . import __version__
from .adapters.config_env import load_app_config
from .adapters.registry import default_readers
from .adapters.ui_feedback import UIFeedbackAdapter
from .async_bridge import get_async_bridge
from .backup import BackupManager
from .core.config_model import AppConfig
from .core.models import ExistingMenuItem, MenuSettings
from .core.orchestrator import ApplyOrchestrator, ApplyOutcome, ApplyResult
from .discovery import DiscoveryEngine
from .generator import generate_config
from .platform_utils import IS_WINDOWS
from .settings_store import SettingsStore
from .shell_locator import NilesoftShell, default_install_candidates
from .watcher import SettingsWatcher

logger = logging.getLogger(__name__)


class ContextMenuEditModule:
    """Module surface used by the host settings application."""

    name = "ContextMenuEdit"
    version = __version__

    def __init__(
        self,
        app_config: AppConfig | None = None,
        engine=None,
        ui=None,
        store: SettingsStore | None = None,
        bridge=None,
        registry_readers=None,
    ):
        self._config = app_config or load_app_config()
        if engine is None:
            candidates = default_install_candidates()
            if self._config.shell_path is not None:
                candidates.insert(0, self._config.shell_path)
            engine = NilesoftShell(install_candidates=candidates, backup_dir=self._config.backup_dir)
        self._engine = engine
        self._ui = ui or UIFeedbackAdapter()
        self._store = store or SettingsStore(self._config.settings_path)
        self._bridge = bridge
        self._registry_readers = registry_readers

        self._orchestrator = ApplyOrchestrator(
            engine=self._engine,
            ui=self._ui,
            generator=generate_config,
            backups=BackupManager(self._engine.get_backup_directory(), keep=self._config.backup_limit),
            max_attempts=self._config.max_attempts,
            retry_delay=self._config.retry_delay,
            reload_timeout=self._config.reload_timeout,
        )
        self._settings = MenuSettings()
        self._settings_lock = threading.Lock()
        self._install_pending = False
        self._watcher: SettingsWatcher | None = None

    @property
    def settings(self) -> MenuSettings:
        with self._settings_lock:
            return self._settings

    @property
    def install_pending(self) -> bool:
        return self._install_pending

    def _get_bridge(self):
        if self._bridge is None:
            self._bridge = get_async_bridge()
        else:
            self._bridge.start()
        return self._bridge

    def reload_settings(self) -> MenuSettings:
        settings = self._store.load()
        with self._settings_lock:
            self._settings = settings
        return settings

    def initialize(self) -> None:
        """Load settings, start watching them and apply if enabled."""
        settings = self.reload_settings()
        self._get_bridge()

        self._watcher = SettingsWatcher(
            self._store.path,
            on_change=self._on_settings_changed,
            poll_interval=self._config.poll_interval,
            debounce=self._config.debounce,
            on_tick=self._check_deferred_install,
        )
        self._watcher.start()
        logger.info(f"{self.name} {self.version} initialized (enabled={settings.enabled})")

        if settings.enabled:
            self.enable()

    async def _apply(self, settings: MenuSettings) -> ApplyResult:
        result = await self._orchestrator.apply(settings)
        self._install_pending = result.outcome is ApplyOutcome.DEFERRED
        return result

    def enable(self) -> Future:
        """Apply the current settings snapshot in the background."""
        return self._get_bridge().submit_detached(self._apply(self.settings), "apply cycle")

    def disable(self) -> Future:
        """Remove the generated configuration in the background."""
        self._install_pending = False
        return self._get_bridge().submit_detached(
            self._orchestrator.disable(self.settings), "disable cycle"
        )

    def _on_settings_changed(self) -> Future | None:
        previous = self.settings
        settings = self.reload_settings()
        if not previous.enabled and not settings.enabled:
            logger.debug("Settings changed while disabled, nothing to apply")
            return None
        logger.info("Settings changed, re-applying")
        if settings.enabled:
            return self.enable()
        return self.disable()

    def _check_deferred_install(self) -> Future | None:
        if not self._install_pending or not self.settings.enabled:
            return None
        if not self._engine.is_installed():
            return None
        logger.info("Nilesoft Shell is now installed, applying deferred settings")
        self._install_pending = False
        return self.enable()

    def discover_existing_items(self) -> list[ExistingMenuItem]:
        readers = self._registry_readers if self._registry_readers is not None else default_readers()
        return DiscoveryEngine(readers=readers, engine=self._engine).discover_existing_items()

    def engine_version(self) -> str:
        return self._engine.get_version()

    def shutdown(self) -> None:
        """Stop watching settings. In-flight cycles finish on their own."""
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None


def main():
    config = load_app_config()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    module = ContextMenuEditModule(app_config=config)
    shutdown_event = threading.Event()

    def signal_handler(sig, frame):
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    if not IS_WINDOWS:
        signal.signal(signal.SIGTERM, signal_handler)

    print(f"{module.name} {module.version}")
    print(f"Settings: {config.settings_path}")
    print(f"Nilesoft Shell: {module.engine_version()}")
    print("Press Ctrl+C to quit\n")

    module.initialize()
    try:
        while not shutdown_event.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass

    module.shutdown()
    print("✓ Done")


if __name__ == "__main__":
    main()
