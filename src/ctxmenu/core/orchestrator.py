"""Apply orchestration for context-menu edits.

Keeps the backup -> generate -> write -> reload cycle in one place,
decoupled from Nilesoft Shell and the desktop via ports. Cycles are
serialized through an ``asyncio.Lock`` so a settings snapshot is never
generated while another cycle is still writing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Awaitable, Callable

from .errors import ConfigWriteError
from .models import MenuSettings
from .ports import ShellEngine, UIFeedback
from .state_machine import ApplyEvent, ApplyState, ApplyStateMachine

logger = logging.getLogger(__name__)


class ApplyOutcome(Enum):
    APPLIED = auto()
    DISABLED = auto()
    DEFERRED = auto()  # Shell not installed yet
    FAILED = auto()
    PERMISSION_DENIED = auto()


@dataclass(frozen=True)
class ApplyResult:
    """Summary of one apply (or disable) cycle."""

    outcome: ApplyOutcome
    attempts: int = 0
    config_path: Path | None = None
    reloaded: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (ApplyOutcome.APPLIED, ApplyOutcome.DISABLED)


def write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def remove_config(path: Path) -> bool:
    """Delete the generated file; False when it was already gone."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


class ApplyOrchestrator:
    """Runs apply and disable cycles one at a time."""

    def __init__(
        self,
        engine: ShellEngine,
        ui: UIFeedback,
        generator: Callable[[MenuSettings], str],
        backups=None,
        writer: Callable[[Path, str], None] = write_config,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
        reload_timeout: float | None = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._engine = engine
        self._ui = ui
        self._generator = generator
        self._backups = backups
        self._writer = writer
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._reload_timeout = reload_timeout
        self._sleep = sleep
        self._gate = asyncio.Lock()
        self._state = ApplyStateMachine()

    @property
    def state(self) -> ApplyState:
        return self._state.state

    @property
    def busy(self) -> bool:
        return self._gate.locked()

    async def apply(self, settings: MenuSettings) -> ApplyResult:
        """Write the configuration for ``settings`` and reload Shell.

        Raises:
            TypeError: If ``settings`` is None
        """
        if settings is None:
            raise TypeError("settings must not be None")
        async with self._gate:
            try:
                return await self._apply_cycle(settings)
            finally:
                self._ensure_idle()

    async def disable(self, settings: MenuSettings | None = None) -> ApplyResult:
        """Remove the generated configuration and reload Shell."""
        async with self._gate:
            try:
                return await self._disable_cycle(settings)
            finally:
                self._ensure_idle()

    def _ensure_idle(self) -> None:
        if self._state.state is not ApplyState.IDLE:
            logger.warning(f"Cycle aborted in state {self._state.state.name}")
            self._state.reset()

    def _notify(self, settings: MenuSettings | None, title: str, message: str) -> None:
        if settings is not None and not settings.show_notifications:
            return
        try:
            self._ui.notify(title, message)
        except Exception as e:
            logger.warning(f"Notification failed: {e}")

    async def _apply_cycle(self, settings: MenuSettings) -> ApplyResult:
        if not await asyncio.to_thread(self._engine.is_installed):
            logger.warning("Nilesoft Shell not installed; deferring apply")
            await asyncio.to_thread(self._engine.request_install, settings.auto_install)
            self._notify(
                settings,
                "Nilesoft Shell required",
                "Install Nilesoft Shell to apply context menu edits.",
            )
            return ApplyResult(ApplyOutcome.DEFERRED)

        self._state.transition(ApplyEvent.START)
        target = await asyncio.to_thread(self._engine.get_config_path)

        if settings.auto_backup and self._backups is not None:
            try:
                await asyncio.to_thread(self._backups.backup, target)
            except Exception as e:
                logger.warning(f"Backup of {target} failed, continuing: {e}")
        self._state.transition(ApplyEvent.BACKUP_DONE)

        try:
            attempts = await self._generate_and_write(settings, target)
        except ConfigWriteError as e:
            self._state.transition(ApplyEvent.FAIL)
            if e.permission_denied:
                logger.error(f"No permission to write {target}: {e}")
                self._notify(
                    settings,
                    "Context menu update failed",
                    f"Writing {target} needs elevated privileges or the file is read-only.",
                )
                outcome = ApplyOutcome.PERMISSION_DENIED
            else:
                logger.error(f"Giving up on {target} after {e.attempts} attempts: {e}")
                self._notify(
                    settings,
                    "Context menu update failed",
                    f"Could not write the Shell configuration after {e.attempts} attempts.",
                )
                outcome = ApplyOutcome.FAILED
            return ApplyResult(outcome, attempts=e.attempts, config_path=target, error=str(e))

        reloaded = await self._reload()
        self._state.transition(ApplyEvent.RELOADED)

        if reloaded:
            self._notify(settings, "Context menu updated", "Your context menu changes are live.")
        else:
            self._notify(
                settings,
                "Context menu saved",
                "Configuration written, but Shell could not be reloaded.",
            )
        self._state.transition(ApplyEvent.RESET)
        return ApplyResult(ApplyOutcome.APPLIED, attempts=attempts, config_path=target, reloaded=reloaded)

    async def _generate_and_write(self, settings: MenuSettings, target: Path) -> int:
        """Generate and write, retrying transient failures with linear backoff.

        Returns the number of attempts used.

        Raises:
            ConfigWriteError: On a permission failure or once attempts run out
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                text = self._generator(settings)
                self._state.transition(ApplyEvent.GENERATED)
                await asyncio.to_thread(self._writer, target, text)
                self._state.transition(ApplyEvent.WRITTEN)
                logger.info(f"Wrote Shell configuration to {target} (attempt {attempt})")
                return attempt
            except PermissionError as e:
                raise ConfigWriteError(str(e), attempts=attempt, permission_denied=True) from e
            except Exception as e:
                logger.warning(f"Attempt {attempt}/{self._max_attempts} to write {target} failed: {e}")
                if attempt >= self._max_attempts:
                    raise ConfigWriteError(str(e), attempts=attempt) from e
                self._state.transition(ApplyEvent.RETRY)
                await self._sleep(self._retry_delay * attempt)
        raise AssertionError("unreachable")

    async def _reload(self) -> bool:
        try:
            code = await asyncio.to_thread(self._engine.reload, self._reload_timeout)
        except Exception as e:
            logger.warning(f"Shell reload failed: {e}")
            return False
        if code != 0:
            logger.warning(f"Shell reload exited with code {code}")
            return False
        return True

    async def _disable_cycle(self, settings: MenuSettings | None) -> ApplyResult:
        self._state.transition(ApplyEvent.DISABLE)
        target = await asyncio.to_thread(self._engine.get_config_path)

        try:
            removed = await asyncio.to_thread(remove_config, target)
        except OSError as e:
            self._state.transition(ApplyEvent.FAIL)
            logger.error(f"Could not remove {target}: {e}")
            self._notify(settings, "Context menu reset failed", f"Could not remove {target}.")
            return ApplyResult(ApplyOutcome.FAILED, attempts=1, config_path=target, error=str(e))

        if removed:
            logger.info(f"Removed Shell configuration {target}")
        else:
            logger.debug(f"No Shell configuration at {target}")
        self._state.transition(ApplyEvent.REMOVED)

        reloaded = await self._reload()
        self._state.transition(ApplyEvent.RELOADED)
        self._notify(settings, "Context menu edits disabled", "Shell is back to its own configuration.")
        self._state.transition(ApplyEvent.RESET)
        return ApplyResult(ApplyOutcome.DISABLED, attempts=1, config_path=target, reloaded=reloaded)
