"""Apply-cycle state machine."""

from __future__ import annotations

from enum import Enum, auto
import logging


class ApplyState(Enum):
    IDLE = auto()
    BACKING_UP = auto()
    GENERATING = auto()
    WRITING = auto()
    REMOVING = auto()
    RELOADING = auto()
    DONE = auto()


class ApplyEvent(Enum):
    START = auto()
    DISABLE = auto()
    BACKUP_DONE = auto()
    GENERATED = auto()
    WRITTEN = auto()
    REMOVED = auto()
    RETRY = auto()
    RELOADED = auto()
    FAIL = auto()
    RESET = auto()


_TRANSITIONS = {
    ApplyState.IDLE: {
        ApplyEvent.START: ApplyState.BACKING_UP,
        ApplyEvent.DISABLE: ApplyState.REMOVING,
    },
    ApplyState.BACKING_UP: {
        ApplyEvent.BACKUP_DONE: ApplyState.GENERATING,
        ApplyEvent.FAIL: ApplyState.IDLE,
    },
    ApplyState.GENERATING: {
        ApplyEvent.GENERATED: ApplyState.WRITING,
        ApplyEvent.RETRY: ApplyState.GENERATING,
        ApplyEvent.FAIL: ApplyState.IDLE,
    },
    ApplyState.WRITING: {
        ApplyEvent.WRITTEN: ApplyState.RELOADING,
        ApplyEvent.RETRY: ApplyState.GENERATING,
        ApplyEvent.FAIL: ApplyState.IDLE,
    },
    ApplyState.REMOVING: {
        ApplyEvent.REMOVED: ApplyState.RELOADING,
        ApplyEvent.FAIL: ApplyState.IDLE,
    },
    ApplyState.RELOADING: {
        ApplyEvent.RELOADED: ApplyState.DONE,
    },
    ApplyState.DONE: {
        ApplyEvent.RESET: ApplyState.IDLE,
    },
}


class ApplyStateMachine:
    def __init__(self):
        self.state = ApplyState.IDLE

    def transition(self, event: ApplyEvent) -> ApplyState:
        next_state = _TRANSITIONS.get(self.state, {}).get(event, self.state)
        if next_state == self.state and event not in _TRANSITIONS.get(self.state, {}):
            logging.getLogger(__name__).warning(
                "Invalid state transition: %s --%s--> %s", self.state, event, next_state
            )
        self.state = next_state
        return self.state

    def reset(self) -> None:
        """Force the machine back to IDLE after an aborted cycle."""
        self.state = ApplyState.IDLE
