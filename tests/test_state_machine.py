from ctxmenu.core.state_machine import ApplyEvent, ApplyState, ApplyStateMachine


def test_state_machine_happy_path():
    sm = ApplyStateMachine()
    assert sm.state == ApplyState.IDLE

    sm.transition(ApplyEvent.START)
    assert sm.state == ApplyState.BACKING_UP

    sm.transition(ApplyEvent.BACKUP_DONE)
    assert sm.state == ApplyState.GENERATING

    sm.transition(ApplyEvent.GENERATED)
    assert sm.state == ApplyState.WRITING

    sm.transition(ApplyEvent.WRITTEN)
    assert sm.state == ApplyState.RELOADING

    sm.transition(ApplyEvent.RELOADED)
    assert sm.state == ApplyState.DONE

    sm.transition(ApplyEvent.RESET)
    assert sm.state == ApplyState.IDLE


def test_state_machine_retry_ring():
    sm = ApplyStateMachine()
    sm.transition(ApplyEvent.START)
    sm.transition(ApplyEvent.BACKUP_DONE)
    sm.transition(ApplyEvent.GENERATED)

    sm.transition(ApplyEvent.RETRY)
    assert sm.state == ApplyState.GENERATING

    sm.transition(ApplyEvent.FAIL)
    assert sm.state == ApplyState.IDLE


def test_state_machine_disable_path():
    sm = ApplyStateMachine()
    sm.transition(ApplyEvent.DISABLE)
    assert sm.state == ApplyState.REMOVING

    sm.transition(ApplyEvent.REMOVED)
    assert sm.state == ApplyState.RELOADING


def test_invalid_transition_keeps_state(caplog):
    sm = ApplyStateMachine()
    sm.transition(ApplyEvent.WRITTEN)

    assert sm.state == ApplyState.IDLE
    assert "Invalid state transition" in caplog.text


def test_reset_returns_to_idle():
    sm = ApplyStateMachine()
    sm.transition(ApplyEvent.START)
    sm.reset()

    assert sm.state == ApplyState.IDLE
