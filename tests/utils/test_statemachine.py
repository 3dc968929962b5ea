from enum import Enum, auto

import pytest

from radiora.utils.state import StateMachine

class DummyStates(Enum):
    INIT = auto()
    RUNNING = auto()
    STOPPED = auto()

class DummyEvents(Enum):
    START = auto()
    STOP = auto()

class DummyStateMachine(StateMachine[DummyStates, DummyEvents]):
    TRANSITIONS = {
        DummyStates.INIT: {DummyEvents.START: DummyStates.RUNNING},
        DummyStates.RUNNING: {DummyEvents.STOP: DummyStates.STOPPED},
        DummyStates.STOPPED: {},
    }

def test_default_state():
    sm = DummyStateMachine()
    assert sm.state == DummyStates.INIT

def test_explicit_initial_state():
    sm = DummyStateMachine(DummyStates.RUNNING)
    assert sm.state == DummyStates.RUNNING
    sm.on_event(DummyEvents.STOP)
    sm.reset()
    assert sm.state == DummyStates.RUNNING

def test_transitions():
    sm = DummyStateMachine()
    assert sm.on_event(DummyEvents.START) is True
    assert sm.state == DummyStates.RUNNING
    assert sm.on_event(DummyEvents.STOP) is True
    assert sm.state == DummyStates.STOPPED

def test_unhandled_event():
    sm = DummyStateMachine()
    assert sm.on_event(DummyEvents.STOP) is False
    assert sm.state == DummyStates.INIT

def test_non_enum_event_rejected():
    sm = DummyStateMachine()
    with pytest.raises(TypeError):
        sm.on_event("START")
