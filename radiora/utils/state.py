import logging
from enum import Enum
from typing import Generic, TypeVar

StateT = TypeVar("StateT", bound=Enum)
EventT = TypeVar("EventT", bound=Enum)

class StateMachine(Generic[StateT, EventT]):
    """
    Table driven state machine over Enum states and events.

    Subclasses declare TRANSITIONS as {state: {event: next_state}}. The
    first member of the state enum is the initial state unless one is
    passed in.

    Example:
        class Door(StateMachine[DoorState, DoorEvent]):
            TRANSITIONS = {
                DoorState.CLOSED: {DoorEvent.OPEN: DoorState.OPENED},
                DoorState.OPENED: {DoorEvent.CLOSE: DoorState.CLOSED},
            }
    """
    TRANSITIONS: dict = {}

    def __init__(self, initial_state: StateT | None = None):
        self._initial_state = initial_state if initial_state is not None else self._default_state()
        self.state: StateT = self._initial_state
        self.logger = logging.getLogger(self.__class__.__name__)

    def _default_state(self) -> StateT:
        for key in self.TRANSITIONS.keys():
            return next(iter(type(key)))
        raise NotImplementedError("State enum type could not be determined from TRANSITIONS. Please override _default_state().")

    def on_event(self, event: EventT) -> bool:
        """
        Apply ``event`` to the current state.

        Returns True if a transition happened. Events with no transition
        from the current state are logged and leave the state untouched.
        """
        if not isinstance(event, Enum):
            raise TypeError("EventT must be an Enum instance")
        next_state = self.TRANSITIONS.get(self.state, {}).get(event)
        if next_state is None:
            self.logger.warning(f"Unhandled event {event} in state {self.state}")
            return False

        self.state = next_state
        return True

    def reset(self) -> None:
        self.state = self._initial_state

    def __repr__(self):
        return f"<{self.__class__.__name__} state={self.state}>"

    __str__ = __repr__
