import logging
from enum import Enum, auto
from typing import Callable

from radiora.utils.state import StateMachine

from .types import LINE_END, RE_LOGIN_PROMPT, RE_PASSWORD_PROMPT


class LoginState(Enum):
    AWAIT_LOGIN_PROMPT = auto()
    AWAIT_PASSWORD_PROMPT = auto()
    AUTHENTICATED = auto()

    def __str__(self):
        return self.name


class LoginEvent(Enum):
    LOGIN_PROMPT = auto()
    PASSWORD_PROMPT = auto()

    def __str__(self):
        return self.name


class LoginStateMachine(StateMachine[LoginState, LoginEvent]):
    TRANSITIONS = {
        LoginState.AWAIT_LOGIN_PROMPT: {
            LoginEvent.LOGIN_PROMPT: LoginState.AWAIT_PASSWORD_PROMPT,
        },
        LoginState.AWAIT_PASSWORD_PROMPT: {
            LoginEvent.PASSWORD_PROMPT: LoginState.AUTHENTICATED,
        },
        LoginState.AUTHENTICATED: {},
    }


class LoginHandshake:
    """
    Answers the controller's login and password prompts.

    Lines that do not match the prompt expected in the current state are
    logged and otherwise ignored; the controller either prompts again or
    the connection is eventually dropped.
    """

    def __init__(
        self,
        username: str,
        password: str,
        write: Callable[[str], None],
        on_authenticated: Callable[[], None],
    ):
        self.username = username
        self.password = password
        self.write = write
        self.on_authenticated = on_authenticated
        self.machine = LoginStateMachine()
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def state(self) -> LoginState:
        return self.machine.state

    @property
    def authenticated(self) -> bool:
        return self.machine.state is LoginState.AUTHENTICATED

    def reset(self) -> None:
        self.machine.reset()

    def handle_line(self, line: str) -> None:
        if self.authenticated:
            raise RuntimeError("Login handshake already complete")

        if not line.strip():
            self.logger.debug(f"Ignoring blank line in {self.state}")
            return

        if self.state is LoginState.AWAIT_LOGIN_PROMPT:
            if not RE_LOGIN_PROMPT.match(line):
                self.logger.warning(f"Bad initial response /{line}/")
                return
            self.write(self.username + LINE_END)
            self.machine.on_event(LoginEvent.LOGIN_PROMPT)

        elif self.state is LoginState.AWAIT_PASSWORD_PROMPT:
            if not RE_PASSWORD_PROMPT.match(line):
                self.logger.warning(f"Bad login response /{line}/")
                return
            self.write(self.password + LINE_END)
            self.machine.on_event(LoginEvent.PASSWORD_PROMPT)
            self.on_authenticated()
