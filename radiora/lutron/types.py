import re
from dataclasses import dataclass
from enum import Enum

DEFAULT_PORT = 23

# Command prefixes
COMMAND_QUERY_PREFIX = "?"
COMMAND_EXECUTE_PREFIX = "#"
COMMAND_RESPONSE_PREFIX = "~"

LINE_END = "\r\n"

# Prompts are written without a line terminator
RE_LOGIN_PROMPT = re.compile(r"^login:\s*", re.IGNORECASE)
RE_PASSWORD_PROMPT = re.compile(r"^password:\s*", re.IGNORECASE)
RE_COMMAND_PROMPT = re.compile(r"GNET>\s?")
RE_LOGIN_REJECTED = re.compile(r"login incorrect", re.IGNORECASE)
RE_ANY_PROMPT = re.compile(r"^(login:|password:|GNET>)\s*$", re.IGNORECASE)

RE_OUTPUT_STATUS = re.compile(r"^~OUTPUT,(\d+),1,([\d.]+)")


class SessionEvents(Enum):
    LOGGED_IN = "loggedIn"
    CONNECTION_LOST = "connectionLost"


class EventKind(Enum):
    STATUS = "status"


@dataclass(frozen=True)
class StatusEvent:
    """A decoded ``~OUTPUT,<id>,1,<level>`` push."""
    device_id: int
    level: str
    kind: EventKind = EventKind.STATUS

    @property
    def value(self) -> float:
        return float(self.level)

    @property
    def key(self) -> tuple[EventKind, int]:
        return status_key(self.device_id)


def status_key(device_id: int) -> tuple[EventKind, int]:
    return (EventKind.STATUS, device_id)


# Error types
class RadioRAError(Exception):
    """Base class for RadioRA errors."""
    pass


class ConfigurationError(RadioRAError):
    """Raised when controller or device settings are incomplete."""
    pass


class ProtocolError(RadioRAError):
    """Raised when a controller line cannot be decoded."""

    def __init__(self, message: str, line: str | None = None):
        self.line = line
        if line is not None:
            message = f"{message} (line: {line!r})"
        super().__init__(message)
