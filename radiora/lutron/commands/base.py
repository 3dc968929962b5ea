from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar, Union

from ..types import COMMAND_EXECUTE_PREFIX, COMMAND_QUERY_PREFIX, LINE_END

ActionT = TypeVar('ActionT', bound=Union[str, Enum])


def format_parameter(value: Any) -> str:
    """Render a command field the way the controller expects it."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        raise TypeError("Boolean values are not valid command parameters")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def terminate(command: str) -> str:
    """Ensure ``command`` ends with exactly one protocol line terminator."""
    return command if command.endswith(LINE_END) else command + LINE_END


class LutronCommand(Generic[ActionT]):
    """
    A command addressed to a single integration id.

    Subclasses set ``name`` (e.g. "OUTPUT") and build on ``query`` and
    ``execute`` to render the ``?`` and ``#`` forms.
    """
    name: str = ""

    def __init__(self, iid: int, action: ActionT, parameters: Optional[List[Any]] = None):
        if isinstance(iid, bool) or not isinstance(iid, int):
            raise TypeError(f"Integration id must be an int, got {iid!r}")
        self.iid = iid
        self.action = action
        self.parameters: List[Any] = list(parameters or [])

    def query(self) -> str:
        return f"{COMMAND_QUERY_PREFIX}{self.name},{self.iid}"

    def execute(self) -> str:
        fields = [self.name, str(self.iid), format_parameter(self.action)]
        fields += [format_parameter(p) for p in self.parameters]
        return COMMAND_EXECUTE_PREFIX + ",".join(fields)

    def __repr__(self):
        return f"<{self.__class__.__name__} iid={self.iid} action={self.action} parameters={self.parameters}>"
