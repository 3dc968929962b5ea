import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

from .base import LutronCommand

logger = logging.getLogger(__name__)

TimeT = Union[int, float, str]

class OutputAction(Enum):
    ZONE_LEVEL = "1"         # Set/Get Zone Level


@dataclass(frozen=True)
class SetLevelOptions:
    """Optional fade and delay for a zone level change, in protocol units."""
    fade: Optional[TimeT] = None
    delay: Optional[TimeT] = None

    def parameters(self) -> List[Any]:
        # Fields are positional: a delay can only follow a fade
        if self.fade is None:
            if self.delay is not None:
                logger.debug(f"Dropping delay {self.delay} without fade")
            return []
        if self.delay is None:
            return [self.fade]
        return [self.fade, self.delay]


class OutputCommand(LutronCommand[OutputAction]):
    name = "OUTPUT"

    def __init__(self, iid: int, action: Union[str, OutputAction], parameters: Optional[List[Any]] = None):
        if isinstance(action, OutputAction):
            output_action = action
        else:
            try:
                output_action = OutputAction(action)
            except ValueError:
                raise ValueError(f"Invalid output action: {action}")

        super().__init__(iid, output_action, parameters)

    @classmethod
    def get_zone_level(cls, iid: int) -> 'OutputCommand':
        """Query the current zone level."""
        return cls(iid, OutputAction.ZONE_LEVEL)

    @classmethod
    def set_zone_level(cls, iid: int, level: float, options: Optional[SetLevelOptions] = None) -> 'OutputCommand':
        """Set the zone level, optionally with fade and delay."""
        options = options or SetLevelOptions()
        return cls(iid, OutputAction.ZONE_LEVEL, [level, *options.parameters()])

