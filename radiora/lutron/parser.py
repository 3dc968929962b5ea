import logging

from radiora.utils.eventbus import EventBus

from .cache import StatusCache
from .types import (
    COMMAND_RESPONSE_PREFIX,
    RE_OUTPUT_STATUS,
    ProtocolError,
    StatusEvent,
)


def parse_status(line: str) -> StatusEvent | None:
    """
    Decode an output level push. Returns None for lines of any other
    shape so unknown status reports pass through untouched.
    """
    match = RE_OUTPUT_STATUS.match(line.strip())
    if match is None:
        return None

    device_id, level = match.groups()
    try:
        float(level)
    except ValueError:
        raise ProtocolError("Malformed output level", line)
    return StatusEvent(int(device_id), level)


class StatusParser:
    """Turns authenticated-state lines into cache updates and bus events."""

    def __init__(self, cache: StatusCache, bus: EventBus):
        self.cache = cache
        self.bus = bus
        self.logger = logging.getLogger(self.__class__.__name__)

    def handle_line(self, line: str) -> StatusEvent | None:
        try:
            event = parse_status(line)
            if event is None:
                if line.startswith(COMMAND_RESPONSE_PREFIX):
                    self.logger.debug(f"Ignoring unhandled status: {line}")
                return None

            self.cache.record_level(event.device_id, event.level)
            self.bus.emit(event.key, event)
            return event
        except Exception as e:
            self.logger.error(f"Failed to handle line {line!r}: {e}")
            return None
