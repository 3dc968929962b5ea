from radiora.core.config import ControllerSettings, DeviceSettings, RadioRAConfig, load_config
from radiora.lutron.commands import OutputCommand, SetLevelOptions
from radiora.lutron.session import RadioRASession
from radiora.lutron.types import (
    ConfigurationError,
    ProtocolError,
    RadioRAError,
    SessionEvents,
    StatusEvent,
    status_key,
)
from radiora.lutron.watchdog import Watchdog, WatchdogContext, watchdog

__all__ = [
    "ConfigurationError",
    "ControllerSettings",
    "DeviceSettings",
    "OutputCommand",
    "ProtocolError",
    "RadioRAConfig",
    "RadioRAError",
    "RadioRASession",
    "SessionEvents",
    "SetLevelOptions",
    "StatusEvent",
    "Watchdog",
    "WatchdogContext",
    "load_config",
    "status_key",
    "watchdog",
]
