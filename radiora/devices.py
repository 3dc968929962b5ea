from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from radiora.core.config import DeviceSettings
from radiora.lutron.commands import SetLevelOptions
from radiora.lutron.session import RadioRASession
from radiora.lutron.watchdog import Watchdog

MODEL = "RadioRA"
MANUFACTURER = "LUTRON"


@dataclass(frozen=True)
class RadioRAOutput:
    """A configured output bound to the session that controls it."""
    id: int
    name: str
    session: RadioRASession = field(repr=False, compare=False)
    serial: str = ""
    model: str = MODEL
    manufacturer: str = MANUFACTURER

    @classmethod
    def from_settings(cls, settings: DeviceSettings, session: RadioRASession) -> "RadioRAOutput":
        return cls(settings.id, settings.name, session, serial=settings.serial)

    def get_level(self, callback: Callable[..., Any]) -> Watchdog:
        """``callback(level)``, or ``callback()`` if the controller stays silent."""
        return self.session.watch_query(self.id, callback)

    def set_level(
        self,
        level: float,
        callback: Callable[..., Any],
        options: Optional[SetLevelOptions] = None,
    ) -> Watchdog:
        """``callback(status_event)``, or ``callback()`` if no status follows."""
        return self.session.watch_set(self.id, level, callback, options=options)

    async def level(self) -> Optional[float]:
        return await self.session.query_level(self.id)

    async def apply(self, level: float, fade: Optional[float] = None, delay: Optional[float] = None):
        return await self.session.set_level(self.id, level, SetLevelOptions(fade, delay))


def build_outputs(session: RadioRASession) -> list[RadioRAOutput]:
    """One output per device listed in the session's settings."""
    return [RadioRAOutput.from_settings(device, session) for device in session.settings.devices]
