from dataclasses import dataclass


@dataclass
class DeviceStatus:
    level: str | None = None
    in_flight: bool = False


class StatusCache:
    """Last known level per output, plus a flag for an outstanding query."""

    def __init__(self):
        self._entries: dict[int, DeviceStatus] = {}

    def entry(self, device_id: int) -> DeviceStatus:
        return self._entries.setdefault(device_id, DeviceStatus())

    def get(self, device_id: int) -> DeviceStatus | None:
        return self._entries.get(device_id)

    def record_level(self, device_id: int, level: str) -> DeviceStatus:
        status = self.entry(device_id)
        status.level = level
        status.in_flight = False
        return status

    def begin_query(self, device_id: int) -> bool:
        """Mark a query in flight. Returns False if one already was."""
        status = self.entry(device_id)
        if status.in_flight:
            return False
        status.in_flight = True
        return True

    def end_query(self, device_id: int) -> None:
        status = self._entries.get(device_id)
        if status is not None:
            status.in_flight = False

    def snapshot(self) -> dict[int, dict]:
        return {
            device_id: {"level": status.level, "in_flight": status.in_flight}
            for device_id, status in self._entries.items()
        }

    def __contains__(self, device_id: int) -> bool:
        return device_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
