from dataclasses import dataclass, field
from typing import Any
from omegaconf import OmegaConf, DictConfig, ListConfig

from radiora.lutron.types import ConfigurationError, DEFAULT_PORT

DEFAULT_CONFIG_PATH = "config.yml"

class RadioRAConfig:
    def __init__(self, config: DictConfig | ListConfig):
        self._config = config

    def get(self, key: str, default: Any = None) -> Any:
        return OmegaConf.select(self._config, key, default=default)

def load_config(path: str = DEFAULT_CONFIG_PATH) -> RadioRAConfig:
    config = OmegaConf.load(path)
    return RadioRAConfig(config)


@dataclass(frozen=True)
class DeviceSettings:
    id: int
    name: str
    serial: str = ""

    @classmethod
    def from_dict(cls, data) -> "DeviceSettings":
        if "id" not in data:
            raise ConfigurationError(f"Device entry is missing an id: {dict(data)}")
        try:
            device_id = int(data["id"])
        except (TypeError, ValueError):
            raise ConfigurationError(f"Device id must be numeric: {data['id']!r}")
        name = data.get("name") or f"Output {device_id}"
        serial = str(data.get("serial") or "")
        return cls(device_id, name, serial)


@dataclass(frozen=True)
class ControllerSettings:
    """Connection parameters for a single controller."""
    host: str
    username: str
    password: str
    port: int = DEFAULT_PORT
    # Seconds
    timeout: float = 4.0
    set_echo_timeout: float = 1.0
    reconnect_delay: float = 5.0
    name: str = "default"
    devices: tuple[DeviceSettings, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, config: RadioRAConfig, section: str = "radiora") -> "ControllerSettings":
        host = config.get(f"{section}.host")
        username = config.get(f"{section}.username")
        password = config.get(f"{section}.password")
        if not host:
            raise ConfigurationError(f"{section}.host must be configured")
        if username is None or password is None:
            raise ConfigurationError(f"{section}.username and {section}.password must be configured")

        # The controller configuration has always expressed timeouts in ms
        timeout_ms = config.get(f"{section}.timeout", 4000)
        echo_ms = config.get(f"{section}.set_echo_timeout", 1000)

        entries = config.get(f"{section}.devices")
        if entries is None:
            entries = config.get(f"{section}.shades", [])
        devices = tuple(DeviceSettings.from_dict(entry) for entry in entries)

        return cls(
            host=str(host),
            username=str(username),
            password=str(password),
            port=int(config.get(f"{section}.port", DEFAULT_PORT)),
            timeout=float(timeout_ms) / 1000,
            set_echo_timeout=float(echo_ms) / 1000,
            reconnect_delay=float(config.get(f"{section}.reconnect_delay", 5)),
            name=str(config.get(f"{section}.name", "default")),
            devices=devices,
        )
