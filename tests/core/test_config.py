import pytest
from omegaconf import OmegaConf

from radiora.core.config import ControllerSettings, DeviceSettings, RadioRAConfig, load_config
from radiora.lutron.types import ConfigurationError


@pytest.fixture
def raw_config():
    return OmegaConf.create({
        'radiora': {
            'host': '10.0.0.5',
            'username': 'lutron',
            'password': 'integration',
            'timeout': 2500,
            'devices': [
                {'id': 5, 'name': 'Kitchen Shade', 'serial': 'RA-5'},
                {'id': '7'},
            ],
        },
    })


def test_get_nested_key(raw_config):
    cfg = RadioRAConfig(raw_config)
    assert cfg.get('radiora.host') == '10.0.0.5'
    assert cfg.get('radiora.nope', 'fallback') == 'fallback'
    assert cfg.get('does_not_exist') is None


def test_settings_from_config(raw_config):
    settings = ControllerSettings.from_config(RadioRAConfig(raw_config))
    assert settings.host == '10.0.0.5'
    assert settings.port == 23
    assert settings.timeout == 2.5
    assert settings.set_echo_timeout == 1.0
    assert settings.reconnect_delay == 5.0
    assert settings.devices == (
        DeviceSettings(5, 'Kitchen Shade', 'RA-5'),
        DeviceSettings(7, 'Output 7', ''),
    )


def test_default_timeout():
    cfg = RadioRAConfig(OmegaConf.create({'radiora': {'host': 'h', 'username': 'u', 'password': 'p'}}))
    settings = ControllerSettings.from_config(cfg)
    assert settings.timeout == 4.0
    assert settings.devices == ()


def test_legacy_shades_key():
    cfg = RadioRAConfig(OmegaConf.create({
        'radiora': {'host': 'h', 'username': 'u', 'password': 'p', 'shades': [{'id': 3, 'name': 'Den'}]},
    }))
    assert ControllerSettings.from_config(cfg).devices == (DeviceSettings(3, 'Den'),)


@pytest.mark.parametrize('missing', ['host', 'username', 'password'])
def test_missing_required_key(raw_config, missing):
    del raw_config.radiora[missing]
    with pytest.raises(ConfigurationError):
        ControllerSettings.from_config(RadioRAConfig(raw_config))


def test_bad_device_id(raw_config):
    raw_config.radiora.devices.append({'id': 'kitchen'})
    with pytest.raises(ConfigurationError):
        ControllerSettings.from_config(RadioRAConfig(raw_config))


def test_load_config_from_file(tmp_path):
    path = tmp_path / 'config.yml'
    path.write_text("radiora:\n  host: example\n  username: u\n  password: p\n")
    cfg = load_config(str(path))
    assert ControllerSettings.from_config(cfg).host == 'example'
