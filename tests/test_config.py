"""Tests for configuration loading and saving."""

import json
import os

from uc_intg_smartthings_tv.config import ConfigManager, PlatformConfig


def test_camel_case_keys_are_accepted():
    config = PlatformConfig.model_validate({
        "token": "abc",
        "capabilityLogging": True,
        "deviceMappings": [{"deviceId": "d1", "macAddress": "AA:BB", "ipAddress": "10.0.0.5"}],
    })

    assert config.capability_logging is True
    assert config.device_mappings[0].device_id == "d1"


def test_snake_case_keys_are_accepted():
    config = PlatformConfig(token="abc", capability_logging=True)

    assert config.capability_logging is True


def test_blank_token_is_treated_as_missing():
    assert PlatformConfig(token="   ").token is None


def test_defaults():
    config = PlatformConfig()

    assert config.name == "SmartThings TV"
    assert config.token is None
    assert config.device_mappings == []
    assert config.capability_logging is False


def test_load_without_file_returns_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path))

    assert manager.load_config() == PlatformConfig()
    assert manager.is_configured() is False


def test_save_and_load_round_trip(tmp_path):
    manager = ConfigManager(str(tmp_path))
    config = PlatformConfig.model_validate({
        "token": "abc",
        "deviceMappings": [{"deviceId": "d1", "macAddress": "AA:BB"}],
    })

    assert manager.save_config(config) is True

    with open(manager.config_file, encoding="utf-8") as f:
        stored = json.load(f)
    assert stored["deviceMappings"][0]["deviceId"] == "d1"
    assert stored["capabilityLogging"] is False

    loaded = manager.load_config()
    assert loaded.token == "abc"
    assert loaded.device_mappings[0].mac_address == "AA:BB"
    assert manager.is_configured() is True


def test_second_save_keeps_backup(tmp_path):
    manager = ConfigManager(str(tmp_path))
    manager.save_config(PlatformConfig(token="first"))
    manager.save_config(PlatformConfig(token="second"))

    assert os.path.exists(manager.backup_file)
    with open(manager.backup_file, encoding="utf-8") as f:
        assert json.load(f)["token"] == "first"


def test_invalid_json_falls_back_to_backup(tmp_path):
    manager = ConfigManager(str(tmp_path))
    manager.save_config(PlatformConfig(token="first"))
    manager.save_config(PlatformConfig(token="second"))

    with open(manager.config_file, "w", encoding="utf-8") as f:
        f.write("{not json")

    assert manager.load_config().token == "first"


def test_invalid_mapping_falls_back_to_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path))
    with open(manager.config_file, "w", encoding="utf-8") as f:
        json.dump({"token": "abc", "deviceMappings": [{"macAddress": "AA:BB"}]}, f)

    assert manager.load_config() == PlatformConfig()
