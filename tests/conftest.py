"""Test fixtures for the SmartThings TV integration."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from uc_intg_smartthings_tv.accessory import AccessoryCache
from uc_intg_smartthings_tv.client import Device
from uc_intg_smartthings_tv.config import PlatformConfig
from uc_intg_smartthings_tv.host import PluginHost

TV_CAPABILITIES = ["switch", "audioVolume", "audioMute", "samsungvd.mediaInputSource", "refresh"]


def make_device(
    device_id: str,
    ocf_type: Optional[str] = "oic.d.tv",
    components: Optional[List[Dict[str, Any]]] = None,
    name: Optional[str] = None,
    label: Optional[str] = None,
) -> Device:
    data: Dict[str, Any] = {"deviceId": device_id}
    if name:
        data["name"] = name
    if label:
        data["label"] = label
    if ocf_type:
        data["ocf"] = {"ocfDeviceType": ocf_type}
    if components is not None:
        data["components"] = components
    return Device.model_validate(data)


def tv_components(capabilities: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    caps = TV_CAPABILITIES if capabilities is None else capabilities
    return [{"id": "main", "capabilities": [{"id": cap, "version": 1} for cap in caps]}]


async def drain(iterations: int = 5) -> None:
    """Let tasks scheduled by the event emitter run."""
    for _ in range(iterations):
        await asyncio.sleep(0)


@pytest.fixture
def mock_api() -> MagicMock:
    """A mocked ucapi IntegrationAPI."""
    api = MagicMock()
    api.set_device_state = AsyncMock()
    api.available_entities.contains.return_value = False
    api.available_entities.add.return_value = True
    return api


@pytest.fixture
def cache(tmp_path) -> AccessoryCache:
    return AccessoryCache(str(tmp_path))


@pytest.fixture
def host(mock_api, cache) -> PluginHost:
    return PluginHost(mock_api, cache)


@pytest.fixture
def config() -> PlatformConfig:
    return PlatformConfig.model_validate({
        "name": "SmartThings TV",
        "token": "t1",
        "deviceMappings": [
            {"deviceId": "d1", "macAddress": "AA:BB", "ipAddress": "10.0.0.5"},
        ],
    })


@pytest.fixture
def smartthings_client() -> MagicMock:
    client = MagicMock()
    client.list_devices = AsyncMock(return_value=[])
    client.get_component_status = AsyncMock(return_value={})
    client.execute_command = AsyncMock(return_value=True)
    client.close = AsyncMock()
    return client
