"""
SmartThings TV Integration for Unfolded Circle Remote Two/3.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import json
import logging
import os
from pathlib import Path

from ucapi import IntegrationAPI
from ucapi.api_definitions import DeviceStates

from uc_intg_smartthings_tv.accessory import AccessoryCache
from uc_intg_smartthings_tv.config import ConfigManager, PlatformConfig
from uc_intg_smartthings_tv.host import PluginHost
from uc_intg_smartthings_tv.platform import PlatformState, SmartThingsPlatform
from uc_intg_smartthings_tv.setup_flow import SmartThingsSetupFlow

DRIVER_PATH = Path(__file__).parent.parent / "driver.json"

try:
    with open(DRIVER_PATH, "r", encoding="utf-8") as f:
        driver_info = json.load(f)
        __version__ = driver_info.get("version", "0.0.0")
except (FileNotFoundError, json.JSONDecodeError, KeyError):
    __version__ = "0.0.0"

__all__ = ["__version__", "main"]

_LOG = logging.getLogger(__name__)


async def main():
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
    )

    _LOG.info("Starting SmartThings TV Integration v%s", __version__)

    loop = asyncio.get_running_loop()
    api = IntegrationAPI(loop)
    config_dir = api.config_dir_path or os.getcwd()
    _LOG.info("Using configuration path: %s", config_dir)

    config_manager = ConfigManager(config_dir)
    host = PluginHost(api, AccessoryCache(config_dir), loop)
    platform = host.load_platform(SmartThingsPlatform, config_manager.load_config())

    async def on_configured(config: PlatformConfig):
        nonlocal platform
        if platform.needs_reload(config):
            _LOG.info("Token configured, reloading SmartThings platform")
            platform = await host.reload_platform(platform, config)
        await api.set_device_state(DeviceStates.CONNECTED)

    setup_flow = SmartThingsSetupFlow(config_manager, on_configured)

    try:
        await api.init(os.path.abspath(DRIVER_PATH), setup_flow.handle_setup_request)

        if platform.state is PlatformState.UNINITIALIZED:
            await api.set_device_state(DeviceStates.AWAITING_SETUP)
        else:
            await api.set_device_state(DeviceStates.CONNECTED)

        host.finish_launching()
        _LOG.info("SmartThings TV integration started")

        await asyncio.Future()

    except asyncio.CancelledError:
        _LOG.info("Integration shutdown requested")
    except Exception as err:
        _LOG.critical("Fatal error: %s", err, exc_info=True)
        raise
    finally:
        await host.shutdown()
