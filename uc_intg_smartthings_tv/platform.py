"""
SmartThings platform: device discovery and accessory registration.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from uc_intg_smartthings_tv.accessory import Categories, PlatformAccessory
from uc_intg_smartthings_tv.client import Device, SmartThingsAPIError, SmartThingsClient
from uc_intg_smartthings_tv.config import PLUGIN_NAME, PlatformConfig
from uc_intg_smartthings_tv.host import HostEvents, PluginHost
from uc_intg_smartthings_tv.mapping import DeviceMapping, DeviceMappingStore
from uc_intg_smartthings_tv.tv import TvAccessory

_LOG = logging.getLogger(__name__)


class PlatformState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DISCOVERING = "discovering"


class OcfDeviceTypes:
    TELEVISION = "oic.d.tv"


RegisterHandler = Callable[
    [SmartThingsClient, Device, Optional[PlatformAccessory], Optional[DeviceMapping]], None
]


def describe_device(device: Device) -> str:
    if device.name:
        return f"{device.name} ({device.device_id})"
    return device.device_id


class SmartThingsPlatform:
    """Discovers SmartThings devices and registers the supported ones.

    Cached accessories are handed in through configure_accessory() before
    the host signals that launching finished. Discovery then runs once.
    """

    def __init__(self, config: PlatformConfig, api: PluginHost, log: Optional[logging.Logger] = None):
        self.config = config
        self.api = api
        self.log = log or _LOG

        self.accessories: Dict[str, PlatformAccessory] = {}
        self.tv_accessories: Dict[str, TvAccessory] = {}
        self.mappings = DeviceMappingStore(config.device_mappings)
        self.client: Optional[SmartThingsClient] = None

        self._register_handlers: Dict[str, RegisterHandler] = {
            OcfDeviceTypes.TELEVISION: self._register_tv_device,
        }

        self.log.debug("Finished initializing platform: %s", config.name)

        if not config.token:
            self.log.error("SmartThings API token must be configured")
            self.state = PlatformState.UNINITIALIZED
            return

        self.state = PlatformState.READY
        self.api.on(HostEvents.DID_FINISH_LAUNCHING, self._on_did_finish_launching)

    async def _on_did_finish_launching(self):
        if self.state is not PlatformState.READY:
            self.log.debug("Ignoring launch signal in state %s", self.state.value)
            return
        self.log.debug("Executed didFinishLaunching callback")
        await self.discover_devices()

    def configure_accessory(self, accessory: PlatformAccessory) -> None:
        """Restore an accessory from the host cache."""
        if accessory.UUID in self.accessories:
            self.log.warning("Ignoring duplicate cached accessory: %s", accessory.display_name)
            return
        self.log.info("Loading accessory from cache: %s", accessory.display_name)
        self.accessories[accessory.UUID] = accessory

    async def discover_devices(self) -> None:
        """Lists the account's devices and registers each one."""
        self.state = PlatformState.DISCOVERING
        self.client = SmartThingsClient(self.config.token)

        try:
            devices = await self.client.list_devices()
        except SmartThingsAPIError as e:
            self.log.error("Failed to list SmartThings devices: %s", e)
            return

        for device in devices:
            try:
                self.register_device(self.client, device)
            except Exception as e:
                self.log.error("Failed to register SmartThings device %s: %s",
                               describe_device(device), e, exc_info=True)

    def register_device(self, client: SmartThingsClient, device: Device) -> None:
        existing_accessory = self.accessories.get(device.device_id)

        handler = self._register_handlers.get(device.device_type)
        if handler is None:
            self.log.info("Ignoring SmartThings device %s because device type %s is not implemented",
                          describe_device(device), device.device_type)
            return

        handler(client, device, existing_accessory, self.mappings.find(device.device_id))

    def _register_tv_device(
        self,
        client: SmartThingsClient,
        device: Device,
        accessory: Optional[PlatformAccessory],
        mapping: Optional[DeviceMapping],
    ) -> None:
        self.log.info("%s %s",
                      "Restoring existing accessory from cache:" if accessory else "Adding new accessory:",
                      describe_device(device))

        if not device.components:
            self.log.info("Can't register TV accessory because (main) component does not exist")
            return
        component = device.components[0]

        if accessory is None:
            accessory = self.api.platform_accessory(device.display_name, device.device_id)
            accessory.category = Categories.TELEVISION
            accessory.context["device"] = device.snapshot()
            self.accessories[device.device_id] = accessory
            self.api.publish_external_accessories(PLUGIN_NAME, [accessory])
        else:
            accessory.display_name = device.display_name
            accessory.context["device"] = device.snapshot()
            self.api.update_platform_accessories([accessory])

        self.tv_accessories[device.device_id] = TvAccessory(
            self.log,
            self.config.capability_logging,
            self,
            accessory,
            device,
            component,
            client,
            mapping.mac_address if mapping else None,
            mapping.ip_address if mapping else None,
        )

    def needs_reload(self, config: PlatformConfig) -> bool:
        """True when a saved configuration cannot be served by this instance."""
        return self.state is PlatformState.UNINITIALIZED or config.token != self.config.token

    async def shutdown(self) -> None:
        self.api.remove_listener(HostEvents.DID_FINISH_LAUNCHING, self._on_did_finish_launching)
        for tv in self.tv_accessories.values():
            tv.detach()
        if self.client:
            await self.client.close()
