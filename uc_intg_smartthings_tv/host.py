"""
Plugin host: lifecycle events, accessory publication and entity bridge.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pyee.asyncio import AsyncIOEventEmitter
from ucapi import IntegrationAPI
from ucapi.api_definitions import DeviceStates, Events

from uc_intg_smartthings_tv.accessory import AccessoryCache, Categories, PlatformAccessory
from uc_intg_smartthings_tv.config import PLUGIN_NAME, PlatformConfig

_LOG = logging.getLogger(__name__)


class HostEvents:
    DID_FINISH_LAUNCHING = "didFinishLaunching"
    ENTITIES_SUBSCRIBED = "entitiesSubscribed"
    SHUTDOWN = "shutdown"


class PluginHost:
    """Runtime a platform plugin is loaded into.

    Restores cached accessories into a platform before signalling that
    launching finished, persists published accessories and forwards
    entities to the ucapi integration API.
    """

    def __init__(
        self,
        api: IntegrationAPI,
        cache: AccessoryCache,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.api = api
        self.cache = cache
        self.events = AsyncIOEventEmitter(loop=loop)
        self.platforms: List[Any] = []
        self._launched = False

        self.events.on("error", self._on_error)
        self._register_event_handlers()

    def _register_event_handlers(self):
        @self.api.listens_to(Events.CONNECT)
        async def on_connect():
            _LOG.info("UC Remote connected")
            await self.api.set_device_state(DeviceStates.CONNECTED)

        @self.api.listens_to(Events.SUBSCRIBE_ENTITIES)
        async def on_subscribe_entities(entity_ids: List[str]):
            _LOG.info("Remote subscribed to %d entities", len(entity_ids))
            self.events.emit(HostEvents.ENTITIES_SUBSCRIBED, list(entity_ids))

    def _on_error(self, error: Exception):
        _LOG.error("Unhandled error in plugin event handler: %s", error, exc_info=error)

    @property
    def launched(self) -> bool:
        return self._launched

    def on(self, event: str, handler: Callable) -> Callable:
        return self.events.on(event, handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        if handler in self.events.listeners(event):
            self.events.remove_listener(event, handler)

    def load_platform(self, platform_class: Callable[..., Any], config: PlatformConfig) -> Any:
        platform = platform_class(config, self)
        self.platforms.append(platform)

        for accessory in self.cache.load():
            if accessory.plugin_name not in (None, PLUGIN_NAME):
                continue
            platform.configure_accessory(accessory)

        if self._launched:
            self.events.emit(HostEvents.DID_FINISH_LAUNCHING)
        return platform

    async def reload_platform(self, platform: Any, config: PlatformConfig) -> Any:
        """Replace a loaded platform with a fresh instance built from config."""
        _LOG.info("Reloading platform %s", type(platform).__name__)
        await platform.shutdown()
        if platform in self.platforms:
            self.platforms.remove(platform)
        return self.load_platform(type(platform), config)

    def finish_launching(self) -> None:
        if self._launched:
            return
        self._launched = True
        _LOG.debug("Emitting %s", HostEvents.DID_FINISH_LAUNCHING)
        self.events.emit(HostEvents.DID_FINISH_LAUNCHING)

    def platform_accessory(self, display_name: str, uuid: str) -> PlatformAccessory:
        return PlatformAccessory(display_name, uuid, Categories.OTHER)

    def publish_external_accessories(self, plugin_name: str, accessories: Iterable[PlatformAccessory]) -> None:
        accessories = list(accessories)
        for accessory in accessories:
            accessory.plugin_name = plugin_name
            _LOG.info("Publishing external accessory %s (%s)", accessory.display_name, accessory.UUID)
        self.cache.register(accessories)

    def update_platform_accessories(self, accessories: Iterable[PlatformAccessory]) -> None:
        self.cache.update(accessories)

    def add_entity(self, entity) -> bool:
        if self.api.available_entities.contains(entity.id):
            self.api.available_entities.remove(entity.id)
        added = self.api.available_entities.add(entity)
        if not added:
            _LOG.warning("Failed to add entity to UC API: %s", entity.id)
        return added

    def update_attributes(self, entity_id: str, attributes: Dict[str, Any]) -> None:
        self.api.configured_entities.update_attributes(entity_id, attributes)

    async def shutdown(self) -> None:
        self.events.emit(HostEvents.SHUTDOWN)
        for platform in self.platforms:
            await platform.shutdown()
        _LOG.info("Plugin host shut down")
