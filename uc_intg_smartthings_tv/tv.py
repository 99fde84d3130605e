"""
Television accessory backed by a SmartThings device component.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import wakeonlan
from ucapi.api_definitions import StatusCodes
from ucapi.media_player import (
    Attributes as MediaAttr,
    Commands as MediaCommands,
    DeviceClasses as MediaClasses,
    Features as MediaFeatures,
    MediaPlayer,
    States as MediaStates,
)

from uc_intg_smartthings_tv.accessory import PlatformAccessory
from uc_intg_smartthings_tv.client import Device, DeviceComponent, SmartThingsAPIError, SmartThingsClient
from uc_intg_smartthings_tv.host import HostEvents

if TYPE_CHECKING:
    from uc_intg_smartthings_tv.platform import SmartThingsPlatform

_LOG = logging.getLogger(__name__)

REMOTE_CONTROL_PORT = 8001
REACHABILITY_TIMEOUT = 2.0
WAKE_DELAY = 2.0

INPUT_SOURCE_CAPABILITIES = ("samsungvd.mediaInputSource", "mediaInputSource")


class TvAccessory:
    """Maps media player commands onto the capabilities of one TV component."""

    def __init__(
        self,
        log: logging.Logger,
        capability_logging: bool,
        platform: "SmartThingsPlatform",
        accessory: PlatformAccessory,
        device: Device,
        component: DeviceComponent,
        client: SmartThingsClient,
        mac_address: Optional[str] = None,
        ip_address: Optional[str] = None,
    ):
        self.log = log or _LOG
        self.capability_logging = capability_logging
        self.platform = platform
        self.accessory = accessory
        self.device = device
        self.component = component
        self.client = client
        self.mac_address = mac_address
        self.ip_address = ip_address

        self.capabilities = set(component.capability_ids)
        self.input_capability = next(
            (cap for cap in INPUT_SOURCE_CAPABILITIES if cap in self.capabilities), None
        )
        self._source_ids: Dict[str, str] = {}

        if self.capability_logging:
            self.log.info("Capabilities of %s (%s): %s",
                          accessory.display_name, component.id, sorted(self.capabilities))

        self.entity = MediaPlayer(
            f"st_{device.device_id}",
            accessory.display_name,
            self._features(),
            {MediaAttr.STATE: MediaStates.UNKNOWN},
            device_class=MediaClasses.TV,
            cmd_handler=self.handle_command,
        )
        self.platform.api.add_entity(self.entity)
        self.platform.api.on(HostEvents.ENTITIES_SUBSCRIBED, self._on_entities_subscribed)

    @property
    def device_id(self) -> str:
        return self.device.device_id

    def _features(self) -> List[MediaFeatures]:
        features = []
        if "switch" in self.capabilities or self.mac_address:
            features.extend([MediaFeatures.ON_OFF, MediaFeatures.TOGGLE])
        if "audioVolume" in self.capabilities:
            features.extend([MediaFeatures.VOLUME, MediaFeatures.VOLUME_UP_DOWN])
        if "audioMute" in self.capabilities:
            features.extend([MediaFeatures.MUTE, MediaFeatures.UNMUTE, MediaFeatures.MUTE_TOGGLE])
        if self.input_capability:
            features.append(MediaFeatures.SELECT_SOURCE)
        return features

    def detach(self) -> None:
        self.platform.api.remove_listener(HostEvents.ENTITIES_SUBSCRIBED, self._on_entities_subscribed)

    async def _on_entities_subscribed(self, entity_ids: List[str]):
        if self.entity.id in entity_ids:
            await self.update()

    async def is_reachable(self) -> bool:
        """Probe the TV's remote control port on the mapped IP address."""
        if not self.ip_address:
            return True
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.ip_address, REMOTE_CONTROL_PORT),
                timeout=REACHABILITY_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            self.log.debug("Error closing reachability probe to %s: %s", self.ip_address, e)
        return True

    async def update(self) -> None:
        if not await self.is_reachable():
            self._set_attributes({MediaAttr.STATE: MediaStates.OFF})
            return

        try:
            status = await self.client.get_component_status(self.device_id, self.component.id)
        except SmartThingsAPIError as e:
            self.log.warning("Failed to read status of %s: %s", self.accessory.display_name, e)
            self._set_attributes({MediaAttr.STATE: MediaStates.UNAVAILABLE})
            return

        if self.capability_logging:
            self.log.info("Status of %s: %s", self.accessory.display_name, status)

        self._set_attributes(self._attributes_from_status(status))

    def _attributes_from_status(self, status: Dict[str, Any]) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}

        power = _value(status, "switch", "switch")
        if power == "on":
            attributes[MediaAttr.STATE] = MediaStates.ON
        elif power == "off":
            attributes[MediaAttr.STATE] = MediaStates.OFF

        volume = _value(status, "audioVolume", "volume")
        if volume is not None:
            attributes[MediaAttr.VOLUME] = volume

        mute = _value(status, "audioMute", "mute")
        if mute is not None:
            attributes[MediaAttr.MUTED] = mute == "muted"

        if self.input_capability:
            self._source_ids = self._read_sources(status)
            if self._source_ids:
                attributes[MediaAttr.SOURCE_LIST] = list(self._source_ids)
            current = _value(status, self.input_capability, "inputSource")
            if current is not None:
                names = {source_id: name for name, source_id in self._source_ids.items()}
                attributes[MediaAttr.SOURCE] = names.get(current, current)

        return attributes

    def _read_sources(self, status: Dict[str, Any]) -> Dict[str, str]:
        source_map = _value(status, self.input_capability, "supportedInputSourcesMap")
        if source_map:
            return {entry.get("name") or entry["id"]: entry["id"] for entry in source_map if "id" in entry}

        sources = _value(status, self.input_capability, "supportedInputSources") or []
        return {source: source for source in sources}

    def _set_attributes(self, attributes: Dict[str, Any]) -> None:
        if not attributes:
            return
        self.entity.attributes.update(attributes)
        self.platform.api.update_attributes(self.entity.id, attributes)

    def _wake(self) -> bool:
        if not self.mac_address:
            return False
        try:
            wakeonlan.send_magic_packet(self.mac_address)
        except (ValueError, OSError) as e:
            self.log.warning("Failed to send Wake-on-LAN packet to %s: %s", self.mac_address, e)
            return False
        self.log.debug("Sent Wake-on-LAN packet to %s", self.mac_address)
        return True

    def _map_command(
        self, cmd_id: str, params: Dict[str, Any]
    ) -> Tuple[Optional[str], Optional[str], Optional[List[Any]]]:
        if cmd_id == MediaCommands.OFF and "switch" in self.capabilities:
            return "switch", "off", None
        if cmd_id == MediaCommands.VOLUME and "audioVolume" in self.capabilities:
            if params.get("volume") is None:
                raise ValueError("missing volume parameter")
            return "audioVolume", "setVolume", [int(params["volume"])]
        if cmd_id == MediaCommands.VOLUME_UP and "audioVolume" in self.capabilities:
            return "audioVolume", "volumeUp", None
        if cmd_id == MediaCommands.VOLUME_DOWN and "audioVolume" in self.capabilities:
            return "audioVolume", "volumeDown", None
        if cmd_id == MediaCommands.MUTE and "audioMute" in self.capabilities:
            return "audioMute", "mute", None
        if cmd_id == MediaCommands.UNMUTE and "audioMute" in self.capabilities:
            return "audioMute", "unmute", None
        if cmd_id == MediaCommands.MUTE_TOGGLE and "audioMute" in self.capabilities:
            muted = self.entity.attributes.get(MediaAttr.MUTED, False)
            return "audioMute", "unmute" if muted else "mute", None
        if cmd_id == MediaCommands.SELECT_SOURCE and self.input_capability:
            source = params.get("source")
            if not source:
                return None, None, None
            return self.input_capability, "setInputSource", [self._source_ids.get(source, source)]
        return None, None, None

    async def _power_on(self) -> bool:
        woke = self._wake()
        if woke:
            await asyncio.sleep(WAKE_DELAY)
        if "switch" not in self.capabilities:
            return woke
        return await self.client.execute_command(self.device_id, "switch", "on", component=self.component.id)

    async def handle_command(self, entity, cmd_id: str, params: Dict[str, Any] = None) -> StatusCodes:
        if params is None:
            params = {}

        self.log.info("Command received: %s -> %s %s", entity.name, cmd_id, params)

        if cmd_id == MediaCommands.TOGGLE:
            state = self.entity.attributes.get(MediaAttr.STATE)
            cmd_id = MediaCommands.OFF if state == MediaStates.ON else MediaCommands.ON

        if cmd_id == MediaCommands.ON:
            success = await self._power_on()
        else:
            try:
                capability, command, args = self._map_command(cmd_id, params)
            except (TypeError, ValueError) as e:
                self.log.warning("Invalid parameters for %s on %s: %s", cmd_id, entity.name, e)
                return StatusCodes.BAD_REQUEST
            if not capability or not command:
                self.log.warning("Unhandled command '%s' for %s", cmd_id, entity.name)
                return StatusCodes.NOT_IMPLEMENTED
            success = await self.client.execute_command(
                self.device_id, capability, command, args, component=self.component.id
            )

        if not success:
            self.log.error("Command failed for %s: %s", entity.name, cmd_id)
            return StatusCodes.SERVER_ERROR

        await self.update()
        return StatusCodes.OK


def _value(status: Dict[str, Any], capability: str, attribute: str) -> Any:
    return ((status.get(capability) or {}).get(attribute) or {}).get("value")
