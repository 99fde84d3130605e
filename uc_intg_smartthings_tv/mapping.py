"""
Static device id to network address mappings.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

_LOG = logging.getLogger(__name__)


class DeviceMapping(BaseModel):
    """MAC and IP address configured for a SmartThings device.

    Addresses are passed through unchecked; the consumer decides what a
    malformed value means.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    device_id: str = Field(..., alias="deviceId")
    mac_address: Optional[str] = Field(None, alias="macAddress")
    ip_address: Optional[str] = Field(None, alias="ipAddress")


def find_device_mapping(mappings: Sequence[DeviceMapping], device_id: str) -> Optional[DeviceMapping]:
    for mapping in mappings:
        if mapping.device_id == device_id:
            return mapping
    return None


class DeviceMappingStore:

    def __init__(self, mappings: Optional[Iterable[DeviceMapping]] = None):
        self._mappings: List[DeviceMapping] = list(mappings or [])

    def find(self, device_id: str) -> Optional[DeviceMapping]:
        """Return the mapping configured for ``device_id`` or None."""
        mapping = find_device_mapping(self._mappings, device_id)
        if mapping is None:
            _LOG.debug("No address mapping configured for device %s", device_id)
        return mapping

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[DeviceMapping]:
        return iter(self._mappings)
