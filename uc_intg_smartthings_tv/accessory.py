"""
Host accessory records and their on-disk cache.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details.
"""

import json
import logging
import os
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional

_LOG = logging.getLogger(__name__)


class Categories(IntEnum):
    """Accessory categories known to the host."""

    OTHER = 1
    TELEVISION = 31


class PlatformAccessory:
    """Persisted representation of one externally controllable device."""

    def __init__(self, display_name: str, uuid: str, category: Categories = Categories.OTHER):
        self.display_name = display_name
        self.UUID = uuid
        self.category = category
        self.plugin_name: Optional[str] = None
        self.context: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"PlatformAccessory({self.display_name!r}, {self.UUID!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "UUID": self.UUID,
            "displayName": self.display_name,
            "category": int(self.category),
            "plugin": self.plugin_name,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformAccessory":
        try:
            category = Categories(data.get("category", Categories.OTHER))
        except ValueError:
            category = Categories.OTHER
        accessory = cls(data.get("displayName") or data["UUID"], data["UUID"], category)
        accessory.plugin_name = data.get("plugin")
        accessory.context = dict(data.get("context") or {})
        return accessory


class AccessoryCache:

    def __init__(self, config_dir: str):
        self.cache_file = os.path.join(config_dir, "cached_accessories.json")
        self._accessories: Dict[str, PlatformAccessory] = {}

        os.makedirs(config_dir, exist_ok=True)

    @property
    def accessories(self) -> List[PlatformAccessory]:
        return list(self._accessories.values())

    def load(self) -> List[PlatformAccessory]:
        self._accessories = {}
        if not os.path.exists(self.cache_file):
            _LOG.debug("No accessory cache found at %s", self.cache_file)
            return []

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            _LOG.error("Failed to read accessory cache %s: %s", self.cache_file, e)
            return []

        for entry in entries if isinstance(entries, list) else []:
            if not isinstance(entry, dict):
                _LOG.warning("Skipping malformed cached accessory %r", entry)
                continue
            try:
                accessory = PlatformAccessory.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                _LOG.warning("Skipping malformed cached accessory %s: %s", entry, e)
                continue
            self._accessories[accessory.UUID] = accessory

        _LOG.info("Loaded %d cached accessories", len(self._accessories))
        return self.accessories

    def register(self, accessories: Iterable[PlatformAccessory]) -> None:
        for accessory in accessories:
            self._accessories[accessory.UUID] = accessory
        self.save()

    def update(self, accessories: Iterable[PlatformAccessory]) -> None:
        for accessory in accessories:
            if accessory.UUID not in self._accessories:
                _LOG.warning("Updating accessory %s that was never registered", accessory.UUID)
            self._accessories[accessory.UUID] = accessory
        self.save()

    def save(self) -> bool:
        try:
            with open(self.cache_file, "w", encoding="utf-8") as f:
                json.dump([a.to_dict() for a in self._accessories.values()], f, indent=2)
        except (OSError, TypeError) as e:
            _LOG.error("Failed to save accessory cache: %s", e)
            return False
        return True
