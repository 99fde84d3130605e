"""
:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details
"""

import datetime
import json
import logging
import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from uc_intg_smartthings_tv.mapping import DeviceMapping

_LOG = logging.getLogger(__name__)

PLUGIN_NAME = "uc-intg-smartthings-tv"


class PlatformConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, validate_assignment=True)

    name: str = "SmartThings TV"
    token: Optional[str] = None
    device_mappings: List[DeviceMapping] = Field(default_factory=list, alias="deviceMappings")
    capability_logging: bool = Field(False, alias="capabilityLogging")

    @field_validator("token")
    @classmethod
    def strip_token(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class ConfigManager:
    CONFIG_VERSION = "1.0"

    def __init__(self, config_dir: str):
        self.config_dir = config_dir
        self.config_file = os.path.join(config_dir, "smartthings_tv_config.json")
        self.backup_file = os.path.join(config_dir, "smartthings_tv_config_backup.json")

        os.makedirs(config_dir, exist_ok=True)

    def load_config(self) -> PlatformConfig:
        if not os.path.exists(self.config_file):
            _LOG.info("No configuration file found, using defaults")
            return PlatformConfig()

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                raw_config = json.load(f)

            config = PlatformConfig.model_validate(raw_config)
            _LOG.info("Configuration loaded and validated successfully")
            return config

        except json.JSONDecodeError as e:
            _LOG.error("Invalid JSON in config file: %s", e)
            return self._load_backup_or_default()
        except ValidationError as e:
            _LOG.error("Configuration validation failed: %s", e)
            return self._load_backup_or_default()
        except OSError as e:
            _LOG.error("Failed to load configuration: %s", e)
            return self._load_backup_or_default()

    def save_config(self, config: PlatformConfig) -> bool:
        data = config.model_dump(by_alias=True)
        data["_config_version"] = self.CONFIG_VERSION
        data["_last_updated"] = datetime.datetime.now().isoformat()

        if os.path.exists(self.config_file):
            try:
                os.replace(self.config_file, self.backup_file)
            except OSError as e:
                _LOG.warning("Failed to create config backup: %s", e)

        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as e:
            _LOG.error("Failed to save configuration: %s", e)
            if os.path.exists(self.backup_file):
                try:
                    os.replace(self.backup_file, self.config_file)
                    _LOG.info("Configuration restored from backup")
                except OSError as restore_error:
                    _LOG.error("Failed to restore configuration backup: %s", restore_error)
            return False

        _LOG.info("Configuration saved successfully")
        return True

    def is_configured(self) -> bool:
        return bool(self.load_config().token)

    def _load_backup_or_default(self) -> PlatformConfig:
        if os.path.exists(self.backup_file):
            try:
                with open(self.backup_file, "r", encoding="utf-8") as f:
                    backup_config = json.load(f)
                config = PlatformConfig.model_validate(backup_config)
                _LOG.info("Loaded configuration from backup")
                return config
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                _LOG.error("Backup configuration also invalid: %s", e)

        _LOG.warning("Using default configuration")
        return PlatformConfig()
