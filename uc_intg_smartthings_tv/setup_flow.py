"""
:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ucapi.api_definitions import (
    DriverSetupRequest, IntegrationSetupError, SetupComplete, SetupDriver, SetupError
)

from uc_intg_smartthings_tv.client import SmartThingsAPIError, SmartThingsClient
from uc_intg_smartthings_tv.config import ConfigManager

_LOG = logging.getLogger(__name__)

AUTH_FAILURE_CODES = (401, 403)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


class SmartThingsSetupFlow:

    def __init__(
        self,
        config_manager: ConfigManager,
        on_configured: Optional[Callable[[Any], Awaitable[None]]] = None,
    ):
        self.config_manager = config_manager
        self.on_configured = on_configured

    async def handle_setup_request(self, msg: SetupDriver) -> Any:
        if isinstance(msg, DriverSetupRequest):
            return await self._handle_driver_setup(msg.setup_data or {}, msg.reconfigure)

        _LOG.warning("Unsupported setup message type: %s", type(msg))
        return SetupError(IntegrationSetupError.OTHER)

    async def _handle_driver_setup(self, setup_data: Dict[str, Any], reconfigure: bool = False) -> Any:
        _LOG.info("Starting SmartThings TV setup (reconfigure=%s)", reconfigure)

        token = (setup_data.get("token") or "").strip()
        if not token:
            _LOG.error("Setup data does not contain a SmartThings token")
            return SetupError(IntegrationSetupError.OTHER)

        client = SmartThingsClient(token)
        try:
            devices = await client.list_devices()
        except SmartThingsAPIError as e:
            _LOG.error("Token validation failed: %s", e)
            if e.status_code in AUTH_FAILURE_CODES:
                return SetupError(IntegrationSetupError.AUTHORIZATION_ERROR)
            return SetupError(IntegrationSetupError.CONNECTION_REFUSED)
        finally:
            await client.close()

        _LOG.info("Token valid, %d devices visible to the account", len(devices))

        config = self.config_manager.load_config()
        config.token = token
        if "capability_logging" in setup_data:
            config.capability_logging = _as_bool(setup_data["capability_logging"])

        if not self.config_manager.save_config(config):
            return SetupError(IntegrationSetupError.OTHER)

        if self.on_configured:
            await self.on_configured(config)

        return SetupComplete()
