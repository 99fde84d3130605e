"""
:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details
"""

import asyncio
import logging
import ssl
from typing import Any, Dict, List, Optional

import aiohttp
import certifi
from pydantic import BaseModel, ConfigDict, Field, ValidationError

_LOG = logging.getLogger(__name__)

BASE_URL = "https://api.smartthings.com/v1"


class SmartThingsAPIError(Exception):
    """Custom exception for API errors."""
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class CapabilityReference(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    version: int = 1


class DeviceComponent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = "main"
    label: Optional[str] = None
    capabilities: List[CapabilityReference] = Field(default_factory=list)

    @property
    def capability_ids(self) -> List[str]:
        return [cap.id for cap in self.capabilities]

    def has_capability(self, capability: str) -> bool:
        return any(cap.id == capability for cap in self.capabilities)


class OcfDeviceInfo(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ocf_device_type: Optional[str] = Field(None, alias="ocfDeviceType")
    manufacturer_name: Optional[str] = Field(None, alias="manufacturerName")
    model_number: Optional[str] = Field(None, alias="modelNumber")


class Device(BaseModel):
    """Read-only projection of a SmartThings device descriptor."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    device_id: str = Field(..., alias="deviceId")
    name: Optional[str] = None
    label: Optional[str] = None
    location_id: Optional[str] = Field(None, alias="locationId")
    ocf: Optional[OcfDeviceInfo] = None
    components: List[DeviceComponent] = Field(default_factory=list)

    @property
    def device_type(self) -> Optional[str]:
        return self.ocf.ocf_device_type if self.ocf else None

    @property
    def display_name(self) -> str:
        return self.label or self.name or self.device_id

    def snapshot(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SmartThingsClient:
    """SmartThings REST client authenticated with a bearer token.

    One instance is shared by every consumer created during a discovery
    pass. The aiohttp session is created lazily and recreated after close().
    """

    def __init__(self, token: str, base_url: str = BASE_URL):
        if not token:
            raise SmartThingsAPIError("No authentication token available")

        self.base_url = base_url
        self._token = token
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_creation_lock = asyncio.Lock()

        self._connection_pool_limit = 4
        self._request_timeout = 10

    def _create_ssl_context(self) -> ssl.SSLContext:
        try:
            return ssl.create_default_context(cafile=certifi.where())
        except (OSError, ssl.SSLError) as e:
            _LOG.warning("Failed to create SSL context with certifi: %s", e)
            return ssl.create_default_context()

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        if self._session and not self._session.closed:
            return
        async with self._session_creation_lock:
            if not self._session or self._session.closed:
                connector = aiohttp.TCPConnector(
                    limit=self._connection_pool_limit,
                    limit_per_host=3,
                    ttl_dns_cache=600,
                    ssl=self._create_ssl_context(),
                )
                timeout = aiohttp.ClientTimeout(total=self._request_timeout, connect=4)
                self._session = aiohttp.ClientSession(
                    connector=connector,
                    timeout=timeout,
                    headers={"User-Agent": "UC-SmartThings-TV-Integration/1.0"},
                )
                _LOG.debug("Created new aiohttp session")

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
            _LOG.debug("SmartThings API session closed")
        self._session = None

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        await self._ensure_session()

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"
        url = self._url(endpoint)

        _LOG.debug("Making request: %s %s", method, url)

        try:
            async with self._session.request(method, url, headers=headers, **kwargs) as response:
                if response.status == 401:
                    raise SmartThingsAPIError("Authentication failed, check the SmartThings token", 401)

                if response.status == 429:
                    raise SmartThingsAPIError("Rate limit exceeded", 429)

                if response.status >= 400:
                    error_text = await response.text()
                    _LOG.error("SmartThings API Error %s: %s", response.status, error_text)
                    raise SmartThingsAPIError(
                        f"API request failed with status {response.status}: {error_text}",
                        response.status,
                    )

                if response.content_type == "application/json":
                    return await response.json()
                return {}

        except aiohttp.ClientError as e:
            _LOG.warning("SmartThings HTTP Client Error: %s", e)
            raise SmartThingsAPIError(f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            _LOG.warning("SmartThings API Timeout: %s %s", method, url)
            raise SmartThingsAPIError("Request timeout") from e

    async def list_devices(self) -> List[Device]:
        """List every device visible to the token, following result pages."""
        devices: List[Device] = []
        endpoint: Optional[str] = "/devices"

        while endpoint:
            response = await self._make_request("GET", endpoint)
            for item in response.get("items") or []:
                try:
                    devices.append(Device.model_validate(item))
                except ValidationError as e:
                    device_id = item.get("deviceId") if isinstance(item, dict) else None
                    _LOG.warning("Skipping malformed SmartThings device %s: %s", device_id or "<unknown>", e)
            endpoint = ((response.get("_links") or {}).get("next") or {}).get("href")

        _LOG.info("Found %d devices", len(devices))
        return devices

    async def get_device_status(self, device_id: str) -> Dict[str, Any]:
        return await self._make_request("GET", f"/devices/{device_id}/status")

    async def get_component_status(self, device_id: str, component_id: str = "main") -> Dict[str, Any]:
        return await self._make_request("GET", f"/devices/{device_id}/components/{component_id}/status")

    async def execute_command(
        self,
        device_id: str,
        capability: str,
        command: str,
        args: Optional[List] = None,
        component: str = "main",
    ) -> bool:
        payload = {
            "commands": [{
                "component": component,
                "capability": capability,
                "command": command,
                "arguments": args if args is not None else [],
            }]
        }

        try:
            await self._make_request("POST", f"/devices/{device_id}/commands", json=payload)
        except SmartThingsAPIError as e:
            _LOG.error("Command failed: %s -> %s.%s: %s", device_id, capability, command, e)
            return False

        _LOG.info("Command executed: %s -> %s.%s(%s)", device_id, capability, command, args)
        return True
