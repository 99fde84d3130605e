#!/usr/bin/env python3
"""
SmartThings TV Device Analyzer - Standalone Script
No dependencies required beyond Python standard library

Lists the devices visible to a SmartThings token, shows which ones the
integration registers as televisions and writes a deviceMappings skeleton
that can be completed with MAC and IP addresses.

:copyright: (c) 2025 by Meir Miyara
:license: MPL-2.0, see LICENSE for more details
"""

import json
import ssl
import sys
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

SUPPORTED_DEVICE_TYPES = {"oic.d.tv": "television"}


class SmartThingsDeviceAnalyzer:
    """Standalone SmartThings device analyzer"""

    def __init__(self, token: Optional[str] = None):
        self.base_url = "https://api.smartthings.com/v1"
        self.token = token

    def make_request(self, endpoint: str) -> Dict[str, Any]:
        """Make HTTP request to SmartThings API"""
        if not self.token:
            raise ValueError("No access token provided")

        if endpoint.startswith("https://"):
            url = endpoint
        else:
            url = f"{self.base_url}/{endpoint.lstrip('/')}"

        headers = {
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/json',
            'User-Agent': 'SmartThings-TV-Device-Analyzer/1.0'
        }

        try:
            request = Request(url, headers=headers)
            context = ssl.create_default_context()
            with urlopen(request, context=context, timeout=30) as response:
                return json.loads(response.read().decode('utf-8'))

        except HTTPError as e:
            if e.code == 401:
                raise ValueError("Invalid or expired access token")
            elif e.code == 403:
                raise ValueError("Access token lacks required permissions")
            elif e.code == 429:
                raise ValueError("Rate limit exceeded. Please wait and try again.")
            else:
                raise ValueError(f"API Error {e.code}: {e.reason}")
        except URLError as e:
            raise ValueError(f"Network error: {e.reason}")

    def get_devices(self) -> List[Dict[str, Any]]:
        """Get every device, following result pages"""
        devices = []
        endpoint = "/devices"
        while endpoint:
            response = self.make_request(endpoint)
            devices.extend(response.get("items") or [])
            endpoint = ((response.get("_links") or {}).get("next") or {}).get("href")
        return devices

    @staticmethod
    def analyze_device(device: Dict[str, Any]) -> Dict[str, Any]:
        """Summarize how the integration treats a single device"""
        ocf_type = (device.get("ocf") or {}).get("ocfDeviceType")
        components = device.get("components") or []
        supported_as = SUPPORTED_DEVICE_TYPES.get(ocf_type)

        analysis = {
            "device_id": device.get("deviceId", "unknown"),
            "name": device.get("label") or device.get("name") or device.get("deviceId", "Unknown Device"),
            "ocf_device_type": ocf_type,
            "supported_as": supported_as,
            "primary_component": components[0].get("id") if components else None,
            "capabilities": [],
        }

        if components:
            for capability in components[0].get("capabilities", []):
                cap_id = capability.get("id", "")
                if cap_id:
                    analysis["capabilities"].append(cap_id)

        if supported_as and not components:
            analysis["problem"] = "no components, the integration will skip this device"

        return analysis

    @staticmethod
    def build_mapping_skeleton(analyses: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        """deviceMappings entries for every supported television"""
        return [
            {"deviceId": a["device_id"], "macAddress": "", "ipAddress": ""}
            for a in analyses
            if a["supported_as"] == "television" and a["primary_component"]
        ]

    def run_analysis(self, output_filename: str = "smartthings_tv_analysis.json"):
        """Main analysis workflow"""
        print("=" * 60)
        print("SmartThings TV Device Analyzer")
        print("=" * 60)

        while not self.token:
            print("Please enter your SmartThings Personal Access Token:")
            print("(You can generate one at: https://account.smartthings.com/tokens)")
            self.token = input("Token: ").strip()

        print("\nConnecting to SmartThings API...")

        try:
            devices = self.get_devices()
        except ValueError as e:
            print(f"Error: {e}")
            return

        if not devices:
            print("No devices found for this token.")
            return

        analyses = [self.analyze_device(device) for device in devices]

        for i, analysis in enumerate(analyses, 1):
            print(f"\nDevice {i}: {analysis['name']}")
            print(f"   ID: {analysis['device_id']}")
            print(f"   OCF type: {analysis['ocf_device_type']}")
            print(f"   Supported: {analysis['supported_as'] or 'no'}")
            print(f"   Capabilities ({len(analysis['capabilities'])}): {', '.join(analysis['capabilities'])}")
            if "problem" in analysis:
                print(f"   Problem: {analysis['problem']}")

        result = {
            "device_count": len(devices),
            "devices": analyses,
            "deviceMappings": self.build_mapping_skeleton(analyses),
        }

        with open(output_filename, 'w', encoding='utf-8') as f:
            json.dump(result, f, indent=2, ensure_ascii=False)

        print(f"\nSupported televisions: {len(result['deviceMappings'])}")
        print(f"Analysis and deviceMappings skeleton saved to: {output_filename}")


def main():
    """Main entry point"""
    token = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        SmartThingsDeviceAnalyzer(token).run_analysis()
    except KeyboardInterrupt:
        print("\nAnalysis cancelled by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
