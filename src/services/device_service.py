"""
Device orchestration: directory lookup, adapter dispatch, discovery persistence
"""

import asyncio
import ipaddress
import logging
import socket
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Union

from adapters.base import DeviceAdapter
from adapters.errors import DeviceNotFoundError, DeviceValidationError, NotSupportedError
from adapters.models import (
    CAPABILITY_PAIRING, DEFAULT_CAPABILITIES, DeviceInfo, DeviceStatus,
    NowPlayingInfo, PingResult, Preset, VendorInfo, VolumeInfo
)
from adapters.registry import AdapterRegistry
from adapters.soundtouch_xml import LOCAL_RADIO_SOURCE
from database.models import Device
from discovery import DiscoveryResult, is_allowed_lan_address, is_valid_network_mask
from .station_files import StationFileService, slugify

logger = logging.getLogger(__name__)


class DeviceService:
    """Single entry point for every device operation exposed by the API"""

    def __init__(self, directory, registry: AdapterRegistry,
                 station_files: Optional[StationFileService] = None,
                 default_network_mask: Optional[str] = None):
        self.directory = directory
        self.registry = registry
        self.station_files = station_files
        self.default_network_mask = default_network_mask

    async def _get_device(self, device_id: str) -> Device:
        device = await self.directory.get_device(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device

    def _get_adapter(self, device: Device) -> DeviceAdapter:
        adapter = self.registry.get(device.vendor)
        if adapter is None:
            raise NotSupportedError(f"No adapter found for vendor {device.vendor}")
        return adapter

    async def _resolve(self, device_id: str) -> DeviceAdapter:
        return self._get_adapter(await self._get_device(device_id))

    # === Directory ===

    async def get_all_devices(self, vendor: Optional[str] = None) -> List[Device]:
        if vendor:
            return await self.directory.get_devices_by_vendor(vendor)
        return await self.directory.list_devices()

    async def get_device(self, device_id: str) -> Optional[Device]:
        return await self.directory.get_device(device_id)

    async def add_device(self, name: str, address: str, vendor: str) -> Device:
        """Register a device by address or hostname and probe what it can do"""
        adapter = self.registry.get(vendor)
        if adapter is None:
            raise NotSupportedError(f"No adapter found for vendor {vendor}")

        ip_address = await self._resolve_host(address)
        if not is_allowed_lan_address(ip_address):
            logger.warning(f"Device '{name}' at {ip_address} is outside the private LAN ranges")

        try:
            capabilities = await adapter.probe_capabilities(ip_address)
        except Exception as e:
            logger.warning(f"Failed to query capabilities for device at {ip_address}: {e}")
            capabilities = set(DEFAULT_CAPABILITIES)

        device = Device(
            id=str(uuid.uuid4()),
            vendor=adapter.vendor_id,
            name=name,
            ip_address=ip_address,
            capabilities=set(capabilities),
            date_time_added=datetime.now(timezone.utc),
        )
        await self.directory.add_device(device)
        logger.info(f"Added device '{name}' ({device.id}) at {ip_address}")
        return device

    async def update_device(self, device_id: str, name: str, address: str,
                            capabilities: Optional[Iterable[str]] = None) -> Device:
        device = await self._get_device(device_id)
        device.name = name
        device.ip_address = await self._resolve_host(address)
        if capabilities is not None:
            device.capabilities = set(capabilities)
        await self.directory.update_device(device)
        return device

    async def remove_device(self, device_id: str) -> bool:
        return await self.directory.remove_device(device_id)

    async def _resolve_host(self, host_or_ip: str) -> str:
        host_or_ip = (host_or_ip or '').strip()
        if not host_or_ip:
            raise DeviceValidationError("IP address or hostname is required")
        try:
            return str(ipaddress.ip_address(host_or_ip))
        except ValueError:
            pass

        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host_or_ip, None, family=socket.AF_INET, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise DeviceValidationError(f"Could not resolve hostname: {host_or_ip}") from e
        if not infos:
            raise DeviceValidationError(f"Could not resolve hostname: {host_or_ip}")
        return infos[0][4][0]

    async def get_network_mask(self) -> Optional[str]:
        """Stored mask, else the configured one, else None (scan the local /24)"""
        network_mask = await self.directory.get_network_mask()
        return network_mask or self.default_network_mask

    async def set_network_mask(self, network_mask: str):
        network_mask = (network_mask or '').strip()
        if not is_valid_network_mask(network_mask):
            raise DeviceValidationError(
                f"Invalid network mask format: {network_mask}. Expected CIDR notation (e.g., 192.168.1.0/24)"
            )
        await self.directory.set_network_mask(network_mask)

    def get_vendors(self) -> List[VendorInfo]:
        return self.registry.vendor_infos()

    # === Device operations ===

    async def get_capabilities(self, device_id: str) -> Set[str]:
        device = await self._get_device(device_id)
        return set(device.capabilities)

    async def get_status(self, device_id: str) -> DeviceStatus:
        return await (await self._resolve(device_id)).get_status(device_id)

    async def get_device_info(self, device_id: str) -> DeviceInfo:
        return await (await self._resolve(device_id)).get_device_info(device_id)

    async def get_now_playing(self, device_id: str) -> NowPlayingInfo:
        return await (await self._resolve(device_id)).get_now_playing(device_id)

    async def get_volume(self, device_id: str) -> VolumeInfo:
        return await (await self._resolve(device_id)).get_volume(device_id)

    async def set_power(self, device_id: str, on: bool):
        await (await self._resolve(device_id)).set_power(device_id, on)

    async def set_volume(self, device_id: str, level: int):
        await (await self._resolve(device_id)).set_volume(device_id, level)

    async def mute(self, device_id: str):
        await (await self._resolve(device_id)).mute(device_id)

    async def press_key(self, device_id: str, key: str):
        await (await self._resolve(device_id)).press_key(device_id, key)

    async def enter_pairing_mode(self, device_id: str):
        device = await self._get_device(device_id)
        if CAPABILITY_PAIRING not in device.capabilities:
            raise DeviceValidationError("Device does not support Bluetooth pairing")
        await self._get_adapter(device).enter_pairing_mode(device_id)

    async def ping(self, device_id: str) -> PingResult:
        return await (await self._resolve(device_id)).ping(device_id)

    # === Presets ===

    async def list_presets(self, device_id: str) -> List[Preset]:
        return await (await self._resolve(device_id)).list_presets(device_id)

    async def store_preset(self, device_id: str, preset: Preset, stream_url: Optional[str] = None,
                           is_update: bool = False) -> Preset:
        """
        Store a preset on the device. A local radio preset given a stream URL
        gets a station file whose public URL becomes the preset location.
        """
        adapter = await self._resolve(device_id)
        if int(preset.id) not in adapter.preset_slots:
            raise DeviceValidationError(f"Invalid preset slot: {preset.id}")

        if preset.source == LOCAL_RADIO_SOURCE and stream_url:
            if self.station_files is None:
                raise NotSupportedError("Station file storage is not configured")
            if is_update:
                slug = self.station_files.update(slugify(preset.name), preset.name, stream_url)
            else:
                slug = self.station_files.create(preset.name, stream_url)
            preset.location = self.station_files.public_url(slug)
        elif not preset.location:
            raise DeviceValidationError("Location is required when no stream URL is given")

        return await adapter.store_preset(device_id, preset)

    async def remove_preset(self, device_id: str, slot: int) -> bool:
        return await (await self._resolve(device_id)).remove_preset(device_id, slot)

    async def play_preset(self, device_id: str, slot: Union[int, str]):
        await (await self._resolve(device_id)).play_preset(device_id, slot)

    # === Discovery ===

    async def discover_and_persist(self, timeout: Optional[float] = None) -> DiscoveryResult:
        """Scan with every registered adapter and save devices at addresses not yet known"""
        network_mask = await self.get_network_mask()
        existing = await self.directory.list_devices()
        known_addresses = {device.ip_address for device in existing}

        discovered: List[Device] = []
        new_devices: List[Device] = []

        for adapter in self.registry.adapters():
            try:
                candidates = await adapter.discover_devices(network_mask, timeout=timeout)
            except Exception as e:
                logger.error(f"Failed to discover devices for vendor {adapter.vendor_id}: {e}")
                continue

            for device in candidates:
                discovered.append(device)
                if device.ip_address in known_addresses:
                    continue
                try:
                    await self.directory.add_device(device)
                except Exception as e:
                    logger.error(f"Failed to save discovered device {device.name} at {device.ip_address}: {e}")
                    continue
                known_addresses.add(device.ip_address)
                new_devices.append(device)
                logger.info(f"Auto-saved discovered device: {device.name} at {device.ip_address}")

        logger.info(f"Discovery complete: {len(discovered)} found, {len(new_devices)} new")
        return DiscoveryResult(discovered=len(discovered), new=len(new_devices), devices=new_devices)
