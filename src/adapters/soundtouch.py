"""
Bose SoundTouch adapter
"""

import asyncio
import logging
import time
import uuid
from typing import Dict, List, Optional, Set, Union

from database.models import Device
from discovery.network_discovery import detect_local_network, network_hosts, parse_network_mask, scan_hosts
from .base import DeviceAdapter
from .errors import DeviceNotFoundError, DeviceUnreachableError, DeviceValidationError
from .models import (
    CAPABILITY_PAIRING, CAPABILITY_PING, CAPABILITY_PRESETS, DEFAULT_CAPABILITIES,
    DeviceInfo, DeviceStatus, NowPlayingInfo, PingResult, Preset, VolumeInfo
)
from .soundtouch_client import SOUNDTOUCH_PORT, SoundTouchClient
from .soundtouch_xml import (
    STANDBY_SOURCE, build_remove_preset, build_store_preset, build_volume,
    parse_device_info, parse_identity, parse_now_playing, parse_presets,
    parse_supported_urls, parse_volume
)

logger = logging.getLogger(__name__)

# Endpoint advertised in /supportedURLs -> capability it unlocks
SUPPORTED_URL_CAPABILITIES: Dict[str, str] = {
    "/presets": CAPABILITY_PRESETS,
    "/enterBluetoothPairing": CAPABILITY_PAIRING,
    "/playNotification": CAPABILITY_PING,
}

SOUNDTOUCH_KEYS = frozenset({
    "PLAY", "PAUSE", "STOP", "PLAY_PAUSE", "PREV_TRACK", "NEXT_TRACK",
    "THUMBS_UP", "THUMBS_DOWN", "BOOKMARK", "POWER", "MUTE",
    "VOLUME_UP", "VOLUME_DOWN", "AUX_INPUT",
    "SHUFFLE_OFF", "SHUFFLE_ON", "REPEAT_OFF", "REPEAT_ONE", "REPEAT_ALL",
    "ADD_FAVORITE", "REMOVE_FAVORITE",
    "PRESET_1", "PRESET_2", "PRESET_3", "PRESET_4", "PRESET_5", "PRESET_6",
})


class SoundTouchAdapter(DeviceAdapter):
    """Controls SoundTouch speakers over the WebServices API on port 8090"""

    vendor_id = "bose-soundtouch"
    vendor_name = "Bose SoundTouch"
    default_port = SOUNDTOUCH_PORT
    preset_slots = range(1, 7)
    supported_keys = SOUNDTOUCH_KEYS

    def __init__(self, directory, client: Optional[SoundTouchClient] = None,
                 ping_timeout: float = 10.0, probe_timeout: float = 2.0,
                 max_concurrent_probes: int = 32):
        self.directory = directory
        self.client = client or SoundTouchClient()
        self.ping_timeout = ping_timeout
        self.probe_timeout = probe_timeout
        self.max_concurrent_probes = max_concurrent_probes

    async def _resolve_address(self, device_id: str) -> str:
        device = await self.directory.get_device(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device.ip_address

    def _validate_slot(self, slot: Union[int, str]) -> int:
        try:
            number = int(slot)
        except (TypeError, ValueError):
            raise DeviceValidationError(f"Invalid preset slot: {slot}")
        if number not in self.preset_slots:
            raise DeviceValidationError(
                f"Preset slot must be between {self.preset_slots.start} and {self.preset_slots.stop - 1}, got {slot}"
            )
        return number

    # === Capabilities & status ===

    async def probe_capabilities(self, address: str, timeout: Optional[float] = None) -> Set[str]:
        capabilities = set(DEFAULT_CAPABILITIES)
        try:
            supported_urls = parse_supported_urls(
                await self.client.get(address, "/supportedURLs", timeout=timeout)
            )
        except DeviceUnreachableError as e:
            logger.warning(f"Capability probe failed for {address}, using defaults: {e}")
            return capabilities

        for url, capability in SUPPORTED_URL_CAPABILITIES.items():
            if url in supported_urls:
                capabilities.add(capability)
        return capabilities

    async def get_status(self, device_id: str) -> DeviceStatus:
        address = await self._resolve_address(device_id)

        volume, now_playing = await asyncio.gather(
            self._fetch_volume(address),
            self._fetch_now_playing(address),
            return_exceptions=True
        )
        for result in (volume, now_playing):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Status query failed for {device_id} at {address}: {result}")
                return DeviceStatus.offline(device_id)

        return DeviceStatus(
            device_id=device_id,
            online=True,
            power_state=now_playing.source != STANDBY_SOURCE,
            volume=volume.actual_volume,
            current_source=now_playing.source,
        )

    async def _fetch_volume(self, address: str) -> VolumeInfo:
        return parse_volume(await self.client.get(address, "/volume"))

    async def _fetch_now_playing(self, address: str) -> NowPlayingInfo:
        return parse_now_playing(await self.client.get(address, "/now_playing"))

    async def get_device_info(self, device_id: str) -> DeviceInfo:
        address = await self._resolve_address(device_id)
        return parse_device_info(await self.client.get(address, "/info"), device_id, address)

    async def get_now_playing(self, device_id: str) -> NowPlayingInfo:
        return await self._fetch_now_playing(await self._resolve_address(device_id))

    async def get_volume(self, device_id: str) -> VolumeInfo:
        return await self._fetch_volume(await self._resolve_address(device_id))

    # === Commands ===

    async def set_power(self, device_id: str, on: bool):
        address = await self._resolve_address(device_id)
        if on:
            await self.client.press_key(address, "POWER")
        else:
            await self.client.get(address, "/standby")
        logger.info(f"Power {'on' if on else 'off'} sent to {device_id}")

    async def set_volume(self, device_id: str, level: int):
        if not isinstance(level, int) or isinstance(level, bool) or not 0 <= level <= 100:
            raise DeviceValidationError(f"Volume must be between 0 and 100, got {level}")
        address = await self._resolve_address(device_id)
        await self.client.post_xml(address, "/volume", build_volume(level))

    async def mute(self, device_id: str):
        address = await self._resolve_address(device_id)
        await self.client.press_key(address, "MUTE")

    async def press_key(self, device_id: str, key: str):
        key = (key or "").strip().upper()
        if key not in self.supported_keys:
            raise DeviceValidationError(f"Unsupported key: {key or '<empty>'}")
        address = await self._resolve_address(device_id)
        await self.client.press_key(address, key)

    async def enter_pairing_mode(self, device_id: str):
        address = await self._resolve_address(device_id)
        await self.client.get(address, "/enterBluetoothPairing")
        logger.info(f"Bluetooth pairing mode entered on {device_id}")

    # === Presets ===

    async def list_presets(self, device_id: str) -> List[Preset]:
        address = await self._resolve_address(device_id)
        return parse_presets(await self.client.get(address, "/presets"), device_id)

    async def store_preset(self, device_id: str, preset: Preset) -> Preset:
        self._validate_slot(preset.id)
        address = await self._resolve_address(device_id)
        await self.client.post_xml(address, "/storePreset", build_store_preset(preset))
        logger.info(f"Stored preset {preset.id} '{preset.name}' on {device_id}")
        return Preset(
            id=preset.id,
            name=preset.name,
            location=preset.location,
            device_id=device_id,
            icon_url=preset.icon_url,
            type=preset.type,
            source=preset.source,
            is_presetable=True,
        )

    async def remove_preset(self, device_id: str, slot: int) -> bool:
        slot = self._validate_slot(slot)
        presets = await self.list_presets(device_id)
        if not any(preset.id == slot for preset in presets):
            return False

        address = await self._resolve_address(device_id)
        await self.client.post_xml(address, "/removePreset", build_remove_preset(slot))
        logger.info(f"Removed preset {slot} from {device_id}")
        return True

    async def play_preset(self, device_id: str, slot: Union[int, str]):
        slot = self._validate_slot(slot)
        address = await self._resolve_address(device_id)
        await self.client.press_key(address, f"PRESET_{slot}")

    # === Reachability ===

    async def ping(self, device_id: str) -> PingResult:
        address = await self._resolve_address(device_id)
        start = time.monotonic()
        try:
            await self.client.get(address, "/playNotification", timeout=self.ping_timeout)
        except DeviceUnreachableError as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.warning(f"Ping failed for {device_id} after {latency_ms}ms: {e}")
            return PingResult(reachable=False, latency_ms=latency_ms)

        latency_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"Device {device_id} responded in {latency_ms}ms")
        return PingResult(reachable=True, latency_ms=latency_ms)

    # === Discovery ===

    async def discover_devices(self, network_mask: Optional[str] = None,
                               timeout: Optional[float] = None) -> List[Device]:
        if not network_mask:
            network_mask = detect_local_network()
            if network_mask is None:
                logger.warning("No network mask configured and local network unknown, skipping scan")
                return []

        try:
            network = parse_network_mask(network_mask)
        except ValueError as e:
            raise DeviceValidationError(str(e)) from e
        logger.info(f"Scanning {network.num_addresses} addresses in {network} for {self.vendor_name} devices")
        devices = await scan_hosts(network_hosts(network), self._probe_host, self.max_concurrent_probes, timeout)
        logger.info(f"Found {len(devices)} {self.vendor_name} devices in {network_mask}")
        return devices

    async def _probe_host(self, address: str) -> Optional[Device]:
        device_id, name = parse_identity(
            await self.client.get(address, "/info", timeout=self.probe_timeout)
        )
        capabilities = await self.probe_capabilities(address, timeout=self.probe_timeout)
        logger.debug(f"{self.vendor_name} device '{name}' answered at {address}")
        return Device(
            id=device_id or str(uuid.uuid4()),
            vendor=self.vendor_id,
            name=name,
            ip_address=address,
            capabilities=capabilities,
        )

    async def close(self):
        await self.client.close()
