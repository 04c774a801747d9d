"""
Vendor adapter contract

Every vendor speaks its own control protocol; the orchestration layer only ever
talks to this interface and never branches on vendor. Operations a vendor has
no equivalent for keep the default implementation, which raises
NotSupportedError (permanent) as opposed to DeviceUnreachableError (transient).
"""

from abc import ABC, abstractmethod
from typing import FrozenSet, List, Optional, Set, Union

from database.models import Device
from .errors import NotSupportedError
from .models import DeviceInfo, DeviceStatus, NowPlayingInfo, PingResult, Preset, VolumeInfo


class DeviceAdapter(ABC):
    """Uniform operation set over one vendor's native protocol"""

    vendor_id: str = ""
    vendor_name: str = ""
    default_port: int = 0
    preset_slots: range = range(0)
    supported_keys: FrozenSet[str] = frozenset()

    def _unsupported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(f"{self.vendor_name or self.vendor_id} does not support {operation}")

    # === Required ===

    @abstractmethod
    async def probe_capabilities(self, address: str, timeout: Optional[float] = None) -> Set[str]:
        """Best effort, returns at least the default capabilities"""

    @abstractmethod
    async def get_status(self, device_id: str) -> DeviceStatus:
        """Status snapshot, an offline value when the device does not answer"""

    @abstractmethod
    async def discover_devices(self, network_mask: Optional[str] = None,
                               timeout: Optional[float] = None) -> List[Device]:
        """Unsaved device candidates found on the network"""

    # === Optional ===

    async def get_device_info(self, device_id: str) -> DeviceInfo:
        raise self._unsupported("device info")

    async def get_now_playing(self, device_id: str) -> NowPlayingInfo:
        raise self._unsupported("now playing")

    async def get_volume(self, device_id: str) -> VolumeInfo:
        raise self._unsupported("volume query")

    async def set_power(self, device_id: str, on: bool):
        raise self._unsupported("power control")

    async def set_volume(self, device_id: str, level: int):
        raise self._unsupported("volume control")

    async def mute(self, device_id: str):
        raise self._unsupported("mute")

    async def press_key(self, device_id: str, key: str):
        raise self._unsupported("key presses")

    async def enter_pairing_mode(self, device_id: str):
        raise self._unsupported("pairing mode")

    async def list_presets(self, device_id: str) -> List[Preset]:
        raise self._unsupported("presets")

    async def store_preset(self, device_id: str, preset: Preset) -> Preset:
        raise self._unsupported("presets")

    async def remove_preset(self, device_id: str, slot: int) -> bool:
        raise self._unsupported("presets")

    async def play_preset(self, device_id: str, slot: Union[int, str]):
        raise self._unsupported("presets")

    async def ping(self, device_id: str) -> PingResult:
        raise self._unsupported("ping")

    async def close(self):
        """Release transport resources"""
