"""
Transient device snapshots returned by adapters (never persisted)
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, FrozenSet

# Capability vocabulary is open; these are the names adapters in this repo emit
CAPABILITY_POWER = "power"
CAPABILITY_VOLUME = "volume"
CAPABILITY_PRESETS = "presets"
CAPABILITY_PING = "ping"
CAPABILITY_PAIRING = "bluetoothPairing"

DEFAULT_CAPABILITIES: FrozenSet[str] = frozenset({CAPABILITY_POWER, CAPABILITY_VOLUME})

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _clamp_volume(value: int) -> int:
    return max(0, min(100, value))


@dataclass
class DeviceStatus:
    device_id: str
    online: bool
    power_state: bool
    volume: int
    current_source: Optional[str] = None
    current_preset: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def offline(cls, device_id: str) -> "DeviceStatus":
        """Safe default for a device that did not answer"""
        return cls(device_id=device_id, online=False, power_state=False, volume=0)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class VolumeInfo:
    target_volume: int
    actual_volume: int
    is_muted: bool

    def __post_init__(self):
        self.target_volume = _clamp_volume(self.target_volume)
        self.actual_volume = _clamp_volume(self.actual_volume)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class NowPlayingInfo:
    source: str
    track: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    station_name: Optional[str] = None
    play_status: Optional[str] = None
    art_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DeviceInfo:
    device_id: str
    name: str
    type: str
    mac_address: Optional[str] = None
    ip_address: Optional[str] = None
    software_version: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Preset:
    id: int
    name: str
    location: str = ""
    device_id: Optional[str] = None
    icon_url: Optional[str] = None
    type: str = "stationurl"
    source: str = "LOCAL_INTERNET_RADIO"
    is_presetable: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PingResult:
    reachable: bool
    latency_ms: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class VendorInfo:
    id: str
    name: str

    def to_dict(self) -> dict:
        return asdict(self)
