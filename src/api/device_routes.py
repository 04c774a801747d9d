"""
Speaker control API routes
"""

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from adapters.errors import DeviceNotFoundError
from adapters.models import Preset

logger = logging.getLogger(__name__)

# Request models
class AddDeviceRequest(BaseModel):
    name: str = Field(..., min_length=1)
    ip_address: str = Field(..., min_length=1)
    vendor: str = Field(..., min_length=1)

class UpdateDeviceRequest(BaseModel):
    name: str = Field(..., min_length=1)
    ip_address: str = Field(..., min_length=1)
    capabilities: Optional[List[str]] = None

class PowerRequest(BaseModel):
    on: bool

class VolumeRequest(BaseModel):
    level: int

class KeyRequest(BaseModel):
    key: str = Field(..., min_length=1)

class PresetRequest(BaseModel):
    id: int
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    icon_url: Optional[str] = None
    type: str = "stationurl"
    source: str = "LOCAL_INTERNET_RADIO"
    stream_url: Optional[str] = None
    is_update: bool = False


def create_device_routes(device_service):
    """Create device control routes"""
    router = APIRouter(prefix="/api", tags=["devices"])

    # === Directory ===

    @router.get("/devices")
    async def list_devices(vendor: Optional[str] = None):
        """List configured devices, optionally only one vendor's"""
        devices = await device_service.get_all_devices(vendor)
        return [device.to_dict() for device in devices]

    @router.post("/devices", status_code=201)
    async def add_device(request: AddDeviceRequest):
        """Add a device by IP address or hostname"""
        device = await device_service.add_device(request.name, request.ip_address, request.vendor)
        return device.to_dict()

    @router.post("/devices/discover")
    async def discover_devices(timeout: Optional[float] = None):
        """Scan the configured network and save devices at new addresses"""
        result = await device_service.discover_and_persist(timeout=timeout)
        return result.to_dict()

    @router.get("/devices/{device_id}")
    async def get_device(device_id: str):
        device = await device_service.get_device(device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device.to_dict()

    @router.put("/devices/{device_id}")
    async def update_device(device_id: str, request: UpdateDeviceRequest):
        device = await device_service.update_device(
            device_id, request.name, request.ip_address, request.capabilities
        )
        return device.to_dict()

    @router.delete("/devices/{device_id}", status_code=204)
    async def remove_device(device_id: str):
        if not await device_service.remove_device(device_id):
            raise DeviceNotFoundError(device_id)
        return Response(status_code=204)

    # === Queries ===

    @router.get("/devices/{device_id}/capabilities")
    async def get_capabilities(device_id: str):
        capabilities = await device_service.get_capabilities(device_id)
        return {"device_id": device_id, "capabilities": sorted(capabilities)}

    @router.get("/devices/{device_id}/status")
    async def get_status(device_id: str):
        """Live status; an unreachable device reports online=false"""
        status = await device_service.get_status(device_id)
        return status.to_dict()

    @router.get("/devices/{device_id}/info")
    async def get_device_info(device_id: str):
        info = await device_service.get_device_info(device_id)
        return info.to_dict()

    @router.get("/devices/{device_id}/now-playing")
    async def get_now_playing(device_id: str):
        now_playing = await device_service.get_now_playing(device_id)
        return now_playing.to_dict()

    @router.get("/devices/{device_id}/volume")
    async def get_volume(device_id: str):
        volume = await device_service.get_volume(device_id)
        return volume.to_dict()

    @router.get("/devices/{device_id}/ping")
    async def ping_device(device_id: str):
        result = await device_service.ping(device_id)
        return result.to_dict()

    # === Commands ===

    @router.post("/devices/{device_id}/power", status_code=204)
    async def set_power(device_id: str, request: PowerRequest):
        await device_service.set_power(device_id, request.on)
        return Response(status_code=204)

    @router.post("/devices/{device_id}/volume", status_code=204)
    async def set_volume(device_id: str, request: VolumeRequest):
        await device_service.set_volume(device_id, request.level)
        return Response(status_code=204)

    @router.post("/devices/{device_id}/mute", status_code=204)
    async def mute(device_id: str):
        """Toggle mute"""
        await device_service.mute(device_id)
        return Response(status_code=204)

    @router.post("/devices/{device_id}/key", status_code=204)
    async def press_key(device_id: str, request: KeyRequest):
        """Press and release a remote-control key"""
        await device_service.press_key(device_id, request.key)
        return Response(status_code=204)

    @router.post("/devices/{device_id}/pairing", status_code=204)
    async def enter_pairing_mode(device_id: str):
        """Put the speaker into Bluetooth pairing mode"""
        await device_service.enter_pairing_mode(device_id)
        return Response(status_code=204)

    # === Presets ===

    @router.get("/devices/{device_id}/presets")
    async def list_presets(device_id: str):
        presets = await device_service.list_presets(device_id)
        return [preset.to_dict() for preset in presets]

    @router.post("/devices/{device_id}/presets")
    async def store_preset(device_id: str, request: PresetRequest):
        """Store a preset; a local radio preset with stream_url gets a hosted station file"""
        preset = Preset(
            id=request.id,
            name=request.name,
            location=request.location or "",
            device_id=device_id,
            icon_url=request.icon_url,
            type=request.type,
            source=request.source,
        )
        stored = await device_service.store_preset(
            device_id, preset, stream_url=request.stream_url, is_update=request.is_update
        )
        return stored.to_dict()

    @router.delete("/devices/{device_id}/presets/{slot}", status_code=204)
    async def remove_preset(device_id: str, slot: int):
        if not await device_service.remove_preset(device_id, slot):
            return JSONResponse(
                status_code=404,
                content={"code": "PRESET_NOT_FOUND", "message": f"Preset {slot} is not set on device {device_id}"}
            )
        return Response(status_code=204)

    @router.post("/devices/{device_id}/presets/{slot}/play", status_code=204)
    async def play_preset(device_id: str, slot: str):
        await device_service.play_preset(device_id, slot)
        return Response(status_code=204)

    return router
