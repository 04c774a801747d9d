"""
System health, vendor and configuration API routes
"""

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

MAX_NETWORK_MASK_LENGTH = 18  # "255.255.255.255/32"

class NetworkMaskRequest(BaseModel):
    network_mask: str = Field(..., min_length=1, max_length=MAX_NETWORK_MASK_LENGTH)

class NetworkMaskResponse(BaseModel):
    network_mask: Optional[str]

def create_system_routes(device_service):
    """Create system monitoring and configuration routes"""
    router = APIRouter(prefix="/api", tags=["system"])

    @router.get("/system/health")
    async def system_health():
        """System health check"""
        try:
            devices = await device_service.get_all_devices()
            return {
                "status": "healthy",
                "database": "connected",
                "device_count": len(devices),
                "vendors": [vendor.id for vendor in device_service.get_vendors()],
                "timestamp": datetime.now(timezone.utc)
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "database": "error", "error": str(e)}
            )

    @router.get("/vendors")
    async def list_vendors():
        """Vendors with a registered adapter"""
        return [vendor.to_dict() for vendor in device_service.get_vendors()]

    @router.get("/config/network-mask", response_model=NetworkMaskResponse)
    async def get_network_mask():
        """Network mask used for discovery, None means the local /24"""
        network_mask = await device_service.get_network_mask()
        return NetworkMaskResponse(network_mask=network_mask)

    @router.put("/config/network-mask", status_code=204)
    async def set_network_mask(request: NetworkMaskRequest):
        await device_service.set_network_mask(request.network_mask)
        return Response(status_code=204)

    return router
