"""
Read-only vendor id -> adapter lookup
"""

import logging
from types import MappingProxyType
from typing import Iterable, List, Optional

from .base import DeviceAdapter
from .models import VendorInfo

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Built once at startup; vendor ids are matched case-insensitively"""

    def __init__(self, adapters: Iterable[DeviceAdapter]):
        by_vendor = {}
        for adapter in adapters:
            key = adapter.vendor_id.lower()
            if key in by_vendor:
                raise ValueError(f"Duplicate adapter for vendor '{adapter.vendor_id}'")
            by_vendor[key] = adapter
        self._adapters = MappingProxyType(by_vendor)
        logger.info(f"Adapter registry ready: {', '.join(self._adapters) or 'no vendors'}")

    def get(self, vendor_id: Optional[str]) -> Optional[DeviceAdapter]:
        if not vendor_id:
            return None
        return self._adapters.get(vendor_id.lower())

    def vendors(self) -> List[str]:
        return [adapter.vendor_id for adapter in self._adapters.values()]

    def adapters(self) -> List[DeviceAdapter]:
        return list(self._adapters.values())

    def vendor_infos(self) -> List[VendorInfo]:
        return [VendorInfo(id=a.vendor_id, name=a.vendor_name) for a in self._adapters.values()]

    def __contains__(self, vendor_id) -> bool:
        return self.get(vendor_id) is not None

    def __len__(self) -> int:
        return len(self._adapters)

    async def close(self):
        for adapter in self._adapters.values():
            await adapter.close()
