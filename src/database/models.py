"""
Database models and data structures
"""

import ipaddress
from typing import Set, Dict, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone

def _convert_ip_address(ip_addr) -> str:
    """Convert IPv4Address or other IP types to string for JSON serialization"""
    if isinstance(ip_addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(ip_addr)
    return str(ip_addr) if ip_addr else "0.0.0.0"

@dataclass
class Device:
    """Directory record for a controllable speaker"""
    id: str
    vendor: str
    name: str
    ip_address: str
    capabilities: Set[str] = field(default_factory=set)
    date_time_added: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vendor": self.vendor,
            "name": self.name,
            "ip_address": self.ip_address,
            "capabilities": sorted(self.capabilities),
            "date_time_added": self.date_time_added.isoformat(),
        }
