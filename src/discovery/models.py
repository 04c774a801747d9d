"""
Discovery data structures and models
"""

from typing import List
from dataclasses import dataclass, field

from database.models import Device

@dataclass
class DiscoveryResult:
    """Outcome of a discover-and-persist run across all vendors"""
    discovered: int
    new: int
    devices: List[Device] = field(default_factory=list)  # newly persisted only

    def to_dict(self) -> dict:
        return {
            "discovered": self.discovered,
            "new": self.new,
            "devices": [device.to_dict() for device in self.devices],
        }
