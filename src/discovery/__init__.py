"""
Discovery module for speaker network scanning
"""

from .models import DiscoveryResult
from .network_discovery import (
    scan_hosts, parse_network_mask, network_hosts, is_valid_network_mask,
    detect_local_network, is_allowed_lan_address
)

__all__ = ['DiscoveryResult', 'scan_hosts', 'parse_network_mask', 'network_hosts',
           'is_valid_network_mask',
           'detect_local_network', 'is_allowed_lan_address']
