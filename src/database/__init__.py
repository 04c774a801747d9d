"""
Database module for the speaker device directory
"""

from .manager import DatabaseManager
from .models import Device, _convert_ip_address

__all__ = ['DatabaseManager', 'Device', '_convert_ip_address']
