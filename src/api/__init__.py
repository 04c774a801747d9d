"""
API module for speaker control and discovery
"""

from .main_api import SoundHubAPI
from .device_routes import create_device_routes
from .system_routes import create_system_routes

__all__ = ['SoundHubAPI', 'create_device_routes', 'create_system_routes']
