"""
Vendor adapters for speaker control
"""

from typing import Dict, List

from .base import DeviceAdapter
from .errors import (
    DeviceError, DeviceNotFoundError, NotSupportedError, DeviceUnreachableError,
    DeviceTimeoutError, DeviceValidationError, StationExistsError
)
from .registry import AdapterRegistry
from .soundtouch import SoundTouchAdapter
from .soundtouch_client import SoundTouchClient


def create_adapters(config: Dict, directory) -> List[DeviceAdapter]:
    """Build the adapter set from the loaded configuration"""
    soundtouch = config.get('soundtouch', {})
    client = SoundTouchClient(
        port=soundtouch.get('port', 8090),
        request_timeout=soundtouch.get('request_timeout', 5),
        key_sender=soundtouch.get('key_sender', 'Gabbo'),
        key_release_delay=soundtouch.get('key_release_delay_ms', 100) / 1000.0,
    )
    return [
        SoundTouchAdapter(
            directory,
            client=client,
            ping_timeout=soundtouch.get('ping_timeout', 10),
            probe_timeout=soundtouch.get('probe_timeout', 2),
            max_concurrent_probes=soundtouch.get('max_concurrent_probes', 32),
        ),
    ]


__all__ = ['DeviceAdapter', 'AdapterRegistry', 'SoundTouchAdapter', 'SoundTouchClient', 'create_adapters',
           'DeviceError', 'DeviceNotFoundError', 'NotSupportedError', 'DeviceUnreachableError',
           'DeviceTimeoutError', 'DeviceValidationError', 'StationExistsError']
