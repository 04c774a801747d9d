"""
Device control fault taxonomy shared by adapters, orchestration and the API
"""


class DeviceError(Exception):
    """Base class for all device control faults"""

    code = "DEVICE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DeviceNotFoundError(DeviceError):
    """Device id is unknown to the device directory. Never retried."""

    code = "DEVICE_NOT_FOUND"

    def __init__(self, device_id: str):
        super().__init__(f"Device with ID {device_id} not found")
        self.device_id = device_id


class NotSupportedError(DeviceError):
    """No adapter for the vendor, or the vendor has no protocol equivalent. Permanent."""

    code = "NOT_SUPPORTED"


class DeviceUnreachableError(DeviceError):
    """No response within the timeout budget, or a transport error. Transient."""

    code = "DEVICE_UNREACHABLE"


class DeviceTimeoutError(DeviceUnreachableError):
    """Timed out on an operation whose device-side effect may have partially executed"""

    code = "DEVICE_TIMEOUT"


class DeviceValidationError(DeviceError):
    """Parameter violates a bound that is known before any network call"""

    code = "INVALID_INPUT"


class StationExistsError(DeviceError):
    """A station file with the same slug already exists"""

    code = "STATION_EXISTS"
