"""
Error taxonomy for the battery pipeline.

Every step of the pipeline has its own `BatteryError` subclass. The
underlying platform error is kept as `cause` (and chained with `from`),
and is only flattened to a message by `str()` at the outer surfaces
(CLI output, HTTP `detail`).
"""


class PlatformError(Exception):
    """Raised by the platform layer (BlueZ / D-Bus) for any failed call."""


class BatteryError(Exception):
    """Base class for all pipeline errors."""

    summary = "Bluetooth operation failed"
    status_code = 502

    def __init__(self, cause: object = None) -> None:
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is None or str(self.cause) == "":
            return self.summary
        return f"{self.summary}: {self.cause}"


class AdapterNotFound(BatteryError):
    summary = "Bluetooth adapter not found"
    status_code = 503


class AdapterUnavailable(BatteryError):
    summary = "Bluetooth adapter unavailable"
    status_code = 503


class EnumerationFailed(BatteryError):
    summary = "Failed to enumerate connected devices"


class DeviceNotFound(BatteryError):
    summary = "Device not found"
    status_code = 404


class ConnectionFailed(BatteryError):
    summary = "Failed to connect to device"


class ServiceDiscoveryFailed(BatteryError):
    summary = "Failed to discover services"


class CharacteristicDiscoveryFailed(BatteryError):
    summary = "Failed to discover characteristics"


class DescriptorDiscoveryFailed(BatteryError):
    summary = "Failed to discover descriptors"


class CharacteristicReadFailed(BatteryError):
    summary = "Failed to read characteristic"


class DescriptorReadFailed(BatteryError):
    summary = "Failed to read descriptor"


class OperationTimedOut(BatteryError):
    summary = "Bluetooth operation timed out"
    status_code = 504
