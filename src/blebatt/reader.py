"""
Battery reader - walks a device's GATT tree to its battery telemetry.

    device
      └─ service 0x180F (Battery)           one or more instances
           └─ characteristic 0x2A19 (Battery Level)
                └─ descriptor 0x2901 (User Description, optional)

Every matching Battery Level characteristic yields one reading, in
enumeration order. The walk is strictly sequential and has no retry
and no timeout; the first failing step aborts the whole call with that
step's error.
"""
from typing import Any

from .errors import (
    CharacteristicDiscoveryFailed,
    CharacteristicReadFailed,
    ConnectionFailed,
    DescriptorDiscoveryFailed,
    DescriptorReadFailed,
    DeviceNotFound,
    PlatformError,
    ServiceDiscoveryFailed,
)
from .gatt import (
    BATTERY_DEVICE_FILTER,
    BATTERY_LEVEL_UUID,
    BATTERY_SERVICE_UUID,
    CHARACTERISTIC_USER_DESCRIPTION_UUID,
    BatteryReading,
    decode_battery_level,
    decode_user_description,
    encode_device_id,
)
from .logging_setup import get_logger
from .scanner import connected_devices

logger = get_logger(__name__)


async def resolve_device(adapter: Any, device_id: str) -> Any:
    """
    Find the live handle for `device_id` by re-running the scan.

    No handle is kept between calls, so the device must still be
    connected now.
    """
    for device in await connected_devices(adapter, BATTERY_DEVICE_FILTER):
        if encode_device_id(device) == device_id:
            return device
    raise DeviceNotFound(device_id)


async def _read_user_description(characteristic: Any) -> str | None:
    try:
        descriptors = await characteristic.descriptors()
    except PlatformError as err:
        raise DescriptorDiscoveryFailed(err) from err

    user_descriptor = None
    for descriptor in descriptors:
        if descriptor.uuid != CHARACTERISTIC_USER_DESCRIPTION_UUID:
            continue
        try:
            value = await descriptor.read()
        except PlatformError as err:
            raise DescriptorReadFailed(err) from err

        user_descriptor = decode_user_description(value)
        if user_descriptor is None:
            logger.debug("Ignoring undecodable user description %r", bytes(value))
    return user_descriptor


async def _read_battery_service(service: Any) -> list[BatteryReading]:
    try:
        characteristics = await service.characteristics()
    except PlatformError as err:
        raise CharacteristicDiscoveryFailed(err) from err

    readings = []
    for characteristic in characteristics:
        if characteristic.uuid != BATTERY_LEVEL_UUID:
            continue
        try:
            value = await characteristic.read()
        except PlatformError as err:
            raise CharacteristicReadFailed(err) from err

        readings.append(BatteryReading(
            battery_level=decode_battery_level(value),
            user_descriptor=await _read_user_description(characteristic),
        ))
    return readings


async def read_battery(adapter: Any, device_id: str) -> list[BatteryReading]:
    """
    Read every Battery Level characteristic of the device `device_id`.

    An empty list means the device has no Battery Service or no Battery
    Level characteristic in it.

    Raises:
        EnumerationFailed, DeviceNotFound, ConnectionFailed,
        ServiceDiscoveryFailed, CharacteristicDiscoveryFailed,
        CharacteristicReadFailed, DescriptorDiscoveryFailed,
        DescriptorReadFailed
    """
    device = await resolve_device(adapter, device_id)

    try:
        await adapter.connect_device(device)
    except PlatformError as err:
        raise ConnectionFailed(err) from err

    try:
        services = await device.services()
    except PlatformError as err:
        raise ServiceDiscoveryFailed(err) from err

    readings = []
    for service in services:
        if service.uuid == BATTERY_SERVICE_UUID:
            readings.extend(await _read_battery_service(service))

    logger.info("🔋 %s: %s", device_id,
                ", ".join(str(r.battery_level) for r in readings) or "no battery level")
    return readings
