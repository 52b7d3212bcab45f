"""Device scanner: connected devices reporting a set of GATT service UUIDs."""
from typing import Any, Iterable

from .errors import EnumerationFailed, PlatformError
from .gatt import DeviceIdentity, encode_device_id
from .logging_setup import get_logger

logger = get_logger(__name__)


async def connected_devices(adapter: Any, uuids: Iterable[str]) -> list[Any]:
    """Raw platform handles of connected devices matching `uuids`."""
    try:
        return await adapter.connected_devices_with_services(list(uuids))
    except PlatformError as err:
        raise EnumerationFailed(err) from err


async def list_devices_with_services(adapter: Any, uuids: Iterable[str]) -> list[DeviceIdentity]:
    """
    Identities of devices currently connected to the host that report at
    least one of `uuids`.

    This is not an active scan: devices that are merely paired or in
    range are not returned. A device whose name cannot be read is left
    out; it does not fail the call.

    Raises:
        EnumerationFailed: the adapter-level query failed
    """
    devices = await connected_devices(adapter, uuids)

    found = []
    for device in devices:
        try:
            name = device.name()
        except PlatformError as err:
            logger.debug("Skipping unnamed device: %s", err)
            continue
        found.append(DeviceIdentity(name=name, id=encode_device_id(device)))

    logger.debug("🔍 %d matching device(s) connected", len(found))
    return found
