"""
The two public operations, returning JSON-serializable structures.

Each call acquires its own adapter and releases it before returning.
Failures propagate as `BatteryError`; the outer surfaces (HTTP, CLI)
turn them into a message with `str(err)`.
"""
import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from .adapter import acquire_ready_adapter
from .bluez import BlueZAdapter
from .errors import OperationTimedOut
from .gatt import BATTERY_DEVICE_FILTER
from .logging_setup import get_logger
from .reader import read_battery
from .scanner import list_devices_with_services

logger = get_logger(__name__)

T = TypeVar("T")

AdapterOpener = Callable[[], Awaitable[Any]]


async def _with_timeout(coro: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as err:
        raise OperationTimedOut(f"no result after {timeout:g}s") from err


async def _list_devices(open_adapter: AdapterOpener) -> list[dict[str, Any]]:
    async with await acquire_ready_adapter(open_adapter) as adapter:
        devices = await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)
    return [device.to_dict() for device in devices]


async def _battery_info(device_id: str, open_adapter: AdapterOpener) -> list[dict[str, Any]]:
    async with await acquire_ready_adapter(open_adapter) as adapter:
        readings = await read_battery(adapter, device_id)
    return [reading.to_dict() for reading in readings]


async def list_battery_devices(
    timeout: float | None = None,
    open_adapter: AdapterOpener = BlueZAdapter.default,
) -> list[dict[str, Any]]:
    """Connected devices exposing battery information: ``[{"name", "id"}]``."""
    logger.debug("list_battery_devices (timeout=%s)", timeout)
    return await _with_timeout(_list_devices(open_adapter), timeout)


async def get_battery_info(
    device_id: str,
    timeout: float | None = None,
    open_adapter: AdapterOpener = BlueZAdapter.default,
) -> list[dict[str, Any]]:
    """Battery readings of one device: ``[{"battery_level", "user_descriptor"}]``."""
    logger.debug("get_battery_info %s (timeout=%s)", device_id, timeout)
    return await _with_timeout(_battery_info(device_id, open_adapter), timeout)
