"""Adapter gateway: acquire the local BLE radio and wait until it is powered."""
from typing import Any, Awaitable, Callable

from .bluez import BlueZAdapter
from .errors import AdapterNotFound, AdapterUnavailable, PlatformError
from .logging_setup import get_logger

logger = get_logger(__name__)


async def acquire_ready_adapter(
    open_adapter: Callable[[], Awaitable[Any]] = BlueZAdapter.default,
) -> Any:
    """
    Return a powered adapter handle.

    The handle is acquired fresh on every call and must be closed by the
    caller (it is an async context manager). The radio state is never
    changed here: if the adapter is powered off this waits until someone
    else powers it on.

    Raises:
        AdapterNotFound: no adapter, or the platform stack is unreachable
        AdapterUnavailable: waiting for the adapter failed
    """
    try:
        adapter = await open_adapter()
    except PlatformError as err:
        logger.warning("Bluetooth adapter lookup failed: %s", err)
        raise AdapterNotFound(err) from err

    if adapter is None:
        logger.warning("No Bluetooth adapter present")
        raise AdapterNotFound()

    try:
        await adapter.wait_available()
    except PlatformError as err:
        logger.warning("Bluetooth adapter not available: %s", err)
        await adapter.close()
        raise AdapterUnavailable(err) from err
    except BaseException:
        # Cancelled while waiting (caller timeout): release the bus
        await adapter.close()
        raise

    logger.debug("Adapter %s ready", adapter.path)
    return adapter
