"""
BlueZ platform layer - D-Bus access to the Linux Bluetooth stack.

BlueZ exports every adapter, device and GATT attribute as an object on
the system bus:

    /org/bluez/hci0                                   org.bluez.Adapter1
    /org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF             org.bluez.Device1
    .../dev_AA_BB_CC_DD_EE_FF/service0010             org.bluez.GattService1
    .../service0010/char0011                          org.bluez.GattCharacteristic1
    .../service0010/char0011/desc0013                 org.bluez.GattDescriptor1

The tree is read with ObjectManager.GetManagedObjects and children are
linked to their parent through the `Device` / `Service` /
`Characteristic` properties. Object paths carry the attribute handle in
fixed-width hex, so sorting by path yields handle order.

Any D-Bus failure surfaces as `PlatformError`; translating that into the
step-specific error is the caller's job.
"""
import asyncio
from contextlib import contextmanager
from typing import Any, Iterable

from dbus_next import Variant
from dbus_next.aio import MessageBus
from dbus_next.constants import BusType
from dbus_next.errors import DBusError, InterfaceNotFoundError

from .errors import PlatformError
from .gatt import normalize_uuid
from .logging_setup import get_logger

logger = get_logger(__name__)

# DBus constants
BLUEZ_SERVICE_NAME = "org.bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
GATT_SERVICE_INTERFACE = "org.bluez.GattService1"
GATT_CHARACTERISTIC_INTERFACE = "org.bluez.GattCharacteristic1"
GATT_DESCRIPTOR_INTERFACE = "org.bluez.GattDescriptor1"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"
OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"

ERROR_ALREADY_CONNECTED = "org.bluez.Error.AlreadyConnected"

ManagedObjects = dict[str, dict[str, dict[str, Any]]]


@contextmanager
def _platform_errors(action: str):
    try:
        yield
    except (DBusError, InterfaceNotFoundError, OSError) as err:
        raise PlatformError(f"{action}: {err}") from err


def unwrap_variant(value: Any) -> Any:
    if isinstance(value, Variant):
        return unwrap_variant(value.value)
    elif isinstance(value, dict):
        return {k: unwrap_variant(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [unwrap_variant(v) for v in value]
    else:
        return value


def unwrap_managed_objects(objects: dict) -> ManagedObjects:
    """GetManagedObjects reply with every Variant replaced by its plain value."""
    return {
        path: {iface: unwrap_variant(props) for iface, props in interfaces.items()}
        for path, interfaces in objects.items()
    }


def find_adapter_path(objects: ManagedObjects) -> str | None:
    """Default adapter: the first Adapter1 object in path order (hci0 before hci1)."""
    adapters = sorted(path for path, ifaces in objects.items() if ADAPTER_INTERFACE in ifaces)
    return adapters[0] if adapters else None


def _reported_uuid(value: Any) -> str | None:
    """Normalised UUID reported by BlueZ, or None if the device sent garbage."""
    try:
        return normalize_uuid(value)
    except (AttributeError, TypeError, ValueError):
        logger.debug("Ignoring malformed UUID %r", value)
        return None


def select_connected_devices(
    objects: ManagedObjects, adapter_path: str, uuids: Iterable[str]
) -> list[tuple[str, dict[str, Any]]]:
    """Devices of `adapter_path` that are connected and report any of `uuids`."""
    wanted = {normalize_uuid(u) for u in uuids}
    matches = []
    for path in sorted(objects):
        props = objects[path].get(DEVICE_INTERFACE)
        if props is None or props.get("Adapter") != adapter_path:
            continue
        if not props.get("Connected", False):
            continue
        reported = {_reported_uuid(u) for u in props.get("UUIDs", [])}
        if reported & wanted:
            matches.append((path, props))
    return matches


def select_children(
    objects: ManagedObjects, interface: str, parent_property: str, parent_path: str
) -> list[tuple[str, dict[str, Any]]]:
    """Objects implementing `interface` whose `parent_property` points at `parent_path`."""
    return [
        (path, objects[path][interface])
        for path in sorted(objects)
        if interface in objects[path]
        and objects[path][interface].get(parent_property) == parent_path
    ]


async def _interface(bus: MessageBus, path: str, interface: str) -> Any:
    introspection = await bus.introspect(BLUEZ_SERVICE_NAME, path)
    proxy = bus.get_proxy_object(BLUEZ_SERVICE_NAME, path, introspection)
    return proxy.get_interface(interface)


async def _managed_objects(bus: MessageBus) -> ManagedObjects:
    with _platform_errors("list BlueZ objects"):
        manager = await _interface(bus, "/", OBJECT_MANAGER_INTERFACE)
        objects = await manager.call_get_managed_objects()
    return unwrap_managed_objects(objects)


async def _wait_for_property(props_iface: Any, interface: str, name: str) -> None:
    """Block until boolean property `name` is true. No timeout."""
    became_true = asyncio.Event()

    def on_changed(changed_interface, changed, invalidated):
        if changed_interface == interface and name in changed and changed[name].value:
            became_true.set()

    # Subscribe before reading so a change between the two is not lost
    props_iface.on_properties_changed(on_changed)
    try:
        current = await props_iface.call_get(interface, name)
        if not current.value:
            logger.debug("Waiting for %s.%s", interface, name)
            await became_true.wait()
    finally:
        props_iface.off_properties_changed(on_changed)


class _BlueZObject:
    interface = ""

    def __init__(self, bus: MessageBus, path: str, properties: dict[str, Any]) -> None:
        self.bus = bus
        self.path = path
        self.properties = properties

    @property
    def uuid(self) -> str | None:
        return _reported_uuid(self.properties.get("UUID"))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


class BlueZDescriptor(_BlueZObject):
    interface = GATT_DESCRIPTOR_INTERFACE

    async def read(self) -> bytes:
        with _platform_errors(f"read {self.path}"):
            iface = await _interface(self.bus, self.path, self.interface)
            return bytes(await iface.call_read_value({}))


class BlueZCharacteristic(_BlueZObject):
    interface = GATT_CHARACTERISTIC_INTERFACE

    async def read(self) -> bytes:
        with _platform_errors(f"read {self.path}"):
            iface = await _interface(self.bus, self.path, self.interface)
            return bytes(await iface.call_read_value({}))

    async def descriptors(self) -> list[BlueZDescriptor]:
        objects = await _managed_objects(self.bus)
        return [
            BlueZDescriptor(self.bus, path, props)
            for path, props in select_children(
                objects, GATT_DESCRIPTOR_INTERFACE, "Characteristic", self.path)
        ]


class BlueZService(_BlueZObject):
    interface = GATT_SERVICE_INTERFACE

    async def characteristics(self) -> list[BlueZCharacteristic]:
        objects = await _managed_objects(self.bus)
        return [
            BlueZCharacteristic(self.bus, path, props)
            for path, props in select_children(
                objects, GATT_CHARACTERISTIC_INTERFACE, "Service", self.path)
        ]


class BlueZDevice(_BlueZObject):
    interface = DEVICE_INTERFACE

    @property
    def id(self) -> str:
        return self.path

    def name(self) -> str:
        name = self.properties.get("Name")
        if name is None:
            raise PlatformError(f"{self.path} has no Name property")
        return name

    async def services(self) -> list[BlueZService]:
        objects = await _managed_objects(self.bus)
        return [
            BlueZService(self.bus, path, props)
            for path, props in select_children(
                objects, GATT_SERVICE_INTERFACE, "Device", self.path)
        ]


class BlueZAdapter:
    """
    The local radio. Owns its own system bus connection, which is closed
    by `close()` or on leaving the `async with` block.
    """

    def __init__(self, bus: MessageBus, path: str) -> None:
        self.bus = bus
        self.path = path

    @classmethod
    async def default(cls) -> "BlueZAdapter | None":
        """Open the first adapter BlueZ knows about, or None if there is none."""
        with _platform_errors("connect to system bus"):
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()

        try:
            objects = await _managed_objects(bus)
        except BaseException:
            bus.disconnect()
            raise

        path = find_adapter_path(objects)
        if path is None:
            bus.disconnect()
            return None

        logger.debug("Using adapter %s", path)
        return cls(bus, path)

    async def wait_available(self) -> None:
        with _platform_errors(f"wait for {self.path} to power on"):
            props = await _interface(self.bus, self.path, PROPERTIES_INTERFACE)
            await _wait_for_property(props, ADAPTER_INTERFACE, "Powered")

    async def connected_devices_with_services(self, uuids: Iterable[str]) -> list[BlueZDevice]:
        objects = await _managed_objects(self.bus)
        return [
            BlueZDevice(self.bus, path, props)
            for path, props in select_connected_devices(objects, self.path, uuids)
        ]

    async def connect_device(self, device: BlueZDevice) -> None:
        """Connect unless already connected, then wait for GATT services to resolve."""
        with _platform_errors(f"connect {device.path}"):
            props = await _interface(self.bus, device.path, PROPERTIES_INTERFACE)
            connected = (await props.call_get(DEVICE_INTERFACE, "Connected")).value
            if not connected:
                dev_iface = await _interface(self.bus, device.path, DEVICE_INTERFACE)
                try:
                    await dev_iface.call_connect()
                except DBusError as err:
                    if err.type != ERROR_ALREADY_CONNECTED:
                        raise
                logger.info("🔗 Connected to %s", device.path)

            await _wait_for_property(props, DEVICE_INTERFACE, "ServicesResolved")

    async def close(self) -> None:
        self.bus.disconnect()

    async def __aenter__(self) -> "BlueZAdapter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
