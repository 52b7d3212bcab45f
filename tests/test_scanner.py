import unittest

from blebatt.errors import EnumerationFailed, PlatformError
from blebatt.gatt import BATTERY_DEVICE_FILTER, DeviceIdentity
from blebatt.scanner import list_devices_with_services

from .fakes import FakeAdapter, FakeDevice, device_path

HEART_RATE_SERVICE = "180d"


class TestListDevicesWithServices(unittest.IsolatedAsyncioTestCase):
    async def test_returns_connected_matching_devices(self):
        adapter = FakeAdapter([
            FakeDevice(device_path("AA:AA:AA:AA:AA:01"), name="Corne Left"),
            FakeDevice(device_path("AA:AA:AA:AA:AA:02"), name="HRM", uuids=[HEART_RATE_SERVICE]),
            FakeDevice(device_path("AA:AA:AA:AA:AA:03"), name="Mouse", connected=False),
        ])

        devices = await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)

        self.assertEqual(devices, [
            DeviceIdentity(name="Corne Left", id=device_path("AA:AA:AA:AA:AA:01")),
        ])

    async def test_ids_are_unique_and_stable(self):
        adapter = FakeAdapter([
            FakeDevice(device_path("AA:AA:AA:AA:AA:01"), name="Keyboard"),
            FakeDevice(device_path("AA:AA:AA:AA:AA:02"), name="Keyboard"),
        ])

        first = await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)
        second = await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)

        self.assertEqual(first, second)
        self.assertEqual(len({d.id for d in first}), 2)

    async def test_empty_filter_returns_empty_list(self):
        adapter = FakeAdapter([FakeDevice(device_path("AA:AA:AA:AA:AA:01"))])

        self.assertEqual(await list_devices_with_services(adapter, []), [])

    async def test_no_matching_devices_is_not_an_error(self):
        adapter = FakeAdapter([
            FakeDevice(device_path("AA:AA:AA:AA:AA:01"), uuids=[HEART_RATE_SERVICE]),
        ])

        self.assertEqual(await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER), [])

    async def test_unnamed_device_is_skipped(self):
        adapter = FakeAdapter([
            FakeDevice(device_path("AA:AA:AA:AA:AA:01"), name=None),
            FakeDevice(device_path("AA:AA:AA:AA:AA:02"), name="Lily58"),
        ])

        devices = await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)

        self.assertEqual([d.name for d in devices], ["Lily58"])

    async def test_enumeration_error_fails_the_call(self):
        adapter = FakeAdapter(enumeration_error="org.bluez.Error.NotReady")

        with self.assertRaises(EnumerationFailed) as ctx:
            await list_devices_with_services(adapter, BATTERY_DEVICE_FILTER)

        self.assertIsInstance(ctx.exception.cause, PlatformError)
        self.assertIn("org.bluez.Error.NotReady", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
