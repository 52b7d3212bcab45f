import asyncio
import unittest

from blebatt.adapter import acquire_ready_adapter
from blebatt.errors import AdapterNotFound, AdapterUnavailable, PlatformError

from .fakes import FakeAdapter, opener


class TestAcquireReadyAdapter(unittest.IsolatedAsyncioTestCase):
    async def test_returns_ready_adapter(self):
        adapter = FakeAdapter()

        self.assertIs(await acquire_ready_adapter(opener(adapter)), adapter)
        self.assertFalse(adapter.closed)

    async def test_no_adapter(self):
        with self.assertRaises(AdapterNotFound) as ctx:
            await acquire_ready_adapter(opener(None))
        self.assertEqual(str(ctx.exception), "Bluetooth adapter not found")

    async def test_platform_unreachable(self):
        async def broken():
            raise PlatformError("connect to system bus: No such file or directory")

        with self.assertRaises(AdapterNotFound) as ctx:
            await acquire_ready_adapter(broken)
        self.assertIn("system bus", str(ctx.exception))

    async def test_wait_error_closes_adapter(self):
        adapter = FakeAdapter(wait_error="org.bluez.Error.NotAuthorized")

        with self.assertRaises(AdapterUnavailable):
            await acquire_ready_adapter(opener(adapter))
        self.assertTrue(adapter.closed)

    async def test_cancelled_wait_closes_adapter(self):
        adapter = FakeAdapter(wait_hangs=True)

        task = asyncio.create_task(acquire_ready_adapter(opener(adapter)))
        for _ in range(5):
            await asyncio.sleep(0)
        task.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(adapter.closed)


if __name__ == '__main__':
    unittest.main()
