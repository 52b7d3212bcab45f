import io
import json
import logging
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import AsyncMock, patch

from blebatt.errors import DeviceNotFound
from blebatt.main import format_reading, run

MISSING_CONFIG = "/nonexistent/blebatt/config.json"
DEVICE_ID = "/org/bluez/hci0/dev_C0_FF_EE_00_00_01"


class TestCLI(unittest.TestCase):
    def tearDown(self):
        logging.getLogger().handlers.clear()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = run(["--config", MISSING_CONFIG, *argv])
        return code, out.getvalue(), err.getvalue()

    @patch("blebatt.main.list_battery_devices", new_callable=AsyncMock)
    def test_devices(self, list_devices):
        list_devices.return_value = [{"name": "Corne", "id": DEVICE_ID}]

        code, out, _ = self.run_cli("devices")

        self.assertEqual(code, 0)
        self.assertEqual(out, f"Corne -> {DEVICE_ID}\n")

    @patch("blebatt.main.get_battery_info", new_callable=AsyncMock)
    def test_battery_json(self, battery_info):
        battery_info.return_value = [{"battery_level": 75, "user_descriptor": "Left"}]

        code, out, _ = self.run_cli("--json", "battery", DEVICE_ID)

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [{"battery_level": 75, "user_descriptor": "Left"}])
        battery_info.assert_awaited_once_with(DEVICE_ID, timeout=30.0)

    @patch("blebatt.main.get_battery_info", new_callable=AsyncMock)
    def test_error_exit_code(self, battery_info):
        battery_info.side_effect = DeviceNotFound(DEVICE_ID)

        code, out, err = self.run_cli("battery", DEVICE_ID)

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn(f"Device not found: {DEVICE_ID}", err)

    def test_format_reading(self):
        self.assertEqual(format_reading({"battery_level": 75, "user_descriptor": "Left"}), "Left: 75%")
        self.assertEqual(format_reading({"battery_level": None, "user_descriptor": None}),
                         "Battery: unknown")


if __name__ == '__main__':
    unittest.main()
