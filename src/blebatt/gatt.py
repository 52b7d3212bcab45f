"""
GATT constants and the records produced by the battery pipeline.

UUIDs are always compared in their normalised form: lower-case,
128-bit, hyphenated. Short SIG-assigned ids (``0x180F``, ``"2a19"``)
are expanded with the Bluetooth base UUID.
"""
import uuid
from dataclasses import asdict, dataclass
from typing import Any

# Bluetooth base UUID: 0000xxxx-0000-1000-8000-00805f9b34fb
BLUETOOTH_BASE_UUID = "00000000-0000-1000-8000-00805f9b34fb"


def normalize_uuid(value: str | int | uuid.UUID) -> str:
    """Return `value` as a lower-case 128-bit UUID string."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, int):
        return f"{value:08x}{BLUETOOTH_BASE_UUID[8:]}"

    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) in (4, 8):
        return f"{int(text, 16):08x}{BLUETOOTH_BASE_UUID[8:]}"
    return str(uuid.UUID(text))


BATTERY_SERVICE_UUID = normalize_uuid(0x180F)
BATTERY_LEVEL_UUID = normalize_uuid(0x2A19)
CHARACTERISTIC_USER_DESCRIPTION_UUID = normalize_uuid(0x2901)

# Devices are matched if they report either the service or the characteristic
BATTERY_DEVICE_FILTER = (BATTERY_SERVICE_UUID, BATTERY_LEVEL_UUID)


@dataclass(frozen=True)
class DeviceIdentity:
    """A connected device as seen by callers: display name plus opaque id."""
    name: str
    id: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatteryReading:
    """One Battery Level characteristic worth of telemetry."""
    battery_level: int | None
    user_descriptor: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def encode_device_id(device: Any) -> str:
    """
    Textual id of a platform device handle.

    Scanner and reader must both go through this function, since the
    reader resolves ids by re-scanning and comparing encodings.
    """
    return str(device.id)


def decode_battery_level(value: bytes) -> int | None:
    """Battery level is a single unsigned byte at offset 0."""
    return value[0] if value else None


def decode_user_description(value: bytes) -> str | None:
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError:
        return None
