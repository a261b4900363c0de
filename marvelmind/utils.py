"""Device type classification and text shown for devices."""

from __future__ import annotations

import enum

from marvelmind.records import DeviceVersion


class DeviceType(enum.Enum):
    """Kind of a device, as the library classifies its hardware type."""

    MODEM = "modem"
    BEACON = "beacon"
    HEDGEHOG = "hedgehog"
    ROBOT = "robot"
    UNKNOWN = "unknown"


def device_type(api, type_code: int) -> DeviceType:
    """Classify a hardware type code, asking the library in a fixed order."""
    if api.device_is_modem(type_code):
        return DeviceType.MODEM
    if api.device_is_beacon(type_code):
        return DeviceType.BEACON
    if api.device_is_hedgehog(type_code):
        return DeviceType.HEDGEHOG
    if api.device_is_robot(type_code):
        return DeviceType.ROBOT
    return DeviceType.UNKNOWN


def format_version(version: DeviceVersion) -> str:
    """Firmware version and CPU identifier as one line."""
    return (
        f"Version: {version.fw_major}.{version.fw_minor:02d}{version.fw_minor2:01d}"
        f".{version.fw_device_type}   CPU ID={version.cpu_id:06x}"
    )


def describe_device_type(kind: DeviceType) -> str:
    """A sentence naming the kind of device."""
    if kind is DeviceType.UNKNOWN:
        return "Unknown device type"
    return f"Device is {kind.value}"


def enabled_text(prefix: str, value: bool) -> str:
    """``prefix: enabled`` or ``prefix: disabled``."""
    return f"{prefix}: {'enabled' if value else 'disabled'}"