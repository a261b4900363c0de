import pytest

from marvelmind.records import DeviceVersion
from marvelmind.utils import (
    DeviceType,
    describe_device_type,
    device_type,
    enabled_text,
    format_version,
)


class FakeApi:
    def __init__(self, modem=(), beacon=(), hedgehog=(), robot=()):
        self.sets = {"modem": set(modem), "beacon": set(beacon),
                     "hedgehog": set(hedgehog), "robot": set(robot)}

    def device_is_modem(self, code):
        return code in self.sets["modem"]

    def device_is_beacon(self, code):
        return code in self.sets["beacon"]

    def device_is_hedgehog(self, code):
        return code in self.sets["hedgehog"]

    def device_is_robot(self, code):
        return code in self.sets["robot"]


@pytest.mark.parametrize(
    "code, expected",
    [
        (1, DeviceType.MODEM),
        (2, DeviceType.BEACON),
        (3, DeviceType.HEDGEHOG),
        (4, DeviceType.ROBOT),
        (99, DeviceType.UNKNOWN),
    ],
)
def test_device_type(code, expected):
    api = FakeApi(modem={1}, beacon={2}, hedgehog={3}, robot={4})
    assert device_type(api, code) is expected


def test_device_type_modem_takes_precedence():
    api = FakeApi(modem={5}, beacon={5}, hedgehog={5}, robot={5})
    assert device_type(api, 5) is DeviceType.MODEM


def test_format_version():
    version = DeviceVersion(7, 2, 1, 3, 0, 0x1A2B)
    assert format_version(version) == "Version: 7.021.3   CPU ID=001a2b"


def test_format_version_cpu_id_wider_than_six_digits():
    version = DeviceVersion(1, 10, 0, 2, 0, 0x12345678)
    assert format_version(version).endswith("CPU ID=12345678")


@pytest.mark.parametrize(
    "kind, text",
    [
        (DeviceType.MODEM, "Device is modem"),
        (DeviceType.BEACON, "Device is beacon"),
        (DeviceType.HEDGEHOG, "Device is hedgehog"),
        (DeviceType.ROBOT, "Device is robot"),
        (DeviceType.UNKNOWN, "Unknown device type"),
    ],
)
def test_describe_device_type(kind, text):
    assert describe_device_type(kind) == text


def test_enabled_text():
    assert enabled_text("  3D navigation", True) == "  3D navigation: enabled"
    assert enabled_text("  Only for Z coordinate", False) == "  Only for Z coordinate: disabled"