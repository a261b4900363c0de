import pytest

from marvelmind.dashapi import DashApiError
from marvelmind.records import DeviceInfo, DeviceLocation, DeviceVersion
from marvelmind.devices import DeviceRegistry
from marvelmind.utils import DeviceType


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeApi:
    def __init__(self):
        self.devices = []
        self.list_calls = 0
        self.fail_list = False
        self.fail_version = set()

    def devices_list(self):
        self.list_calls += 1
        if self.fail_list:
            raise DashApiError("mm_get_devices_list failed", "mm_get_devices_list")
        return list(self.devices)

    def version_and_id(self, address):
        if address in self.fail_version:
            raise DashApiError("failed", "mm_get_device_version_and_id")
        return DeviceVersion(7, 1, 0, address % 5, 0, 0xABCDEF)

    def device_is_modem(self, t):
        return t == 1

    def device_is_beacon(self, t):
        return t == 2

    def device_is_hedgehog(self, t):
        return t == 3

    def device_is_robot(self, t):
        return t == 4


def info(address, flags=1, sleeping=False, fw_type=None):
    return DeviceInfo(address, False, sleeping, 7, 1, 0,
                      address % 5 if fw_type is None else fw_type, 0, flags)


def loc(address, x, y, z):
    return DeviceLocation(address, 0, x, y, z, 0, 100)


@pytest.fixture
def setup():
    api = FakeApi()
    clock = FakeClock()
    out = []
    return api, clock, out, DeviceRegistry(api, clock, out.append)


def test_refresh_adds_connected_devices(setup):
    api, clock, out, reg = setup
    reg.refresh([info(2), info(3)])
    assert len(reg) == 2
    assert reg.get(2).kind is DeviceType.BEACON
    assert reg.get(3).kind is DeviceType.HEDGEHOG
    assert reg.get(3).connected is True
    assert "Device added: 3" in out


def test_sleeping_device_not_versioned(setup):
    api, clock, out, reg = setup
    reg.refresh([info(5, flags=0, sleeping=True)])
    assert reg.get(5).version is None
    assert reg.get(5).connected is False
    assert "Device 5 is sleeping" in out


def test_connecting_device_message(setup):
    api, clock, out, reg = setup
    reg.refresh([info(6, flags=0)])
    assert "Device 6 connecting..." in out


def test_version_failure_reported(setup):
    api, clock, out, reg = setup
    api.fail_version.add(7)
    reg.refresh([info(7)])
    assert "Failed read version of device: 7" in out
    assert reg.get(7).kind is DeviceType.UNKNOWN
    assert len(reg) == 1


def test_same_list_produces_no_output(setup):
    api, clock, out, reg = setup
    reg.refresh([info(2), info(3)])
    out.clear()
    reg.refresh([info(2), info(3)])
    assert out == []
    assert len(reg) == 2


def test_absent_devices_removed(setup):
    api, clock, out, reg = setup
    reg.refresh([info(2), info(3), info(4)])
    reg.refresh([info(4)])
    assert len(reg) == 1
    assert reg.get(2) is None
    assert reg.get(3) is None
    assert reg.get(4) is not None and reg.get(4).address == 4


def test_changed_flags_updates_in_place(setup):
    api, clock, out, reg = setup
    reg.refresh([info(2, flags=0)])
    device = reg.get(2)
    reg.refresh([info(2, flags=1)])
    assert reg.get(2) is device
    assert device.connected is True
    assert device.info.flags == 1


def test_get_unknown_address(setup):
    api, clock, out, reg = setup
    assert reg.get(9) is None


def test_update_location(setup):
    api, clock, out, reg = setup
    reg.refresh([info(3)])
    assert reg.update_location(8, loc(8, 1, 2, 3)) is None
    device = reg.update_location(3, loc(3, 1, 2, 3))
    assert device is reg.get(3)
    assert device.location.x_mm == 1
    assert reg.update_location(3, loc(3, 1, 2, 3)) is None


def test_new_device_starts_at_origin(setup):
    api, clock, out, reg = setup
    reg.refresh([info(3)])
    assert reg.update_location(3, loc(3, 0, 0, 0)) is None


def test_update_distance(setup):
    api, clock, out, reg = setup
    reg.refresh([info(2)])
    assert reg.update_distance(2, 3, 0) is None
    assert reg.update_distance(2, 3, 1500) is reg.get(2)
    assert reg.get(2).distances[3] == 1500
    assert reg.update_distance(2, 3, 1500) is None
    assert reg.update_distance(9, 3, 1500) is None


def test_read_if_needed_waits_a_second(setup):
    api, clock, out, reg = setup
    api.devices = [info(2)]
    clock.now = 0.5
    reg.read_if_needed()
    assert api.list_calls == 0
    clock.now = 1.0
    reg.read_if_needed()
    assert api.list_calls == 1
    assert len(reg) == 1


def test_read_if_needed_ignores_failure(setup):
    api, clock, out, reg = setup
    api.fail_list = True
    clock.now = 2.0
    reg.read_if_needed()
    assert api.list_calls == 1
    assert len(reg) == 0