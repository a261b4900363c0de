"""Registry of the devices a modem reports, kept in step with its device list."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterator

from marvelmind.dashapi import DashApiError
from marvelmind.records import MAX_DEVICES_COUNT, DeviceInfo, DeviceLocation, DeviceVersion
from marvelmind.utils import DeviceType, describe_device_type, device_type, format_version

DEVICES_READ_INTERVAL_SEC = 1.0


def _same_device(a: DeviceInfo, b: DeviceInfo) -> bool:
    return a == b


def _zero_location(address: int) -> DeviceLocation:
    return DeviceLocation(
        address=address, head_index=0, x_mm=0, y_mm=0, z_mm=0, status_flags=0, quality=0
    )


@dataclass
class Device:
    """What is known about one device: list entry, version, location, distances."""

    info: DeviceInfo
    version: DeviceVersion | None = None
    connected: bool = False
    kind: DeviceType = DeviceType.UNKNOWN
    location: DeviceLocation | None = None
    distances: dict[int, int] = field(default_factory=dict)

    @property
    def address(self) -> int:
        return self.info.address


class DeviceRegistry:
    """Devices known to the modem, refreshed at most once per second."""

    def __init__(
        self,
        api,
        clock: Callable[[], float] | None = None,
        output: Callable[[str], None] | None = None,
    ) -> None:
        self._api = api
        self._clock = clock if clock is not None else time.monotonic
        self._output = output if output is not None else print
        self._devices: list[Device] = []
        self._prev_read = self._clock()

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def read_if_needed(self) -> None:
        """Read the device list from the modem if a second has passed."""
        now = self._clock()
        if now - self._prev_read < DEVICES_READ_INTERVAL_SEC:
            return
        self._prev_read = now
        try:
            new_devices = self._api.devices_list()
        except DashApiError:
            return
        self.refresh(new_devices)

    def refresh(self, new_devices) -> None:
        """Bring the registry in line with a freshly read device list."""
        new_devices = list(new_devices)
        if len(new_devices) == len(self._devices) and self._check_identity(new_devices):
            return
        self._remove_absent(new_devices)
        self._add_new(new_devices)

    def get(self, address: int) -> Device | None:
        """The device with this address, or None."""
        return next((d for d in self._devices if d.info.address == address), None)

    def update_location(self, address: int, location: DeviceLocation) -> Device | None:
        """Store a new location; return the device only if its coordinates changed."""
        device = self.get(address)
        if device is None:
            return None
        current = device.location
        if current is not None and (current.x_mm, current.y_mm, current.z_mm) == (
            location.x_mm, location.y_mm, location.z_mm
        ):
            return None
        device.location = location
        return device

    def update_distance(self, address_rx: int, address_tx: int, distance_mm: int) -> Device | None:
        """Store a distance to ``address_tx``; return the receiver only if it changed."""
        device = self.get(address_rx)
        if device is None:
            return None
        if device.distances.get(address_tx, 0) == distance_mm:
            return None
        device.distances[address_tx] = distance_mm
        return device

    def _update(self, device: Device, info: DeviceInfo) -> None:
        connected = info.connected
        device.connected = connected
        self._output(f"Device {info.address} updated")
        if connected:
            try:
                version = self._api.version_and_id(info.address)
            except DashApiError:
                self._output(f"Failed read version of device: {info.address}")
                return
            device.version = version
            self._output(format_version(version))
            device.kind = device_type(self._api, version.fw_device_type)
            self._output(describe_device_type(device.kind))
        elif info.is_sleeping:
            self._output(f"Device {info.address} is sleeping")
        else:
            self._output(f"Device {info.address} connecting...")
        device.info = info

    def _add(self, info: DeviceInfo) -> None:
        if len(self._devices) >= MAX_DEVICES_COUNT:
            return
        device = Device(info=info, location=_zero_location(info.address))
        self._update(device, info)
        self._output(f"Device added: {info.address}")
        self._devices.append(device)

    def _check_identity(self, new_devices: list[DeviceInfo]) -> bool:
        for device, info in zip(self._devices, new_devices):
            if _same_device(info, device.info):
                continue
            if info.address != device.info.address:
                return False
            self._update(device, info)
        return True

    def _remove_absent(self, new_devices: list[DeviceInfo]) -> None:
        kept = []
        for device in self._devices:
            match = next(
                (
                    info
                    for info in new_devices
                    if _same_device(device.info, info) or device.info.address == info.address
                ),
                None,
            )
            if match is None:
                self._output(f"Device updated: {device.info.address}")
                continue
            if not _same_device(device.info, match):
                self._update(device, match)
            kept.append(device)
        self._devices = kept

    def _add_new(self, new_devices: list[DeviceInfo]) -> None:
        for info in new_devices:
            match = next(
                (
                    d
                    for d in self._devices
                    if _same_device(info, d.info) or info.address == d.info.address
                ),
                None,
            )
            if match is None:
                self._add(info)
            elif not _same_device(info, match.info):
                self._update(match, info)