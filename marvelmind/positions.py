"""Periodic reading of device locations and raw distances."""

from __future__ import annotations

import enum
import time
from typing import Callable

from marvelmind.dashapi import DashApiError
from marvelmind.devices import DeviceRegistry
from marvelmind.records import DeviceLocation
from marvelmind.utils import DeviceType

POS_READ_RATE = 20


class ReadStatus(enum.Enum):
    """Outcome of one attempt to read locations."""

    NOT_READ = "not_read"
    SUCCESS = "success"
    FAIL = "fail"


def _xyz(location: DeviceLocation) -> str:
    return (
        f"X={location.x_mm / 1000.0:.3f}, Y={location.y_mm / 1000.0:.3f}, "
        f"Z={location.z_mm / 1000.0:.3f}"
    )


def format_location(kind: DeviceType, location: DeviceLocation) -> str | None:
    """The line shown for a new location of a hedgehog or beacon, else None."""
    if kind is DeviceType.HEDGEHOG:
        if location.angle is None:
            return (
                f"Hedge  {location.address} location: {_xyz(location)}, "
                f"quality= {location.quality} %"
            )
        if location.angle_ready:
            angle_text = f"angle= {location.angle / 10.0:.1f}"
        else:
            angle_text = "no angle"
        return (
            f"Hedge  {location.address} location: {_xyz(location)}, {angle_text}, "
            f"quality= {location.quality} %"
        )
    if kind is DeviceType.BEACON:
        return f"Beacon {location.address} location: {_xyz(location)}"
    return None


class PositionReader:
    """Reads locations at a fixed rate and feeds them into a device registry."""

    def __init__(
        self,
        api,
        registry: DeviceRegistry,
        clock: Callable[[], float] | None = None,
        output: Callable[[str], None] | None = None,
        rate: float = POS_READ_RATE,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self._api = api
        self._registry = registry
        self._clock = clock if clock is not None else time.monotonic
        self._output = output if output is not None else print
        self._interval = 1.0 / rate
        self._prev_read = self._clock()

    def read_raw_distances(self) -> None:
        """Read raw distances and report the ones that changed."""
        try:
            distances = self._api.last_distances()
        except DashApiError:
            return
        for d in distances:
            if d.address_rx == 0 or d.address_tx == 0:
                continue
            if self._registry.update_distance(d.address_rx, d.address_tx, d.distance_mm):
                self._output(
                    f"Raw distance: {d.address_tx} ==> {d.address_rx}  : "
                    f"{d.distance_mm / 1000.0:.3f}"
                )

    def read_if_needed(self) -> ReadStatus:
        """Read new locations if the read interval has passed."""
        now = self._clock()
        if now - self._prev_read < self._interval:
            return ReadStatus.NOT_READ
        self._prev_read = now
        try:
            pack = self._api.last_locations2()
        except DashApiError:
            return ReadStatus.FAIL
        if pack.last_dist_updated:
            self.read_raw_distances()
        for location in pack.positions:
            if location.address == 0:
                continue
            device = self._registry.update_location(location.address, location)
            if device is None:
                continue
            text = format_location(device.kind, location)
            if text is not None:
                self._output(text)
        return ReadStatus.SUCCESS