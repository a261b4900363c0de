"""Connection state machine that drives a modem session."""

from __future__ import annotations

import enum
import time
from typing import Callable

from marvelmind.commands import CommandProcessor
from marvelmind.dashapi import DashApiError
from marvelmind.devices import DeviceRegistry
from marvelmind.positions import PositionReader, ReadStatus
from marvelmind.records import USB_DEVICE_ADDRESS, DeviceVersion
from marvelmind.utils import DeviceType, describe_device_type, device_type, format_version

DEFAULT_PORT_NAME = "/dev/ttyACM0"
MAX_READ_FAILS = 10


class ConnectionState(enum.Enum):
    """Stage of the connection to the device on the USB port."""

    WAIT_PORT = "wait_port"
    WAIT_DEVICE = "wait_device"
    CONNECTED = "connected"


class Session:
    """Opens the port, identifies the USB device and runs its working cycle."""

    def __init__(
        self,
        api,
        port_name: str = DEFAULT_PORT_NAME,
        output: Callable[[str], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._api = api
        self.port_name = port_name
        self._output = output if output is not None else print
        self._clock = clock if clock is not None else time.monotonic
        self.state = ConnectionState.WAIT_PORT
        self.usb_device_type = DeviceType.UNKNOWN
        self.usb_version: DeviceVersion | None = None
        self._fail_counter = 0
        self._commands = CommandProcessor(api, self._output)
        self.registry = DeviceRegistry(api, self._clock, self._output)
        self.positions = PositionReader(api, self.registry, self._clock, self._output)

    def start(self) -> None:
        """Reset device and position tracking and begin waiting for the port."""
        self.registry = DeviceRegistry(self._api, self._clock, self._output)
        self.positions = PositionReader(self._api, self.registry, self._clock, self._output)
        self._switch_to(ConnectionState.WAIT_PORT)

    def cycle(self) -> None:
        """Run one step of the connection state machine."""
        if self.state is ConnectionState.WAIT_PORT:
            try:
                self._api.open_port_by_name(self.port_name)
            except DashApiError:
                return
            self._switch_to(ConnectionState.WAIT_DEVICE)
        elif self.state is ConnectionState.WAIT_DEVICE:
            try:
                self.usb_version = self._api.version_and_id(USB_DEVICE_ADDRESS)
            except DashApiError:
                return
            self._switch_to(ConnectionState.CONNECTED)
        elif self.usb_device_type is DeviceType.MODEM:
            self.modem_cycle()
        # Beacons, hedgehogs and robots on USB have no working cycle of their own.

    def modem_cycle(self) -> None:
        """Refresh devices and locations; reopen the port after repeated failures."""
        self.registry.read_if_needed()
        status = self.positions.read_if_needed()
        if status is ReadStatus.SUCCESS:
            self._fail_counter = 0
        elif status is ReadStatus.FAIL:
            self._fail_counter = (self._fail_counter + 1) & 0xFF
            if self._fail_counter > MAX_READ_FAILS:
                self._reopen_port()

    def finish(self) -> None:
        """Close the port if it was opened."""
        self._api.close_port()

    def handle_command(self, line: str) -> bool:
        """Carry out one command line; return whether the command was known."""
        return self._commands.execute(line)

    def _reopen_port(self) -> None:
        self._api.close_port()
        self._switch_to(ConnectionState.WAIT_PORT)

    def _switch_to(self, state: ConnectionState) -> None:
        if state is ConnectionState.WAIT_PORT:
            self._output("Waiting for port...")
        elif state is ConnectionState.WAIT_DEVICE:
            self._output("Trying connect to device...")
        else:
            self._output("Device is connected via USB.")
            version = self.usb_version
            if version is not None:
                self._output(format_version(version))
                self.usb_device_type = device_type(self._api, version.fw_device_type)
            else:
                self.usb_device_type = DeviceType.UNKNOWN
            self._output(describe_device_type(self.usb_device_type))
        self.state = state