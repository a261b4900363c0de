"""Interactive commands that inspect and configure the positioning system."""

from __future__ import annotations

import re
from contextlib import suppress
from typing import Callable

from marvelmind.dashapi import FLASH_DUMP_MAX_SIZE, DashApiError
from marvelmind.records import (
    NEARBY_SUBMAPS_MAX_NUM,
    NO_BEACON,
    NO_SUBMAP,
    SUBMAP_BEACONS_MAX_NUM,
    US_FILTER_19KHZ,
    US_FILTER_25KHZ,
    US_FILTER_31KHZ,
    US_FILTER_37KHZ,
    US_FILTER_45KHZ,
    USB_DEVICE_ADDRESS,
    GeoreferencingSettings,
    RealtimePlayerSettings,
    ServiceZonePoint,
    SubmapSettings,
    UltrasoundSettings,
    UpdatePositionsMode,
)
from marvelmind.robot import MotorsSettings, RobotCommand
from marvelmind.utils import enabled_text

MAX_TOKENS = 6

_DSP_FILTERS = {
    US_FILTER_19KHZ: "19 kHz",
    US_FILTER_25KHZ: "25 kHz",
    US_FILTER_31KHZ: "31 kHz",
    US_FILTER_37KHZ: "37 kHz",
    US_FILTER_45KHZ: "45 kHz",
}

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def tokenize(line: str) -> list[str]:
    """Split a command line on spaces into at most six trimmed tokens."""
    return [part.strip() for part in line.split(" ") if part][:MAX_TOKENS]


def dsp_filter_name(index: int) -> str:
    """Name of the receiver DSP filter with this index."""
    return _DSP_FILTERS.get(index, "unknown")


def sample_submap_settings() -> SubmapSettings:
    """Fixed submap settings used by the ``submap testset`` command."""
    beacons = (9, 10) + (NO_BEACON,) * (SUBMAP_BEACONS_MAX_NUM - 2)
    nearby = (2,) + (NO_SUBMAP,) * (NEARBY_SUBMAPS_MAX_NUM - 1)
    return SubmapSettings(
        starting_beacon=9,
        starting_set=(0, 0, 0, 0),
        enabled_3d=True,
        only_for_z=True,
        limitation_distance_is_manual=True,
        maximum_distance_manual_m=19,
        shift_x_cm=987,
        shift_y_cm=-654,
        shift_z_cm=321,
        rotation_cdeg=10423,
        plane_qw=10000,
        plane_qx=0,
        plane_qy=0,
        plane_qz=0,
        service_zone_thickness_cm=-500,
        hedges_height_2d_cm=350,
        frozen=True,
        locked=True,
        beacons_higher=False,
        mirrored=False,
        beacons=beacons,
        nearby_submaps=nearby,
        service_zone=(
            ServiceZonePoint(100, 150),
            ServiceZonePoint(-220, 130),
            ServiceZonePoint(-250, -80),
            ServiceZonePoint(154, -120),
        ),
    )


def sample_ultrasound_settings() -> UltrasoundSettings:
    """Fixed ultrasound settings used by the ``usound testset`` command."""
    return UltrasoundSettings(
        tx_frequency_hz=31234,
        tx_periods_number=34,
        rx_amplifier_agc=False,
        rx_amplification_manual=2345,
        sensors_normal=(True, False, False, True, False),
        sensors_frozen=(True, False, False, True, True),
        rx_dsp_filter_index=US_FILTER_45KHZ,
    )


def _atoi(text: str | None) -> int:
    if text is None:
        return 0
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str | None) -> float:
    if text is None:
        return 0.0
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


def _unsigned(value: int, bits: int) -> int:
    return value & ((1 << bits) - 1)


def _signed(value: int, bits: int) -> int:
    value = _unsigned(value, bits)
    return value - (1 << bits) if value >= 1 << (bits - 1) else value


def _u8(text: str | None) -> int:
    return _unsigned(_atoi(text), 8)


def _cm_to_m(value: int) -> str:
    return f"{value / 100.0:.2f}"


class CommandProcessor:
    """Parses command lines and carries them out through the library."""

    def __init__(self, api, output: Callable[[str], None] | None = None) -> None:
        self._api = api
        self._output = output if output is not None else print
        self._handlers = {
            "version": self._version,
            "wake": self._wake,
            "sleep": self._sleep,
            "default": self._default,
            "tele": self._telemetry,
            "submap": self._submap,
            "map": self._map,
            "rate": self._rate,
            "usound": self._ultrasound,
            "axes": self._axes,
            "read_dump": self._read_dump,
            "write_dump_test": self._write_dump,
            "reset": self._reset,
            "temperature": self._temperature,
            "setloc": self._set_location,
            "setdist": self._set_distance,
            "motors": self._motors,
            "cmd": self._robot_command,
            "height_h": self._hedge_height,
            "height_b": self._beacon_height,
            "rtp": self._realtime_player,
            "georef": self._georeferencing,
            "update_mode": self._update_mode,
            "update": self._send_update,
        }

    def execute(self, line: str) -> bool:
        """Carry out one command line; return whether the command was known.

        ``quit`` raises SystemExit.
        """
        tokens = tokenize(line)
        if not tokens:
            return False
        name, args = tokens[0], tokens[1:]
        if name == "quit":
            raise SystemExit(0)
        for _ in range(2):
            with suppress(DashApiError):
                self._api.version_and_id(USB_DEVICE_ADDRESS)
        handler = self._handlers.get(name)
        if handler is None:
            return False
        padded = args + [None] * (MAX_TOKENS - 1 - len(args))
        try:
            handler(*padded)
        except ValueError as exc:
            self._output(f"Invalid argument: {exc}")
        return True

    def print_last_error(self) -> None:
        """Show the library's last error code."""
        try:
            error = self._api.last_error()
        except DashApiError:
            self._output("Get last error failed")
            return
        self._output(f"Last error: {error}")

    def show_submap_settings(self, submap_id: int) -> bool:
        """Read and show the settings of a submap; return whether the read worked."""
        try:
            sm = self._api.submap_settings(submap_id)
        except DashApiError:
            return False
        out = self._output
        out(f"Submap {submap_id} settings:")
        out("  Submap is FROZEN" if sm.frozen else "  Submap is not frozen")
        out("  Submap is locked" if sm.locked else "  Submap is not locked")
        out(
            "  Stationary beacons higher than mobile"
            if sm.beacons_higher
            else "  Stationary beacons lower than mobile"
        )
        out("  Submap is mirrored" if sm.mirrored else "  Submap is not mirrored")
        out(f"  Starting beacon trilateration: {sm.starting_beacon}")
        s1, s2, s3, s4 = sm.starting_set
        out(f"  Starting set: {s1};  {s2};{s3};{s4}")
        out(enabled_text("  3D navigation", sm.enabled_3d))
        out(enabled_text("  Only for Z coordinate", sm.only_for_z))
        if sm.limitation_distance_is_manual:
            out("  Limitation distances: manual")
            out(f"  Maximum distance, m: {sm.maximum_distance_manual_m}")
        else:
            out("  Limitation distances: auto")
        out(f"  Submap X shift, m: {_cm_to_m(sm.shift_x_cm)}")
        out(f"  Submap Y shift, m: {_cm_to_m(sm.shift_y_cm)}")
        out(f"  Submap Z shift, m: {_cm_to_m(sm.shift_z_cm)}")
        out(f"  Submap rotation, degrees: {_cm_to_m(sm.rotation_cdeg)}")
        out(
            f"  Plane rotation quaternion: W={sm.plane_qw}, X={sm.plane_qx}, "
            f"Y={sm.plane_qy}, Z={sm.plane_qz}"
        )
        out(f"  Service zone thickness, m: {_cm_to_m(sm.service_zone_thickness_cm)}")
        out(f"  Hedges height in 2D mode, m: {_cm_to_m(sm.hedges_height_2d_cm)}")
        beacons = "".join(f"{b} " for b in sm.beacons if b != NO_BEACON)
        out(f"  Beacons in submap: {beacons}")
        nearby = "".join(f"{s} " for s in sm.nearby_submaps if s != NO_SUBMAP)
        out(f"  Nearby submaps: {nearby}")
        if not sm.service_zone:
            out("  Service zone: none ")
        else:
            points = "".join(
                f"X= {_cm_to_m(p.x)}, Y= {_cm_to_m(p.y)}     " for p in sm.service_zone
            )
            out(f"  Service zone: {points}")
        return True

    # Helpers

    def _attempt(self, action: Callable[[], object], success: str, failure: str) -> bool:
        try:
            action()
        except DashApiError:
            self._output(failure)
            self.print_last_error()
            return False
        self._output(success)
        return True

    # Handlers

    def _version(self, *_) -> None:
        try:
            version = self._api.api_version()
        except DashApiError:
            self._output("Marvelmind API version read failed")
            return
        self._output(f"Marvelmind API version: {version}")

    def _wake(self, address, *_) -> None:
        if address is None:
            return
        addr = _u8(address)
        self._attempt(
            lambda: self._api.wake_device(addr),
            "Wake command was sent",
            "Wake command failed",
        )

    def _sleep(self, address, *_) -> None:
        if address is None:
            return
        addr = _u8(address)
        self._attempt(
            lambda: self._api.sleep_device(addr),
            "Sleep command was sent",
            "Sleep command failed",
        )

    def _default(self, address, *_) -> None:
        if address is None:
            return
        addr = _u8(address)
        self._attempt(
            lambda: self._api.set_default_settings(addr),
            "Default settings command was sent",
            "Default setings command failed",
        )

    def _telemetry(self, address, *_) -> None:
        if address is None:
            return
        addr = _u8(address)
        try:
            tele = self._api.beacon_telemetry(addr)
        except DashApiError:
            return
        self._output(f"Beacon {addr} telemetry:")
        self._output(f"  Working time: {tele.worktime_sec} sec")
        self._output(f"  RSSI: {tele.rssi} dBm")
        self._output(f"  Voltage: {tele.voltage_mv / 1000.0:.3f} V")
        self._output(f"  Temperature: {tele.temperature} C")

    def _submap(self, action, submap, *_) -> None:
        if action is None or submap is None:
            return
        sid = _u8(submap)
        api = self._api
        simple = {
            "add": (api.add_submap, "added", "add failed"),
            "delete": (api.delete_submap, "deleted", "delete failed"),
            "freeze": (api.freeze_submap, "freeze success", "freeze failed"),
            "unfreeze": (api.unfreeze_submap, "unfreeze success", "unfreeze failed"),
        }
        if action in simple:
            func, ok, bad = simple[action]
            self._attempt(lambda: func(sid), f"Submap {sid} {ok}", f"Submap {sid} {bad}")
        elif action == "get":
            self.show_submap_settings(sid)
        elif action == "testset":
            self._attempt(
                lambda: api.set_submap_settings(sid, sample_submap_settings()),
                f"Submap {sid} settings sending success",
                f"Submap {sid} settings sending error",
            )

    def _map(self, action, *_) -> None:
        api = self._api
        actions = {
            "erase": (api.erase_map, "Erase map"),
            "freeze": (api.freeze_map, "Freeze map"),
            "unfreeze": (api.unfreeze_map, "Unfreeze map"),
        }
        if action not in actions:
            return
        func, label = actions[action]
        self._attempt(func, f"{label} success", f"{label} failed")

    def _rate(self, action, value, *_) -> None:
        if action == "get":
            try:
                rate = self._api.update_rate()
            except DashApiError:
                self._output("Update rate setting read failed")
                self.print_last_error()
                return
            self._output(f"Update rate setting: {rate:.2f} Hz")
        elif action == "set" and value is not None:
            rate = _atof(value)
            self._attempt(
                lambda: self._api.set_update_rate(rate),
                "Update rate setting write success",
                "Update rate setting write failed",
            )

    def _ultrasound(self, action, address, *_) -> None:
        if action is None or address is None:
            return
        addr = _u8(address)
        if action == "get":
            try:
                us = self._api.ultrasound_settings(addr)
            except DashApiError:
                self._output("Ultrasound settings read failed")
                self.print_last_error()
                return
            out = self._output
            out(f"Ultrasound settings for beacon {addr}:")
            out(f"  Tx frequency, Hz: {us.tx_frequency_hz}")
            out(f"  Tx number of periods: {us.tx_periods_number}")
            if us.rx_amplifier_agc:
                out("  Amplification: AGC")
            else:
                out("  Amplification: manual")
                out(f"  Amplification: {us.rx_amplification_manual}")
            out("  Sensors normal: " + " ".join(str(int(v)) for v in us.sensors_normal))
            out("  Sensors frozen: " + " ".join(str(int(v)) for v in us.sensors_frozen))
            out(f"  Rx DSP filter: {dsp_filter_name(us.rx_dsp_filter_index)}")
        elif action == "testset":
            self._output(f"Test writing ultrasound settings to beacon {addr}")
            self._attempt(
                lambda: self._api.set_ultrasound_settings(addr, sample_ultrasound_settings()),
                "Ultrasound settings write success",
                "Ultrasound settings write failed",
            )

    def _axes(self, a0, ax, ay, *_) -> None:
        if a0 is None or ax is None or ay is None:
            return
        addresses = (_u8(a0), _u8(ax), _u8(ay))
        self._attempt(
            lambda: self._api.beacons_to_axes(*addresses),
            "Beacons to axes success",
            "Beacons to axes failed",
        )

    @staticmethod
    def _dump_range(offset, size) -> tuple[int, int]:
        start = _unsigned(_atoi(offset), 32)
        count = min(_unsigned(_atoi(size), 32), FLASH_DUMP_MAX_SIZE)
        return start, count

    def _read_dump(self, offset, size, *_) -> None:
        if offset is None or size is None:
            return
        start, count = self._dump_range(offset, size)
        if count == 0:
            return
        try:
            data = self._api.read_flash_dump(start, count)
        except DashApiError:
            self._output("Read flash dump failed")
            self.print_last_error()
            return
        self._output("Read flash dump success")
        self._output("".join(f" {b:02x}" for b in data))

    def _write_dump(self, offset, size, *_) -> None:
        if offset is None or size is None:
            return
        start, count = self._dump_range(offset, size)
        if count == 0:
            return
        data = bytes((i + 1) & 0xFF for i in range(count))
        self._attempt(
            lambda: self._api.write_flash_dump(start, data),
            "Write flash dump success",
            "Write flash dump failed",
        )

    def _reset(self, address, *_) -> None:
        if address is None:
            return
        addr = _u8(address)
        self._attempt(
            lambda: self._api.reset_device(addr),
            "Reset device success",
            "Reset device failed",
        )

    def _temperature(self, action, value, *_) -> None:
        if action == "get":
            try:
                temperature = self._api.air_temperature()
            except DashApiError:
                self._output("Temperature read failed")
                self.print_last_error()
                return
            self._output(f"Temperature {temperature} celsius ")
        elif action == "set" and value is not None:
            temperature = _signed(_atoi(value), 8)
            self._attempt(
                lambda: self._api.set_air_temperature(temperature),
                "Temperature write success ",
                "Temperature write failed",
            )

    def _set_location(self, address, x, y, z, *_) -> None:
        if None in (address, x, y, z):
            return
        addr = _u8(address)
        coords = tuple(int(_atof(v) * 1000.0) for v in (x, y, z))
        self._attempt(
            lambda: self._api.set_beacon_location(addr, *coords),
            "Location setup success",
            "Location setup failed",
        )

    def _set_distance(self, address_1, address_2, distance, *_) -> None:
        if None in (address_1, address_2, distance):
            return
        a1, a2 = _u8(address_1), _u8(address_2)
        distance_mm = int(_atof(distance) * 1000.0)
        self._attempt(
            lambda: self._api.set_beacons_distance(a1, a2, distance_mm),
            "Distance setup success",
            "Distance setup failed",
        )

    def _hedge_height(self, action, address, height, *_) -> None:
        if action == "get":
            if address is None:
                return
            try:
                value = self._api.hedge_height(_u8(address))
            except DashApiError:
                self._output("Height read failed")
                self.print_last_error()
                return
            self._output(f"Height is {value / 1000.0:.3f} meters ")
        elif action == "set":
            if address is None or height is None:
                return
            addr = _u8(address)
            height_mm = int(_atof(height) * 1000.0)
            self._attempt(
                lambda: self._api.set_hedge_height(addr, height_mm),
                "Height write success ",
                "Height write failed",
            )

    def _beacon_height(self, action, address, submap, height, *_) -> None:
        if action == "get":
            if address is None:
                return
            sid = _u8(submap)
            try:
                value = self._api.beacon_height(_u8(address), sid)
            except DashApiError:
                self._output("Height read failed")
                self.print_last_error()
                return
            self._output(f"Height in submap {sid} is {value / 1000.0:.3f} meters ")
        elif action == "set":
            if address is None or submap is None or height is None:
                return
            addr, sid = _u8(address), _u8(submap)
            height_mm = int(_atof(height) * 1000.0)
            self._attempt(
                lambda: self._api.set_beacon_height(addr, sid, height_mm),
                "Height write success ",
                "Height write failed",
            )

    def _motors(self, address, mode, move_type, level, *_) -> None:
        if address is None or mode is None:
            return
        addr = _u8(address)
        mode_value = _u8(mode)
        if mode_value == 0:
            settings = MotorsSettings(0, 0, 0)
        else:
            if move_type is None or level is None:
                return
            settings = MotorsSettings(mode_value, _u8(move_type), _u8(level))
        self._attempt(
            lambda: self._api.set_motors_control(addr, settings),
            "Motors setup success",
            "Motors setup failed",
        )

    def _robot_command(self, address, command_id, p1, p2, p3) -> None:
        if address is None or command_id is None:
            return
        addr = _u8(address)
        command = RobotCommand(
            command_id=_u8(command_id),
            param1=_signed(_atoi(p1), 16),
            param2=_signed(_atoi(p2), 16),
            param3=_signed(_atoi(p3), 16),
        )
        self._attempt(
            lambda: self._api.set_robot_command(addr, command),
            "Command sent",
            "Command send failed",
        )

    def _realtime_player(self, action, address, *_) -> None:
        if action is None or address is None:
            return
        addr = _u8(address)
        if action == "get":
            try:
                rtp = self._api.realtime_player_settings(addr)
            except DashApiError:
                self._output(f"Real-time player settings for beacon {addr} read failed:")
                self.print_last_error()
                return
            self._output(f"Real-time player settings for beacon {addr}:")
            self._output(f"  Enabled: {int(rtp.enabled)}")
            self._output(f"  Forward: {rtp.forward}")
            self._output(f"  Backward: {rtp.backward}")
        elif action == "testset":
            self._output(f"Test writing real-time settings to beacon {addr}")
            settings = RealtimePlayerSettings(
                enabled=True, forward=2, backward=7, reserved0=0, reserved1=0
            )
            self._attempt(
                lambda: self._api.set_realtime_player_settings(addr, settings),
                "Real-time player settings write success",
                "Real-time player settings write failed",
            )

    def _georeferencing(self, action, latitude, longitude, *_) -> None:
        if action == "get":
            try:
                gr = self._api.georeferencing()
            except DashApiError:
                self._output("Georeferencing settings read failed:")
                self.print_last_error()
                return
            self._output("Georeferencing:")
            self._output(f"  Latitude: {gr.latitude:.7f}")
            self._output(f"  Longitude: {gr.longitude:.7f}")
        elif action == "set":
            if latitude is None or longitude is None:
                return
            settings = GeoreferencingSettings.from_degrees(_atof(latitude), _atof(longitude))
            self._attempt(
                lambda: self._api.set_georeferencing(settings),
                "Georeferencing settings write success",
                "Georeferencing settings write failed",
            )

    def _update_mode(self, action, mode, *_) -> None:
        if action == "get":
            try:
                upm = self._api.update_positions_mode()
            except DashApiError:
                self._output("Update locations mode read failed:")
                self.print_last_error()
                return
            self._output(f"Update locations mode: {upm.mode}")
        elif action == "set" and mode is not None:
            upm = UpdatePositionsMode(mode=_u8(mode), reserved=bytes(7))
            self._attempt(
                lambda: self._api.set_update_positions_mode(upm),
                "Update locations mode write success",
                "Update locations mode write failed",
            )

    def _send_update(self, *_) -> None:
        self._attempt(
            self._api.send_update_positions,
            "Update locations command success",
            "Update locations command failed",
        )