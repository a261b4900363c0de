"""Typed access to the dashboard library of the positioning system.

The library itself is reached through a *backend*: any object whose
attributes are the library's functions (``mm_api_version``,
``mm_get_devices_list`` and so on). Each function takes its plain integer
arguments followed, where the call exchanges data, by a buffer. It fills
that buffer with the reply and returns a truth value for success.
"""

from __future__ import annotations

import struct

from marvelmind.records import (
    MAX_DEVICES_COUNT,
    BeaconTelemetry,
    DeviceVersion,
    Distance,
    GeoreferencingSettings,
    DeviceInfo,
    LocationsPack,
    RealtimePlayerSettings,
    SubmapSettings,
    UltrasoundSettings,
    UpdatePositionsMode,
    _pack,
    _unpack,
    decode_devices_list,
    decode_distances,
    decode_locations,
)
from marvelmind.robot import (
    ROBOT_TELEMETRY_SIZE,
    MotorsSettings,
    RobotCommand,
    RobotPosition,
    RobotProgramItem,
    RobotSettings,
    RobotV100Encoders,
    RobotV100Lidars,
    RobotV100Location,
    RobotV100Motors,
    RobotV100Power,
    RobotV100RawIMU,
)

PORT_NAME_BUF_SIZE = 255
FLASH_DUMP_MAX_SIZE = 65536

_U32 = struct.Struct("<I")
_I8 = struct.Struct("<b")
_I32 = struct.Struct("<i")
_XYZ = struct.Struct("<3i")
_AXES = struct.Struct("<3B")
_PAIR_DISTANCE = struct.Struct("<BBi")
_SUBMAP_HEIGHT = struct.Struct("<Bi")


class DashApiError(Exception):
    """A library function is missing or reported failure."""

    def __init__(self, message: str, function: str) -> None:
        super().__init__(message)
        self.function = function


def _u8(value: int, what: str) -> int:
    if not 0 <= value <= 255:
        raise ValueError(f"{what} must be in 0..255, got {value}")
    return value


def _buffer(size: int, payload: bytes = b"") -> bytearray:
    if len(payload) > size:
        raise ValueError(f"payload of {len(payload)} bytes exceeds buffer of {size}")
    buf = bytearray(size)
    buf[: len(payload)] = payload
    return buf


class DashApi:
    """Calls into the dashboard library, decoding replies into records."""

    def __init__(self, backend) -> None:
        self._backend = backend

    def _call(self, name: str, *args) -> None:
        func = getattr(self._backend, name, None)
        if func is None:
            raise DashApiError(f"{name} is not available", name)
        if not func(*args):
            raise DashApiError(f"{name} failed", name)

    def _read(self, name: str, size: int, *args) -> bytearray:
        buf = bytearray(size)
        self._call(name, *args, buf)
        return buf

    def _predicate(self, name: str, device_type: int) -> bool:
        func = getattr(self._backend, name, None)
        if func is None:
            return False
        return bool(func(_u8(device_type, "device type")))

    # General

    def api_version(self) -> int:
        return _unpack(_U32, self._read("mm_api_version", 8))[0]

    def last_error(self) -> int:
        return _unpack(_U32, self._read("mm_get_last_error", 8))[0]

    def open_port(self) -> None:
        self._call("mm_open_port")

    def open_port_by_name(self, port_name: str) -> None:
        encoded = port_name.encode()[:PORT_NAME_BUF_SIZE]
        self._call("mm_open_port_by_name", _buffer(PORT_NAME_BUF_SIZE, encoded))

    def close_port(self) -> None:
        func = getattr(self._backend, "mm_close_port", None)
        if func is not None:
            func()

    def version_and_id(self, address: int) -> DeviceVersion:
        buf = self._read("mm_get_device_version_and_id", 128, _u8(address, "address"))
        return DeviceVersion.from_bytes(buf)

    def devices_list(self) -> list[DeviceInfo]:
        buf = self._read("mm_get_devices_list", (MAX_DEVICES_COUNT + 1) * 10)
        return decode_devices_list(buf)

    def wake_device(self, address: int) -> None:
        self._call("mm_wake_device", _u8(address, "address"))

    def sleep_device(self, address: int) -> None:
        self._call("mm_send_to_sleep_device", _u8(address, "address"))

    def beacon_telemetry(self, address: int) -> BeaconTelemetry:
        buf = self._read("mm_get_beacon_telemetry", 128, _u8(address, "address"))
        return BeaconTelemetry.from_bytes(buf)

    # Locations and distances

    def last_locations(self) -> LocationsPack:
        return decode_locations(self._read("mm_get_last_locations", 512), with_angle=False)

    def last_locations2(self) -> LocationsPack:
        return decode_locations(self._read("mm_get_last_locations2", 512), with_angle=True)

    def last_distances(self) -> list[Distance]:
        return decode_distances(self._read("mm_get_last_distances", 512))

    # Update rate

    def update_rate(self) -> float:
        (rate_mhz,) = _unpack(_U32, self._read("mm_get_update_rate_setting", 8))
        return rate_mhz / 1000.0

    def set_update_rate(self, rate_hz: float) -> None:
        payload = _pack(_U32, int(rate_hz * 1000.0))
        self._call("mm_set_update_rate_setting", _buffer(8, payload))

    # Submaps and map

    def add_submap(self, submap_id: int) -> None:
        self._call("mm_add_submap", _u8(submap_id, "submap id"))

    def delete_submap(self, submap_id: int) -> None:
        self._call("mm_delete_submap", _u8(submap_id, "submap id"))

    def freeze_submap(self, submap_id: int) -> None:
        self._call("mm_freeze_submap", _u8(submap_id, "submap id"))

    def unfreeze_submap(self, submap_id: int) -> None:
        self._call("mm_unfreeze_submap", _u8(submap_id, "submap id"))

    def submap_settings(self, submap_id: int) -> SubmapSettings:
        buf = self._read("mm_get_submap_settings", 512, _u8(submap_id, "submap id"))
        return SubmapSettings.from_bytes(buf)

    def set_submap_settings(self, submap_id: int, settings: SubmapSettings) -> None:
        self._call(
            "mm_set_submap_settings",
            _u8(submap_id, "submap id"),
            _buffer(512, settings.to_bytes()),
        )

    def ultrasound_settings(self, address: int) -> UltrasoundSettings:
        buf = self._read("mm_get_ultrasound_settings", 64, _u8(address, "address"))
        return UltrasoundSettings.from_bytes(buf)

    def set_ultrasound_settings(self, address: int, settings: UltrasoundSettings) -> None:
        self._call(
            "mm_set_ultrasound_settings",
            _u8(address, "address"),
            _buffer(64, settings.to_bytes()),
        )

    def erase_map(self) -> None:
        self._call("mm_erase_map")

    def set_default_settings(self, address: int) -> None:
        self._call("mm_set_default_settings", _u8(address, "address"))

    def freeze_map(self) -> None:
        self._call("mm_freeze_map")

    def unfreeze_map(self) -> None:
        self._call("mm_unfreeze_map")

    def beacons_to_axes(self, address_0: int, address_x: int, address_y: int) -> None:
        payload = _pack(_AXES, address_0, address_x, address_y)
        self._call("mm_beacons_to_axes", _buffer(64, payload))

    # Flash dump and reset

    def read_flash_dump(self, offset: int, size: int) -> bytes:
        if not 0 < size <= FLASH_DUMP_MAX_SIZE:
            raise ValueError(f"size must be in 1..{FLASH_DUMP_MAX_SIZE}, got {size}")
        buf = bytearray(size)
        self._call("mm_read_flash_dump", offset, size, buf)
        return bytes(buf)

    def write_flash_dump(self, offset: int, data: bytes) -> None:
        data = bytes(data)
        if not 0 < len(data) <= FLASH_DUMP_MAX_SIZE:
            raise ValueError(f"data must hold 1..{FLASH_DUMP_MAX_SIZE} bytes, got {len(data)}")
        self._call("mm_write_flash_dump", offset, len(data), data)

    def reset_device(self, address: int) -> None:
        self._call("mm_reset_device", _u8(address, "address"))

    # Temperature, locations, heights

    def air_temperature(self) -> int:
        return _unpack(_I8, self._read("mm_get_air_temperature", 64))[0]

    def set_air_temperature(self, temperature: int) -> None:
        self._call("mm_set_air_temperature", _buffer(64, _pack(_I8, temperature)))

    def set_beacon_location(self, address: int, x_mm: int, y_mm: int, z_mm: int) -> None:
        payload = _pack(_XYZ, int(x_mm), int(y_mm), int(z_mm))
        self._call("mm_set_beacon_location", _u8(address, "address"), _buffer(64, payload))

    def set_beacons_distance(self, address_1: int, address_2: int, distance_mm: int) -> None:
        payload = _pack(_PAIR_DISTANCE, address_1, address_2, int(distance_mm))
        self._call("mm_set_beacons_distance", _buffer(64, payload))

    def hedge_height(self, address: int) -> int:
        buf = self._read("mm_get_hedge_height", 64, _u8(address, "address"))
        return _unpack(_I32, buf)[0]

    def set_hedge_height(self, address: int, height_mm: int) -> None:
        payload = _pack(_I32, int(height_mm))
        self._call("mm_set_hedge_height", _u8(address, "address"), _buffer(64, payload))

    def beacon_height(self, address: int, submap_id: int) -> int:
        buf = _buffer(64, bytes([_u8(submap_id, "submap id")]))
        self._call("mm_get_beacon_height", _u8(address, "address"), buf)
        return _unpack(_I32, buf, 1)[0]

    def set_beacon_height(self, address: int, submap_id: int, height_mm: int) -> None:
        payload = _pack(_SUBMAP_HEIGHT, submap_id, int(height_mm))
        self._call("mm_set_beacon_height", _u8(address, "address"), _buffer(64, payload))

    # Player, georeferencing, update mode

    def realtime_player_settings(self, address: int) -> RealtimePlayerSettings:
        buf = self._read("mm_get_realtime_player_settings", 64, _u8(address, "address"))
        return RealtimePlayerSettings.from_bytes(buf)

    def set_realtime_player_settings(self, address: int, settings: RealtimePlayerSettings) -> None:
        self._call(
            "mm_set_realtime_player_settings",
            _u8(address, "address"),
            _buffer(64, settings.to_bytes()),
        )

    def georeferencing(self) -> GeoreferencingSettings:
        return GeoreferencingSettings.from_bytes(self._read("mm_get_georeferencing_settings", 64))

    def set_georeferencing(self, settings: GeoreferencingSettings) -> None:
        self._call("mm_set_georeferencing_settings", _buffer(64, settings.to_bytes()))

    def update_positions_mode(self) -> UpdatePositionsMode:
        return UpdatePositionsMode.from_bytes(self._read("mm_get_update_position_mode", 64))

    def set_update_positions_mode(self, mode: UpdatePositionsMode) -> None:
        self._call("mm_set_update_position_mode", _buffer(64, mode.to_bytes()))

    def send_update_positions(self) -> None:
        self._call("mm_set_update_position_command", _buffer(64, bytes(8)))

    # Robots

    def set_motors_control(self, address: int, settings: MotorsSettings) -> None:
        self._call(
            "mm_set_robot_motors_control",
            _u8(address, "address"),
            _buffer(64, settings.to_bytes()),
        )

    def set_robot_program_item(self, address: int, item: RobotProgramItem) -> None:
        self._call(
            "mm_set_robot_program_item", _u8(address, "address"), _buffer(64, item.to_bytes())
        )

    def set_robot_command(self, address: int, command: RobotCommand) -> None:
        self._call(
            "mm_set_robot_command", _u8(address, "address"), _buffer(64, command.to_bytes())
        )

    def set_robot_position(self, address: int, position: RobotPosition) -> None:
        self._call(
            "mm_set_robot_position", _u8(address, "address"), _buffer(64, position.to_bytes())
        )

    def robot_telemetry(self, address: int) -> bytes:
        buf = self._read("mm_get_robot_telemetry", 128, _u8(address, "address"))
        return bytes(buf[:ROBOT_TELEMETRY_SIZE])

    def robot_settings(self, address: int, page: int) -> RobotSettings:
        buf = _buffer(128, bytes([_u8(page, "page")]))
        self._call("mm_get_robot_settings", _u8(address, "address"), buf)
        return RobotSettings.from_bytes(page, buf)

    def set_robot_settings(self, address: int, settings: RobotSettings) -> None:
        self._call(
            "mm_set_robot_settings", _u8(address, "address"), _buffer(64, settings.to_bytes())
        )

    def robot_v100_power(self) -> RobotV100Power:
        return RobotV100Power.from_bytes(self._read("mm_robotv100_get_power", 128))

    def robot_v100_encoders(self) -> RobotV100Encoders:
        return RobotV100Encoders.from_bytes(self._read("mm_robotv100_get_encoders", 128))

    def robot_v100_lidars(self) -> RobotV100Lidars:
        return RobotV100Lidars.from_bytes(self._read("mm_robotv100_get_lidars", 128))

    def robot_v100_location(self) -> RobotV100Location:
        return RobotV100Location.from_bytes(self._read("mm_robotv100_get_location", 128))

    def robot_v100_raw_imu(self) -> RobotV100RawIMU:
        return RobotV100RawIMU.from_bytes(self._read("mm_robotv100_get_raw_imu", 128))

    def robot_v100_set_motors(self, motors: RobotV100Motors) -> None:
        self._call("mm_robotv100_set_motors", _buffer(64, motors.to_bytes()))

    # Device type predicates

    def device_is_modem(self, device_type: int) -> bool:
        return self._predicate("mm_device_is_modem", device_type)

    def device_is_beacon(self, device_type: int) -> bool:
        return self._predicate("mm_device_is_beacon", device_type)

    def device_is_hedgehog(self, device_type: int) -> bool:
        return self._predicate("mm_device_is_hedgehog", device_type)

    def device_is_robot(self, device_type: int) -> bool:
        return self._predicate("mm_device_is_robot", device_type)