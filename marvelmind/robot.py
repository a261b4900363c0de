"""Binary records for robot control and the V100 robot's sensor readings.

Commands are encoded with ``to_bytes``; readings are decoded with
``from_bytes``. All layouts are little-endian without padding.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from marvelmind.records import _fixed_bytes, _pack, _unpack

RV100_LIDARS_NUM = 12
ROBOT_TELEMETRY_SIZE = 64
ROBOT_SETTINGS_DATA_SIZE = 32

LIDAR_RANGE_MASK = 0x0FFF
LIDAR_STATUS_SHIFT = 12

_MOTORS = struct.Struct("<3B")
_PROGRAM_ITEM = struct.Struct("<3B3h")
_COMMAND = struct.Struct("<B3h")
_POSITION = struct.Struct("<3iH18s")
_SETTINGS = struct.Struct(f"<BB{ROBOT_SETTINGS_DATA_SIZE}s")
_SETTINGS_DATA = struct.Struct(f"<2x{ROBOT_SETTINGS_DATA_SIZE}s")
_POWER = struct.Struct("<3HBIB20s")
_ENCODERS = struct.Struct("<2iI20s")
_LIDARS = struct.Struct(f"<{RV100_LIDARS_NUM}H4xI32s")
_LOCATION = struct.Struct("<3iHBI13s")
_RAW_IMU = struct.Struct("<6hI16s")
_V100_MOTORS = struct.Struct("<5B11s")


@dataclass(frozen=True)
class MotorsSettings:
    """Direct motors control of a robot."""

    mode: int = 0
    move_type: int = 0
    level_percents: int = 0

    def to_bytes(self) -> bytes:
        return _pack(_MOTORS, self.mode, self.move_type, self.level_percents)


@dataclass(frozen=True)
class RobotProgramItem:
    """One item of a robot program."""

    item_index: int = 0
    total_items_num: int = 0
    op_code: int = 0
    param1: int = 0
    param2: int = 0
    param3: int = 0

    def to_bytes(self) -> bytes:
        return _pack(
            _PROGRAM_ITEM,
            self.item_index, self.total_items_num, self.op_code,
            self.param1, self.param2, self.param3,
        )


@dataclass(frozen=True)
class RobotCommand:
    """A command with up to three parameters sent to a robot."""

    command_id: int = 0
    param1: int = 0
    param2: int = 0
    param3: int = 0

    def to_bytes(self) -> bytes:
        return _pack(_COMMAND, self.command_id, self.param1, self.param2, self.param3)


@dataclass(frozen=True)
class RobotPosition:
    """Position and heading assigned to a robot."""

    x_mm: int = 0
    y_mm: int = 0
    z_mm: int = 0
    angle: int = 0
    reserved: bytes = bytes(18)

    def to_bytes(self) -> bytes:
        return _pack(
            _POSITION,
            self.x_mm, self.y_mm, self.z_mm, self.angle,
            _fixed_bytes(self.reserved, 18, "reserved"),
        )


@dataclass(frozen=True)
class RobotSettings:
    """One page of robot settings."""

    page: int = 0
    data: bytes = bytes(ROBOT_SETTINGS_DATA_SIZE)

    def to_bytes(self) -> bytes:
        return _pack(
            _SETTINGS,
            self.page, ROBOT_SETTINGS_DATA_SIZE,
            _fixed_bytes(self.data, ROBOT_SETTINGS_DATA_SIZE, "data"),
        )

    @classmethod
    def from_bytes(cls, page: int, data) -> RobotSettings:
        """Decode the reply to a read of ``page``; the data follows a 2-byte header."""
        (payload,) = _unpack(_SETTINGS_DATA, data)
        return cls(page=page, data=payload)


@dataclass(frozen=True)
class RobotV100Power:
    """Battery and current readings of the V100 robot."""

    battery_voltage_x10mv: int = 0
    total_current_x10ma: int = 0
    motors_current_x10ma: int = 0
    battery_capacity_per: int = 0
    timestamp_ms: int = 0
    flags: int = 0
    reserved: bytes = bytes(20)

    @classmethod
    def from_bytes(cls, data) -> RobotV100Power:
        return cls(*_unpack(_POWER, data))


@dataclass(frozen=True)
class RobotV100Encoders:
    """Wheel encoder paths of the V100 robot."""

    left_path_cm: int = 0
    right_path_cm: int = 0
    timestamp_ms: int = 0
    reserved: bytes = bytes(20)

    @classmethod
    def from_bytes(cls, data) -> RobotV100Encoders:
        return cls(*_unpack(_ENCODERS, data))


@dataclass(frozen=True)
class LidarState:
    """Range and status of one lidar."""

    range_mm: int
    status: int


@dataclass(frozen=True)
class RobotV100Lidars:
    """Readings of all lidars of the V100 robot."""

    lidars: tuple[LidarState, ...] = ()
    timestamp_ms: int = 0
    reserved: bytes = bytes(32)

    @classmethod
    def from_bytes(cls, data) -> RobotV100Lidars:
        values = _unpack(_LIDARS, data)
        raw, (timestamp, reserved) = values[:RV100_LIDARS_NUM], values[RV100_LIDARS_NUM:]
        lidars = tuple(
            LidarState(range_mm=v & LIDAR_RANGE_MASK, status=(v >> LIDAR_STATUS_SHIFT) & 0x0F)
            for v in raw
        )
        return cls(lidars=lidars, timestamp_ms=timestamp, reserved=reserved)


@dataclass(frozen=True)
class RobotV100Location:
    """Location and yaw of the V100 robot, in metres and degrees."""

    x_m: float = 0.0
    y_m: float = 0.0
    z_m: float = 0.0
    yaw_angle_deg: float = 0.0
    flags: int = 0
    timestamp_ms: int = 0
    reserved: bytes = bytes(13)

    @classmethod
    def from_bytes(cls, data) -> RobotV100Location:
        x, y, z, yaw, flags, timestamp, reserved = _unpack(_LOCATION, data)
        return cls(
            x_m=x / 1000.0,
            y_m=y / 1000.0,
            z_m=z / 1000.0,
            yaw_angle_deg=yaw / 10.0,
            flags=flags,
            timestamp_ms=timestamp,
            reserved=reserved,
        )


@dataclass(frozen=True)
class RobotV100RawIMU:
    """Raw accelerometer and gyroscope readings of the V100 robot."""

    ax_mg: int = 0
    ay_mg: int = 0
    az_mg: int = 0
    gx: int = 0
    gy: int = 0
    gz: int = 0
    timestamp_ms: int = 0
    reserved: bytes = bytes(16)

    @classmethod
    def from_bytes(cls, data) -> RobotV100RawIMU:
        return cls(*_unpack(_RAW_IMU, data))


@dataclass(frozen=True)
class RobotV100Motors:
    """Motors command for the V100 robot."""

    motors_mode: int = 0
    left_speed: int = 0
    right_speed: int = 0
    left_flags: int = 0
    right_flags: int = 0
    reserved: bytes = bytes(11)

    def to_bytes(self) -> bytes:
        return _pack(
            _V100_MOTORS,
            self.motors_mode, self.left_speed, self.right_speed,
            self.left_flags, self.right_flags,
            _fixed_bytes(self.reserved, 11, "reserved"),
        )