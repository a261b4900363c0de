import struct

import pytest

from marvelmind.robot import (
    RV100_LIDARS_NUM,
    LidarState,
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


def test_motors_settings_bytes():
    assert MotorsSettings(1, 2, 3).to_bytes() == bytes([1, 2, 3])


def test_motors_settings_out_of_range():
    with pytest.raises(ValueError):
        MotorsSettings(256, 0, 0).to_bytes()


def test_program_item_layout():
    item = RobotProgramItem(1, 4, 7, 10, -2, 300)
    data = item.to_bytes()
    assert data[:3] == bytes([1, 4, 7])
    assert struct.unpack("<3h", data[3:]) == (10, -2, 300)


def test_program_item_param_out_of_range():
    with pytest.raises(ValueError):
        RobotProgramItem(param1=40000).to_bytes()


def test_robot_command_layout():
    data = RobotCommand(5, 1, -1, 2).to_bytes()
    assert data[0] == 5
    assert struct.unpack("<3h", data[1:]) == (1, -1, 2)


def test_robot_position_layout():
    data = RobotPosition(1000, -2000, 300, 450).to_bytes()
    assert struct.unpack_from("<3iH", data) == (1000, -2000, 300, 450)
    assert data[14:] == bytes(18)


def test_robot_position_reserved_too_long():
    with pytest.raises(ValueError):
        RobotPosition(reserved=bytes(19)).to_bytes()


def test_robot_settings_round_trip():
    settings = RobotSettings(page=3, data=bytes(range(32)))
    assert RobotSettings.from_bytes(3, settings.to_bytes()) == settings


def test_robot_settings_header():
    data = RobotSettings(page=2, data=b"\x01\x02").to_bytes()
    assert data[0] == 2
    assert data[1] == 32
    assert data[2:4] == b"\x01\x02"
    assert data[4:] == bytes(30)


def test_robot_settings_short_reply():
    with pytest.raises(ValueError):
        RobotSettings.from_bytes(0, bytes(10))


def test_robot_settings_data_too_long():
    with pytest.raises(ValueError):
        RobotSettings(data=bytes(33)).to_bytes()


def test_power_decoding():
    raw = struct.pack("<3HBIB", 1200, 50, 30, 80, 123456, 9) + bytes(range(20))
    power = RobotV100Power.from_bytes(raw)
    assert power.battery_voltage_x10mv == 1200
    assert power.total_current_x10ma == 50
    assert power.motors_current_x10ma == 30
    assert power.battery_capacity_per == 80
    assert power.timestamp_ms == 123456
    assert power.flags == 9
    assert power.reserved == bytes(range(20))


def test_power_short_buffer():
    with pytest.raises(ValueError):
        RobotV100Power.from_bytes(bytes(31))


def test_encoders_decoding():
    raw = struct.pack("<2iI", -500, 700, 99) + bytes(20)
    enc = RobotV100Encoders.from_bytes(raw)
    assert (enc.left_path_cm, enc.right_path_cm, enc.timestamp_ms) == (-500, 700, 99)


def test_lidars_split_range_and_status():
    values = [0x3ABC] + [n for n in range(1, RV100_LIDARS_NUM)]
    raw = struct.pack(f"<{RV100_LIDARS_NUM}H", *values) + bytes(4)
    raw += struct.pack("<I", 777) + bytes(32)
    lidars = RobotV100Lidars.from_bytes(raw)
    assert len(lidars.lidars) == RV100_LIDARS_NUM
    assert lidars.lidars[0] == LidarState(range_mm=0xABC, status=0x3)
    assert lidars.lidars[5] == LidarState(range_mm=5, status=0)
    assert lidars.timestamp_ms == 777


def test_lidars_short_buffer():
    with pytest.raises(ValueError):
        RobotV100Lidars.from_bytes(bytes(40))


def test_location_scaling():
    raw = struct.pack("<3iHBI", 1500, -250, 0, 900, 3, 42) + bytes(13)
    loc = RobotV100Location.from_bytes(raw)
    assert loc.x_m == pytest.approx(1.5)
    assert loc.y_m == pytest.approx(-0.25)
    assert loc.z_m == 0.0
    assert loc.yaw_angle_deg == pytest.approx(90.0)
    assert loc.flags == 3
    assert loc.timestamp_ms == 42


def test_raw_imu_decoding():
    raw = struct.pack("<6hI", 1, -2, 3, -4, 5, -6, 1000) + bytes(16)
    imu = RobotV100RawIMU.from_bytes(raw)
    assert (imu.ax_mg, imu.ay_mg, imu.az_mg) == (1, -2, 3)
    assert (imu.gx, imu.gy, imu.gz) == (-4, 5, -6)
    assert imu.timestamp_ms == 1000


def test_v100_motors_bytes():
    data = RobotV100Motors(1, 50, 60, 0, 1).to_bytes()
    assert data[:5] == bytes([1, 50, 60, 0, 1])
    assert data[5:] == bytes(11)


def test_v100_motors_out_of_range():
    with pytest.raises(ValueError):
        RobotV100Motors(left_speed=-1).to_bytes()