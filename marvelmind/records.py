"""Binary records exchanged with the positioning system's dashboard library.

Every record mirrors one fixed little-endian layout: ``from_bytes`` decodes a
reply buffer and ``to_bytes`` builds the buffer for a settings write.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

USB_DEVICE_ADDRESS = 255
MAX_DEVICES_COUNT = 255

LOCATIONS_PACK_SIZE = 6
USER_PAYLOAD_BUF_SIZE = 128
DISTANCES_PACK_MAX_SIZE = 16

SUBMAP_BEACONS_MAX_NUM = 4
NEARBY_SUBMAPS_MAX_NUM = 8
SUBMAP_SERVICE_ZONE_MAX_POINTS = 8
NO_BEACON = 0
NO_SUBMAP = 255

SENSOR_RX1 = 0
SENSOR_RX2 = 1
SENSOR_RX3 = 2
SENSOR_RX4 = 3
SENSOR_RX5 = 4
US_SENSORS_NUM = 5

US_FILTER_19KHZ = 0
US_FILTER_25KHZ = 1
US_FILTER_31KHZ = 2
US_FILTER_37KHZ = 3
US_FILTER_45KHZ = 4

ANGLE_NOT_READY_BIT = 0x1000

_VERSION = struct.Struct("<5BI")
_DEVICE_INFO = struct.Struct("<B??6B")
_TELEMETRY = struct.Struct("<IbbH16s")
_LOCATION = struct.Struct("<BB3iBB2s")
_LOCATION2 = struct.Struct("<BB3iBB2sH")
_PACK_TAIL = struct.Struct("<?5sB")
_DISTANCE = struct.Struct("<4BIB")
_SUBMAP_HEAD = struct.Struct("<5B3?B3hH4h2h4?")
_SUBMAP_LISTS = struct.Struct(f"<{SUBMAP_BEACONS_MAX_NUM}B{NEARBY_SUBMAPS_MAX_NUM}BB")
_ZONE_POINT = struct.Struct("<2h")
_ULTRASOUND = struct.Struct(f"<HB?H{US_SENSORS_NUM}?{US_SENSORS_NUM}?B")
_RTP = struct.Struct("<?4B")
_GEOREF = struct.Struct("<2i")
_UPDATE_MODE = struct.Struct("<B7s")


def _unpack(layout: struct.Struct, data, offset: int = 0) -> tuple:
    try:
        return layout.unpack_from(data, offset)
    except struct.error as exc:
        raise ValueError(
            f"buffer too short: need {offset + layout.size} bytes, got {len(data)}"
        ) from exc


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"value out of range: {exc}") from exc


def _fixed(values, size: int, filler: int, what: str) -> tuple:
    values = tuple(values)
    if len(values) > size:
        raise ValueError(f"{what}: at most {size} entries, got {len(values)}")
    return values + (filler,) * (size - len(values))


def _fixed_bytes(value: bytes, size: int, what: str) -> bytes:
    value = bytes(value)
    if len(value) > size:
        raise ValueError(f"{what}: at most {size} bytes, got {len(value)}")
    return value.ljust(size, b"\x00")


@dataclass(frozen=True)
class DeviceVersion:
    """Firmware version and CPU identifier of a device."""

    fw_major: int = 0
    fw_minor: int = 0
    fw_minor2: int = 0
    fw_device_type: int = 0
    fw_options: int = 0
    cpu_id: int = 0

    @classmethod
    def from_bytes(cls, data) -> DeviceVersion:
        return cls(*_unpack(_VERSION, data))


@dataclass(frozen=True)
class DeviceInfo:
    """One entry of the modem's device list."""

    address: int
    is_duplicated_address: bool
    is_sleeping: bool
    fw_major: int
    fw_minor: int
    fw_minor2: int
    fw_device_type: int
    fw_options: int
    flags: int

    @property
    def connected(self) -> bool:
        return bool(self.flags & 0x01)


@dataclass(frozen=True)
class BeaconTelemetry:
    """Telemetry reported by a beacon."""

    worktime_sec: int = 0
    rssi: int = 0
    temperature: int = 0
    voltage_mv: int = 0
    reserved: bytes = bytes(16)

    @classmethod
    def from_bytes(cls, data) -> BeaconTelemetry:
        return cls(*_unpack(_TELEMETRY, data))


@dataclass(frozen=True)
class DeviceLocation:
    """Location of one device; the angle is present only in the second format."""

    address: int
    head_index: int
    x_mm: int
    y_mm: int
    z_mm: int
    status_flags: int
    quality: int
    reserved: bytes = bytes(2)
    angle: int | None = None
    angle_ready: bool = False


@dataclass(frozen=True)
class LocationsPack:
    """Latest locations with the user payload attached to them."""

    positions: tuple[DeviceLocation, ...]
    last_dist_updated: bool
    reserved: bytes
    user_payload_size: int
    user_payload: bytes


@dataclass(frozen=True)
class Distance:
    """A raw distance between a receiving and a transmitting device."""

    address_rx: int
    head_rx: int
    address_tx: int
    head_tx: int
    distance_mm: int
    reserved: int = 0


@dataclass(frozen=True)
class ServiceZonePoint:
    """A vertex of the service zone polygon, in centimetres."""

    x: int
    y: int


@dataclass(frozen=True)
class SubmapSettings:
    """Settings of one submap."""

    starting_beacon: int = 0
    starting_set: tuple[int, int, int, int] = (0, 0, 0, 0)
    enabled_3d: bool = False
    only_for_z: bool = False
    limitation_distance_is_manual: bool = False
    maximum_distance_manual_m: int = 0
    shift_x_cm: int = 0
    shift_y_cm: int = 0
    shift_z_cm: int = 0
    rotation_cdeg: int = 0
    plane_qw: int = 0
    plane_qx: int = 0
    plane_qy: int = 0
    plane_qz: int = 0
    service_zone_thickness_cm: int = 0
    hedges_height_2d_cm: int = 0
    frozen: bool = False
    locked: bool = False
    beacons_higher: bool = False
    mirrored: bool = False
    beacons: tuple[int, ...] = ()
    nearby_submaps: tuple[int, ...] = ()
    service_zone: tuple[ServiceZonePoint, ...] = ()

    @classmethod
    def from_bytes(cls, data) -> SubmapSettings:
        head = _unpack(_SUBMAP_HEAD, data)
        lists = _unpack(_SUBMAP_LISTS, data, _SUBMAP_HEAD.size)
        beacons = lists[:SUBMAP_BEACONS_MAX_NUM]
        nearby = lists[SUBMAP_BEACONS_MAX_NUM:SUBMAP_BEACONS_MAX_NUM + NEARBY_SUBMAPS_MAX_NUM]
        count = min(lists[-1], SUBMAP_SERVICE_ZONE_MAX_POINTS)
        base = _SUBMAP_HEAD.size + _SUBMAP_LISTS.size
        points = tuple(
            ServiceZonePoint(*_unpack(_ZONE_POINT, data, base + n * _ZONE_POINT.size))
            for n in range(SUBMAP_SERVICE_ZONE_MAX_POINTS)
        )
        (starting_beacon, s1, s2, s3, s4, enabled_3d, only_for_z, manual, max_dist,
         sx, sy, sz, rot, qw, qx, qy, qz, thickness, hedges,
         frozen, locked, higher, mirrored) = head
        return cls(
            starting_beacon=starting_beacon,
            starting_set=(s1, s2, s3, s4),
            enabled_3d=enabled_3d,
            only_for_z=only_for_z,
            limitation_distance_is_manual=manual,
            maximum_distance_manual_m=max_dist,
            shift_x_cm=sx,
            shift_y_cm=sy,
            shift_z_cm=sz,
            rotation_cdeg=rot,
            plane_qw=qw,
            plane_qx=qx,
            plane_qy=qy,
            plane_qz=qz,
            service_zone_thickness_cm=thickness,
            hedges_height_2d_cm=hedges,
            frozen=frozen,
            locked=locked,
            beacons_higher=higher,
            mirrored=mirrored,
            beacons=tuple(beacons),
            nearby_submaps=tuple(nearby),
            service_zone=points[:count],
        )

    def to_bytes(self) -> bytes:
        if len(self.starting_set) != 4:
            raise ValueError("starting_set must hold exactly 4 addresses")
        head = _pack(
            _SUBMAP_HEAD,
            self.starting_beacon, *self.starting_set,
            self.enabled_3d, self.only_for_z, self.limitation_distance_is_manual,
            self.maximum_distance_manual_m,
            self.shift_x_cm, self.shift_y_cm, self.shift_z_cm, self.rotation_cdeg,
            self.plane_qw, self.plane_qx, self.plane_qy, self.plane_qz,
            self.service_zone_thickness_cm, self.hedges_height_2d_cm,
            self.frozen, self.locked, self.beacons_higher, self.mirrored,
        )
        beacons = _fixed(self.beacons, SUBMAP_BEACONS_MAX_NUM, NO_BEACON, "beacons")
        nearby = _fixed(self.nearby_submaps, NEARBY_SUBMAPS_MAX_NUM, NO_SUBMAP, "nearby_submaps")
        zone = _fixed(
            self.service_zone, SUBMAP_SERVICE_ZONE_MAX_POINTS,
            ServiceZonePoint(0, 0), "service_zone",
        )
        lists = _pack(_SUBMAP_LISTS, *beacons, *nearby, len(self.service_zone))
        points = b"".join(_pack(_ZONE_POINT, p.x, p.y) for p in zone)
        return head + lists + points


@dataclass(frozen=True)
class UltrasoundSettings:
    """Ultrasound transmitter and receiver settings of a beacon."""

    tx_frequency_hz: int = 0
    tx_periods_number: int = 0
    rx_amplifier_agc: bool = False
    rx_amplification_manual: int = 0
    sensors_normal: tuple[bool, ...] = (False,) * US_SENSORS_NUM
    sensors_frozen: tuple[bool, ...] = (False,) * US_SENSORS_NUM
    rx_dsp_filter_index: int = 0

    @classmethod
    def from_bytes(cls, data) -> UltrasoundSettings:
        values = _unpack(_ULTRASOUND, data)
        n = US_SENSORS_NUM
        return cls(
            tx_frequency_hz=values[0],
            tx_periods_number=values[1],
            rx_amplifier_agc=values[2],
            rx_amplification_manual=values[3],
            sensors_normal=tuple(values[4:4 + n]),
            sensors_frozen=tuple(values[4 + n:4 + 2 * n]),
            rx_dsp_filter_index=values[4 + 2 * n],
        )

    def to_bytes(self) -> bytes:
        if len(self.sensors_normal) != US_SENSORS_NUM or len(self.sensors_frozen) != US_SENSORS_NUM:
            raise ValueError(f"sensor flags must hold exactly {US_SENSORS_NUM} values")
        return _pack(
            _ULTRASOUND,
            self.tx_frequency_hz, self.tx_periods_number,
            self.rx_amplifier_agc, self.rx_amplification_manual,
            *(bool(v) for v in self.sensors_normal),
            *(bool(v) for v in self.sensors_frozen),
            self.rx_dsp_filter_index,
        )


@dataclass(frozen=True)
class RealtimePlayerSettings:
    """Real-time player settings of a device."""

    enabled: bool = False
    forward: int = 0
    backward: int = 0
    reserved0: int = 0
    reserved1: int = 0

    @classmethod
    def from_bytes(cls, data) -> RealtimePlayerSettings:
        return cls(*_unpack(_RTP, data))

    def to_bytes(self) -> bytes:
        return _pack(_RTP, self.enabled, self.forward, self.backward, self.reserved0, self.reserved1)


@dataclass(frozen=True)
class GeoreferencingSettings:
    """Geographic reference point in units of 100 nanodegrees."""

    latitude_x100ndeg: int = 0
    longitude_x100ndeg: int = 0

    @property
    def latitude(self) -> float:
        return self.latitude_x100ndeg / 10000000.0

    @property
    def longitude(self) -> float:
        return self.longitude_x100ndeg / 10000000.0

    @classmethod
    def from_degrees(cls, latitude: float, longitude: float) -> GeoreferencingSettings:
        return cls(int(latitude * 10000000.0), int(longitude * 10000000.0))

    @classmethod
    def from_bytes(cls, data) -> GeoreferencingSettings:
        return cls(*_unpack(_GEOREF, data))

    def to_bytes(self) -> bytes:
        return _pack(_GEOREF, self.latitude_x100ndeg, self.longitude_x100ndeg)


@dataclass(frozen=True)
class UpdatePositionsMode:
    """Mode in which the system updates positions."""

    mode: int = 0
    reserved: bytes = bytes(7)

    @classmethod
    def from_bytes(cls, data) -> UpdatePositionsMode:
        return cls(*_unpack(_UPDATE_MODE, data))

    def to_bytes(self) -> bytes:
        return _pack(_UPDATE_MODE, self.mode, _fixed_bytes(self.reserved, 7, "reserved"))


def decode_devices_list(data) -> list[DeviceInfo]:
    """Decode a device list reply: a count byte followed by 9-byte entries."""
    if len(data) < 1:
        raise ValueError("buffer too short: missing device count")
    count = data[0]
    return [
        DeviceInfo(*_unpack(_DEVICE_INFO, data, 1 + n * _DEVICE_INFO.size))
        for n in range(count)
    ]


def decode_locations(data, with_angle: bool) -> LocationsPack:
    """Decode a locations reply, in the format with or without the angle."""
    layout = _LOCATION2 if with_angle else _LOCATION
    positions = []
    for n in range(LOCATIONS_PACK_SIZE):
        values = _unpack(layout, data, n * layout.size)
        if with_angle:
            angle = values[-1]
            positions.append(
                DeviceLocation(*values, angle_ready=(angle & ANGLE_NOT_READY_BIT) == 0)
            )
        else:
            positions.append(DeviceLocation(*values))
    offset = LOCATIONS_PACK_SIZE * layout.size
    last_dist_updated, reserved, payload_size = _unpack(_PACK_TAIL, data, offset)
    offset += _PACK_TAIL.size
    n = min(payload_size, USER_PAYLOAD_BUF_SIZE)
    if len(data) < offset + n:
        raise ValueError(f"buffer too short: need {offset + n} bytes, got {len(data)}")
    return LocationsPack(
        positions=tuple(positions),
        last_dist_updated=last_dist_updated,
        reserved=reserved,
        user_payload_size=payload_size,
        user_payload=bytes(data[offset:offset + n]),
    )


def decode_distances(data) -> list[Distance]:
    """Decode a raw distances reply; at most 16 distances are kept."""
    if len(data) < 1:
        raise ValueError("buffer too short: missing distance count")
    count = min(data[0], DISTANCES_PACK_MAX_SIZE)
    return [
        Distance(*_unpack(_DISTANCE, data, 1 + n * _DISTANCE.size))
        for n in range(count)
    ]