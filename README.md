# marvelmind

A Python toolkit for working with a Marvelmind indoor positioning system
through its dashboard library: reading device lists, locations and raw
distances from a modem; reading and writing submap, ultrasound, real-time
player, georeferencing and update-mode settings; and driving robots.

## What is inside

- `marvelmind.records` – frozen dataclasses for the values the library
  exchanges (`DeviceVersion`, `DeviceInfo`, `BeaconTelemetry`,
  `DeviceLocation`, `LocationsPack`, `Distance`, `ServiceZonePoint`,
  `SubmapSettings`, `UltrasoundSettings`, `RealtimePlayerSettings`,
  `GeoreferencingSettings`, `UpdatePositionsMode`). Records that are read
  have `from_bytes`; records that are written back also have `to_bytes`.
  `decode_devices_list`, `decode_locations` and `decode_distances` decode the
  packed list replies. Short buffers and out-of-range values raise
  `ValueError`.
- `marvelmind.robot` – robot records: `MotorsSettings`, `RobotProgramItem`,
  `RobotCommand`, `RobotPosition`, `RobotSettings`, and the V100 blocks
  `RobotV100Power`, `RobotV100Encoders`, `RobotV100Lidars` (with
  `LidarState`), `RobotV100Location`, `RobotV100RawIMU` and
  `RobotV100Motors`.
- `marvelmind.dashapi` – `DashApi`, a typed front end over a *backend*
  object. A failed or missing library call raises `DashApiError`, whose
  `function` attribute names the call; reads return the records above.
  `close_port` does nothing when the backend lacks it, and the
  `device_is_*` checks return `False` when it lacks them.
- `marvelmind.utils` – `DeviceType`, `device_type`, `format_version`,
  `describe_device_type` and `enabled_text`.
- `marvelmind.devices` – `Device` and `DeviceRegistry`. The registry reads
  the modem's device list at most once a second (`read_if_needed`), or takes
  a list you give it (`refresh`), and remembers each device's version, kind,
  last location and distances (`get`, `update_location`, `update_distance`).
- `marvelmind.positions` – `PositionReader`, which polls locations with angle
  (20 times a second by default) and, when the reply says so, raw distances,
  reporting what changed. `read_if_needed` returns a `ReadStatus`.
  `format_location` builds the line shown for a hedgehog or beacon.
- `marvelmind.commands` – `CommandProcessor`, which runs one text command
  line against a `DashApi`, plus `tokenize`, `dsp_filter_name`,
  `sample_submap_settings` and `sample_ultrasound_settings`.
- `marvelmind.session` – `Session`, the connection state machine
  (`ConnectionState`): wait for the port, wait for the USB device, then, for
  a modem, refresh devices and locations each cycle and reopen the port after
  more than ten failed location reads in a row.

## The backend

`DashApi` does not load any native library itself. You pass it an object
whose attributes are the library's functions (`mm_api_version`,
`mm_open_port_by_name`, `mm_get_devices_list`, `mm_get_last_locations2` and
so on). Each function takes its integer arguments followed, where data is
exchanged, by a `bytearray` buffer; it fills the buffer with the reply and
returns a true value on success.

## Using it

```python
import time

from marvelmind.dashapi import DashApi
from marvelmind.session import Session

api = DashApi(backend)
session = Session(api, "/dev/ttyACM0", print, time.monotonic)
session.start()
while True:
    session.cycle()
    line = read_line_if_any()   # however your program collects input
    if line:
        session.handle_command(line)
```

Settings records are frozen; change them with `dataclasses.replace`:

```python
from dataclasses import replace

settings = api.submap_settings(0)
api.set_submap_settings(0, replace(settings, frozen=True))
```

## Commands

`CommandProcessor.execute` and `Session.handle_command` accept the same
space-separated commands and return whether the command was known. `quit`
raises `SystemExit`.

| Command | Effect |
| --- | --- |
| `version` | show the API version |
| `wake 5`, `sleep 5`, `reset 5`, `default 5` | wake, sleep, reset or restore defaults of device 5 |
| `tele 5` | beacon telemetry |
| `submap add\|delete\|freeze\|unfreeze\|get\|testset 0` | submap operations |
| `map erase\|freeze\|unfreeze` | whole-map operations |
| `rate get`, `rate set 8` | update rate in Hz |
| `usound get 5`, `usound testset 5` | ultrasound settings |
| `axes 1 2 3` | place beacons on the axes |
| `read_dump 0 64`, `write_dump_test 0 64` | flash dump access (at most 65536 bytes) |
| `temperature get`, `temperature set 21` | air temperature |
| `setloc 5 1.0 2.0 0.5`, `setdist 1 2 3.5` | beacon location and distance, in metres |
| `height_h get 5`, `height_h set 5 0.3` | hedgehog height |
| `height_b get 5 0`, `height_b set 5 0 1.8` | beacon height in a submap |
| `rtp get 5`, `rtp testset 5` | real-time player settings |
| `georef get`, `georef set 55.75 37.62` | georeferencing |
| `update_mode get`, `update_mode set 1`, `update` | location update mode and trigger |
| `motors 5 1 2 50`, `cmd 5 1 0 0 0` | robot motors and commands |

## What it does not do

- It does not load the dashboard library or talk to a serial port on its
  own; the backend object is yours to supply.
- It installs no command-line program and reads no keyboard input; the loop
  that calls `Session.cycle` and feeds command lines is left to you.
- When a beacon, hedgehog or robot rather than a modem is on the USB port,
  `Session.cycle` does nothing after connecting.

## Tests

The test suite uses pytest, declared in the `test` extra.