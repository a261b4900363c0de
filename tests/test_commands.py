import pytest

from marvelmind.commands import (
    CommandProcessor,
    dsp_filter_name,
    sample_submap_settings,
    sample_ultrasound_settings,
    tokenize,
)
from marvelmind.dashapi import DashApiError
from marvelmind.records import (
    US_FILTER_45KHZ,
    GeoreferencingSettings,
    SubmapSettings,
    UltrasoundSettings,
    UpdatePositionsMode,
)
from marvelmind.robot import MotorsSettings, RobotCommand


class FakeApi:
    def __init__(self, fail=(), results=None):
        self.calls = []
        self.fail = set(fail)
        self.results = {"last_error": 7}
        self.results.update(results or {})

    def __getattr__(self, name):
        def call(*args):
            self.calls.append((name, args))
            if name in self.fail:
                raise DashApiError(f"{name} failed", name)
            return self.results.get(name)

        return call

    def called(self, name):
        return [args for n, args in self.calls if n == name]


def make(fail=(), results=None):
    api = FakeApi(fail, results)
    lines = []
    return api, lines, CommandProcessor(api, lines.append)


def test_tokenize_trims_and_skips_empty():
    assert tokenize("  wake   5\n") == ["wake", "5"]


def test_tokenize_keeps_at_most_six():
    assert len(tokenize("a b c d e f g h")) == 6


def test_dsp_filter_names():
    assert dsp_filter_name(0) == "19 kHz"
    assert dsp_filter_name(US_FILTER_45KHZ) == "45 kHz"
    assert dsp_filter_name(17) == "unknown"


def test_sample_submap_settings_round_trip():
    settings = sample_submap_settings()
    assert SubmapSettings.from_bytes(settings.to_bytes()) == settings


def test_sample_ultrasound_settings_round_trip():
    settings = sample_ultrasound_settings()
    assert UltrasoundSettings.from_bytes(settings.to_bytes()) == settings
    assert settings.tx_frequency_hz == 31234


def test_quit_raises_system_exit():
    _, _, proc = make()
    with pytest.raises(SystemExit):
        proc.execute("quit\n")


def test_unknown_command_not_handled():
    api, lines, proc = make()
    assert proc.execute("bogus 1") is False
    assert lines == []


def test_version_probe_before_dispatch():
    api, _, proc = make()
    proc.execute("wake 5")
    assert api.called("version_and_id") == [(255,), (255,)]


def test_wake_success():
    api, lines, proc = make()
    assert proc.execute("wake 5\n") is True
    assert api.called("wake_device") == [(5,)]
    assert lines == ["Wake command was sent"]


def test_wake_failure_prints_last_error():
    api, lines, proc = make(fail={"wake_device"})
    proc.execute("wake 5")
    assert lines == ["Wake command failed", "Last error: 7"]


def test_wake_without_address_does_nothing():
    api, lines, proc = make()
    assert proc.execute("wake") is True
    assert api.called("wake_device") == []


def test_print_last_error_failure():
    _, lines, proc = make(fail={"last_error"})
    proc.print_last_error()
    assert lines == ["Get last error failed"]


def test_rate_set_passes_value():
    api, lines, proc = make()
    proc.execute("rate set 2.5")
    assert api.called("set_update_rate") == [(2.5,)]
    assert lines == ["Update rate setting write success"]


def test_rate_get_formats_value():
    _, lines, proc = make(results={"update_rate": 16.0})
    proc.execute("rate get")
    assert lines == ["Update rate setting: 16.00 Hz"]


def test_read_dump_prints_hex():
    api, lines, proc = make(results={"read_flash_dump": b"\x01\x02\xab\xff"})
    proc.execute("read_dump 0 4")
    assert api.called("read_flash_dump") == [(0, 4)]
    assert lines == ["Read flash dump success", " 01 02 ab ff"]


def test_read_dump_zero_size_skipped_and_large_clamped():
    api, _, proc = make(results={"read_flash_dump": b""})
    proc.execute("read_dump 0 0")
    assert api.called("read_flash_dump") == []
    proc.execute("read_dump 16 100000")
    assert api.called("read_flash_dump") == [(16, 65536)]


def test_write_dump_test_pattern():
    api, lines, proc = make()
    proc.execute("write_dump_test 10 3")
    assert api.called("write_flash_dump") == [(10, b"\x01\x02\x03")]
    assert lines == ["Write flash dump success"]


def test_temperature_set_negative():
    api, _, proc = make()
    proc.execute("temperature set -5")
    assert api.called("set_air_temperature") == [(-5,)]


def test_setloc_converts_metres():
    api, lines, proc = make()
    proc.execute("setloc 3 1.5 -2 0.25")
    assert api.called("set_beacon_location") == [(3, 1500, -2000, 250)]
    assert lines == ["Location setup success"]


def test_show_submap_settings_lines():
    _, lines, proc = make(results={"submap_settings": sample_submap_settings()})
    assert proc.show_submap_settings(1) is True
    assert lines[0] == "Submap 1 settings:"
    assert "  Submap is FROZEN" in lines
    assert "  Limitation distances: manual" in lines
    assert "  Maximum distance, m: 19" in lines
    assert "  Beacons in submap: 9 10 " in lines
    assert "  Nearby submaps: 2 " in lines


def test_show_submap_settings_failure():
    _, lines, proc = make(fail={"submap_settings"})
    assert proc.show_submap_settings(1) is False
    assert lines == []


def test_submap_testset_sends_sample():
    api, lines, proc = make()
    proc.execute("submap testset 3")
    assert api.called("set_submap_settings") == [(3, sample_submap_settings())]
    assert lines == ["Submap 3 settings sending success"]


def test_usound_get_output():
    _, lines, proc = make(results={"ultrasound_settings": sample_ultrasound_settings()})
    proc.execute("usound get 4")
    assert lines[0] == "Ultrasound settings for beacon 4:"
    assert "  Sensors normal: 1 0 0 1 0" in lines
    assert "  Sensors frozen: 1 0 0 1 1" in lines
    assert lines[-1] == "  Rx DSP filter: 45 kHz"


def test_motors_stop_mode():
    api, _, proc = make()
    proc.execute("motors 4 0")
    assert api.called("set_motors_control") == [(4, MotorsSettings(0, 0, 0))]


def test_robot_command_params():
    api, lines, proc = make()
    proc.execute("cmd 3 7 1 -2")
    assert api.called("set_robot_command") == [(3, RobotCommand(7, 1, -2, 0))]
    assert lines == ["Command sent"]


def test_georef_set():
    api, _, proc = make()
    proc.execute("georef set 55.5 37.25")
    assert api.called("set_georeferencing") == [
        (GeoreferencingSettings.from_degrees(55.5, 37.25),)
    ]


def test_beacon_height_get():
    api, lines, proc = make(results={"beacon_height": 1250})
    proc.execute("height_b get 4 2")
    assert api.called("beacon_height") == [(4, 2)]
    assert lines == ["Height in submap 2 is 1.250 meters "]


def test_update_mode_set():
    api, _, proc = make()
    proc.execute("update_mode set 1")
    assert api.called("set_update_positions_mode") == [(UpdatePositionsMode(1, bytes(7)),)]


def test_update_command_failure():
    _, lines, proc = make(fail={"send_update_positions"})
    proc.execute("update")
    assert lines == ["Update locations command failed", "Last error: 7"]