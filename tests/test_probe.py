"""Tests for duration parsing and the probe wrapper."""

import pytest

from clipedit.engine import EngineResult
from clipedit.errors import EngineException
from clipedit.probe import DurationProbe, parse_duration

FFMPEG_HEADER = """\
Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'talk.mp4':
  Metadata:
    major_brand     : isom
  Duration: 00:01:30.50, start: 0.000000, bitrate: 1205 kb/s
  Stream #0:0(und): Video: h264 (High) (avc1 / 0x31637661), yuv420p, 1920x1080
"""


class _StaticEngine:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def execute(self, args):
        self.calls.append(list(args))
        if self.exc is not None:
            raise self.exc
        return self.result


class TestParseDuration:
    def test_ffmpeg_header(self):
        assert parse_duration(FFMPEG_HEADER) == pytest.approx(90.5)

    def test_hours(self):
        assert parse_duration("Duration: 02:00:01.07") == pytest.approx(7201.07)

    def test_first_match_wins(self):
        log = "Duration: 00:00:05.00\nDuration: 00:00:09.00"
        assert parse_duration(log) == pytest.approx(5.0)

    def test_missing_is_zero(self):
        assert parse_duration("Input #0, wav, from 'x.wav':\n") == 0.0

    def test_na_is_zero(self):
        assert parse_duration("Duration: N/A, bitrate: N/A") == 0.0

    def test_empty_is_zero(self):
        assert parse_duration("") == 0.0
        assert parse_duration(None) == 0.0


class TestDurationProbe:
    def test_runs_null_output_command(self):
        engine = _StaticEngine(EngineResult(True, FFMPEG_HEADER))
        assert DurationProbe(engine).probe("talk.mp4") == pytest.approx(90.5)
        assert engine.calls == [["-i", "talk.mp4", "-f", "null", "-"]]

    def test_parses_log_of_failed_run(self):
        engine = _StaticEngine(EngineResult(False, FFMPEG_HEADER + "\nError while decoding"))
        assert DurationProbe(engine).probe("talk.mp4") == pytest.approx(90.5)

    def test_no_duration_returns_zero(self):
        engine = _StaticEngine(EngineResult(False, "talk.mp4: No such file or directory"))
        assert DurationProbe(engine).probe("talk.mp4") == 0.0

    def test_engine_exception_propagates(self):
        engine = _StaticEngine(exc=EngineException("boom"))
        with pytest.raises(EngineException):
            DurationProbe(engine).probe("talk.mp4")
