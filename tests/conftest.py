"""Shared test fixtures for clipedit tests."""

import subprocess
from datetime import datetime
from pathlib import Path

import pytest
import imageio_ffmpeg

from clipedit.commands import OutputNamer
from clipedit.engine import EngineResult

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9)


class FakeEngine:
    """Records argument lists instead of running ffmpeg.

    Args:
        log: Log text returned by every successful call.
        fail_on: Call indices (0-based) that report failure.
        raise_on: Call index -> exception raised instead of returning.
    """

    def __init__(self, log="", fail_on=(), raise_on=None):
        self.calls = []
        self.log = log
        self.fail_on = set(fail_on)
        self.raise_on = dict(raise_on or {})

    def execute(self, args):
        idx = len(self.calls)
        self.calls.append(list(args))
        if idx in self.raise_on:
            raise self.raise_on[idx]
        if idx in self.fail_on:
            return EngineResult(success=False, log="Conversion failed!")
        # Pretend ffmpeg wrote the output file (probe writes to "-").
        if args and args[-1] != "-":
            Path(args[-1]).touch()
        return EngineResult(success=True, log=self.log)


@pytest.fixture
def fake_engine():
    return FakeEngine(log="  Duration: 00:00:10.00, start: 0.000000, bitrate: 1205 kb/s")


@pytest.fixture
def namer(tmp_path):
    return OutputNamer(tmp_path / "out", prefix="test", clock=lambda: FIXED_NOW)


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second test video (320x240, 10fps) with audio using ffmpeg."""
    out = tmp_path / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=320x240:d=5:r=10",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out
