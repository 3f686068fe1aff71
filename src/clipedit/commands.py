"""Command construction — maps each edit operation to ffmpeg arguments.

Builders are pure apart from the output namer's existence check: they
take typed parameters, validate them, and return a Command holding the
argument list (without the ffmpeg executable) and the output path the
engine will write. Nothing here runs ffmpeg.

Output naming:
    <output_dir>/<prefix>_<YYYYmmdd_HHMMSS><suffix>.<format>

Two names generated within the same second get a numeric tail
(_2, _3, ...) instead of overwriting each other.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .catalog import (
    bitrate_for_quality,
    dimensions,
    filter_expression,
    transpose_expression,
)
from .common import escape_drawtext, ffmpeg_color, fmt_number, fmt_seconds


class OperationKind(str, Enum):
    CUT = "cut"
    SPLIT = "split"
    SPEED = "speed"
    ROTATE = "rotate"
    FILTER = "filter"
    TEXT = "text"
    AUDIO = "audio"
    CROP = "crop"
    EXPORT = "export"
    CONCATENATE = "concatenate"
    PROBE = "probe"


# Suffix appended to the timestamp for each mutating operation.
OUTPUT_SUFFIXES = {
    OperationKind.CUT: "_cut",
    OperationKind.SPLIT: "_cut",
    OperationKind.SPEED: "_speed",
    OperationKind.ROTATE: "_rotated",
    OperationKind.FILTER: "_filtered",
    OperationKind.TEXT: "_text",
    OperationKind.AUDIO: "_audio",
    OperationKind.CROP: "_cropped",
    OperationKind.EXPORT: "_export",
    OperationKind.CONCATENATE: "_merged",
}

EXPORT_PRESET = "medium"
EXPORT_VIDEO_CODEC = "libx264"
EXPORT_AUDIO_CODEC = "aac"
EXPORT_AUDIO_BITRATE = "128k"


@dataclass(frozen=True)
class Command:
    kind: OperationKind
    args: tuple[str, ...]
    output: Path | None = None


# ── Output naming ──────────────────────────────────────────────────

class OutputNamer:
    """Generates timestamped output paths under one directory.

    Args:
        output_dir: Directory the engine writes into (created on demand).
        prefix: Leading part of every file name.
        fmt: Default container extension.
        clock: Callable returning the current datetime (for tests).
    """

    def __init__(
        self,
        output_dir: str | Path,
        prefix: str = "clipedit",
        fmt: str = "mp4",
        clock=datetime.now,
    ):
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.fmt = fmt.lstrip(".")
        self._clock = clock
        self._issued: set[Path] = set()
        self._lock = threading.Lock()

    def next_path(self, suffix: str, fmt: str | None = None) -> Path:
        ext = (fmt or self.fmt).lstrip(".")
        stamp = self._clock().strftime("%Y%m%d_%H%M%S")
        stem = f"{self.prefix}_{stamp}{suffix}"

        with self._lock:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            candidate = self.output_dir / f"{stem}.{ext}"
            n = 2
            while candidate in self._issued or candidate.exists():
                candidate = self.output_dir / f"{stem}_{n}.{ext}"
                n += 1
            self._issued.add(candidate)
        return candidate


# ── Per-operation builders ─────────────────────────────────────────

def build_cut(src: str, start: float, end: float | None, namer: OutputNamer) -> Command:
    """Trim [start, end) with stream copy. end=None keeps the rest of the source."""
    start = float(start)
    if start < 0:
        raise ValueError(f"Cut start must be >= 0, got {start}")
    args = ["-y", "-i", src, "-ss", fmt_seconds(start)]
    if end is not None:
        end = float(end)
        if end <= start:
            raise ValueError(f"Cut end ({end}) must be greater than start ({start})")
        args += ["-to", fmt_seconds(end)]

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.CUT])
    args += ["-c", "copy", str(out)]
    return Command(OperationKind.CUT, tuple(args), out)


def build_speed(src: str, multiplier: float, namer: OutputNamer) -> Command:
    """Change playback speed.

    Video timestamps are scaled by 1/multiplier (setpts stretches time),
    while atempo takes the multiplier itself (it sets tempo).
    """
    multiplier = float(multiplier)
    if multiplier <= 0:
        raise ValueError(f"Speed multiplier must be > 0, got {multiplier}")
    video_speed = fmt_number(1.0 / multiplier)
    audio_speed = fmt_number(multiplier)

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.SPEED])
    args = [
        "-y", "-i", src,
        "-filter_complex",
        f"[0:v]setpts={video_speed}*PTS[v];[0:a]atempo={audio_speed}[a]",
        "-map", "[v]", "-map", "[a]",
        str(out),
    ]
    return Command(OperationKind.SPEED, tuple(args), out)


def build_rotate(src: str, degrees, namer: OutputNamer) -> Command:
    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.ROTATE])
    args = ["-y", "-i", src, "-vf", transpose_expression(degrees), str(out)]
    return Command(OperationKind.ROTATE, tuple(args), out)


def build_filter(src: str, name: str, namer: OutputNamer) -> Command:
    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.FILTER])
    args = ["-y", "-i", src, "-vf", filter_expression(name), str(out)]
    return Command(OperationKind.FILTER, tuple(args), out)


def build_text_overlay(
    src: str,
    text: str,
    font_size: int,
    color: str,
    x: int,
    y: int,
    namer: OutputNamer,
) -> Command:
    """Burn text into the video at pixel position (x, y)."""
    font_size = int(font_size)
    if font_size <= 0:
        raise ValueError(f"Font size must be > 0, got {font_size}")
    drawtext = (
        f"drawtext=text='{escape_drawtext(text)}'"
        f":fontsize={font_size}"
        f":fontcolor={ffmpeg_color(color)}"
        f":x={int(x)}:y={int(y)}"
    )

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.TEXT])
    args = ["-y", "-i", src, "-vf", drawtext, str(out)]
    return Command(OperationKind.TEXT, tuple(args), out)


def build_audio_merge(src: str, audio: str, volume: float, namer: OutputNamer) -> Command:
    """Mix a second audio source into the video's own track.

    The output runs as long as the first input; video is copied untouched.
    """
    volume = float(volume)
    if volume < 0:
        raise ValueError(f"Volume must be >= 0, got {volume}")

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.AUDIO])
    args = [
        "-y", "-i", src, "-i", audio,
        "-filter_complex",
        f"[1:a]volume={fmt_number(volume)}[a1];"
        f"[0:a][a1]amix=inputs=2:duration=first:dropout_transition=3",
        "-c:v", "copy",
        str(out),
    ]
    return Command(OperationKind.AUDIO, tuple(args), out)


def build_crop(
    src: str, width: int, height: int, x: int, y: int, namer: OutputNamer,
) -> Command:
    width, height, x, y = int(width), int(height), int(x), int(y)
    if width <= 0 or height <= 0:
        raise ValueError(f"Crop size must be positive, got {width}x{height}")
    if x < 0 or y < 0:
        raise ValueError(f"Crop offset must be >= 0, got ({x}, {y})")

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.CROP])
    args = ["-y", "-i", src, "-vf", f"crop={width}:{height}:{x}:{y}", str(out)]
    return Command(OperationKind.CROP, tuple(args), out)


def build_export(src: str, settings, namer: OutputNamer) -> Command:
    """Scale and re-encode for delivery.

    Args:
        src: Final clip locator.
        settings: Object with resolution, aspect_ratio, quality and format
            attributes (see export.ExportSettings).
        namer: Output namer.
    """
    width, height = dimensions(settings.resolution, settings.aspect_ratio)
    bitrate = bitrate_for_quality(settings.quality)

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.EXPORT], fmt=settings.format)
    args = [
        "-y", "-i", src,
        "-vf", f"scale={width}:{height}",
        "-b:v", bitrate,
        "-c:v", EXPORT_VIDEO_CODEC,
        "-preset", EXPORT_PRESET,
        "-c:a", EXPORT_AUDIO_CODEC,
        "-b:a", EXPORT_AUDIO_BITRATE,
        str(out),
    ]
    return Command(OperationKind.EXPORT, tuple(args), out)


def build_concatenate(inputs: list[str], namer: OutputNamer) -> Command:
    """Join N inputs in order; each contributes one video and one audio stream."""
    inputs = list(inputs)
    if not inputs:
        raise ValueError("Concatenate needs at least one input")

    args = ["-y"]
    for src in inputs:
        args += ["-i", src]

    streams = "".join(f"[{i}:v][{i}:a]" for i in range(len(inputs)))
    filter_complex = f"{streams}concat=n={len(inputs)}:v=1:a=1[outv][outa]"

    out = namer.next_path(OUTPUT_SUFFIXES[OperationKind.CONCATENATE])
    args += [
        "-filter_complex", filter_complex,
        "-map", "[outv]", "-map", "[outa]",
        str(out),
    ]
    return Command(OperationKind.CONCATENATE, tuple(args), out)


def build_probe_duration(src: str) -> Command:
    """Decode the whole input into the null muxer; only the log is used."""
    return Command(OperationKind.PROBE, ("-i", src, "-f", "null", "-"), None)


# ── Dispatch ───────────────────────────────────────────────────────

def _require(params: dict, key: str, kind: OperationKind):
    if key not in params:
        raise ValueError(f"Operation '{kind.value}' requires '{key}'")
    return params[key]


def build(kind, params: dict, inputs: list[str], namer: OutputNamer) -> Command:
    """Build a Command for any operation kind.

    Args:
        kind: OperationKind or its string value.
        params: Operation-specific parameters (see the build_* functions).
        inputs: Input locators. All operations except concatenate use
            inputs[0]; audio merge takes the overlay track from
            params['audio'].
        namer: Output namer.

    Raises:
        ValueError: Unknown kind, missing input, or invalid parameters.
    """
    kind = OperationKind(kind)
    if kind is OperationKind.CONCATENATE:
        return build_concatenate(inputs, namer)
    if not inputs:
        raise ValueError(f"Operation '{kind.value}' needs an input")
    src = inputs[0]

    if kind in (OperationKind.CUT, OperationKind.SPLIT):
        return build_cut(src, params.get("start", 0.0), params.get("end"), namer)
    if kind is OperationKind.SPEED:
        return build_speed(src, _require(params, "multiplier", kind), namer)
    if kind is OperationKind.ROTATE:
        return build_rotate(src, params.get("degrees", 90), namer)
    if kind is OperationKind.FILTER:
        return build_filter(src, params.get("name", ""), namer)
    if kind is OperationKind.TEXT:
        return build_text_overlay(
            src,
            _require(params, "text", kind),
            params.get("font_size", 24),
            params.get("color", "white"),
            params.get("x", 0),
            params.get("y", 0),
            namer,
        )
    if kind is OperationKind.AUDIO:
        return build_audio_merge(
            src, _require(params, "audio", kind), params.get("volume", 1.0), namer,
        )
    if kind is OperationKind.CROP:
        return build_crop(
            src, _require(params, "width", kind), _require(params, "height", kind),
            params.get("x", 0), params.get("y", 0), namer,
        )
    if kind is OperationKind.EXPORT:
        return build_export(src, _require(params, "settings", kind), namer)
    return build_probe_duration(src)
