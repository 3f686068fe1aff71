"""Static lookup tables for ffmpeg filter expressions and export presets.

Every lookup is total: unknown keys fall through to a neutral mapping
instead of raising, so a bad name from a UI or manifest still yields a
runnable command.
"""

from enum import Enum


# ── Filters ───────────────────────────────────────────────────────

NEUTRAL_FILTER = "eq=contrast=1.0"

FILTERS = {
    "vintage": "curves=vintage",
    "dramatic": "eq=contrast=1.5:brightness=0.1:saturation=1.2",
    "bright": "eq=brightness=0.2:contrast=1.1",
    "warm": "colortemperature=4000",
    "cool": "colortemperature=7000",
    "sepia": "colorchannelmixer=.393:.769:.189:0:.349:.686:.168:0:.272:.534:.131",
    "black_white": "hue=s=0",
    "vivid": "eq=saturation=1.5:contrast=1.2",
    "soft": "gblur=sigma=1",
}

FILTER_NAMES = list(FILTERS)


def filter_expression(name: str) -> str:
    """Return the -vf expression for a named look (case-insensitive)."""
    return FILTERS.get(str(name or "").strip().lower(), NEUTRAL_FILTER)


# ── Rotation ──────────────────────────────────────────────────────

class Rotation(Enum):
    CW_90 = 90
    CW_180 = 180
    CW_270 = 270


# transpose=0 would flip as well as rotate, so identity is the null filter.
IDENTITY_TRANSFORM = "null"

TRANSPOSE = {
    Rotation.CW_90: "transpose=1",
    Rotation.CW_180: "transpose=2,transpose=2",
    Rotation.CW_270: "transpose=2",
}


def transpose_expression(degrees) -> str:
    """Map clockwise degrees to a transpose chain; anything else is identity."""
    if isinstance(degrees, Rotation):
        return TRANSPOSE[degrees]
    try:
        rotation = Rotation(degrees)
    except (TypeError, ValueError):
        return IDENTITY_TRANSFORM
    return TRANSPOSE[rotation]


# ── Export dimensions ─────────────────────────────────────────────

class Resolution(str, Enum):
    HD = "720p"
    FULL_HD = "1080p"
    UHD = "4k"


class AspectRatio(str, Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"


DIMENSIONS = {
    Resolution.HD: {
        AspectRatio.LANDSCAPE: (1280, 720),
        AspectRatio.PORTRAIT: (720, 1280),
        AspectRatio.SQUARE: (720, 720),
    },
    Resolution.FULL_HD: {
        AspectRatio.LANDSCAPE: (1920, 1080),
        AspectRatio.PORTRAIT: (1080, 1920),
        AspectRatio.SQUARE: (1080, 1080),
    },
    Resolution.UHD: {
        AspectRatio.LANDSCAPE: (3840, 2160),
        AspectRatio.PORTRAIT: (2160, 3840),
        AspectRatio.SQUARE: (2160, 2160),
    },
}


def _enum_or_none(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


def dimensions(resolution, aspect_ratio) -> tuple[int, int]:
    """Resolve (width, height) for a resolution/aspect-ratio pair.

    Unknown resolutions use the 1080p row; unknown aspect ratios use the
    row's 16:9 entry.
    """
    res = _enum_or_none(Resolution, resolution) or Resolution.FULL_HD
    aspect = _enum_or_none(AspectRatio, aspect_ratio) or AspectRatio.LANDSCAPE
    return DIMENSIONS[res][aspect]


# ── Quality ───────────────────────────────────────────────────────

# (minimum quality, video bitrate), checked top-down.
BITRATE_TIERS = [
    (80, "5000k"),
    (60, "3000k"),
    (40, "2000k"),
    (20, "1000k"),
]
LOWEST_BITRATE = "500k"

QUALITY_LABELS = [
    (80, "High"),
    (60, "Medium"),
    (40, "Low"),
]
LOWEST_QUALITY_LABEL = "Very Low"

BASE_SIZE_MB = {
    Resolution.HD: 15,
    Resolution.FULL_HD: 25,
    Resolution.UHD: 100,
}


def bitrate_for_quality(quality: int) -> str:
    for threshold, bitrate in BITRATE_TIERS:
        if quality >= threshold:
            return bitrate
    return LOWEST_BITRATE


def quality_label(quality: int) -> str:
    """Human-readable quality band, e.g. 'Medium (65%)'."""
    label = LOWEST_QUALITY_LABEL
    for threshold, name in QUALITY_LABELS:
        if quality >= threshold:
            label = name
            break
    return f"{label} ({quality}%)"


def estimated_size_mb(resolution, quality: int) -> int:
    """Rough output size guess shown next to export settings."""
    res = _enum_or_none(Resolution, resolution) or Resolution.FULL_HD
    return int(BASE_SIZE_MB[res] * (quality / 100.0))
