"""clipedit.common — shared field helpers for command construction.

Contains: color normalization, drawtext escaping, ${var} path resolution
and number formatting for ffmpeg arguments.
"""

import re

from PIL import ImageColor


# ── Color utilities ────────────────────────────────────────────────

def ffmpeg_color(value: str) -> str:
    """Normalize a color name or hex string to ffmpeg's 0xRRGGBB form.

    Accepts anything Pillow understands ('white', '#fff', 'rgb(...)'),
    plus bare 'RRGGBB' and '0xRRGGBB'.
    """
    text = str(value or "").strip()
    if not text:
        raise ValueError("Color must not be empty")
    if text.lower().startswith("0x"):
        text = "#" + text[2:]
    elif len(text) == 6 and all(c in "0123456789abcdefABCDEF" for c in text):
        text = "#" + text
    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        raise ValueError(f"Unknown color: '{value}'") from None
    r, g, b = rgb[:3]
    return f"0x{r:02X}{g:02X}{b:02X}"


# ── drawtext escaping ──────────────────────────────────────────────

# ffmpeg unescapes a drawtext value three times: the filtergraph parser
# (the value is single-quoted there), the filter option parser, then
# drawtext's own %{...} expansion. Each table runs backslash first.
_EXPANSION_ESCAPES = [
    ("\\", "\\\\"),
    ("%", "\\%"),
]

_OPTION_ESCAPES = [
    ("\\", "\\\\"),
    ("'", "\\'"),
    (":", "\\:"),
]


def _apply(text: str, escapes) -> str:
    for raw, escaped in escapes:
        text = text.replace(raw, escaped)
    return text


def escape_drawtext(text: str) -> str:
    """Escape text for a single-quoted drawtext ``text='...'`` value.

    'a:b' -> a\\:b, '100%' -> 100\\\\%, "it's" -> it\\'\\''s
    """
    out = _apply(str(text), _EXPANSION_ESCAPES)
    out = _apply(out, _OPTION_ESCAPES)
    # Inside graph-level quotes nothing escapes; close, escape, reopen.
    return out.replace("'", "'\\''")


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Number formatting ──────────────────────────────────────────────

def fmt_seconds(value: float) -> str:
    """Format a timestamp for -ss/-to with millisecond precision."""
    return f"{float(value):.3f}"


def fmt_number(value: float) -> str:
    """Compact float for filter expressions: 0.5 -> '0.5', 2.0 -> '2'."""
    return f"{float(value):.6g}"
