"""Edits manifest loader — a batch of timeline edits described in YAML.

Operations run in order against one source video, each on whatever clip
is selected at that point. Follows the same ${var} path resolution as
the session config.

Edits manifest schema:
  source: "${raw}/talk.mp4"
  paths:
    raw: "/data/recordings"
  output_dir: "${raw}/edits"      # optional when a config supplies it
  operations:
    - {op: cut, start: 1.0, end: 9.0}
    - {op: split, at: 4.0}
    - {op: select, index: 1}
    - {op: filter, name: sepia}
    - {op: text, text: "Hello", font_size: 32, color: white, x: 10, y: 10}
    - {op: audio, audio: "${raw}/music.mp3", volume: 0.5}
    - {op: merge}
  export:
    resolution: 720p
    aspect_ratio: "9:16"
    quality: 60
"""

from pathlib import Path

import yaml

from .common import resolve_path_vars


# ── Valid operations and their fields ─────────────────────────────

REQUIRED_FIELDS = {
    "cut": ("start", "end"),
    "split": ("at",),
    "speed": ("multiplier",),
    "rotate": (),
    "filter": ("name",),
    "text": ("text",),
    "audio": ("audio",),
    "crop": ("width", "height"),
    "select": ("index",),
    "merge": (),
}

NUMERIC_FIELDS = {
    "start", "end", "at", "multiplier", "degrees", "volume",
    "font_size", "x", "y", "width", "height", "index",
}

VALID_OPS = set(REQUIRED_FIELDS)


def load_edits_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize an edits manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in source, output_dir and audio paths.
      3. Validate each operation (known op, required fields, numbers).
      4. Check cut ranges and positive split/speed values.

    Returns:
        Normalized dict: source, output_dir (or None), operations, export
        (mapping, possibly empty).

    Raises:
        ValueError: Missing/invalid fields.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    if "source" not in raw:
        raise ValueError("Edits manifest: missing required 'source' field")

    paths = raw.get("paths", {}) or {}
    source = resolve_path_vars(str(raw["source"]), paths)
    output_dir = raw.get("output_dir")
    if output_dir is not None:
        output_dir = resolve_path_vars(str(output_dir), paths)

    operations = []
    for i, entry in enumerate(raw.get("operations", []) or []):
        operations.append(_normalize_operation(i, entry, paths))

    export = raw.get("export", {}) or {}
    if not isinstance(export, dict):
        raise ValueError("Edits manifest: 'export' must be a mapping")

    return {
        "source": source,
        "output_dir": output_dir,
        "operations": operations,
        "export": export,
    }


def _normalize_operation(i: int, entry, paths: dict) -> dict:
    if not isinstance(entry, dict):
        raise ValueError(f"Operation {i}: expected a mapping, got {type(entry).__name__}")
    op = str(entry.get("op", "")).strip().lower()
    if op not in VALID_OPS:
        raise ValueError(
            f"Operation {i}: unknown op '{entry.get('op')}'. Valid: {sorted(VALID_OPS)}"
        )

    for key in REQUIRED_FIELDS[op]:
        if key not in entry:
            raise ValueError(f"Operation {i} ({op}): missing required field '{key}'")

    out = {"op": op}
    for key, value in entry.items():
        if key == "op":
            continue
        if key in NUMERIC_FIELDS:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValueError(
                    f"Operation {i} ({op}): '{key}' must be a number, got {value!r}"
                ) from None
            if key in ("index", "font_size", "x", "y", "width", "height", "degrees"):
                value = int(value)
        elif key == "audio":
            value = resolve_path_vars(str(value), paths)
        else:
            value = str(value)
        out[key] = value

    if op == "cut" and not 0 <= out["start"] < out["end"]:
        raise ValueError(
            f"Operation {i} (cut): need 0 <= start < end, got {out['start']}..{out['end']}"
        )
    if op == "split" and out["at"] <= 0:
        raise ValueError(f"Operation {i} (split): 'at' must be > 0, got {out['at']}")
    if op == "speed" and out["multiplier"] <= 0:
        raise ValueError(
            f"Operation {i} (speed): 'multiplier' must be > 0, got {out['multiplier']}"
        )
    return out
