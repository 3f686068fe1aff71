"""Session configuration loader.

Reads a YAML file describing where outputs go and how ffmpeg is run.
Follows the same ${var} path resolution as the edit manifests.

Config schema:
  output_dir: "${work}/renders"     # required
  paths:
    work: "/data/edits"
  prefix: clipedit                   # file name prefix
  format: mp4                        # container for intermediate clips
  engine_timeout: 3600               # seconds, or null for no limit
  ffmpeg: /usr/local/bin/ffmpeg      # optional, default from imageio-ffmpeg
  export:
    resolution: 1080p
    aspect_ratio: "16:9"
    quality: 80

imageio-ffmpeg's bundled binary is built without the drawtext filter, so
text overlays fail with it. Point `ffmpeg` at a build that has drawtext
(a system ffmpeg with libfreetype) to use them.
"""

from pathlib import Path

import yaml

from .common import resolve_path_vars

DEFAULT_PREFIX = "clipedit"
DEFAULT_FORMAT = "mp4"
DEFAULT_ENGINE_TIMEOUT = 3600.0


def default_config(output_dir: str | Path) -> dict:
    """Config dict with every optional key at its default."""
    return {
        "output_dir": str(output_dir),
        "prefix": DEFAULT_PREFIX,
        "format": DEFAULT_FORMAT,
        "engine_timeout": DEFAULT_ENGINE_TIMEOUT,
        "ffmpeg": None,
        "export": {},
    }


def normalize_config(raw: dict) -> dict:
    """Validate a raw config mapping and fill in defaults.

    Raises:
        ValueError: Missing output_dir or a malformed optional value.
    """
    if not isinstance(raw, dict):
        raise ValueError("Config: expected a mapping at the top level")
    if not raw.get("output_dir"):
        raise ValueError("Config: missing required 'output_dir' field")

    paths = raw.get("paths", {}) or {}
    config = default_config(resolve_path_vars(str(raw["output_dir"]), paths))

    prefix = str(raw.get("prefix", DEFAULT_PREFIX) or "").strip()
    if not prefix or any(sep in prefix for sep in ("/", "\\")):
        raise ValueError(f"Config: 'prefix' must be a plain file name part, got '{prefix}'")
    config["prefix"] = prefix

    fmt = str(raw.get("format", DEFAULT_FORMAT) or "").strip().lstrip(".")
    if not fmt:
        raise ValueError("Config: 'format' must not be empty")
    config["format"] = fmt

    if "engine_timeout" in raw:
        timeout = raw["engine_timeout"]
        if timeout is not None:
            timeout = float(timeout)
            if timeout <= 0:
                raise ValueError(f"Config: 'engine_timeout' must be > 0, got {timeout}")
        config["engine_timeout"] = timeout

    if raw.get("ffmpeg"):
        config["ffmpeg"] = resolve_path_vars(str(raw["ffmpeg"]), paths)

    export = raw.get("export", {}) or {}
    if not isinstance(export, dict):
        raise ValueError("Config: 'export' must be a mapping")
    config["export"] = dict(export)

    return config


def load_config(config_path: str | Path) -> dict:
    """Load and normalize a YAML session config.

    Raises:
        ValueError: Invalid fields (see normalize_config).
        FileNotFoundError: Missing config file.
    """
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    return normalize_config(raw)
