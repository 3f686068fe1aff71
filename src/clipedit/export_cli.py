"""CLI for export — render one video with resolution/aspect/quality presets.

Usage:
    clipedit export source.mp4 --output-dir renders/
    clipedit export source.mp4 --output-dir renders/ \
        --resolution 4k --aspect-ratio 9:16 --quality 60
    clipedit export source.mp4 --config session.yaml
"""

import argparse
import logging
import sys

from .catalog import (
    AspectRatio,
    Resolution,
    dimensions,
    estimated_size_mb,
    quality_label,
)
from .config import default_config, load_config
from .export import ExportPipeline, ExportSettings


def _print_progress(state):
    if state.is_exporting:
        print(f"  {state.progress:3d}%")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Export a video at a preset resolution and quality.",
    )
    parser.add_argument("source", help="Video to export")
    parser.add_argument(
        "--output-dir", default=None,
        help="Directory for the exported file (required without --config)",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML session config",
    )
    parser.add_argument(
        "--resolution", default=None,
        choices=[r.value for r in Resolution],
        help="Output resolution (default 1080p)",
    )
    parser.add_argument(
        "--aspect-ratio", default=None,
        choices=[a.value for a in AspectRatio],
        help="Output aspect ratio (default 16:9)",
    )
    parser.add_argument(
        "--quality", type=int, default=None,
        help="Quality 0-100, mapped to a video bitrate tier (default 80)",
    )
    parser.add_argument(
        "--format", default=None,
        help="Output container (default mp4)",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log the ffmpeg invocation",
    )
    parsed = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if parsed.verbose else logging.WARNING)

    if parsed.config:
        config = load_config(parsed.config)
    elif parsed.output_dir:
        config = default_config(parsed.output_dir)
    else:
        parser.error("Specify --output-dir or --config")

    # CLI flags override config values.
    overrides = {
        "resolution": parsed.resolution,
        "aspect_ratio": parsed.aspect_ratio,
        "quality": parsed.quality,
        "format": parsed.format,
    }
    config["export"] = {
        **config["export"],
        **{k: v for k, v in overrides.items() if v is not None},
    }
    settings = ExportSettings.from_dict(config["export"])

    width, height = dimensions(settings.resolution, settings.aspect_ratio)
    print(f"Exporting {parsed.source}")
    print(f"  Resolution: {settings.resolution} ({width}x{height})")
    print(f"  Aspect Ratio: {settings.aspect_ratio}")
    print(f"  Quality: {quality_label(settings.quality)}")
    print(f"  Estimated Size: ~{estimated_size_mb(settings.resolution, settings.quality)} MB")

    pipeline = ExportPipeline.from_config(config)
    pipeline.subscribe(_print_progress)
    output = pipeline.export(parsed.source, settings)
    if output is None:
        print(f"Failed: {pipeline.state.error}", file=sys.stderr)
        sys.exit(1)
    print(f"Done: {output}")


if __name__ == "__main__":
    main()
