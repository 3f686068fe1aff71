"""CLI for batch editing — apply an edits manifest, then optionally export.

Usage:
    clipedit edit --manifest edits.yaml
    clipedit edit --manifest edits.yaml --config session.yaml --export
    clipedit edit --manifest edits.yaml --dry-run
"""

import argparse
import logging
import sys

from .catalog import FILTER_NAMES
from .config import default_config, load_config
from .edits_manifest import load_edits_manifest
from .export import ExportPipeline, ExportSettings
from .session import EditSession


def apply_operation(session: EditSession, op: dict):
    """Dispatch one normalized manifest operation to the session."""
    kind = op["op"]
    if kind == "cut":
        return session.cut(op["start"], op["end"])
    if kind == "split":
        return session.split(op["at"])
    if kind == "speed":
        return session.adjust_speed(op["multiplier"])
    if kind == "rotate":
        return session.rotate(op.get("degrees", 90))
    if kind == "filter":
        return session.apply_filter(op["name"])
    if kind == "text":
        return session.add_text_overlay(
            op["text"],
            font_size=op.get("font_size", 24),
            color=op.get("color", "white"),
            x=op.get("x", 0),
            y=op.get("y", 0),
        )
    if kind == "audio":
        return session.add_audio(op["audio"], op.get("volume", 1.0))
    if kind == "crop":
        return session.crop(op["width"], op["height"], op.get("x", 0), op.get("y", 0))
    if kind == "select":
        clips = session.timeline.clips
        if not 0 <= op["index"] < len(clips):
            raise IndexError(f"select: index {op['index']} out of range (0..{len(clips) - 1})")
        return session.select_clip(clips[op["index"]].id)
    if kind == "merge":
        return session.merge_clips()
    raise ValueError(f"Unknown op '{kind}'")


def _describe(op: dict) -> str:
    params = ", ".join(f"{k}={v}" for k, v in op.items() if k != "op")
    return f"{op['op']}({params})"


def _warn_unknown_filters(operations: list[dict]) -> None:
    """Unknown filter names still run, with no look applied; say so up front."""
    for i, op in enumerate(operations):
        if op["op"] == "filter" and op["name"].strip().lower() not in FILTER_NAMES:
            print(
                f"  warning: operation {i}: unknown filter '{op['name']}' applies no look "
                f"(known: {', '.join(FILTER_NAMES)})",
                file=sys.stderr,
            )


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Apply a YAML edits manifest to a source video.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML edits manifest",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML session config (output_dir, ffmpeg, timeout)",
    )
    parser.add_argument(
        "--export", action="store_true",
        help="Export the final clip after all edits",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Validate the manifest and list operations without running ffmpeg",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log every ffmpeg invocation",
    )
    parsed = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if parsed.verbose else logging.WARNING)

    manifest = load_edits_manifest(parsed.manifest)
    _warn_unknown_filters(manifest["operations"])
    if parsed.config:
        config = load_config(parsed.config)
    elif manifest["output_dir"]:
        config = default_config(manifest["output_dir"])
    else:
        parser.error("No output directory: set output_dir in the manifest or pass --config")

    if manifest["export"]:
        config["export"] = {**config["export"], **manifest["export"]}

    if parsed.dry_run:
        print(f"Edits manifest valid: {len(manifest['operations'])} operations on {manifest['source']}")
        for i, op in enumerate(manifest["operations"]):
            print(f"  {i}: {_describe(op)}")
        if parsed.export:
            print(f"  export: {ExportSettings.from_dict(config['export'])}")
        return

    session = EditSession.from_config(config)
    print(f"Loading {manifest['source']}")
    clip = session.load_video(manifest["source"])
    if session.state.error:
        print(f"  warning: {session.state.error}", file=sys.stderr)
        session.clear_error()
    print(f"  duration {clip.duration:.2f}s")

    for i, op in enumerate(manifest["operations"]):
        print(f"  [{i}] {_describe(op)}")
        try:
            apply_operation(session, op)
        except IndexError as e:
            print(f"Failed: operation {i}: {e}", file=sys.stderr)
            sys.exit(1)
        if session.state.error:
            print(f"Failed: {session.state.error}", file=sys.stderr)
            sys.exit(1)

    print("Timeline:")
    for c in session.timeline.clips:
        marker = "*" if c.is_selected else " "
        print(f"  {marker} {c.name:<12} {c.duration:7.2f}s  {c.locator}")

    if parsed.export:
        pipeline = ExportPipeline(
            session.engine, session.namer, ExportSettings.from_dict(config["export"]),
        )
        print(f"Exporting {session.final_locator()}")
        output = pipeline.export(session.final_locator())
        if output is None:
            print(f"Failed: {pipeline.state.error}", file=sys.stderr)
            sys.exit(1)
        print(f"Done: {output}")


if __name__ == "__main__":
    main()
