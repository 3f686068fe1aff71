"""Subcommand dispatcher for clipedit.

Usage:
    clipedit edit      --manifest edits.yaml [--config session.yaml] [--export]
    clipedit export    source.mp4 --output-dir renders/ --resolution 720p
    clipedit probe     source.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipedit",
        description="Timeline edits and exports driven by ffmpeg.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("edit", help="Apply a YAML edits manifest to a source video")
    subparsers.add_parser("export", help="Export a video with resolution/quality presets")
    subparsers.add_parser("probe", help="Print media durations")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "edit":
        from .edit_cli import main as edit_main
        edit_main(remaining)
    elif parsed.command == "export":
        from .export_cli import main as export_main
        export_main(remaining)
    elif parsed.command == "probe":
        from .probe_cli import main as probe_main
        probe_main(remaining)


if __name__ == "__main__":
    main()
